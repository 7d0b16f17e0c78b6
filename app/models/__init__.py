from .user_model import User
from .otp_model import OTPCode
from .patient_model import Patient, OPDRecord
