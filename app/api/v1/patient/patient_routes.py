from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import get_current_user, provide
from app.api.responses import respond
from app.core import bootstrap
from app.models.user_model import User
from app.schemas.common import ApiResponse
from app.schemas.patient_schemas import PatientRegisterSchema
from app.services.patient_service import PatientService


router = APIRouter(prefix="/patients", tags=["patients"])

patient_service_dep = provide(bootstrap.PATIENT_SERVICE)


@router.get("/lookup", response_model=ApiResponse)
async def lookup_patient(
    mobile: str = Query(..., description="10 digit mobile number"),
    current_user: User = Depends(get_current_user),
    patient_service: PatientService = Depends(patient_service_dep),
):
    """Visit history registered under a mobile number."""
    return respond(await patient_service.lookup(mobile))


@router.post("/register", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def register_patient(
    patient_data: PatientRegisterSchema,
    current_user: User = Depends(get_current_user),
    patient_service: PatientService = Depends(patient_service_dep),
):
    """
    Register a visit.

    Without ``opd_id`` a new patient is created with visit number 1. With
    ``opd_id`` the next visit of that patient is recorded.
    """
    return respond(await patient_service.register(patient_data))
