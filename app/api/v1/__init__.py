from fastapi import APIRouter
from .auth.auth_routes import router as auth_router
from .user.user_routes import router as user_router
from .patient.patient_routes import router as patient_router
from .opd.opd_routes import router as opd_router

router = APIRouter()


router.include_router(auth_router)
router.include_router(user_router)
router.include_router(patient_router)
router.include_router(opd_router)
