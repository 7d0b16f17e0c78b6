from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import get_current_user, provide
from app.api.responses import respond
from app.core import bootstrap
from app.models.user_model import User
from app.schemas.common import ApiResponse
from app.schemas.opd_schemas import OPDRecordCreateSchema
from app.services.opd_service import OPDService


router = APIRouter(prefix="/opd", tags=["opd"])

opd_service_dep = provide(bootstrap.OPD_SERVICE)


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_opd_record(
    record_data: OPDRecordCreateSchema,
    current_user: User = Depends(get_current_user),
    opd_service: OPDService = Depends(opd_service_dep),
):
    return respond(await opd_service.create_record(current_user, record_data))


@router.get("/doctor/me", response_model=ApiResponse)
async def list_my_opd_records(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    opd_service: OPDService = Depends(opd_service_dep),
):
    return respond(await opd_service.list_for_doctor(current_user, limit=limit, offset=offset))


@router.get("/history/{opd_id}", response_model=ApiResponse)
async def get_opd_history(
    opd_id: str,
    current_user: User = Depends(get_current_user),
    opd_service: OPDService = Depends(opd_service_dep),
):
    """Records across every visit of a patient, newest first."""
    return respond(await opd_service.list_history(opd_id))


@router.get("/patient/{patient_id}", response_model=ApiResponse)
async def list_patient_opd_records(
    patient_id: int,
    current_user: User = Depends(get_current_user),
    opd_service: OPDService = Depends(opd_service_dep),
):
    return respond(await opd_service.list_for_patient(patient_id))


@router.get("/patient/{patient_id}/latest", response_model=ApiResponse)
async def get_latest_patient_opd_record(
    patient_id: int,
    current_user: User = Depends(get_current_user),
    opd_service: OPDService = Depends(opd_service_dep),
):
    return respond(await opd_service.get_latest_for_patient(patient_id))


@router.get("/{record_id}", response_model=ApiResponse)
async def get_opd_record(
    record_id: int,
    current_user: User = Depends(get_current_user),
    opd_service: OPDService = Depends(opd_service_dep),
):
    return respond(await opd_service.get_record(record_id))
