from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ...api.deps import authorize, get_patient_service
from ...core.security import UserRole
from ...models.user import User
from ...schemas.common import Pagination
from ...schemas.patient import (
    PatientAppointment, PatientCreate, PatientCreated, PatientDetail, PatientDetailResponse,
    PatientList, PatientResponse, PatientSearchResults, PatientStats,
    PatientSummary, PatientUpdate
)
from ...services.patient_service import PatientService

router = APIRouter(prefix="/patients", tags=["Patients"])

REGISTRATION_ROLES = (UserRole.ADMIN, UserRole.RECEPTIONIST, UserRole.NURSE)

@router.get("", response_model=PatientList)
async def list_patients(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    current_user: User = Depends(authorize(permissions=["patients.read"])),
    service: PatientService = Depends(get_patient_service)
):
    """List active patients with pagination and search."""
    result = service.list(page=page, limit=limit, search=search)
    return PatientList(
        patients=[PatientSummary.model_validate(patient) for patient in result],
        pagination=Pagination.build(page, limit, result.total)
    )

@router.post("", response_model=PatientCreated, status_code=status.HTTP_201_CREATED)
async def register_patient(
    patient_data: PatientCreate,
    current_user: User = Depends(authorize(roles=REGISTRATION_ROLES, permissions=["patients.write"])),
    service: PatientService = Depends(get_patient_service)
):
    """Register new patient."""
    patient = service.create(patient_data)
    return PatientCreated(
        message="Patient registered successfully",
        patient=PatientResponse.model_validate(patient)
    )

@router.get("/search/{query}", response_model=PatientSearchResults)
async def search_patients(
    query: str,
    current_user: User = Depends(authorize(permissions=["patients.read"])),
    service: PatientService = Depends(get_patient_service)
):
    """Search active patients by name, number, phone, national ID or NHIF number."""
    return PatientSearchResults(
        patients=[PatientSummary.model_validate(patient) for patient in service.search(query)]
    )

@router.get("/stats/overview", response_model=PatientStats)
async def patient_stats(
    current_user: User = Depends(authorize(permissions=["patients.read"])),
    service: PatientService = Depends(get_patient_service)
):
    """Get patient statistics."""
    return PatientStats(**service.stats())

@router.get("/{patient_id}", response_model=PatientDetailResponse)
async def get_patient(
    patient_id: int,
    current_user: User = Depends(authorize(permissions=["patients.read"])),
    service: PatientService = Depends(get_patient_service)
):
    """Get patient by ID with recent appointments."""
    patient = service.get(patient_id)
    detail = PatientDetail.model_validate(patient)
    detail.appointments = [
        PatientAppointment.model_validate(appointment)
        for appointment in service.recent_appointments(patient)
    ]
    return PatientDetailResponse(patient=detail)

@router.put("/{patient_id}", response_model=PatientCreated)
async def update_patient(
    patient_id: int,
    patient_data: PatientUpdate,
    current_user: User = Depends(authorize(roles=REGISTRATION_ROLES, permissions=["patients.write"])),
    service: PatientService = Depends(get_patient_service)
):
    """Update patient."""
    patient = service.update(patient_id, patient_data.model_dump(exclude_unset=True))
    return PatientCreated(
        message="Patient updated successfully",
        patient=PatientResponse.model_validate(patient)
    )
