from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ...api.deps import authorize, get_appointment_service, get_current_user
from ...core.security import UserRole
from ...models.appointment import AppointmentStatus
from ...models.user import User
from ...schemas.appointment import (
    AppointmentCancel, AppointmentCreate, AppointmentDetail, AppointmentList,
    AppointmentMessage, AppointmentResponse, AppointmentStats, AppointmentUpdate,
    Availability
)
from ...schemas.common import Pagination
from ...services.appointment_service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["Appointments"])

SCHEDULING_ROLES = (UserRole.ADMIN, UserRole.DOCTOR, UserRole.NURSE, UserRole.RECEPTIONIST)

@router.get("", response_model=AppointmentList)
async def list_appointments(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status"),
    doctor_id: Optional[int] = Query(None, alias="doctorId"),
    patient_id: Optional[int] = Query(None, alias="patientId"),
    day: Optional[date] = Query(None, alias="date"),
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service)
):
    """List appointments with pagination and filters."""
    result = service.list(
        page=page, limit=limit, status=status_filter,
        doctor_id=doctor_id, patient_id=patient_id, day=day
    )
    return AppointmentList(
        appointments=[AppointmentResponse.model_validate(appointment) for appointment in result],
        pagination=Pagination.build(page, limit, result.total)
    )

@router.post("", response_model=AppointmentMessage, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    appointment_data: AppointmentCreate,
    current_user: User = Depends(authorize(roles=SCHEDULING_ROLES, permissions=["appointments.write"])),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Book an appointment in a free slot."""
    appointment = service.create(appointment_data, created_by=current_user.id)
    return AppointmentMessage(
        message="Appointment created successfully",
        appointment=AppointmentResponse.model_validate(appointment)
    )

@router.get("/availability/{doctor_id}/{day}", response_model=Availability)
async def get_availability(
    doctor_id: int,
    day: date,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Free 30 minute slots between 09:00 and 17:00 for a doctor on a date."""
    return Availability(available_slots=service.list_availability(doctor_id, day))

@router.get("/stats/overview", response_model=AppointmentStats)
async def appointment_stats(
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Appointment counts and completion rate."""
    return AppointmentStats(**service.stats())

@router.get("/{appointment_id}", response_model=AppointmentDetail)
async def get_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Get appointment by ID."""
    appointment = service.get(appointment_id)
    return AppointmentDetail(appointment=AppointmentResponse.model_validate(appointment))

@router.put("/{appointment_id}", response_model=AppointmentMessage)
async def update_appointment(
    appointment_id: int,
    appointment_data: AppointmentUpdate,
    current_user: User = Depends(authorize(roles=SCHEDULING_ROLES, permissions=["appointments.write"])),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Update appointment fields."""
    appointment = service.update(appointment_id, appointment_data.model_dump(exclude_unset=True))
    return AppointmentMessage(
        message="Appointment updated successfully",
        appointment=AppointmentResponse.model_validate(appointment)
    )

@router.patch("/{appointment_id}/cancel", response_model=AppointmentMessage)
async def cancel_appointment(
    appointment_id: int,
    cancel_data: Optional[AppointmentCancel] = None,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Cancel an appointment, recording the reason in its notes."""
    reason = cancel_data.reason if cancel_data else None
    appointment = service.cancel(appointment_id, reason)
    return AppointmentMessage(
        message="Appointment cancelled successfully",
        appointment=AppointmentResponse.model_validate(appointment)
    )
