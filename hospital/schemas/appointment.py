from datetime import date, datetime
from typing import Annotated, List, Optional

from pydantic import AfterValidator, Field, field_validator

from ..models.appointment import AppointmentStatus, AppointmentType
from ..services.scheduling import normalize_time_label
from .auth import DoctorSummary
from .common import CalendarDay, CamelModel, Pagination

TimeLabel = Annotated[str, AfterValidator(normalize_time_label)]
Duration = Annotated[int, Field(ge=5, le=480)]


class AppointmentCreate(CamelModel):
    patient_id: int
    doctor_id: int
    appointment_date: CalendarDay
    appointment_time: TimeLabel
    duration: Duration = 30
    type: AppointmentType
    notes: Optional[str] = None


class AppointmentUpdate(CamelModel):
    """Partial update. Unknown keys (id, createdBy, timestamps) are dropped."""

    patient_id: Optional[int] = None
    doctor_id: Optional[int] = None
    appointment_date: Optional[CalendarDay] = None
    appointment_time: Optional[TimeLabel] = None
    duration: Optional[Duration] = None
    type: Optional[AppointmentType] = None
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None

    @field_validator(
        "patient_id", "doctor_id", "appointment_date", "appointment_time", "duration", "type", "status"
    )
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class AppointmentCancel(CamelModel):
    reason: Optional[str] = None


class PatientBrief(CamelModel):
    id: int
    patient_number: str
    first_name: str
    last_name: str
    phone: Optional[str] = None


class AppointmentResponse(CamelModel):
    id: int
    patient_id: int
    doctor_id: int
    created_by: int
    appointment_date: date
    appointment_time: str
    duration: int
    type: AppointmentType
    status: AppointmentStatus
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    patient: Optional[PatientBrief] = None
    doctor: Optional[DoctorSummary] = None


class AppointmentList(CamelModel):
    appointments: List[AppointmentResponse]
    pagination: Pagination


class AppointmentDetail(CamelModel):
    appointment: AppointmentResponse


class AppointmentMessage(CamelModel):
    message: str
    appointment: AppointmentResponse


class Availability(CamelModel):
    available_slots: List[str]


class AppointmentStats(CamelModel):
    today_appointments: int
    week_appointments: int
    total_appointments: int
    completed_appointments: int
    cancelled_appointments: int
    pending_appointments: int
    completion_rate: str
