from datetime import date, datetime
from typing import Annotated, List, Optional, Union

from pydantic import EmailStr, Field, field_validator

from ..models.appointment import AppointmentStatus, AppointmentType
from ..models.patient import BloodGroup, Gender
from .auth import KENYAN_PHONE
from .common import CalendarDay, CamelModel, Pagination


class PatientBase(CamelModel):
    first_name: Annotated[str, Field(min_length=1, max_length=100)]
    middle_name: Optional[str] = None
    last_name: Annotated[str, Field(min_length=1, max_length=100)]
    date_of_birth: CalendarDay
    gender: Gender
    phone: Annotated[str, Field(pattern=KENYAN_PHONE)]
    email: Optional[EmailStr] = None
    national_id: Annotated[str, Field(min_length=1, max_length=50)]
    nhif_number: Optional[str] = None
    county: Annotated[str, Field(min_length=1, max_length=100)]
    address: Optional[str] = None
    emergency_contact_name: Annotated[str, Field(min_length=1, max_length=200)]
    emergency_contact_phone: Annotated[str, Field(pattern=KENYAN_PHONE)]
    emergency_contact_relation: Optional[str] = None
    blood_group: Optional[BloodGroup] = None
    allergies: Optional[str] = None


class PatientCreate(PatientBase):
    pass


class PatientUpdate(CamelModel):
    """Partial update. Unknown keys (id, patientNumber, timestamps) are dropped."""

    first_name: Optional[Annotated[str, Field(min_length=1, max_length=100)]] = None
    middle_name: Optional[str] = None
    last_name: Optional[Annotated[str, Field(min_length=1, max_length=100)]] = None
    date_of_birth: Optional[CalendarDay] = None
    gender: Optional[Gender] = None
    phone: Optional[Annotated[str, Field(pattern=KENYAN_PHONE)]] = None
    email: Optional[EmailStr] = None
    national_id: Optional[Annotated[str, Field(min_length=1, max_length=50)]] = None
    nhif_number: Optional[str] = None
    county: Optional[str] = None
    address: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[Annotated[str, Field(pattern=KENYAN_PHONE)]] = None
    emergency_contact_relation: Optional[str] = None
    blood_group: Optional[BloodGroup] = None
    allergies: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator(
        "first_name", "last_name", "date_of_birth", "gender", "phone", "national_id", "county",
        "emergency_contact_name", "emergency_contact_phone", "is_active"
    )
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class PatientSummary(CamelModel):
    id: int
    patient_number: str
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    date_of_birth: date
    gender: Gender
    phone: str
    email: Optional[str] = None
    county: Optional[str] = None
    nhif_number: Optional[str] = None
    created_at: Optional[datetime] = None


class PatientResponse(PatientSummary):
    national_id: str
    address: Optional[str] = None
    emergency_contact_name: str
    emergency_contact_phone: str
    emergency_contact_relation: Optional[str] = None
    blood_group: Optional[BloodGroup] = None
    allergies: Optional[str] = None
    is_active: bool
    updated_at: Optional[datetime] = None


class PatientAppointment(CamelModel):
    id: int
    appointment_date: date
    appointment_time: str
    type: AppointmentType
    status: AppointmentStatus
    doctor_id: int


class PatientDetail(PatientResponse):
    appointments: List[PatientAppointment] = []


class PatientList(CamelModel):
    patients: List[PatientSummary]
    pagination: Pagination


class PatientSearchResults(CamelModel):
    patients: List[PatientSummary]


class PatientCreated(CamelModel):
    message: str
    patient: PatientResponse


class PatientDetailResponse(CamelModel):
    patient: PatientDetail


class PatientStats(CamelModel):
    total_patients: int
    new_patients_this_month: int
    active_patients: int
    patients_with_nhif: int = Field(alias="patientsWithNHIF")
    nhif_coverage: Union[str, int]
