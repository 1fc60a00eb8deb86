from datetime import date, datetime
from typing import Annotated, List, Optional

from pydantic import ConfigDict, EmailStr, Field

from ..core.security import UserRole
from .common import CamelModel, Pagination

KENYAN_PHONE = r"^\+254[0-9]{9}$"


class UserLogin(CamelModel):
    email: EmailStr
    password: Annotated[str, Field(min_length=6, max_length=128)]


class ChangePassword(CamelModel):
    current_password: Annotated[str, Field(min_length=1)]
    new_password: Annotated[str, Field(min_length=6, max_length=128)]


class StaffRegister(CamelModel):
    first_name: Annotated[str, Field(min_length=1, max_length=100)]
    last_name: Annotated[str, Field(min_length=1, max_length=100)]
    middle_name: Optional[str] = None
    email: EmailStr
    phone: Annotated[str, Field(pattern=KENYAN_PHONE)]
    department: Annotated[str, Field(min_length=1, max_length=100)]
    position: Annotated[str, Field(min_length=1, max_length=100)]
    role: UserRole
    specialization: Optional[str] = None
    password: Optional[Annotated[str, Field(min_length=6, max_length=128)]] = None


class StaffResponse(CamelModel):
    id: int
    staff_id: str
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    department: str
    position: str
    specialization: Optional[str] = None
    hire_date: date


class StaffSummary(CamelModel):
    first_name: str
    last_name: str
    department: str
    specialization: Optional[str] = None


class UserResponse(CamelModel):
    id: int
    email: str
    role: UserRole
    staff_id: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    staff: Optional[StaffResponse] = None


class UserList(CamelModel):
    users: List[UserResponse]


class DoctorSummary(CamelModel):
    id: int
    email: str
    staff: Optional[StaffSummary] = None


class LoginResponse(CamelModel):
    token: str
    user: UserResponse


class ProfileResponse(CamelModel):
    user: UserResponse


class StaffRegisterResponse(CamelModel):
    message: str
    user: UserResponse


class TokenVerification(CamelModel):
    valid: bool
    user_id: int
    email: Optional[str] = None
    role: Optional[UserRole] = None
    staff_id: Optional[str] = None
    expires: Optional[int] = None


class UserStatusUpdate(CamelModel):
    model_config = ConfigDict(extra="forbid")

    is_active: bool


class StaffList(CamelModel):
    staff: List[UserResponse]
    pagination: Pagination


class DoctorList(CamelModel):
    doctors: List[DoctorSummary]
