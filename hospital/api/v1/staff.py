from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...api.deps import get_current_user
from ...core.database import get_db
from ...core.exceptions import NotFound
from ...core.security import UserRole
from ...models.user import User
from ...repositories.users import SQLAlchemyUserRepository
from ...schemas.auth import DoctorList, DoctorSummary, StaffList, UserResponse
from ...schemas.common import Pagination

router = APIRouter(prefix="/staff", tags=["Staff"])

@router.get("", response_model=StaffList)
async def list_staff(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    department: Optional[str] = None,
    role: Optional[UserRole] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List staff accounts, optionally filtered by department or role."""
    result = SQLAlchemyUserRepository(db).list(
        skip=(page - 1) * limit, limit=limit, role=role, department=department
    )
    return StaffList(
        staff=[UserResponse.model_validate(user) for user in result],
        pagination=Pagination.build(page, limit, result.total)
    )

@router.get("/doctors", response_model=DoctorList)
async def list_doctors(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Active doctors for the appointment booking form."""
    result = SQLAlchemyUserRepository(db).list(limit=None, role=UserRole.DOCTOR, active_only=True)
    return DoctorList(doctors=[DoctorSummary.model_validate(user) for user in result])

@router.get("/{user_id}", response_model=UserResponse)
async def get_staff_member(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a staff account by user ID."""
    user = SQLAlchemyUserRepository(db).get(user_id)
    if not user:
        raise NotFound("Staff member")
    return UserResponse.model_validate(user)
