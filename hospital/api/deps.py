from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Iterable, Optional

from ..core.config import settings
from ..core.database import get_db
from ..core.permissions import PermissionPolicy
from ..core.security import (
    security, verify_token, AuthenticationError, InsufficientPermission,
    InsufficientRole, Unauthenticated, UserRole, TokenPayload
)
from ..models.user import User
from ..repositories.appointments import SQLAlchemyAppointmentRepository
from ..repositories.patients import SQLAlchemyPatientRepository
from ..repositories.users import SQLAlchemyUserRepository
from ..services.appointment_service import AppointmentService
from ..services.auth_service import AuthService
from ..services.patient_service import PatientService
from ..services.scheduling import get_conflict_policy

async def get_current_user_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenPayload:
    """Extract and verify JWT token from Authorization header."""
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()

    return verify_token(credentials.credentials)

async def get_current_user(
    token_payload: TokenPayload = Depends(get_current_user_token),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user from database."""
    user = SQLAlchemyUserRepository(db).get(token_payload.user_id)
    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("User account is deactivated")

    return user

def get_permission_policy(request: Request) -> PermissionPolicy:
    """Permission table installed on the application at startup."""
    policy = getattr(request.app.state, "permission_policy", None)
    if policy is None:
        policy = PermissionPolicy.default()
        request.app.state.permission_policy = policy
    return policy

# Role and permission based access control
def authorize(
    roles: Optional[Iterable[UserRole]] = None,
    permissions: Optional[Iterable[str]] = None,
):
    """Create a dependency that requires a role and/or permissions.

    Checks run in order: a valid token, then the role, then every required
    permission against the role's entry in the permission table.
    """
    allowed_roles = list(roles) if roles else []
    required_permissions = list(permissions) if permissions else []

    async def checker(
        current_user: User = Depends(get_current_user),
        policy: PermissionPolicy = Depends(get_permission_policy),
    ) -> User:
        if allowed_roles and current_user.role not in allowed_roles:
            raise InsufficientRole(allowed_roles)

        missing = policy.missing_permissions(current_user.role, required_permissions)
        if missing:
            raise InsufficientPermission(missing)

        return current_user

    return checker

def require_role(*allowed_roles: UserRole):
    return authorize(roles=allowed_roles)

def require_permission(*permissions: str):
    return authorize(permissions=permissions)

# Service factories
def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(SQLAlchemyUserRepository(db))

def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    return AppointmentService(
        SQLAlchemyAppointmentRepository(db),
        SQLAlchemyPatientRepository(db),
        SQLAlchemyUserRepository(db),
        conflict_policy=get_conflict_policy(settings.APPOINTMENT_CONFLICT_POLICY),
        slot_locking=settings.APPOINTMENT_SLOT_LOCKING,
    )

def get_patient_service(db: Session = Depends(get_db)) -> PatientService:
    return PatientService(SQLAlchemyPatientRepository(db))
