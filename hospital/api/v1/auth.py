from fastapi import APIRouter, Depends, status

from ...api.deps import (
    get_auth_service, get_current_user, get_current_user_token, require_role
)
from ...core.security import TokenPayload, UserRole
from ...models.user import User
from ...schemas.auth import (
    ChangePassword, LoginResponse, ProfileResponse, StaffRegister,
    StaffRegisterResponse, TokenVerification, UserList, UserLogin,
    UserResponse, UserStatusUpdate
)
from ...schemas.common import MessageResponse
from ...services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post("/login", response_model=LoginResponse)
async def login(
    login_data: UserLogin,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Authenticate user and return a bearer token."""
    return auth_service.login(login_data.email, login_data.password)

@router.post("/register-staff", response_model=StaffRegisterResponse, status_code=status.HTTP_201_CREATED)
async def register_staff(
    staff_data: StaffRegister,
    auth_service: AuthService = Depends(get_auth_service),
    _: User = Depends(require_role(UserRole.ADMIN))
):
    """Register a staff member with a login account (admin only)."""
    user = auth_service.register_staff(staff_data)
    return StaffRegisterResponse(
        message="Staff registered successfully",
        user=UserResponse.model_validate(user)
    )

@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    token_payload: TokenPayload = Depends(get_current_user_token),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Get current user profile."""
    user = auth_service.get_profile(token_payload.user_id)
    return ProfileResponse(user=UserResponse.model_validate(user))

@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    password_data: ChangePassword,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Change user password."""
    auth_service.change_password(
        current_user, password_data.current_password, password_data.new_password
    )
    return {"message": "Password changed successfully"}

@router.post("/verify-token", response_model=TokenVerification)
async def verify_token_endpoint(
    token_payload: TokenPayload = Depends(get_current_user_token)
):
    """Verify if token is valid."""
    return TokenVerification(
        valid=True,
        user_id=token_payload.user_id,
        email=token_payload.email,
        role=token_payload.role,
        staff_id=token_payload.staff_id,
        expires=token_payload.exp,
    )

# Admin routes
@router.get("/users", response_model=UserList)
async def list_users(
    skip: int = 0,
    limit: int = 10,
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    auth_service: AuthService = Depends(get_auth_service)
):
    """List all users (admin only)."""
    page = auth_service.users.list(skip=skip, limit=limit)
    return UserList(users=[UserResponse.model_validate(user) for user in page])

@router.patch("/users/{user_id}/status", response_model=MessageResponse)
async def update_user_status(
    user_id: int,
    status_data: UserStatusUpdate,
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Update user active status (admin only)."""
    auth_service.set_active(user_id, status_data.is_active)
    return {"message": f"User {'activated' if status_data.is_active else 'deactivated'} successfully"}
