from datetime import date, datetime
import logging

from ..core.config import settings
from ..core.exceptions import DuplicateEmail, DuplicateStaffId, InvalidCurrentPassword, NotFound
from ..core.security import (
    InvalidCredentials, create_user_token, generate_staff_id,
    get_password_hash, verify_password
)
from ..models.user import Staff, User
from ..repositories.base import UserRepository
from ..schemas.auth import LoginResponse, StaffRegister, UserResponse

logger = logging.getLogger(__name__)

STAFF_ID_ATTEMPTS = 5

class AuthService:
    def __init__(self, users: UserRepository):
        self.users = users

    def login(self, email: str, password: str) -> LoginResponse:
        """Authenticate user and return a bearer token.

        Unknown email, inactive account and wrong password all fail the same
        way so the response never reveals which part was wrong.
        """
        user = self.users.get_by_email(email)

        if not user or not user.is_active:
            logger.warning(f"Login rejected for {email}: no active account")
            raise InvalidCredentials()

        if not verify_password(password, user.password_hash):
            logger.warning(f"Login rejected for {email}: password mismatch")
            raise InvalidCredentials()

        user = self.users.update(user, {"last_login": datetime.utcnow()})
        token = create_user_token(user.id, user.email, user.role, user.staff_id)

        logger.info(f"User {user.id} logged in as {user.role.value}")
        return LoginResponse(token=token, user=UserResponse.model_validate(user))

    def change_password(self, user: User, current_password: str, new_password: str) -> None:
        """Change user password."""
        if not verify_password(current_password, user.password_hash):
            raise InvalidCurrentPassword()

        self.users.update(user, {"password_hash": get_password_hash(new_password)})
        logger.info(f"Password changed for user {user.id}")

    def get_profile(self, user_id: int) -> User:
        user = self.users.get(user_id)
        if not user:
            raise NotFound("User")
        return user

    def register_staff(self, data: StaffRegister) -> User:
        """Create a staff profile and its login account.

        Staff codes end in four random digits, so a collision with an
        existing code is retried with a fresh one.
        """
        if self.users.get_by_email(data.email):
            raise DuplicateEmail()

        password_hash = get_password_hash(data.password or settings.DEFAULT_STAFF_PASSWORD)

        for attempt in range(1, STAFF_ID_ATTEMPTS + 1):
            staff_code = generate_staff_id(data.role, data.department)
            try:
                user = self.users.add(self._build_staff_user(data, staff_code, password_hash))
            except DuplicateStaffId:
                logger.warning(f"Staff ID {staff_code} taken (attempt {attempt} of {STAFF_ID_ATTEMPTS})")
                if attempt == STAFF_ID_ATTEMPTS:
                    raise
                continue

            logger.info(f"Registered staff {staff_code} as user {user.id}")
            return user

    def _build_staff_user(self, data: StaffRegister, staff_code: str, password_hash: str) -> User:
        staff = Staff(
            staff_id=staff_code,
            first_name=data.first_name,
            middle_name=data.middle_name,
            last_name=data.last_name,
            phone=data.phone,
            email=data.email,
            department=data.department,
            position=data.position,
            specialization=data.specialization,
            hire_date=date.today(),
        )
        return User(
            email=data.email,
            password_hash=password_hash,
            role=data.role,
            staff_id=staff_code,
            is_active=True,
            staff=staff,
        )

    def set_active(self, user_id: int, is_active: bool) -> User:
        """Activate or deactivate an account; users are never deleted."""
        user = self.users.get(user_id)
        if not user:
            raise NotFound("User")

        user = self.users.update(user, {"is_active": is_active})
        logger.info(f"User {user_id} {'activated' if is_active else 'deactivated'}")
        return user
