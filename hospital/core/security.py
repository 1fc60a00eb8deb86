from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import HTTPException, status
from fastapi.security import HTTPBearer
from pydantic import BaseModel, ValidationError
import random
from enum import Enum

from .config import settings

# Password hashing
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

# JWT Security; missing credentials are reported by the auth dependencies
security = HTTPBearer(auto_error=False)

class UserRole(str, Enum):
    ADMIN = "ADMIN"
    DOCTOR = "DOCTOR"
    NURSE = "NURSE"
    RECEPTIONIST = "RECEPTIONIST"
    PHARMACIST = "PHARMACIST"
    LAB_TECH = "LAB_TECH"
    RADIOLOGIST = "RADIOLOGIST"
    FINANCE = "FINANCE"
    RESEARCHER = "RESEARCHER"

STAFF_ID_PREFIXES = {
    UserRole.ADMIN: "ADM",
    UserRole.DOCTOR: "DOC",
    UserRole.NURSE: "NUR",
    UserRole.RECEPTIONIST: "REC",
    UserRole.PHARMACIST: "PHR",
    UserRole.LAB_TECH: "LAB",
    UserRole.RADIOLOGIST: "RAD",
    UserRole.FINANCE: "FIN",
    UserRole.RESEARCHER: "RES",
}

class TokenPayload(BaseModel):
    sub: Optional[str] = None
    email: Optional[str] = None
    role: Optional[UserRole] = None
    staff_id: Optional[str] = None
    exp: Optional[int] = None
    token_type: Optional[str] = None

    @property
    def user_id(self) -> Optional[int]:
        return int(self.sub) if self.sub and self.sub.isdigit() else None

# Security exceptions
class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

class AuthorizationError(HTTPException):
    def __init__(self, detail: str = "Not enough permissions"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )

class Unauthenticated(AuthenticationError):
    def __init__(self, detail: str = "Access token required"):
        super().__init__(detail)

class InvalidOrExpiredToken(AuthenticationError):
    def __init__(self, detail: str = "Invalid or expired token"):
        super().__init__(detail)

class InvalidCredentials(AuthenticationError):
    def __init__(self):
        super().__init__("Invalid credentials")

class InsufficientRole(AuthorizationError):
    def __init__(self, allowed_roles):
        super().__init__(
            f"Insufficient role. Required roles: {[role.value for role in allowed_roles]}"
        )
        self.allowed_roles = list(allowed_roles)

class InsufficientPermission(AuthorizationError):
    def __init__(self, missing):
        super().__init__(f"Insufficient permissions. Missing: {sorted(missing)}")
        self.missing = list(missing)

# Password utilities
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """Generate password hash."""
    return pwd_context.hash(password)

def generate_staff_id(role: UserRole, department: Optional[str] = None) -> str:
    """Build a staff code such as DOCCAR1234 from role, department and four random digits."""
    department_prefix = department[:3].upper() if department else "GEN"
    return f"{STAFF_ID_PREFIXES[role]}{department_prefix}{random.randint(1000, 9999)}"

# JWT utilities
def create_access_token(
    data: dict,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create JWT access token."""
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode.update({
        "exp": expire,
        "token_type": "access"
    })

    encoded_jwt = jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )
    return encoded_jwt

def create_user_token(user_id: int, email: str, role: UserRole, staff_id: Optional[str] = None) -> str:
    """Create the bearer token handed out at login."""
    token_data = {
        "sub": str(user_id),
        "email": email,
        "role": UserRole(role).value,
    }
    if staff_id:
        token_data["staff_id"] = staff_id

    return create_access_token(token_data)

def verify_token(token: str) -> TokenPayload:
    """Verify and decode JWT token, raising InvalidOrExpiredToken on failure."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
        token_payload = TokenPayload(**payload)
    except (JWTError, ValidationError):
        raise InvalidOrExpiredToken()

    if token_payload.token_type != "access" or token_payload.user_id is None:
        raise InvalidOrExpiredToken()

    return token_payload
