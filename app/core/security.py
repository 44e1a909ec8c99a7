from datetime import datetime, timedelta
from typing import Optional
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from fastapi import HTTPException, status
from fastapi.security import HTTPBearer
from pydantic import BaseModel
import re
from enum import Enum

from .config import settings

# Password hashing
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

# JWT Security
security = HTTPBearer()

class UserRole(str, Enum):
    ADMIN = "admin"
    DOCTOR = "doctor"
    PATIENT = "patient"

class TokenPayload(BaseModel):
    sub: Optional[str] = None
    email: Optional[str] = None
    role: Optional[UserRole] = None
    exp: Optional[int] = None
    token_type: Optional[str] = None

# Password utilities
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """Generate password hash."""
    return pwd_context.hash(password)

def is_strong_password(password: str) -> bool:
    """At least 8 characters with upper, lower, digit and symbol."""
    return (
        len(password) >= 8
        and re.search(r"[A-Z]", password) is not None
        and re.search(r"[a-z]", password) is not None
        and re.search(r"\d", password) is not None
        and re.search(r"[^A-Za-z0-9]", password) is not None
    )

# JWT utilities
def create_access_token(
    data: dict,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create JWT access token."""
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(
            minutes=settings.USER_TOKEN_EXPIRE_MINUTES
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

def create_user_token(user_id: int) -> str:
    return create_access_token(
        {"sub": str(user_id), "role": UserRole.PATIENT.value},
        timedelta(minutes=settings.USER_TOKEN_EXPIRE_MINUTES),
    )

def create_doctor_token(doctor_id: int) -> str:
    return create_access_token(
        {"sub": str(doctor_id), "role": UserRole.DOCTOR.value},
        timedelta(minutes=settings.DOCTOR_TOKEN_EXPIRE_MINUTES),
    )

def create_admin_token(email: str) -> str:
    return create_access_token(
        {"email": email, "role": UserRole.ADMIN.value},
        timedelta(minutes=settings.ADMIN_TOKEN_EXPIRE_MINUTES),
    )

def verify_token(token: str) -> TokenPayload:
    """Verify and decode JWT token.

    Raises AuthenticationError with a distinct message for expired tokens so
    clients can prompt for a fresh login.
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except ExpiredSignatureError:
        raise AuthenticationError("Your session has expired. Please log in again.")
    except JWTError:
        raise AuthenticationError("Invalid token, please log in again.")

    return TokenPayload(**payload)

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
