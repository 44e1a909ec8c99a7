from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.database import get_db, get_redis
from ..core.security import (
    security, verify_token, AuthenticationError,
    AuthorizationError, UserRole, TokenPayload
)
from ..models.user import User
from ..models.doctor import Doctor

async def get_current_token(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> TokenPayload:
    """Extract and verify JWT token from Authorization header."""
    token_payload = verify_token(credentials.credentials)

    if token_payload.token_type != "access":
        raise AuthenticationError("Invalid token type")

    return token_payload

def _subject_id(token_payload: TokenPayload) -> int:
    try:
        return int(token_payload.sub)
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token payload")

async def get_current_user(
    token_payload: TokenPayload = Depends(get_current_token),
    db: Session = Depends(get_db)
) -> User:
    """Get the authenticated patient."""
    if token_payload.role != UserRole.PATIENT:
        raise AuthorizationError("Patient access required")

    user = db.query(User).filter(User.id == _subject_id(token_payload)).first()
    if not user:
        raise AuthenticationError("User not found")

    return user

async def get_current_doctor(
    token_payload: TokenPayload = Depends(get_current_token),
    db: Session = Depends(get_db)
) -> Doctor:
    """Get the authenticated doctor."""
    if token_payload.role != UserRole.DOCTOR:
        raise AuthorizationError("Doctor access required")

    doctor = db.query(Doctor).filter(Doctor.id == _subject_id(token_payload)).first()
    if not doctor:
        raise AuthenticationError("Not authorized. Doctor not found or invalid token payload.")

    return doctor

async def get_admin(
    token_payload: TokenPayload = Depends(get_current_token)
) -> TokenPayload:
    """Require the configured admin identity."""
    if token_payload.role != UserRole.ADMIN or token_payload.email != settings.ADMIN_EMAIL:
        raise AuthorizationError("Not authorized. Invalid admin email.")
    return token_payload

# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Basic per-IP rate limiting for authentication endpoints."""
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{request.url.path}:{client_ip}"

    current_requests = redis_client.get(key)
    if current_requests is None:
        redis_client.setex(key, 3600, 1)  # 1 hour window
    else:
        if int(current_requests) >= settings.RATE_LIMIT_PER_HOUR:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later."
            )
        redis_client.incr(key)
