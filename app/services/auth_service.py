from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
import logging
import secrets

from ..models.user import User
from ..models.doctor import Doctor
from ..core.config import settings
from ..core.exceptions import ConflictError
from ..core.security import (
    verify_password, get_password_hash, create_user_token,
    create_doctor_token, create_admin_token
)
from ..schemas.auth import UserRegister, LoginRequest, AdminLogin

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def register_user(self, user_data: UserRegister) -> str:
        """Register a new user and return an access token."""
        # Check if user already exists
        existing_user = self.db.query(User).filter(
            User.email == user_data.email
        ).first()

        if existing_user:
            raise ConflictError("User with this email already exists.")

        new_user = User(
            name=user_data.name,
            email=user_data.email,
            password_hash=get_password_hash(user_data.password),
        )

        self.db.add(new_user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(f"Registration for {user_data.email} lost a race on the unique email")
            raise ConflictError("User with this email already exists.")
        self.db.refresh(new_user)

        logger.info(f"Registered user {new_user.id}")
        return create_user_token(new_user.id)

    def authenticate_user(self, login_data: LoginRequest) -> str:
        """Authenticate a patient and return an access token."""
        user = self.db.query(User).filter(
            User.email == login_data.email
        ).first()

        if not user or not verify_password(login_data.password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password"
            )

        return create_user_token(user.id)

    def authenticate_doctor(self, login_data: LoginRequest) -> str:
        """Authenticate a doctor and return an access token."""
        doctor = self.db.query(Doctor).filter(
            Doctor.email == login_data.email
        ).first()

        if not doctor or not verify_password(login_data.password, doctor.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password"
            )

        return create_doctor_token(doctor.id)

    @staticmethod
    def authenticate_admin(login_data: AdminLogin) -> str:
        """Check the configured admin credentials and return an access token."""
        email_ok = secrets.compare_digest(login_data.email.encode(), settings.ADMIN_EMAIL.encode())
        password_ok = secrets.compare_digest(login_data.password.encode(), settings.ADMIN_PASSWORD.encode())

        if not (email_ok and password_ok):
            logger.warning("Rejected admin login attempt")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid credentials"
            )

        return create_admin_token(settings.ADMIN_EMAIL)
