from sqlalchemy.orm import Session
from typing import Optional
import logging

from ..core.exceptions import NotFoundError
from ..models.user import User
from ..schemas.common import Address

logger = logging.getLogger(__name__)

class UserService:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User profile not found.")
        return user

    def update_profile(
        self,
        user_id: int,
        *,
        name: str,
        phone: str,
        address: Address,
        dob: str,
        gender: str,
        image_url: Optional[str] = None,
    ) -> User:
        """Update profile fields; the image only changes when a new one was uploaded."""
        user = self.get_user(user_id)

        user.name = name
        user.phone = phone
        user.address = address.model_dump()
        user.dob = dob
        user.gender = gender
        if image_url:
            user.image = image_url

        self.db.commit()
        self.db.refresh(user)

        logger.info(f"Updated profile of user {user_id}")
        return user

    def patients_count(self) -> int:
        return self.db.query(User).count()
