from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

DEFAULT_PROFILE_IMAGE = "https://res.cloudinary.com/demo/image/upload/v1/profile_placeholder.png"

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)

    # Profile
    name = Column(String(100), nullable=False)
    image = Column(String(500), nullable=False, default=DEFAULT_PROFILE_IMAGE)
    phone = Column(String(20), nullable=False, default="0000000000")
    address = Column(JSON, nullable=False, default=lambda: {"line1": "", "line2": ""})
    gender = Column(String(20), nullable=False, default="Not Selected")
    dob = Column(String(20), nullable=False, default="Not Selected")

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    appointments = relationship("Appointment", back_populates="user")

    def snapshot(self) -> dict:
        """Profile data copied onto an appointment at booking time."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "image": self.image,
            "phone": self.phone,
            "address": self.address,
            "gender": self.gender,
            "dob": self.dob,
        }

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"
