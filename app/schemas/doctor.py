from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .common import Address


class DoctorPublic(BaseModel):
    """Doctor as shown on the public listing (no email, no credentials)."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    image: str
    speciality: str
    degree: str
    experience: str
    about: str
    fees: float
    address: Address
    available: bool
    slots_booked: Dict[str, List[str]]


class DoctorResponse(DoctorPublic):
    email: str


class DoctorListResponse(BaseModel):
    success: bool = True
    doctors: List[DoctorPublic]


class AdminDoctorListResponse(BaseModel):
    success: bool = True
    doctors: List[DoctorResponse]


class DoctorProfileResponse(BaseModel):
    success: bool = True
    doctor: DoctorResponse


class DoctorProfileUpdate(BaseModel):
    name: Optional[str] = None
    fees: Optional[float] = Field(default=None, ge=0)
    address: Optional[Address] = None
    about: Optional[str] = None
    experience: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("Name cannot be empty")
        return value


class DoctorIdRequest(BaseModel):
    docId: int
