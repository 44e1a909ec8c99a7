from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict

from .common import Address


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    image: str
    phone: str
    address: Address
    gender: str
    dob: str
    created_at: Optional[datetime] = None


class UserProfileResponse(BaseModel):
    success: bool = True
    userData: UserResponse


class PatientsCountResponse(BaseModel):
    success: bool = True
    count: int
