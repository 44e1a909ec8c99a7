from pydantic import BaseModel, EmailStr, field_validator

from ..core.security import is_strong_password


class UserRegister(BaseModel):
    name: str
    email: EmailStr
    password: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not is_strong_password(value):
            raise ValueError(
                "Please enter a stronger password (min 8 chars, include numbers, "
                "symbols & mix of uppercase and lowercase characters)"
            )
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class AdminLogin(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    success: bool = True
    token: str
    token_type: str = "bearer"
