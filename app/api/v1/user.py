from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.orm import Session
from typing import Optional

from ...core.database import get_db
from ...api.deps import get_current_user, rate_limit_check
from ...services.auth_service import AuthService
from ...services.booking_service import BookingService
from ...services.image_service import ImageUploader, get_image_uploader
from ...services.user_service import UserService
from ...schemas.auth import UserRegister, LoginRequest, TokenResponse
from ...schemas.common import MessageResponse, parse_address
from ...schemas.user import UserProfileResponse, UserResponse
from ...schemas.appointment import (
    BookAppointmentRequest, AppointmentIdRequest, BookAppointmentResponse,
    AppointmentListResponse, AppointmentResponse
)
from ...models.user import User

router = APIRouter(prefix="/user", tags=["User"])

@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Register a new patient account."""
    auth_service = AuthService(db)
    return TokenResponse(token=auth_service.register_user(user_data))

@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Authenticate a patient and return an access token."""
    auth_service = AuthService(db)
    return TokenResponse(token=auth_service.authenticate_user(login_data))

@router.get("/get-profile", response_model=UserProfileResponse)
async def get_profile(
    current_user: User = Depends(get_current_user)
):
    """Get the current patient's profile."""
    return UserProfileResponse(userData=UserResponse.model_validate(current_user))

@router.post("/update-profile", response_model=MessageResponse)
async def update_profile(
    name: str = Form(...),
    phone: str = Form(...),
    address: str = Form(...),
    dob: str = Form(...),
    gender: str = Form(...),
    image: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    uploader: ImageUploader = Depends(get_image_uploader),
):
    """Update profile fields and optionally the profile image."""
    try:
        parsed_address = parse_address(address)
    except ValidationError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Address format is invalid JSON"
        )

    image_url = None
    if image is not None and image.filename:
        image_url = await uploader.upload(image)

    UserService(db).update_profile(
        current_user.id,
        name=name,
        phone=phone,
        address=parsed_address,
        dob=dob,
        gender=gender,
        image_url=image_url,
    )
    return MessageResponse(message="Profile Updated")

@router.post("/book-appointment", response_model=BookAppointmentResponse)
async def book_appointment(
    booking: BookAppointmentRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Book a slot with a doctor."""
    appointment = BookingService(db).book_appointment(
        current_user.id, booking.docId, booking.slotDate, booking.slotTime
    )
    return BookAppointmentResponse(
        message="Appointment Booked Successfully!",
        appointmentId=appointment.id
    )

@router.get("/my-appointments", response_model=AppointmentListResponse)
async def my_appointments(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the current patient's appointments, newest first."""
    appointments = BookingService(db).list_user_appointments(current_user.id)
    return AppointmentListResponse(
        message="Appointments fetched successfully" if appointments else "No appointments found.",
        appointments=[AppointmentResponse.model_validate(a) for a in appointments]
    )

@router.post("/cancel-appointment", response_model=MessageResponse)
async def cancel_appointment(
    request_data: AppointmentIdRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Cancel one of the current patient's appointments and free its slot."""
    BookingService(db).cancel_appointment(current_user.id, request_data.appointmentId)
    return MessageResponse(message="Appointment cancelled successfully and slot freed.")
