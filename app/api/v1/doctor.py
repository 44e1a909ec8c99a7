from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import get_current_doctor, rate_limit_check
from ...services.auth_service import AuthService
from ...services.doctor_service import DoctorService
from ...schemas.auth import LoginRequest, TokenResponse
from ...schemas.common import MessageResponse
from ...schemas.doctor import (
    DoctorListResponse, DoctorProfileResponse, DoctorProfileUpdate,
    DoctorPublic, DoctorResponse
)
from ...schemas.appointment import (
    AppointmentIdRequest, AppointmentListResponse, AppointmentResponse,
    AppointmentUpdateResponse
)
from ...models.doctor import Doctor

router = APIRouter(prefix="/doctor", tags=["Doctor"])

# Public routes
@router.get("/list", response_model=DoctorListResponse)
async def doctor_list(db: Session = Depends(get_db)):
    """List doctors for the public booking pages."""
    doctors = DoctorService(db).list_doctors()
    return DoctorListResponse(doctors=[DoctorPublic.model_validate(d) for d in doctors])

@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Authenticate a doctor and return an access token."""
    return TokenResponse(token=AuthService(db).authenticate_doctor(login_data))

# Protected routes
@router.get("/profile", response_model=DoctorProfileResponse)
async def get_profile(current_doctor: Doctor = Depends(get_current_doctor)):
    return DoctorProfileResponse(doctor=DoctorResponse.model_validate(current_doctor))

@router.put("/profile/update", response_model=DoctorProfileResponse)
async def update_profile(
    update: DoctorProfileUpdate,
    current_doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    doctor = DoctorService(db).update_profile(current_doctor.id, update)
    return DoctorProfileResponse(doctor=DoctorResponse.model_validate(doctor))

@router.put("/profile/availability", response_model=MessageResponse)
async def change_availability(
    current_doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    DoctorService(db).toggle_availability(current_doctor.id)
    return MessageResponse(message="Availability Changed")

@router.get("/appointments", response_model=AppointmentListResponse)
async def doctor_appointments(
    current_doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    """The doctor's appointments in slot order."""
    appointments = DoctorService(db).list_appointments(current_doctor.id)
    return AppointmentListResponse(
        appointments=[AppointmentResponse.model_validate(a) for a in appointments]
    )

@router.put("/appointments/mark-completed", response_model=AppointmentUpdateResponse)
async def mark_completed(
    request_data: AppointmentIdRequest,
    current_doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    appointment = DoctorService(db).mark_completed(current_doctor.id, request_data.appointmentId)
    return AppointmentUpdateResponse(
        message="Appointment marked as completed!",
        appointment=AppointmentResponse.model_validate(appointment)
    )
