from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.security import is_strong_password
from ...api.deps import get_admin, rate_limit_check
from ...services.auth_service import AuthService
from ...services.booking_service import BookingService
from ...services.doctor_service import DoctorService
from ...services.image_service import ImageUploader, get_image_uploader
from ...services.user_service import UserService
from ...schemas.auth import AdminLogin, TokenResponse
from ...schemas.common import MessageResponse, parse_address
from ...schemas.doctor import AdminDoctorListResponse, DoctorIdRequest, DoctorResponse
from ...schemas.appointment import AppointmentListResponse, AppointmentResponse
from ...schemas.user import PatientsCountResponse

router = APIRouter(prefix="/admin", tags=["Admin"])

email_adapter = TypeAdapter(EmailStr)

@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: AdminLogin,
    _: None = Depends(rate_limit_check)
):
    """Authenticate the admin identity."""
    return TokenResponse(token=AuthService.authenticate_admin(login_data))

@router.post(
    "/add-doctor",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_admin)],
)
async def add_doctor(
    name: str = Form(...),
    email: str = Form(...),
    password: str = Form(...),
    speciality: str = Form(...),
    degree: str = Form(...),
    experience: str = Form(...),
    about: str = Form(...),
    fees: float = Form(..., ge=0),
    address: str = Form(...),
    image: UploadFile = File(...),
    db: Session = Depends(get_db),
    uploader: ImageUploader = Depends(get_image_uploader),
):
    """Create a doctor account with a profile image."""
    try:
        email = email_adapter.validate_python(email)
    except ValidationError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please enter a valid email"
        )

    doctor_service = DoctorService(db)
    doctor_service.ensure_email_free(email)

    if not is_strong_password(password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please enter a stronger password (min 8 chars, include numbers & symbols)"
        )

    try:
        parsed_address = parse_address(address)
    except ValidationError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Address format is invalid JSON"
        )

    image_url = await uploader.upload(image)

    doctor_service.add_doctor(
        name=name,
        email=email,
        password=password,
        image_url=image_url,
        speciality=speciality,
        degree=degree,
        experience=experience,
        about=about,
        fees=fees,
        address=parsed_address,
    )
    return MessageResponse(message="Doctor added successfully")

@router.get("/all-doctors", response_model=AdminDoctorListResponse, dependencies=[Depends(get_admin)])
async def all_doctors(db: Session = Depends(get_db)):
    doctors = DoctorService(db).list_doctors()
    return AdminDoctorListResponse(doctors=[DoctorResponse.model_validate(d) for d in doctors])

@router.post("/change-availability", response_model=MessageResponse, dependencies=[Depends(get_admin)])
async def change_availability(
    request_data: DoctorIdRequest,
    db: Session = Depends(get_db)
):
    """Toggle a doctor's availability flag."""
    DoctorService(db).toggle_availability(request_data.docId)
    return MessageResponse(message="Availability Changed")

@router.get("/appointments", response_model=AppointmentListResponse, dependencies=[Depends(get_admin)])
async def all_appointments(db: Session = Depends(get_db)):
    appointments = BookingService(db).list_all_appointments()
    return AppointmentListResponse(
        appointments=[AppointmentResponse.model_validate(a) for a in appointments]
    )

@router.get("/patients-count", response_model=PatientsCountResponse, dependencies=[Depends(get_admin)])
async def patients_count(db: Session = Depends(get_db)):
    return PatientsCountResponse(count=UserService(db).patients_count())
