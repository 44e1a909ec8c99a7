from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List
import logging

from ..core.exceptions import ConflictError, NotFoundError
from ..core.security import get_password_hash
from ..core.slots import slot_sort_key
from ..models.appointment import Appointment, PaymentStatus
from ..models.doctor import Doctor
from ..schemas.common import Address
from ..schemas.doctor import DoctorProfileUpdate

logger = logging.getLogger(__name__)

class DoctorService:
    def __init__(self, db: Session):
        self.db = db

    def get_doctor(self, doctor_id: int) -> Doctor:
        doctor = self.db.query(Doctor).filter(Doctor.id == doctor_id).first()
        if not doctor:
            raise NotFoundError("Doctor not found.")
        return doctor

    def add_doctor(
        self,
        *,
        name: str,
        email: str,
        password: str,
        image_url: str,
        speciality: str,
        degree: str,
        experience: str,
        about: str,
        fees: float,
        address: Address,
    ) -> Doctor:
        """Create a doctor account (admin only)."""
        doctor = Doctor(
            name=name,
            email=email,
            password_hash=get_password_hash(password),
            image=image_url,
            speciality=speciality,
            degree=degree,
            experience=experience,
            about=about,
            fees=fees,
            address=address.model_dump(),
            available=True,
        )
        self.db.add(doctor)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Doctor already exists with this email")
        self.db.refresh(doctor)

        logger.info(f"Added doctor {doctor.id} ({doctor.speciality})")
        return doctor

    def ensure_email_free(self, email: str) -> None:
        if self.db.query(Doctor).filter(Doctor.email == email).first():
            raise ConflictError("Doctor already exists with this email")

    def list_doctors(self) -> List[Doctor]:
        return self.db.query(Doctor).order_by(Doctor.id).all()

    def update_profile(self, doctor_id: int, update: DoctorProfileUpdate) -> Doctor:
        doctor = self.get_doctor(doctor_id)

        for field, value in update.model_dump(exclude_unset=True).items():
            if value is None:
                continue
            setattr(doctor, field, value)

        self.db.commit()
        self.db.refresh(doctor)
        return doctor

    def toggle_availability(self, doctor_id: int) -> Doctor:
        doctor = self.get_doctor(doctor_id)
        doctor.available = not doctor.available
        self.db.commit()
        self.db.refresh(doctor)

        logger.info(f"Doctor {doctor_id} availability set to {doctor.available}")
        return doctor

    def list_appointments(self, doctor_id: int) -> List[Appointment]:
        """A doctor's appointments in slot order."""
        appointments = self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id
        ).order_by(Appointment.id).all()
        return sorted(
            appointments,
            key=lambda a: slot_sort_key(a.slot_date, a.slot_time),
        )

    def mark_completed(self, doctor_id: int, appointment_id: int) -> Appointment:
        appointment = self.db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.doctor_id == doctor_id,
        ).first()
        if not appointment:
            raise NotFoundError("Appointment not found or does not belong to you.")

        if appointment.is_completed:
            raise ConflictError("Appointment is already marked as completed.")
        if appointment.cancelled:
            raise ConflictError("Cannot mark a cancelled appointment as completed.")

        appointment.is_completed = True
        # Settled at the visit when no online payment went through
        if appointment.payment_status == PaymentStatus.PENDING:
            appointment.payment_status = PaymentStatus.PAID

        self.db.commit()
        self.db.refresh(appointment)

        logger.info(f"Appointment {appointment_id} marked completed by doctor {doctor_id}")
        return appointment

