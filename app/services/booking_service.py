from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional
import logging

from ..core.exceptions import ConflictError, NotFoundError
from ..core.security import AuthorizationError
from ..models.appointment import Appointment, PaymentStatus
from ..models.doctor import Doctor, BookedSlot
from ..models.user import User
from .availability import has_future_slots

logger = logging.getLogger(__name__)

SLOT_UNAVAILABLE = "This slot is no longer available."

class BookingService:
    """Books and cancels doctor slots.

    Each operation is one unit of work: the appointment row, the slot ledger
    row and the doctor's availability flag are committed together. The unique
    constraint on booked_slots rejects a concurrent booking of the same slot
    at commit time.
    """

    def __init__(self, db: Session, now: Optional[datetime] = None):
        self.db = db
        self.now = now

    def book_appointment(self, user_id: int, doctor_id: int, slot_date: str, slot_time: str) -> Appointment:
        doctor = self.db.query(Doctor).filter(Doctor.id == doctor_id).first()
        if not doctor:
            raise NotFoundError("Doctor not found.")

        if not doctor.available:
            raise ConflictError("Doctor not available")

        if doctor.find_slot(slot_date, slot_time):
            raise ConflictError(SLOT_UNAVAILABLE)

        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User profile not found.")

        doctor.booked_slots.append(BookedSlot(slot_date=slot_date, slot_time=slot_time))

        appointment = Appointment(
            user_id=user.id,
            doctor_id=doctor.id,
            slot_date=slot_date,
            slot_time=slot_time,
            user_data=user.snapshot(),
            doc_data=doctor.snapshot(),
            amount=doctor.fees,
            booked_at=datetime.utcnow(),
            payment_status=PaymentStatus.PENDING,
        )
        self.db.add(appointment)

        doctor.available = has_future_slots(doctor.slots_booked, self.now)

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(f"Slot {slot_date} {slot_time} for doctor {doctor_id} taken concurrently")
            raise ConflictError(SLOT_UNAVAILABLE)

        self.db.refresh(appointment)
        logger.info(
            f"Booked appointment {appointment.id}: user {user_id}, doctor {doctor_id}, "
            f"{slot_date} {slot_time}"
        )
        return appointment

    def cancel_appointment(self, user_id: int, appointment_id: int) -> Appointment:
        appointment = self.db.query(Appointment).filter(
            Appointment.id == appointment_id
        ).first()
        if not appointment:
            raise NotFoundError("Appointment not found.")

        if appointment.user_id != user_id:
            raise AuthorizationError("Unauthorized to cancel this appointment.")

        if appointment.cancelled:
            raise ConflictError("Appointment is already cancelled.")
        if appointment.is_completed:
            raise ConflictError("Completed appointments cannot be cancelled.")

        doctor = self.db.query(Doctor).filter(Doctor.id == appointment.doctor_id).first()
        if not doctor:
            logger.error(f"Doctor {appointment.doctor_id} not found for appointment {appointment_id}")
            raise NotFoundError("Doctor record not found for slot update.")

        appointment.cancelled = True
        # A captured payment stays "paid"; refunds happen outside this service
        if appointment.can_move_to(PaymentStatus.CANCELLED_BY_USER):
            appointment.payment_status = PaymentStatus.CANCELLED_BY_USER

        slot = doctor.find_slot(appointment.slot_date, appointment.slot_time)
        if slot is not None:
            doctor.booked_slots.remove(slot)

        doctor.available = has_future_slots(doctor.slots_booked, self.now)

        self.db.commit()
        self.db.refresh(appointment)
        logger.info(f"Cancelled appointment {appointment_id} and freed its slot")
        return appointment

    def list_user_appointments(self, user_id: int) -> List[Appointment]:
        """Appointments of a user, newest booking first."""
        return self.db.query(Appointment).filter(
            Appointment.user_id == user_id
        ).order_by(Appointment.booked_at.desc(), Appointment.id.desc()).all()

    def list_all_appointments(self) -> List[Appointment]:
        return self.db.query(Appointment).order_by(
            Appointment.booked_at.desc(), Appointment.id.desc()
        ).all()
