from datetime import datetime
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, Float, JSON, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED_BY_USER = "cancelled_by_user"
    # No code path produces REFUNDED yet; refunds are handled outside the service
    REFUNDED = "refunded"

# Forward-only payment lifecycle; PAID is never left
PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED, PaymentStatus.CANCELLED_BY_USER},
    PaymentStatus.FAILED: {PaymentStatus.PAID, PaymentStatus.FAILED, PaymentStatus.CANCELLED_BY_USER},
    PaymentStatus.PAID: set(),
    PaymentStatus.CANCELLED_BY_USER: set(),
    PaymentStatus.REFUNDED: set(),
}

class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)

    # Relationships
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)

    # Slot
    slot_date = Column(String(10), nullable=False)
    slot_time = Column(String(8), nullable=False)

    # Snapshots of both parties at booking time
    user_data = Column(JSON, nullable=False)
    doc_data = Column(JSON, nullable=False)

    amount = Column(Float, nullable=False)
    booked_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    # Lifecycle
    cancelled = Column(Boolean, nullable=False, default=False)
    is_completed = Column(Boolean, nullable=False, default=False)
    payment_status = Column(
        SQLEnum(PaymentStatus, values_callable=lambda e: [member.value for member in e]),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    payu_txn_id = Column(String(64), nullable=True, unique=True, index=True)
    payu_payment_id = Column(String(64), nullable=True)

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="appointments")
    doctor = relationship("Doctor", back_populates="appointments")

    def can_move_to(self, new_status: PaymentStatus) -> bool:
        return new_status in PAYMENT_TRANSITIONS[PaymentStatus(self.payment_status)]

    def __repr__(self):
        return f"<Appointment(id={self.id}, user_id={self.user_id}, doctor_id={self.doctor_id}, slot='{self.slot_date} {self.slot_time}')>"
