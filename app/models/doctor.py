from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, Text, Float, JSON, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..core.slots import slot_sort_key

class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)

    # Profile
    name = Column(String(100), nullable=False)
    image = Column(String(500), nullable=False)
    speciality = Column(String(100), nullable=False)
    degree = Column(String(100), nullable=False)
    experience = Column(String(50), nullable=False)
    about = Column(Text, nullable=False)
    fees = Column(Float, nullable=False)
    address = Column(JSON, nullable=False)

    # Availability (derived from the slot ledger after booking/cancellation)
    available = Column(Boolean, nullable=False, default=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    booked_slots = relationship(
        "BookedSlot",
        back_populates="doctor",
        cascade="all, delete-orphan",
        order_by="BookedSlot.id",
    )
    appointments = relationship("Appointment", back_populates="doctor")

    @property
    def slots_booked(self) -> dict:
        """Slot ledger: date key -> chronologically ordered booked times."""
        ledger = {}
        for slot in sorted(
            self.booked_slots,
            key=lambda s: slot_sort_key(s.slot_date, s.slot_time),
        ):
            ledger.setdefault(slot.slot_date, []).append(slot.slot_time)
        return ledger

    def find_slot(self, slot_date: str, slot_time: str):
        for slot in self.booked_slots:
            if slot.slot_date == slot_date and slot.slot_time == slot_time:
                return slot
        return None

    def snapshot(self) -> dict:
        """Profile data copied onto an appointment at booking time."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "image": self.image,
            "speciality": self.speciality,
            "degree": self.degree,
            "experience": self.experience,
            "about": self.about,
            "fees": self.fees,
            "address": self.address,
            "available": self.available,
        }

    def __repr__(self):
        return f"<Doctor(id={self.id}, name='{self.name}', speciality='{self.speciality}')>"

class BookedSlot(Base):
    __tablename__ = "booked_slots"
    __table_args__ = (
        # One booking per doctor, date and time
        UniqueConstraint("doctor_id", "slot_date", "slot_time", name="uq_booked_slot_doctor_date_time"),
    )

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)
    slot_date = Column(String(10), nullable=False)
    slot_time = Column(String(8), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    doctor = relationship("Doctor", back_populates="booked_slots")

    def __repr__(self):
        return f"<BookedSlot(doctor_id={self.doctor_id}, date='{self.slot_date}', time='{self.slot_time}')>"
