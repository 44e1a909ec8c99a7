from .user import User
from .doctor import Doctor, BookedSlot
from .appointment import Appointment, PaymentStatus

__all__ = ["User", "Doctor", "BookedSlot", "Appointment", "PaymentStatus"]
