from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from ..models.appointment import PaymentStatus
from .common import SlotDate, SlotTime


class BookAppointmentRequest(BaseModel):
    docId: int
    slotDate: SlotDate
    slotTime: SlotTime


class AppointmentIdRequest(BaseModel):
    appointmentId: int


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    userId: int = Field(validation_alias="user_id")
    docId: int = Field(validation_alias="doctor_id")
    slotDate: str = Field(validation_alias="slot_date")
    slotTime: str = Field(validation_alias="slot_time")
    userData: dict = Field(validation_alias="user_data")
    docData: dict = Field(validation_alias="doc_data")
    amount: float
    date: datetime = Field(validation_alias="booked_at")
    cancelled: bool
    isCompleted: bool = Field(validation_alias="is_completed")
    paymentStatus: PaymentStatus = Field(validation_alias="payment_status")
    payuTxnId: Optional[str] = Field(default=None, validation_alias="payu_txn_id")
    payuPaymentId: Optional[str] = Field(default=None, validation_alias="payu_payment_id")


class BookAppointmentResponse(BaseModel):
    success: bool = True
    message: str
    appointmentId: int


class AppointmentListResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    appointments: List[AppointmentResponse]


class AppointmentUpdateResponse(BaseModel):
    success: bool = True
    message: str
    appointment: AppointmentResponse
