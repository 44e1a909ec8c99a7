from pydantic import BaseModel


class PaymentParams(BaseModel):
    key: str
    txnid: str
    amount: str
    productinfo: str
    firstname: str
    email: str
    phone: str
    surl: str
    furl: str
    curl: str
    hash: str
    action: str
    appointmentId: int


class PaymentInitResponse(BaseModel):
    success: bool = True
    message: str
    paymentParams: PaymentParams
