from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
import logging

from ...core.database import get_db
from ...api.deps import get_current_user
from ...services.payment_service import PaymentService, frontend_redirect_url
from ...schemas.appointment import AppointmentIdRequest
from ...schemas.payment import PaymentInitResponse
from ...models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["Payments"])

@router.post("/payu-payment-initiate", response_model=PaymentInitResponse)
async def initiate_payment(
    request_data: AppointmentIdRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Build signed PayU parameters for an appointment."""
    params = PaymentService(db).initiate_payment(current_user.id, request_data.appointmentId)
    return PaymentInitResponse(
        message="Payment initiation successful",
        paymentParams=params
    )

@router.post("/payu-callback")
async def payu_callback(
    request: Request,
    db: Session = Depends(get_db)
):
    """Receive PayU's form post and redirect the payer back to the frontend."""
    try:
        form = await request.form()
        redirect_url = PaymentService(db).handle_callback(
            {key: str(value) for key, value in form.items()}
        )
    except Exception as e:
        logger.exception(f"PayU callback processing failed: {str(e)}")
        db.rollback()
        redirect_url = frontend_redirect_url(payment_status="failure", message="ServerError")

    return RedirectResponse(url=redirect_url, status_code=status.HTTP_303_SEE_OTHER)
