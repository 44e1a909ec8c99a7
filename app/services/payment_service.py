"""PayU payment bridge.

Outbound: signed form parameters the frontend posts to the PayU hosted page.
Inbound: the form PayU posts back once the payer finishes, verified with the
reverse hash before the appointment's payment status is touched.
"""
from sqlalchemy.orm import Session
from typing import Mapping, Optional
from urllib.parse import urlencode
import hashlib
import hmac
import logging
import secrets

from ..core.config import settings
from ..core.exceptions import ConflictError, NotFoundError
from ..core.security import AuthorizationError
from ..models.appointment import Appointment, PaymentStatus
from ..schemas.payment import PaymentParams

logger = logging.getLogger(__name__)

DEFAULT_PHONE = "9999999999"
UDF_COUNT = 10

def sha512_hex(value: str) -> str:
    return hashlib.sha512(value.encode("utf-8")).hexdigest()

def payment_request_hash(
    key: str,
    txnid: str,
    amount: str,
    productinfo: str,
    firstname: str,
    email: str,
    salt: str,
) -> str:
    """key|txnid|amount|productinfo|firstname|email|udf1..udf5||||||salt"""
    fields = [key, txnid, amount, productinfo, firstname, email] + [""] * UDF_COUNT + [salt]
    return sha512_hex("|".join(fields))

def payment_response_hash(form: Mapping[str, str], key: str, salt: str) -> str:
    """[additionalCharges|]salt|status|udf10..udf1|email|firstname|productinfo|amount|txnid|key"""
    udfs = [form.get(f"udf{i}", "") for i in range(UDF_COUNT, 0, -1)]
    fields = [
        salt,
        form.get("status", ""),
        *udfs,
        form.get("email", ""),
        form.get("firstname", ""),
        form.get("productinfo", ""),
        form.get("amount", ""),
        form.get("txnid", ""),
        key,
    ]
    additional_charges = form.get("additionalCharges")
    if additional_charges:
        fields.insert(0, additional_charges)
    return sha512_hex("|".join(fields))

def frontend_redirect_url(**params) -> str:
    query = urlencode({k: v for k, v in params.items() if v is not None})
    return f"{settings.FRONTEND_URL}/my-appointments?{query}"

class PaymentService:
    def __init__(self, db: Session):
        self.db = db
        self.merchant_key = settings.PAYU_MERCHANT_KEY
        self.salt = settings.PAYU_SALT

    def initiate_payment(self, user_id: int, appointment_id: int) -> PaymentParams:
        appointment = self.db.query(Appointment).filter(
            Appointment.id == appointment_id
        ).first()
        if not appointment:
            raise NotFoundError("Appointment not found.")

        if appointment.user_id != user_id:
            raise AuthorizationError("Unauthorized to process payment for this appointment.")

        if appointment.payment_status == PaymentStatus.PAID:
            raise ConflictError("This appointment has already been paid.")
        if appointment.cancelled:
            raise ConflictError("Cancelled appointments cannot be paid.")

        txnid = secrets.token_hex(16)
        amount = f"{appointment.amount:.2f}"
        productinfo = f"Appointment with Dr. {appointment.doc_data.get('name', '')}"
        name_parts = (appointment.user_data.get("name") or "").split()
        firstname = name_parts[0] if name_parts else "User"
        email = appointment.user_data.get("email", "")
        phone = appointment.user_data.get("phone") or DEFAULT_PHONE

        appointment.payu_txn_id = txnid
        self.db.commit()

        logger.info(f"Initiated payment {txnid} for appointment {appointment.id}")

        return PaymentParams(
            key=self.merchant_key,
            txnid=txnid,
            amount=amount,
            productinfo=productinfo,
            firstname=firstname,
            email=email,
            phone=phone,
            surl=frontend_redirect_url(payment_status="success"),
            furl=frontend_redirect_url(payment_status="failure"),
            curl=frontend_redirect_url(payment_status="cancelled"),
            hash=payment_request_hash(
                self.merchant_key, txnid, amount, productinfo, firstname, email, self.salt
            ),
            action=settings.PAYU_BASE_URL,
            appointmentId=appointment.id,
        )

    def verify_callback(self, form: Mapping[str, str]) -> bool:
        expected = payment_response_hash(form, self.merchant_key, self.salt)
        received = form.get("hash", "")
        return hmac.compare_digest(expected.encode(), received.encode())

    def handle_callback(self, form: Mapping[str, str]) -> str:
        """Apply a PayU callback and return the frontend URL to redirect to."""
        status = form.get("status", "")
        txnid = form.get("txnid", "")
        logger.info(f"PayU callback: status={status}, txnid={txnid}")

        if not self.verify_callback(form):
            logger.warning(f"PayU callback hash mismatch for txnid {txnid}")
            return frontend_redirect_url(payment_status="failure", message="HashMismatch")

        appointment: Optional[Appointment] = None
        if txnid:
            appointment = self.db.query(Appointment).filter(
                Appointment.payu_txn_id == txnid
            ).first()
        if not appointment:
            logger.error(f"PayU callback: appointment not found for txnid {txnid}")
            return frontend_redirect_url(payment_status="failure", message="AppointmentNotFound")

        outcome = {"success": PaymentStatus.PAID, "failure": PaymentStatus.FAILED}.get(status)
        if outcome is None:
            logger.info(f"PayU callback: status {status} leaves appointment {appointment.id} unchanged")
            return frontend_redirect_url(payment_status=status, appointmentId=appointment.id)

        if not appointment.can_move_to(outcome):
            if outcome == PaymentStatus.PAID and appointment.payment_status != PaymentStatus.PAID:
                # Money was captured for an appointment that can no longer be paid
                appointment.payu_payment_id = form.get("mihpayid")
                self.db.commit()
                logger.error(
                    f"PayU callback: captured payment {appointment.payu_payment_id} for appointment "
                    f"{appointment.id} in status {appointment.payment_status.value} needs reconciliation"
                )
                return frontend_redirect_url(
                    payment_status=status,
                    appointmentId=appointment.id,
                    message="ReconciliationRequired",
                )
            logger.warning(
                f"PayU callback: ignoring {appointment.payment_status.value} -> {outcome.value} "
                f"for appointment {appointment.id}"
            )
            return frontend_redirect_url(payment_status=status, appointmentId=appointment.id)

        appointment.payment_status = outcome
        if outcome == PaymentStatus.PAID:
            appointment.payu_payment_id = form.get("mihpayid")
        self.db.commit()

        logger.info(f"PayU callback: appointment {appointment.id} is now {outcome.value}")
        return frontend_redirect_url(payment_status=status, appointmentId=appointment.id)
