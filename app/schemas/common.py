from typing import Annotated
from pydantic import AfterValidator, BaseModel, ConfigDict

from ..core.slots import normalize_slot_date, normalize_slot_time


class Address(BaseModel):
    model_config = ConfigDict(extra="ignore")

    line1: str = ""
    line2: str = ""


# Canonicalised on the way in: "06_12_2025" -> "6_12_2025", "9:00 am" -> "09:00 AM"
SlotDate = Annotated[str, AfterValidator(normalize_slot_date)]
SlotTime = Annotated[str, AfterValidator(normalize_slot_time)]


class MessageResponse(BaseModel):
    success: bool = True
    message: str


def parse_address(raw: str) -> Address:
    """Parse an address sent as a JSON string inside a multipart form."""
    return Address.model_validate_json(raw)
