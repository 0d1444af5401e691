from pydantic import BaseModel
from typing import Optional
from enum import Enum

from banking.boleto.schemas import PaymentNotification


class WebhookType(str, Enum):
    PAYMENT = "payment"
    CANCELLATION = "cancellation"
    STATUS_CHANGE = "status_change"
    UNKNOWN = "unknown"


class WebhookResponse(BaseModel):
    """Acknowledgement returned to the bank."""
    bank_code: str
    webhook_type: WebhookType
    processed: bool
    payment: Optional[PaymentNotification] = None
