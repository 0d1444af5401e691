from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal

from banking.boleto.schemas import BoletoCharge, PaymentNotification


class RemittanceRequest(BaseModel):
    """Charges to include in one CNAB 240 remittance file."""
    charges: List[BoletoCharge] = Field(..., min_length=1)
    file_sequence: Optional[int] = Field(None, ge=0, le=999999, description="NSA; derived from the clock when omitted")


class ReturnFileResponse(BaseModel):
    bank_code: str
    settlements: int
    total_paid: Decimal
    payments: List[PaymentNotification]
