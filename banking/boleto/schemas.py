"""
Pydantic schemas for the bank layer contract.
Charges come in from the billing subsystem; results and notifications go back normalized.
"""
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict
from typing import Any, List, Optional
from datetime import date
from decimal import Decimal
from enum import Enum

from banking.core.utils import only_digits, inscription_type


def canonical_our_number(value: str) -> str:
    """Our number without the zero padding banks add; non-numeric ids pass through."""
    value = value.strip()
    if value.isdigit():
        return value.lstrip("0") or "0"
    return value


class BoletoStatus(str, Enum):
    """Uniform status vocabulary every bank status table maps into."""
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"
    PROTESTED = "protested"
    UNKNOWN = "unknown"
    OVERDUE = "overdue"
    IN_PROTEST = "in_protest"
    SETTLING = "settling"
    SCHEDULED = "scheduled"
    PARTIALLY_PAID = "partially_paid"


class Address(BaseModel):
    street: str = Field(..., min_length=1)
    number: str = Field(..., min_length=1)
    complement: Optional[str] = None
    neighborhood: str = ""
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=2, max_length=2, description="UF")
    zipcode: str = Field(..., description="CEP, formatted or digits only")

    @field_validator('zipcode')
    @classmethod
    def validate_zipcode(cls, v: str) -> str:
        if len(only_digits(v)) != 8:
            raise ValueError('CEP must have 8 digits')
        return v

    @field_validator('state')
    @classmethod
    def upper_state(cls, v: str) -> str:
        return v.upper()

    @property
    def line(self) -> str:
        """Street line as printed on the slip."""
        parts = f"{self.street}, {self.number}"
        if self.complement:
            parts += f" {self.complement}"
        return parts


class Payer(BaseModel):
    name: str = Field(..., min_length=1)
    document: str = Field(..., description="CPF or CNPJ, formatted or digits only")
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Address

    @field_validator('document')
    @classmethod
    def validate_document(cls, v: str) -> str:
        if len(only_digits(v)) not in (11, 14):
            raise ValueError('Document must be a CPF (11 digits) or CNPJ (14 digits)')
        return v

    @property
    def document_digits(self) -> str:
        return only_digits(self.document)

    @property
    def inscription_type(self) -> str:
        return inscription_type(self.document)

    @property
    def is_individual(self) -> bool:
        return self.inscription_type == "1"


class BoletoCharge(BaseModel):
    """Charge request supplied by the billing subsystem. Read-only to adapters."""
    our_number: str = Field(..., min_length=1, max_length=20, description="Merchant-assigned id, unique per agreement")
    amount: Decimal = Field(..., gt=0, description="Charge amount (R$)")
    due_date: date
    payer: Payer
    instructions: List[str] = Field(default_factory=list)
    fine_percentage: Optional[Decimal] = Field(None, ge=0, le=100)
    interest_percentage: Optional[Decimal] = Field(None, ge=0, le=100, description="Monthly interest (%)")
    discount_amount: Optional[Decimal] = Field(None, ge=0)
    discount_due_date: Optional[date] = None

    model_config = ConfigDict(frozen=True)

    @field_validator('our_number')
    @classmethod
    def validate_our_number(cls, v: str) -> str:
        v = v.strip()
        if not v.isdigit():
            raise ValueError('Our number must contain digits only')
        return canonical_our_number(v)

    @field_validator('amount')
    @classmethod
    def validate_amount_scale(cls, v: Decimal) -> Decimal:
        if v.as_tuple().exponent < -2:
            raise ValueError('Amount supports at most 2 decimal places')
        return v

    @property
    def has_fine(self) -> bool:
        return bool(self.fine_percentage)

    @property
    def has_interest(self) -> bool:
        return bool(self.interest_percentage)

    @property
    def has_discount(self) -> bool:
        return bool(self.discount_amount)

    @property
    def has_additional_terms(self) -> bool:
        return self.has_fine or self.has_interest or self.has_discount


class BoletoResult(BaseModel):
    """Normalized registration outcome."""
    success: bool
    barcode: Optional[str] = None
    digitable_line: Optional[str] = None
    boleto_url: Optional[str] = None
    pix_qr_code: Optional[str] = Field(None, description="QR image reference")
    pix_copy_paste: Optional[str] = Field(None, description="PIX copy-and-paste (EMV) string")
    error_message: Optional[str] = None
    bank_response: Optional[Any] = None

    @model_validator(mode='after')
    def check_outcome(self) -> "BoletoResult":
        if self.success and not (self.barcode and self.digitable_line):
            raise ValueError('Successful result requires barcode and digitable line')
        if not self.success and not self.error_message:
            raise ValueError('Failed result requires an error message')
        return self

    @classmethod
    def failure(cls, message: str, bank_response: Any = None) -> "BoletoResult":
        return cls(success=False, error_message=message, bank_response=bank_response)


class PixQrCode(BaseModel):
    qr_code: str
    copy_paste: str = ""


class PaymentNotification(BaseModel):
    """Settlement event produced by return-file parsing, webhooks or status polling."""
    our_number: str
    amount_paid: Decimal = Field(..., gt=0)
    payment_date: date
    credit_date: Optional[date] = None
    authentication_code: Optional[str] = None
    payment_channel: str = "cnab_retorno"

    @field_validator('our_number')
    @classmethod
    def normalize_our_number(cls, v: str) -> str:
        return canonical_our_number(v)


class CancelResponse(BaseModel):
    bank_code: str
    our_number: str
    cancelled: bool


class StatusResponse(BaseModel):
    bank_code: str
    our_number: str
    status: BoletoStatus


class SupportedBank(BaseModel):
    code: str
    name: str
    logo: str
    available: bool = False
