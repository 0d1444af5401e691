"""
Pydantic schemas for static PIX charges.
"""
from pydantic import BaseModel, Field, field_validator, ValidationInfo
from typing import Optional
from decimal import Decimal
from enum import Enum
from uuid import UUID
import re

from banking.core.utils import only_digits

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


class PixKeyType(str, Enum):
    """Valid PIX key types."""
    CPF = "CPF"
    CNPJ = "CNPJ"
    EMAIL = "EMAIL"
    PHONE = "TELEFONE"
    RANDOM = "ALEATORIA"


def validate_pix_key(key_type: PixKeyType, key: str) -> str:
    """Validates a PIX key for its type and returns it in canonical form."""
    if key_type == PixKeyType.CPF:
        cpf = only_digits(key)
        if len(cpf) != 11:
            raise ValueError('CPF must have 11 digits')
        return cpf

    if key_type == PixKeyType.CNPJ:
        cnpj = only_digits(key)
        if len(cnpj) != 14:
            raise ValueError('CNPJ must have 14 digits')
        return cnpj

    if key_type == PixKeyType.EMAIL:
        if not EMAIL_PATTERN.match(key) or len(key) > 77:
            raise ValueError('Invalid Email format')
        return key.lower()

    if key_type == PixKeyType.PHONE:
        phone = only_digits(key)
        if phone.startswith("55") and len(phone) in (12, 13):
            phone = phone[2:]
        if len(phone) < 10 or len(phone) > 11:
            raise ValueError('Phone number must have 10 or 11 digits')
        return f"+55{phone}"

    try:
        return str(UUID(key.strip()))
    except ValueError:
        raise ValueError('Random key must be a UUID') from None


class PixBrCodeRequest(BaseModel):
    """Static BR Code request payload."""
    key_type: PixKeyType = Field(..., description="PIX Key Type")
    pix_key: str = Field(..., min_length=1, max_length=77, description="Receiver PIX Key")
    merchant_name: str = Field(..., min_length=1, max_length=100)
    merchant_city: str = Field(..., min_length=1, max_length=100)
    amount: Optional[Decimal] = Field(None, gt=0, description="Fixed amount (R$); open amount when omitted")
    description: Optional[str] = Field(None, max_length=100, description="Message shown to the payer")
    txid: Optional[str] = Field(None, max_length=35)

    @field_validator('pix_key')
    @classmethod
    def normalize_pix_key(cls, v: str, info: ValidationInfo) -> str:
        """Normalizes the key according to the selected key type."""
        if not info.data or 'key_type' not in info.data:
            return v

        return validate_pix_key(info.data['key_type'], v)


class PixBrCodeResponse(BaseModel):
    payload: str = Field(..., description="Pix Copy and Paste string")
    qr_code_url: str = Field(..., description="URL to generate QR Code image")
