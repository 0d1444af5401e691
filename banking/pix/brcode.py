"""
Static PIX BR Code (EMV Merchant Presented Mode) generation.
The payload is a sequence of ID/length/value fields closed by a CRC16/CCITT-FALSE checksum.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union
from urllib.parse import urlencode
import re

from banking.cnab.codec import to_cnab_text
from banking.core.config import settings

PIX_GUI = "br.gov.bcb.pix"
MERCHANT_CATEGORY_CODE = "0000"
CURRENCY_BRL = "986"
COUNTRY_CODE = "BR"
TXID_ANY = "***"

NAME_LENGTH = 25
CITY_LENGTH = 15
DESCRIPTION_LENGTH = 25
TXID_LENGTH = 25
FIELD_MAX_LENGTH = 99


def tlv(field_id: str, value: str) -> str:
    if len(value) > FIELD_MAX_LENGTH:
        raise ValueError(f"PIX field {field_id} exceeds {FIELD_MAX_LENGTH} characters")
    return f"{field_id}{len(value):02d}{value}"


def crc16_ccitt(payload: str) -> str:
    """CRC16/CCITT-FALSE (poly 0x1021, init 0xFFFF) as 4 upper-case hex digits."""
    crc = 0xFFFF
    for byte in payload.encode("utf-8"):
        crc ^= byte << 8
        for _ in range(8):
            if crc & 0x8000:
                crc = ((crc << 1) ^ 0x1021) & 0xFFFF
            else:
                crc = (crc << 1) & 0xFFFF
    return f"{crc:04X}"


def _text(value: str, length: int) -> str:
    return to_cnab_text(value).strip()[:length].rstrip()


def build_pix_payload(
    key: str,
    merchant_name: str,
    merchant_city: str,
    amount: Optional[Union[Decimal, float, str]] = None,
    description: Optional[str] = None,
    txid: Optional[str] = None,
) -> str:
    account_info = tlv("00", PIX_GUI) + tlv("01", key)
    if description:
        account_info += tlv("02", _text(description, DESCRIPTION_LENGTH))

    reference = re.sub(r"[^A-Za-z0-9]", "", txid or "")[:TXID_LENGTH] or TXID_ANY

    payload = tlv("00", "01") + tlv("26", account_info) + tlv("52", MERCHANT_CATEGORY_CODE) + tlv("53", CURRENCY_BRL)
    if amount is not None:
        value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        if value <= 0:
            raise ValueError("PIX amount must be positive")
        payload += tlv("54", f"{value:.2f}")
    payload += (
        tlv("58", COUNTRY_CODE)
        + tlv("59", _text(merchant_name, NAME_LENGTH))
        + tlv("60", _text(merchant_city, CITY_LENGTH))
        + tlv("62", tlv("05", reference))
    )

    payload += "6304"
    return payload + crc16_ccitt(payload)


def qr_code_url(payload: str, size: int = 200) -> str:
    query = urlencode({"size": f"{size}x{size}", "data": payload})
    return f"{settings.PIX_QR_CODE_SERVICE_URL}?{query}"

