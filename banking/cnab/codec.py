"""
Fixed-width field primitives for CNAB 240 records.
Pure functions: no I/O, no locale, always Gregorian dates and BRL cents.
"""
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union
import re
import unicodedata

from banking.core.exceptions import EncodingOverflow

Amount = Union[Decimal, float, int, str]

CENTS = Decimal("0.01")


def pad_left(value: object, length: int, fill: str = "0", field: Optional[str] = None) -> str:
    """Right-aligns `value` in `length` chars. Overflow raises: zero-padded slots carry money and identifiers."""
    text = str(value)
    if len(text) > length:
        raise EncodingOverflow(field or "numeric", text, length)
    return text.rjust(length, fill)


def pad_right(
    value: object,
    length: int,
    fill: str = " ",
    strict: bool = False,
    field: Optional[str] = None,
) -> str:
    """Left-aligns `value` in `length` chars, truncating overflow unless `strict`."""
    text = "" if value is None else str(value)
    if len(text) > length:
        if strict:
            raise EncodingOverflow(field or "alphanumeric", text, length)
        text = text[:length]
    return text.ljust(length, fill)


def format_document(tax_id: str) -> str:
    return re.sub(r"\D", "", tax_id or "")


def to_decimal(amount: Amount) -> Decimal:
    try:
        return Decimal(str(amount))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {amount!r}") from exc


def format_currency(amount: Amount) -> str:
    """Unscaled cents string: 19.9 -> "1990", 0 -> "0"."""
    value = to_decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)
    if value < 0:
        raise ValueError(f"Negative amount cannot be encoded: {amount!r}")
    return str(int(value * 100))


def format_date_cnab(value: Optional[date]) -> str:
    """DDMMYYYY; a missing date is encoded as eight zeros."""
    if value is None:
        return "00000000"
    return value.strftime("%d%m%Y")


def format_time_cnab(value: datetime) -> str:
    return value.strftime("%H%M%S")


def parse_date_cnab(text: str) -> Optional[date]:
    """Inverse of format_date_cnab. Blank or zeroed fields yield None; impossible dates raise ValueError."""
    text = (text or "").strip()
    if not text or text == "00000000":
        return None
    return datetime.strptime(text, "%d%m%Y").date()


def parse_amount(text: str) -> Decimal:
    """Unscaled integer (value x 100) to Decimal."""
    text = (text or "").strip()
    if not text.isdigit():
        raise ValueError(f"Invalid unscaled amount: {text!r}")
    return (Decimal(int(text)) / 100).quantize(CENTS)


def to_cnab_text(value: Optional[str]) -> str:
    """Strips accents and control characters; CNAB files are upper-case ASCII."""
    if not value:
        return ""
    normalized = unicodedata.normalize("NFKD", value)
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^\x20-\x7E]", " ", ascii_text).upper()


def modulo10(digits: str) -> str:
    """Mod-10 check digit with alternating 2/1 weights from the right."""
    total = 0
    for index, char in enumerate(reversed(digits)):
        product = int(char) * (2 if index % 2 == 0 else 1)
        total += product // 10 + product % 10
    return str((10 - total % 10) % 10)
