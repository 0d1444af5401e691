"""
Line assembler for 240-character CNAB records.
Fields are appended in layout order; `build()` refuses any line that is not exactly 240 characters.
"""
from datetime import date
from typing import List, Optional

from banking.cnab.codec import (
    Amount,
    format_currency,
    format_date_cnab,
    pad_left,
    pad_right,
    to_cnab_text,
)
from banking.core.exceptions import EncodingOverflow

RECORD_LENGTH = 240

# Record type marker at position 8
FILE_HEADER = "0"
BATCH_HEADER = "1"
DETAIL = "3"
BATCH_TRAILER = "5"
FILE_TRAILER = "9"


class RecordBuilder:
    """Accumulates fixed-width fields for one record."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._parts: List[str] = []

    def literal(self, text: str) -> "RecordBuilder":
        self._parts.append(text)
        return self

    def num(self, value: object, length: int, field: str) -> "RecordBuilder":
        """Zero-padded numeric field. Overflow raises."""
        return self.literal(pad_left(value, length, "0", field=f"{self.name}.{field}"))

    def alpha(self, value: Optional[str], length: int, field: str, strict: bool = False) -> "RecordBuilder":
        """Space-padded text field. Truncates cosmetic text; identifiers pass strict=True."""
        return self.literal(pad_right(to_cnab_text(value), length, " ", strict=strict, field=f"{self.name}.{field}"))

    def amount(self, value: Optional[Amount], length: int, field: str) -> "RecordBuilder":
        return self.num(format_currency(value or 0), length, field)

    def date_field(self, value: Optional[date]) -> "RecordBuilder":
        return self.literal(format_date_cnab(value))

    def blank(self, length: int) -> "RecordBuilder":
        return self.literal(" " * length)

    def zeros(self, length: int) -> "RecordBuilder":
        return self.literal("0" * length)

    def build(self) -> str:
        line = "".join(self._parts)
        if len(line) != RECORD_LENGTH:
            raise EncodingOverflow(self.name, line, RECORD_LENGTH)
        return line
