"""
Unit tests for CNAB field primitives.
Validates padding, overflow policy, money and date encoding.
"""
import pytest
from datetime import date
from decimal import Decimal

from banking.cnab.codec import (
    format_currency,
    format_date_cnab,
    format_document,
    modulo10,
    pad_left,
    pad_right,
    parse_amount,
    parse_date_cnab,
    to_cnab_text,
)
from banking.cnab.records import RecordBuilder
from banking.core.exceptions import EncodingOverflow


@pytest.mark.parametrize("amount,expected", [
    (19.9, "1990"),
    (0, "0"),
    (Decimal("980.00"), "98000"),
    ("1234.5", "123450"),
    (Decimal("0.005"), "1"),
])
def test_format_currency(amount, expected):
    """Amounts are encoded as unscaled cents."""
    assert format_currency(amount) == expected


def test_format_currency_rejects_negative():
    with pytest.raises(ValueError):
        format_currency(Decimal("-1.00"))


def test_format_date_cnab():
    assert format_date_cnab(date(2026, 1, 10)) == "10012026"
    assert format_date_cnab(None) == "00000000"


@pytest.mark.parametrize("text,expected", [
    ("10022026", date(2026, 2, 10)),
    ("00000000", None),
    ("        ", None),
])
def test_parse_date_cnab(text, expected):
    assert parse_date_cnab(text) == expected


def test_parse_date_cnab_rejects_impossible_date():
    with pytest.raises(ValueError):
        parse_date_cnab("31022026")


def test_parse_amount():
    assert parse_amount("000000000098000") == Decimal("980.00")
    with pytest.raises(ValueError):
        parse_amount("00000000009800X")


def test_pad_left_overflow_raises():
    """Numeric slots never truncate."""
    assert pad_left("123", 5) == "00123"
    with pytest.raises(EncodingOverflow) as exc:
        pad_left("123456", 5, field="amount")
    assert exc.value.field == "amount"


def test_pad_right_truncates_cosmetic_text():
    assert pad_right("ABC", 5) == "ABC  "
    assert pad_right("ABCDEFG", 5) == "ABCDE"
    with pytest.raises(EncodingOverflow):
        pad_right("ABCDEFG", 5, strict=True)


def test_format_document_keeps_digits():
    assert format_document("12.345.678/0001-99") == "12345678000199"
    assert format_document(None) == ""


def test_to_cnab_text_strips_accents():
    assert to_cnab_text("São Paulo - Condomínio Açaí") == "SAO PAULO - CONDOMINIO ACAI"
    assert to_cnab_text(None) == ""


def test_modulo10():
    """Itaú DAC example: agency 0057, account 12345, wallet 110, our number 12345678."""
    assert modulo10("00571234511012345678") == "8"


def test_record_builder_enforces_line_length():
    with pytest.raises(EncodingOverflow):
        RecordBuilder("short").literal("X").build()

    line = RecordBuilder("full").alpha("ação", 10, "name").blank(230).build()
    assert len(line) == 240
    assert line.startswith("ACAO      ")
