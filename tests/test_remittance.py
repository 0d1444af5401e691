"""
Unit tests for CNAB 240 remittance generation.
Validates line width, segment layout, record counts and overflow handling for every supported bank.
"""
import pytest
from datetime import datetime
from decimal import Decimal

from banking.adapters.banco_brasil import BancoBrasilAdapter
from banking.adapters.itau import ItauAdapter
from banking.cnab.layouts import P_AMOUNT, P_DUE_DATE, P_OUR_NUMBER_BLOCK, SEGMENT
from banking.core.exceptions import EncodingOverflow
from banking.core.utils import BRASILIA_TZ

GENERATED_AT = datetime(2026, 1, 20, 9, 30, 15, tzinfo=BRASILIA_TZ)


@pytest.fixture
def adapters(bb_credentials, itau_credentials, stub):
    return {
        "001": BancoBrasilAdapter(bb_credentials, transport=stub.transport),
        "341": ItauAdapter(itau_credentials, transport=stub.transport),
    }


def remittance(adapter, charges, sequence=42):
    content = adapter.generate_remittance_file(charges, file_sequence=sequence, generated_at=GENERATED_AT)
    return content.split("\r\n")


@pytest.mark.parametrize("bank_code", ["001", "341"])
def test_every_line_is_240_characters(adapters, make_charge, bank_code):
    """Headers, details and trailers are all fixed width."""
    charges = [
        make_charge(our_number="1"),
        make_charge(our_number="2", fine_percentage=Decimal("2"), interest_percentage=Decimal("1")),
        make_charge(our_number="3", discount_amount=Decimal("10.50")),
    ]
    lines = remittance(adapters[bank_code], charges)

    assert all(len(line) == 240 for line in lines)
    assert all(line.startswith(bank_code) for line in lines)
    assert [line[7] for line in lines] == ["0", "1"] + ["3"] * 8 + ["5", "9"]


def test_file_uses_crlf_without_trailing_separator(adapters, charge):
    content = adapters["001"].generate_remittance_file([charge], file_sequence=1, generated_at=GENERATED_AT)
    assert "\r\n" in content
    assert not content.endswith("\r\n")
    assert "\n" not in content.replace("\r\n", "")


def test_segment_p_amount_and_due_date(adapters, charge):
    """980.00 due 2026-02-10 is written as unscaled cents and DDMMYYYY."""
    lines = remittance(adapters["001"], [charge])
    segment_p = lines[2]

    assert SEGMENT.read(segment_p) == "P"
    assert P_AMOUNT.read(segment_p) == "000000000098000"
    assert P_DUE_DATE.read(segment_p) == "10022026"
    assert P_OUR_NUMBER_BLOCK.read(segment_p) == "12345670000000123   "


def test_segment_q_carries_payer(adapters, charge):
    segment_q = remittance(adapters["001"], [charge])[3]

    assert SEGMENT.read(segment_q) == "Q"
    assert segment_q[17] == "1"  # CPF
    assert segment_q[18:33] == "000012345678901"
    assert segment_q[33:73].rstrip() == "JOSE DA SILVA"
    assert segment_q[128:136] == "01310100"
    assert segment_q[151:153] == "SP"


def test_segment_r_only_with_additional_terms(adapters, make_charge):
    plain = remittance(adapters["001"], [make_charge()])
    with_fine = remittance(adapters["001"], [make_charge(fine_percentage=Decimal("2.00"))])

    assert [SEGMENT.read(line) for line in plain[2:-2]] == ["P", "Q"]
    assert [SEGMENT.read(line) for line in with_fine[2:-2]] == ["P", "Q", "R"]

    segment_r = with_fine[4]
    assert segment_r[65] == "2"
    assert segment_r[66:74] == "10022026"
    assert segment_r[74:89] == "000000000000200"


def test_detail_sequence_numbers_are_contiguous(adapters, make_charge):
    charges = [make_charge(our_number=str(n), interest_percentage=Decimal("1")) for n in range(1, 4)]
    details = remittance(adapters["341"], charges)[2:-2]

    assert [int(line[8:13]) for line in details] == list(range(1, 10))


@pytest.mark.parametrize("bank_code", ["001", "341"])
def test_trailer_counts(adapters, make_charge, bank_code):
    """Batch trailer counts its details plus header and trailer; file trailer adds the file frame."""
    charges = [make_charge(our_number="1"), make_charge(our_number="2", fine_percentage=Decimal("2"))]
    lines = remittance(adapters[bank_code], charges)
    batch_trailer, file_trailer = lines[-2], lines[-1]

    assert batch_trailer[17:23] == "000007"
    assert batch_trailer[23:29] == "000002"
    assert batch_trailer[29:46] == "00000000000196000"
    assert file_trailer[17:23] == "000001"
    assert file_trailer[23:29] == "000009"
    assert len(lines) == 9


def test_empty_remittance_is_a_valid_shell(adapters):
    lines = remittance(adapters["001"], [])

    assert len(lines) == 4
    assert lines[2][17:23] == "000002"
    assert lines[3][23:29] == "000004"


def test_headers_carry_sequence_and_generation_time(adapters, charge):
    file_header, batch_header = remittance(adapters["001"], [charge], sequence=42)[:2]

    assert file_header[142] == "1"
    assert file_header[143:151] == "20012026"
    assert file_header[151:157] == "093015"
    assert file_header[157:163] == "000042"
    assert file_header[163:166] == "089"
    assert batch_header[8] == "R"
    assert batch_header[13:16] == "045"
    assert batch_header[183:191] == "00000042"


def test_itau_our_number_block_has_wallet_and_dac(adapters, make_charge):
    segment_p = remittance(adapters["341"], [make_charge(our_number="12345678")])[2]
    block = P_OUR_NUMBER_BLOCK.read(segment_p)

    assert block[:3] == "109"
    assert block[3:11] == "12345678"
    assert block[11].isdigit()
    assert block[12:] == " " * 8


def test_amount_overflow_raises(adapters, make_charge):
    """An amount that does not fit 15 digits is an error, never truncated."""
    with pytest.raises(EncodingOverflow):
        remittance(adapters["001"], [make_charge(amount=Decimal("99999999999999"))])


def test_our_number_overflow_raises(adapters, make_charge):
    with pytest.raises(EncodingOverflow):
        remittance(adapters["001"], [make_charge(our_number="12345678901")])


def test_long_payer_name_is_truncated(adapters, make_charge, payer):
    long_payer = payer.model_copy(update={"name": "Maria " * 20})
    segment_q = remittance(adapters["001"], [make_charge(payer=long_payer)])[3]

    assert len(segment_q) == 240
    assert segment_q[33:73] == ("MARIA " * 20)[:40]
