"""
Per-bank CNAB 240 layout tables.
Adding a bank means adding a profile and a return layout here, not a new code path through the builders.
"""
from dataclasses import dataclass
from typing import Dict, FrozenSet


@dataclass(frozen=True)
class FieldSlot:
    """0-based [start:end) slice of a 240-character line."""
    start: int
    end: int

    def read(self, line: str) -> str:
        return line[self.start:self.end]


@dataclass(frozen=True)
class RemittanceProfile:
    bank_code: str
    bank_name: str
    file_layout_version: str
    batch_layout_version: str
    document_species: str
    acceptance: str = "A"
    protest_code: str = "0"
    protest_days: str = "00"
    write_off_code: str = "0"
    write_off_days: str = "   "
    currency_code: str = "09"


@dataclass(frozen=True)
class ReturnLayout:
    bank_code: str
    settled_codes: FrozenSet[str]
    our_number: FieldSlot  # Segment T
    payment_date: FieldSlot  # Segment U
    credit_date: FieldSlot  # Segment U
    amount_paid: FieldSlot  # Segment U
    authentication_code: FieldSlot  # Segment U


# Positions shared by every detail record
RECORD_TYPE = FieldSlot(7, 8)
SEGMENT = FieldSlot(13, 14)
MOVEMENT_CODE = FieldSlot(15, 17)

# Segment P slots, used to read back what was written
P_OUR_NUMBER_BLOCK = FieldSlot(37, 57)
P_DUE_DATE = FieldSlot(77, 85)
P_AMOUNT = FieldSlot(85, 100)

REMITTANCE_PROFILES: Dict[str, RemittanceProfile] = {
    "001": RemittanceProfile(
        bank_code="001",
        bank_name="BANCO DO BRASIL",
        file_layout_version="089",
        batch_layout_version="045",
        document_species="02",
    ),
    "341": RemittanceProfile(
        bank_code="341",
        bank_name="BANCO ITAU SA",
        file_layout_version="040",
        batch_layout_version="030",
        document_species="99",
        protest_code="3",
        write_off_code="1",
        write_off_days="060",
    ),
}

RETURN_LAYOUTS: Dict[str, ReturnLayout] = {
    # Our number block is agreement (7) + number (10); only the number is returned
    "001": ReturnLayout(
        bank_code="001",
        settled_codes=frozenset({"06"}),
        our_number=FieldSlot(44, 54),
        payment_date=FieldSlot(137, 145),
        credit_date=FieldSlot(145, 153),
        amount_paid=FieldSlot(77, 92),
        authentication_code=FieldSlot(92, 112),
    ),
    # Wallet (3) precedes the 8-digit our number; 17 is settlement after write-off
    "341": ReturnLayout(
        bank_code="341",
        settled_codes=frozenset({"06", "17"}),
        our_number=FieldSlot(40, 48),
        payment_date=FieldSlot(137, 145),
        credit_date=FieldSlot(145, 153),
        amount_paid=FieldSlot(77, 92),
        authentication_code=FieldSlot(92, 112),
    ),
}
