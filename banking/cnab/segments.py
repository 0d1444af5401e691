"""
Record constructors for a CNAB 240 billing remittance (FEBRABAN layout).
Each builder returns one 240-character line; bank differences come from the RemittanceContext.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from banking.boleto.schemas import BoletoCharge
from banking.cnab.codec import format_document, format_time_cnab
from banking.cnab.layouts import RemittanceProfile
from banking.cnab.records import (
    BATCH_HEADER,
    BATCH_TRAILER,
    DETAIL,
    FILE_HEADER,
    FILE_TRAILER,
    RecordBuilder,
)
from banking.core.utils import inscription_type, only_digits

MOVEMENT_ENTRY = "01"


@dataclass(frozen=True)
class CnabCompany:
    """Beneficiary identification repeated in headers and Segment P."""
    document: str = ""
    name: str = ""
    agreement: str = ""
    agency: str = ""
    agency_digit: str = ""
    account: str = ""
    account_digit: str = ""
    agency_account_digit: str = ""


@dataclass(frozen=True)
class RemittanceContext:
    profile: RemittanceProfile
    company: CnabCompany
    our_number_block: Callable[[str], str]
    generated_at: datetime
    file_sequence: int
    wallet_kind: str = "1"
    batch_number: int = 1


def _account_block(record: RecordBuilder, company: CnabCompany) -> RecordBuilder:
    return (
        record.num(only_digits(company.agency), 5, "agency")
        .alpha(company.agency_digit, 1, "agency_digit", strict=True)
        .num(only_digits(company.account), 12, "account")
        .alpha(company.account_digit, 1, "account_digit", strict=True)
        .alpha(company.agency_account_digit, 1, "agency_account_digit", strict=True)
    )


def _detail_prefix(ctx: RemittanceContext, name: str, sequence: int, segment: str) -> RecordBuilder:
    return (
        RecordBuilder(name)
        .literal(ctx.profile.bank_code)
        .num(ctx.batch_number, 4, "batch")
        .literal(DETAIL)
        .num(sequence, 5, "sequence")
        .literal(segment)
        .blank(1)
        .literal(MOVEMENT_ENTRY)
    )


def file_header(ctx: RemittanceContext) -> str:
    company = ctx.company
    record = (
        RecordBuilder("file_header")
        .literal(ctx.profile.bank_code)
        .literal("0000")
        .literal(FILE_HEADER)
        .blank(9)
        .literal(inscription_type(company.document) if company.document else "2")
        .num(format_document(company.document), 14, "company_document")
        .alpha(company.agreement, 20, "agreement", strict=True)
    )
    _account_block(record, company)
    return (
        record.alpha(company.name, 30, "company_name")
        .alpha(ctx.profile.bank_name, 30, "bank_name")
        .blank(10)
        .literal("1")  # remittance
        .date_field(ctx.generated_at.date())
        .literal(format_time_cnab(ctx.generated_at))
        .num(ctx.file_sequence, 6, "file_sequence")
        .literal(ctx.profile.file_layout_version)
        .zeros(5)  # density
        .blank(20)  # reserved for the bank
        .blank(20)  # reserved for the company
        .blank(29)
        .build()
    )


def batch_header(ctx: RemittanceContext) -> str:
    company = ctx.company
    record = (
        RecordBuilder("batch_header")
        .literal(ctx.profile.bank_code)
        .num(ctx.batch_number, 4, "batch")
        .literal(BATCH_HEADER)
        .literal("R")  # operation: remittance
        .literal("01")  # service: billing
        .blank(2)
        .literal(ctx.profile.batch_layout_version)
        .blank(1)
        .literal(inscription_type(company.document) if company.document else "2")
        .num(format_document(company.document), 15, "company_document")
        .alpha(company.agreement, 20, "agreement", strict=True)
    )
    _account_block(record, company)
    return (
        record.alpha(company.name, 30, "company_name")
        .blank(40)  # message 1
        .blank(40)  # message 2
        .num(ctx.file_sequence, 8, "remittance_number")
        .date_field(ctx.generated_at.date())
        .zeros(8)  # credit date
        .blank(33)
        .build()
    )


def segment_p(ctx: RemittanceContext, charge: BoletoCharge, sequence: int) -> str:
    profile = ctx.profile
    record = _detail_prefix(ctx, "segment_p", sequence, "P")
    _account_block(record, ctx.company)
    record = (
        record.alpha(ctx.our_number_block(charge.our_number), 20, "our_number", strict=True)
        .alpha(ctx.wallet_kind, 1, "wallet_kind", strict=True)
        .literal("1")  # registered billing
        .literal("1")  # traditional document
        .literal("2")  # slip issued by the beneficiary
        .literal("2")  # distributed by the beneficiary
        .alpha(charge.our_number, 15, "document_number", strict=True)
        .date_field(charge.due_date)
        .amount(charge.amount, 15, "amount")
        .zeros(5)  # collecting agency
        .blank(1)
        .alpha(profile.document_species, 2, "species", strict=True)
        .alpha(profile.acceptance, 1, "acceptance", strict=True)
        .date_field(ctx.generated_at.date())
    )

    if charge.has_interest:
        record.literal("2").date_field(charge.due_date).amount(charge.interest_percentage, 15, "interest")
    else:
        record.literal("0").zeros(8).zeros(15)

    if charge.has_discount:
        record.literal("1").date_field(charge.discount_due_date or charge.due_date).amount(
            charge.discount_amount, 15, "discount"
        )
    else:
        record.literal("0").zeros(8).zeros(15)

    return (
        record.zeros(15)  # IOF
        .zeros(15)  # rebate
        .alpha(charge.our_number, 25, "company_reference", strict=True)
        .literal(profile.protest_code)
        .literal(profile.protest_days)
        .literal(profile.write_off_code)
        .literal(profile.write_off_days)
        .literal(profile.currency_code)
        .zeros(10)  # credit agreement
        .blank(1)
        .build()
    )


def segment_q(ctx: RemittanceContext, charge: BoletoCharge, sequence: int) -> str:
    payer = charge.payer
    address = payer.address
    return (
        _detail_prefix(ctx, "segment_q", sequence, "Q")
        .literal(payer.inscription_type)
        .num(payer.document_digits, 15, "payer_document")
        .alpha(payer.name, 40, "payer_name")
        .alpha(address.line, 40, "payer_address")
        .alpha(address.neighborhood, 15, "payer_neighborhood")
        .num(only_digits(address.zipcode), 8, "payer_zipcode")
        .alpha(address.city, 15, "payer_city")
        .alpha(address.state, 2, "payer_state", strict=True)
        .literal("0")  # guarantor inscription type
        .zeros(15)
        .blank(40)
        .zeros(3)  # correspondent bank
        .blank(20)
        .blank(8)
        .build()
    )


def segment_r(ctx: RemittanceContext, charge: BoletoCharge, sequence: int) -> str:
    record = (
        _detail_prefix(ctx, "segment_r", sequence, "R")
        .literal("0").zeros(8).zeros(15)  # discount 2
        .literal("0").zeros(8).zeros(15)  # discount 3
    )

    if charge.has_fine:
        record.literal("2").date_field(charge.due_date).amount(charge.fine_percentage, 15, "fine")
    else:
        record.literal("0").zeros(8).zeros(15)

    messages = list(charge.instructions[:2]) + ["", ""]
    return (
        record.blank(10)  # payer information
        .alpha(messages[0], 40, "message_3")
        .alpha(messages[1], 40, "message_4")
        .literal(_email_field(charge.payer.email, 50))
        .blank(11)
        .build()
    )


def batch_trailer(ctx: RemittanceContext, record_count: int, charge_count: int, total_amount: Decimal) -> str:
    return (
        RecordBuilder("batch_trailer")
        .literal(ctx.profile.bank_code)
        .num(ctx.batch_number, 4, "batch")
        .literal(BATCH_TRAILER)
        .blank(9)
        .num(record_count, 6, "record_count")
        .num(charge_count, 6, "simple_count")
        .amount(total_amount, 17, "simple_total")
        .zeros(6).zeros(17)  # secured billing
        .zeros(6).zeros(17)  # pledged billing
        .zeros(6).zeros(17)  # discounted billing
        .blank(8)  # notice number
        .blank(117)
        .build()
    )


def file_trailer(ctx: RemittanceContext, batch_count: int, record_count: int) -> str:
    return (
        RecordBuilder("file_trailer")
        .literal(ctx.profile.bank_code)
        .literal("9999")
        .literal(FILE_TRAILER)
        .blank(9)
        .num(batch_count, 6, "batch_count")
        .num(record_count, 6, "record_count")
        .zeros(6)  # accounts for reconciliation
        .blank(205)
        .build()
    )


def _email_field(email: Optional[str], length: int) -> str:
    # E-mail keeps its case; to_cnab_text would upper-case it
    text = (email or "").encode("ascii", "ignore").decode("ascii")
    return text[:length].ljust(length)
