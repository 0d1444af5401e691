"""
CNAB 240 remittance file assembly: one file, one billing batch, P/Q(/R) details per charge.
"""
from decimal import Decimal
from typing import List, Sequence

from banking.boleto.schemas import BoletoCharge
from banking.cnab import segments
from banking.cnab.segments import RemittanceContext
from banking.core.logger import logger

LINE_SEPARATOR = "\r\n"

# Batch header and batch trailer are counted in the batch record total
BATCH_FRAME_RECORDS = 2
# File header and file trailer are counted in the file record total
FILE_FRAME_RECORDS = 2


def build_detail_records(ctx: RemittanceContext, charges: Sequence[BoletoCharge]) -> List[str]:
    """Segments P and Q for every charge, plus R when it carries discount, fine or interest."""
    details: List[str] = []
    for charge in charges:
        details.append(segments.segment_p(ctx, charge, len(details) + 1))
        details.append(segments.segment_q(ctx, charge, len(details) + 1))
        if charge.has_additional_terms:
            details.append(segments.segment_r(ctx, charge, len(details) + 1))
    return details


def build_remittance_lines(ctx: RemittanceContext, charges: Sequence[BoletoCharge]) -> List[str]:
    if not charges:
        logger.warning(f"Remittance for bank {ctx.profile.bank_code} generated without charges")

    details = build_detail_records(ctx, charges)
    total_amount = sum((charge.amount for charge in charges), Decimal("0"))
    batch_records = len(details) + BATCH_FRAME_RECORDS

    lines = [segments.file_header(ctx), segments.batch_header(ctx)]
    lines.extend(details)
    lines.append(segments.batch_trailer(ctx, batch_records, len(charges), total_amount))
    lines.append(segments.file_trailer(ctx, batch_count=1, record_count=batch_records + FILE_FRAME_RECORDS))
    return lines


def build_remittance_file(ctx: RemittanceContext, charges: Sequence[BoletoCharge]) -> str:
    """Complete remittance file, CRLF-joined."""
    lines = build_remittance_lines(ctx, charges)
    logger.info(
        f"Remittance built: bank={ctx.profile.bank_code}, sequence={ctx.file_sequence}, "
        f"charges={len(charges)}, records={len(lines)}"
    )
    return LINE_SEPARATOR.join(lines)
