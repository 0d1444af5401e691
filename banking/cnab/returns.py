"""
CNAB 240 return file parsing.
Settlement is reported as a Segment T immediately followed by its Segment U; pairing is positional.
Malformed lines are skipped, never fatal: banks emit filler and trailer noise.
"""
from typing import List, Optional

from banking.boleto.schemas import PaymentNotification, canonical_our_number
from banking.cnab.codec import parse_amount, parse_date_cnab
from banking.cnab.layouts import MOVEMENT_CODE, RECORD_TYPE, SEGMENT, ReturnLayout
from banking.cnab.records import DETAIL, RECORD_LENGTH
from banking.core.logger import logger

CHANNEL_CNAB_RETURN = "cnab_retorno"


def is_detail(line: str, segment: str) -> bool:
    return len(line) >= RECORD_LENGTH and RECORD_TYPE.read(line) == DETAIL and SEGMENT.read(line) == segment


def parse_return_file(content: str, layout: ReturnLayout) -> List[PaymentNotification]:
    lines = [line.rstrip("\r\n") for line in content.splitlines()]
    payments: List[PaymentNotification] = []

    for index, line in enumerate(lines):
        if len(line) < RECORD_LENGTH:
            continue
        if not is_detail(line, "T"):
            continue
        if MOVEMENT_CODE.read(line) not in layout.settled_codes:
            continue

        next_line = lines[index + 1] if index + 1 < len(lines) else ""
        if not is_detail(next_line, "U"):
            logger.warning(f"Return file line {index + 1}: Segment T without adjacent Segment U, skipped")
            continue

        notification = _build_notification(line, next_line, layout, index + 1)
        if notification is not None:
            payments.append(notification)

    logger.info(f"Return file parsed: bank={layout.bank_code}, lines={len(lines)}, settlements={len(payments)}")
    return payments


def _build_notification(
    segment_t: str,
    segment_u: str,
    layout: ReturnLayout,
    line_number: int,
) -> Optional[PaymentNotification]:
    our_number = canonical_our_number(layout.our_number.read(segment_t))
    if not our_number.strip("0"):
        logger.warning(f"Return file line {line_number}: blank our number, skipped")
        return None

    try:
        amount_paid = parse_amount(layout.amount_paid.read(segment_u))
        payment_date = parse_date_cnab(layout.payment_date.read(segment_u))
        credit_date = parse_date_cnab(layout.credit_date.read(segment_u))
    except ValueError as e:
        logger.warning(f"Return file line {line_number}: unreadable Segment U ({e}), skipped")
        return None

    if amount_paid <= 0:
        logger.warning(f"Return file line {line_number}: non-positive amount for {our_number}, skipped")
        return None

    payment_date = payment_date or credit_date
    if payment_date is None:
        logger.warning(f"Return file line {line_number}: no payment or credit date for {our_number}, skipped")
        return None

    return PaymentNotification(
        our_number=our_number,
        amount_paid=amount_paid,
        payment_date=payment_date,
        credit_date=credit_date,
        authentication_code=layout.authentication_code.read(segment_u).strip() or None,
        payment_channel=CHANNEL_CNAB_RETURN,
    )
