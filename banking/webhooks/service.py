"""
Bank webhook ingestion: signature verification, event classification and payment mapping.
Each bank signs and shapes its notifications differently; the tables below are keyed by bank code.
"""
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Mapping, Optional

from pydantic import ValidationError

from banking.boleto.schemas import PaymentNotification
from banking.core.config import settings
from banking.core.exceptions import UnsupportedBankError
from banking.core.logger import logger
from banking.core.security import constant_time_equals, hmac_sha256_hex
from banking.webhooks.schemas import WebhookType

CHANNEL_WEBHOOK = "webhook"

# bank code -> header carrying the hex HMAC-SHA256 of the raw body
HMAC_SIGNATURE_HEADERS = {
    "001": "x-webhook-signature",
    "341": "x-itau-signature",
}
BEARER_SIGNATURE_BANKS = {"237"}

BB_AGREEMENT_LENGTH = 7
BB_TITLE_LENGTH = 17


class InvalidWebhookPayload(ValueError):
    """The notification lacks the fields needed to build a payment."""


def verify_signature(bank_code: str, raw_body: bytes, headers: Mapping[str, str], secret: Optional[str]) -> bool:
    """
    Checks the bank's signature over the raw request body.
    Without a configured secret the webhook is rejected unless unsigned webhooks are explicitly allowed.
    """
    headers = {k.lower(): v for k, v in headers.items()}

    if not secret:
        if settings.WEBHOOK_ALLOW_UNSIGNED:
            logger.warning(f"Webhook secret not configured for bank {bank_code}, accepting unsigned webhook")
            return True
        logger.error(f"Webhook secret not configured for bank {bank_code}, rejecting")
        return False

    header = HMAC_SIGNATURE_HEADERS.get(bank_code)
    if header:
        return constant_time_equals(headers.get(header), hmac_sha256_hex(secret, raw_body))

    if bank_code in BEARER_SIGNATURE_BANKS:
        return constant_time_equals(headers.get("authorization"), f"Bearer {secret}")

    logger.warning(f"No signature scheme known for bank {bank_code}, rejecting")
    return False


def detect_webhook_type(bank_code: str, payload: Mapping[str, Any]) -> WebhookType:
    if bank_code == "001":
        state = str(payload.get("codigoEstadoTituloCobranca", ""))
        if state == "6":
            return WebhookType.PAYMENT
        if state == "7":
            return WebhookType.CANCELLATION
        return WebhookType.STATUS_CHANGE

    if bank_code == "341":
        if payload.get("situacao_pagamento") == "REALIZADO":
            return WebhookType.PAYMENT
        return WebhookType.STATUS_CHANGE

    if bank_code == "237":
        if payload.get("status") == "PAGO":
            return WebhookType.PAYMENT
        return WebhookType.STATUS_CHANGE

    return WebhookType.UNKNOWN


def _amount(value: Any) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidWebhookPayload(f"Invalid amount: {value!r}") from None
    if not amount.is_finite():
        raise InvalidWebhookPayload(f"Invalid amount: {value!r}")
    return amount


def _date(value: Any) -> Optional[date]:
    """Accepts ISO dates, ISO timestamps and BB's dd.mm.yyyy."""
    if not value:
        return None
    text = str(value)
    for fmt in ("%d.%m.%Y", "%d/%m/%Y"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        raise InvalidWebhookPayload(f"Invalid date: {value!r}") from None


def _optional_text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _bb_our_number(payload: Mapping[str, Any]) -> Any:
    """numeroTituloCliente is the 7-digit agreement followed by the 10-digit our number."""
    title = str(payload.get("numeroTituloCliente") or "")
    if len(title) == BB_TITLE_LENGTH and title.isdigit():
        return title[BB_AGREEMENT_LENGTH:]
    return payload.get("nossoNumero") or title


def _banco_brasil(payload: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "our_number": _bb_our_number(payload),
        "amount_paid": payload.get("valorPago") or payload.get("valorRecebido"),
        "payment_date": payload.get("dataRecebimento") or payload.get("dataPagamento"),
        "credit_date": payload.get("dataCredito"),
        "authentication_code": payload.get("codigoAutenticacaoPagamento"),
        "payment_channel": payload.get("canalPagamento"),
    }


def _itau(payload: Mapping[str, Any]) -> Dict[str, Any]:
    boleto = payload.get("dados_boleto") or {}
    return {
        "our_number": boleto.get("numero_nosso_numero"),
        "amount_paid": boleto.get("valor_pago") or "0",
        "payment_date": boleto.get("data_pagamento"),
        "credit_date": boleto.get("data_credito"),
        "authentication_code": boleto.get("codigo_autenticacao"),
    }


def _bradesco(payload: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "our_number": payload.get("nossoNumero"),
        "amount_paid": payload.get("valorPago"),
        "payment_date": payload.get("dataPagamento"),
        "credit_date": payload.get("dataCredito"),
    }


def _santander(payload: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "our_number": payload.get("nsu") or payload.get("nossoNumero"),
        "amount_paid": payload.get("valor"),
        "payment_date": payload.get("dataHoraPagamento"),
    }


def _caixa(payload: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "our_number": payload.get("nossoNumero"),
        "amount_paid": payload.get("valorRecebido"),
        "payment_date": payload.get("dataMovimento"),
    }


PAYLOAD_MAPPERS: Dict[str, Callable[[Mapping[str, Any]], Dict[str, Any]]] = {
    "001": _banco_brasil,
    "341": _itau,
    "237": _bradesco,
    "033": _santander,
    "104": _caixa,
}


def parse_webhook_payload(bank_code: str, payload: Mapping[str, Any]) -> PaymentNotification:
    mapper = PAYLOAD_MAPPERS.get(bank_code)
    if mapper is None:
        raise UnsupportedBankError(bank_code)

    fields = mapper(payload)
    our_number = fields.get("our_number")
    if not our_number:
        raise InvalidWebhookPayload("Webhook payload has no our number")

    amount_paid = _amount(fields.get("amount_paid"))
    if amount_paid <= 0:
        raise InvalidWebhookPayload(f"Non-positive amount paid for {our_number}")

    payment_date = _date(fields.get("payment_date"))
    if payment_date is None:
        raise InvalidWebhookPayload(f"Webhook payload has no payment date for {our_number}")

    try:
        return PaymentNotification(
            our_number=str(our_number),
            amount_paid=amount_paid,
            payment_date=payment_date,
            credit_date=_date(fields.get("credit_date")),
            authentication_code=_optional_text(fields.get("authentication_code")),
            payment_channel=_optional_text(fields.get("payment_channel")) or CHANNEL_WEBHOOK,
        )
    except ValidationError as e:
        raise InvalidWebhookPayload(f"Webhook payload for {our_number} is malformed: {e.errors()[0]['msg']}") from e
