from fastapi import APIRouter, HTTPException, Request
import json

from banking.core.config import settings
from banking.core.logger import audit_log, get_logger_with_correlation
from banking.webhooks.schemas import WebhookResponse, WebhookType
from banking.webhooks.service import (
    InvalidWebhookPayload,
    detect_webhook_type,
    parse_webhook_payload,
    verify_signature,
)

router = APIRouter()


@router.post("/{bank_code}", response_model=WebhookResponse)
async def receive_bank_webhook(bank_code: str, request: Request) -> WebhookResponse:
    """
    Receives a bank notification.
    Authenticated by the bank's signature over the raw body, not by a service token.
    """
    correlation_id = getattr(request.state, "correlation_id", "N/A")
    logger = get_logger_with_correlation(correlation_id)

    raw_body = await request.body()
    if not verify_signature(bank_code, raw_body, request.headers, settings.WEBHOOK_SECRETS.get(bank_code)):
        logger.warning(f"Invalid webhook signature from bank {bank_code}")
        raise HTTPException(status_code=401, detail="Invalid signature")

    try:
        payload = json.loads(raw_body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Webhook body is not valid JSON")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Webhook body must be a JSON object")

    webhook_type = detect_webhook_type(bank_code, payload)
    logger.info(f"Webhook received: bank={bank_code}, type={webhook_type.value}")

    # Banks without event classification only send payment notifications
    if webhook_type in (WebhookType.CANCELLATION, WebhookType.STATUS_CHANGE):
        return WebhookResponse(bank_code=bank_code, webhook_type=webhook_type, processed=False)

    try:
        payment = parse_webhook_payload(bank_code, payload)
    except InvalidWebhookPayload as e:
        logger.warning(f"Unusable payment webhook from bank {bank_code}: {e}")
        raise HTTPException(status_code=422, detail=str(e))

    audit_log(
        action="webhook_payment_received",
        user=f"bank:{bank_code}",
        resource=f"our_number={payment.our_number}",
        details={
            "correlation_id": correlation_id,
            "amount_paid": str(payment.amount_paid),
            "payment_date": payment.payment_date.isoformat(),
        }
    )
    return WebhookResponse(bank_code=bank_code, webhook_type=webhook_type, processed=True, payment=payment)
