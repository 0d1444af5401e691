from fastapi import APIRouter, Depends, Header, HTTPException
from typing import Optional
from uuid import uuid4

from banking.core.logger import get_logger_with_correlation
from banking.core.security import mask_sensitive_data, require_service_token
from banking.pix.brcode import build_pix_payload, qr_code_url
from banking.pix.schemas import PixBrCodeRequest, PixBrCodeResponse

router = APIRouter()


@router.post("/brcode", response_model=PixBrCodeResponse)
def generate_brcode(
    data: PixBrCodeRequest,
    caller: str = Depends(require_service_token),
    x_correlation_id: Optional[str] = Header(default=None)
) -> PixBrCodeResponse:
    """
    Generates a static PIX BR Code (copy-and-paste string) and its QR image URL.
    """
    correlation_id = x_correlation_id or str(uuid4())
    logger = get_logger_with_correlation(correlation_id)

    try:
        payload = build_pix_payload(
            key=data.pix_key,
            merchant_name=data.merchant_name,
            merchant_city=data.merchant_city,
            amount=data.amount,
            description=data.description,
            txid=data.txid,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"PIX BR Code generated for {caller}: key={mask_sensitive_data(data.pix_key)}, amount={data.amount}")
    return PixBrCodeResponse(payload=payload, qr_code_url=qr_code_url(payload))
