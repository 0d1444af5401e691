from fastapi import APIRouter, Depends, Header
from typing import Optional
from uuid import uuid4

from banking.boleto.dependencies import get_adapter
from banking.boleto.schemas import BoletoCharge, BoletoResult, CancelResponse, PixQrCode, StatusResponse
from banking.boleto.service import cancel_boleto, generate_pix, get_boleto_status, register_boleto
from banking.core.security import require_service_token
from banking.factory import Adapter

router = APIRouter()


@router.post("/{bank_code}", response_model=BoletoResult)
def api_register_boleto(
    bank_code: str,
    charge: BoletoCharge,
    adapter: Adapter = Depends(get_adapter),
    caller: str = Depends(require_service_token),
    x_correlation_id: Optional[str] = Header(default=None)
) -> BoletoResult:
    """
    Registers a boleto with the bank.
    Bank rejections come back as `success=false` with the bank's message; they are not HTTP errors.
    """
    correlation_id = x_correlation_id or str(uuid4())
    return register_boleto(adapter, charge, caller, correlation_id)


@router.delete("/{bank_code}/{our_number}", response_model=CancelResponse)
def api_cancel_boleto(
    bank_code: str,
    our_number: str,
    adapter: Adapter = Depends(get_adapter),
    caller: str = Depends(require_service_token),
    x_correlation_id: Optional[str] = Header(default=None)
) -> CancelResponse:
    correlation_id = x_correlation_id or str(uuid4())
    cancelled = cancel_boleto(adapter, our_number, caller, correlation_id)
    return CancelResponse(bank_code=bank_code, our_number=our_number, cancelled=cancelled)


@router.get("/{bank_code}/{our_number}/status", response_model=StatusResponse)
def api_boleto_status(
    bank_code: str,
    our_number: str,
    adapter: Adapter = Depends(get_adapter),
    caller: str = Depends(require_service_token)
) -> StatusResponse:
    status = get_boleto_status(adapter, our_number)
    return StatusResponse(bank_code=bank_code, our_number=our_number, status=status)


@router.post("/{bank_code}/pix", response_model=PixQrCode)
def api_boleto_pix(
    bank_code: str,
    charge: BoletoCharge,
    adapter: Adapter = Depends(get_adapter),
    caller: str = Depends(require_service_token),
    x_correlation_id: Optional[str] = Header(default=None)
) -> PixQrCode:
    """Registers a boleto with PIX enabled and returns the QR code and copy-and-paste string."""
    correlation_id = x_correlation_id or str(uuid4())
    return generate_pix(adapter, charge, caller, correlation_id)
