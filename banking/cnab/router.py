from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import PlainTextResponse
from typing import Optional
from uuid import uuid4

from banking.boleto.dependencies import get_adapter
from banking.boleto.service import generate_remittance, process_return
from banking.cnab.schemas import RemittanceRequest, ReturnFileResponse
from banking.core.security import require_service_token
from banking.factory import Adapter

router = APIRouter()


@router.post("/{bank_code}/remessa", response_class=PlainTextResponse)
def api_generate_remittance(
    bank_code: str,
    data: RemittanceRequest,
    adapter: Adapter = Depends(get_adapter),
    caller: str = Depends(require_service_token),
    x_correlation_id: Optional[str] = Header(default=None)
) -> PlainTextResponse:
    """Builds a CNAB 240 remittance file (CRLF-separated, 240 characters per line)."""
    correlation_id = x_correlation_id or str(uuid4())
    content = generate_remittance(adapter, data.charges, caller, correlation_id, file_sequence=data.file_sequence)
    return PlainTextResponse(
        content,
        headers={"Content-Disposition": f'attachment; filename="remessa_{bank_code}.rem"'},
    )


@router.post("/{bank_code}/retorno", response_model=ReturnFileResponse)
async def api_process_return(
    bank_code: str,
    request: Request,
    adapter: Adapter = Depends(get_adapter),
    caller: str = Depends(require_service_token),
    x_correlation_id: Optional[str] = Header(default=None)
) -> ReturnFileResponse:
    """Parses a CNAB 240 return file sent as the raw request body."""
    correlation_id = x_correlation_id or str(uuid4())
    content = (await request.body()).decode("latin-1")
    payments = process_return(adapter, content, caller, correlation_id)
    return ReturnFileResponse(
        bank_code=bank_code,
        settlements=len(payments),
        total_paid=sum(p.amount_paid for p in payments),
        payments=payments,
    )
