"""
Boleto use cases exposed over HTTP.
Thin wrappers around the bank adapters that add audit records; failures propagate to the API layer.
"""
from typing import List, Optional, Sequence

from banking.boleto.schemas import BoletoCharge, BoletoResult, BoletoStatus, PaymentNotification, PixQrCode
from banking.core.logger import audit_log, logger
from banking.core.utils import mask_cpf_cnpj
from banking.factory import Adapter


def register_boleto(adapter: Adapter, charge: BoletoCharge, caller: str, correlation_id: str) -> BoletoResult:
    result = adapter.register_boleto(charge)

    audit_log(
        action="boleto_registered" if result.success else "boleto_rejected",
        user=caller,
        resource=f"bank={adapter.bank_code} our_number={charge.our_number}",
        details={
            "correlation_id": correlation_id,
            "amount": str(charge.amount),
            "due_date": charge.due_date.isoformat(),
            "payer": mask_cpf_cnpj(charge.payer.document),
            "error": result.error_message,
        }
    )
    return result


def cancel_boleto(adapter: Adapter, our_number: str, caller: str, correlation_id: str) -> bool:
    cancelled = adapter.cancel_boleto(our_number)

    audit_log(
        action="boleto_cancelled" if cancelled else "boleto_cancel_failed",
        user=caller,
        resource=f"bank={adapter.bank_code} our_number={our_number}",
        details={"correlation_id": correlation_id}
    )
    return cancelled


def get_boleto_status(adapter: Adapter, our_number: str) -> BoletoStatus:
    status = adapter.get_boleto_status(our_number)
    logger.info(f"Boleto status: bank={adapter.bank_code}, our_number={our_number}, status={status.value}")
    return status


def generate_pix(adapter: Adapter, charge: BoletoCharge, caller: str, correlation_id: str) -> PixQrCode:
    qr_code = adapter.generate_pix_qr_code(charge)

    audit_log(
        action="boleto_pix_generated",
        user=caller,
        resource=f"bank={adapter.bank_code} our_number={charge.our_number}",
        details={"correlation_id": correlation_id, "amount": str(charge.amount)}
    )
    return qr_code


def generate_remittance(
    adapter: Adapter,
    charges: Sequence[BoletoCharge],
    caller: str,
    correlation_id: str,
    file_sequence: Optional[int] = None,
) -> str:
    content = adapter.generate_remittance_file(charges, file_sequence=file_sequence)

    audit_log(
        action="cnab_remittance_generated",
        user=caller,
        resource=f"bank={adapter.bank_code}",
        details={
            "correlation_id": correlation_id,
            "charges": len(charges),
            "total": str(sum(c.amount for c in charges)),
        }
    )
    return content


def process_return(adapter: Adapter, content: str, caller: str, correlation_id: str) -> List[PaymentNotification]:
    payments = adapter.process_return_file(content)

    audit_log(
        action="cnab_return_processed",
        user=caller,
        resource=f"bank={adapter.bank_code}",
        details={
            "correlation_id": correlation_id,
            "settlements": len(payments),
            "our_numbers": [p.our_number for p in payments],
        }
    )
    return payments
