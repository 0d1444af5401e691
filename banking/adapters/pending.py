"""
Placeholder for banks that are catalogued but not integrated yet.
Every operation fails with BankNotImplementedError instead of pretending to succeed.
"""
from datetime import datetime
from typing import Any, List, Mapping, Optional, Sequence

from banking.boleto.schemas import BoletoCharge, BoletoResult, BoletoStatus, PaymentNotification, PixQrCode
from banking.core.exceptions import BankNotImplementedError
from banking.core.logger import logger


class PendingBankAdapter:
    def __init__(self, bank_code: str, bank_name: str, credentials: Optional[Mapping[str, Any]] = None, **_: Any) -> None:
        self.bank_code = bank_code
        self.bank_name = bank_name
        self.credentials = credentials
        logger.info(f"{bank_name} ({bank_code}) adapter created with pending integration")

    def _pending(self, operation: str) -> BankNotImplementedError:
        return BankNotImplementedError(self.bank_code, operation)

    def authenticate(self) -> Any:
        raise self._pending("authenticate")

    def register_boleto(self, charge: BoletoCharge) -> BoletoResult:
        raise self._pending("register_boleto")

    def cancel_boleto(self, our_number: str) -> bool:
        raise self._pending("cancel_boleto")

    def get_boleto_status(self, our_number: str) -> BoletoStatus:
        raise self._pending("get_boleto_status")

    def generate_pix_qr_code(self, charge: BoletoCharge) -> PixQrCode:
        raise self._pending("generate_pix_qr_code")

    def generate_remittance_file(
        self,
        charges: Sequence[BoletoCharge],
        file_sequence: Optional[int] = None,
        generated_at: Optional[datetime] = None,
    ) -> str:
        raise self._pending("generate_remittance_file")

    def process_return_file(self, content: str) -> List[PaymentNotification]:
        raise self._pending("process_return_file")

    def close(self) -> None:
        pass
