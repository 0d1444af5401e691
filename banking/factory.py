"""
Bank adapter factory, supported-bank catalogue and a lazy per-bank adapter registry.
"""
from functools import partial
from typing import Any, Callable, Dict, List, Mapping, Optional, Union
import threading

from banking.adapters.banco_brasil import BancoBrasilAdapter
from banking.adapters.base import BankAdapter
from banking.adapters.itau import ItauAdapter
from banking.adapters.pending import PendingBankAdapter
from banking.boleto.schemas import SupportedBank
from banking.core.exceptions import UnsupportedBankError
from banking.core.logger import logger

Adapter = Union[BankAdapter, PendingBankAdapter]

ADAPTERS: Dict[str, Callable[..., Adapter]] = {
    "001": BancoBrasilAdapter,
    "341": ItauAdapter,
    "237": partial(PendingBankAdapter, "237", "Bradesco"),
    "033": partial(PendingBankAdapter, "033", "Santander"),
    "104": partial(PendingBankAdapter, "104", "Caixa Econômica"),
    "756": partial(PendingBankAdapter, "756", "Sicoob"),
    "077": partial(PendingBankAdapter, "077", "Banco Inter"),
}

# (code, name, logo)
BANK_CATALOGUE = (
    ("001", "Banco do Brasil", "/banks/bb.svg"),
    ("341", "Itaú Unibanco", "/banks/itau.svg"),
    ("237", "Bradesco", "/banks/bradesco.svg"),
    ("033", "Santander", "/banks/santander.svg"),
    ("104", "Caixa Econômica", "/banks/caixa.svg"),
    ("756", "Sicoob", "/banks/sicoob.svg"),
    ("748", "Sicredi", "/banks/sicredi.svg"),
    ("077", "Banco Inter", "/banks/inter.svg"),
    ("212", "Banco Original", "/banks/original.svg"),
    ("260", "Nubank", "/banks/nubank.svg"),
    ("336", "C6 Bank", "/banks/c6.svg"),
)

IMPLEMENTED_BANKS = frozenset(
    code for code, builder in ADAPTERS.items() if not isinstance(builder, partial)
)


class BankFactory:
    @staticmethod
    def create(bank_code: str, credentials: Mapping[str, Any], **kwargs: Any) -> Adapter:
        """Builds the adapter for a bank code; unknown codes raise UnsupportedBankError."""
        builder = ADAPTERS.get(bank_code)
        if builder is None:
            logger.warning(f"Adapter requested for unsupported bank {bank_code}")
            raise UnsupportedBankError(bank_code)
        return builder(credentials, **kwargs)

    @staticmethod
    def get_supported_banks() -> List[SupportedBank]:
        return [
            SupportedBank(code=code, name=name, logo=logo, available=code in IMPLEMENTED_BANKS)
            for code, name, logo in BANK_CATALOGUE
        ]


class AdapterRegistry:
    """
    Holds one adapter per bank, created on first use from the configured credentials.
    Sharing an adapter shares its token cache.
    """

    def __init__(self, credentials_by_bank: Mapping[str, Mapping[str, Any]], **adapter_kwargs: Any) -> None:
        self._credentials = dict(credentials_by_bank)
        self._adapter_kwargs = adapter_kwargs
        self._adapters: Dict[str, Adapter] = {}
        self._lock = threading.Lock()

    def get(self, bank_code: str) -> Adapter:
        adapter = self._adapters.get(bank_code)
        if adapter is not None:
            return adapter

        with self._lock:
            adapter = self._adapters.get(bank_code)
            if adapter is None:
                credentials = self._credentials.get(bank_code, {})
                adapter = BankFactory.create(bank_code, credentials, **self._adapter_kwargs)
                self._adapters[bank_code] = adapter
            return adapter

    def close(self, bank_code: Optional[str] = None) -> None:
        with self._lock:
            codes = [bank_code] if bank_code else list(self._adapters)
            for code in codes:
                adapter = self._adapters.pop(code, None)
                if adapter is not None:
                    adapter.close()
