from functools import lru_cache

from fastapi import Depends

from banking.core.config import settings
from banking.factory import Adapter, AdapterRegistry


@lru_cache
def get_registry() -> AdapterRegistry:
    """Process-wide adapter registry built from the configured credential bundles."""
    return AdapterRegistry(settings.BANK_CREDENTIALS)


def get_adapter(bank_code: str, registry: AdapterRegistry = Depends(get_registry)) -> Adapter:
    return registry.get(bank_code)
