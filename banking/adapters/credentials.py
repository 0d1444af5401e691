from pydantic import BaseModel, ConfigDict, SecretStr
from typing import Optional
from enum import Enum


class Environment(str, Enum):
    SANDBOX = "sandbox"
    PRODUCTION = "production"


class BankCredentials(BaseModel):
    """
    Per-bank, per-environment secret bundle.
    Owned by exactly one adapter instance and immutable after construction.
    """
    environment: Environment = Environment.SANDBOX

    client_id: Optional[str] = None
    client_secret: Optional[SecretStr] = None
    certificate_path: Optional[str] = None
    certificate_key_path: Optional[str] = None
    certificate_password: Optional[SecretStr] = None
    api_key: Optional[str] = None
    merchant_id: Optional[str] = None

    # Banco do Brasil developer application key
    gw_app_key: Optional[str] = None

    agreement_number: Optional[str] = None
    wallet_code: Optional[str] = None
    wallet_variation: Optional[str] = None
    agency: Optional[str] = None
    agency_digit: Optional[str] = None
    account: Optional[str] = None
    account_digit: Optional[str] = None

    company_document: Optional[str] = None
    company_name: Optional[str] = None
    pix_key: Optional[str] = None

    # FEBRABAN wallet kind written in Segment P (1 = simple billing)
    cnab_wallet_kind: str = "1"

    model_config = ConfigDict(frozen=True, extra="ignore")

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    def missing(self, *fields: str) -> list[str]:
        return [name for name in fields if not getattr(self, name)]

    def secret(self, name: str) -> str:
        value = getattr(self, name)
        return value.get_secret_value() if value else ""
