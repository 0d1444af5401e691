"""
Centralized application configuration implementing the 12-Factor App methodology.
Bank credential bundles and webhook secrets are injected through the environment, never hard-coded.
"""
from typing import Any, Dict
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Immutable configuration schema backed by environment variables."""

    APP_NAME: str = "BankBridge"
    VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Service-to-service tokens accepted by the HTTP surface
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    LOG_LEVEL: str = "INFO"

    # Outbound bank calls
    HTTP_TIMEOUT_SECONDS: float = 30.0
    HTTP_MAX_RETRIES: int = 2
    HTTP_BACKOFF_BASE_SECONDS: float = 0.5
    HTTP_BACKOFF_MAX_SECONDS: float = 8.0

    # OAuth tokens are refreshed this many seconds before they expire
    TOKEN_SAFETY_MARGIN_SECONDS: int = 60

    # JSON mapping: {"001": {"environment": "sandbox", "client_id": "...", ...}}
    BANK_CREDENTIALS: Dict[str, Dict[str, Any]] = {}

    # JSON mapping: {"001": "secret", "341": "secret"}
    WEBHOOK_SECRETS: Dict[str, str] = {}
    WEBHOOK_ALLOW_UNSIGNED: bool = False

    PIX_QR_CODE_SERVICE_URL: str = "https://api.qrserver.com/v1/create-qr-code/"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


settings = Settings()
