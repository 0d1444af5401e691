"""
Uniform contract every bank integration implements.
Holds the per-instance OAuth token cache and delegates CNAB work to the layout-driven builders and parser.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union
import ssl
import threading

import httpx

from banking.adapters.credentials import BankCredentials, Environment
from banking.boleto.schemas import BoletoCharge, BoletoResult, BoletoStatus, PaymentNotification, PixQrCode
from banking.cnab.layouts import REMITTANCE_PROFILES, RETURN_LAYOUTS, RemittanceProfile, ReturnLayout
from banking.cnab.remittance import build_remittance_file
from banking.cnab.returns import parse_return_file
from banking.cnab.segments import CnabCompany, RemittanceContext
from banking.core.config import settings
from banking.core.exceptions import (
    AuthenticationError,
    InvalidCredentialsError,
    NetworkError,
    PixUnavailableError,
)
from banking.core.http import BankHttpClient
from banking.core.logger import logger
from banking.core.utils import now_brasilia

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class OAuthToken:
    access_token: str
    expires_at: datetime

    def is_expired(self, now: datetime, margin_seconds: int = 60) -> bool:
        return now >= self.expires_at - timedelta(seconds=margin_seconds)


class BankAdapter(ABC):
    """
    Base class for bank adapters.
    One instance serves one credential bundle; token refresh is single-flight per instance.
    """

    bank_code: str = ""
    bank_name: str = ""
    base_urls: Dict[Environment, str] = {}
    required_credentials: Sequence[str] = ()
    status_map: Dict[str, BoletoStatus] = {}

    def __init__(
        self,
        credentials: Union[BankCredentials, Mapping[str, Any]],
        http_client: Optional[BankHttpClient] = None,
        transport: Optional[httpx.BaseTransport] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        if not isinstance(credentials, BankCredentials):
            credentials = BankCredentials.model_validate(credentials)

        missing = credentials.missing(*self.required_credentials)
        if missing:
            raise InvalidCredentialsError(
                f"{self.bank_name} credentials missing: {', '.join(missing)}", self.bank_code
            )

        self.credentials = credentials
        self._clock = clock or utcnow
        self._token: Optional[OAuthToken] = None
        self._token_lock = threading.Lock()
        self._http = http_client or BankHttpClient(
            self.base_url,
            verify=self._tls_verify(),
            transport=transport,
            bank_code=self.bank_code,
        )

    @property
    def base_url(self) -> str:
        return self.base_urls[self.credentials.environment]

    @property
    def token(self) -> Optional[OAuthToken]:
        return self._token

    def _tls_verify(self) -> Union[bool, ssl.SSLContext]:
        return True

    # Authentication

    @abstractmethod
    def authenticate(self) -> OAuthToken:
        """Exchanges credentials for an access token and stores it on the instance."""

    def ensure_authenticated(self) -> str:
        """Returns a valid access token, refreshing at most once across concurrent callers."""
        margin = settings.TOKEN_SAFETY_MARGIN_SECONDS
        token = self._token
        if token is not None and not token.is_expired(self._clock(), margin):
            return token.access_token

        with self._token_lock:
            token = self._token
            if token is None or token.is_expired(self._clock(), margin):
                token = self.authenticate()
            return token.access_token

    def _request_token(self, url: str, **kwargs: Any) -> OAuthToken:
        try:
            response = self._http.post(url, **kwargs)
        except NetworkError as e:
            raise AuthenticationError(
                f"{self.bank_name} authentication endpoint unreachable: {e.message}", self.bank_code
            ) from e
        return self._store_token(response)

    def _store_token(self, response: httpx.Response) -> OAuthToken:
        body = self._json(response)
        if response.status_code >= 400 or not isinstance(body, dict) or not body.get("access_token"):
            logger.error(f"{self.bank_name} authentication failed: status={response.status_code}")
            raise AuthenticationError(
                f"{self.bank_name} authentication failed (HTTP {response.status_code})",
                self.bank_code,
                upstream_body=body,
            )

        expires_in = int(body.get("expires_in") or 3600)
        self._token = OAuthToken(
            access_token=body["access_token"],
            expires_at=self._clock() + timedelta(seconds=expires_in),
        )
        logger.info(f"{self.bank_name} token refreshed, expires_in={expires_in}s")
        return self._token

    def _bearer(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.ensure_authenticated()}"}

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text or None

    # Boleto operations

    @abstractmethod
    def register_boleto(self, charge: BoletoCharge) -> BoletoResult:
        ...

    @abstractmethod
    def cancel_boleto(self, our_number: str) -> bool:
        ...

    @abstractmethod
    def get_boleto_status(self, our_number: str) -> BoletoStatus:
        ...

    def map_status(self, code: Any) -> BoletoStatus:
        """Bank status code to the uniform vocabulary; unmapped codes are `unknown`."""
        key = str(code).strip().lower() if code is not None else ""
        status = self.status_map.get(key)
        if status is None:
            logger.warning(f"{self.bank_name} unmapped status code: {code!r}")
            return BoletoStatus.UNKNOWN
        return status

    def generate_pix_qr_code(self, charge: BoletoCharge) -> PixQrCode:
        """PIX is issued jointly with the boleto: registers it and extracts the PIX fields."""
        result = self.register_boleto(charge)
        if result.success and result.pix_qr_code:
            return PixQrCode(qr_code=result.pix_qr_code, copy_paste=result.pix_copy_paste or "")

        raise PixUnavailableError(
            result.error_message or f"{self.bank_name} returned no PIX data",
            self.bank_code,
            bank_response=result.bank_response,
        )

    # CNAB

    @property
    def remittance_profile(self) -> RemittanceProfile:
        return REMITTANCE_PROFILES[self.bank_code]

    @property
    def return_layout(self) -> ReturnLayout:
        return RETURN_LAYOUTS[self.bank_code]

    def cnab_company(self) -> CnabCompany:
        creds = self.credentials
        return CnabCompany(
            document=creds.company_document or "",
            name=creds.company_name or "",
            agreement=creds.agreement_number or "",
            agency=creds.agency or "",
            agency_digit=creds.agency_digit or "",
            account=creds.account or "",
            account_digit=creds.account_digit or "",
        )

    @abstractmethod
    def cnab_our_number(self, our_number: str) -> str:
        """Bank-specific 20-character our-number block of Segment P."""

    def generate_remittance_file(
        self,
        charges: Sequence[BoletoCharge],
        file_sequence: Optional[int] = None,
        generated_at: Optional[datetime] = None,
    ) -> str:
        generated_at = generated_at or now_brasilia()
        if file_sequence is None:
            file_sequence = int(generated_at.timestamp()) % 1_000_000

        ctx = RemittanceContext(
            profile=self.remittance_profile,
            company=self.cnab_company(),
            our_number_block=self.cnab_our_number,
            generated_at=generated_at,
            file_sequence=file_sequence,
            wallet_kind=self.credentials.cnab_wallet_kind,
        )
        return build_remittance_file(ctx, charges)

    def process_return_file(self, content: str) -> List[PaymentNotification]:
        return parse_return_file(content, self.return_layout)

    def close(self) -> None:
        self._http.close()
