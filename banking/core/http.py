"""
Outbound HTTP client for bank APIs.
Imposes a timeout on every call and retries transport errors, 429 and 5xx with capped exponential backoff.
"""
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union
import ssl

import httpx

from banking.core.config import settings
from banking.core.exceptions import NetworkError
from banking.core.logger import logger

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


@dataclass
class HttpClientConfig:
    """HTTP client tuning."""

    timeout_seconds: float = 30.0
    max_retries: int = 2
    backoff_base_seconds: float = 0.5
    backoff_max_seconds: float = 8.0
    default_headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_settings(cls) -> "HttpClientConfig":
        return cls(
            timeout_seconds=settings.HTTP_TIMEOUT_SECONDS,
            max_retries=settings.HTTP_MAX_RETRIES,
            backoff_base_seconds=settings.HTTP_BACKOFF_BASE_SECONDS,
            backoff_max_seconds=settings.HTTP_BACKOFF_MAX_SECONDS,
        )


class BankHttpClient:
    """
    Synchronous httpx wrapper shared by one adapter instance.
    Returns the response for any non-retryable status; callers map 4xx themselves.
    """

    def __init__(
        self,
        base_url: str,
        config: Optional[HttpClientConfig] = None,
        verify: Union[bool, ssl.SSLContext] = True,
        transport: Optional[httpx.BaseTransport] = None,
        bank_code: Optional[str] = None,
    ) -> None:
        self._config = config or HttpClientConfig.from_settings()
        self.bank_code = bank_code
        self._client = httpx.Client(
            base_url=base_url,
            headers={"Content-Type": "application/json", **self._config.default_headers},
            timeout=self._config.timeout_seconds,
            verify=verify,
            transport=transport,
        )

    def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        for attempt in range(self._config.max_retries + 1):
            try:
                response = self._client.request(method, url, **kwargs)
            except (httpx.TimeoutException, httpx.TransportError) as exc:
                if attempt >= self._config.max_retries:
                    logger.error(f"Bank {self.bank_code} transport failure on {method} {url}: {exc}")
                    raise NetworkError(f"Transport failure calling {url}: {exc}", self.bank_code) from exc
                self._backoff(attempt)
                continue

            if response.status_code not in RETRYABLE_STATUS:
                return response
            if attempt >= self._config.max_retries:
                raise NetworkError(
                    f"Bank answered HTTP {response.status_code} on {url} after {attempt + 1} attempts",
                    self.bank_code,
                    status_code=response.status_code,
                )
            self._backoff(attempt)

        raise NetworkError(f"Retry budget exhausted for {url}", self.bank_code)

    def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("POST", url, **kwargs)

    def patch(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("PATCH", url, **kwargs)

    def close(self) -> None:
        self._client.close()

    def _backoff(self, attempt: int) -> None:
        delay = min((2 ** attempt) * self._config.backoff_base_seconds, self._config.backoff_max_seconds)
        logger.info(f"Bank {self.bank_code} retry backoff: attempt={attempt + 1}, delay={delay}s")
        time.sleep(delay)
