"""
Error taxonomy for the bank integration layer.
Registration, cancellation and status calls convert expected failures into results;
only configuration and programming errors escape the adapter boundary.
"""
from typing import Any, Optional


class BankIntegrationError(Exception):
    """Base class for every bank layer failure."""

    def __init__(self, message: str, bank_code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.bank_code = bank_code


class AuthenticationError(BankIntegrationError):
    """OAuth or mutual-TLS exchange failed. Fatal for the current operation, retryable on the next call."""

    def __init__(self, message: str, bank_code: Optional[str] = None, upstream_body: Any = None) -> None:
        super().__init__(message, bank_code)
        self.upstream_body = upstream_body


class NetworkError(BankIntegrationError):
    """Transport failure after the retry budget was exhausted."""

    def __init__(self, message: str, bank_code: Optional[str] = None, status_code: Optional[int] = None) -> None:
        super().__init__(message, bank_code)
        self.status_code = status_code


class BankRejection(BankIntegrationError):
    """The bank understood the request and declined it."""

    def __init__(
        self,
        message: str,
        bank_code: Optional[str] = None,
        status_code: Optional[int] = None,
        bank_response: Any = None,
    ) -> None:
        super().__init__(message, bank_code)
        self.status_code = status_code
        self.bank_response = bank_response


class PixUnavailableError(BankRejection):
    """The bank registered (or refused) the boleto without returning PIX data."""


class UnsupportedBankError(BankIntegrationError):
    def __init__(self, bank_code: str) -> None:
        super().__init__(f"Bank {bank_code} is not supported", bank_code)


class InvalidCredentialsError(BankIntegrationError):
    """Credential bundle is missing fields the adapter needs."""


class BankNotImplementedError(BankIntegrationError, NotImplementedError):
    """Placeholder for banks whose integration is pending."""

    def __init__(self, bank_code: str, operation: str) -> None:
        super().__init__(f"Operation '{operation}' is not yet implemented for bank {bank_code}", bank_code)
        self.operation = operation


class EncodingOverflow(BankIntegrationError, ValueError):
    """A value does not fit its fixed-width CNAB slot."""

    def __init__(self, field: str, value: str, length: int) -> None:
        super().__init__(f"Field '{field}' overflow: {len(value)} chars do not fit in {length}")
        self.field = field
        self.value = value
        self.length = length
