"""
Shared fixtures: sample charges, credential bundles and an httpx stub standing in for bank APIs.
"""
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Tuple
import json

import httpx
import pytest

from banking.boleto.schemas import Address, BoletoCharge, Payer
from banking.core.http import BankHttpClient

Handler = Callable[[httpx.Request], httpx.Response]


class BankStub:
    """Routes (method, path) to canned handlers and records every request it receives."""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Handler] = {}
        self.requests: List[httpx.Request] = []

    def on(self, method: str, path: str, handler: Handler) -> "BankStub":
        self.routes[(method, path)] = handler
        return self

    def reply(self, method: str, path: str, status_code: int = 200, body: Optional[object] = None) -> "BankStub":
        return self.on(method, path, lambda request: httpx.Response(status_code, json=body))

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def json_body(self, request: httpx.Request) -> dict:
        return json.loads(request.content)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"mensagem": f"no route for {request.method} {request.url.path}"})
        return handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    """Retries run without sleeping."""
    monkeypatch.setattr(BankHttpClient, "_backoff", lambda self, attempt: None)


@pytest.fixture
def stub() -> BankStub:
    return BankStub()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 20, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def payer() -> Payer:
    return Payer(
        name="José da Silva",
        document="123.456.789-01",
        email="jose.silva@example.com",
        phone="(11) 98765-4321",
        address=Address(
            street="Rua das Acácias",
            number="100",
            complement="Apto 12",
            neighborhood="Centro",
            city="São Paulo",
            state="sp",
            zipcode="01310-100",
        ),
    )


@pytest.fixture
def make_charge(payer):
    def _make(**overrides) -> BoletoCharge:
        data = {
            "our_number": "0000000123",
            "amount": Decimal("980.00"),
            "due_date": date(2026, 2, 10),
            "payer": payer,
            "instructions": ["Nao receber apos 30 dias"],
        }
        data.update(overrides)
        return BoletoCharge(**data)
    return _make


@pytest.fixture
def charge(make_charge) -> BoletoCharge:
    return make_charge()


@pytest.fixture
def bb_credentials() -> dict:
    return {
        "environment": "sandbox",
        "client_id": "bb-client",
        "client_secret": "bb-secret",
        "gw_app_key": "app-key-123",
        "agreement_number": "1234567",
        "wallet_code": "17",
        "wallet_variation": "35",
        "agency": "1234",
        "agency_digit": "5",
        "account": "123456",
        "account_digit": "7",
        "company_document": "12.345.678/0001-99",
        "company_name": "Condomínio Jardim das Flores",
    }


@pytest.fixture
def itau_credentials() -> dict:
    return {
        "environment": "sandbox",
        "client_id": "itau-client",
        "client_secret": "itau-secret",
        "agency": "0057",
        "account": "12345",
        "account_digit": "7",
        "wallet_code": "109",
        "company_document": "12345678000199",
        "company_name": "Condominio Jardim das Flores",
        "pix_key": "financeiro@jardim.com.br",
    }


def detail_line(bank_code: str, segment: str, movement: str, fields: Dict[int, str]) -> str:
    """240-character detail record with `fields` written at their 0-based offsets."""
    line = list(f"{bank_code}00013{1:05d}{segment} {movement}".ljust(240))
    for start, value in fields.items():
        line[start:start + len(value)] = value
    return "".join(line)
