"""
Integration tests for the HTTP surface.
Bank APIs are stubbed at the transport layer; the adapter registry is overridden per test.
"""
import pytest
from datetime import timedelta
from decimal import Decimal
import hashlib
import hmac
import json

from fastapi.testclient import TestClient

from banking.boleto.dependencies import get_registry
from banking.core.config import settings
from banking.core.security import create_access_token
from banking.factory import AdapterRegistry
from banking.main import app
from conftest import detail_line

client = TestClient(app)

BOLETOS_PATH = "/cobrancas/v2/boletos"
REGISTERED = {
    "codigoBarraNumerico": "00191000000000000000123456700000001231700098000",
    "linhaDigitavel": "00190000090123456700000001231701198000000098000",
    "qrCode": {"url": "https://qr.bb.com.br/img/abc", "emv": "000201010212"},
}


def auth_headers(subject="billing"):
    return {"Authorization": f"Bearer {create_access_token({'sub': subject})}"}


def charge_json(our_number="0000000123"):
    return {
        "our_number": our_number,
        "amount": "980.00",
        "due_date": "2026-02-10",
        "payer": {
            "name": "José da Silva",
            "document": "12345678901",
            "address": {
                "street": "Rua das Acácias",
                "number": "100",
                "neighborhood": "Centro",
                "city": "São Paulo",
                "state": "SP",
                "zipcode": "01310100",
            },
        },
    }


@pytest.fixture
def bank(stub):
    stub.reply("POST", "/oauth/token", 200, {"access_token": "bb-token", "expires_in": 600})
    return stub


@pytest.fixture
def registry(bank, bb_credentials):
    registry = AdapterRegistry({"001": bb_credentials}, transport=bank.transport)
    app.dependency_overrides[get_registry] = lambda: registry
    yield registry
    app.dependency_overrides = {}


def test_health_check():
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Correlation-ID" in response.headers


def test_correlation_id_is_propagated():
    response = client.get("/health", headers={"X-Correlation-ID": "corr-abc"})
    assert response.headers["X-Correlation-ID"] == "corr-abc"


def test_list_banks():
    response = client.get("/banks")

    assert response.status_code == 200
    banks = response.json()
    assert len(banks) == 11
    assert {"code": "001", "name": "Banco do Brasil", "logo": "/banks/bb.svg", "available": True} in banks


def test_bank_operations_require_token(registry):
    response = client.post("/boletos/001", json=charge_json())
    assert response.status_code == 401


def test_expired_token_rejected(registry):
    token = create_access_token({"sub": "billing"}, expires_delta=timedelta(minutes=-1))
    response = client.post("/boletos/001", json=charge_json(), headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_register_boleto(registry, bank):
    bank.reply("POST", BOLETOS_PATH, 201, REGISTERED)

    response = client.post("/boletos/001", json=charge_json(), headers=auth_headers())

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["barcode"] == REGISTERED["codigoBarraNumerico"]
    assert data["pix_copy_paste"] == "000201010212"


def test_register_boleto_rejection_is_not_http_error(registry, bank):
    bank.reply("POST", BOLETOS_PATH, 400, {"erros": [{"mensagem": "Convenio invalido"}]})

    response = client.post("/boletos/001", json=charge_json(), headers=auth_headers())

    assert response.status_code == 200
    assert response.json()["success"] is False
    assert response.json()["error_message"] == "Convenio invalido"


def test_register_boleto_validation_error(registry):
    payload = charge_json()
    payload["amount"] = "-5"

    response = client.post("/boletos/001", json=payload, headers=auth_headers())

    assert response.status_code == 422


@pytest.mark.parametrize("bank_code,status_code", [("999", 404), ("237", 501), ("341", 503)])
def test_bank_errors_map_to_http_status(registry, bank_code, status_code):
    """Unknown bank, pending integration and missing credentials."""
    response = client.post(f"/boletos/{bank_code}", json=charge_json("123"), headers=auth_headers())

    assert response.status_code == status_code
    assert response.json()["bank_code"] == bank_code
    assert "correlation_id" in response.json()


def test_authentication_failure_is_bad_gateway(registry, bank):
    bank.reply("POST", "/oauth/token", 401, {"error": "invalid_client"})

    response = client.get("/boletos/001/123/status", headers=auth_headers())

    assert response.status_code == 502
    assert response.json()["error"] == "AuthenticationError"
    assert "invalid_client" not in response.text


def test_boleto_status(registry, bank):
    bank.reply("GET", f"{BOLETOS_PATH}/12345670000000123", 200, {"codigoEstadoTituloCobranca": 6})

    response = client.get("/boletos/001/123/status", headers=auth_headers())

    assert response.status_code == 200
    assert response.json() == {"bank_code": "001", "our_number": "123", "status": "paid"}


def test_cancel_boleto(registry, bank):
    bank.reply("POST", f"{BOLETOS_PATH}/12345670000000123/baixar", 200, {})

    response = client.delete("/boletos/001/123", headers=auth_headers())

    assert response.status_code == 200
    assert response.json()["cancelled"] is True


def test_boleto_pix(registry, bank):
    bank.reply("POST", BOLETOS_PATH, 201, REGISTERED)

    response = client.post("/boletos/001/pix", json=charge_json(), headers=auth_headers())

    assert response.status_code == 200
    assert response.json() == {"qr_code": "https://qr.bb.com.br/img/abc", "copy_paste": "000201010212"}


def test_boleto_pix_unavailable(registry, bank):
    bank.reply("POST", BOLETOS_PATH, 201, {k: v for k, v in REGISTERED.items() if k != "qrCode"})

    response = client.post("/boletos/001/pix", json=charge_json(), headers=auth_headers())

    assert response.status_code == 502
    assert response.json()["error"] == "PixUnavailableError"


def test_generate_remittance(registry):
    response = client.post(
        "/cnab/001/remessa",
        json={"charges": [charge_json("1"), charge_json("2")], "file_sequence": 7},
        headers=auth_headers(),
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    lines = response.text.split("\r\n")
    assert len(lines) == 8
    assert all(len(line) == 240 for line in lines)
    assert lines[0][157:163] == "000007"


def test_empty_remittance_is_rejected(registry):
    response = client.post("/cnab/001/remessa", json={"charges": []}, headers=auth_headers())
    assert response.status_code == 422


def test_remittance_overflow_is_unprocessable(registry):
    response = client.post(
        "/cnab/001/remessa",
        json={"charges": [charge_json("12345678901")]},
        headers=auth_headers(),
    )

    assert response.status_code == 422
    assert response.json()["error"] == "EncodingOverflow"


def test_process_return(registry):
    content = "\r\n".join([
        detail_line("001", "T", "06", {37: "12345670000000123"}),
        detail_line("001", "U", "06", {77: "000000000098000", 137: "11022026", 145: "12022026"}),
    ])

    response = client.post(
        "/cnab/001/retorno",
        content=content.encode("latin-1"),
        headers={**auth_headers(), "Content-Type": "text/plain"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["settlements"] == 1
    assert Decimal(data["total_paid"]) == Decimal("980.00")
    assert data["payments"][0]["our_number"] == "123"
    assert data["payments"][0]["payment_date"] == "2026-02-11"


def test_pix_brcode():
    response = client.post(
        "/pix/brcode",
        json={
            "key_type": "EMAIL",
            "pix_key": "financeiro@jardim.com.br",
            "merchant_name": "Condominio Jardim",
            "merchant_city": "Sao Paulo",
            "amount": "150.00",
        },
        headers=auth_headers(),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["payload"].startswith("000201")
    assert "5406150.00" in data["payload"]
    assert data["qr_code_url"].startswith(settings.PIX_QR_CODE_SERVICE_URL)


def test_pix_brcode_invalid_key():
    response = client.post(
        "/pix/brcode",
        json={"key_type": "CPF", "pix_key": "123", "merchant_name": "X", "merchant_city": "Y"},
        headers=auth_headers(),
    )
    assert response.status_code == 422


def bb_webhook(body):
    raw = json.dumps(body).encode()
    signature = hmac.new(b"whsec", raw, hashlib.sha256).hexdigest()
    return raw, {"x-webhook-signature": signature, "Content-Type": "application/json"}


def test_webhook_payment(monkeypatch):
    monkeypatch.setattr(settings, "WEBHOOK_SECRETS", {"001": "whsec"})
    raw, headers = bb_webhook({
        "numeroTituloCliente": "12345670000000123",
        "codigoEstadoTituloCobranca": 6,
        "valorPago": 980.0,
        "dataRecebimento": "11.02.2026",
        "canalPagamento": 3,
    })

    response = client.post("/webhooks/001", content=raw, headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["webhook_type"] == "payment"
    assert data["processed"] is True
    assert Decimal(data["payment"]["amount_paid"]) == Decimal("980")
    assert data["payment"]["our_number"] == "123"
    assert data["payment"]["payment_channel"] == "3"


def test_webhook_status_change_is_acknowledged(monkeypatch):
    monkeypatch.setattr(settings, "WEBHOOK_SECRETS", {"001": "whsec"})
    raw, headers = bb_webhook({"numeroTituloCliente": "1", "codigoEstadoTituloCobranca": 1})

    response = client.post("/webhooks/001", content=raw, headers=headers)

    assert response.status_code == 200
    assert response.json()["processed"] is False


def test_webhook_bad_signature(monkeypatch):
    monkeypatch.setattr(settings, "WEBHOOK_SECRETS", {"001": "whsec"})
    raw, headers = bb_webhook({"codigoEstadoTituloCobranca": 6})
    headers["x-webhook-signature"] = "0" * 64

    response = client.post("/webhooks/001", content=raw, headers=headers)

    assert response.status_code == 401


def test_webhook_without_configured_secret_rejected(monkeypatch):
    monkeypatch.setattr(settings, "WEBHOOK_SECRETS", {})
    raw, headers = bb_webhook({"codigoEstadoTituloCobranca": 6})

    response = client.post("/webhooks/001", content=raw, headers=headers)

    assert response.status_code == 401


def test_webhook_unusable_payment(monkeypatch):
    monkeypatch.setattr(settings, "WEBHOOK_SECRETS", {"001": "whsec"})
    raw, headers = bb_webhook({"codigoEstadoTituloCobranca": 6, "valorPago": 10})

    response = client.post("/webhooks/001", content=raw, headers=headers)

    assert response.status_code == 422
