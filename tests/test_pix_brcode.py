"""
Unit tests for static PIX BR Code generation and PIX key validation.
"""
import pytest
from decimal import Decimal

from banking.pix.brcode import build_pix_payload, crc16_ccitt, qr_code_url
from banking.pix.schemas import PixBrCodeRequest, PixKeyType, validate_pix_key


def test_crc16_check_value():
    """CRC-16/CCITT-FALSE reference check value."""
    assert crc16_ccitt("123456789") == "29B1"


def test_payload_fields():
    payload = build_pix_payload(
        key="12345678901",
        merchant_name="Condomínio Jardim",
        merchant_city="Brasília",
        amount=Decimal("10"),
        txid="cond-2026-01",
    )

    assert payload.startswith("000201")
    assert "26330014br.gov.bcb.pix011112345678901" in payload
    assert "52040000" in payload
    assert "5303986" in payload
    assert "540510.00" in payload
    assert "5802BR" in payload
    assert "5917CONDOMINIO JARDIM" in payload
    assert "6008BRASILIA" in payload
    assert "62140510cond202601" in payload
    assert payload[-8:-4] == "6304"
    assert payload[-4:] == crc16_ccitt(payload[:-4])


def test_open_amount_and_default_txid():
    payload = build_pix_payload("financeiro@jardim.com.br", "Jardim", "Sao Paulo")

    assert "53039865802BR" in payload
    assert "62070503***" in payload


def test_names_are_truncated():
    payload = build_pix_payload(
        "financeiro@jardim.com.br",
        "Associação dos Moradores do Residencial",
        "Santo Antonio de Posse",
        description="Taxa condominial referente a janeiro",
    )

    assert "5924ASSOCIACAO DOS MORADORES6015" in payload
    assert "6015SANTO ANTONIO D62" in payload
    assert "0225TAXA CONDOMINIAL REFERENT5204" in payload


def test_non_positive_amount_rejected():
    with pytest.raises(ValueError):
        build_pix_payload("12345678901", "Jardim", "Sao Paulo", amount=Decimal("0"))


def test_qr_code_url_encodes_payload():
    url = qr_code_url("000201*", size=300)
    assert url.startswith("https://api.qrserver.com/v1/create-qr-code/?")
    assert "size=300x300" in url
    assert "data=000201%2A" in url


@pytest.mark.parametrize("key_type,key,expected", [
    (PixKeyType.CPF, "123.456.789-01", "12345678901"),
    (PixKeyType.CNPJ, "12.345.678/0001-99", "12345678000199"),
    (PixKeyType.EMAIL, "Financeiro@Jardim.com.br", "financeiro@jardim.com.br"),
    (PixKeyType.PHONE, "(11) 98765-4321", "+5511987654321"),
    (PixKeyType.PHONE, "+55 11 98765-4321", "+5511987654321"),
    (PixKeyType.RANDOM, "123E4567-E89B-12D3-A456-426614174000", "123e4567-e89b-12d3-a456-426614174000"),
])
def test_validate_pix_key(key_type, key, expected):
    assert validate_pix_key(key_type, key) == expected


@pytest.mark.parametrize("key_type,key", [
    (PixKeyType.CPF, "12345"),
    (PixKeyType.CNPJ, "123456789"),
    (PixKeyType.EMAIL, "email-invalido"),
    (PixKeyType.PHONE, "1234"),
    (PixKeyType.RANDOM, "not-a-uuid"),
])
def test_invalid_pix_keys(key_type, key):
    with pytest.raises(ValueError):
        validate_pix_key(key_type, key)


def test_request_schema_normalizes_key():
    data = PixBrCodeRequest(
        key_type=PixKeyType.CPF,
        pix_key="123.456.789-01",
        merchant_name="Jardim",
        merchant_city="Sao Paulo",
    )
    assert data.pix_key == "12345678901"
