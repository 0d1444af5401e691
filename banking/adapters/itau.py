"""
Itaú (341) integration: Cash Management boleto API v2 and CNAB 240.
Production requires mutual TLS with the client certificate issued by the bank.
"""
from dataclasses import replace
from datetime import date
from typing import Any, Dict, Optional, Union
import ssl

from banking.adapters.base import BankAdapter, OAuthToken
from banking.adapters.credentials import Environment
from banking.boleto.schemas import BoletoCharge, BoletoResult, BoletoStatus
from banking.cnab.codec import modulo10, pad_left
from banking.cnab.segments import CnabCompany
from banking.core.exceptions import BankIntegrationError, InvalidCredentialsError, NetworkError
from banking.core.logger import logger
from banking.core.utils import mask_cpf_cnpj, only_digits

# situacao_geral_boleto
ITAU_STATUS_MAP: Dict[str, BoletoStatus] = {
    "em aberto": BoletoStatus.PENDING,
    "baixado": BoletoStatus.CANCELLED,
    "liquidado": BoletoStatus.PAID,
    "protestado": BoletoStatus.PROTESTED,
}

FINE_PERCENTAGE_CODE = "02"
INTEREST_MONTHLY_PERCENTAGE_CODE = "90"
DISCOUNT_FIXED_AMOUNT_CODE = "01"
WRITE_OFF_REQUESTED_BY_BENEFICIARY = "10"
SPECIES_DUPLICATA_MERCANTIL = "01"


def money(value: Any) -> str:
    return "%.2f" % value


class ItauAdapter(BankAdapter):
    bank_code = "341"
    bank_name = "Itaú"
    base_urls = {
        Environment.PRODUCTION: "https://api.itau.com.br",
        Environment.SANDBOX: "https://api.sandbox.itau.com.br",
    }
    required_credentials = (
        "client_id",
        "client_secret",
        "agency",
        "account",
        "account_digit",
        "wallet_code",
    )
    status_map = ITAU_STATUS_MAP

    def _tls_verify(self) -> Union[bool, ssl.SSLContext]:
        creds = self.credentials
        if creds.is_production and not creds.certificate_path:
            raise InvalidCredentialsError("Itaú production requires a client certificate", self.bank_code)
        if not creds.certificate_path:
            return True

        context = ssl.create_default_context()
        context.load_cert_chain(
            certfile=creds.certificate_path,
            keyfile=creds.certificate_key_path,
            password=creds.secret("certificate_password") or None,
        )
        return context

    def authenticate(self) -> OAuthToken:
        creds = self.credentials
        return self._request_token(
            "/oauth/token",
            json={
                "grant_type": "client_credentials",
                "client_id": creds.client_id,
                "client_secret": creds.secret("client_secret"),
            },
        )

    @property
    def beneficiary_id(self) -> str:
        creds = self.credentials
        return f"{creds.agency}{creds.account}{creds.account_digit}"

    def _boleto_path(self, our_number: str) -> str:
        number = pad_left(our_number, 8, field="our_number")
        return f"/cash_management/v2/boletos/{self.beneficiary_id}/{number}"

    def cnab_our_number(self, our_number: str) -> str:
        """Wallet (3) + our number (8) + DAC over agency/account/wallet/number, blank-filled to 20."""
        creds = self.credentials
        wallet = pad_left(creds.wallet_code, 3, field="wallet_code")
        number = pad_left(our_number, 8, field="our_number")
        agency = pad_left(only_digits(creds.agency), 4, field="agency")
        account = pad_left(only_digits(creds.account), 5, field="account")
        dac = modulo10(f"{agency}{account}{wallet}{number}")
        return f"{wallet}{number}{dac}".ljust(20)

    def cnab_company(self) -> CnabCompany:
        company = super().cnab_company()
        return replace(company, agreement="", account_digit="", agency_account_digit=company.account_digit)

    def build_payload(self, charge: BoletoCharge, issue_date: date) -> Dict[str, Any]:
        creds = self.credentials
        payer = charge.payer
        address = payer.address
        if payer.is_individual:
            person_type = {"codigo_tipo_pessoa": "F", "numero_cadastro_pessoa_fisica": payer.document_digits}
        else:
            person_type = {"codigo_tipo_pessoa": "J", "numero_cadastro_nacional_pessoa_juridica": payer.document_digits}

        boleto: Dict[str, Any] = {
            "descricao_instrumento_cobranca": "boleto",
            "tipo_boleto": "a vista",
            "codigo_carteira": creds.wallet_code,
            "valor_total_titulo": money(charge.amount),
            "codigo_especie": SPECIES_DUPLICATA_MERCANTIL,
            "data_emissao": issue_date.isoformat(),
            "pagador": {
                "pessoa": {
                    "nome_pessoa": payer.name[:50],
                    "tipo_pessoa": person_type,
                },
                "endereco": {
                    "nome_logradouro": address.line[:45],
                    "nome_bairro": address.neighborhood[:15],
                    "nome_cidade": address.city[:20],
                    "sigla_UF": address.state,
                    "numero_CEP": only_digits(address.zipcode),
                },
            },
            "dados_individuais_boleto": [
                {
                    "numero_nosso_numero": pad_left(charge.our_number, 8, field="our_number"),
                    "data_vencimento": charge.due_date.isoformat(),
                    "valor_titulo": money(charge.amount),
                    "texto_uso_beneficiario": charge.our_number,
                    "texto_seu_numero": charge.our_number[:10],
                }
            ],
            "lista_mensagem_cobranca": [{"mensagem": text[:40]} for text in charge.instructions[:4]],
        }

        if payer.email:
            boleto["pagador"]["texto_endereco_email"] = payer.email
        if charge.has_fine:
            boleto["multa"] = {
                "codigo_tipo_multa": FINE_PERCENTAGE_CODE,
                "quantidade_dias_multa": 1,
                "percentual_multa": money(charge.fine_percentage),
            }
        if charge.has_interest:
            boleto["juros"] = {
                "codigo_tipo_juros": INTEREST_MONTHLY_PERCENTAGE_CODE,
                "quantidade_dias_juros": 1,
                "percentual_juros": money(charge.interest_percentage),
            }
        if charge.has_discount:
            boleto["desconto"] = {
                "codigo_tipo_desconto": DISCOUNT_FIXED_AMOUNT_CODE,
                "descontos": [
                    {
                        "data_desconto": (charge.discount_due_date or charge.due_date).isoformat(),
                        "valor_desconto": money(charge.discount_amount),
                    }
                ],
            }

        payload: Dict[str, Any] = {
            "etapa_processo_boleto": "efetivacao",
            "beneficiario": {"id_beneficiario": self.beneficiary_id},
            "dado_boleto": boleto,
        }
        if creds.pix_key:
            payload["dados_qrcode"] = {"chave": creds.pix_key}
        return payload

    def register_boleto(self, charge: BoletoCharge) -> BoletoResult:
        headers = self._bearer()
        payload = self.build_payload(charge, self._clock().date())

        logger.info(
            f"Itaú registering boleto: our_number={charge.our_number}, amount={charge.amount}, "
            f"payer={mask_cpf_cnpj(charge.payer.document)}"
        )
        try:
            response = self._http.post("/cash_management/v2/boletos", json=payload, headers=headers)
        except NetworkError as e:
            logger.error(f"Itaú boleto registration unreachable: our_number={charge.our_number}: {e.message}")
            return BoletoResult.failure(e.message)

        body = self._json(response)
        if response.status_code >= 400:
            message = self.extract_error(body) or f"HTTP {response.status_code}"
            logger.warning(f"Itaú rejected boleto {charge.our_number}: {message}")
            return BoletoResult.failure(message, bank_response=body)

        return self.parse_registration(body)

    def parse_registration(self, body: Any) -> BoletoResult:
        body = body if isinstance(body, dict) else {}
        boleto = body.get("dado_boleto") or {}
        individual = (boleto.get("dados_individuais_boleto") or [{}])[0]
        barcode = individual.get("codigo_barras")
        digitable_line = individual.get("numero_linha_digitavel")
        if not barcode or not digitable_line:
            return BoletoResult.failure("Itaú response lacks barcode or digitable line", body)

        qr_code = body.get("dados_qrcode") or {}
        return BoletoResult(
            success=True,
            barcode=barcode,
            digitable_line=digitable_line,
            boleto_url=individual.get("url_boleto"),
            pix_qr_code=qr_code.get("base64_qrcode"),
            pix_copy_paste=qr_code.get("emv"),
            bank_response=body,
        )

    @staticmethod
    def extract_error(body: Any) -> Optional[str]:
        if isinstance(body, dict):
            return body.get("mensagem") or body.get("message")
        return body if isinstance(body, str) and body else None

    def cancel_boleto(self, our_number: str) -> bool:
        try:
            response = self._http.patch(
                self._boleto_path(our_number),
                json={
                    "tipo_baixa": WRITE_OFF_REQUESTED_BY_BENEFICIARY,
                    "motivo_baixa": "Solicitado pelo beneficiario",
                },
                headers=self._bearer(),
            )
        except BankIntegrationError as e:
            logger.error(f"Itaú boleto cancellation failed: our_number={our_number}: {e.message}")
            return False

        if response.status_code >= 400:
            logger.warning(
                f"Itaú refused cancellation of {our_number}: {self.extract_error(self._json(response))}"
            )
            return False

        logger.info(f"Itaú boleto cancelled: our_number={our_number}")
        return True

    def get_boleto_status(self, our_number: str) -> BoletoStatus:
        headers = self._bearer()
        try:
            response = self._http.get(self._boleto_path(our_number), headers=headers)
        except NetworkError as e:
            logger.error(f"Itaú status query unreachable: our_number={our_number}: {e.message}")
            return BoletoStatus.UNKNOWN

        body = self._json(response)
        if response.status_code >= 400 or not isinstance(body, dict):
            logger.warning(f"Itaú status query refused for {our_number}: {self.extract_error(body)}")
            return BoletoStatus.UNKNOWN

        return self.map_status(self.extract_status(body))

    @staticmethod
    def extract_status(body: Dict[str, Any]) -> Any:
        """situacao_geral_boleto lives on the individual slip inside dado_boleto."""
        boleto = body.get("dado_boleto") or {}
        individual = (boleto.get("dados_individuais_boleto") or [{}])[0]
        return individual.get("situacao_geral_boleto") or body.get("situacao_geral_boleto")
