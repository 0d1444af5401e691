"""
Banco do Brasil (001) integration: Cobranças API v2 and CNAB 240.
OAuth client credentials over Basic auth; every call carries the developer application key.
"""
from datetime import date
from typing import Any, Dict, Optional

import httpx

from banking.adapters.base import BankAdapter, OAuthToken
from banking.adapters.credentials import Environment
from banking.boleto.schemas import BoletoCharge, BoletoResult, BoletoStatus
from banking.cnab.codec import pad_left
from banking.core.exceptions import BankIntegrationError, NetworkError
from banking.core.logger import logger
from banking.core.utils import mask_cpf_cnpj, only_digits

OAUTH_URLS = {
    Environment.PRODUCTION: "https://oauth.bb.com.br/oauth/token",
    Environment.SANDBOX: "https://oauth.sandbox.bb.com.br/oauth/token",
}

OAUTH_SCOPE = "cobrancas.boletos-info cobrancas.boletos-requisicao"

# codigoEstadoTituloCobranca
BB_STATUS_MAP: Dict[str, BoletoStatus] = {
    "1": BoletoStatus.PENDING,  # normal
    "2": BoletoStatus.IN_PROTEST,  # movimento cartório
    "3": BoletoStatus.IN_PROTEST,  # em cartório
    "4": BoletoStatus.PENDING,  # título com ocorrência
    "5": BoletoStatus.PROTESTED,  # protestado eletrônico
    "6": BoletoStatus.PAID,  # liquidado
    "7": BoletoStatus.CANCELLED,  # baixado
    "8": BoletoStatus.IN_PROTEST,  # título com pendência de cartório
    "9": BoletoStatus.PROTESTED,  # protestado manual
    "10": BoletoStatus.PAID,  # baixado/pago em cartório
    "11": BoletoStatus.PAID,  # liquidado/protestado
    "12": BoletoStatus.PAID,  # liquidado em cartório
    "13": BoletoStatus.PROTESTED,  # protestado aguardando baixa
    "14": BoletoStatus.SETTLING,  # em liquidação
    "15": BoletoStatus.SCHEDULED,  # agendado
    "16": BoletoStatus.PAID,  # creditado
    "17": BoletoStatus.SETTLING,  # pago em cheque, aguardando compensação
    "18": BoletoStatus.PARTIALLY_PAID,
    "21": BoletoStatus.OVERDUE,  # em aberto vencido
}

DISCOUNT_FIXED_AMOUNT = 1
INTEREST_MONTHLY_RATE = 2
FINE_PERCENTAGE = 2
TITLE_TYPE_DUPLICATA_MERCANTIL = 2


def bb_date(value: date) -> str:
    return value.strftime("%d.%m.%Y")


class BancoBrasilAdapter(BankAdapter):
    bank_code = "001"
    bank_name = "Banco do Brasil"
    base_urls = {
        Environment.PRODUCTION: "https://api.bb.com.br",
        Environment.SANDBOX: "https://api.sandbox.bb.com.br",
    }
    required_credentials = (
        "client_id",
        "client_secret",
        "gw_app_key",
        "agreement_number",
        "wallet_code",
        "wallet_variation",
    )
    status_map = BB_STATUS_MAP

    def authenticate(self) -> OAuthToken:
        creds = self.credentials
        return self._request_token(
            OAUTH_URLS[creds.environment],
            data={"grant_type": "client_credentials", "scope": OAUTH_SCOPE},
            auth=httpx.BasicAuth(creds.client_id or "", creds.secret("client_secret")),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

    def _params(self, **extra: Any) -> Dict[str, Any]:
        return {"gw-dev-app-key": self.credentials.gw_app_key, **extra}

    def title_number(self, our_number: str) -> str:
        """numeroTituloCliente: 7-digit agreement followed by the 10-digit our number."""
        agreement = pad_left(self.credentials.agreement_number, 7, field="agreement_number")
        return f"{agreement}{pad_left(our_number, 10, field='our_number')}"

    def cnab_our_number(self, our_number: str) -> str:
        return self.title_number(our_number)

    def build_payload(self, charge: BoletoCharge, issue_date: date) -> Dict[str, Any]:
        creds = self.credentials
        payer = charge.payer
        address = payer.address
        payload: Dict[str, Any] = {
            "numeroConvenio": int(creds.agreement_number),
            "numeroCarteira": int(creds.wallet_code),
            "numeroVariacaoCarteira": int(creds.wallet_variation),
            "codigoModalidade": 1,
            "dataEmissao": bb_date(issue_date),
            "dataVencimento": bb_date(charge.due_date),
            "valorOriginal": float(charge.amount),
            "valorAbatimento": 0,
            "quantidadeDiasProtesto": 0,
            "quantidadeDiasNegativacao": 0,
            "orgaoNegativador": 0,
            "indicadorAceiteTituloVencido": "S",
            "numeroDiasLimiteRecebimento": 30,
            "codigoAceite": "A",
            "codigoTipoTitulo": TITLE_TYPE_DUPLICATA_MERCANTIL,
            "descricaoTipoTitulo": "DUPLICATA MERCANTIL",
            "indicadorPermissaoRecebimentoParcial": "N",
            "numeroTituloBeneficiario": charge.our_number,
            "campoUtilizacaoBeneficiario": "",
            "numeroTituloCliente": self.title_number(charge.our_number),
            "mensagemBloquetoOcorrencia": " ".join(charge.instructions),
            "pagador": {
                "tipoInscricao": int(payer.inscription_type),
                "numeroInscricao": int(payer.document_digits),
                "nome": payer.name[:60],
                "endereco": address.line[:60],
                "cep": int(only_digits(address.zipcode)),
                "cidade": address.city[:60],
                "bairro": address.neighborhood[:60],
                "uf": address.state[:2],
                "telefone": only_digits(payer.phone or ""),
            },
            "indicadorPix": "S",
        }

        if charge.has_discount:
            payload["desconto"] = {
                "tipo": DISCOUNT_FIXED_AMOUNT,
                "dataExpiracao": bb_date(charge.discount_due_date or charge.due_date),
                "valor": float(charge.discount_amount),
            }
        if charge.has_interest:
            payload["jurosMora"] = {
                "tipo": INTEREST_MONTHLY_RATE,
                "porcentagem": float(charge.interest_percentage),
            }
        if charge.has_fine:
            payload["multa"] = {
                "tipo": FINE_PERCENTAGE,
                "data": bb_date(charge.due_date),
                "porcentagem": float(charge.fine_percentage),
            }
        return payload

    def register_boleto(self, charge: BoletoCharge) -> BoletoResult:
        headers = self._bearer()
        payload = self.build_payload(charge, self._clock().date())

        logger.info(
            f"BB registering boleto: our_number={charge.our_number}, amount={charge.amount}, "
            f"payer={mask_cpf_cnpj(charge.payer.document)}"
        )
        try:
            response = self._http.post("/cobrancas/v2/boletos", json=payload, params=self._params(), headers=headers)
        except NetworkError as e:
            logger.error(f"BB boleto registration unreachable: our_number={charge.our_number}: {e.message}")
            return BoletoResult.failure(e.message)

        body = self._json(response)
        if response.status_code >= 400:
            message = self.extract_error(body) or f"HTTP {response.status_code}"
            logger.warning(f"BB rejected boleto {charge.our_number}: {message}")
            return BoletoResult.failure(message, bank_response=body)

        return self.parse_registration(body)

    def parse_registration(self, body: Any) -> BoletoResult:
        body = body if isinstance(body, dict) else {}
        barcode = body.get("codigoBarraNumerico")
        digitable_line = body.get("linhaDigitavel")
        if not barcode or not digitable_line:
            return BoletoResult.failure("Banco do Brasil response lacks barcode or digitable line", body)

        qr_code = body.get("qrCode") or {}
        return BoletoResult(
            success=True,
            barcode=barcode,
            digitable_line=digitable_line,
            boleto_url=body.get("urlBoletoGeracao"),
            pix_qr_code=qr_code.get("url"),
            pix_copy_paste=qr_code.get("emv"),
            bank_response=body,
        )

    @staticmethod
    def extract_error(body: Any) -> Optional[str]:
        """BB error envelope: {"erros": [{"mensagem": ...}]}, OAuth gateway uses {"errors": [{"message": ...}]}."""
        if not isinstance(body, dict):
            return body if isinstance(body, str) and body else None
        for key, field in (("erros", "mensagem"), ("errors", "message")):
            items = body.get(key)
            if isinstance(items, list) and items and isinstance(items[0], dict) and items[0].get(field):
                return items[0][field]
        return body.get("message") or body.get("mensagem")

    def cancel_boleto(self, our_number: str) -> bool:
        try:
            response = self._http.post(
                f"/cobrancas/v2/boletos/{self.title_number(our_number)}/baixar",
                json={"numeroConvenio": int(self.credentials.agreement_number)},
                params=self._params(),
                headers=self._bearer(),
            )
        except BankIntegrationError as e:
            logger.error(f"BB boleto cancellation failed: our_number={our_number}: {e.message}")
            return False

        if response.status_code >= 400:
            logger.warning(
                f"BB refused cancellation of {our_number}: {self.extract_error(self._json(response))}"
            )
            return False

        logger.info(f"BB boleto cancelled: our_number={our_number}")
        return True

    def get_boleto_status(self, our_number: str) -> BoletoStatus:
        headers = self._bearer()
        try:
            response = self._http.get(
                f"/cobrancas/v2/boletos/{self.title_number(our_number)}",
                params=self._params(numeroConvenio=self.credentials.agreement_number),
                headers=headers,
            )
        except NetworkError as e:
            logger.error(f"BB status query unreachable: our_number={our_number}: {e.message}")
            return BoletoStatus.UNKNOWN

        body = self._json(response)
        if response.status_code >= 400 or not isinstance(body, dict):
            logger.warning(f"BB status query refused for {our_number}: {self.extract_error(body)}")
            return BoletoStatus.UNKNOWN

        return self.map_status(body.get("codigoEstadoTituloCobranca"))
