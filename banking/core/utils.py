from datetime import datetime, timedelta, timezone
import re


def only_digits(value: str) -> str:
    return re.sub(r'\D', '', value or "")


def mask_cpf_cnpj(doc: str) -> str:
    """
    Masks CPF or CNPJ for logs.
    CPF: ***.123.456-**
    CNPJ: **.***.123/0001-**
    """
    clean_doc = only_digits(doc)

    if len(clean_doc) == 11:  # CPF
        return f"***.{clean_doc[3:6]}.{clean_doc[6:9]}-**"
    elif len(clean_doc) == 14:  # CNPJ
        return f"**.***.{clean_doc[5:8]}/{clean_doc[8:12]}-**"
    else:
        if "@" in doc:  # Email
            user, domain = doc.split("@", 1)
            return f"{user[:2]}***@{domain}"
        return f"{doc[:3]}***{doc[-2:]}"


def inscription_type(doc: str) -> str:
    """FEBRABAN inscription type: 1 for CPF (11 digits), 2 for CNPJ."""
    return "1" if len(only_digits(doc)) == 11 else "2"


# Brasilia is UTC-3 (DST abolished)
BRASILIA_TZ = timezone(timedelta(hours=-3))


def now_brasilia() -> datetime:
    """Current wall-clock time in Brasilia; CNAB dates and times are local."""
    return datetime.now(timezone.utc).astimezone(BRASILIA_TZ)
