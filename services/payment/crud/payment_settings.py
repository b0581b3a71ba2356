"""
결제 게이트웨이 자격 증명 키 (app_settings)
"""
from typing import Optional, Tuple

from common.errors import ValidationException

TOKEN_TYPES = ("production", "test")

MERCADOPAGO_TOKEN_KEYS = {
    "production": "mercadopago_access_token",
    "test": "mercadopago_test_access_token",
}

PAGSEGURO_CREDENTIAL_KEYS = {
    "production": ("pagseguro_email", "pagseguro_token"),
    "test": ("pagseguro_test_email", "pagseguro_test_token"),
}

def require_token_type(token_type: Optional[str], message: str = "O tipo de token ('production' ou 'test') é obrigatório.") -> str:
    """'production' | 'test' 외 값이면 400"""
    if token_type not in TOKEN_TYPES:
        raise ValidationException(message)
    return token_type


def mercadopago_token_key(token_type: str) -> str:
    return MERCADOPAGO_TOKEN_KEYS[token_type]


def pagseguro_credential_keys(token_type: str) -> Tuple[str, str]:
    """(email 키, token 키)"""
    return PAGSEGURO_CREDENTIAL_KEYS[token_type]
