"""
PagSeguro 자격 증명 CRUD 함수들
"""
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from common.config import get_settings
from common.errors import ValidationException
from common.http_utils import post_json
from common.logger import get_logger
from services.integration.crud.app_setting_crud import get_setting_values, upsert_setting
from services.payment.crud.payment_settings import pagseguro_credential_keys, require_token_type

logger = get_logger("pagseguro_crud")

def _sessions_url(token_type: str) -> str:
    settings = get_settings()
    base_url = settings.pagseguro_api_url if token_type == "production" else settings.pagseguro_sandbox_api_url
    return f"{base_url}/v2/sessions"


async def validate_pagseguro_credentials(email: str, token: str, token_type: str) -> bool:
    """세션 생성(POST /v2/sessions) 성공 여부로 자격 증명 확인"""
    response = await post_json(
        _sessions_url(token_type),
        params={"email": email, "token": token},
        headers={"Content-Type": "application/xml;charset=ISO-8859-1"},
    )
    if not response.is_success:
        logger.warning(f"PagSeguro 검증 실패: type={token_type}, status={response.status_code}")
    return response.is_success


async def save_pagseguro_credentials(
    db: AsyncSession,
    email: Optional[str],
    token: Optional[str],
    token_type: Optional[str],
) -> None:
    """
    PagSeguro 이메일/토큰 검증 후 저장

    Raises:
        ValidationException: 필드 누락, 자격 증명 무효
    """
    if not email or not token:
        raise ValidationException("O e-mail e o token são obrigatórios.")
    token_type = require_token_type(token_type, "O tipo ('production' ou 'test') é obrigatório.")

    if not await validate_pagseguro_credentials(email, token, token_type):
        raise ValidationException("As credenciais do PagSeguro fornecidas são inválidas.")

    email_key, token_key = pagseguro_credential_keys(token_type)
    await upsert_setting(db, email_key, email)
    await upsert_setting(db, token_key, token)


async def get_pagseguro_connection_status(db: AsyncSession, token_type: Optional[str]) -> bool:
    """저장된 자격 증명이 있고 PagSeguro에서 유효하면 True"""
    token_type = require_token_type(token_type, "O tipo ('production' ou 'test') é obrigatório.")
    email_key, token_key = pagseguro_credential_keys(token_type)

    values = await get_setting_values(db, [email_key, token_key])
    email = values.get(email_key)
    token = values.get(token_key)
    if not email or not token:
        return False
    return await validate_pagseguro_credentials(email, token, token_type)
