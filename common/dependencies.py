import hmac
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from common.auth.jwt_handler import extract_bearer_token, verify_token
from common.database.postgres_shop import get_shop_db
from common.errors import InvalidTokenException, NotAuthenticatedException, PermissionDeniedException
from common.logger import get_logger
from services.integration.crud.app_setting_crud import N8N_INTEGRATION_TOKEN_KEY, get_setting_value
from services.user.models.profile_model import ADMIN_ROLE, Profile
from services.user.schemas.current_user_schema import CurrentUser

from common.config import get_settings
settings = get_settings()

bearer_scheme = HTTPBearer(auto_error=False)
logger = get_logger("dependencies")

async def get_current_user(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
        db: AsyncSession = Depends(get_shop_db),
) -> CurrentUser:
    """Supabase 액세스 토큰 기반 사용자 인증 후 유저 정보(role 포함) 반환"""
    if credentials is None or not credentials.credentials:
        logger.warning("인증 헤더 누락")
        raise NotAuthenticatedException()

    payload = verify_token(credentials.credentials)
    if payload is None:
        logger.warning("토큰 검증 실패: 유효하지 않은 토큰")
        raise InvalidTokenException()

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("토큰 페이로드에 사용자 ID 누락")
        raise InvalidTokenException("Token sem identificação de usuário.")

    profile = await db.get(Profile, str(user_id))
    role = profile.role if profile is not None else None

    logger.debug(f"사용자 인증 성공: user_id={user_id}, role={role}")
    return CurrentUser(user_id=str(user_id), email=payload.get("email"), role=role)


async def get_current_admin_user(
        user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """role = adm 인 사용자만 통과"""
    if user.role != ADMIN_ROLE:
        logger.warning(f"관리자 권한 없음: user_id={user.user_id}, role={user.role}")
        raise PermissionDeniedException()
    return user


async def verify_integration_token(
        authorization: Optional[str] = Header(None),
        db: AsyncSession = Depends(get_shop_db),
) -> str:
    """
    기계 간 연동(N8N 등) 공유 시크릿 검증

    Note:
        - Service Role Key 또는 app_settings.n8n_integration_token 과 일치해야 통과
        - 통과 시 어떤 자격으로 통과했는지 문자열 반환 ("service_role" | "n8n")
    """
    token = extract_bearer_token(authorization)
    if not token:
        raise NotAuthenticatedException("Unauthorized. Use o Token de Integração do N8N ou a Service Key.")

    if hmac.compare_digest(token.encode("utf-8"), settings.supabase_service_role_key.encode("utf-8")):
        return "service_role"

    n8n_token = await get_setting_value(db, N8N_INTEGRATION_TOKEN_KEY)
    if n8n_token and hmac.compare_digest(token.encode("utf-8"), n8n_token.encode("utf-8")):
        return "n8n"

    logger.warning("연동 토큰 불일치")
    raise NotAuthenticatedException("Unauthorized. Use o Token de Integração do N8N ou a Service Key.")
