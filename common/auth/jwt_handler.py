"""
Supabase 액세스 토큰(JWT) 생성 및 검증 함수
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from common.config import get_settings
from common.logger import get_logger

settings = get_settings()
logger = get_logger("jwt_handler")

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    """JWT 액세스 토큰 생성 (운영 토큰은 Supabase Auth가 발급, 로컬 도구/테스트용)"""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode.setdefault("aud", settings.jwt_audience)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.supabase_jwt_secret, algorithm=settings.jwt_algorithm)
    logger.info(f"사용자 {data.get('sub', '알 수 없음')}에 대한 액세스 토큰이 생성되었습니다")
    return encoded_jwt


def verify_token(token: str):
    """JWT 토큰 검증 및 payload 반환 (실패 시 None)"""
    try:
        payload = jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
        return payload
    except JWTError as e:
        logger.debug(f"JWT 검증 실패: {repr(e)}")
        return None


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Authorization 헤더에서 Bearer 토큰 추출"""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()
