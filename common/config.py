# common/config.py

import os
from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache
from common.logger import get_logger
from typing import List, Optional

logger = get_logger("config")

class Settings(BaseSettings):
    database_url: str = Field(..., env="DATABASE_URL")

    supabase_jwt_secret: str = Field(..., env="SUPABASE_JWT_SECRET")
    jwt_algorithm: str = Field("HS256", env="JWT_ALGORITHM")
    jwt_audience: str = Field("authenticated", env="JWT_AUDIENCE")  # Supabase 액세스 토큰의 aud
    access_token_expire_minutes: int = Field(60, env="ACCESS_TOKEN_EXPIRE_MINUTES")
    supabase_service_role_key: str = Field(..., env="SUPABASE_SERVICE_ROLE_KEY")

    spoke_webhook_secret: Optional[str] = Field(None, env="SPOKE_WEBHOOK_SECRET")  # 비어 있으면 Spoke 웹훅 토큰 검사 생략

    mercadopago_api_url: str = Field("https://api.mercadopago.com", env="MERCADOPAGO_API_URL")
    pagseguro_api_url: str = Field("https://ws.pagseguro.uol.com.br", env="PAGSEGURO_API_URL")
    pagseguro_sandbox_api_url: str = Field("https://ws.sandbox.pagseguro.uol.com.br", env="PAGSEGURO_SANDBOX_API_URL")
    public_base_url: str = Field("http://localhost:8000", env="PUBLIC_BASE_URL")  # 결제 알림 URL 생성용
    http_timeout_seconds: float = Field(15.0, env="HTTP_TIMEOUT_SECONDS")

    local_timezone: str = Field("America/Sao_Paulo", env="LOCAL_TIMEZONE")

    app_name: str = Field("Tabacaria API", env="APP_NAME")
    debug: bool = Field(False, env="DEBUG")
    cors_origins: List[str] = Field(["*"], env="CORS_ORIGINS")

    class Config:
        env_file = os.path.join(os.path.dirname(__file__), "..", ".env")
        env_file_encoding = "utf-8"
        extra = "ignore"  # 정의되지 않은 환경변수 무시

@lru_cache()
def get_settings() -> Settings:
    logger.debug("환경 변수에서 애플리케이션 설정 로드 중")
    try:
        settings = Settings()
        logger.info(f"설정 로드 완료: 앱명={settings.app_name}, 디버그={settings.debug}")
        logger.debug(f"Spoke 웹훅 시크릿 설정 여부: {bool(settings.spoke_webhook_secret)}")
        return settings
    except Exception as e:
        logger.error(f"설정 로드 실패: {str(e)}")
        raise
