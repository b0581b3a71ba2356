"""
app_settings(키-값 설정) / webhook_configs(외부 워크플로 웹훅) ORM 모델 정의
"""
from sqlalchemy import Column, Integer, BigInteger, String, Text, Boolean

from common.database.base_postgres import PostgresBase

class AppSetting(PostgresBase):
    """
    app_settings 테이블 (결제 게이트웨이 토큰, N8N 연동 토큰 등)
    """
    __tablename__ = "app_settings"

    key = Column(String(120), primary_key=True)
    value = Column(Text, nullable=True)

class WebhookConfig(PostgresBase):
    """
    webhook_configs 테이블 (이벤트별 N8N 등 외부 수신 URL)
    """
    __tablename__ = "webhook_configs"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    trigger_event = Column(String(80), nullable=False, index=True)
    target_url = Column(String(500), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
