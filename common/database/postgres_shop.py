"""
Supabase PostgreSQL 쇼핑몰 DB 세션 (shop_db)
"""
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from common.config import get_settings
from common.logger import get_logger

logger = get_logger("postgres_shop")

settings = get_settings()
engine = create_async_engine(settings.database_url, echo=settings.debug, pool_pre_ping=True)
SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

logger.info(f"PostgreSQL Shop 엔진 생성됨, 드라이버: {engine.url.drivername}, 호스트: {engine.url.host}")
logger.info(f"디버그 모드: {settings.debug}")

async def get_shop_db() -> AsyncGenerator[AsyncSession, None]:
    """쇼핑몰 DB 세션 반환"""
    logger.debug("쇼핑몰 데이터베이스 세션 생성 중")
    async with SessionLocal() as session:
        logger.debug("쇼핑몰 데이터베이스 세션 생성 완료")
        yield session
    logger.debug("쇼핑몰 데이터베이스 세션 종료됨")
