"""app_settings key-value CRUD functions."""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from common.logger import get_logger
from services.integration.models.integration_model import AppSetting

logger = get_logger("app_setting_crud")

N8N_INTEGRATION_TOKEN_KEY = "n8n_integration_token"

async def get_setting_value(db: AsyncSession, key: str) -> Optional[str]:
    """
    설정 키 하나의 값 조회

    Args:
        db: 데이터베이스 세션
        key: app_settings.key

    Returns:
        Optional[str]: 값 (없거나 비어 있으면 None)
    """
    result = await db.execute(select(AppSetting.value).where(AppSetting.key == key))
    value = result.scalar_one_or_none()
    return value or None


async def get_setting_values(db: AsyncSession, keys: Iterable[str]) -> Dict[str, str]:
    """여러 설정 키를 한 번에 조회 (값이 있는 키만 반환)"""
    keys = list(keys)
    result = await db.execute(select(AppSetting).where(AppSetting.key.in_(keys)))
    return {row.key: row.value for row in result.scalars().all() if row.value}


async def upsert_setting(db: AsyncSession, key: str, value: str) -> None:
    """
    설정 값 저장 (키가 있으면 갱신, 없으면 추가)

    Note:
        - CRUD 계층: 커밋까지 담당
        - 토큰 값 자체는 로그에 남기지 않음
    """
    setting = await db.get(AppSetting, key)
    if setting is None:
        db.add(AppSetting(key=key, value=value))
    else:
        setting.value = value

    try:
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"설정 저장 실패: key={key}, error={str(e)}")
        raise
    logger.info(f"설정 저장 완료: key={key}")
