"""Outbound workflow webhook dispatch functions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List

import httpx
from fastapi.encoders import jsonable_encoder
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from common.database.postgres_shop import SessionLocal
from common.http_utils import post_json
from common.logger import get_logger
from services.integration.models.integration_model import WebhookConfig

logger = get_logger("webhook_dispatch_crud")

async def get_active_webhook_urls(db: AsyncSession, event_type: str) -> List[str]:
    """
    이벤트에 연결된 활성 웹훅 URL 목록 조회

    Args:
        db: 데이터베이스 세션
        event_type: 이벤트 이름 (예: order.paid)

    Returns:
        List[str]: target_url 목록
    """
    result = await db.execute(
        select(WebhookConfig.target_url)
        .where(WebhookConfig.is_active.is_(True))
        .where(WebhookConfig.trigger_event == event_type)
        .order_by(WebhookConfig.id)
    )
    return list(result.scalars().all())


async def dispatch_event(db: AsyncSession, event_type: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    외부 워크플로(N8N 등)로 이벤트 전송

    Args:
        db: 데이터베이스 세션
        event_type: 이벤트 이름
        payload: 전송할 데이터

    Returns:
        dict: {"dispatched": 설정된 웹훅 수, "delivered": 2xx 응답 수}

    Note:
        - 웹훅마다 1회만 순차 호출 (재시도 없음)
        - 개별 전송 실패는 로그만 남기고 다음 웹훅 진행
    """
    urls = await get_active_webhook_urls(db, event_type)
    if not urls:
        logger.debug(f"설정된 웹훅 없음: event_type={event_type}")
        return {"dispatched": 0, "delivered": 0}

    body = {
        "event": event_type,
        "data": jsonable_encoder(payload),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    delivered = 0
    for url in urls:
        logger.info(f"웹훅 전송: event_type={event_type}, url={url}")
        try:
            resp = await post_json(url, json=body)
        except httpx.HTTPError as e:
            logger.error(f"웹훅 전송 실패: url={url}, error={str(e)}")
            continue
        if 200 <= resp.status_code < 300:
            delivered += 1
        else:
            logger.warning(f"웹훅 응답 오류: url={url}, status={resp.status_code}")

    return {"dispatched": len(urls), "delivered": delivered}


async def dispatch_event_in_background(event_type: str, payload: Dict[str, Any]) -> None:
    """
    BackgroundTasks 용 래퍼 (요청 세션이 닫힌 뒤 실행되므로 별도 세션 사용)
    """
    try:
        async with SessionLocal() as session:
            result = await dispatch_event(session, event_type, payload)
        logger.info(f"백그라운드 웹훅 전송 완료: event_type={event_type}, result={result}")
    except Exception as e:
        logger.error(f"백그라운드 웹훅 전송 실패: event_type={event_type}, error={str(e)}")
