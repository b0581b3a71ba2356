"""
Spoke 배송 웹훅 수신 라우터
- 이 시스템 주문이 아닌 이벤트, 형식이 잘못된 이벤트는 200으로 받고 무시 (Spoke 재전송 방지)
"""
import hmac
import json
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from common.auth.jwt_handler import extract_bearer_token
from common.config import get_settings
from common.database.postgres_shop import get_shop_db
from common.errors import NotAuthenticatedException, UpstreamFailureException
from common.logger import get_logger
from services.delivery.crud.spoke_webhook_crud import apply_delivery_update, map_spoke_event, parse_order_id
from services.delivery.schemas.spoke_schema import SpokeWebhookResponse
from services.integration.crud.webhook_dispatch_crud import dispatch_event_in_background
from services.order.crud.order_common import ORDER_EVENTS

router = APIRouter(prefix="/api/webhooks", tags=["Webhooks/Delivery"])
logger = get_logger("spoke_router")


async def verify_spoke_secret(authorization: Optional[str] = Header(None)) -> None:
    """SPOKE_WEBHOOK_SECRET 이 설정된 경우에만 Bearer 토큰 검사"""
    secret = get_settings().spoke_webhook_secret
    if not secret:
        return
    token = extract_bearer_token(authorization) or ""
    if not hmac.compare_digest(token.encode("utf-8"), secret.encode("utf-8")):
        logger.warning("Spoke 웹훅 토큰 불일치")
        raise NotAuthenticatedException("Unauthorized")


@router.post("/spoke", response_model=SpokeWebhookResponse, response_model_exclude_none=True)
async def spoke_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_shop_db),
    _: None = Depends(verify_spoke_secret),
):
    """
    Spoke 배송 이벤트 수신

    Note:
        - data.external_id 가 "ORDER-<id>" 형식이 아니면 DB 쓰기 없이 200 {"message": "Ignorado"}
        - DB 반영 실패 시 500
    """
    try:
        payload = json.loads(await request.body())
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.info("JSON 파싱 불가 웹훅 무시")
        return SpokeWebhookResponse(message="Ignorado")

    if not isinstance(payload, dict):
        return SpokeWebhookResponse(message="Ignorado")

    event_type = payload.get("event_type")
    data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
    logger.info(f"Spoke 이벤트 수신: event_type={event_type}")

    order_id = parse_order_id(data.get("external_id"))
    if order_id is None:
        logger.info(f"유효한 주문 ID 없는 웹훅 무시: external_id={data.get('external_id')}")
        return SpokeWebhookResponse(message="Ignorado")

    values = map_spoke_event(event_type, data)
    try:
        await apply_delivery_update(db, order_id, values)
    except Exception as e:
        raise UpstreamFailureException("Erro no processamento do Webhook", e)

    background_tasks.add_task(
        dispatch_event_in_background,
        ORDER_EVENTS["DELIVERY_UPDATED"],
        {"id": order_id, "event_type": event_type, **values},
    )
    return SpokeWebhookResponse(success=True)
