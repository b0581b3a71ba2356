"""
주문 상태 갱신(외부 워크플로) API 라우터
Router 계층: HTTP 요청/응답 처리, 파라미터 검증, 의존성 주입만 담당
"""
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from common.database.postgres_shop import get_shop_db
from common.dependencies import verify_integration_token
from common.errors import UpstreamFailureException, ValidationException
from common.logger import get_logger
from services.integration.crud.webhook_dispatch_crud import dispatch_event_in_background
from services.order.crud.order_common import ORDER_EVENTS
from services.order.crud.order_status_crud import build_order_update, update_order_fields
from services.order.schemas.order_status_schema import (
    OrderStatusUpdateRequest,
    OrderStatusUpdateResponse,
)

router = APIRouter(prefix="/api/orders", tags=["Orders/Integration"])
logger = get_logger("order_status_router")


@router.post("/status", response_model=OrderStatusUpdateResponse)
async def update_order_status(
    request: OrderStatusUpdateRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_shop_db),
    caller: str = Depends(verify_integration_token),
):
    """
    외부 워크플로(N8N)용 주문 상태 갱신

    Args:
        request: order_id(필수), status, delivery_status, tracking_code, delivery_info
        caller: 인증 주체 ("service_role" | "n8n")

    Returns:
        OrderStatusUpdateResponse: 갱신된 주문 요약

    Note:
        - order_id 누락 / 갱신 필드 없음 → 400
        - 토큰 불일치 → 401, 주문 없음 → 404
    """
    if not request.order_id:
        raise ValidationException("O campo 'order_id' é obrigatório.")

    values = build_order_update(
        status=request.status,
        delivery_status=request.delivery_status,
        tracking_code=request.tracking_code,
        delivery_info=request.delivery_info,
    )
    logger.info(f"주문 상태 갱신 요청: caller={caller}, order_id={request.order_id}, fields={list(values.keys())}")

    try:
        data = await update_order_fields(db, request.order_id, values)
    except HTTPException:
        raise
    except Exception as e:
        raise UpstreamFailureException("Falha ao atualizar o pedido", e)

    background_tasks.add_task(dispatch_event_in_background, ORDER_EVENTS["STATUS_UPDATED"], data)
    return OrderStatusUpdateResponse(message="Pedido atualizado com sucesso.", data=data)
