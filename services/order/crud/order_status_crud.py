"""Order status/admin management CRUD functions."""

from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from common.errors import NotFoundException, ValidationException
from common.logger import get_logger
from services.order.models.shop_order_model import Order, OrderItem
from services.user.models.profile_model import FirstOrder

logger = get_logger("order_status_crud")

def build_order_update(
    status: Optional[str] = None,
    delivery_status: Optional[str] = None,
    tracking_code: Optional[str] = None,
    delivery_info: Optional[str] = None,
) -> Dict[str, Any]:
    """
    외부 연동 요청 필드를 orders UPDATE 값으로 변환

    Note:
        - tracking_code는 delivery_info에 "Rastreio: <코드>" 로 저장
        - delivery_info가 함께 오면 delivery_info가 우선
        - 빈 문자열은 보내지 않은 것으로 취급
    """
    values: Dict[str, Any] = {}
    if status:
        values["status"] = status
    if delivery_status:
        values["delivery_status"] = delivery_status
    if tracking_code:
        values["delivery_info"] = f"Rastreio: {tracking_code}"
    if delivery_info:
        values["delivery_info"] = delivery_info
    return values


async def update_order_fields(db: AsyncSession, order_id: int, values: Dict[str, Any]) -> Dict[str, Any]:
    """
    주문 상태 필드 갱신

    Args:
        db: 데이터베이스 세션
        order_id: 주문 ID
        values: build_order_update() 결과

    Returns:
        dict: 갱신된 주문 요약 (id, status, delivery_status, delivery_info)

    Raises:
        ValidationException: 갱신할 필드가 없는 경우
        NotFoundException: 주문이 없는 경우
    """
    if not values:
        raise ValidationException(
            "Nenhum campo para atualizar foi enviado (status, delivery_status, tracking_code)."
        )

    order = await db.get(Order, order_id)
    if order is None:
        logger.warning(f"갱신할 주문 없음: order_id={order_id}")
        raise NotFoundException("Pedido")

    for key, value in values.items():
        setattr(order, key, value)

    try:
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"주문 상태 갱신 실패: order_id={order_id}, error={str(e)}")
        raise

    logger.info(f"주문 상태 갱신 완료: order_id={order_id}, fields={list(values.keys())}")
    return {
        "id": order.id,
        "status": order.status,
        "delivery_status": order.delivery_status,
        "delivery_info": order.delivery_info,
    }


async def delete_user_orders(db: AsyncSession, target_user_id: str) -> Dict[str, Any]:
    """
    특정 사용자의 모든 주문 삭제 (관리자 전용)

    Args:
        db: 데이터베이스 세션
        target_user_id: 대상 사용자 ID

    Returns:
        dict: {"deleted_orders": int, "first_orders_cleared": bool}

    Note:
        - 주문 상품(order_items)을 먼저 지우고 주문을 삭제
        - primeiros_pedidos 정리 실패는 경고만 남기고 주문 삭제는 유지
    """
    order_ids = (
        await db.execute(select(Order.id).where(Order.user_id == target_user_id))
    ).scalars().all()

    try:
        if order_ids:
            await db.execute(delete(OrderItem).where(OrderItem.order_id.in_(order_ids)))
        await db.execute(delete(Order).where(Order.user_id == target_user_id))
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"주문 삭제 실패: target_user_id={target_user_id}, error={str(e)}")
        raise

    first_orders_cleared = True
    try:
        await db.execute(delete(FirstOrder).where(FirstOrder.user_id == target_user_id))
        await db.commit()
    except Exception as e:
        await db.rollback()
        first_orders_cleared = False
        logger.warning(f"첫 구매 기록 삭제 실패: target_user_id={target_user_id}, error={str(e)}")

    logger.info(f"주문 삭제 완료: target_user_id={target_user_id}, count={len(order_ids)}")
    return {"deleted_orders": len(order_ids), "first_orders_cleared": first_orders_cleared}
