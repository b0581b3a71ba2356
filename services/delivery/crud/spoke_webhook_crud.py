"""Spoke delivery webhook mapping and apply functions."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from common.logger import get_logger
from services.order.crud.order_common import DeliveryStatus, OrderStatus
from services.order.models.shop_order_model import Order

logger = get_logger("spoke_webhook_crud")

EXTERNAL_ID_PREFIX = "ORDER-"
# orders.id (BIGINT) 최대값
MAX_ORDER_ID = 2**63 - 1

# event_type -> (delivery_status, delivery_info, order status)
SPOKE_EVENT_MAP = {
    "stop.allocated": (
        DeliveryStatus.AWAITING_PICKUP,
        "Motorista designado para a entrega.",
        None,
    ),
    "stop.out_for_delivery": (
        DeliveryStatus.DISPATCHED,
        "O motorista iniciou o trajeto até você.",
        None,
    ),
    "stop.completed": (
        DeliveryStatus.DELIVERED,
        "Pedido entregue com sucesso!",
        OrderStatus.FINISHED,
    ),
    "stop.attempted_delivery": (
        DeliveryStatus.ATTEMPTED,
        "O motorista tentou entregar, mas houve um imprevisto.",
        None,
    ),
}

def parse_order_id(external_id: Any) -> Optional[int]:
    """
    Spoke external_id("ORDER-<id>")에서 주문 ID 추출

    Returns:
        Optional[int]: 주문 ID (이 시스템의 주문이 아니면 None)
    """
    if not isinstance(external_id, str) or not external_id.startswith(EXTERNAL_ID_PREFIX):
        return None
    raw_id = external_id[len(EXTERNAL_ID_PREFIX):]
    # ASCII 숫자만 허용 ("²" 등은 int() 변환 불가)
    if not (raw_id.isascii() and raw_id.isdecimal()):
        return None
    order_id = int(raw_id)
    if order_id > MAX_ORDER_ID:
        return None
    return order_id


def map_spoke_event(event_type: Optional[str], data: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Spoke 이벤트를 orders UPDATE 값으로 변환

    Args:
        event_type: Spoke 이벤트 타입 (예: stop.allocated)
        data: 이벤트 data 객체

    Returns:
        dict: delivery_status, delivery_info (+ 배송 완료 시 status)

    Note:
        - 표 순서대로 첫 번째 일치 항목 적용
        - data.status == "completed" 는 이벤트 타입과 무관하게 배송 완료로 취급
          (단, allocated/out_for_delivery 가 먼저 일치하면 그쪽이 우선)
        - 알 수 없는 이벤트는 Pendente + Spoke가 보낸 마지막 메시지
    """
    if event_type in ("stop.allocated", "stop.out_for_delivery"):
        mapped = SPOKE_EVENT_MAP[event_type]
    elif event_type == "stop.completed" or data.get("status") == "completed":
        mapped = SPOKE_EVENT_MAP["stop.completed"]
    elif event_type == "stop.attempted_delivery":
        mapped = SPOKE_EVENT_MAP[event_type]
    else:
        mapped = (DeliveryStatus.PENDING, data.get("last_update_message") or "", None)

    delivery_status, delivery_info, order_status = mapped
    values: Dict[str, Any] = {
        "delivery_status": delivery_status.value,
        "delivery_info": delivery_info,
    }
    if order_status is not None:
        values["status"] = order_status.value
    return values


async def apply_delivery_update(db: AsyncSession, order_id: int, values: Dict[str, Any]) -> int:
    """
    배송 상태를 주문에 반영 (주문 ID 기준 단일 UPDATE)

    Args:
        db: 데이터베이스 세션
        order_id: 주문 ID
        values: map_spoke_event() 결과

    Returns:
        int: 갱신된 row 수 (0이면 해당 주문 없음)

    Note:
        - 낙관적 동시성 검사 없음: 마지막으로 수신한 이벤트가 최종 상태
        - 같은 이벤트를 여러 번 받아도 결과 row는 동일
    """
    try:
        result = await db.execute(update(Order).where(Order.id == order_id).values(**values))
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"배송 상태 반영 실패: order_id={order_id}, error={str(e)}")
        raise

    if result.rowcount == 0:
        logger.warning(f"배송 상태 반영 대상 주문 없음: order_id={order_id}")
    else:
        logger.info(f"배송 상태 반영 완료: order_id={order_id}, values={values}")
    return result.rowcount
