"""
주문 관련 공통 상수와 함수들
CRUD 계층: 모든 DB 트랜잭션 처리 담당
순환 import 방지를 위해 별도 파일로 분리
"""
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from services.order.models.shop_order_model import Order

class OrderStatus(str, Enum):
    """orders.status 값 (DB에 저장되는 문자열 그대로)"""
    AWAITING_PAYMENT = "Aguardando Pagamento"
    PENDING = "Pendente"  # N8N 등 외부 연동으로 들어온 주문
    PAID = "Pago"
    FINISHED = "Finalizada"
    CANCELLED = "Cancelado"

class DeliveryStatus(str, Enum):
    """orders.delivery_status 값"""
    PENDING = "Pendente"
    AWAITING_PICKUP = "Aguardando Coleta"
    DISPATCHED = "Despachado"
    DELIVERED = "Entregue"
    ATTEMPTED = "Tentativa de Entrega"

# 외부 워크플로로 내보내는 이벤트 이름
ORDER_EVENTS = {
    "CREATED": "order.created",
    "CANCELLED": "order.cancelled",
    "PAID": "order.paid",
    "DELIVERY_UPDATED": "order.delivery_updated",
    "STATUS_UPDATED": "order.status_updated",
}

def order_to_dict(order: Order) -> Dict[str, Any]:
    """Order ORM 객체를 응답/이벤트용 dict로 변환"""
    return {
        "id": order.id,
        "user_id": order.user_id,
        "status": order.status,
        "delivery_status": order.delivery_status,
        "delivery_info": order.delivery_info,
        "total_price": float(order.total_price) if order.total_price is not None else None,
        "shipping_cost": float(order.shipping_cost) if order.shipping_cost is not None else None,
        "payment_method": order.payment_method,
        "created_at": order.created_at.isoformat() if order.created_at else None,
    }

async def get_order_by_id(db: AsyncSession, order_id: int) -> Optional[Order]:
    """
    주문 ID로 주문 조회

    Args:
        db: 데이터베이스 세션
        order_id: 조회할 주문 ID

    Returns:
        Order: 주문 객체 (없으면 None)

    Note:
        - CRUD 계층: DB 조회만 담당, 트랜잭션 변경 없음
    """
    result = await db.execute(select(Order).where(Order.id == order_id))
    return result.scalar_one_or_none()
