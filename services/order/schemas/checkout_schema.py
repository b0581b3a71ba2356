"""
체크아웃 요청/응답 Pydantic 스키마
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, Literal, Optional

class CheckoutConfirmRequest(BaseModel):
    """
    기존 결제 대기 주문 취소 + 새 주문 생성 요청

    Attributes:
        pending_order_id: /api/checkout 응답으로 받은 기존 결제 대기 주문 ID
        payload: 새 장바구니 payload (프로시저 인자 그대로)
    """
    pending_order_id: int
    payload: Dict[str, Any] = Field(default_factory=dict)

class PendingOrderOut(BaseModel):
    id: int
    status: str
    total_price: Optional[float] = None
    created_at: Optional[str] = None

class CheckoutResponse(BaseModel):
    """체크아웃 시작 응답 (생성 완료 또는 사용자 확인 필요)"""
    outcome: Literal["created", "confirmation_required"]
    order: Optional[Dict[str, Any]] = None
    pending_order: Optional[PendingOrderOut] = None
    message: str

class CheckoutConfirmResponse(BaseModel):
    cancelled_order_id: int
    order: Dict[str, Any]
    message: str
