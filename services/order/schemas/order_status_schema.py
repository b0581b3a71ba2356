"""
주문 상태 갱신 / 관리자 주문 삭제 Pydantic 스키마
"""
from pydantic import BaseModel, Field
from typing import Optional

class OrderStatusUpdateRequest(BaseModel):
    """
    N8N 등 외부 워크플로에서 보내는 주문 상태 갱신 요청

    Note:
        - order_id 누락 시 400 (라우터에서 검사, 422 대신 400으로 응답하기 위해 Optional)
    """
    order_id: Optional[int] = None
    status: Optional[str] = None
    delivery_status: Optional[str] = None
    tracking_code: Optional[str] = None
    delivery_info: Optional[str] = None

class OrderStatusSummary(BaseModel):
    id: int
    status: Optional[str] = None
    delivery_status: Optional[str] = None
    delivery_info: Optional[str] = None

class OrderStatusUpdateResponse(BaseModel):
    success: bool = True
    message: str
    data: OrderStatusSummary

class AdminDeleteOrdersRequest(BaseModel):
    target_user_id: Optional[str] = Field(None, alias="targetUserId")

    class Config:
        populate_by_name = True

class AdminDeleteOrdersResponse(BaseModel):
    message: str
    deleted_orders: int
