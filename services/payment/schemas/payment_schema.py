"""
결제 게이트웨이 연동 Pydantic 스키마
"""
from pydantic import BaseModel, Field
from typing import Any, Optional

class MercadoPagoTokenRequest(BaseModel):
    """type: 'production' | 'test' (검사는 CRUD에서 400으로)"""
    token: Optional[str] = None
    type: Optional[str] = None

class PagSeguroTokenRequest(BaseModel):
    email: Optional[str] = None
    token: Optional[str] = None
    type: Optional[str] = None

class ConnectionStatusRequest(BaseModel):
    type: Optional[str] = None

class ConnectionStatusResponse(BaseModel):
    connected: bool

class GatewayMessageResponse(BaseModel):
    message: str

class PixPaymentRequest(BaseModel):
    order_id: Optional[int] = Field(None, alias="orderId")

    class Config:
        populate_by_name = True

class PixPaymentResponse(BaseModel):
    success: bool = True
    qr_code: Optional[str] = None
    qr_code_base64: Optional[str] = None
    payment_id: Optional[Any] = None

class PaymentWebhookAck(BaseModel):
    """Mercado Pago 재전송 방지를 위해 항상 200으로 내려가는 응답"""
    success: Optional[bool] = None
    message: Optional[str] = None
    error: Optional[str] = None
