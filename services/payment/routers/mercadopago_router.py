"""
Mercado Pago 연동 API 라우터
Router 계층: HTTP 요청/응답 처리, 파라미터 검증, 의존성 주입만 담당
"""
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from common.database.postgres_shop import get_shop_db
from common.dependencies import get_current_admin_user, get_current_user
from common.errors import UpstreamFailureException
from common.logger import get_logger
from services.integration.crud.webhook_dispatch_crud import dispatch_event_in_background
from services.order.crud.order_common import ORDER_EVENTS
from services.payment.crud.mercadopago_crud import (
    PAYMENT_TOPICS,
    create_pix_payment,
    get_mercadopago_connection_status,
    process_payment_notification,
    save_mercadopago_token,
)
from services.payment.schemas.payment_schema import (
    ConnectionStatusRequest,
    ConnectionStatusResponse,
    GatewayMessageResponse,
    MercadoPagoTokenRequest,
    PaymentWebhookAck,
    PixPaymentRequest,
    PixPaymentResponse,
)
from services.user.schemas.current_user_schema import CurrentUser

router = APIRouter(prefix="/api/payments/mercadopago", tags=["Payments/MercadoPago"])
logger = get_logger("mercadopago_router")


@router.post("/token", response_model=GatewayMessageResponse)
async def update_mercadopago_token(
    request: MercadoPagoTokenRequest,
    db: AsyncSession = Depends(get_shop_db),
    admin: CurrentUser = Depends(get_current_admin_user),
):
    """Access Token 검증 후 저장 (관리자)"""
    logger.info(f"Mercado Pago 토큰 저장 요청: admin={admin.user_id}, type={request.type}")
    try:
        await save_mercadopago_token(db, request.token, request.type)
    except HTTPException:
        raise
    except Exception as e:
        raise UpstreamFailureException("Falha ao salvar o token.", e)
    return GatewayMessageResponse(message="Conexão com Mercado Pago estabelecida com sucesso!")


@router.post("/status", response_model=ConnectionStatusResponse)
async def get_mercadopago_status(
    request: ConnectionStatusRequest,
    db: AsyncSession = Depends(get_shop_db),
    admin: CurrentUser = Depends(get_current_admin_user),
):
    """저장된 토큰 연결 상태 확인 (관리자)"""
    try:
        connected = await get_mercadopago_connection_status(db, request.type)
    except HTTPException:
        raise
    except Exception as e:
        raise UpstreamFailureException("Falha ao verificar status.", e)
    return ConnectionStatusResponse(connected=connected)


@router.post("/pix", response_model=PixPaymentResponse)
async def create_mercadopago_pix(
    request: PixPaymentRequest,
    db: AsyncSession = Depends(get_shop_db),
    user: CurrentUser = Depends(get_current_user),
):
    """
    주문 PIX 결제 생성 (주문자 본인)

    Returns:
        PixPaymentResponse: QR 코드(텍스트/base64), Mercado Pago payment_id
    """
    logger.info(f"PIX 생성 요청: user_id={user.user_id}, order_id={request.order_id}")
    try:
        result = await create_pix_payment(db, request.order_id, user)
    except HTTPException:
        raise
    except Exception as e:
        raise UpstreamFailureException("Erro ao gerar Pix no Mercado Pago.", e)
    return PixPaymentResponse(**result)


@router.post("/webhook", response_model=PaymentWebhookAck, response_model_exclude_none=True)
async def mercadopago_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_shop_db),
):
    """
    Mercado Pago 결제 알림 수신

    Note:
        - payment / test 외 topic 은 무시
        - 처리 실패도 200으로 응답 (Mercado Pago 무한 재전송 방지), 원인은 error 필드에
        - 결제 승인 시 order.paid 이벤트 발행
    """
    params = request.query_params
    topic = params.get("topic") or params.get("type")
    if topic not in PAYMENT_TOPICS:
        return PaymentWebhookAck(message="Topic ignored")

    try:
        body = await request.json()
    except ValueError:
        body = {}
    body_data = body.get("data") if isinstance(body, dict) else None

    payment_id = params.get("id") or params.get("data.id")
    if not payment_id and isinstance(body_data, dict):
        payment_id = body_data.get("id")
    if not payment_id:
        return PaymentWebhookAck(message="No payment ID found")

    try:
        order = await process_payment_notification(db, str(payment_id))
    except HTTPException as e:
        logger.error(f"Mercado Pago 알림 처리 실패: payment_id={payment_id}, error={e.detail}")
        return PaymentWebhookAck(error=str(e.detail))
    except Exception as e:
        logger.error(f"Mercado Pago 알림 처리 실패: payment_id={payment_id}, error={str(e)}")
        return PaymentWebhookAck(error=str(e))

    if order is not None:
        background_tasks.add_task(dispatch_event_in_background, ORDER_EVENTS["PAID"], order)
    return PaymentWebhookAck(success=True)
