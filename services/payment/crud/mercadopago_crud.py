"""
Mercado Pago 연동 CRUD 함수들
CRUD 계층: app_settings 토큰 관리, 외부 API 호출, 결제 승인 시 주문 상태 변경
"""
import re
import time
from typing import Any, Dict, Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from common.config import get_settings
from common.errors import (
    NotFoundException,
    PermissionDeniedException,
    UpstreamFailureException,
    ValidationException,
)
from common.http_utils import get_json, post_json, response_json
from common.logger import get_logger
from services.integration.crud.app_setting_crud import get_setting_value, upsert_setting
from services.order.crud.order_common import DeliveryStatus, OrderStatus, get_order_by_id, order_to_dict
from services.order.models.shop_order_model import Order
from services.payment.crud.payment_settings import mercadopago_token_key, require_token_type
from services.user.models.profile_model import Profile
from services.user.schemas.current_user_schema import CurrentUser

logger = get_logger("mercadopago_crud")

PIX_PAYMENT_METHOD = "Pix (Mercado Pago)"
PAYMENT_TOPICS = ("payment", "test")

def _auth_header(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def validate_mercadopago_token(token: str) -> bool:
    """GET /users/me 성공 여부로 토큰 유효성 확인"""
    settings = get_settings()
    response = await get_json(f"{settings.mercadopago_api_url}/users/me", headers=_auth_header(token))
    return response.is_success


async def save_mercadopago_token(db: AsyncSession, token: Optional[str], token_type: Optional[str]) -> str:
    """
    Mercado Pago Access Token 검증 후 저장

    Returns:
        str: 저장된 app_settings 키

    Raises:
        ValidationException: 토큰/타입 누락, 토큰 무효
    """
    if not token:
        raise ValidationException("O Access Token é obrigatório.")
    token_type = require_token_type(token_type)

    if not await validate_mercadopago_token(token):
        logger.warning(f"Mercado Pago 토큰 검증 실패: type={token_type}")
        raise ValidationException("O Access Token fornecido é inválido ou expirou.")

    key = mercadopago_token_key(token_type)
    await upsert_setting(db, key, token)
    return key


async def get_mercadopago_connection_status(db: AsyncSession, token_type: Optional[str]) -> bool:
    """저장된 토큰이 있고 Mercado Pago에서 유효하면 True"""
    token_type = require_token_type(token_type)
    token = await get_setting_value(db, mercadopago_token_key(token_type))
    if not token:
        return False
    return await validate_mercadopago_token(token)


def _build_pix_payer(profile: Optional[Profile]) -> Dict[str, Any]:
    payer: Dict[str, Any] = {
        "email": (profile.email if profile else None) or "cliente@email.com",
        "first_name": (profile.first_name if profile else None) or "Cliente",
        "last_name": (profile.last_name if profile else None) or "",
    }
    if profile is not None and profile.cpf_cnpj:
        payer["identification"] = {"type": "CPF", "number": re.sub(r"\D", "", profile.cpf_cnpj)}
    return payer


async def create_pix_payment(db: AsyncSession, order_id: Optional[int], user: CurrentUser) -> Dict[str, Any]:
    """
    주문 금액(상품 + 배송비)으로 PIX 결제 생성

    Args:
        db: 데이터베이스 세션
        order_id: 결제할 주문 ID
        user: 요청 사용자 (주문자 본인 또는 관리자)

    Returns:
        dict: qr_code, qr_code_base64, payment_id

    Note:
        - external_reference 에 주문 ID를 넣어 webhook에서 주문을 찾음
        - X-Idempotency-Key 는 주문 ID + 요청 시각
    """
    if not order_id:
        raise ValidationException("Order ID is required")

    order = await get_order_by_id(db, order_id)
    if order is None:
        raise NotFoundException("Pedido")
    if order.user_id != user.user_id and not user.is_admin:
        logger.warning(f"타인 주문 결제 시도: order_id={order_id}, user_id={user.user_id}")
        raise PermissionDeniedException()

    settings = get_settings()
    token = await get_setting_value(db, mercadopago_token_key("production"))
    if not token:
        raise UpstreamFailureException("Token do Mercado Pago não configurado.")

    profile = await db.get(Profile, order.user_id)
    total_amount = float(order.total_price or 0) + float(order.shipping_cost or 0)
    body = {
        "transaction_amount": round(total_amount, 2),
        "description": f"Pedido #{order_id} - Tabacaria",
        "payment_method_id": "pix",
        "payer": _build_pix_payer(profile),
        "external_reference": str(order_id),
        "notification_url": f"{settings.public_base_url}/api/payments/mercadopago/webhook",
    }
    headers = _auth_header(token)
    headers["X-Idempotency-Key"] = f"order-{order_id}-{int(time.time() * 1000)}"

    response = await post_json(f"{settings.mercadopago_api_url}/v1/payments", json=body, headers=headers)
    data = response_json(response)
    if not response.is_success:
        logger.error(f"PIX 생성 실패: order_id={order_id}, status={response.status_code}, body={data}")
        raise UpstreamFailureException(data.get("message") or "Erro ao gerar Pix no Mercado Pago.")

    transaction_data = (data.get("point_of_interaction") or {}).get("transaction_data") or {}
    logger.info(f"PIX 생성 완료: order_id={order_id}, payment_id={data.get('id')}")
    return {
        "qr_code": transaction_data.get("qr_code"),
        "qr_code_base64": transaction_data.get("qr_code_base64"),
        "payment_id": data.get("id"),
    }


def extract_order_id(external_reference: Optional[str]) -> Optional[int]:
    """external_reference('123' 또는 'order-123')에서 숫자만 추출"""
    if not external_reference:
        return None
    digits = re.sub(r"\D", "", str(external_reference))
    return int(digits) if digits else None


async def mark_order_paid(db: AsyncSession, order_id: int) -> Optional[Dict[str, Any]]:
    """
    주문을 결제 완료로 변경

    Returns:
        dict: 변경된 주문 (주문이 없으면 None)
    """
    try:
        result = await db.execute(
            update(Order)
            .where(Order.id == order_id)
            .values(
                status=OrderStatus.PAID.value,
                payment_method=PIX_PAYMENT_METHOD,
                delivery_status=DeliveryStatus.PENDING.value,
            )
        )
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"결제 완료 반영 실패: order_id={order_id}, error={str(e)}")
        raise

    if result.rowcount == 0:
        logger.warning(f"결제 완료 대상 주문 없음: order_id={order_id}")
        return None

    order = await get_order_by_id(db, order_id)
    logger.info(f"주문 결제 완료 반영: order_id={order_id}")
    return order_to_dict(order) if order is not None else None


async def process_payment_notification(db: AsyncSession, payment_id: str) -> Optional[Dict[str, Any]]:
    """
    결제 알림 처리: Mercado Pago에서 결제 상태를 직접 조회하고 승인 건이면 주문 반영

    Returns:
        dict: 결제 완료로 바뀐 주문 (승인 아님 / 주문 없음이면 None)

    Raises:
        UpstreamFailureException: 토큰 미설정, 결제 조회 실패
    """
    token = await get_setting_value(db, mercadopago_token_key("production"))
    if not token:
        logger.error("Mercado Pago 토큰 미설정")
        raise UpstreamFailureException("Configuração ausente")

    settings = get_settings()
    response = await get_json(
        f"{settings.mercadopago_api_url}/v1/payments/{payment_id}",
        headers=_auth_header(token),
    )
    if not response.is_success:
        raise UpstreamFailureException(f"Erro ao consultar MP: {response.status_code}")

    payment = response_json(response)
    status = payment.get("status")
    external_reference = payment.get("external_reference")
    logger.info(f"Mercado Pago 결제 알림: payment_id={payment_id}, status={status}, ref={external_reference}")

    if status != "approved":
        return None

    order_id = extract_order_id(external_reference)
    if order_id is None:
        return None
    return await mark_order_paid(db, order_id)
