"""
체크아웃 API 라우터
Router 계층: HTTP 요청/응답 처리, 파라미터 검증, 의존성 주입만 담당
비즈니스 로직은 CRUD 계층에 위임, 직접 DB 처리(트랜잭션)는 하지 않음
"""
from typing import Any, Dict

from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from common.database.postgres_shop import get_shop_db
from common.dependencies import get_current_user
from common.errors import UpstreamFailureException
from common.logger import get_logger
from services.integration.crud.webhook_dispatch_crud import dispatch_event_in_background
from services.order.crud.checkout_crud import confirm_checkout, initiate_checkout
from services.order.crud.order_common import ORDER_EVENTS
from services.order.schemas.checkout_schema import (
    CheckoutConfirmRequest,
    CheckoutConfirmResponse,
    CheckoutResponse,
)
from services.user.schemas.current_user_schema import CurrentUser

router = APIRouter(prefix="/api/checkout", tags=["Checkout"])
logger = get_logger("checkout_router")


@router.post("", response_model=CheckoutResponse)
async def start_checkout(
    background_tasks: BackgroundTasks,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_shop_db),
    user: CurrentUser = Depends(get_current_user),
):
    """
    체크아웃 시작

    Args:
        payload: 장바구니 payload (주문 생성 프로시저 인자 그대로 전달)
        db: 데이터베이스 세션 (의존성 주입)
        user: 현재 인증된 사용자 (의존성 주입)

    Returns:
        CheckoutResponse: outcome=created 이면 생성된 주문,
                          outcome=confirmation_required 이면 기존 결제 대기 주문

    Note:
        - 결제 대기 주문이 있으면 새 주문을 만들지 않음 → /api/checkout/confirm 으로 확인 후 진행
    """
    logger.info(f"체크아웃 요청: user_id={user.user_id}")
    try:
        result = await initiate_checkout(db, user.user_id, payload)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"체크아웃 실패: user_id={user.user_id}, error={str(e)}")
        raise UpstreamFailureException("Falha ao finalizar a compra", e)

    if result["outcome"] == "confirmation_required":
        pending = result["pending_order"]
        return CheckoutResponse(
            outcome="confirmation_required",
            pending_order=pending,
            message=f"Você já tem o pedido #{pending['id']} aguardando pagamento.",
        )

    order = result["order"]
    background_tasks.add_task(dispatch_event_in_background, ORDER_EVENTS["CREATED"], order)
    return CheckoutResponse(outcome="created", order=order, message="Pedido criado com sucesso!")


@router.post("/confirm", response_model=CheckoutConfirmResponse)
async def confirm_and_replace(
    request: CheckoutConfirmRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_shop_db),
    user: CurrentUser = Depends(get_current_user),
):
    """
    기존 결제 대기 주문을 취소하고 새 주문 생성 (사용자 확인 후 호출)

    Note:
        - 취소와 생성은 CRUD 계층에서 하나의 트랜잭션으로 처리
        - 기존 주문이 이미 결제되었으면 409
    """
    logger.info(f"주문 교체 요청: user_id={user.user_id}, pending_order_id={request.pending_order_id}")
    try:
        result = await confirm_checkout(db, user.user_id, request.pending_order_id, request.payload)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"주문 교체 실패: user_id={user.user_id}, error={str(e)}")
        raise UpstreamFailureException("Falha ao substituir o pedido", e)

    background_tasks.add_task(
        dispatch_event_in_background,
        ORDER_EVENTS["CANCELLED"],
        {"id": result["cancelled_order_id"], "user_id": user.user_id},
    )
    background_tasks.add_task(dispatch_event_in_background, ORDER_EVENTS["CREATED"], result["order"])

    return CheckoutConfirmResponse(
        cancelled_order_id=result["cancelled_order_id"],
        order=result["order"],
        message=f"Pedido #{result['cancelled_order_id']} cancelado.",
    )
