"""Checkout coordination CRUD functions."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional

from sqlalchemy import select, text, update
from sqlalchemy.ext.asyncio import AsyncSession

from common.errors import OrderStateConflictException, UpstreamFailureException, ValidationException
from common.logger import get_logger
from services.order.crud.order_common import OrderStatus, order_to_dict
from services.order.models.shop_order_model import Order

logger = get_logger("checkout_crud")

CREATE_ORDER_PROCEDURE = "create_pending_order_from_local_cart"
_ARG_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

async def get_pending_order(db: AsyncSession, user_id: str) -> Optional[Order]:
    """
    사용자의 '결제 대기' 주문 조회

    Args:
        db: 데이터베이스 세션
        user_id: 사용자 ID (uuid 문자열)

    Returns:
        Order: 가장 최근 결제 대기 주문 (없으면 None)

    Note:
        - CRUD 계층: DB 조회만 담당, 트랜잭션 변경 없음
        - 결제 대기 주문은 사용자당 1건이 원칙이지만 DB 제약은 없으므로 최신 1건만 사용
    """
    result = await db.execute(
        select(Order)
        .where(Order.user_id == user_id)
        .where(Order.status == OrderStatus.AWAITING_PAYMENT.value)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(1)
    )
    return result.scalars().first()


def _build_procedure_call(payload: Dict[str, Any]):
    """장바구니 payload를 프로시저 named argument 호출문과 바인딩 값으로 변환"""
    if not payload:
        raise ValidationException("O carrinho está vazio.")

    arguments = []
    params: Dict[str, Any] = {}
    for name, value in payload.items():
        if not _ARG_NAME.fullmatch(name):
            raise ValidationException(f"Campo inválido no carrinho: {name}")
        arguments.append(f"{name} => :{name}")
        params[name] = json.dumps(value, ensure_ascii=False) if isinstance(value, (dict, list)) else value

    statement = text(f"SELECT * FROM {CREATE_ORDER_PROCEDURE}({', '.join(arguments)})")
    return statement, params


async def _call_create_pending_order(db: AsyncSession, user_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    주문 생성 프로시저 호출 (커밋하지 않음)

    Note:
        - 상품 라인 생성, 금액 계산, 재고 차감은 모두 프로시저 내부에서 원자적으로 처리
        - 프로시저가 auth.uid()로 주문자를 식별하므로 같은 트랜잭션에 JWT claims를 설정
    """
    statement, params = _build_procedure_call(payload)

    if db.get_bind().dialect.name == "postgresql":
        await db.execute(
            text("SELECT set_config('request.jwt.claims', :claims, true)"),
            {"claims": json.dumps({"sub": user_id, "role": "authenticated"})},
        )

    result = await db.execute(statement, params)
    row = result.mappings().first()
    if row is None:
        raise UpstreamFailureException("O pedido não foi criado")

    data = dict(row)
    # 프로시저가 json/정수 한 컬럼만 반환하는 경우
    if len(data) == 1:
        value = next(iter(data.values()))
        # text() 쿼리는 json 컬럼을 문자열로 돌려줌 (asyncpg)
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                return data
        if isinstance(value, dict):
            return value
        if isinstance(value, int):
            return {"id": value}
    return data


async def create_pending_order(db: AsyncSession, user_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    새 결제 대기 주문 생성

    Args:
        db: 데이터베이스 세션
        user_id: 주문자 ID
        payload: 장바구니 payload (프로시저 인자 그대로)

    Returns:
        dict: 프로시저가 반환한 주문 row

    Note:
        - CRUD 계층: DB 상태 변경 담당, 트랜잭션 단위 책임
    """
    try:
        order = await _call_create_pending_order(db, user_id, payload)
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"주문 생성 실패: user_id={user_id}, error={str(e)}")
        raise

    logger.info(f"주문 생성 완료: user_id={user_id}, order_id={order.get('id')}")
    return order


async def initiate_checkout(db: AsyncSession, user_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    체크아웃 시작

    Args:
        db: 데이터베이스 세션
        user_id: 주문자 ID
        payload: 장바구니 payload

    Returns:
        dict: {"outcome": "created", "order": {...}}
              또는 {"outcome": "confirmation_required", "pending_order": {...}}

    Note:
        - 결제 대기 주문이 있으면 새 주문을 만들지 않고 기존 주문을 돌려줌 (사용자 확인 필요)
        - 결제 대기 주문이 없으면 호출 1회당 정확히 1건 생성
    """
    pending = await get_pending_order(db, user_id)
    if pending is not None:
        logger.info(f"결제 대기 주문 존재, 사용자 확인 필요: user_id={user_id}, order_id={pending.id}")
        return {"outcome": "confirmation_required", "pending_order": order_to_dict(pending)}

    order = await create_pending_order(db, user_id, payload)
    return {"outcome": "created", "order": order}


async def confirm_checkout(
    db: AsyncSession,
    user_id: str,
    pending_order_id: int,
    payload: Dict[str, Any],
) -> Dict[str, Any]:
    """
    기존 결제 대기 주문 취소 후 새 주문 생성 (단일 트랜잭션)

    Args:
        db: 데이터베이스 세션
        user_id: 주문자 ID
        pending_order_id: 사용자가 확인한 기존 결제 대기 주문 ID
        payload: 새 장바구니 payload

    Returns:
        dict: {"cancelled_order_id": int, "order": {...}}

    Raises:
        OrderStateConflictException: 기존 주문이 이미 결제 대기 상태가 아닌 경우 (결제 완료 등)

    Note:
        - 취소 UPDATE와 생성 프로시저 호출을 같은 트랜잭션에서 실행
        - 생성 실패 시 취소도 함께 롤백되어 기존 주문이 그대로 남음
        - 재고 복원은 이 계층에서 하지 않음 (status만 변경)
    """
    try:
        result = await db.execute(
            update(Order)
            .where(Order.id == pending_order_id)
            .where(Order.user_id == user_id)
            .where(Order.status == OrderStatus.AWAITING_PAYMENT.value)
            .values(status=OrderStatus.CANCELLED.value)
        )
        if result.rowcount == 0:
            logger.warning(f"취소 대상 주문 상태 불일치: order_id={pending_order_id}, user_id={user_id}")
            raise OrderStateConflictException(
                f"O pedido #{pending_order_id} não está mais aguardando pagamento."
            )

        order = await _call_create_pending_order(db, user_id, payload)
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"주문 교체 실패, 롤백: user_id={user_id}, pending_order_id={pending_order_id}, error={str(e)}")
        raise

    logger.info(f"주문 교체 완료: user_id={user_id}, cancelled={pending_order_id}, new_order_id={order.get('id')}")
    return {"cancelled_order_id": pending_order_id, "order": order}
