"""
관리자 주문 관리 API 라우터
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from common.database.postgres_shop import get_shop_db
from common.dependencies import get_current_admin_user
from common.errors import UpstreamFailureException, ValidationException
from common.logger import get_logger
from services.order.crud.order_status_crud import delete_user_orders
from services.order.schemas.order_status_schema import (
    AdminDeleteOrdersRequest,
    AdminDeleteOrdersResponse,
)
from services.user.schemas.current_user_schema import CurrentUser

router = APIRouter(prefix="/api/admin/orders", tags=["Admin/Orders"])
logger = get_logger("admin_order_router")


@router.post("/delete", response_model=AdminDeleteOrdersResponse)
async def admin_delete_orders(
    request: AdminDeleteOrdersRequest,
    db: AsyncSession = Depends(get_shop_db),
    admin: CurrentUser = Depends(get_current_admin_user),
):
    """
    특정 사용자의 주문 전체 삭제 (구매 이력을 '첫 구매' 상태로 되돌림)
    """
    if not request.target_user_id:
        raise ValidationException("targetUserId is required.")

    logger.info(f"관리자 주문 삭제 요청: admin={admin.user_id}, target={request.target_user_id}")
    try:
        result = await delete_user_orders(db, request.target_user_id)
    except Exception as e:
        raise UpstreamFailureException("Falha ao remover pedidos", e)

    return AdminDeleteOrdersResponse(
        message=(
            f"Todos os pedidos do usuário {request.target_user_id} foram removidos. "
            "O status de compra foi redefinido para 'Primeira Compra'."
        ),
        deleted_orders=result["deleted_orders"],
    )
