"""
PagSeguro 자격 증명 API 라우터
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from common.database.postgres_shop import get_shop_db
from common.dependencies import get_current_admin_user
from common.errors import UpstreamFailureException
from common.logger import get_logger
from services.payment.crud.pagseguro_crud import get_pagseguro_connection_status, save_pagseguro_credentials
from services.payment.schemas.payment_schema import (
    ConnectionStatusRequest,
    ConnectionStatusResponse,
    GatewayMessageResponse,
    PagSeguroTokenRequest,
)
from services.user.schemas.current_user_schema import CurrentUser

router = APIRouter(prefix="/api/payments/pagseguro", tags=["Payments/PagSeguro"])
logger = get_logger("pagseguro_router")


@router.post("/token", response_model=GatewayMessageResponse)
async def update_pagseguro_token(
    request: PagSeguroTokenRequest,
    db: AsyncSession = Depends(get_shop_db),
    admin: CurrentUser = Depends(get_current_admin_user),
):
    logger.info(f"PagSeguro 자격 증명 저장 요청: admin={admin.user_id}, type={request.type}")
    try:
        await save_pagseguro_credentials(db, request.email, request.token, request.type)
    except HTTPException:
        raise
    except Exception as e:
        raise UpstreamFailureException("Falha ao salvar as credenciais.", e)
    return GatewayMessageResponse(message="Conexão com PagSeguro estabelecida com sucesso!")


@router.post("/status", response_model=ConnectionStatusResponse)
async def get_pagseguro_status(
    request: ConnectionStatusRequest,
    db: AsyncSession = Depends(get_shop_db),
    admin: CurrentUser = Depends(get_current_admin_user),
):
    try:
        connected = await get_pagseguro_connection_status(db, request.type)
    except HTTPException:
        raise
    except Exception as e:
        raise UpstreamFailureException("Falha ao verificar status.", e)
    return ConnectionStatusResponse(connected=connected)
