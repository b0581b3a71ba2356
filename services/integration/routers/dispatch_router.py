"""
외부 워크플로 웹훅 전송 API 라우터
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from common.database.postgres_shop import get_shop_db
from common.dependencies import verify_integration_token
from common.errors import UpstreamFailureException, ValidationException
from common.logger import get_logger
from services.integration.crud.webhook_dispatch_crud import dispatch_event
from services.integration.schemas.dispatch_schema import DispatchEventRequest, DispatchEventResponse

router = APIRouter(prefix="/api/integrations", tags=["Integrations"])
logger = get_logger("dispatch_router")


@router.post("/dispatch", response_model=DispatchEventResponse)
async def dispatch_webhook(
    request: DispatchEventRequest,
    db: AsyncSession = Depends(get_shop_db),
    caller: str = Depends(verify_integration_token),
):
    """
    이벤트를 설정된 웹훅 전체에 전송

    Note:
        - 요청 안에서 동기적으로 전송 후 전송/성공 건수를 반환
    """
    if not request.event_type:
        raise ValidationException("O campo 'event_type' é obrigatório.")

    logger.info(f"웹훅 전송 요청: caller={caller}, event_type={request.event_type}")
    try:
        result = await dispatch_event(db, request.event_type, request.payload)
    except HTTPException:
        raise
    except Exception as e:
        raise UpstreamFailureException("Falha ao disparar webhooks", e)
    return DispatchEventResponse(**result)
