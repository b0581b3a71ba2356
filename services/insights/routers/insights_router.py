"""
관리자 인사이트 API 라우터
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from common.database.postgres_shop import get_shop_db
from common.dependencies import get_current_admin_user
from common.errors import UpstreamFailureException
from common.logger import get_logger
from services.insights.crud.insights_crud import build_actionable_insights
from services.insights.schemas.insights_schema import InsightsResponse
from services.user.schemas.current_user_schema import CurrentUser

router = APIRouter(prefix="/api/insights", tags=["Admin/Insights"])
logger = get_logger("insights_router")


@router.get("", response_model=InsightsResponse)
async def get_actionable_insights(
    db: AsyncSession = Depends(get_shop_db),
    admin: CurrentUser = Depends(get_current_admin_user),
):
    """
    관리자 대시보드 인사이트 조회

    Returns:
        InsightsResponse: 연관 구매, 이탈 위험, VIP, 재고 소진 예측, 브랜드 수익성, 추세, 피크 시간대
    """
    logger.info(f"인사이트 조회 요청: admin={admin.user_id}")
    try:
        return await build_actionable_insights(db)
    except HTTPException:
        raise
    except Exception as e:
        raise UpstreamFailureException("Falha ao gerar insights", e)
