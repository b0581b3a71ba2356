"""
관리자 인사이트 집계 CRUD (요청마다 재계산, 캐시 없음)
"""
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from common.config import get_settings
from common.logger import get_logger
from services.catalog.models.catalog_model import Product
from services.insights.utils.sales_analytics import (
    compute_brand_profitability,
    compute_peak_hours,
    compute_trends,
)
from services.insights.utils.stock_projection import (
    VELOCITY_WINDOW_DAYS,
    build_velocity_map,
    project_stock_runout,
)
from services.order.models.shop_order_model import OrderItem
from services.user.models.profile_model import Profile

logger = get_logger("insights_crud")

SALES_WINDOW_DAYS = 30
VIP_LIMIT = 5

async def _call_rpc(db: AsyncSession, function_name: str) -> List[Dict[str, Any]]:
    """인자 없는 DB 함수 호출 결과를 dict 목록으로 반환"""
    result = await db.execute(text(f"SELECT * FROM {function_name}()"))
    rows = [dict(row) for row in result.mappings().all()]

    # json/jsonb 한 컬럼으로 결과 전체를 반환하는 함수
    if len(rows) == 1 and len(rows[0]) == 1:
        value = next(iter(rows[0].values()))
        # text() 쿼리는 json/jsonb 컬럼을 문자열로 돌려줌 (asyncpg)
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                return rows
        if isinstance(value, list):
            return value
        if value is None:
            return []
    return rows


async def fetch_product_pair_frequency(db: AsyncSession) -> List[Dict[str, Any]]:
    """함께 구매된 상품 쌍 빈도 (get_product_pair_frequency)"""
    return await _call_rpc(db, "get_product_pair_frequency")


async def fetch_customers_at_risk(db: AsyncSession) -> List[Dict[str, Any]]:
    """이탈 위험 고객 (get_customers_at_risk)"""
    return await _call_rpc(db, "get_customers_at_risk")


async def fetch_top_vips(db: AsyncSession, limit: int = VIP_LIMIT) -> List[Dict[str, Any]]:
    """포인트 상위 고객"""
    result = await db.execute(
        select(Profile.first_name, Profile.last_name, Profile.points)
        .order_by(Profile.points.desc())
        .limit(limit)
    )
    return [dict(row) for row in result.mappings().all()]


async def fetch_sales_since(db: AsyncSession, since: datetime) -> List[Dict[str, Any]]:
    """
    기준 시각 이후 판매 라인 조회

    Returns:
        List[dict]: item_id, quantity, created_at(UTC aware)
    """
    result = await db.execute(
        select(OrderItem.item_id, OrderItem.quantity, OrderItem.created_at)
        .where(OrderItem.created_at >= since)
    )
    sales = []
    for row in result.mappings().all():
        created_at = row["created_at"]
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        sales.append({"item_id": row["item_id"], "quantity": row["quantity"], "created_at": created_at})
    return sales


async def fetch_products_with_variants(db: AsyncSession) -> List[Dict[str, Any]]:
    """상품 + 옵션(맛 이름 포함) 목록"""
    result = await db.execute(select(Product).order_by(Product.id))
    products = []
    for product in result.scalars().all():
        products.append({
            "id": product.id,
            "name": product.name,
            "brand": product.brand,
            "price": product.price,
            "cost_price": product.cost_price,
            "stock_quantity": product.stock_quantity,
            "variants": [
                {
                    "id": variant.id,
                    "stock_quantity": variant.stock_quantity,
                    "flavor_name": variant.flavor.name if variant.flavor is not None else None,
                    "color": variant.color,
                    "volume_ml": variant.volume_ml,
                }
                for variant in sorted(product.variants, key=lambda v: v.id)
            ],
        })
    return products


async def build_actionable_insights(db: AsyncSession, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    관리자 대시보드 인사이트 전체 집계

    Args:
        db: 데이터베이스 세션
        now: 기준 시각 (기본값: 현재 UTC)

    Returns:
        dict: associations, churn, vips, inventory, profitability, trends, peak_hours

    Note:
        - 재고 소진 예측은 최근 15일, 수익성/피크 시간대는 최근 30일 판매 기준
        - 조회 실패는 그대로 전파 (라우터에서 500 처리)
    """
    now = now or datetime.now(timezone.utc)
    thirty_days_ago = now - timedelta(days=SALES_WINDOW_DAYS)
    velocity_since = now - timedelta(days=VELOCITY_WINDOW_DAYS)

    associations = await fetch_product_pair_frequency(db)
    churn = await fetch_customers_at_risk(db)
    vips = await fetch_top_vips(db)
    sales = await fetch_sales_since(db, thirty_days_ago)
    products = await fetch_products_with_variants(db)

    runout = project_stock_runout(products, build_velocity_map(sales, since=velocity_since))
    profitability = compute_brand_profitability(products, build_velocity_map(sales))
    trends = compute_trends(sales, products, now)
    peak_hours = compute_peak_hours(sales, ZoneInfo(get_settings().local_timezone))

    logger.info(
        f"인사이트 집계 완료: products={len(products)}, sales_rows={len(sales)}, "
        f"runout_alerts={len(runout)}"
    )
    return {
        "associations": associations,
        "churn": churn,
        "vips": vips,
        "inventory": runout,
        "profitability": profitability,
        "trends": trends,
        "peak_hours": peak_hours,
    }
