"""
재고 소진 예측 (판매 속도 기반)

    daily_rate     = 최근 15일 판매 수량 / 15
    days_remaining = floor(재고 / daily_rate)   (daily_rate > 0)
                   = 999                         (판매 없음)
    → days_remaining < 60 인 항목만, 급한 순으로 상위 10개
"""
import math
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

VELOCITY_WINDOW_DAYS = 15
RUNOUT_ALERT_DAYS = 60
RUNOUT_ALERT_LIMIT = 10
NO_DEMAND_DAYS = 999

def build_velocity_map(
    sales: Iterable[Mapping[str, Any]],
    since: Optional[datetime] = None,
) -> Dict[int, int]:
    """
    상품 ID별 판매 수량 합계

    Args:
        sales: order_items row (item_id, quantity, created_at)
        since: 이 시각 이후 판매만 집계 (None이면 전체)
    """
    velocity: Dict[int, int] = {}
    for item in sales:
        if since is not None and item["created_at"] < since:
            continue
        item_id = item["item_id"]
        velocity[item_id] = velocity.get(item_id, 0) + int(item["quantity"] or 0)
    return velocity


def days_until_runout(stock: int, daily_rate: float) -> int:
    """남은 재고로 버틸 수 있는 일수 (판매가 없으면 999)"""
    if daily_rate > 0:
        return math.floor(stock / daily_rate)
    return NO_DEMAND_DAYS


def variant_display_name(product_name: str, variant: Mapping[str, Any]) -> str:
    """'상품명 (맛 - 색상 - 500ml)' 형식 표시명"""
    details = []
    if variant.get("flavor_name"):
        details.append(variant["flavor_name"])
    if variant.get("color"):
        details.append(variant["color"])
    if variant.get("volume_ml"):
        details.append(f"{variant['volume_ml']}ml")
    if not details:
        return product_name
    return f"{product_name} ({' - '.join(details)})"


def project_stock_runout(
    products: Iterable[Mapping[str, Any]],
    velocity_map: Mapping[int, int],
    window_days: int = VELOCITY_WINDOW_DAYS,
    alert_days: int = RUNOUT_ALERT_DAYS,
    limit: int = RUNOUT_ALERT_LIMIT,
) -> List[Dict[str, Any]]:
    """
    재고 소진 임박 목록 계산

    Args:
        products: 상품 dict (id, name, stock_quantity, variants[])
        velocity_map: build_velocity_map() 결과 (window_days 기간)
        window_days: 판매 집계 기간(일)
        alert_days: 이 일수 미만만 경고
        limit: 최대 항목 수

    Returns:
        List[dict]: days_remaining 오름차순 경고 목록

    Note:
        - 옵션이 있는 상품은 옵션별로 한 줄씩, 판매 속도는 부모 상품 속도를 옵션 수로 나눈 값
        - 옵션이 없는 상품은 상품 재고로 계산
    """
    candidates: List[Dict[str, Any]] = []

    for product in products:
        sold = velocity_map.get(product["id"], 0)
        daily_rate = sold / window_days
        variants = product.get("variants") or []

        if variants:
            variant_rate = daily_rate / len(variants)
            for variant in variants:
                stock = variant.get("stock_quantity") or 0
                candidates.append({
                    "id": product["id"],
                    "variant_id": variant["id"],
                    "name": variant_display_name(product["name"], variant),
                    "current_stock": stock,
                    "days_remaining": days_until_runout(stock, variant_rate),
                    "daily_rate": round(daily_rate, 2),
                })
        else:
            stock = product.get("stock_quantity") or 0
            candidates.append({
                "id": product["id"],
                "name": product["name"],
                "current_stock": stock,
                "days_remaining": days_until_runout(stock, daily_rate),
                "daily_rate": round(daily_rate, 2),
            })

    alerts = [c for c in candidates if c["days_remaining"] < alert_days]
    alerts.sort(key=lambda c: c["days_remaining"])
    return alerts[:limit]
