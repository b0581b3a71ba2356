"""
판매 추세 / 피크 시간대 / 브랜드 수익성 집계
"""
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Dict, Iterable, List, Mapping

TREND_UP_GROWTH = 20.0
TREND_UP_MIN_WEEK_SALES = 3
TREND_DOWN_GROWTH = -20.0
TREND_DOWN_MAX_WEEK_SALES = 5
TOP_N = 5

def _as_utc(value: datetime) -> datetime:
    # SQLite 등에서 tz 없이 읽힌 값은 UTC로 간주
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def weekly_growth(this_week: int, last_week: int) -> float:
    """전주 대비 증감률(%) - 전주 판매가 없고 이번 주 판매가 있으면 100"""
    if last_week > 0:
        return (this_week - last_week) / last_week * 100
    if this_week > 0:
        return 100.0
    return 0.0


def compute_trends(
    sales: Iterable[Mapping[str, Any]],
    products: Iterable[Mapping[str, Any]],
    now: datetime,
) -> Dict[str, List[Dict[str, Any]]]:
    """
    주간 판매 추세

    Returns:
        dict: {"up": 상승 상위 5, "down": 하락 상위 5}
    """
    now = _as_utc(now)
    seven_days_ago = now - timedelta(days=7)
    fourteen_days_ago = now - timedelta(days=14)

    this_week: Dict[int, int] = {}
    last_week: Dict[int, int] = {}
    for item in sales:
        created_at = _as_utc(item["created_at"])
        qty = int(item["quantity"] or 0)
        if created_at >= seven_days_ago:
            this_week[item["item_id"]] = this_week.get(item["item_id"], 0) + qty
        elif created_at >= fourteen_days_ago:
            last_week[item["item_id"]] = last_week.get(item["item_id"], 0) + qty

    candidates = []
    for product in products:
        current = this_week.get(product["id"], 0)
        previous = last_week.get(product["id"], 0)
        candidates.append({
            "id": product["id"],
            "name": product["name"],
            "growth": weekly_growth(current, previous),
            "sales_this_week": current,
        })

    up = [c for c in candidates if c["growth"] >= TREND_UP_GROWTH and c["sales_this_week"] >= TREND_UP_MIN_WEEK_SALES]
    up.sort(key=lambda c: c["growth"], reverse=True)

    down = [c for c in candidates if c["growth"] <= TREND_DOWN_GROWTH and c["sales_this_week"] < TREND_DOWN_MAX_WEEK_SALES]
    down.sort(key=lambda c: c["growth"])

    return {"up": up[:TOP_N], "down": down[:TOP_N]}


def compute_peak_hours(sales: Iterable[Mapping[str, Any]], local_tz: tzinfo) -> List[Dict[str, Any]]:
    """현지 시간 기준 시간대별 판매 수량 (0h ~ 23h)"""
    hours = [0] * 24
    for item in sales:
        hour = _as_utc(item["created_at"]).astimezone(local_tz).hour
        hours[hour] += int(item["quantity"] or 0)
    return [{"hour": f"{hour}h", "orders": count} for hour, count in enumerate(hours)]


def compute_brand_profitability(
    products: Iterable[Mapping[str, Any]],
    velocity_map: Mapping[int, int],
) -> List[Dict[str, Any]]:
    """
    브랜드별 추정 이익 = (판매가 - 원가) x 판매 수량, 상위 5개
    """
    profit_by_brand: Dict[str, float] = {}
    for product in products:
        if not product.get("brand"):
            continue
        margin = float(product.get("price") or 0) - float(product.get("cost_price") or 0)
        sold = velocity_map.get(product["id"], 0)
        profit_by_brand[product["brand"]] = profit_by_brand.get(product["brand"], 0.0) + margin * sold

    ranking = [{"name": name, "value": round(value, 2)} for name, value in profit_by_brand.items()]
    ranking.sort(key=lambda r: r["value"], reverse=True)
    return ranking[:TOP_N]
