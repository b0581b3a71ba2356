"""
관리자 인사이트 응답 스키마
"""
from pydantic import BaseModel
from typing import Any, Dict, List, Optional

class StockRunoutAlert(BaseModel):
    """재고 소진 임박 항목 (옵션 단위면 variant_id 포함)"""
    id: int
    variant_id: Optional[int] = None
    name: str
    current_stock: int
    days_remaining: int
    daily_rate: float

class VipCustomer(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    points: Optional[int] = None

class BrandProfit(BaseModel):
    name: str
    value: float

class TrendItem(BaseModel):
    id: int
    name: str
    growth: float
    sales_this_week: int

class Trends(BaseModel):
    up: List[TrendItem] = []
    down: List[TrendItem] = []

class PeakHour(BaseModel):
    hour: str
    orders: int

class InsightsResponse(BaseModel):
    associations: List[Dict[str, Any]] = []
    churn: List[Dict[str, Any]] = []
    vips: List[VipCustomer] = []
    inventory: List[StockRunoutAlert] = []
    profitability: List[BrandProfit] = []
    trends: Trends = Trends()
    peak_hours: List[PeakHour] = []
