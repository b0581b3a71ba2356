"""
주문(orders) / 주문 상품(order_items) ORM 모델 정의
"""
from sqlalchemy import Column, Integer, BigInteger, String, Numeric, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from common.database.base_postgres import PostgresBase

class Order(PostgresBase):
    """
    orders 테이블 (주문 공통 정보 + 배송 상태 투영)
    """
    __tablename__ = "orders"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    user_id = Column(String(36), nullable=False, index=True)
    status = Column(String(40), nullable=False, default="Aguardando Pagamento")
    delivery_status = Column(String(40), nullable=True, default="Pendente")
    delivery_info = Column(Text, nullable=True)
    total_price = Column(Numeric(12, 2), nullable=False, default=0)
    shipping_cost = Column(Numeric(12, 2), nullable=True, default=0)
    payment_method = Column(String(60), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="noload",
    )

class OrderItem(PostgresBase):
    """
    order_items 테이블 (주문 시점 상품명/가격 스냅샷, 생성 후 불변)
    """
    __tablename__ = "order_items"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    order_id = Column(BigInteger, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(BigInteger, nullable=False, index=True)  # products.id
    quantity = Column(Integer, nullable=False)
    price_at_purchase = Column(Numeric(12, 2), nullable=True)
    name_at_purchase = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    order = relationship("Order", back_populates="items")
