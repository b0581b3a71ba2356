"""
상품(products) / 상품 옵션(product_variants) / 맛(flavors) ORM 모델 정의
"""
from sqlalchemy import Column, Integer, BigInteger, String, Numeric, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from common.database.base_postgres import PostgresBase

class Flavor(PostgresBase):
    """flavors 테이블"""
    __tablename__ = "flavors"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)

class Product(PostgresBase):
    """
    products 테이블 (재고 차감은 주문 생성 프로시저 내부에서 처리)
    """
    __tablename__ = "products"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    sku = Column(String(80), nullable=True)
    name = Column(String(255), nullable=False)
    brand = Column(String(120), nullable=True)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    cost_price = Column(Numeric(12, 2), nullable=True)
    stock_quantity = Column(Integer, nullable=False, default=0)
    is_visible = Column(Boolean, nullable=False, default=True)

    variants = relationship("ProductVariant", back_populates="product", lazy="selectin")

class ProductVariant(PostgresBase):
    """
    product_variants 테이블 (맛/용량/색상 옵션별 재고)
    """
    __tablename__ = "product_variants"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    product_id = Column(BigInteger, ForeignKey("products.id"), nullable=False, index=True)
    sku = Column(String(80), nullable=True)
    flavor_id = Column(BigInteger, ForeignKey("flavors.id"), nullable=True)
    volume_ml = Column(Integer, nullable=True)
    color = Column(String(60), nullable=True)
    price = Column(Numeric(12, 2), nullable=True)
    cost_price = Column(Numeric(12, 2), nullable=True)
    stock_quantity = Column(Integer, nullable=False, default=0)
    is_visible = Column(Boolean, nullable=False, default=True)

    product = relationship("Product", back_populates="variants")
    flavor = relationship("Flavor", lazy="selectin")
