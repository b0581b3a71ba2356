"""
Supabase profiles / primeiros_pedidos ORM 모델 정의
"""
from sqlalchemy import Column, Integer, String, DateTime
from datetime import datetime, timezone

from common.database.base_postgres import PostgresBase

ADMIN_ROLE = "adm"

class Profile(PostgresBase):
    """
    profiles 테이블 (auth.users 1:1 프로필, role 컬럼으로 관리자 구분)
    """
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)  # auth.users.id (uuid)
    first_name = Column(String(120), nullable=True)
    last_name = Column(String(120), nullable=True)
    email = Column(String(255), nullable=True)
    cpf_cnpj = Column(String(20), nullable=True)
    role = Column(String(20), nullable=True, default="user")
    points = Column(Integer, nullable=False, default=0)

class FirstOrder(PostgresBase):
    """
    primeiros_pedidos 테이블 (첫 구매 기록)
    """
    __tablename__ = "primeiros_pedidos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
