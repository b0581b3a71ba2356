"""
Supabase(PostgreSQL) 테이블용 Declarative Base
"""
from sqlalchemy.orm import declarative_base

PostgresBase = declarative_base()
