from sqlalchemy.orm.session import Session


from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from vkb_core.config import settings

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
SessionLocal = sessionmaker[Session](bind=engine, expire_on_commit=False)

class Base(DeclarativeBase):
    pass

@event.listens_for(engine, "connect")
def _enable_extensions(dbapi_connection, connection_record):
    # chunk.embedding needs pgvector
    with dbapi_connection.cursor() as cur:
        cur.execute("CREATE EXTENSION IF NOT EXISTS vector;")
