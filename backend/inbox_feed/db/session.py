"""
Database engine, session factory and the FastAPI session dependency.

PostgreSQL gets a sized, pre-pinged pool from settings. SQLite (tests, local scripts)
keeps SQLAlchemy's own pool and may be shared across the consumer threads.
"""
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import sessionmaker

from inbox_feed.config import settings


def make_engine(url: str, **kwargs) -> Engine:
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False}, **kwargs)
    return create_engine(
        url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_pre_ping=True,
        pool_recycle=300,
        pool_timeout=30,
        echo=settings.database_echo,
        **kwargs,
    )


engine = make_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
