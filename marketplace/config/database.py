"""Database configuration and connection setup"""
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from marketplace.config.settings import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


def _engine_options(database_url: str) -> dict:
    """Pool settings only apply to server databases"""
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_pre_ping": True,
    }


# Create database engine with connection pooling
engine = create_engine(
    settings.DATABASE_URL,
    echo=False,
    **_engine_options(settings.DATABASE_URL),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Database dependency for FastAPI"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind=None):
    """Create all tables that do not exist yet"""
    from marketplace.models import Base

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables created")


if __name__ == "__main__":
    create_tables()
