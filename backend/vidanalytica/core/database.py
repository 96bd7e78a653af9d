from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from vidanalytica.core.config import settings


def _engine_options(database_url: str) -> dict:
    """Pool options for the configured backend"""
    if database_url.startswith("sqlite"):
        # SQLite connections are shared across the threadpool FastAPI runs sync code in
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": 0,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "pool_pre_ping": True,
    }


# Create database engine - manages a bounded connection pool
engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

# Create session factory - each request gets a new session
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for all database models
Base = declarative_base()


def get_db():
    """
    Dependency for getting database session.

    The session is closed after the request completes, even when the
    handler raised.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
