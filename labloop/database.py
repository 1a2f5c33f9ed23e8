"""
Database configuration and session management.

Transaction pattern:
- Request handlers receive a session from get_db(), which commits at the end
  of the request and rolls back on error.
- Services use db.add() and db.flush(); they never commit.
- The ID allocator is the exception: it owns its sessions (one short
  transaction per attempt) so an issued number is durable before the caller
  uses it, independently of the caller's transaction.
"""

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from labloop.config import settings


def build_engine_args(database_url: str) -> dict[str, Any]:
    engine_args: dict[str, Any] = {
        "echo": settings.DEBUG,
    }

    # SQLite needs check_same_thread=False for multi-threading
    if database_url.startswith("sqlite"):
        engine_args["connect_args"] = {"check_same_thread": False, "timeout": 30}
    elif database_url.startswith("postgresql"):
        engine_args["pool_pre_ping"] = True
        engine_args["pool_size"] = settings.DB_POOL_SIZE
        engine_args["max_overflow"] = settings.DB_MAX_OVERFLOW
        engine_args["pool_recycle"] = 3600
    else:
        engine_args["pool_pre_ping"] = True

    return engine_args


engine = create_engine(settings.DATABASE_URL, **build_engine_args(settings.DATABASE_URL))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,  # Manual flush for better control over transaction boundaries
    bind=engine,
)


class Base(DeclarativeBase):
    """Base class for all database models"""

    pass


def get_db():
    """
    Dependency that yields a database session.

    Commits on successful completion (harmless for read-only requests) and
    rolls back on error.
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db():
    """Create database tables"""
    import labloop.models  # noqa: F401  (registers models on Base.metadata)

    Base.metadata.create_all(bind=engine)


def close_db():
    """Dispose database connections"""
    engine.dispose()
