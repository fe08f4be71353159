import logging
from contextlib import contextmanager

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from sqlalchemy import create_engine, event
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from .config import settings
from .errors import PersistenceUnavailableError

logger = logging.getLogger(__name__)


def build_engine(database_url: str):
    """Create an engine; SQLite gets cross-thread access and foreign keys."""
    is_sqlite = database_url.startswith("sqlite")
    engine = create_engine(
        database_url,
        # check_same_thread=False: FastAPI runs sync endpoints in a thread pool
        connect_args={"check_same_thread": False, "timeout": 15} if is_sqlite else {},
        pool_pre_ping=not is_sqlite,
    )

    if is_sqlite:
        @event.listens_for(engine, "connect")
        def enable_sqlite_fk(dbapi_connection, _):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = build_engine(settings.resolved_database_url)

# SessionLocal is the main entry point for working with the database
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


# FastAPI dependency
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def persistence_guard(db: Session | None = None):
    """
    Translate store outages into PersistenceUnavailableError.

    The session (if given) is rolled back so it stays usable for the caller.
    Domain errors raised inside the block pass through untouched.
    """
    try:
        yield
    except (OperationalError, InterfaceError) as e:
        if db is not None:
            db.rollback()
        logger.exception("Database unavailable")
        raise PersistenceUnavailableError(f"Database unavailable: {e.orig or e}") from e
    except (RedisConnectionError, RedisTimeoutError) as e:
        if db is not None:
            db.rollback()
        logger.exception("Redis unavailable")
        raise PersistenceUnavailableError(f"Redis unavailable: {e}") from e
