"""
Database access for the vehicle sink.

The engine is built once from DATABASE_URL. PostgreSQL (the production
target) gets a bounded connection pool; SQLite URLs, used for local runs and
tests, get the thread-sharing flag instead because SQLite rejects the pool
arguments of server databases.

Attributes:
    logger: Logger for registering database-related events.
    engine: SQLAlchemy Engine bound to DATABASE_URL.
    SessionLocal: Session factory bound to engine.

Functions:
    engine_options: create_engine() keyword arguments for a database URL.
    init_db: Create the vehicles table if it does not exist.
    get_db: Transactional session scope.
    check_connection: Database availability probe.
    count_vehicles: Number of stored vehicle records.
"""

from contextlib import contextmanager
from typing import Any, Dict, Generator

from sqlalchemy import create_engine, func, select, text  # type: ignore
from sqlalchemy.engine import make_url  # type: ignore
from sqlalchemy.exc import SQLAlchemyError  # type: ignore
from sqlalchemy.orm import Session, sessionmaker  # type: ignore

from autotrader.config.settings import DATABASE_URL
from autotrader.core.models import Base, Vehicle
from autotrader.utils.logger import get_logger

logger = get_logger(__name__)


def engine_options(url: str) -> Dict[str, Any]:
    """
    Keyword arguments for create_engine() suited to the database backend.

    Args:
        url (str): SQLAlchemy database URL.

    Returns:
        Dict[str, Any]: Pool settings for server databases, the SQLite
        thread flag for SQLite.
    """
    if make_url(url).get_backend_name() == "sqlite":
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": 5,
        "max_overflow": 10,
        "pool_timeout": 30,
        "pool_recycle": 1800,  # Reconnect after 30 minutes to prevent connection drops
        "pool_pre_ping": True,
    }


engine = create_engine(DATABASE_URL, **engine_options(DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """
    Create the vehicles table (and its indexes) when missing.

    Raises:
        SQLAlchemyError: If the schema could not be created.
    """
    try:
        Base.metadata.create_all(bind=engine)
        logger.info(f"Database ready ({engine.url.get_backend_name()})")
    except SQLAlchemyError:
        logger.error("Error initializing database", exc_info=True)
        raise


@contextmanager
def get_db() -> Generator[Session, None, None]:
    """
    Transactional session scope used by the database sink.

    One scope covers one sink batch: the batch is committed as a whole when
    the block exits normally and rolled back on a database error.

    Yields:
        Session: Open session.

    Raises:
        SQLAlchemyError: Re-raised after rollback.

    Examples:
        >>> with get_db() as db:
        ...     db.add(Vehicle(url="https://www.autotrader.ca/a/honda/civic/1_2", make="Honda"))
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Vehicle batch rolled back", exc_info=True)
        raise
    finally:
        db.close()


def check_connection() -> bool:
    """
    Database availability probe.

    Returns:
        bool: True if a trivial query succeeds, False otherwise.
    """
    try:
        with get_db() as db:
            db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.error("Database connection error", exc_info=True)
        return False
    logger.info("Database connection successful")
    return True


def count_vehicles() -> int:
    """Number of vehicle records currently stored."""
    with get_db() as db:
        return db.scalar(select(func.count(Vehicle.id))) or 0
