"""
Database utilities.

This module contains helper functions for writing vehicle records to the
database, including duplicate checks and race-safe inserts.
"""

from typing import Any, Dict, Optional

from sqlalchemy import text  # type: ignore
from sqlalchemy.exc import IntegrityError  # type: ignore
from sqlalchemy.orm import Session  # type: ignore

from autotrader.core.models import Vehicle
from autotrader.utils.logger import get_logger

logger = get_logger(__name__)


def check_url_exists(db: Session, url: str) -> Optional[int]:
    """
    Checks if a record with the specified URL exists in the database.

    Args:
        db (Session): SQLAlchemy database session.
        url (str): Listing URL to check.

    Returns:
        Optional[int]: Record ID if URL exists in database, or None if record not found.
    """
    return db.query(Vehicle.id).filter(Vehicle.url == url).scalar()


def safe_insert_vehicle(db: Session, vehicle_data: Dict[str, Any]) -> Optional[int]:
    """
    Safely inserts a new vehicle record with a duplicate URL check.

    On PostgreSQL the table is locked for the duration of the nested
    transaction so that parallel workers cannot insert the same URL twice.
    A unique-constraint violation raised anyway (another process won the
    race) is treated as a duplicate.

    Args:
        db (Session): SQLAlchemy database session.
        vehicle_data (Dict[str, Any]): Column values, url is required.

    Returns:
        Optional[int]: ID of inserted record, or None for a duplicate.

    Raises:
        ValueError: If vehicle_data has no url.
        SQLAlchemyError: For database errors other than duplicates.

    Example:
        ```python
        with get_db() as db:
            vehicle_id = safe_insert_vehicle(db, {
                "url": "https://www.autotrader.ca/a/honda/civic/toronto/ontario/5_123_/",
                "make": "Honda",
                "price": 24995,
            })
        ```
    """
    if not vehicle_data or not vehicle_data.get("url"):
        raise ValueError("Vehicle data without url cannot be saved")

    url = vehicle_data["url"]
    nested = db.begin_nested()
    try:
        if db.get_bind().dialect.name == "postgresql":
            db.execute(text("LOCK TABLE vehicles IN SHARE ROW EXCLUSIVE MODE"))

        existing_id = check_url_exists(db, url)
        if existing_id:
            logger.info(f"Vehicle with URL {url} already exists in DB, ID: {existing_id}")
            nested.commit()
            return None

        vehicle = Vehicle(**vehicle_data)
        db.add(vehicle)
        db.flush()
        nested.commit()
        logger.debug(f"Vehicle {vehicle.make} {vehicle.model} saved, ID: {vehicle.id}")
        return vehicle.id
    except IntegrityError:
        nested.rollback()
        existing_id = check_url_exists(db, url)
        if existing_id:
            logger.info(f"Vehicle with URL {url} was added by another process, ID: {existing_id}")
            return None
        raise
    except Exception:
        nested.rollback()
        raise
