"""
Data models for working with the database.

This module contains SQLAlchemy ORM model definitions for storing the vehicle
records produced by the crawler. The main model is Vehicle, one row per
listing detail URL.

Classes:
    Base: Base class for all SQLAlchemy ORM models.
    Vehicle: Model for storing vehicle listing information.
"""

from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text  # type: ignore
from sqlalchemy.orm import declarative_base  # type: ignore

Base = declarative_base()


class Vehicle(Base):
    """
    Model for storing vehicle listing information.

    Columns mirror the produced record schema. The listing URL is unique;
    VIN is indexed but not unique, since the same physical vehicle may be
    listed under several URLs.

    Attributes:
        id (int): Unique record identifier in the database.
        url (str): Listing detail URL. Indexed and must be unique.
        ad_id (str): Listing identifier on the site.
        price (int): Asking price, currency-agnostic.
        mileage (int): Odometer reading.
        images (list): Ordered image URLs (JSON).
        features (list): Feature list (JSON).
        datetime_found (datetime): Date and time when the record was saved.
    """

    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True)
    url = Column(String, unique=True, nullable=False, index=True)
    ad_id = Column(String, index=True)
    make = Column(String)
    model = Column(String)
    year = Column(Integer)
    trim = Column(String)
    price = Column(Integer)
    price_formatted = Column(String)
    mileage = Column(Integer)
    mileage_formatted = Column(String)
    transmission = Column(String)
    drivetrain = Column(String)
    body_type = Column(String)
    exterior_color = Column(String)
    interior_color = Column(String)
    fuel_type = Column(String)
    engine = Column(String)
    doors = Column(Integer)
    seats = Column(Integer)
    city = Column(String)
    province = Column(String)
    seller_name = Column(String)
    is_private_seller = Column(Boolean)
    dealer_id = Column(String)
    description = Column(Text)
    images = Column(JSON, default=list)
    vehicle_status = Column(String)
    vin = Column(String, index=True)
    stock_number = Column(String)
    features = Column(JSON, default=list)
    datetime_found = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Vehicle(id={self.id}, make='{self.make}', model='{self.model}', url='{self.url}')>"
