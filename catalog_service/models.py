import datetime
import uuid

from sqlalchemy import Column, Integer, String, Float, Text, DateTime, CheckConstraint
from .database import Base


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def new_hotel_id() -> str:
    return str(uuid.uuid4())


class Hotel(Base):
    __tablename__ = "hotels"

    id = Column(String(36), primary_key=True, default=new_hotel_id)
    name = Column(String(255), nullable=False, index=True)
    address = Column(String(255), nullable=False)
    city = Column(String(128), nullable=False, index=True)
    country = Column(String(128), nullable=False, index=True)
    rating = Column(Float, nullable=True)
    description = Column(Text, nullable=True)
    unit_price = Column(Float, nullable=False)
    available_units = Column(Integer, nullable=False)
    image_ref = Column(String(1024), nullable=True)
    # Set from Python so ordering keeps sub-second resolution on every backend
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint('available_units >= 0', name='hotels_available_units_non_negative'),
        CheckConstraint('unit_price >= 0', name='hotels_unit_price_non_negative'),
        CheckConstraint('rating IS NULL OR (rating >= 0 AND rating <= 5)', name='hotels_rating_range'),
    )

    def __repr__(self):
        return f"<Hotel(id='{self.id}', name='{self.name}', available_units={self.available_units})>"
