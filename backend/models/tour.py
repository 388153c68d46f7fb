# backend/models/tour.py
import re

from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


# Model Tour
# A single tour listing: catalogue data, pricing, the cached rating
# aggregate maintained from reviews, the start location used by the
# geo queries and the list of start dates used by the monthly plan.
class Tour(Base):
    __tablename__ = "tours"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    slug = Column(String, index=True)

    duration = Column(Integer, CheckConstraint("duration > 0"), nullable=False)
    max_group_size = Column(Integer, CheckConstraint("max_group_size > 0"), nullable=False)
    difficulty = Column(String, nullable=False, index=True)

    # Recomputed whenever a review is created or deleted
    ratings_average = Column(Float, nullable=False, default=4.5)
    ratings_quantity = Column(Integer, nullable=False, default=0)

    price = Column(Float, CheckConstraint("price >= 0"), nullable=False)
    price_discount = Column(Float, nullable=True)

    summary = Column(String, nullable=False)
    description = Column(String)
    image_cover = Column(String)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Start location, degrees (WGS84)
    start_lat = Column(Float, nullable=True, index=True)
    start_lng = Column(Float, nullable=True)
    start_address = Column(String)
    start_description = Column(String)

    start_dates = relationship(
        "TourStartDate",
        back_populates="tour",
        cascade="all, delete-orphan",
        order_by="TourStartDate.start_date",
    )
    reviews = relationship("Review", back_populates="tour", cascade="all, delete-orphan")
    bookings = relationship("Booking", back_populates="tour", cascade="all, delete-orphan")

    @property
    def start_date_values(self):
        return [sd.start_date for sd in self.start_dates]


# One row per start date, stored as naive UTC
class TourStartDate(Base):
    __tablename__ = "tour_start_dates"

    id = Column(Integer, primary_key=True, index=True)
    tour_id = Column(Integer, ForeignKey("tours.id", ondelete="CASCADE"), nullable=False, index=True)
    start_date = Column(DateTime, nullable=False, index=True)

    tour = relationship("Tour", back_populates="start_dates")
