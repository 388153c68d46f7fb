# backend/utils/geo.py
"""Spherical geo queries over tour start locations.

Radius search keeps the tours inside a spherical cap: a SQL bounding box
narrows the candidates, the exact central-angle test runs here. Distances are
great-circle metres (earth radius 6 378 100 m) scaled to the requested unit.
"""
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from models.tour import Tour
from utils.errors import AppError

EARTH_RADIUS_MI = 3963.2
EARTH_RADIUS_KM = 6378.1
EARTH_RADIUS_M = 6378100.0

METERS_TO_MILES = 0.000621371
METERS_TO_KM = 0.001

LATLNG_ERROR = "Please provide latitude and longitude in the format lat,lng."


@dataclass(frozen=True)
class TourDistance:
    id: int
    name: str
    distance: float


def parse_latlng(latlng: Optional[str]) -> Tuple[float, float]:
    """Split ``"lat,lng"`` into two floats, rejecting anything else before querying."""
    parts = (latlng or "").split(",")
    if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
        raise AppError(LATLNG_ERROR, 400)
    try:
        lat, lng = float(parts[0]), float(parts[1])
    except ValueError:
        raise AppError(LATLNG_ERROR, 400)
    if not (math.isfinite(lat) and math.isfinite(lng)) or not -90 <= lat <= 90 or not -180 <= lng <= 180:
        raise AppError(LATLNG_ERROR, 400)
    return lat, lng


def radius_in_radians(distance: float, unit: str) -> float:
    """Angular radius of the cap; any unit other than ``"mi"`` is kilometres."""
    if not math.isfinite(distance) or distance < 0:
        raise AppError("Distance must be a finite, non-negative number.", 400)
    earth_radius = EARTH_RADIUS_MI if unit == "mi" else EARTH_RADIUS_KM
    return distance / earth_radius


def distance_multiplier(unit: str) -> float:
    return METERS_TO_MILES if unit == "mi" else METERS_TO_KM


def central_angle(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    # haversine formula, result in radians
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lng2 - lng1)
    a = (math.sin(dphi / 2) ** 2) + math.cos(phi1) * math.cos(phi2) * (math.sin(dlambda / 2) ** 2)
    return 2 * math.atan2(math.sqrt(a), math.sqrt(max(0.0, 1 - a)))


def _located_tours(db: Session):
    return db.query(Tour).filter(Tour.start_lat.isnot(None), Tour.start_lng.isnot(None))


def find_tours_within_radius(db: Session, lat: float, lng: float, distance: float, unit: str) -> List[Tour]:
    radius = radius_in_radians(distance, unit)

    query = _located_tours(db)
    # Latitude band of the cap; longitude is left open so the antimeridian and poles need no special case
    band = math.degrees(radius)
    if band < 90:
        query = query.filter(Tour.start_lat >= lat - band, Tour.start_lat <= lat + band)

    return [
        tour
        for tour in query.order_by(Tour.id).all()
        if central_angle(lat, lng, tour.start_lat, tour.start_lng) <= radius
    ]


def compute_distances_from(db: Session, lat: float, lng: float, unit: str) -> List[TourDistance]:
    multiplier = distance_multiplier(unit)
    rows = _located_tours(db).with_entities(Tour.id, Tour.name, Tour.start_lat, Tour.start_lng).all()

    distances = [
        TourDistance(
            id=row.id,
            name=row.name,
            distance=central_angle(lat, lng, row.start_lat, row.start_lng) * EARTH_RADIUS_M * multiplier,
        )
        for row in rows
    ]
    distances.sort(key=lambda d: (d.distance, d.id))
    return distances
