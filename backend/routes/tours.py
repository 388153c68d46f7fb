# backend/routes/tours.py
import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.orm import Session, selectinload

from database import get_db
from models.tour import Tour, TourStartDate, slugify
from models.users import User
from schemas import tour as tour_schemas
from schemas.reports import (
    DifficultyStatsResponse, MonthlyPlanResponse,
    TourDistanceItem, TourDistancesResponse,
)
from utils.audit import client_ip, write_log
from utils.geo import compute_distances_from, find_tours_within_radius, parse_latlng
from utils.tokenJWT import role_required
from utils.tour_stats import DEFAULT_MIN_RATING, get_difficulty_stats, get_monthly_plan

router = APIRouter(prefix="/api/v1/tours", tags=["Tours"])
logger = logging.getLogger(__name__)

tour_editors = role_required("admin", "lead-guide")
tour_planners = role_required("admin", "lead-guide", "guide")

# Fields a PATCH may clear by sending null
NULLABLE_FIELDS = {"price_discount", "description", "image_cover"}

# ---- HELPERS ----
def _tour_to_out(tour: Tour, schema=tour_schemas.TourOut):
    start_location = None
    if tour.start_lat is not None and tour.start_lng is not None:
        start_location = tour_schemas.StartLocation(
            lat=tour.start_lat, lng=tour.start_lng,
            address=tour.start_address, description=tour.start_description,
        )

    fields = [f for f in schema.model_fields if f not in {"start_location", "start_dates", "reviews"}]
    data = {f: getattr(tour, f) for f in fields if hasattr(tour, f)}
    data["start_location"] = start_location
    data["start_dates"] = tour.start_date_values
    if "reviews" in schema.model_fields:
        data["reviews"] = [
            tour_schemas.ReviewOut(
                id=r.id, review=r.review, rating=r.rating, created_at=r.created_at,
                tour_id=r.tour_id, user_id=r.user_id, user_name=r.user.name if r.user else None,
            )
            for r in tour.reviews
        ]
    return schema.model_validate(data)

def _apply_start_location(tour: Tour, location: Optional[tour_schemas.StartLocation]) -> None:
    if location is None:
        tour.start_lat = tour.start_lng = tour.start_address = tour.start_description = None
        return
    tour.start_lat = location.lat
    tour.start_lng = location.lng
    tour.start_address = location.address
    tour.start_description = location.description

def _get_tour(db: Session, tour_id: int) -> Tour:
    tour = db.query(Tour).filter(Tour.id == tour_id).first()
    if not tour:
        raise HTTPException(status_code=404, detail="No tour found with that ID")
    return tour


# =========================
# LIST OF TOURS
# =========================
@router.get("", response_model=tour_schemas.TourListPage)
def list_tours(
    difficulty: Optional[tour_schemas.Difficulty] = Query(None),
    price_min: Optional[float] = Query(None, ge=0),
    price_max: Optional[float] = Query(None, ge=0),
    rating_min: Optional[float] = Query(None, ge=0, le=5),
    duration_max: Optional[int] = Query(None, gt=0),
    page: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=1000),
    sort_by: Literal["id", "name", "price", "ratings_average", "duration", "created_at"] = "id",
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
):
    query = db.query(Tour).options(selectinload(Tour.start_dates))

    if difficulty: query = query.filter(Tour.difficulty == difficulty)
    if price_min is not None: query = query.filter(Tour.price >= price_min)
    if price_max is not None: query = query.filter(Tour.price <= price_max)
    if rating_min is not None: query = query.filter(Tour.ratings_average >= rating_min)
    if duration_max is not None: query = query.filter(Tour.duration <= duration_max)

    allowed = {
        "id": Tour.id, "name": Tour.name, "price": Tour.price,
        "ratings_average": Tour.ratings_average, "duration": Tour.duration,
        "created_at": Tour.created_at,
    }
    sort_col = allowed.get(sort_by, Tour.id)
    query = query.order_by(sort_col.asc() if order == "asc" else sort_col.desc(), Tour.id.asc())

    total = query.count()
    items: List[Tour] = query.offset((page - 1) * page_size).limit(page_size).all()

    return {"items": [_tour_to_out(t) for t in items], "total": total, "page": page, "page_size": page_size}


# Best rated, cheapest first
@router.get("/top-5-cheap", response_model=tour_schemas.TourListResponse)
def top_five_cheap(db: Session = Depends(get_db)):
    tours = (
        db.query(Tour)
        .order_by(Tour.ratings_average.desc(), Tour.price.asc(), Tour.id.asc())
        .limit(5)
        .all()
    )
    return {"results": len(tours), "data": [_tour_to_out(t) for t in tours]}


# =========================
# REPORTS
# =========================
@router.get("/tour-stats", response_model=DifficultyStatsResponse)
def tour_stats(
    min_rating: float = Query(DEFAULT_MIN_RATING, ge=0, le=5),
    db: Session = Depends(get_db),
):
    return DifficultyStatsResponse(stats=get_difficulty_stats(db, min_rating=min_rating))


@router.get("/monthly-plan/{year}", response_model=MonthlyPlanResponse)
def monthly_plan(
    year: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(tour_planners),
):
    return MonthlyPlanResponse(year=year, plan=get_monthly_plan(db, year))


# =========================
# GEO QUERIES
# =========================
@router.get(
    "/tours-within/{distance}/center/{latlng}/unit/{unit}",
    response_model=tour_schemas.TourListResponse,
)
def tours_within(distance: float, latlng: str, unit: str, db: Session = Depends(get_db)):
    lat, lng = parse_latlng(latlng)
    tours = find_tours_within_radius(db, lat, lng, distance, unit)
    return {"results": len(tours), "data": [_tour_to_out(t) for t in tours]}


@router.get("/distances/{latlng}/unit/{unit}", response_model=TourDistancesResponse)
def distances(latlng: str, unit: str, db: Session = Depends(get_db)):
    lat, lng = parse_latlng(latlng)
    rows = compute_distances_from(db, lat, lng, unit)
    return TourDistancesResponse(
        unit="mi" if unit == "mi" else "km",
        data=[TourDistanceItem(id=r.id, name=r.name, distance=r.distance) for r in rows],
    )


# =========================
# SINGLE TOUR
# =========================
@router.get("/{tour_id}", response_model=tour_schemas.TourDetail)
def get_tour(tour_id: int, db: Session = Depends(get_db)):
    return _tour_to_out(_get_tour(db, tour_id), schema=tour_schemas.TourDetail)


@router.post("", response_model=tour_schemas.TourOut, status_code=status.HTTP_201_CREATED)
def create_tour(
    payload: tour_schemas.TourCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(tour_editors),
):
    data = payload.model_dump(exclude={"start_location", "start_dates"})
    tour = Tour(slug=slugify(payload.name), **data)
    _apply_start_location(tour, payload.start_location)
    tour.start_dates = [TourStartDate(start_date=d) for d in payload.start_dates]

    db.add(tour)
    db.commit()
    db.refresh(tour)

    write_log(db, user_id=current_user.id, action="TOUR_CREATE", resource="tours", status="SUCCESS",
              ip=client_ip(request), meta={"id": tour.id, "name": tour.name})
    return _tour_to_out(tour)


@router.patch("/{tour_id}", response_model=tour_schemas.TourOut)
def update_tour(
    tour_id: int,
    payload: tour_schemas.TourUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(tour_editors),
):
    tour = _get_tour(db, tour_id)
    data = payload.model_dump(exclude_unset=True)

    if "start_location" in data:
        _apply_start_location(tour, payload.start_location)
    if data.get("start_dates") is not None:
        tour.start_dates = [TourStartDate(start_date=d) for d in payload.start_dates]

    for key, value in data.items():
        if key in {"start_location", "start_dates"}:
            continue
        if value is None and key not in NULLABLE_FIELDS:
            continue
        setattr(tour, key, value)
    if data.get("name"):
        tour.slug = slugify(payload.name)

    if tour.price_discount is not None and tour.price_discount >= tour.price:
        raise HTTPException(status_code=400, detail="Discount price should be below regular price")

    db.commit()
    db.refresh(tour)

    write_log(db, user_id=current_user.id, action="TOUR_UPDATE", resource="tours", status="SUCCESS",
              ip=client_ip(request), meta={"id": tour.id, "fields": sorted(data)})
    return _tour_to_out(tour)


@router.delete("/{tour_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tour(
    tour_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(tour_editors),
):
    tour = _get_tour(db, tour_id)
    tid, tname = tour.id, tour.name
    db.delete(tour)
    db.commit()

    logger.info("Tour %s (%s) deleted by user %s", tid, tname, current_user.id)
    write_log(db, user_id=current_user.id, action="TOUR_DELETE", resource="tours", status="SUCCESS",
              ip=client_ip(request), meta={"id": tid})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
