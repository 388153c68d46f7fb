# backend/utils/tour_stats.py
from collections import OrderedDict
from typing import List

from sqlalchemy import extract, func
from sqlalchemy.orm import Session

from models.review import Review
from models.tour import Tour, TourStartDate
from schemas.reports import DifficultyStats, MonthlyPlanItem
from utils.errors import AppError

DEFAULT_MIN_RATING = 4.5
# Rating shown for a tour without reviews
DEFAULT_RATING = 4.5

MONTH_NAMES = {
    1: "January",
    2: "February",
    3: "March",
    4: "April",
    5: "May",
    6: "June",
    7: "July",
    8: "August",
    9: "September",
    10: "October",
    11: "November",
    12: "December",
}
MONTH_ORDER = {name: number for number, name in MONTH_NAMES.items()}
UNKNOWN_MONTH = "Unknown"


def month_name(month: int) -> str:
    return MONTH_NAMES.get(month, UNKNOWN_MONTH)


def get_difficulty_stats(db: Session, min_rating: float = DEFAULT_MIN_RATING) -> List[DifficultyStats]:
    """Rating and price aggregates of tours rated ``min_rating`` or better, per difficulty."""
    rows = (
        db.query(
            Tour.difficulty.label("difficulty"),
            func.count(Tour.id).label("num_tours"),
            func.coalesce(func.sum(Tour.ratings_quantity), 0).label("num_ratings"),
            func.avg(Tour.ratings_average).label("avg_rating"),
            func.avg(Tour.price).label("avg_price"),
            func.min(Tour.price).label("min_price"),
            func.max(Tour.price).label("max_price"),
        )
        .filter(Tour.ratings_average >= min_rating)
        .group_by(Tour.difficulty)
        .order_by(Tour.difficulty.asc())
        .all()
    )

    return [
        DifficultyStats(
            difficulty=r.difficulty,
            num_tours=r.num_tours,
            num_ratings=int(r.num_ratings),
            avg_rating=float(r.avg_rating),
            avg_price=float(r.avg_price),
            min_price=float(r.min_price),
            max_price=float(r.max_price),
        )
        for r in rows
    ]


def get_monthly_plan(db: Session, year: int) -> List[MonthlyPlanItem]:
    """Tour starts of ``year`` grouped by UTC calendar month.

    Months without starts are left out. Output is January first.
    """
    if not 1 <= year <= 9999:
        raise AppError(f"Invalid year: {year}", 400)

    month_col = extract("month", TourStartDate.start_date)
    year_col = extract("year", TourStartDate.start_date)

    # One row per start date
    rows = (
        db.query(month_col.label("month"), Tour.name.label("name"))
        .join(Tour, Tour.id == TourStartDate.tour_id)
        .filter(year_col == year, month_col >= 1, month_col <= 12)
        .order_by(TourStartDate.start_date.asc(), Tour.id.asc())
        .all()
    )

    grouped = OrderedDict()
    for row in rows:
        grouped.setdefault(int(row.month), []).append(row.name)

    plan = [
        MonthlyPlanItem(month_name=month_name(month), tours=names, num_tour_starts=len(names))
        for month, names in grouped.items()
    ]

    # Grouping order is not relied upon
    plan.sort(key=lambda item: MONTH_ORDER.get(item.month_name, len(MONTH_ORDER) + 1))
    return plan


def calc_average_ratings(db: Session, tour: Tour) -> Tour:
    """Refresh the cached rating aggregate of ``tour`` from its reviews. The caller commits."""
    count, average = (
        db.query(func.count(Review.id), func.avg(Review.rating))
        .filter(Review.tour_id == tour.id)
        .one()
    )
    if count:
        tour.ratings_quantity = count
        tour.ratings_average = round(float(average), 1)
    else:
        tour.ratings_quantity = 0
        tour.ratings_average = DEFAULT_RATING
    return tour
