# schemas/reports.py
from typing import List
from pydantic import BaseModel

# Per-difficulty aggregate over highly rated tours
class DifficultyStats(BaseModel):
    difficulty: str
    num_tours: int
    num_ratings: int
    avg_rating: float
    avg_price: float
    min_price: float
    max_price: float

class DifficultyStatsResponse(BaseModel):
    stats: List[DifficultyStats]

# Tour starts within one calendar month
class MonthlyPlanItem(BaseModel):
    month_name: str
    tours: List[str]
    num_tour_starts: int

class MonthlyPlanResponse(BaseModel):
    year: int
    plan: List[MonthlyPlanItem]

class TourDistanceItem(BaseModel):
    id: int
    name: str
    distance: float

class TourDistancesResponse(BaseModel):
    unit: str
    data: List[TourDistanceItem]
