# backend/schemas/tour.py
from datetime import datetime, timezone
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from typing import Optional, List, Literal

Difficulty = Literal["easy", "medium", "difficult"]


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class StartLocation(ORMBase):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    address: Optional[str] = None
    description: Optional[str] = None


# Shared base attributes for tour entities
class TourBase(ORMBase):
    name: str = Field(min_length=10, max_length=40)
    duration: int = Field(gt=0)
    max_group_size: int = Field(gt=0)
    difficulty: Difficulty
    price: float = Field(ge=0)
    price_discount: Optional[float] = Field(default=None, ge=0)
    summary: str = Field(min_length=1)
    description: Optional[str] = None
    image_cover: Optional[str] = None
    start_location: Optional[StartLocation] = None
    start_dates: List[datetime] = Field(default_factory=list)

    @field_validator("name", "summary", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("start_dates")
    @classmethod
    def dates_to_utc(cls, value: List[datetime]) -> List[datetime]:
        return [_to_naive_utc(d) for d in value]


# Schema for creating a new tour
class TourCreate(TourBase):
    @model_validator(mode="after")
    def discount_below_price(self):
        if self.price_discount is not None and self.price_discount >= self.price:
            raise ValueError("Discount price should be below regular price")
        return self


# Schema for partial tour updates
class TourUpdate(ORMBase):
    """Schema for PATCH requests - all fields optional."""
    name: Optional[str] = Field(None, min_length=10, max_length=40)
    duration: Optional[int] = Field(None, gt=0)
    max_group_size: Optional[int] = Field(None, gt=0)
    difficulty: Optional[Difficulty] = None
    price: Optional[float] = Field(None, ge=0)
    price_discount: Optional[float] = Field(None, ge=0)
    summary: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    image_cover: Optional[str] = None
    start_location: Optional[StartLocation] = None
    start_dates: Optional[List[datetime]] = None

    @field_validator("start_dates")
    @classmethod
    def dates_to_utc(cls, value: Optional[List[datetime]]) -> Optional[List[datetime]]:
        if value is None:
            return None
        return [_to_naive_utc(d) for d in value]


class ReviewOut(ORMBase):
    id: int
    review: str
    rating: int
    created_at: Optional[datetime] = None
    tour_id: int
    user_id: int
    user_name: Optional[str] = None


# Full tour representation
class TourOut(ORMBase):
    id: int
    name: str
    slug: Optional[str] = None
    duration: int
    max_group_size: int
    difficulty: str
    ratings_average: float
    ratings_quantity: int
    price: float
    price_discount: Optional[float] = None
    summary: str
    description: Optional[str] = None
    image_cover: Optional[str] = None
    created_at: Optional[datetime] = None
    start_location: Optional[StartLocation] = None
    start_dates: List[datetime] = Field(default_factory=list)


class TourDetail(TourOut):
    reviews: List[ReviewOut] = Field(default_factory=list)


# Paginated response for tour listings
class TourListPage(ORMBase):
    items: List[TourOut]
    total: int
    page: int
    page_size: int


class TourListResponse(BaseModel):
    results: int
    data: List[TourOut]
