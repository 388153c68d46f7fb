from pydantic import BaseModel, Field, field_validator
from typing import List

from schemas.tour import ReviewOut

# Input schema for a new review, the tour and author come from the URL and token
class ReviewCreate(BaseModel):
    review: str = Field(min_length=1)
    rating: int = Field(ge=1, le=5)

    @field_validator("review", mode="before")
    @classmethod
    def strip_review(cls, value):
        return value.strip() if isinstance(value, str) else value

class ReviewList(BaseModel):
    results: int
    data: List[ReviewOut]
