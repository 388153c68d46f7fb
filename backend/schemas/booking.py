from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Manual booking by staff; price defaults to the tour's current price
class BookingCreate(BaseModel):
    tour_id: int
    user_id: int
    price: Optional[float] = Field(None, ge=0)
    paid: bool = True

class BookingUpdate(BaseModel):
    price: Optional[float] = Field(None, ge=0)
    paid: Optional[bool] = None

class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tour_id: int
    tour_name: Optional[str] = None
    user_id: int
    user_email: Optional[str] = None
    price: float
    paid: bool
    created_at: Optional[datetime] = None

class BookingPage(BaseModel):
    items: List[BookingOut]
    total: int
    page: int
    page_size: int

class BookingList(BaseModel):
    results: int
    data: List[BookingOut]
