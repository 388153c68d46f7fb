# backend/routes/bookings.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.orm import Session

from database import get_db
from models.booking import Booking
from models.tour import Tour
from models.users import User
from schemas.booking import BookingCreate, BookingList, BookingOut, BookingPage, BookingUpdate
from utils.audit import client_ip, write_log
from utils.credentials import active_users
from utils.tokenJWT import get_current_user, role_required

router = APIRouter(prefix="/api/v1/bookings", tags=["Bookings"])

booking_managers = role_required("admin", "lead-guide")

def _booking_to_out(booking: Booking) -> BookingOut:
    return BookingOut(
        id=booking.id, tour_id=booking.tour_id, user_id=booking.user_id,
        tour_name=booking.tour.name if booking.tour else None,
        user_email=booking.user.email if booking.user else None,
        price=booking.price, paid=booking.paid, created_at=booking.created_at,
    )

def _get_booking(db: Session, booking_id: int) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        raise HTTPException(status_code=404, detail="No booking found with that ID")
    return booking


# Bookings of the logged in user, newest first
@router.get("/my-bookings", response_model=BookingList)
def my_bookings(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    bookings = (
        db.query(Booking)
        .filter(Booking.user_id == current_user.id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .all()
    )
    return BookingList(results=len(bookings), data=[_booking_to_out(b) for b in bookings])


@router.get("", response_model=BookingPage)
def list_bookings(
    tour_id: Optional[int] = Query(None),
    user_id: Optional[int] = Query(None),
    paid: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(booking_managers),
):
    query = db.query(Booking)

    if tour_id is not None: query = query.filter(Booking.tour_id == tour_id)
    if user_id is not None: query = query.filter(Booking.user_id == user_id)
    if paid is not None: query = query.filter(Booking.paid.is_(paid))

    total = query.count()
    bookings = query.order_by(Booking.id.asc()).offset((page - 1) * page_size).limit(page_size).all()
    return {"items": [_booking_to_out(b) for b in bookings], "total": total, "page": page, "page_size": page_size}


@router.get("/{booking_id}", response_model=BookingOut)
def get_booking(booking_id: int, db: Session = Depends(get_db), current_user: User = Depends(booking_managers)):
    return _booking_to_out(_get_booking(db, booking_id))


@router.post("", response_model=BookingOut, status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: BookingCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(booking_managers),
):
    tour = db.query(Tour).filter(Tour.id == payload.tour_id).first()
    if not tour:
        raise HTTPException(status_code=404, detail="No tour found with that ID")
    customer = active_users(db).filter(User.id == payload.user_id).first()
    if not customer:
        raise HTTPException(status_code=404, detail="No user found with that ID")

    price = payload.price if payload.price is not None else tour.price
    booking = Booking(tour_id=tour.id, user_id=customer.id, price=price, paid=payload.paid)
    db.add(booking)
    db.commit()
    db.refresh(booking)

    write_log(db, user_id=current_user.id, action="BOOKING_CREATE", resource="bookings", status="SUCCESS",
              ip=client_ip(request), meta={"id": booking.id, "tour_id": tour.id, "user_id": customer.id})
    return _booking_to_out(booking)


@router.patch("/{booking_id}", response_model=BookingOut)
def update_booking(
    booking_id: int,
    payload: BookingUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(booking_managers),
):
    booking = _get_booking(db, booking_id)

    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    for key, value in data.items():
        setattr(booking, key, value)
    db.commit()
    db.refresh(booking)

    write_log(db, user_id=current_user.id, action="BOOKING_UPDATE", resource="bookings", status="SUCCESS",
              ip=client_ip(request), meta={"id": booking.id, "fields": sorted(data)})
    return _booking_to_out(booking)


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_booking(
    booking_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(booking_managers),
):
    booking = _get_booking(db, booking_id)
    db.delete(booking)
    db.commit()

    write_log(db, user_id=current_user.id, action="BOOKING_DELETE", resource="bookings", status="SUCCESS",
              ip=client_ip(request), meta={"id": booking_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
