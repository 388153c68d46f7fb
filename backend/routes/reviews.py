# backend/routes/reviews.py
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from database import get_db
from models.review import Review
from models.tour import Tour
from models.users import User
from schemas.review import ReviewCreate, ReviewList
from schemas.tour import ReviewOut
from utils.audit import client_ip, write_log
from utils.tokenJWT import get_current_user, role_required
from utils.tour_stats import calc_average_ratings

router = APIRouter(prefix="/api/v1", tags=["Reviews"])

def _review_to_out(review: Review) -> ReviewOut:
    return ReviewOut(
        id=review.id, review=review.review, rating=review.rating, created_at=review.created_at,
        tour_id=review.tour_id, user_id=review.user_id,
        user_name=review.user.name if review.user else None,
    )

def _get_tour(db: Session, tour_id: int) -> Tour:
    tour = db.query(Tour).filter(Tour.id == tour_id).first()
    if not tour:
        raise HTTPException(status_code=404, detail="No tour found with that ID")
    return tour


@router.get("/tours/{tour_id}/reviews", response_model=ReviewList)
def list_reviews(tour_id: int, db: Session = Depends(get_db)):
    _get_tour(db, tour_id)
    reviews = db.query(Review).filter(Review.tour_id == tour_id).order_by(Review.id.asc()).all()
    return ReviewList(results=len(reviews), data=[_review_to_out(r) for r in reviews])


# Only regular users write reviews, one per tour
@router.post("/tours/{tour_id}/reviews", response_model=ReviewOut, status_code=status.HTTP_201_CREATED)
def create_review(
    tour_id: int,
    payload: ReviewCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required("user")),
):
    tour = _get_tour(db, tour_id)

    exists = db.query(Review).filter(Review.tour_id == tour.id, Review.user_id == current_user.id).first()
    if exists:
        raise HTTPException(status_code=409, detail="You have already reviewed this tour")

    review = Review(review=payload.review, rating=payload.rating, tour_id=tour.id, user_id=current_user.id)
    db.add(review)
    db.flush()
    calc_average_ratings(db, tour)
    db.commit()
    db.refresh(review)

    write_log(db, user_id=current_user.id, action="REVIEW_CREATE", resource="reviews", status="SUCCESS",
              ip=client_ip(request), meta={"id": review.id, "tour_id": tour.id})
    return _review_to_out(review)


# Authors delete their own reviews, admins any review
@router.delete("/reviews/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_review(
    review_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    review = db.query(Review).filter(Review.id == review_id).first()
    if not review:
        raise HTTPException(status_code=404, detail="No review found with that ID")
    if review.user_id != current_user.id and current_user.role != "admin":
        raise HTTPException(status_code=403, detail="You do not have permission to perform this action")

    tour = review.tour
    db.delete(review)
    db.flush()
    calc_average_ratings(db, tour)
    db.commit()

    write_log(db, user_id=current_user.id, action="REVIEW_DELETE", resource="reviews", status="SUCCESS",
              ip=client_ip(request), meta={"id": review_id, "tour_id": tour.id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
