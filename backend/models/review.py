from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, CheckConstraint, UniqueConstraint, func
from sqlalchemy.orm import relationship
from database import Base

# A user's rating of a tour, one review per user and tour
class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("tour_id", "user_id", name="uq_reviews_tour_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    review = Column(String, nullable=False)
    rating = Column(Integer, CheckConstraint("rating >= 1 AND rating <= 5"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    tour_id = Column(Integer, ForeignKey("tours.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    tour = relationship("Tour", back_populates="reviews")
    user = relationship("User", back_populates="reviews", lazy="joined")
