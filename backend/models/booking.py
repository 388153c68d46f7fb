from sqlalchemy import Boolean, Column, Integer, Float, ForeignKey, DateTime, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base

# A seat on a tour bought by a user; created after the payment provider confirms the charge
class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    tour_id = Column(Integer, ForeignKey("tours.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Price actually charged, copied from the tour when not given
    price = Column(Float, CheckConstraint("price >= 0"), nullable=False)
    paid = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    tour = relationship("Tour", back_populates="bookings", lazy="joined")
    user = relationship("User", back_populates="bookings", lazy="joined")
