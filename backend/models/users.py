# backend/models/users.py
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship
from database import Base

# Represents a user account with login credentials and password bookkeeping
class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('user', 'guide', 'lead-guide', 'admin')", name="ck_users_role"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    photo = Column(String, nullable=False, default="default.jpg")
    role = Column(String, nullable=False, default="user")

    # Only the bcrypt hash is ever stored
    password_hash = Column(String, nullable=False)
    password_changed_at = Column(DateTime, nullable=True)

    # SHA-256 digest of the pending reset token and its expiry (UTC)
    password_reset_token = Column(String(64), nullable=True, index=True)
    password_reset_expires = Column(DateTime, nullable=True)

    # Soft delete flag, inactive accounts are hidden from default lookups
    active = Column(Boolean, nullable=False, default=True)

    reviews = relationship("Review", back_populates="user")
    bookings = relationship("Booking", back_populates="user")
