# backend/models/log.py
from sqlalchemy import CheckConstraint, Column, Integer, String, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from database import Base

# Audit trail of account and tour events: sign-ups, logins, password changes, tour and review edits
class Log(Base):
    __tablename__ = "logs"
    __table_args__ = (
        CheckConstraint("status IN ('SUCCESS', 'FAIL')", name="ck_logs_status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # Null for anonymous attempts (failed sign-up, unknown login e-mail)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    action = Column(String(50), nullable=False, index=True)
    resource = Column(String(50), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="SUCCESS")
    ip = Column(String(64), nullable=True)

    # Never holds passwords or raw reset tokens
    meta = Column(JSON, nullable=True)

    user = relationship("User", lazy="joined", uselist=False)

    @property
    def user_email(self):
        return self.user.email if self.user else None
