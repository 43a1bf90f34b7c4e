"""CalendarSession ORM model — the auth store keyed by session id.

Only the refresh token is stored. Access tokens are minted at call time and
never persisted.
"""
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from app.database import Base


class CalendarSession(Base):
    __tablename__ = "calendar_sessions"

    session_id = Column(String(36), primary_key=True)
    refresh_token = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
