from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Integer, String, Text

from .db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class RecurringTaskModel(Base):
    __tablename__ = "recurring_tasks"

    id = Column(String(64), primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    notes = Column(Text, nullable=False, default="")
    category = Column(String(100), nullable=True)
    frequency = Column(String(40), nullable=False)
    recurrence_params = Column(JSON, nullable=False, default=dict)
    next_due_date = Column(Date, nullable=False, index=True)
    last_completed_date = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    completion_history = Column(JSON, nullable=False, default=list)
    current_streak = Column(Integer, nullable=False, default=0)
    associated_airdrop_id = Column(String(64), nullable=True, index=True)
    tags = Column(JSON, nullable=False, default=list)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
