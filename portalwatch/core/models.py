"""
Core DB models: task schedule bookkeeping (last run, next run, last error).
"""
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Text, JSON

from portalwatch.core.db import Base


def _utc_now() -> datetime:
    """UTC now as naive datetime for DateTime(timezone=False) columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TaskSchedule(Base):
    """Per-task schedule row so the last outcome and next trigger survive restarts."""
    __tablename__ = "task_schedules"

    task_name = Column(String(255), primary_key=True)
    schedule_type = Column(String(64), nullable=False)  # TaskType value
    schedule_config = Column(JSON, nullable=True)  # e.g. {"times": ["05:00", "17:00"]}
    next_run_at = Column(DateTime(timezone=False), nullable=True)
    last_run_at = Column(DateTime(timezone=False), nullable=True)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=False), default=_utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=False), default=_utc_now, onupdate=_utc_now, nullable=False)

