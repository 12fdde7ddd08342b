"""
SQLAlchemy models for portal records: students and their assignment scores.
Primary keys are the portal's own ids so re-syncing upserts in place.
"""
from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, JSON

from portalwatch.core.db import Base
from portalwatch.core.models import _utc_now


class Student(Base):
    """A child listed on the parent dashboard. Never deleted."""
    __tablename__ = "students"

    id = Column(String(64), primary_key=True)  # portal student id
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=False), default=_utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=False), default=_utc_now, onupdate=_utc_now, nullable=False)


class AssignmentScore(Base):
    """One assignment score. data is replaced wholesale on every sync; notified only goes false -> true."""
    __tablename__ = "assignment_scores"

    id = Column(String(64), primary_key=True)  # portal score_id
    enrollment_id = Column(String(64), nullable=False, index=True)
    student_id = Column(String(64), ForeignKey("students.id"), nullable=False, index=True)
    data = Column(JSON, nullable=False)  # raw assignment fields: is_problem, completion_status, assignment_description, ...
    is_problem = Column(Boolean, default=False, nullable=False, index=True)  # derived from data on every upsert
    notified = Column(Boolean, default=False, nullable=False)
    notified_at = Column(DateTime(timezone=False), nullable=True)
    created_at = Column(DateTime(timezone=False), default=_utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=False), default=_utc_now, onupdate=_utc_now, nullable=False)
