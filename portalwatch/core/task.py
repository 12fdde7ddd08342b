"""
Base task type and abstract BaseTask with run bookkeeping in DB.
Schedule times are local wall-clock; DB columns hold naive UTC.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select

from portalwatch.core.db import Database
from portalwatch.core.models import TaskSchedule


class TaskType:
    """Schedule kind for tasks."""
    DAILY = "daily"


def parse_schedule_time(value: Any) -> Tuple[int, int]:
    """Parse 'HH:MM' into (hour, minute). Raises ValueError on anything else."""
    parts = str(value).strip().split(":")
    if len(parts) != 2:
        raise ValueError(f"Invalid schedule time: {value!r}")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Invalid schedule time: {value!r}")
    return hour, minute


def _daily_times(schedule_config: Dict[str, Any]) -> List[Tuple[int, int]]:
    return [parse_schedule_time(t) for t in schedule_config["times"]]


def compute_next_run(schedule_config: Dict[str, Any], last_run: Optional[datetime] = None) -> datetime:
    """Next daily trigger (naive local time) strictly after last_run, from schedule_config["times"]."""
    if last_run is None:
        last_run = datetime.now()

    candidates = [
        last_run.replace(hour=hour, minute=minute, second=0, microsecond=0)
        for hour, minute in _daily_times(schedule_config)
    ]
    upcoming = [c for c in candidates if c > last_run]
    if upcoming:
        return min(upcoming)
    return min(candidates) + timedelta(days=1)


def _to_utc_naive(dt: datetime) -> datetime:
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def upsert_task_schedule(
    db: Database,
    task_name: str,
    schedule_type: str,
    schedule_config: Optional[Dict[str, Any]],
    next_run_at: Optional[datetime] = None,
    last_run_at: Optional[datetime] = None,
    last_error: Optional[str] = None,
    clear_error: bool = False,
) -> None:
    """Create or update the TaskSchedule row. Datetime arguments are naive UTC."""
    with db.session_scope() as session:
        row = session.execute(
            select(TaskSchedule).where(TaskSchedule.task_name == task_name)
        ).scalars().first()
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        if row is None:
            row = TaskSchedule(task_name=task_name, created_at=now)
            session.add(row)
        row.schedule_type = schedule_type
        row.schedule_config = schedule_config
        if next_run_at is not None:
            row.next_run_at = next_run_at
        if last_run_at is not None:
            row.last_run_at = last_run_at
        if last_error is not None:
            row.last_error = last_error
        elif clear_error:
            row.last_error = None
        row.updated_at = now


class BaseTask(ABC):
    """
    Abstract base for scheduled tasks. Subclasses implement run();
    base computes the next trigger and persists run outcomes in DB.
    """

    def __init__(self, task_name: str, schedule_type: str, schedule_config: Optional[Dict[str, Any]] = None):
        self.task_name = task_name
        self.schedule_type = schedule_type
        self.schedule_config = schedule_config or {}
        self.logger = logging.getLogger(self.__class__.__name__)

    def get_next_run(self, last_run: Optional[datetime] = None) -> datetime:
        """Compute next run time from schedule_config."""
        return compute_next_run(self.schedule_config, last_run)

    def seconds_until_next_run(self, now: Optional[datetime] = None) -> float:
        now = now or datetime.now()
        # Timers can fire a hair early; never re-arm for the trigger that just fired.
        next_run = self.get_next_run(now + timedelta(seconds=1))
        return max(0.0, (next_run - now).total_seconds())

    def update_after_run(self, db: Database) -> None:
        """Record a successful run: last_run_at now, error cleared, next_run_at recomputed."""
        now = datetime.now()
        upsert_task_schedule(
            db,
            self.task_name,
            self.schedule_type,
            self.schedule_config,
            next_run_at=_to_utc_naive(self.get_next_run(now)),
            last_run_at=_to_utc_naive(now),
            clear_error=True,
        )

    def record_error(self, db: Database, error: BaseException) -> None:
        """Record a failed run on the schedule row."""
        now = datetime.now()
        upsert_task_schedule(
            db,
            self.task_name,
            self.schedule_type,
            self.schedule_config,
            next_run_at=_to_utc_naive(self.get_next_run(now)),
            last_run_at=_to_utc_naive(now),
            last_error=f"{error.__class__.__name__}: {error}",
        )

    @abstractmethod
    def run(self, **kwargs: Any) -> None:
        """
        Execute the task. Subclass should do the work, then call update_after_run(db).
        """
        pass
