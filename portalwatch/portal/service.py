"""
Service layer: upsert and query portal records in the store.
"""
from datetime import datetime, timezone
from typing import Any, Iterator, List, Optional

from sqlalchemy import select

from portalwatch.core.db import Database
from portalwatch.portal.extractor import AssignmentScoreInfo, StudentInfo
from portalwatch.portal.models import AssignmentScore, Student


def is_problem_flag(value: Any) -> bool:
    """The portal marks problem assignments with is_problem = 1."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true")


def upsert_student(db: Database, info: StudentInfo) -> None:
    """Create or update a Student by id."""
    with db.session_scope() as session:
        row = session.get(Student, info.id)
        if row is None:
            session.add(Student(id=info.id, name=info.name))
        else:
            row.name = info.name


def upsert_assignment_score(db: Database, info: AssignmentScoreInfo) -> None:
    """Create or update an AssignmentScore by id. Replaces data; never touches notified."""
    problem = is_problem_flag((info.data or {}).get("is_problem"))
    with db.session_scope() as session:
        row = session.get(AssignmentScore, info.id)
        if row is None:
            session.add(
                AssignmentScore(
                    id=info.id,
                    enrollment_id=info.enrollment_id,
                    student_id=info.student_id,
                    data=info.data,
                    is_problem=problem,
                    notified=False,
                )
            )
        else:
            row.enrollment_id = info.enrollment_id
            row.student_id = info.student_id
            row.data = info.data
            row.is_problem = problem


def list_students(db: Database) -> List[Student]:
    with db.session_scope() as session:
        return list(session.execute(select(Student)).scalars().all())


def get_assignment_score(db: Database, score_id: str) -> Optional[AssignmentScore]:
    with db.session_scope() as session:
        return session.get(AssignmentScore, score_id)


def iter_pending_problems(db: Database, student_id: str) -> Iterator[AssignmentScore]:
    """Problem scores for student_id that have not been notified yet, in store order."""
    stmt = select(AssignmentScore).where(
        AssignmentScore.student_id == student_id,
        AssignmentScore.notified.isnot(True),
        AssignmentScore.is_problem.is_(True),
    )
    with db.session_scope() as session:
        rows = list(session.execute(stmt).scalars().all())
    return iter(rows)


def mark_notified(db: Database, score_id: str) -> None:
    """Set notified on one score. Call only after the notification went out."""
    with db.session_scope() as session:
        row = session.get(AssignmentScore, score_id)
        if row is None:
            raise LookupError(f"No assignment score with id {score_id}")
        if not row.notified:
            row.notified = True
            row.notified_at = datetime.now(timezone.utc).replace(tzinfo=None)
