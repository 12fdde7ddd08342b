"""
Sync orchestration: login, discover students, then each student's enrollments
and assignment scores, upserting every record. Strictly sequential: every request
goes through the one authenticated session.
"""
import logging
from collections import namedtuple
from typing import List

from portalwatch.core.db import Database
from portalwatch.portal import service
from portalwatch.portal.extractor import RecordExtractor, StudentInfo
from portalwatch.portal.session import PortalSessionWalker

SyncResult = namedtuple("SyncResult", ["students", "enrollments", "scores"])


class SyncOrchestrator:
    """One full sync per call to sync_all(). Any failure aborts the whole run."""

    def __init__(self, db: Database, walker: PortalSessionWalker):
        self.db = db
        self.walker = walker
        self.logger = logging.getLogger(self.__class__.__name__)

    def sync_all(self) -> SyncResult:
        session = self.walker.login()
        extractor = RecordExtractor(session)

        students = self.sync_students(extractor)
        enrollments = 0
        scores = 0
        for student in students:
            self.logger.info(f"Syncing assignments for student: {student.name}")
            synced_enrollments, synced_scores = self.sync_assignments(extractor, student.id)
            enrollments += synced_enrollments
            scores += synced_scores

        result = SyncResult(students=len(students), enrollments=enrollments, scores=scores)
        self.logger.info(
            f"Sync complete: {result.students} student(s), {result.enrollments} enrollment(s), "
            f"{result.scores} score(s)"
        )
        return result

    def sync_students(self, extractor: RecordExtractor) -> List[StudentInfo]:
        self.logger.info("Syncing students.")
        students = extractor.fetch_students()
        for student in students:
            self.logger.info(f"Updating student {student.id} ({student.name})")
            service.upsert_student(self.db, student)
        return students

    def sync_assignments(self, extractor: RecordExtractor, student_id: str) -> tuple:
        """Upsert every score of every enrollment for one student. Returns (enrollments, scores)."""
        self.logger.info(f"Syncing assignments for student id: {student_id}")
        enrollment_ids = extractor.fetch_enrollment_ids(student_id)
        score_count = 0
        for enrollment_id in enrollment_ids:
            for score in extractor.fetch_assignment_scores(student_id, enrollment_id):
                self.logger.debug(f"Updating score with id: {score.id}")
                service.upsert_assignment_score(self.db, score)
                score_count += 1
        return len(enrollment_ids), score_count
