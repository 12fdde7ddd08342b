"""
Record extraction from the parent dashboard, the per-student overview page and
the per-enrollment assignments JSON. Selectors and path patterns below are the
portal's markup contract.
"""
import logging
import re
from collections import namedtuple
from typing import Any, List, Optional

import requests
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from portalwatch.core.errors import AuthenticationError, DecodeError, PortalRequestError
from portalwatch.portal.document import Document
from portalwatch.portal.session import PortalSession
from portalwatch.portal.urls import DASHBOARD_PATH

logger = logging.getLogger(__name__)

CHILD_HEADING_SELECTOR = "h4.child-name"
CHILD_LINK_SELECTOR = ".child-links a"
COURSE_LINK_SELECTOR = ".course-list a.course-description"
ASSIGNMENTS_LINK_SELECTOR = ".course-list .assignments-link"
LOGIN_FIELD_SELECTOR = "input[type=password]"

STUDENT_ID_PATTERN = re.compile(r"/student/([0-9]+)/")
COURSE_ID_PATTERN = re.compile(r"/course/([0-9]+)/")
ENROLLMENT_ID_PATTERN = re.compile(r"/classes/([0-9]+)/assignments")

StudentInfo = namedtuple("StudentInfo", ["id", "name"])

AssignmentScoreInfo = namedtuple(
    "AssignmentScoreInfo",
    [
        "id",             # portal score_id, stable across runs
        "enrollment_id",
        "student_id",
        "data",           # raw assignment fields as served
    ],
)


class AssignmentEntry(BaseModel):
    """One element of the assignments array. Unknown fields are kept verbatim."""

    model_config = ConfigDict(extra="allow")

    score_id: str

    @field_validator("score_id", mode="before")
    @classmethod
    def _score_id_as_str(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return value
        if isinstance(value, int):
            return str(value)
        return value


class AssignmentsPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    assignments: List[AssignmentEntry]


def match_id(href: Optional[str], pattern: "re.Pattern") -> Optional[str]:
    """Digits captured by pattern from href, or None when href is missing or does not match."""
    if not href:
        return None
    m = pattern.search(href)
    return m.group(1) if m else None


def _ids_from_links(document: Document, selector: str, pattern: "re.Pattern") -> List[str]:
    ids = []
    for link in document.query(selector):
        href = document.attr(link, "href")
        found = match_id(href, pattern)
        if found is None:
            logger.debug(f"Skipping link {href!r}: does not match {pattern.pattern}")
            continue
        ids.append(found)
    return ids


def parse_students(document: Document) -> List[StudentInfo]:
    """
    Students from the dashboard: each child heading's container holds the child
    links; the first link's path carries the student id. No headings yields [],
    unless the page is a login form, which means the credentials were rejected.
    """
    headings = document.query(CHILD_HEADING_SELECTOR)
    if not headings and document.query_one(LOGIN_FIELD_SELECTOR) is not None:
        raise AuthenticationError("Dashboard served a login form; the portal rejected the credentials")

    students = []
    for heading in headings:
        container = document.parent(heading)
        link = document.query_one(CHILD_LINK_SELECTOR, within=container)
        href = document.attr(link, "href") if link is not None else None
        student_id = match_id(href, STUDENT_ID_PATTERN)
        name = document.text(heading)
        if student_id is None:
            logger.warning(f"No student link found for child heading {name!r}; skipping")
            continue
        students.append(StudentInfo(id=student_id, name=name))
    return students


def parse_course_ids(document: Document) -> List[str]:
    return _ids_from_links(document, COURSE_LINK_SELECTOR, COURSE_ID_PATTERN)


def parse_enrollment_ids(document: Document) -> List[str]:
    return _ids_from_links(document, ASSIGNMENTS_LINK_SELECTOR, ENROLLMENT_ID_PATTERN)


def parse_assignment_scores(data: Any, student_id: str, enrollment_id: str) -> List[AssignmentScoreInfo]:
    """Validate the assignments JSON and key each entry by its own score_id."""
    try:
        payload = AssignmentsPayload.model_validate(data)
    except ValidationError as e:
        raise DecodeError(f"Unexpected assignments payload for enrollment {enrollment_id}: {e}") from e

    scores = []
    # Store entries as served; the model only vouches for their shape
    for entry, raw in zip(payload.assignments, data["assignments"]):
        scores.append(
            AssignmentScoreInfo(
                id=entry.score_id,
                enrollment_id=enrollment_id,
                student_id=student_id,
                data=dict(raw),
            )
        )
    return scores


class RecordExtractor:
    """Fetches portal pages through an authenticated session and parses them into records."""

    def __init__(self, session: PortalSession):
        self.session = session
        self.logger = logging.getLogger(self.__class__.__name__)

    def _get(self, fetch, target: str):
        """fetch(target) with HTTP failures mapped to PortalRequestError."""
        try:
            return fetch(target)
        except requests.RequestException as e:
            raise PortalRequestError(f"Request for {target} failed: {e}") from e

    def fetch_students(self) -> List[StudentInfo]:
        dashboard = self._get(self.session.client.get_html, DASHBOARD_PATH)
        students = parse_students(dashboard)
        self.logger.info(f"Found {len(students)} student(s) on dashboard")
        return students

    def fetch_enrollment_ids(self, student_id: str) -> List[str]:
        overview = self._get(self.session.client.get_html, self.session.urls.student_overview_path(student_id))
        course_ids = parse_course_ids(overview)
        self.logger.info(f"Found course ids: {course_ids}")
        enrollment_ids = parse_enrollment_ids(overview)
        self.logger.info(f"Found course enrollment ids: {enrollment_ids}")
        return enrollment_ids

    def fetch_assignment_scores(self, student_id: str, enrollment_id: str) -> List[AssignmentScoreInfo]:
        self.logger.info(f"Getting assignment scores for enrollment id: {enrollment_id}")
        data = self._get(self.session.client.get_json, self.session.urls.enrollment_assignments_url(enrollment_id))
        return parse_assignment_scores(data, student_id, enrollment_id)
