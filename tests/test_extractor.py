import pytest
import requests

from portalwatch.core.errors import AuthenticationError, DecodeError, PortalRequestError
from portalwatch.portal.document import Document
from portalwatch.portal.extractor import (
    RecordExtractor,
    ENROLLMENT_ID_PATTERN,
    STUDENT_ID_PATTERN,
    StudentInfo,
    match_id,
    parse_assignment_scores,
    parse_course_ids,
    parse_enrollment_ids,
    parse_students,
)

from portalwatch.portal.session import PortalSession

from conftest import DASHBOARD_PAGE, LOGIN_PAGE, FakePortalClient, overview_page


def test_student_id_from_href():
    assert match_id("/app/student/4821/overview", STUDENT_ID_PATTERN) == "4821"


def test_enrollment_id_from_href():
    assert match_id("/app/classes/991/assignments?x=1", ENROLLMENT_ID_PATTERN) == "991"


@pytest.mark.parametrize("href", [None, "", "/app/student/abc/overview", "/app/classes/991/grades"])
def test_non_matching_href_yields_none(href):
    assert match_id(href, STUDENT_ID_PATTERN) is None
    assert match_id(href, ENROLLMENT_ID_PATTERN) is None


def test_dashboard_with_two_children():
    students = parse_students(Document(DASHBOARD_PAGE))

    assert students == [
        StudentInfo(id="4821", name="Alice Example"),
        StudentInfo(id="5930", name="Bob Example"),
    ]


def test_dashboard_without_children_is_empty():
    assert parse_students(Document("<html><body><p>No children</p></body></html>")) == []


def test_dashboard_showing_login_form_is_auth_error():
    with pytest.raises(AuthenticationError):
        parse_students(Document(LOGIN_PAGE))


def test_child_heading_without_link_is_skipped():
    html = """
    <div><h4 class="child-name">Nobody</h4><div class="child-links"></div></div>
    <div><h4 class="child-name">Carol</h4><div class="child-links"><a href="/t/parent/student/12/overview">o</a></div></div>
    """
    assert parse_students(Document(html)) == [StudentInfo(id="12", name="Carol")]


def test_overview_course_and_enrollment_ids():
    doc = Document(overview_page(["991", "992"], ["77", "78"]))

    assert parse_course_ids(doc) == ["77", "78"]
    assert parse_enrollment_ids(doc) == ["991", "992"]


def test_overview_skips_links_that_do_not_match():
    html = """
    <ul class="course-list">
      <li><a class="assignments-link" href="/t/parent/classes/991/assignments?x=1">A</a></li>
      <li><a class="assignments-link" href="/t/parent/classes/summary">B</a></li>
      <li><a class="assignments-link">C</a></li>
    </ul>
    """
    assert parse_enrollment_ids(Document(html)) == ["991"]


def test_assignment_scores_keyed_by_score_id():
    data = {
        "assignments": [
            {"score_id": "s1", "is_problem": 1, "completion_status": "Late", "assignment_description": "HW1"},
            {"score_id": 42, "is_problem": 0},
        ]
    }

    scores = parse_assignment_scores(data, student_id="4821", enrollment_id="991")

    assert [s.id for s in scores] == ["s1", "42"]
    assert scores[0].enrollment_id == "991"
    assert scores[0].student_id == "4821"
    assert scores[0].data == data["assignments"][0]
    # Stored payload keeps the portal's own types
    assert scores[1].data["score_id"] == 42


@pytest.mark.parametrize(
    "data",
    [
        {},
        {"assignments": "nope"},
        {"assignments": [{"is_problem": 1}]},
        {"assignments": [["s1"]]},
        [],
    ],
)
def test_malformed_assignments_payload_is_decode_error(data):
    with pytest.raises(DecodeError):
        parse_assignment_scores(data, student_id="1", enrollment_id="2")


def test_overview_http_failure_is_portal_request_error(urls):
    overview = urls.student_overview_path("4821")
    client = FakePortalClient(errors={overview: requests.HTTPError("500 Server Error")})
    extractor = RecordExtractor(PortalSession(client, urls))

    with pytest.raises(PortalRequestError, match="500 Server Error"):
        extractor.fetch_enrollment_ids("4821")


def test_dropped_connection_on_assignments_is_portal_request_error(urls):
    target = urls.enrollment_assignments_url("991")
    client = FakePortalClient(errors={target: requests.ConnectionError("connection reset")})
    extractor = RecordExtractor(PortalSession(client, urls))

    with pytest.raises(PortalRequestError):
        extractor.fetch_assignment_scores("4821", "991")
