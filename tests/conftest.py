import pytest

from portalwatch.core.db import Database
from portalwatch.portal.document import Document
from portalwatch.portal.urls import PortalUrls

LOGIN_PAGE = """
<html><body>
  <form action="/acme/login" method="post">
    <input type="hidden" name="authenticity_token" value="tok123">
    <input type="text" name="username" value="">
    <input type="password" name="password">
    <input type="submit" value="Sign in">
  </form>
</body></html>
"""

CONFIRM_PAGE = """
<html><body>
  <form action="https://portals.veracross.com/acme/session/confirm" method="post">
    <input type="hidden" name="SAMLResponse" value="abc==">
    <input type="hidden" name="RelayState" value="/parent">
  </form>
</body></html>
"""

DASHBOARD_PAGE = """
<html><body>
  <div class="child">
    <h4 class="child-name">Alice Example</h4>
    <div class="child-links">
      <a href="/acme/parent/student/4821/overview">Overview</a>
      <a href="/acme/parent/student/4821/calendar">Calendar</a>
    </div>
  </div>
  <div class="child">
    <h4 class="child-name">Bob Example</h4>
    <div class="child-links">
      <a href="/acme/parent/student/5930/overview">Overview</a>
    </div>
  </div>
</body></html>
"""


def overview_page(enrollment_ids, course_ids=()):
    rows = []
    for course_id, enrollment_id in zip(course_ids or enrollment_ids, enrollment_ids):
        rows.append(
            f'<li><a class="course-description" href="/acme/parent/course/{course_id}/info">Course</a>'
            f'<a class="assignments-link" href="/acme/parent/classes/{enrollment_id}/assignments?x=1">Assignments</a></li>'
        )
    return f'<html><body><ul class="course-list">{"".join(rows)}</ul></body></html>'


class FakePortalClient:
    """Stands in for PortalHttpClient: canned pages by target, records every call."""

    def __init__(self, pages=None, posts=None, json_docs=None, errors=None):
        self.pages = dict(pages or {})
        self.posts = dict(posts or {})
        self.json_docs = dict(json_docs or {})
        self.errors = dict(errors or {})
        self.calls = []

    def _fail_if_broken(self, target):
        if target in self.errors:
            raise self.errors[target]

    def get_html(self, target):
        self.calls.append(("GET", target, None))
        self._fail_if_broken(target)
        if target not in self.pages:
            raise AssertionError(f"unexpected GET {target}")
        return Document(self.pages[target], url=target)

    def post_form(self, target, fields):
        self.calls.append(("POST", target, dict(fields)))
        return Document(self.posts.get(target, "<html></html>"), url=target)

    def get_json(self, target):
        self.calls.append(("GET", target, None))
        self._fail_if_broken(target)
        if target not in self.json_docs:
            raise AssertionError(f"unexpected JSON GET {target}")
        return self.json_docs[target]

    def close(self):
        pass


class FakeTransport:
    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def send(self, notification, user_key=None, app_token=None):
        if self.error is not None:
            raise self.error
        self.sent.append(notification)

    def close(self):
        pass


@pytest.fixture
def urls():
    return PortalUrls("acme", "https://portals.veracross.com", "https://portals-embed.veracross.com")


@pytest.fixture
def db(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'store.db'}")
    database.connect()
    yield database
    database.close()


@pytest.fixture
def portal_client(urls):
    """A portal with two students; Alice has one enrollment, Bob has none."""
    return FakePortalClient(
        pages={
            "/": LOGIN_PAGE,
            "/parent": DASHBOARD_PAGE,
            urls.student_overview_path("4821"): overview_page(["991"], ["77"]),
            urls.student_overview_path("5930"): overview_page([]),
        },
        posts={
            "/acme/login": CONFIRM_PAGE,
            "https://portals.veracross.com/acme/session/confirm": "<html><body>ok</body></html>",
        },
        json_docs={
            urls.enrollment_assignments_url("991"): {
                "assignments": [
                    {
                        "score_id": "s1",
                        "is_problem": 1,
                        "completion_status": "Late",
                        "assignment_description": "HW1",
                    },
                    {
                        "score_id": "s2",
                        "is_problem": 0,
                        "completion_status": "Complete",
                        "assignment_description": "HW2",
                    },
                ]
            },
        },
    )


@pytest.fixture
def transport():
    return FakeTransport()
