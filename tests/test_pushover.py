import pytest
import requests

from portalwatch.core.errors import NotificationError
from portalwatch.notify.pushover import PUSHOVER_MESSAGES_URL, Notification, PushoverClient


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=""):
        self.status_code = status_code
        self._body = body
        self.text = text

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.posts = []

    def post(self, url, data=None, timeout=None):
        self.posts.append((url, data, timeout))
        if self.error is not None:
            raise self.error
        return self.response

    def close(self):
        pass


NOTE = Notification(title="Alice has a problem assignment.", message="Late, HW1", url="https://example/x")


def test_send_posts_message_fields():
    session = FakeSession(FakeResponse(body={"status": 1, "request": "r1"}))
    client = PushoverClient("user-key", "app-token", session=session)

    client.send(NOTE)

    url, data, timeout = session.posts[0]
    assert url == PUSHOVER_MESSAGES_URL
    assert data == {
        "token": "app-token",
        "user": "user-key",
        "title": NOTE.title,
        "message": NOTE.message,
        "url": NOTE.url,
    }
    assert timeout == 10


def test_send_accepts_key_and_token_override():
    session = FakeSession(FakeResponse(body={"status": 1}))
    client = PushoverClient("user-key", "app-token", session=session)

    client.send(NOTE, user_key="other-user", app_token="other-app")

    assert session.posts[0][1]["user"] == "other-user"
    assert session.posts[0][1]["token"] == "other-app"


def test_long_messages_are_truncated():
    session = FakeSession(FakeResponse(body={"status": 1}))
    client = PushoverClient("u", "t", session=session, message_limit=10)

    client.send(NOTE._replace(message="x" * 50))

    assert session.posts[0][1]["message"] == "x" * 10


def test_long_titles_are_truncated():
    session = FakeSession(FakeResponse(body={"status": 1}))
    client = PushoverClient("u", "t", session=session)

    client.send(NOTE._replace(title="y" * 300))

    assert session.posts[0][1]["title"] == "y" * 250


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(status_code=400, body={"status": 0, "errors": ["user key is invalid"]}),
        FakeResponse(status_code=200, body={"status": 0, "errors": ["application token is invalid"]}),
        FakeResponse(status_code=200, body=None, text="<html>"),
        FakeResponse(status_code=200, body=["not", "an", "object"], text="[]"),
    ],
)
def test_rejections_raise_notification_error(response):
    client = PushoverClient("u", "t", session=FakeSession(response))

    with pytest.raises(NotificationError):
        client.send(NOTE)


def test_network_failure_raises_notification_error():
    client = PushoverClient("u", "t", session=FakeSession(error=requests.ConnectionError("down")))

    with pytest.raises(NotificationError):
        client.send(NOTE)


def test_key_and_token_required():
    with pytest.raises(ValueError):
        PushoverClient("", "t")
