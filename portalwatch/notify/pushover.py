"""
Pushover transport: one POST per message to the messages API.
"""
import logging
from collections import namedtuple
from typing import Optional

import requests

from portalwatch.core.errors import NotificationError

PUSHOVER_MESSAGES_URL = "https://api.pushover.net/1/messages.json"
MESSAGE_LIMIT = 1024  # Pushover rejects longer messages
TITLE_LIMIT = 250

Notification = namedtuple("Notification", ["title", "message", "url"])


class PushoverClient:
    def __init__(
        self,
        user_key: str,
        app_token: str,
        session: Optional[requests.Session] = None,
        timeout: float = 10,
        message_limit: int = MESSAGE_LIMIT,
    ):
        if not user_key or not app_token:
            raise ValueError("Pushover user key and app token are required")
        self.user_key = user_key
        self.app_token = app_token
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.message_limit = message_limit
        self.logger = logging.getLogger(self.__class__.__name__)

    def send(
        self,
        notification: Notification,
        user_key: Optional[str] = None,
        app_token: Optional[str] = None,
    ) -> None:
        """Dispatch one message. Raises NotificationError unless Pushover accepted it."""
        payload = {
            "token": app_token or self.app_token,
            "user": user_key or self.user_key,
            "title": notification.title[:TITLE_LIMIT],
            "message": notification.message[: self.message_limit],
        }
        if notification.url:
            payload["url"] = notification.url

        try:
            resp = self.session.post(PUSHOVER_MESSAGES_URL, data=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise NotificationError(f"Pushover request failed: {e}") from e

        if resp.status_code != 200:
            raise NotificationError(f"Pushover failed ({resp.status_code}): {resp.text[:200]}")
        try:
            body = resp.json()
        except ValueError as e:
            raise NotificationError(f"Pushover returned a non-JSON response: {resp.text[:200]}") from e
        if not isinstance(body, dict):
            raise NotificationError(f"Pushover returned an unexpected response: {resp.text[:200]}")
        if body.get("status") != 1:
            raise NotificationError(f"Pushover rejected message: {body.get('errors') or body}")
        self.logger.debug(f"Pushover accepted message, request={body.get('request')}")

    def close(self) -> None:
        self.session.close()
