"""
HTTP client bound to one portal origin. One requests.Session per instance, so
cookies set by the login handshake carry over to every later request of the run.
"""
import logging
from typing import Any, Dict, Optional

import requests

from portalwatch.core.errors import DecodeError
from portalwatch.portal.document import Document

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class PortalHttpClient:
    """Request helper: resolves relative targets, follows redirects, decodes bodies."""

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.logger = logging.getLogger(self.__class__.__name__)

    def resolve(self, target: str) -> str:
        """Absolute URLs pass through; anything else is appended to the base URL."""
        if target.startswith("http://") or target.startswith("https://"):
            return target
        if not target.startswith("/"):
            target = "/" + target
        return self.base_url + target

    def request(self, method: str, target: str, **kwargs: Any) -> requests.Response:
        """Issue a request and return the response. Non-2xx raises requests.HTTPError."""
        url = self.resolve(target)
        kwargs.setdefault("allow_redirects", True)
        if self.timeout is not None:
            kwargs.setdefault("timeout", self.timeout)

        self.logger.info(f"Running request: {method} {url}")
        if "data" in kwargs:
            self.logger.debug(f"Form fields: {sorted(kwargs['data'])}")

        response = self.session.request(method, url, **kwargs)
        self.logger.info(f"Received response: {response.status_code} from {response.url or url}")
        self.logger.debug(response.text)
        response.raise_for_status()
        return response

    def get_json(self, target: str) -> Any:
        response = self.request("GET", target)
        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(f"Malformed JSON from {self.resolve(target)}: {e}") from e

    def get_html(self, target: str) -> Document:
        return Document(self.request("GET", target).text, url=self.resolve(target))

    def post_form(self, target: str, fields: Dict[str, str]) -> Document:
        response = self.request(
            "POST",
            target,
            data=fields,
            headers={"content-type": FORM_CONTENT_TYPE},
        )
        return Document(response.text, url=self.resolve(target))

    def close(self) -> None:
        self.session.close()
