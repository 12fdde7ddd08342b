"""
Login handshake: credential form, then the SSO session-confirmation form.
"""
import logging

import requests

from portalwatch.core.errors import AuthenticationError, NotFoundError
from portalwatch.portal.forms import FormData, extract_form
from portalwatch.portal.http_client import PortalHttpClient
from portalwatch.portal.urls import LOGIN_PATH, PortalUrls

LOGIN_FORM_SELECTOR = "form"
CONFIRM_FORM_SELECTOR = "form"


class PortalSession:
    """An authenticated client for one run. Never persisted; re-established every run."""

    def __init__(self, client: PortalHttpClient, urls: PortalUrls):
        self.client = client
        self.urls = urls


class PortalSessionWalker:
    """
    Two steps: Unauthenticated -> Credentials-submitted -> Authenticated.
    Any broken step surfaces as AuthenticationError.
    """

    def __init__(self, client: PortalHttpClient, urls: PortalUrls, username: str, password: str):
        self.client = client
        self.urls = urls
        self.username = username
        self.password = password
        self.logger = logging.getLogger(self.__class__.__name__)

    def login(self) -> PortalSession:
        self.logger.info("Logging in.")
        try:
            login_page = self.client.get_html(LOGIN_PATH)
            login_form = self._form(login_page, LOGIN_FORM_SELECTOR, "login")
            fields = dict(login_form.fields)
            fields["username"] = self.username
            fields["password"] = self.password
            confirm_page = self.client.post_form(login_form.target_path, fields)

            confirm_form = self._form(confirm_page, CONFIRM_FORM_SELECTOR, "session confirmation")
            self.client.post_form(confirm_form.target_path, confirm_form.fields)
        except requests.RequestException as e:
            raise AuthenticationError(f"Login request failed: {e}") from e
        self.logger.info("Login handshake complete.")
        return PortalSession(self.client, self.urls)

    def _form(self, page, selector: str, step: str) -> FormData:
        try:
            form = extract_form(page, selector)
        except NotFoundError as e:
            raise AuthenticationError(f"No {step} form found: {e}") from e
        if not form.target_path:
            raise AuthenticationError(f"The {step} form has no submission target")
        return form
