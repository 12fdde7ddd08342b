"""
Exception taxonomy shared by the portal sync, the notifier and bootstrap.
"""


class PortalWatchError(Exception):
    """Base class for all portalwatch errors."""


class ConfigError(PortalWatchError):
    """A required setting is missing or malformed. Fatal at startup."""


class ServiceConnectionError(PortalWatchError):
    """Store or client could not be reached after the bootstrap retries."""


class AuthenticationError(PortalWatchError):
    """The login handshake broke or the portal rejected the credentials."""


class DecodeError(PortalWatchError):
    """A response body could not be decoded into the expected shape."""


class NotFoundError(PortalWatchError):
    """An expected form or selector is absent from a page."""


class NotificationError(PortalWatchError):
    """The notification transport refused or failed a dispatch."""


class PortalRequestError(PortalWatchError):
    """A portal page or endpoint failed at the HTTP level after login."""
