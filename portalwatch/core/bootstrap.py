"""
Service construction with bounded retry: store, portal client and notification
transport. Only bootstrap retries; nothing mid-run does.
"""
import logging
import time
from typing import Callable

from portalwatch.core.config import Config
from portalwatch.core.db import Database, open_database
from portalwatch.core.errors import ServiceConnectionError
from portalwatch.notify.pushover import PushoverClient
from portalwatch.portal.http_client import PortalHttpClient
from portalwatch.portal.urls import PortalUrls

logger = logging.getLogger(__name__)


class Services:
    """Everything one run needs. Built fresh per run; close() when done."""

    def __init__(self, db: Database, client: PortalHttpClient, transport: PushoverClient, urls: PortalUrls):
        self.db = db
        self.client = client
        self.transport = transport
        self.urls = urls

    def close(self) -> None:
        self.client.close()
        self.transport.close()
        self.db.close()


def build_services(config: Config) -> Services:
    """Construct and connect every service once. Raises ServiceConnectionError if the store is unreachable."""
    settings = config.settings
    urls = PortalUrls(settings.tenant_id, config.portal_base_url, config.portal_embed_url)
    db = open_database(settings.database_url)
    client = PortalHttpClient(urls.tenant_base, timeout=config.http_timeout)
    transport = PushoverClient(
        settings.pushover_key,
        settings.pushover_app_token,
        message_limit=config.message_limit,
    )
    return Services(db, client, transport, urls)


def connect_services(
    config: Config,
    factory: Callable[[Config], Services] = build_services,
    sleep: Callable[[float], None] = time.sleep,
) -> Services:
    """Try factory up to bootstrap.retry_count times, bootstrap.retry_delay seconds apart."""
    retry_count = config.retry_count
    for attempt in range(1, retry_count + 1):
        try:
            logger.info("Attempting to connect to services.")
            return factory(config)
        except ServiceConnectionError as e:
            if attempt == retry_count:
                logger.error("Giving up on reconnecting.")
                raise ServiceConnectionError(
                    f"Giving up on reconnecting after {retry_count} failed attempts: {e}"
                ) from e
            logger.warning(f"Connection failed ({e}), will retry in {config.retry_delay:g} seconds.")
            sleep(config.retry_delay)
