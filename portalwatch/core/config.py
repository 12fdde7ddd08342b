import copy
import logging
import os
import re
from collections import namedtuple
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from portalwatch.core.errors import ConfigError
from portalwatch.core.task import parse_schedule_time

# Environment variable -> settings field. All of these must be present.
REQUIRED_ENV = {
    "PORTAL_TENANT_ID": "tenant_id",
    "PORTAL_USERNAME": "username",
    "PORTAL_PASSWORD": "password",
    "DATABASE_URL": "database_url",
    "PUSHOVER_KEY": "pushover_key",
    "PUSHOVER_APP_TOKEN": "pushover_app_token",
}

PortalSettings = namedtuple(
    "PortalSettings",
    [
        "tenant_id",
        "username",
        "password",
        "database_url",
        "pushover_key",
        "pushover_app_token",
        "debug",       # bool: debug-level logging
        "skip_start",  # bool: skip the startup self-test
    ],
)

DEFAULT_CONFIG: Dict[str, Any] = {
    "portal": {
        "base_url": "https://portals.veracross.com",
        "embed_url": "https://portals-embed.veracross.com",
    },
    "schedule": {
        "times": ["05:00", "17:00", "21:00"],
    },
    "bootstrap": {
        "retry_count": 10,
        "retry_delay": 5,
    },
    "http": {
        "timeout": None,
    },
    "notify": {
        "message_limit": 1024,
    },
    "logging": {
        "level": "INFO",
        "file": None,
    },
}


def _is_truthy(value: Optional[str]) -> bool:
    return bool(value) and value.strip().lower() in ("1", "true")


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into a copy of base."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


class Config:
    """
    Settings for one process: secrets and toggles from the environment (optionally
    seeded from a .env file), everything else from an optional YAML file.
    """

    def __init__(self, config_path: Optional[str] = None, environ: Optional[Dict[str, str]] = None):
        logging.debug("Initializing Config class")
        self.environ = environ if environ is not None else os.environ

        if config_path:
            self.config_file = Path(config_path).resolve()
        else:
            self.config_file = Path.cwd() / "config.yaml"
        self.config_dir = self.config_file.parent

        logging.debug(f"Using config file: {self.config_file}")

        self._load_env_file()
        self._load_config()
        self.settings = self._load_settings()
        self._validate()

    def _load_env_file(self) -> None:
        """Load environment variables from .env file"""
        # Look for .env file in config directory or project root
        env_files = [
            self.config_dir / ".env",
            self.config_dir.parent / ".env",
            Path.cwd() / ".env",
        ]

        env_file = next((path for path in env_files if path.exists()), None)
        if not env_file:
            logging.debug("No .env file found, skipping environment variable loading")
            return

        logging.info(f"Loading environment variables from: {env_file}")
        try:
            with open(env_file, "r") as f:
                for line in f:
                    line = line.strip()
                    if not line or line.startswith("#"):
                        continue

                    match = re.match(r"^([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.*)$", line)
                    if match:
                        key, value = match.groups()
                        value = value.strip('"').strip("'")
                        # Already-set variables win
                        if key not in self.environ:
                            self.environ[key] = value
                            logging.debug(f"Loaded env var: {key}")
        except OSError as e:
            logging.warning(f"Error loading .env file: {e}")

    def _substitute_env_vars(self, data: Any) -> Any:
        """Recursively substitute environment variables in config data"""
        if isinstance(data, dict):
            return {key: self._substitute_env_vars(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [self._substitute_env_vars(item) for item in data]
        elif isinstance(data, str):
            # Format: ${VAR_NAME} or $VAR_NAME
            if data.startswith("${") and data.endswith("}"):
                return self.environ.get(data[2:-1], data)
            elif data.startswith("$") and len(data) > 1:
                return self.environ.get(data[1:], data)
            return data
        return data

    def _load_config(self) -> None:
        """Load the YAML file over the defaults. A missing file means defaults."""
        if not self.config_file.exists():
            logging.debug(f"No config file at {self.config_file}, using defaults")
            self.data = _merge(DEFAULT_CONFIG, {})
            return

        logging.debug(f"Loading config from: {self.config_file}")
        try:
            with open(self.config_file) as f:
                new_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid config file {self.config_file}: {e}") from e

        if not isinstance(new_data, dict):
            raise ConfigError("Invalid config format: root must be a dictionary")

        self.data = _merge(DEFAULT_CONFIG, self._substitute_env_vars(new_data))

        if self.data["logging"].get("file"):
            self.data["logging"]["file"] = os.path.expanduser(self.data["logging"]["file"])

    def _load_settings(self) -> PortalSettings:
        missing = [name for name in REQUIRED_ENV if not self.environ.get(name)]
        if missing:
            raise ConfigError(f"Missing required settings: {', '.join(missing)}")
        values = {field: self.environ[name] for name, field in REQUIRED_ENV.items()}
        return PortalSettings(
            debug=_is_truthy(self.environ.get("DEBUG")),
            skip_start=_is_truthy(self.environ.get("SKIP_START")),
            **values,
        )

    def _validate(self) -> None:
        if not self.schedule_times:
            raise ConfigError("schedule.times must list at least one HH:MM time")
        for time_str in self.schedule_times:
            try:
                parse_schedule_time(time_str)
            except ValueError as e:
                raise ConfigError(str(e)) from e
        if self.retry_count < 1:
            raise ConfigError("bootstrap.retry_count must be at least 1")

    @property
    def log_level(self) -> str:
        if self.settings.debug:
            return "DEBUG"
        return str(self.data["logging"].get("level") or "INFO").upper()

    @property
    def schedule_times(self) -> List[str]:
        return list(self.data["schedule"].get("times") or [])

    @property
    def retry_count(self) -> int:
        return int(self.data["bootstrap"]["retry_count"])

    @property
    def retry_delay(self) -> float:
        return float(self.data["bootstrap"]["retry_delay"])

    @property
    def portal_base_url(self) -> str:
        return self.data["portal"]["base_url"].rstrip("/")

    @property
    def portal_embed_url(self) -> str:
        return self.data["portal"]["embed_url"].rstrip("/")

    @property
    def http_timeout(self) -> Optional[float]:
        timeout = self.data["http"].get("timeout")
        return float(timeout) if timeout is not None else None

    @property
    def message_limit(self) -> int:
        return int(self.data["notify"]["message_limit"])
