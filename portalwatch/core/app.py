import logging
import platform
import sys
import threading
from typing import Optional

from portalwatch.core.bootstrap import connect_services
from portalwatch.core.config import Config
from portalwatch.core.task_manager import TaskManager
from portalwatch.portal.task import PortalSyncTask

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'


class PortalWatchApp:
    def __init__(self, config_path: Optional[str] = None):
        self.logger = logging.getLogger(self.__class__.__name__)

        # Missing settings raise ConfigError here, before anything else starts
        self.config = Config(config_path=config_path)
        self._setup_logging()

        self.task = PortalSyncTask(self.config)
        self.task_manager = TaskManager()
        self._shutdown = threading.Event()

    def _setup_logging(self):
        """Configure logging to write to stdout and, optionally, a file"""
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
        root_logger.setLevel(getattr(logging, self.config.log_level, logging.INFO))

        formatter = logging.Formatter(LOG_FORMAT)

        log_file = self.config.data["logging"].get("file")
        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        logging.info(f"Python Version: {platform.python_version()}")
        logging.info(f"Log Level: {self.config.log_level}")

    def self_test(self) -> None:
        """Construct and connect every service once, then discard them. Raises on failure."""
        self.logger.info("Initializing services to test this all will work.")
        services = connect_services(self.config)
        services.close()
        self.logger.info("Service initialization test successful.")

    def run_once(self) -> None:
        """One sync + notify, now. Errors propagate to the caller."""
        self.task.run()

    def run(self) -> None:
        if self.config.settings.skip_start:
            self.logger.info("SKIP_START set; configuration loaded, exiting without self-test or scheduling.")
            return

        self.self_test()

        self.logger.info(f"Scheduling run at {', '.join(self.config.schedule_times)}.")
        self.task_manager.schedule_recurring(self.task)
        try:
            while not self._shutdown.wait(timeout=60):
                pass
        except KeyboardInterrupt:
            self.logger.info("Interrupted; shutting down.")
        finally:
            self.task_manager.stop()

    def stop(self) -> None:
        self._shutdown.set()
