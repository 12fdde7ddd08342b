"""
Scheduled task: bootstrap services, sync every student, notify problems,
persist run outcome.
"""
import threading
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError

from portalwatch.core.bootstrap import Services, connect_services
from portalwatch.core.config import Config
from portalwatch.core.task import BaseTask, TaskType
from portalwatch.notify.notifier import ProblemNotifier
from portalwatch.portal.session import PortalSessionWalker
from portalwatch.portal.sync import SyncOrchestrator

TASK_NAME = "portal_sync"


class PortalSyncTask(BaseTask):
    """Full run at each configured time of day. Overlapping triggers are skipped."""

    def __init__(self, config: Config, connect: Callable[[Config], Services] = connect_services):
        super().__init__(TASK_NAME, TaskType.DAILY, {"times": config.schedule_times})
        self.config = config
        self._connect = connect
        self._run_lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._run_lock.locked()

    def run(self, **kwargs: Any) -> bool:
        """Returns False when skipped because a previous run is still executing."""
        if not self._run_lock.acquire(blocking=False):
            self.logger.warning("Previous run still in progress; skipping this trigger.")
            return False
        try:
            self._run()
        finally:
            self._run_lock.release()
        return True

    def _run(self) -> None:
        self.logger.info("Running application.")
        settings = self.config.settings
        services = self._connect(self.config)
        try:
            walker = PortalSessionWalker(services.client, services.urls, settings.username, settings.password)
            try:
                result = SyncOrchestrator(services.db, walker).sync_all()
                sent = ProblemNotifier(services.db, services.transport, services.urls).notify_problems()
            except Exception as e:
                self._record_error(services, e)
                raise
            self.update_after_run(services.db)
            self.logger.info(
                f"Application run complete: {result.students} student(s), {result.scores} score(s), "
                f"{sent} notification(s) sent."
            )
        finally:
            services.close()

    def _record_error(self, services: Services, error: BaseException) -> None:
        try:
            self.record_error(services.db, error)
        except SQLAlchemyError as e:
            self.logger.warning(f"Could not record run error in store: {e}")
