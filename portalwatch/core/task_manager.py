"""
Single place for scheduling: in-memory timers that re-arm a task after each run.
"""
import logging
from datetime import datetime
from threading import Timer
from typing import Any, Callable, Dict

from portalwatch.core.task import BaseTask


class TaskManager:
    def __init__(self):
        self.tasks: Dict[str, Any] = {}
        self.logger = logging.getLogger("TaskManager")
        self._stopped = False

    def schedule_task(self, name: str, callback: Callable, delay: float) -> None:
        """Schedule a task to run after delay seconds."""
        if self._stopped:
            self.logger.debug(f"Task manager stopped; not scheduling {name}")
            return
        self.logger.info(f"Scheduling task {name} with delay {delay:.0f} seconds")
        if name in self.tasks:
            self.logger.info(f"Cancelling existing task {name}")
            self.tasks[name].cancel()

        scheduled_time = datetime.now().timestamp() + delay
        timer = Timer(delay, self._run_task, args=(name, callback))
        timer.daemon = True

        self.tasks[name] = timer
        timer.start()
        self.logger.info(f"Timer started for {name}, scheduled for {datetime.fromtimestamp(scheduled_time)}")

    def _run_task(self, name: str, callback: Callable) -> None:
        """Run the task once, logging any failure."""
        try:
            callback()
        except Exception as e:
            self.logger.exception(f"Error running task {name}: {e}")

    def schedule_recurring(self, task: BaseTask, **run_kwargs: Any) -> None:
        """
        Schedule task at its next trigger time. After each run (success or failure)
        the task is re-armed for the following trigger.
        """
        delay = task.seconds_until_next_run()

        def callback():
            try:
                task.run(**run_kwargs)
            finally:
                self.schedule_recurring(task, **run_kwargs)

        self.schedule_task(task.task_name, callback, delay)

    def stop(self) -> None:
        """Stop all scheduled tasks."""
        self._stopped = True
        for task in self.tasks.values():
            task.cancel()
