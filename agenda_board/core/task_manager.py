"""
Single place for scheduling: in-memory timers and DB-backed registered tasks.
"""
import logging
from datetime import datetime, timezone
from threading import Event, Lock, Timer
from typing import Any, Callable, Dict, List, Optional

from agenda_board.core.task import get_next_run_from_db


class TaskManager:
    def __init__(self):
        self.tasks: Dict[str, Timer] = {}
        self.logger = logging.getLogger("TaskManager")
        self._registered_tasks: Dict[str, Callable[..., Any]] = {}
        self._registered_config: Dict[str, Callable[[], Dict[str, Any]]] = {}
        self._lock = Lock()
        self._stopped = False
        self._stop_event = Event()

    def schedule_task(self, name: str, callback: Callable, delay: int) -> None:
        """Schedule callback to run once after delay seconds, replacing any timer with that name."""
        with self._lock:
            if self._stopped:
                return
            self.logger.info(f"Scheduling task {name} with delay {delay} seconds")
            if name in self.tasks:
                self.logger.info(f"Cancelling existing task {name}")
                self.tasks[name].cancel()

            scheduled_time = datetime.now().timestamp() + delay
            timer = Timer(delay, self._run_task, args=(name, callback))
            timer.daemon = True
            timer.scheduled_time = scheduled_time

            self.tasks[name] = timer
            timer.start()
        self.logger.info(f"Timer started for {name}, scheduled for {datetime.fromtimestamp(scheduled_time)}")

    def _run_task(self, name: str, callback: Callable) -> None:
        try:
            callback()
        except Exception as e:
            self.logger.error(f"Error running task {name}: {e}")

    def register_task(
        self,
        task_name: str,
        runnable: Callable[..., Any],
        config_provider: Callable[[], Dict[str, Any]],
    ) -> None:
        """Register a runnable for a task. runnable(config_data) does the work and updates next_run in DB.
        config_provider is called before every run so config reloads are picked up."""
        self._registered_tasks[task_name] = runnable
        self._registered_config[task_name] = config_provider
        self.logger.debug(f"Registered task: {task_name}")

    def schedule_registered_task(self, task_name: str) -> None:
        """
        Schedule a registered task: run at next_run from DB (or immediately if past due).
        After running, the runnable updates next_run in DB; we reschedule again for the new next_run.
        """
        if task_name not in self._registered_tasks:
            self.logger.warning(f"No task registered: {task_name}")
            return
        next_run = get_next_run_from_db(task_name)
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        # If next_run_at is null (no row or column null), run immediately
        if next_run is None:
            delay = 0
        else:
            delta = (next_run - now).total_seconds()
            delay = max(0, int(delta))
        callback = lambda: self._run_registered_and_reschedule(task_name)
        self.schedule_task(task_name, callback, delay)

    def _run_registered_and_reschedule(self, task_name: str) -> None:
        """Run the registered runnable then reschedule for next_run from DB."""
        try:
            self.run_task_now(task_name)
        finally:
            self.schedule_registered_task(task_name)

    def get_active_timers(self) -> List[Dict[str, Any]]:
        """Return list of active timer names and their next run time (for API)."""
        with self._lock:
            timers = list(self.tasks.items())
        result = []
        for name, timer in timers:
            if getattr(timer, "scheduled_time", None) is not None:
                next_run = datetime.fromtimestamp(timer.scheduled_time, tz=timezone.utc)
                result.append({"name": name, "next_run_at": next_run})
        return result

    def run_task_now(self, task_name: str) -> Optional[Any]:
        """Run a registered task once immediately (e.g. manual refresh). Returns the runnable's result."""
        runnable = self._registered_tasks.get(task_name)
        if not runnable:
            self.logger.warning(f"No task registered: {task_name}")
            return None
        try:
            config_data = self._registered_config[task_name]()
            return runnable(config_data)
        except Exception as e:
            self.logger.exception(f"Run task now {task_name} failed: {e}")
            return None

    def stop(self) -> None:
        """Stop all scheduled tasks."""
        with self._lock:
            self._stopped = True
            for task in self.tasks.values():
                task.cancel()
        self._stop_event.set()

    def wait(self) -> None:
        """Block until stop() is called."""
        while not self._stop_event.wait(1.0):
            pass
