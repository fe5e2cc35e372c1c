import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .config import Config
from .db import init_db
from .task_manager import TaskManager
from agenda_board.agenda import pipeline, queries, service
from agenda_board.agenda.archive import ArchiveResult
from agenda_board.agenda.errors import ConfigurationError
from agenda_board.agenda.pipeline import ExtractionResult
from agenda_board.agenda.settings import AgendaSettings
from agenda_board.agenda.task import ArchivalTask, ExtractionTask


class AgendaApp:
    def __init__(self, config_path: Optional[str] = None, watch: bool = False):
        self.logger = logging.getLogger(self.__class__.__name__)

        self.config = Config(config_path=config_path, watch=watch)
        self.config.register_change_callback(self.handle_config_change)

        self._setup_logging()

        # Database first so the source sync below has its tables
        init_db(self.config.data)
        service.sync_sources_from_config(self.config.get_section("agenda"))

        self.task_manager = TaskManager()
        self.tasks: List[Any] = []

    def _setup_logging(self) -> None:
        """Configure logging to write to both file and stdout"""
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
        logging_config = self.config.get_section("logging")
        root_logger.setLevel(getattr(logging, str(logging_config.get("level", "INFO")).upper(), logging.INFO))

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
        )

        log_file = logging_config.get("file")
        if log_file:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        logging.info("Agenda board starting...")

    @property
    def settings(self) -> AgendaSettings:
        """Validated agenda settings from the current config. Raises ConfigurationError."""
        return AgendaSettings.from_config(self.config.data.get("agenda"))

    def settings_or_default(self) -> AgendaSettings:
        """Settings for read-only queries; falls back to defaults when config is invalid."""
        try:
            return self.settings
        except ConfigurationError as e:
            self.logger.warning(f"Using default agenda settings: {e}")
            return AgendaSettings.default()

    # --- Entry points ---

    def run_extraction(self, day_of_week: Optional[str] = None) -> ExtractionResult:
        """Extract today's agendas (or those of day_of_week) into the current-day table."""
        return pipeline.run_extraction(self.settings, day_of_week=day_of_week)

    def run_archival(self) -> ArchiveResult:
        """Archive the current-day table under today's date."""
        return pipeline.run_archival(self.settings)

    # --- Queries ---

    def get_current_agenda(self) -> Union[queries.AgendaPayload, queries.AgendaFailure]:
        return queries.get_current_agenda()

    def get_archived_agenda(self, date_key: str) -> Union[queries.AgendaPayload, queries.AgendaFailure]:
        return queries.get_archived_agenda(date_key, self.settings_or_default().archive_prefix)

    def list_archived_dates(self) -> List[str]:
        return queries.list_archived_dates(self.settings_or_default().archive_prefix)

    # --- Scheduling and serving ---

    def start_tasks(self) -> None:
        """Register the extraction and archival tasks and schedule them from DB next_run."""
        settings = self.settings
        self.tasks = [ExtractionTask(settings), ArchivalTask(settings)]
        for task in self.tasks:
            task.ensure_scheduled()
            self.task_manager.register_task(task.task_name, task.run, lambda: self.config.data)
            self.task_manager.schedule_registered_task(task.task_name)

    def handle_config_change(self, new_config: Dict[str, Any]) -> None:
        """Re-sync sources and schedules after the config file changes."""
        self.logger.info("Config changed; re-syncing agenda sources")
        try:
            service.sync_sources_from_config(new_config.get("agenda"))
        except ConfigurationError as e:
            self.logger.error(f"Sources not synced: {e}")
        if not self.tasks:
            return
        try:
            settings = AgendaSettings.from_config(new_config.get("agenda"))
        except ConfigurationError as e:
            self.logger.error(f"Schedules not updated: {e}")
            return
        for task in (ExtractionTask(settings), ArchivalTask(settings)):
            task.ensure_scheduled()
            self.task_manager.schedule_registered_task(task.task_name)

    def serve(self) -> None:
        """Start the background tasks and block serving the API (or until interrupted)."""
        from agenda_board.api import run_api_server

        self.start_tasks()
        try:
            if not run_api_server(self):
                self.logger.info("API disabled; running scheduled tasks only (Ctrl+C to stop)")
                self.task_manager.wait()
        except KeyboardInterrupt:
            self.logger.info("Interrupted")
        finally:
            self.stop()

    def stop(self) -> None:
        self.task_manager.stop()
        self.config.cleanup()
        logging.info("Agenda board stopped")
