"""Test schedule computation and run bookkeeping"""

# tests/core/test_task.py
import threading
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from agenda_board.core.models import get_all_task_schedule_records
from agenda_board.core.task import (
    LOCAL_TIMEZONE,
    BaseTask,
    TaskType,
    compute_next_run,
    get_next_run_from_db,
    parse_time_of_day,
    upsert_task_schedule,
)
from agenda_board.core.task_manager import TaskManager
from agenda_board.agenda.settings import AgendaSettings
from agenda_board.agenda.task import ArchivalTask


class RecordingTask(BaseTask):
    def __init__(self, fail: bool = False):
        super().__init__("Recording", TaskType.INTERVAL_SECONDS, {"interval_seconds": 600})
        self.fail = fail
        self.calls = []

    def execute(self, config_data, **kwargs):
        self.calls.append(config_data)
        if self.fail:
            raise RuntimeError("presentation service unavailable")
        return "done"


@pytest.mark.parametrize(
    "value, expected",
    [("23:00", "23:00"), ("7:5", "07:05"), (" 6 ", "06:00"), ("25:00", "01:30"), ("soon", "01:30"), (None, "01:30")],
)
def test_parse_time_of_day(value, expected: str) -> None:
    assert parse_time_of_day(value, default="01:30") == expected


class TestComputeNextRun:
    def test_daily_later_today(self) -> None:
        last = datetime(2025, 9, 3, 8, 15)
        assert compute_next_run(TaskType.DAILY, {"time": "23:00"}, last) == datetime(2025, 9, 3, 23, 0)

    def test_daily_already_passed_rolls_to_tomorrow(self) -> None:
        last = datetime(2025, 9, 3, 23, 0)
        assert compute_next_run(TaskType.DAILY, {"time": "23:00"}, last) == datetime(2025, 9, 4, 23, 0)

    def test_daily_in_timezone_is_stored_as_utc(self) -> None:
        # 08:15 UTC is 17:15 in Tokyo; 23:00 Tokyo is 14:00 UTC the same day
        last = datetime(2025, 9, 3, 8, 15)
        config = {"time": "23:00", "timezone": "Asia/Tokyo"}
        assert compute_next_run(TaskType.DAILY, config, last) == datetime(2025, 9, 3, 14, 0)

    def test_daily_in_timezone_rolls_over_local_midnight(self) -> None:
        # 15:00 UTC is already 00:00 on 9/4 in Tokyo
        last = datetime(2025, 9, 3, 15, 0)
        config = {"time": "23:00", "timezone": "Asia/Tokyo"}
        assert compute_next_run(TaskType.DAILY, config, last) == datetime(2025, 9, 4, 14, 0)

    def test_daily_in_timezone_west_of_utc(self) -> None:
        last = datetime(2025, 9, 3, 12, 0)
        config = {"time": "23:00", "timezone": "America/New_York"}
        assert compute_next_run(TaskType.DAILY, config, last) == datetime(2025, 9, 4, 3, 0)

    def test_interval_seconds(self) -> None:
        last = datetime(2025, 9, 3, 8, 0)
        assert compute_next_run(TaskType.INTERVAL_SECONDS, {"interval_seconds": 3600}, last) == datetime(2025, 9, 3, 9, 0)

    def test_unknown_type_defaults_to_a_day(self) -> None:
        last = datetime(2025, 9, 3, 8, 0)
        assert compute_next_run("weekly", None, last) == last + timedelta(days=1)


@pytest.mark.usefixtures("db")
class TestBaseTask:
    def test_new_schedule_runs_immediately(self) -> None:
        RecordingTask().ensure_scheduled()
        assert get_next_run_from_db("Recording") is None

    def test_successful_run_records_next_run(self) -> None:
        task = RecordingTask()
        task.ensure_scheduled()
        before = datetime.now(timezone.utc).replace(tzinfo=None)

        assert task.run({"agenda": {}}) == "done"

        [row] = get_all_task_schedule_records()
        assert row.last_error is None
        assert row.last_run_at >= before - timedelta(seconds=1)
        assert row.next_run_at == row.last_run_at + timedelta(seconds=600)

    def test_failed_run_records_error_and_still_advances(self) -> None:
        task = RecordingTask(fail=True)
        task.ensure_scheduled()

        with pytest.raises(RuntimeError):
            task.run({})

        [row] = get_all_task_schedule_records()
        assert row.last_error == "presentation service unavailable"
        assert row.next_run_at == row.last_run_at + timedelta(seconds=600)

    def test_changed_schedule_recomputes_next_run(self) -> None:
        task = RecordingTask()
        task.ensure_scheduled()
        task.run({})
        upsert_task_schedule("Recording", TaskType.INTERVAL_SECONDS, {"interval_seconds": 60})

        [row] = get_all_task_schedule_records()
        assert row.next_run_at == row.last_run_at + timedelta(seconds=60)


@pytest.mark.usefixtures("db")
class TestTaskManager:
    def test_run_task_now_uses_current_config(self) -> None:
        task = RecordingTask()
        task.ensure_scheduled()
        config = {"agenda": {"tolerance": 5}}
        manager = TaskManager()
        manager.register_task(task.task_name, task.run, lambda: config)

        assert manager.run_task_now("Recording") == "done"
        assert task.calls == [config]

    def test_run_task_now_logs_failures(self) -> None:
        task = RecordingTask(fail=True)
        task.ensure_scheduled()
        manager = TaskManager()
        manager.register_task(task.task_name, task.run, dict)

        assert manager.run_task_now("Recording") is None
        assert manager.run_task_now("Unknown") is None

    def test_stop_cancels_timers(self) -> None:
        manager = TaskManager()
        manager.schedule_task("later", lambda: None, delay=3600)
        assert [t["name"] for t in manager.get_active_timers()] == ["later"]

        manager.stop()
        manager.wait()
        manager.schedule_task("after-stop", lambda: None, delay=3600)
        assert "after-stop" not in [t["name"] for t in manager.get_active_timers()]

    def test_active_timers_while_scheduling_from_another_thread(self) -> None:
        manager = TaskManager()
        done = threading.Event()

        def schedule_many() -> None:
            for i in range(200):
                manager.schedule_task(f"timer-{i}", lambda: None, delay=3600)
            done.set()

        worker = threading.Thread(target=schedule_many)
        worker.start()
        while not done.is_set():
            manager.get_active_timers()
        worker.join()

        assert len(manager.get_active_timers()) == 200
        manager.stop()


def test_archival_task_runs_at_local_archive_time() -> None:
    task = ArchivalTask(AgendaSettings.default(timezone="Asia/Tokyo", archive_time="23:00"))
    next_run = task.get_next_run(datetime(2025, 9, 3, 8, 15))

    assert next_run == datetime(2025, 9, 3, 14, 0)
    local = next_run.replace(tzinfo=timezone.utc).astimezone(ZoneInfo("Asia/Tokyo"))
    assert local.date().isoformat() == "2025-09-03"


def test_archival_task_without_timezone_uses_server_time() -> None:
    task = ArchivalTask(AgendaSettings.default())
    assert task.schedule_config == {"time": "23:00", "timezone": LOCAL_TIMEZONE}
