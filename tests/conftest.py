"""Shared fixtures"""

# tests/conftest.py
from datetime import date
from pathlib import Path

import pytest

from agenda_board.core.db import dispose_db, init_db
from agenda_board.agenda.records import SourceRecord
from agenda_board.agenda.settings import AgendaSettings


@pytest.fixture
def db(tmp_path: Path):
    """Fresh SQLite database with all tables, disposed after the test."""
    dispose_db()
    init_db(db_url=f"sqlite:///{tmp_path / 'agendas.db'}")
    yield
    dispose_db()


@pytest.fixture
def empty_db(tmp_path: Path):
    """SQLite database opened without creating any tables."""
    dispose_db()
    init_db(db_url=f"sqlite:///{tmp_path / 'empty.db'}", create_tables=False)
    yield
    dispose_db()


@pytest.fixture
def settings() -> AgendaSettings:
    """Built-in box layout, tolerance 5, English and Spanish week labels."""
    return AgendaSettings.default()


@pytest.fixture
def wednesday() -> date:
    """A Wednesday; its week starts Monday 9/1/2025."""
    return date(2025, 9, 3)


@pytest.fixture
def source_records() -> list:
    return [
        SourceRecord("deck-smith", "Smith", "Algebra I", "9"),
        SourceRecord("deck-garcia", "Garcia", "Biology", "10"),
    ]
