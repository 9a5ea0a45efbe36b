# Rev 0.4.0

"""Pytest fixtures for flowstate (Rev 0.4.0)"""
from __future__ import annotations
import pytest
from pathlib import Path

from PySide6.QtCore import QCoreApplication

from flowstate.repositories.db import Database
from flowstate.repositories.sqlite_task_dao import SQLiteTaskDao
from flowstate.repositories.sqlite_task_repository import SQLiteTaskRepository

from fakes import ImmediateExecutor


@pytest.fixture(scope="session")
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture()
def db(tmp_path: Path, qapp) -> Database:
    database = Database(path=tmp_path / "test.db")
    try:
        database.run_migrations()
        yield database
    finally:
        database.close()


@pytest.fixture()
def dao(db: Database) -> SQLiteTaskDao:
    # live queries refresh inline; test_threading.py covers the worker path
    return SQLiteTaskDao(db, reader=ImmediateExecutor())


@pytest.fixture()
def repo(dao: SQLiteTaskDao) -> SQLiteTaskRepository:
    return SQLiteTaskRepository(dao)
