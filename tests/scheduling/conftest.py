"""Pytest fixtures for scheduling tests."""

import sqlite3

import pytest

from rtk.scheduling import JobRepository, SchedulerService


@pytest.fixture
def db_conn():
    """In-memory SQLite database shared across threads."""
    conn = sqlite3.connect(":memory:", check_same_thread=False)
    yield conn
    conn.close()


@pytest.fixture
def repository(db_conn):
    repo = JobRepository(db_conn)
    repo.ensure_schema()
    return repo


@pytest.fixture
def service(dispatcher, clock):
    """Scheduler driven by explicit ``_tick()`` calls and a fake clock."""
    svc = SchedulerService(dispatcher, clock=clock, max_workers=2)
    yield svc
    svc.drain(timeout=5.0)
    svc.stop()


@pytest.fixture
def persistent_service(dispatcher, clock, repository):
    svc = SchedulerService(dispatcher, repository=repository, clock=clock)
    yield svc
    svc.drain(timeout=5.0)
    svc.stop()
