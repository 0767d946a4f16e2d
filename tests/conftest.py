from datetime import date, datetime, timedelta, timezone

import pytest

from app.qms.record_store import MemoryRecordStore
from app.qms.repository import ManagementRepository

TODAY = date(2026, 3, 15)


class TickingClock:
    """ISO timestamps one second apart, so ordering by time is deterministic."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> str:
        self.current += timedelta(seconds=1)
        return self.current.isoformat()


class CountingIds:
    def __init__(self):
        self.n = 0

    def __call__(self) -> str:
        self.n += 1
        return f"id-{self.n}"


@pytest.fixture()
def store():
    return MemoryRecordStore()


@pytest.fixture()
def repo(store):
    return ManagementRepository(
        store,
        clock=TickingClock(datetime(2026, 3, 15, 9, 0, tzinfo=timezone.utc)),
        id_factory=CountingIds(),
        today=lambda: TODAY,
    )


@pytest.fixture()
def make_process(repo):
    from app.qms.modules.processes.service import create_process

    def _make(name="Production", type_="operational", **extra):
        return create_process(repo, {"name": name, "type": type_, "status": "active", **extra})

    return _make


@pytest.fixture()
def make_action(repo):
    from app.qms.modules.actions.service import create_action

    def _make(process_id="proc-x", deadline="2026-04-30", **extra):
        payload = {
            "title": "Fix the thing",
            "origin": "issue",
            "process_id": process_id,
            "deadline": deadline,
            **extra,
        }
        return create_action(repo, payload)

    return _make
