import logging

import pytest

from app.qms.append_log import AppendOnlyLog
from app.qms.modules.actions.service import complete_action, evaluate_action_efficiency
from app.qms.modules.functions.service import add_evidence, get_policy_management_instance, update_policy_axes
from app.qms.modules.processes.service import create_process
from app.qms.modules.risk.service import add_risk_version, create_issue
from app.qms.record_store import MemoryRecordStore, RecordStoreError, record_store_from_config
from app.qms.repository import ManagementRepository


class BrokenStore(MemoryRecordStore):
    def create(self, collection, record):
        raise RecordStoreError("disk full")

    def update(self, collection, record_id, patch):
        raise RecordStoreError("disk full")


def test_append_only_log_returns_new_value():
    log = AppendOnlyLog()
    longer = log.append("a")
    assert len(log) == 0
    assert list(longer) == ["a"]
    assert longer.latest() == "a"
    assert longer.append("b") == AppendOnlyLog(["a", "b"])
    assert not hasattr(longer, "remove")


def test_mutations_swap_collections(repo, make_process):
    process = make_process()
    snapshot = repo.processes
    make_process("Other")
    assert snapshot == [process]
    assert len(repo.processes) == 2


def test_add_rejects_duplicate_id(repo, make_process):
    process = make_process()
    with pytest.raises(ValueError):
        repo.add("processes", process)


def test_write_through_reaches_store(repo, store, make_process):
    process = make_process()
    stored = {r["id"]: r for r in store.fetch("processes")}
    assert stored[process.id]["code"] == "PRO-001"
    assert len(store.fetch("function_instances")) == len(repo.function_instances)


def test_store_failure_is_logged_not_raised(caplog):
    repo = ManagementRepository(BrokenStore())
    with caplog.at_level(logging.ERROR, logger="app.qms.repository"):
        process = create_process(repo, {"name": "Production", "type": "operational"})
    assert repo.get("processes", process.id) == process
    assert any("STORE: create processes/" in r.getMessage() for r in caplog.records)


def test_hydrate_rebuilds_every_collection(repo, store, make_process, make_action):
    process = make_process("Direction", "management")
    issue = create_issue(repo, {
        "type": "risk",
        "quadrant": "threat",
        "description": "Audit findings pile up",
        "context_nature": "internal",
        "process_id": process.id,
        "severity": 3,
        "probability": 2,
    })
    action = make_action(process_id=process.id, linked_issue_ids=[issue.id])
    complete_action(repo, action.id)
    evaluate_action_efficiency(repo, action.id, {"result": "effective", "evaluator_name": "QA"})
    add_risk_version(repo, issue.id, {"trigger": "post_action_review", "severity": 1, "probability": 2})
    policy = get_policy_management_instance(repo)
    update_policy_axes(repo, policy.id, [{"name": "Customer first", "description": "d"}])
    add_evidence(repo, policy.id, {"type": "note", "title": "Signed policy"})

    fresh = ManagementRepository(store)
    loaded = fresh.hydrate()

    assert loaded == sum(len(repo.all(c)) for c in ("processes", "documents", "issues", "actions", "function_instances"))
    assert fresh.processes == repo.processes
    assert fresh.issues == repo.issues
    assert fresh.actions == repo.actions
    assert fresh.function_instances == repo.function_instances
    assert fresh.find_instance("fn-4.4-process-management", process.id) is not None
    assert get_policy_management_instance(fresh).data.policy_axes[0].name == "Customer first"


def test_record_store_from_config():
    assert isinstance(record_store_from_config({"RECORD_STORE": "memory"}), MemoryRecordStore)
    with pytest.raises(RecordStoreError):
        record_store_from_config({"RECORD_STORE": "sql"}, {})
    with pytest.raises(RecordStoreError):
        record_store_from_config({"RECORD_STORE": "redis"})


def test_memory_store_contract():
    store = MemoryRecordStore()
    store.create("actions", {"id": "a1", "title": "x"})
    with pytest.raises(RecordStoreError):
        store.create("actions", {"id": "a1"})
    store.update("actions", "a1", {"title": "y"})
    assert store.fetch("actions") == [{"id": "a1", "title": "y"}]
    with pytest.raises(RecordStoreError):
        store.update("actions", "zz", {})
    store.delete("actions", "a1")
    store.delete("actions", "a1")
    assert store.fetch("actions") == []
