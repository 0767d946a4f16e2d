import logging

import pytest

from app.qms.errors import ValidationError
from app.qms.modules.processes.models import GOVERNANCE_ACTIVITY_NAME
from app.qms.modules.processes.service import (
    archive_process,
    create_document,
    create_process,
    get_active_documents,
    get_active_processes,
    get_documents_by_process,
    update_document,
    update_process,
)


def test_create_process_adds_governance_activity(repo, make_process):
    process = make_process(activities=[{"name": "Plan"}, {"name": "Make"}])
    assert process.code == "PRO-001"
    assert process.version == 1
    gov = process.activities[0]
    assert gov.id == f"gov-{process.id}"
    assert gov.name == GOVERNANCE_ACTIVITY_NAME
    assert gov.is_system_activity is True
    assert [a.name for a in process.activities[1:]] == ["Plan", "Make"]
    assert make_process("Second").code == "PRO-002"


def test_create_process_validation(repo):
    with pytest.raises(ValidationError) as exc:
        create_process(repo, {"name": " ", "type": "marketing"})
    assert len(exc.value.errors) == 2
    assert repo.processes == []
    assert repo.function_instances == []


def test_update_keeps_governance_activity(repo, make_process):
    process = make_process(activities=[{"name": "Plan"}])
    gov = process.activities[0]
    updated = update_process(
        repo,
        process.id,
        {"activities": [{"id": gov.id, "name": "Hijacked"}, {"name": "Deliver"}]},
        "Reworked activities",
    )
    assert updated.activities[0] == gov
    assert [a.name for a in updated.activities] == [GOVERNANCE_ACTIVITY_NAME, "Deliver"]
    assert updated.version == 2
    assert updated.revision_note == "Reworked activities"


def test_type_change_resyncs_functions(repo, make_process):
    process = make_process("Support desk", "support")
    before = {fi.function_id for fi in repo.function_instances if fi.process_id == process.id}
    assert "fn-8.1-operational-control" not in before
    update_process(repo, process.id, {"type": "operational"})
    after = {fi.function_id for fi in repo.function_instances if fi.process_id == process.id}
    assert "fn-8.1-operational-control" in after
    assert before <= after


def test_archive_process(repo, make_process):
    process = make_process()
    archive_process(repo, process.id)
    assert get_active_processes(repo) == []
    assert update_process(repo, "missing", {"name": "x"}) is None


def test_documents(repo, make_process):
    process = make_process()
    doc = create_document(repo, {
        "title": "Purchasing procedure",
        "type": "procedure",
        "status": "active",
        "process_ids": [process.id],
        "iso_clause_references": [{"clause_number": "8.4"}],
    })
    assert doc.code == "DOC-001"
    assert doc.iso_clause_references[0].clause_number == "8.4"
    assert get_documents_by_process(repo, process.id) == [doc]
    assert get_active_documents(repo) == [doc]

    archived = update_document(repo, doc.id, {"status": "archived"})
    assert archived.version == 2
    assert get_documents_by_process(repo, process.id) == []

    with pytest.raises(ValidationError):
        create_document(repo, {"title": "x", "type": "poster"})


@pytest.mark.parametrize(
    "payload",
    [
        {"inputs": "orders"},
        {"outputs": [1]},
        {"activities": "Plan"},
        {"activities": ["Plan"]},
        {"activities": [{"name": "Plan", "sequence": "first"}]},
        {"activities": [{"name": "Plan", "allocated_requirement_ids": "req-8.5.1"}]},
    ],
)
def test_create_process_rejects_malformed_lists(repo, payload):
    with pytest.raises(ValidationError):
        create_process(repo, {"name": "Production", "type": "operational", **payload})
    assert repo.processes == []
    assert repo.function_instances == []


def test_update_process_rejects_non_mapping_activity(repo, make_process):
    process = make_process()
    with pytest.raises(ValidationError):
        update_process(repo, process.id, {"activities": [42]})
    assert repo.get("processes", process.id) == process


@pytest.mark.parametrize(
    "payload",
    [
        {"iso_clause_references": [{"clause_title": "Production"}]},
        {"iso_clause_references": [8.5]},
        {"iso_clause_references": "8.5"},
        {"process_ids": "proc-1"},
    ],
)
def test_create_document_rejects_malformed_references(repo, payload):
    with pytest.raises(ValidationError):
        create_document(repo, {"title": "Procedure", "type": "procedure", **payload})
    assert repo.documents == []


def test_update_unknown_document_warns(repo, caplog):
    with caplog.at_level(logging.WARNING, logger="app.qms.modules.processes.service"):
        assert update_document(repo, "missing", {"title": "x"}) is None
    assert any("unknown document missing" in r.getMessage() for r in caplog.records)
