import pytest

from app.qms.errors import ValidationError
from app.qms.modules.actions.service import complete_action, update_action
from app.qms.modules.catalog.service import get_generic_requirements, get_requirement_by_id
from app.qms.modules.fulfillment.models import ItemRef
from app.qms.modules.fulfillment.service import (
    clause_matches,
    get_allocations_for_process,
    get_available_for_allocation,
    get_fulfillment_for_process,
    get_governance_activity_id,
    get_requirements_for_activity,
    get_requirements_overview,
    get_unallocated_unique_requirements,
    get_unused_duplicable_requirements,
    infer_fulfillment,
    is_governance_activity,
)
from app.qms.modules.processes.service import (
    allocate_requirement,
    archive_document,
    create_document,
    deallocate_requirement,
)
from app.qms.modules.risk.service import create_issue


@pytest.fixture()
def process(make_process):
    return make_process(activities=[{"name": "Receive order"}, {"name": "Ship"}])


def _activity(process, name):
    return next(a for a in process.activities if a.name == name)


def test_governance_activity_holds_generic_requirements(repo, process):
    gov_id = get_governance_activity_id(process.id)
    assert is_governance_activity(gov_id)
    assert process.activities[0].id == gov_id
    assert get_requirements_for_activity(repo, process.id, gov_id) == get_generic_requirements()


def test_activity_requirements_keep_allocation_order(repo, process):
    ship = _activity(process, "Ship")
    for req_id in ("req-8.5.4", "req-8.2.1", "req-7.1.3"):
        allocate_requirement(repo, process.id, ship.id, req_id)
    reqs = get_requirements_for_activity(repo, process.id, ship.id)
    assert [r.id for r in reqs] == ["req-8.5.4", "req-8.2.1", "req-7.1.3"]


def test_generic_and_governance_allocation_is_refused(repo, process):
    ship = _activity(process, "Ship")
    with pytest.raises(ValidationError):
        allocate_requirement(repo, process.id, ship.id, "req-4.1")
    with pytest.raises(ValidationError):
        deallocate_requirement(repo, process.id, get_governance_activity_id(process.id), "req-4.1")


def test_allocations_list_system_then_manual(repo, process):
    receive = _activity(process, "Receive order")
    allocate_requirement(repo, process.id, receive.id, "req-8.2.2")
    allocations = get_allocations_for_process(repo, process.id)
    generic_count = len(get_generic_requirements())
    assert all(a.is_system_allocated for a in allocations[:generic_count])
    assert allocations[-1].requirement_id == "req-8.2.2"
    assert allocations[-1].activity_id == receive.id
    assert not allocations[-1].is_system_allocated


def test_overview_counts_generic_as_allocated(repo, process):
    overview = get_requirements_overview(repo, process.id)
    generic_count = len(get_generic_requirements())
    assert overview.total == 54
    assert overview.allocated == generic_count
    assert overview.by_type == {"generic": generic_count, "unique": 0, "duplicable": 0}
    assert overview.satisfied + overview.not_satisfied == overview.allocated

    ship = _activity(process, "Ship")
    allocate_requirement(repo, process.id, ship.id, "req-9.2")
    allocate_requirement(repo, process.id, ship.id, "req-8.5.1")
    overview = get_requirements_overview(repo, process.id)
    assert overview.allocated == generic_count + 2
    assert overview.by_type["unique"] == 1
    assert overview.by_type["duplicable"] == 1


def test_unique_requirement_hidden_once_allocated(repo, process, make_process):
    ship = _activity(process, "Ship")
    other = make_process("Purchasing", "support", activities=[{"name": "Select supplier"}])
    select = _activity(other, "Select supplier")

    assert "req-9.2" in {r.id for r in get_available_for_allocation(repo, other.id, select.id)}
    allocate_requirement(repo, process.id, ship.id, "req-9.2")

    available = {r.id for r in get_available_for_allocation(repo, other.id, select.id)}
    assert "req-9.2" not in available
    assert "req-4.1" not in available
    assert "req-8.5.1" in available
    assert "req-9.2" not in {r.id for r in get_unallocated_unique_requirements(repo)}

    on_ship = {r.id for r in get_available_for_allocation(repo, process.id, ship.id)}
    assert "req-9.2" not in on_ship


def test_unused_duplicable(repo, process):
    ship = _activity(process, "Ship")
    allocate_requirement(repo, process.id, ship.id, "req-8.5.1")
    unused = {r.id for r in get_unused_duplicable_requirements(repo, process.id)}
    assert "req-8.5.1" not in unused
    assert "req-8.5.2" in unused


def test_deallocate(repo, process):
    ship = _activity(process, "Ship")
    allocate_requirement(repo, process.id, ship.id, "req-8.5.1")
    updated = deallocate_requirement(repo, process.id, ship.id, "req-8.5.1")
    assert _activity(updated, "Ship").allocated_requirement_ids == ()


@pytest.mark.parametrize(
    "requirement, document, expected",
    [
        ("7.5", "7.5", True),
        ("7.5", "7.5.1", True),
        ("7.5.1", "7.5", True),
        ("7.5", "8.5", False),
        ("8.2", "§8.2 customer", True),
        ("8.2", "9.2", False),
    ],
)
def test_clause_matches(requirement, document, expected):
    assert clause_matches(requirement, document) is expected


def test_document_with_matching_clause_satisfies(repo, process):
    req = get_requirement_by_id("req-8.5.1")
    assert infer_fulfillment(repo, req, process.id).state == "not_satisfied"

    doc = create_document(repo, {
        "title": "Production control procedure",
        "type": "procedure",
        "status": "active",
        "process_ids": [process.id],
        "iso_clause_references": [{"clause_number": "8.5", "clause_title": "Production"}],
    })
    result = infer_fulfillment(repo, req, process.id)
    assert result.state == "satisfied"
    assert result.inferred_from == (ItemRef("document_linked", doc.id),)

    archive_document(repo, doc.id)
    assert infer_fulfillment(repo, req, process.id).state == "not_satisfied"


def test_documented_information_evidenced_by_any_document(repo, process):
    doc = create_document(repo, {
        "title": "Work instruction",
        "type": "instruction",
        "process_ids": [process.id],
        "iso_clause_references": ["7.5.2"],
    })
    result = infer_fulfillment(repo, get_requirement_by_id("req-7.5.2"), process.id)
    # matched once by clause and once by the 7.5 rule, reported once
    assert result.inferred_from == (ItemRef("document_linked", doc.id),)
    assert infer_fulfillment(repo, get_requirement_by_id("req-7.5.1"), process.id).state == "satisfied"


def test_context_clauses_evidenced_by_issues(repo, process):
    issue = create_issue(repo, {
        "type": "opportunity",
        "quadrant": "strength",
        "description": "Skilled staff",
        "context_nature": "internal",
        "process_id": process.id,
    })
    for req_id in ("req-4.1", "req-4.2", "req-6.1"):
        result = infer_fulfillment(repo, get_requirement_by_id(req_id), process.id)
        assert result.inferred_from == (ItemRef("issue_linked", issue.id),)
    assert infer_fulfillment(repo, get_requirement_by_id("req-6.2"), process.id).state == "not_satisfied"


def test_action_based_clauses(repo, process, make_action):
    planned = make_action(process_id=process.id)
    done = make_action(process_id=process.id)
    cancelled = make_action(process_id=process.id)
    complete_action(repo, done.id)
    update_action(repo, cancelled.id, {"status": "cancelled"})

    improvement = infer_fulfillment(repo, get_requirement_by_id("req-10.3"), process.id)
    assert improvement.inferred_from == (ItemRef("action_linked", done.id),)

    monitoring = infer_fulfillment(repo, get_requirement_by_id("req-9.1.1"), process.id)
    assert monitoring.inferred_from == (
        ItemRef("action_linked", planned.id),
        ItemRef("action_linked", done.id),
    )


def test_inference_is_pure(repo, process):
    snapshot = (repo.processes, repo.documents, repo.issues, repo.actions, repo.function_instances)
    fulfillment = get_fulfillment_for_process(repo, process.id)
    again = get_fulfillment_for_process(repo, process.id)
    assert fulfillment == again
    assert (repo.processes, repo.documents, repo.issues, repo.actions, repo.function_instances) == snapshot
