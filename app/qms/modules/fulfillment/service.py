from __future__ import annotations

from typing import TYPE_CHECKING

from app.qms.modules.catalog.models import Requirement
from app.qms.modules.catalog.service import (
    clause_in_family,
    get_generic_requirements,
    get_requirement_by_id,
    get_requirements,
    get_requirements_by_type,
)
from app.qms.modules.fulfillment.models import (
    ItemRef,
    RequirementAllocation,
    RequirementFulfillment,
    RequirementsOverview,
    RequirementStatus,
)
from app.qms.modules.processes.service import governance_activity_id, is_governance_activity

if TYPE_CHECKING:
    from app.qms.repository import ManagementRepository

# Clause families evidenced by records other than documents
ISSUE_EVIDENCED_CLAUSES = ("4.1", "4.2", "6.1")
PROGRESSED_ACTION_CLAUSES = ("8.7", "10.2", "10.3")
MONITORING_CLAUSES = ("9.1",)
DOCUMENTED_INFORMATION_CLAUSES = ("7.5",)

PROGRESSED_ACTION_STATUSES = frozenset({"completed_pending_evaluation", "evaluated"})


def get_governance_activity_id(process_id: str) -> str:
    return governance_activity_id(process_id)


def clause_matches(requirement_clause: str, document_clause: str) -> bool:
    """Same clause, parent/child by dotted prefix, or the document clause text contains it."""
    r = requirement_clause.strip()
    d = document_clause.strip()
    return d == r or d.startswith(f"{r}.") or r.startswith(f"{d}.") or r in d


def _in_any_family(clause: str, families: tuple[str, ...]) -> bool:
    return any(clause_in_family(clause, family) for family in families)


def get_allocations_for_process(repo: "ManagementRepository", process_id: str) -> list[RequirementAllocation]:
    """System allocations (generic requirements on the governance activity), then manual ones in activity order."""
    gov_id = governance_activity_id(process_id)
    allocations = [
        RequirementAllocation(r.id, process_id, gov_id, is_system_allocated=True)
        for r in get_generic_requirements()
    ]
    process = repo.get("processes", process_id)
    if process is None:
        return allocations
    for activity in process.activities:
        if activity.is_system_activity:
            continue
        allocations.extend(
            RequirementAllocation(req_id, process_id, activity.id)
            for req_id in activity.allocated_requirement_ids
        )
    return allocations


def _allocated_ids(repo: "ManagementRepository", process_id: str) -> set[str]:
    return {a.requirement_id for a in get_allocations_for_process(repo, process_id)}


def get_requirements_for_activity(repo: "ManagementRepository", process_id: str, activity_id: str) -> list[Requirement]:
    """
    Governance activity: the generic requirement set.
    Other activities: their explicit allocations, in allocation order.
    """
    if is_governance_activity(activity_id):
        return get_generic_requirements()
    process = repo.get("processes", process_id)
    activity = process.activity(activity_id) if process is not None else None
    if activity is None:
        return []
    out = []
    for req_id in activity.allocated_requirement_ids:
        requirement = get_requirement_by_id(req_id)
        if requirement is not None:
            out.append(requirement)
    return out


def infer_fulfillment(repo: "ManagementRepository", requirement: Requirement, process_id: str) -> RequirementFulfillment:
    """
    Derive the satisfaction state of a requirement for a process.

    Evidence sources:
    - non-archived documents of the process whose clause references match
    - issues of the process for 4.1, 4.2, 6.1
    - completed or evaluated actions of the process for 8.7, 10.2, 10.3
    - non-cancelled actions of the process for 9.1
    - any non-archived document of the process for 7.5

    Pure: reads the current snapshot only.
    """
    documents = [d for d in repo.documents if process_id in d.process_ids and d.status != "archived"]
    clause = requirement.clause_number
    refs: list[ItemRef] = []

    for document in documents:
        if any(clause_matches(clause, ref.clause_number) for ref in document.iso_clause_references):
            refs.append(ItemRef("document_linked", document.id))

    if _in_any_family(clause, ISSUE_EVIDENCED_CLAUSES):
        refs.extend(ItemRef("issue_linked", i.id) for i in repo.issues if i.process_id == process_id)

    actions = [a for a in repo.actions if a.process_id == process_id]
    if _in_any_family(clause, PROGRESSED_ACTION_CLAUSES):
        refs.extend(ItemRef("action_linked", a.id) for a in actions if a.status in PROGRESSED_ACTION_STATUSES)
    if _in_any_family(clause, MONITORING_CLAUSES):
        refs.extend(ItemRef("action_linked", a.id) for a in actions if a.status != "cancelled")
    if _in_any_family(clause, DOCUMENTED_INFORMATION_CLAUSES):
        refs.extend(ItemRef("document_linked", d.id) for d in documents)

    unique_refs = tuple(dict.fromkeys(refs))
    return RequirementFulfillment(
        requirement_id=requirement.id,
        process_id=process_id,
        state="satisfied" if unique_refs else "not_satisfied",
        inferred_from=unique_refs,
    )


def get_fulfillment_for_process(repo: "ManagementRepository", process_id: str) -> dict[str, RequirementFulfillment]:
    """Fulfillment of every allocated requirement, keyed by requirement id (catalog order)."""
    allocated = _allocated_ids(repo, process_id)
    return {
        r.id: infer_fulfillment(repo, r, process_id)
        for r in get_requirements()
        if r.id in allocated
    }


def get_requirements_overview(repo: "ManagementRepository", process_id: str) -> RequirementsOverview:
    """
    Counts over the allocated requirements of a process. Generic requirements are
    always allocated; unique and duplicable ones only when explicitly allocated.
    """
    allocated_ids = _allocated_ids(repo, process_id)
    fulfillments = get_fulfillment_for_process(repo, process_id)
    allocated = [r for r in get_requirements() if r.id in allocated_ids]
    statuses = tuple(RequirementStatus(r, fulfillments[r.id]) for r in allocated)
    satisfied = sum(1 for s in statuses if s.fulfillment.is_satisfied)
    return RequirementsOverview(
        total=len(get_requirements()),
        allocated=len(allocated),
        satisfied=satisfied,
        not_satisfied=len(allocated) - satisfied,
        by_type={
            "generic": len(get_generic_requirements()),
            "unique": sum(1 for r in allocated if r.type == "unique"),
            "duplicable": sum(1 for r in allocated if r.type == "duplicable"),
        },
        requirements=statuses,
    )


def _allocated_unique_ids(repo: "ManagementRepository") -> set[str]:
    unique_ids = {r.id for r in get_requirements_by_type("unique")}
    return {
        req_id
        for process in repo.processes
        for activity in process.activities
        for req_id in activity.allocated_requirement_ids
        if req_id in unique_ids
    }


def get_unallocated_unique_requirements(repo: "ManagementRepository") -> list[Requirement]:
    """Unique requirements not yet allocated to any activity in the system."""
    taken = _allocated_unique_ids(repo)
    return [r for r in get_requirements_by_type("unique") if r.id not in taken]


def get_unused_duplicable_requirements(repo: "ManagementRepository", process_id: str) -> list[Requirement]:
    allocated = _allocated_ids(repo, process_id)
    return [r for r in get_requirements_by_type("duplicable") if r.id not in allocated]


def get_available_for_allocation(repo: "ManagementRepository", process_id: str, activity_id: str) -> list[Requirement]:
    """
    Requirements that may still be allocated to the activity: not generic, not
    already on this activity, and, for unique ones, not allocated anywhere.
    """
    on_activity = {r.id for r in get_requirements_for_activity(repo, process_id, activity_id)}
    taken_unique = _allocated_unique_ids(repo)
    return [
        r for r in get_requirements()
        if r.type != "generic"
        and r.id not in on_activity
        and not (r.type == "unique" and r.id in taken_unique)
    ]
