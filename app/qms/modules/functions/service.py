"""
Function instance lifecycle.

A StandardFunction is attached to a process through a FunctionInstance. The catalog's
duplication rule bounds how many instances may exist:

- unique: one instance system-wide
- per_process: one instance per (function_id, process_id)

Instances are never deleted; every mutation appends one history entry.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, Any

from app.qms.errors import ValidationError
from app.qms.modules.catalog.functions import POLICY_MANAGEMENT_FUNCTION_ID
from app.qms.modules.catalog.models import StandardFunction
from app.qms.modules.catalog.service import get_function_by_id, get_functions, get_functions_for_process_type
from app.qms.modules.functions.models import (
    EVIDENCE_TYPES,
    INSTANCE_STATUSES,
    STATUS_LABELS,
    FunctionEvidence,
    FunctionHistoryEntry,
    FunctionInstance,
    PolicyAxis,
    PolicyManagementData,
    build_function_data,
    merge_function_data,
)
from app.qms.utils import check_choice, clean_str

if TYPE_CHECKING:
    from app.qms.modules.processes.models import Process
    from app.qms.repository import ManagementRepository

logger = logging.getLogger(__name__)

# link kind -> (instance attribute, history action suffix)
_LINKS = {
    "action": ("linked_action_ids", "action"),
    "objective": ("linked_objective_ids", "objective"),
    "kpi": ("linked_kpi_ids", "kpi"),
}


def _history_entry(
    repo: "ManagementRepository",
    action: str,
    description: str,
    *,
    changed_by: str | None = None,
    previous_value: str | None = None,
    new_value: str | None = None,
) -> FunctionHistoryEntry:
    return FunctionHistoryEntry(
        id=repo.new_id(),
        date=repo.clock(),
        action=action,
        description=description,
        changed_by=changed_by,
        previous_value=previous_value,
        new_value=new_value,
    )


def _commit(repo: "ManagementRepository", instance: FunctionInstance, entry: FunctionHistoryEntry, **changes: Any) -> FunctionInstance:
    updated = dataclasses.replace(
        instance,
        **changes,
        history=instance.history.append(entry),
        updated_at=entry.date,
    )
    repo.replace("function_instances", updated)
    return updated


def _require_instance(repo: "ManagementRepository", instance_id: str, op: str) -> FunctionInstance | None:
    instance = repo.get("function_instances", instance_id)
    if instance is None:
        logger.warning("%s: unknown function instance %s", op, instance_id)
    return instance


# ── Creation / sync ──────────────────────────────────────────────────────


def create_instance(
    repo: "ManagementRepository",
    function_id: str,
    process_id: str,
    data: dict[str, Any] | None = None,
    *,
    created_by: str | None = None,
) -> FunctionInstance | None:
    """
    Attach a catalog function to a process.

    Returns None when a unique function already has an instance elsewhere; for a
    per_process function that already has an instance on this process, returns it.
    """
    function = get_function_by_id(function_id)
    if function is None:
        raise ValidationError(f"Unknown standard function: {function_id}")
    try:
        function_data = build_function_data(function_id, data)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    if function.duplication_rule == "unique":
        existing = repo.find_instance_by_function(function_id)
        if existing is not None:
            logger.warning(
                "SYNC: unique function %s already instantiated on process %s; refusing %s",
                function_id, existing.process_id, process_id,
            )
            return None
    else:
        existing = repo.find_instance(function_id, process_id)
        if existing is not None:
            return existing

    now = repo.clock()
    entry = FunctionHistoryEntry(
        id=repo.new_id(),
        date=now,
        action="created",
        description=f"Function '{function.name}' attached to process",
        changed_by=created_by,
    )
    instance = FunctionInstance(
        id=repo.new_id(),
        function_id=function_id,
        process_id=process_id,
        status="not_implemented",
        data=function_data,
        created_at=now,
        updated_at=now,
    )
    instance = dataclasses.replace(instance, history=instance.history.append(entry))
    repo.add("function_instances", instance)
    return instance


def get_applicable_functions(process: "Process") -> list[StandardFunction]:
    return get_functions_for_process_type(process.type)


def sync_functions_for_process(repo: "ManagementRepository", process: "Process") -> list[FunctionInstance]:
    """
    Ensure every mandatory function applicable to the process type has an instance.

    Returns the instances created by this call. A unique function already attached
    to another process is skipped.
    """
    created: list[FunctionInstance] = []
    for function in get_applicable_functions(process):
        if not function.mandatory:
            continue
        if function.duplication_rule == "unique":
            if repo.find_instance_by_function(function.id) is not None:
                continue
        elif repo.find_instance(function.id, process.id) is not None:
            continue
        instance = create_instance(repo, function.id, process.id)
        if instance is not None:
            created.append(instance)
    if created:
        logger.info("SYNC: %s function instance(s) created for process %s", len(created), process.id)
    return created


# ── Mutations ────────────────────────────────────────────────────────────


def update_instance_data(
    repo: "ManagementRepository",
    instance_id: str,
    updates: dict[str, Any],
    *,
    changed_by: str | None = None,
) -> FunctionInstance | None:
    instance = _require_instance(repo, instance_id, "update_instance_data")
    if instance is None:
        return None
    try:
        data = merge_function_data(instance.data, updates)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    entry = _history_entry(
        repo, "updated", f"Updated: {', '.join(sorted(updates)) or 'no fields'}", changed_by=changed_by,
    )
    return _commit(repo, instance, entry, data=data)


def update_instance_status(
    repo: "ManagementRepository",
    instance_id: str,
    status: str,
    *,
    changed_by: str | None = None,
    notes: str | None = None,
) -> FunctionInstance | None:
    errors: list[str] = []
    check_choice(errors, "instance status", status, INSTANCE_STATUSES)
    if errors:
        raise ValidationError(errors)
    instance = _require_instance(repo, instance_id, "update_instance_status")
    if instance is None:
        return None
    description = f"Status changed to {STATUS_LABELS[status]}"
    if notes:
        description = f"{description}: {notes}"
    entry = _history_entry(
        repo, "status_changed", description,
        changed_by=changed_by, previous_value=instance.status, new_value=status,
    )
    return _commit(repo, instance, entry, status=status)


def add_evidence(repo: "ManagementRepository", instance_id: str, payload: dict[str, Any]) -> FunctionInstance | None:
    errors: list[str] = []
    title = clean_str(payload.get("title"))
    if not title:
        errors.append("Evidence title is required.")
    check_choice(errors, "evidence type", payload.get("type"), EVIDENCE_TYPES)
    if errors:
        raise ValidationError(errors)
    instance = _require_instance(repo, instance_id, "add_evidence")
    if instance is None:
        return None

    evidence = FunctionEvidence(
        id=repo.new_id(),
        type=payload["type"],
        title=title,
        added_at=repo.clock(),
        description=clean_str(payload.get("description")),
        reference=clean_str(payload.get("reference")),
        file_name=clean_str(payload.get("file_name")),
        file_size=payload.get("file_size"),
        mime_type=clean_str(payload.get("mime_type")),
        added_by=clean_str(payload.get("added_by")),
    )
    entry = _history_entry(repo, "evidence_added", f"Evidence added: {title}", changed_by=evidence.added_by)
    return _commit(repo, instance, entry, evidence=instance.evidence.append(evidence))


def _set_link(repo: "ManagementRepository", instance_id: str, kind: str, target_id: str, linked: bool) -> FunctionInstance | None:
    attr, label = _LINKS[kind]
    instance = _require_instance(repo, instance_id, f"{'link' if linked else 'unlink'}_{kind}")
    if instance is None:
        return None
    current: tuple[str, ...] = getattr(instance, attr)
    if linked == (target_id in current):
        return instance
    if linked:
        ids = current + (target_id,)
        entry = _history_entry(repo, f"{label}_linked", f"{kind.capitalize()} linked", new_value=target_id)
    else:
        ids = tuple(i for i in current if i != target_id)
        entry = _history_entry(repo, f"{label}_unlinked", f"{kind.capitalize()} unlinked", previous_value=target_id)
    return _commit(repo, instance, entry, **{attr: ids})


def link_action(repo: "ManagementRepository", instance_id: str, action_id: str) -> FunctionInstance | None:
    return _set_link(repo, instance_id, "action", action_id, True)


def unlink_action(repo: "ManagementRepository", instance_id: str, action_id: str) -> FunctionInstance | None:
    return _set_link(repo, instance_id, "action", action_id, False)


def link_objective(repo: "ManagementRepository", instance_id: str, objective_id: str) -> FunctionInstance | None:
    return _set_link(repo, instance_id, "objective", objective_id, True)


def unlink_objective(repo: "ManagementRepository", instance_id: str, objective_id: str) -> FunctionInstance | None:
    return _set_link(repo, instance_id, "objective", objective_id, False)


def link_kpi(repo: "ManagementRepository", instance_id: str, kpi_id: str) -> FunctionInstance | None:
    return _set_link(repo, instance_id, "kpi", kpi_id, True)


def unlink_kpi(repo: "ManagementRepository", instance_id: str, kpi_id: str) -> FunctionInstance | None:
    return _set_link(repo, instance_id, "kpi", kpi_id, False)


def update_policy_axes(
    repo: "ManagementRepository",
    instance_id: str,
    axes: list[dict[str, Any] | PolicyAxis],
    *,
    changed_by: str | None = None,
) -> FunctionInstance | None:
    instance = _require_instance(repo, instance_id, "update_policy_axes")
    if instance is None:
        return None
    if not isinstance(instance.data, PolicyManagementData):
        raise ValidationError(f"Policy axes only apply to {POLICY_MANAGEMENT_FUNCTION_ID}")

    now = repo.clock()
    normalized: list[PolicyAxis] = []
    for axis in axes:
        if isinstance(axis, PolicyAxis):
            normalized.append(axis)
            continue
        name = clean_str(axis.get("name"))
        if not name:
            raise ValidationError("Policy axis name is required.")
        normalized.append(PolicyAxis.from_record({
            **axis,
            "id": axis.get("id") or repo.new_id(),
            "name": name,
            "created_at": axis.get("created_at") or now,
        }))
    data = dataclasses.replace(instance.data, policy_axes=tuple(normalized))
    entry = _history_entry(
        repo, "policy_updated", f"Policy axes updated ({len(normalized)})",
        changed_by=changed_by,
        previous_value=str(len(instance.data.policy_axes)),
        new_value=str(len(normalized)),
    )
    return _commit(repo, instance, entry, data=data)


# ── Reads ────────────────────────────────────────────────────────────────


def get_instance_by_id(repo: "ManagementRepository", instance_id: str) -> FunctionInstance | None:
    return repo.get("function_instances", instance_id)


def get_instances_by_process(repo: "ManagementRepository", process_id: str) -> list[FunctionInstance]:
    return [fi for fi in repo.function_instances if fi.process_id == process_id]


def get_instance_by_function_id(repo: "ManagementRepository", function_id: str, process_id: str | None = None) -> FunctionInstance | None:
    if process_id is None:
        return repo.find_instance_by_function(function_id)
    return repo.find_instance(function_id, process_id)


def has_unique_instance(repo: "ManagementRepository", function_id: str) -> bool:
    function = get_function_by_id(function_id)
    if function is None or function.duplication_rule != "unique":
        return False
    return repo.find_instance_by_function(function_id) is not None


def get_unique_functions_status(repo: "ManagementRepository") -> list[dict[str, Any]]:
    """One row per unique catalog function: whether it is instantiated, and where."""
    rows = []
    for function in get_functions():
        if function.duplication_rule != "unique":
            continue
        instance = repo.find_instance_by_function(function.id)
        rows.append({
            "function": function,
            "instance": instance,
            "process_id": instance.process_id if instance else None,
            "is_instantiated": instance is not None,
        })
    return rows


def get_policy_management_instance(repo: "ManagementRepository") -> FunctionInstance | None:
    return repo.find_instance_by_function(POLICY_MANAGEMENT_FUNCTION_ID)
