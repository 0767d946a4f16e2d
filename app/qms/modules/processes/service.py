"""
Process, activity and document operations.

Creating or updating a process re-runs the mandatory-function sync so the process
always hosts the functions the standard requires of its type.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, Any

from app.qms.errors import ValidationError
from app.qms.modules.catalog.models import PROCESS_TYPES
from app.qms.modules.catalog.service import get_requirement_by_id
from app.qms.modules.functions.service import sync_functions_for_process
from app.qms.modules.processes.models import (
    DOCUMENT_STATUSES,
    DOCUMENT_TYPES,
    GOVERNANCE_ACTIVITY_ID_PREFIX,
    GOVERNANCE_ACTIVITY_NAME,
    PROCESS_STATUSES,
    ClauseReference,
    Document,
    Process,
    ProcessActivity,
)
from app.qms.utils import check_choice, check_str_list, clean_str, next_code

if TYPE_CHECKING:
    from app.qms.repository import ManagementRepository

logger = logging.getLogger(__name__)

_PROCESS_FIELDS = ("name", "type", "status", "purpose", "inputs", "outputs", "activities", "pilot_name")
_DOCUMENT_FIELDS = ("title", "type", "status", "description", "process_ids", "iso_clause_references")


def governance_activity_id(process_id: str) -> str:
    return f"{GOVERNANCE_ACTIVITY_ID_PREFIX}{process_id}"


def is_governance_activity(activity_id: str) -> bool:
    return activity_id.startswith(GOVERNANCE_ACTIVITY_ID_PREFIX)


def _governance_activity(process_id: str) -> ProcessActivity:
    return ProcessActivity(
        id=governance_activity_id(process_id),
        name=GOVERNANCE_ACTIVITY_NAME,
        sequence=0,
        description="System activity hosting the generic requirements of the standard",
        is_system_activity=True,
    )


def _build_activities(repo: "ManagementRepository", process_id: str, raw: Any, existing: tuple[ProcessActivity, ...] = ()) -> tuple[ProcessActivity, ...]:
    """
    Normalize an activity list; the governance activity is always first and never replaced.
    """
    governance = next((a for a in existing if a.is_system_activity), None) or _governance_activity(process_id)
    out: list[ProcessActivity] = [governance]
    for idx, item in enumerate(raw or (), start=1):
        if isinstance(item, ProcessActivity):
            activity = item
        elif not isinstance(item, dict):
            raise ValidationError(f"Invalid activity {item!r}. Must be a mapping with a name.")
        else:
            name = clean_str(item.get("name"))
            if not name:
                raise ValidationError("Activity name is required.")
            activity = ProcessActivity(
                id=item.get("id") or repo.new_id(),
                name=name,
                sequence=int(item.get("sequence") or idx),
                description=clean_str(item.get("description")),
                allocated_requirement_ids=tuple(item.get("allocated_requirement_ids") or ()),
            )
        if activity.is_system_activity or is_governance_activity(activity.id):
            continue
        out.append(dataclasses.replace(activity, is_system_activity=False))
    return tuple(out)


def _check_activities(errors: list[str], raw: Any) -> None:
    if raw is None:
        return
    if not isinstance(raw, (list, tuple)):
        errors.append(f"Invalid activities {raw!r}. Must be a list.")
        return
    for item in raw:
        if isinstance(item, ProcessActivity):
            continue
        if not isinstance(item, dict):
            errors.append(f"Invalid activity {item!r}. Must be a mapping with a name.")
            continue
        if not clean_str(item.get("name")):
            errors.append("Activity name is required.")
        sequence = item.get("sequence")
        if sequence is not None and (isinstance(sequence, bool) or not isinstance(sequence, int)):
            errors.append(f"Invalid activity sequence {sequence!r}. Must be an integer.")
        check_str_list(errors, "allocated requirement ids", item.get("allocated_requirement_ids"))


def validate_process_payload(payload: dict, *, partial: bool = False) -> list[str]:
    errors: list[str] = []
    if not partial or "name" in payload:
        if not clean_str(payload.get("name")):
            errors.append("Process name is required.")
    if not partial or "type" in payload:
        check_choice(errors, "process type", payload.get("type"), PROCESS_TYPES)
    if "status" in payload:
        check_choice(errors, "process status", payload.get("status"), PROCESS_STATUSES)
    check_str_list(errors, "inputs", payload.get("inputs"))
    check_str_list(errors, "outputs", payload.get("outputs"))
    _check_activities(errors, payload.get("activities"))
    return errors


def create_process(repo: "ManagementRepository", payload: dict) -> Process:
    """Create a process with its governance activity, then attach mandatory functions."""
    errors = validate_process_payload(payload)
    if errors:
        raise ValidationError(errors)

    now = repo.clock()
    process_id = repo.new_id()
    process = Process(
        id=process_id,
        code=clean_str(payload.get("code")) or next_code("PRO", (p.code for p in repo.processes)),
        name=clean_str(payload.get("name")) or "",
        type=payload["type"],
        status=payload.get("status") or "draft",
        created_at=now,
        updated_at=now,
        version=1,
        revision_date=now,
        purpose=clean_str(payload.get("purpose")) or "",
        inputs=tuple(payload.get("inputs") or ()),
        outputs=tuple(payload.get("outputs") or ()),
        activities=_build_activities(repo, process_id, payload.get("activities")),
        pilot_name=clean_str(payload.get("pilot_name")),
    )
    repo.add("processes", process)
    sync_functions_for_process(repo, process)
    return process


def update_process(repo: "ManagementRepository", process_id: str, partial: dict, revision_note: str | None = None) -> Process | None:
    process = repo.get("processes", process_id)
    if process is None:
        logger.warning("update_process: unknown process %s", process_id)
        return None
    errors = validate_process_payload(partial, partial=True)
    if errors:
        raise ValidationError(errors)

    changes: dict[str, Any] = {}
    for key in _PROCESS_FIELDS:
        if key not in partial:
            continue
        value = partial[key]
        if key == "activities":
            value = _build_activities(repo, process.id, value, process.activities)
        elif key in ("inputs", "outputs"):
            value = tuple(value or ())
        elif key in ("name", "purpose"):
            value = clean_str(value) or ""
        changes[key] = value

    now = repo.clock()
    updated = dataclasses.replace(
        process,
        **changes,
        updated_at=now,
        version=process.version + 1,
        revision_date=now,
        revision_note=revision_note or partial.get("revision_note"),
    )
    repo.replace("processes", updated)
    sync_functions_for_process(repo, updated)
    return updated


def archive_process(repo: "ManagementRepository", process_id: str) -> Process | None:
    return update_process(repo, process_id, {"status": "archived"}, "Process archived")


def get_process_by_id(repo: "ManagementRepository", process_id: str) -> Process | None:
    return repo.get("processes", process_id)


def get_active_processes(repo: "ManagementRepository") -> list[Process]:
    return [p for p in repo.processes if p.status == "active"]


# ── Requirement allocation ───────────────────────────────────────────────


def _replace_activity(repo: "ManagementRepository", process: Process, activity: ProcessActivity, note: str) -> Process:
    now = repo.clock()
    updated = dataclasses.replace(
        process,
        activities=tuple(activity if a.id == activity.id else a for a in process.activities),
        updated_at=now,
        version=process.version + 1,
        revision_date=now,
        revision_note=note,
    )
    repo.replace("processes", updated)
    return updated


def _allocation_target(repo: "ManagementRepository", process_id: str, activity_id: str, requirement_id: str):
    process = repo.get("processes", process_id)
    if process is None:
        return None, None, None
    activity = process.activity(activity_id)
    if activity is None:
        return process, None, None
    requirement = get_requirement_by_id(requirement_id)
    if requirement is None:
        raise ValidationError(f"Unknown requirement: {requirement_id}")
    if activity.is_system_activity or is_governance_activity(activity.id):
        raise ValidationError("The governance activity is system-managed; its requirements cannot be changed.")
    if requirement.type == "generic":
        raise ValidationError(f"Generic requirement {requirement.clause_number} is allocated automatically.")
    return process, activity, requirement


def allocate_requirement(repo: "ManagementRepository", process_id: str, activity_id: str, requirement_id: str) -> Process | None:
    """
    Append a unique/duplicable requirement to an ordinary activity.

    Unique requirements already allocated elsewhere are not rejected here; callers
    offer only get_available_for_allocation() results.
    """
    process, activity, requirement = _allocation_target(repo, process_id, activity_id, requirement_id)
    if activity is None:
        return None
    if requirement.id in activity.allocated_requirement_ids:
        return process
    activity = dataclasses.replace(
        activity,
        allocated_requirement_ids=activity.allocated_requirement_ids + (requirement.id,),
    )
    return _replace_activity(repo, process, activity, f"Requirement {requirement.clause_number} allocated")


def deallocate_requirement(repo: "ManagementRepository", process_id: str, activity_id: str, requirement_id: str) -> Process | None:
    process, activity, requirement = _allocation_target(repo, process_id, activity_id, requirement_id)
    if activity is None:
        return None
    if requirement.id not in activity.allocated_requirement_ids:
        return process
    activity = dataclasses.replace(
        activity,
        allocated_requirement_ids=tuple(r for r in activity.allocated_requirement_ids if r != requirement.id),
    )
    return _replace_activity(repo, process, activity, f"Requirement {requirement.clause_number} removed")


# ── Documents ────────────────────────────────────────────────────────────


def _clause_refs(raw: Any) -> tuple[ClauseReference, ...]:
    refs: list[ClauseReference] = []
    for item in raw or ():
        if isinstance(item, ClauseReference):
            refs.append(item)
        elif isinstance(item, str):
            refs.append(ClauseReference(item.strip()))
        elif isinstance(item, dict) and clean_str(item.get("clause_number")):
            refs.append(ClauseReference(str(item["clause_number"]).strip(), item.get("clause_title") or ""))
        else:
            raise ValidationError(f"Invalid clause reference {item!r}. A clause_number is required.")
    return tuple(r for r in refs if r.clause_number)


def _check_clause_refs(errors: list[str], raw: Any) -> None:
    if raw is None:
        return
    if not isinstance(raw, (list, tuple)):
        errors.append(f"Invalid iso_clause_references {raw!r}. Must be a list.")
        return
    for item in raw:
        if isinstance(item, (ClauseReference, str)):
            continue
        if not isinstance(item, dict) or not clean_str(item.get("clause_number")):
            errors.append(f"Invalid clause reference {item!r}. A clause_number is required.")


def validate_document_payload(payload: dict, *, partial: bool = False) -> list[str]:
    errors: list[str] = []
    if not partial or "title" in payload:
        if not clean_str(payload.get("title")):
            errors.append("Document title is required.")
    if not partial or "type" in payload:
        check_choice(errors, "document type", payload.get("type"), DOCUMENT_TYPES)
    if "status" in payload:
        check_choice(errors, "document status", payload.get("status"), DOCUMENT_STATUSES)
    check_str_list(errors, "process_ids", payload.get("process_ids"))
    _check_clause_refs(errors, payload.get("iso_clause_references"))
    return errors


def create_document(repo: "ManagementRepository", payload: dict) -> Document:
    errors = validate_document_payload(payload)
    if errors:
        raise ValidationError(errors)
    now = repo.clock()
    document = Document(
        id=repo.new_id(),
        code=clean_str(payload.get("code")) or next_code("DOC", (d.code for d in repo.documents)),
        title=clean_str(payload.get("title")) or "",
        type=payload["type"],
        status=payload.get("status") or "draft",
        created_at=now,
        updated_at=now,
        version=1,
        revision_date=now,
        process_ids=tuple(payload.get("process_ids") or ()),
        iso_clause_references=_clause_refs(payload.get("iso_clause_references")),
        description=clean_str(payload.get("description")),
    )
    repo.add("documents", document)
    return document


def update_document(repo: "ManagementRepository", document_id: str, partial: dict, revision_note: str | None = None) -> Document | None:
    document = repo.get("documents", document_id)
    if document is None:
        logger.warning("update_document: unknown document %s", document_id)
        return None
    errors = validate_document_payload(partial, partial=True)
    if errors:
        raise ValidationError(errors)
    changes: dict[str, Any] = {}
    for key in _DOCUMENT_FIELDS:
        if key not in partial:
            continue
        value = partial[key]
        if key == "process_ids":
            value = tuple(value or ())
        elif key == "iso_clause_references":
            value = _clause_refs(value)
        changes[key] = value
    now = repo.clock()
    updated = dataclasses.replace(
        document,
        **changes,
        updated_at=now,
        version=document.version + 1,
        revision_date=now,
        revision_note=revision_note or partial.get("revision_note"),
    )
    repo.replace("documents", updated)
    return updated


def archive_document(repo: "ManagementRepository", document_id: str) -> Document | None:
    return update_document(repo, document_id, {"status": "archived"}, "Document archived")


def get_document_by_id(repo: "ManagementRepository", document_id: str) -> Document | None:
    return repo.get("documents", document_id)


def get_documents_by_process(repo: "ManagementRepository", process_id: str) -> list[Document]:
    return [d for d in repo.documents if process_id in d.process_ids and d.status != "archived"]


def get_active_documents(repo: "ManagementRepository") -> list[Document]:
    return [d for d in repo.documents if d.status == "active"]
