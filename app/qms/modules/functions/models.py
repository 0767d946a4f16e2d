from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, ClassVar, Union

from app.qms.append_log import AppendOnlyLog
from app.qms.modules.catalog.service import is_policy_management
from app.qms.utils import to_plain

INSTANCE_STATUSES = (
    "not_implemented",
    "partially_implemented",
    "implemented",
    "nonconformity",
    "improvement_opportunity",
)

STATUS_LABELS = {
    "not_implemented": "Not Implemented",
    "implemented": "Implemented",
    "partially_implemented": "Partially Implemented",
    "nonconformity": "Nonconformity",
    "improvement_opportunity": "Improvement Opportunity",
}

EVIDENCE_TYPES = ("file", "link", "note")

HISTORY_ACTIONS = (
    "created",
    "updated",
    "status_changed",
    "evidence_added",
    "action_linked",
    "action_unlinked",
    "objective_linked",
    "objective_unlinked",
    "kpi_linked",
    "kpi_unlinked",
    "policy_updated",
)


@dataclass(frozen=True)
class FunctionEvidence:
    id: str
    type: str  # file | link | note
    title: str
    added_at: str
    description: str | None = None
    reference: str | None = None  # URL or storage key
    file_name: str | None = None
    file_size: int | None = None
    mime_type: str | None = None
    added_by: str | None = None

    @classmethod
    def from_record(cls, r: dict[str, Any]) -> "FunctionEvidence":
        return cls(**{f.name: r.get(f.name) for f in dataclasses.fields(cls)})


@dataclass(frozen=True)
class FunctionHistoryEntry:
    id: str
    date: str
    action: str
    description: str
    changed_by: str | None = None
    previous_value: str | None = None
    new_value: str | None = None

    @classmethod
    def from_record(cls, r: dict[str, Any]) -> "FunctionHistoryEntry":
        return cls(**{f.name: r.get(f.name) for f in dataclasses.fields(cls)})


@dataclass(frozen=True)
class PolicyAxis:
    id: str
    name: str
    description: str
    created_at: str
    linked_objective_ids: tuple[str, ...] = ()
    linked_process_ids: tuple[str, ...] = ()

    @classmethod
    def from_record(cls, r: dict[str, Any]) -> "PolicyAxis":
        return cls(
            id=r["id"],
            name=r.get("name") or "",
            description=r.get("description") or "",
            created_at=r["created_at"],
            linked_objective_ids=tuple(r.get("linked_objective_ids") or ()),
            linked_process_ids=tuple(r.get("linked_process_ids") or ()),
        )


@dataclass(frozen=True)
class GenericFunctionData:
    kind: ClassVar[str] = "generic"

    notes: str | None = None
    last_review_date: str | None = None
    next_review_date: str | None = None
    responsible_name: str | None = None
    # Function-specific free fields (e.g. audit programme reference); left out of the hash
    extra: dict[str, Any] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class PolicyManagementData(GenericFunctionData):
    kind: ClassVar[str] = "policy_management"

    policy_content: str | None = None
    policy_axes: tuple[PolicyAxis, ...] = ()
    policy_approved_by: str | None = None
    policy_approval_date: str | None = None
    policy_effective_date: str | None = None


FunctionData = Union[GenericFunctionData, PolicyManagementData]

_POLICY_FIELDS = frozenset(
    f.name for f in dataclasses.fields(PolicyManagementData)
) - frozenset(f.name for f in dataclasses.fields(GenericFunctionData))


def data_class_for(function_id: str) -> type[GenericFunctionData]:
    return PolicyManagementData if is_policy_management(function_id) else GenericFunctionData


def build_function_data(function_id: str, values: dict[str, Any] | None = None) -> FunctionData:
    """
    Build the data variant for `function_id`.

    Known fields map onto the variant; anything else lands in `extra`.
    Raises ValueError when policy fields are given for a non-policy function.
    """
    return merge_function_data(data_class_for(function_id)(), values or {})


def merge_function_data(data: FunctionData, updates: dict[str, Any]) -> FunctionData:
    cls = type(data)
    known = {f.name for f in dataclasses.fields(cls)} - {"extra"}
    if cls is GenericFunctionData:
        misplaced = sorted(k for k in updates if k in _POLICY_FIELDS)
        if misplaced:
            raise ValueError(f"Fields only valid for policy management: {', '.join(misplaced)}")

    changes: dict[str, Any] = {}
    extra = dict(data.extra)
    for key, value in updates.items():
        if key == "extra" and isinstance(value, dict):
            extra.update(value)
        elif key == "policy_axes":
            changes[key] = tuple(a if isinstance(a, PolicyAxis) else PolicyAxis.from_record(a) for a in value or ())
        elif key in known:
            changes[key] = value
        else:
            extra[key] = value
    return dataclasses.replace(data, extra=extra, **changes)


def function_data_from_record(function_id: str, r: dict[str, Any] | None) -> FunctionData:
    values = dict(r or {})
    values.pop("kind", None)
    return build_function_data(function_id, values)


@dataclass(frozen=True)
class FunctionInstance:
    id: str
    function_id: str
    process_id: str
    status: str
    data: FunctionData
    created_at: str
    updated_at: str
    linked_action_ids: tuple[str, ...] = ()
    linked_objective_ids: tuple[str, ...] = ()
    linked_kpi_ids: tuple[str, ...] = ()
    evidence: AppendOnlyLog[FunctionEvidence] = AppendOnlyLog()
    history: AppendOnlyLog[FunctionHistoryEntry] = AppendOnlyLog()

    def to_record(self) -> dict[str, Any]:
        return to_plain(self)

    @classmethod
    def from_record(cls, r: dict[str, Any]) -> "FunctionInstance":
        function_id = r["function_id"]
        return cls(
            id=r["id"],
            function_id=function_id,
            process_id=r["process_id"],
            status=r.get("status") or "not_implemented",
            data=function_data_from_record(function_id, r.get("data")),
            created_at=r["created_at"],
            updated_at=r["updated_at"],
            linked_action_ids=tuple(r.get("linked_action_ids") or ()),
            linked_objective_ids=tuple(r.get("linked_objective_ids") or ()),
            linked_kpi_ids=tuple(r.get("linked_kpi_ids") or ()),
            evidence=AppendOnlyLog([FunctionEvidence.from_record(e) for e in r.get("evidence") or ()]),
            history=AppendOnlyLog([FunctionHistoryEntry.from_record(h) for h in r.get("history") or ()]),
        )
