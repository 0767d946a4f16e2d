from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.qms.append_log import AppendOnlyLog
from app.qms.utils import to_plain

ACTION_STATUSES = ("planned", "in_progress", "completed_pending_evaluation", "evaluated", "cancelled")
ACTION_ORIGINS = ("issue", "internal_audit", "external_audit", "management_review", "objective_not_met", "other")
EFFICIENCY_RESULTS = ("effective", "ineffective")
EVIDENCE_TYPES = ("file", "link", "note")


@dataclass(frozen=True)
class StatusChange:
    id: str
    date: str
    from_status: str | None  # None for the initial entry
    to_status: str
    changed_by: str | None = None
    notes: str | None = None

    @classmethod
    def from_record(cls, r: dict[str, Any]) -> "StatusChange":
        return cls(
            id=r["id"],
            date=r["date"],
            from_status=r.get("from_status"),
            to_status=r["to_status"],
            changed_by=r.get("changed_by"),
            notes=r.get("notes"),
        )


@dataclass(frozen=True)
class EfficiencyEvaluation:
    id: str
    date: str
    result: str  # effective | ineffective
    evidence: str | None = None
    evidence_type: str | None = None
    evaluator_name: str | None = None
    notes: str | None = None

    @classmethod
    def from_record(cls, r: dict[str, Any]) -> "EfficiencyEvaluation":
        return cls(
            id=r["id"],
            date=r["date"],
            result=r["result"],
            evidence=r.get("evidence"),
            evidence_type=r.get("evidence_type"),
            evaluator_name=r.get("evaluator_name"),
            notes=r.get("notes"),
        )


@dataclass(frozen=True)
class Action:
    id: str
    code: str  # e.g. "ACT-001"
    title: str
    description: str
    origin: str
    process_id: str
    deadline: str  # YYYY-MM-DD
    status: str
    created_at: str
    updated_at: str
    version: int
    revision_date: str
    linked_issue_ids: tuple[str, ...] = ()
    status_history: AppendOnlyLog[StatusChange] = AppendOnlyLog()
    completed_date: str | None = None
    efficiency_evaluation: EfficiencyEvaluation | None = None
    responsible_name: str | None = None
    revision_note: str | None = None

    def to_record(self) -> dict[str, Any]:
        return to_plain(self)

    @classmethod
    def from_record(cls, r: dict[str, Any]) -> "Action":
        evaluation = r.get("efficiency_evaluation")
        return cls(
            id=r["id"],
            code=r.get("code") or "",
            title=r.get("title") or "",
            description=r.get("description") or "",
            origin=r.get("origin") or "other",
            process_id=r.get("process_id") or "",
            deadline=r["deadline"],
            status=r.get("status") or "planned",
            created_at=r["created_at"],
            updated_at=r["updated_at"],
            version=int(r.get("version") or 1),
            revision_date=r.get("revision_date") or r["updated_at"],
            linked_issue_ids=tuple(r.get("linked_issue_ids") or ()),
            status_history=AppendOnlyLog([StatusChange.from_record(c) for c in r.get("status_history") or ()]),
            completed_date=r.get("completed_date"),
            efficiency_evaluation=EfficiencyEvaluation.from_record(evaluation) if evaluation else None,
            responsible_name=r.get("responsible_name"),
            revision_note=r.get("revision_note"),
        )
