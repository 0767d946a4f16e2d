from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.qms.utils import to_plain

PROCESS_STATUSES = ("draft", "active", "archived")
DOCUMENT_TYPES = ("procedure", "form", "instruction", "record", "policy")
DOCUMENT_STATUSES = ("draft", "active", "archived")

GOVERNANCE_ACTIVITY_NAME = "Management System Governance"
GOVERNANCE_ACTIVITY_ID_PREFIX = "gov-"


@dataclass(frozen=True)
class ProcessActivity:
    id: str
    name: str
    sequence: int
    description: str | None = None
    is_system_activity: bool = False  # governance activity: never deleted
    allocated_requirement_ids: tuple[str, ...] = ()  # allocation order

    @classmethod
    def from_record(cls, r: dict[str, Any]) -> "ProcessActivity":
        return cls(
            id=r["id"],
            name=r.get("name") or "",
            sequence=int(r.get("sequence") or 0),
            description=r.get("description"),
            is_system_activity=bool(r.get("is_system_activity")),
            allocated_requirement_ids=tuple(r.get("allocated_requirement_ids") or ()),
        )


@dataclass(frozen=True)
class Process:
    id: str
    code: str  # e.g. "PRO-001"
    name: str
    type: str  # management | operational | support
    status: str
    created_at: str
    updated_at: str
    version: int
    revision_date: str
    purpose: str = ""
    inputs: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()
    activities: tuple[ProcessActivity, ...] = ()
    pilot_name: str | None = None
    standard: str = "ISO_9001"
    revision_note: str | None = None

    def activity(self, activity_id: str) -> ProcessActivity | None:
        for a in self.activities:
            if a.id == activity_id:
                return a
        return None

    def to_record(self) -> dict[str, Any]:
        return to_plain(self)

    @classmethod
    def from_record(cls, r: dict[str, Any]) -> "Process":
        return cls(
            id=r["id"],
            code=r.get("code") or "",
            name=r.get("name") or "",
            type=r.get("type") or "operational",
            status=r.get("status") or "draft",
            created_at=r["created_at"],
            updated_at=r["updated_at"],
            version=int(r.get("version") or 1),
            revision_date=r.get("revision_date") or r["updated_at"],
            purpose=r.get("purpose") or "",
            inputs=tuple(r.get("inputs") or ()),
            outputs=tuple(r.get("outputs") or ()),
            activities=tuple(ProcessActivity.from_record(a) for a in r.get("activities") or ()),
            pilot_name=r.get("pilot_name"),
            standard=r.get("standard") or "ISO_9001",
            revision_note=r.get("revision_note"),
        )


@dataclass(frozen=True)
class ClauseReference:
    clause_number: str  # e.g. "7.5.1"
    clause_title: str = ""


@dataclass(frozen=True)
class Document:
    """Controlled document. Read by fulfillment inference as evidence."""

    id: str
    code: str  # e.g. "DOC-001"
    title: str
    type: str
    status: str
    created_at: str
    updated_at: str
    version: int
    revision_date: str
    process_ids: tuple[str, ...] = ()
    iso_clause_references: tuple[ClauseReference, ...] = ()
    description: str | None = None
    standard: str = "ISO_9001"
    revision_note: str | None = None

    def to_record(self) -> dict[str, Any]:
        return to_plain(self)

    @classmethod
    def from_record(cls, r: dict[str, Any]) -> "Document":
        return cls(
            id=r["id"],
            code=r.get("code") or "",
            title=r.get("title") or "",
            type=r.get("type") or "procedure",
            status=r.get("status") or "draft",
            created_at=r["created_at"],
            updated_at=r["updated_at"],
            version=int(r.get("version") or 1),
            revision_date=r.get("revision_date") or r["updated_at"],
            process_ids=tuple(r.get("process_ids") or ()),
            iso_clause_references=tuple(
                ClauseReference(c["clause_number"], c.get("clause_title") or "")
                for c in r.get("iso_clause_references") or ()
            ),
            description=r.get("description"),
            standard=r.get("standard") or "ISO_9001",
            revision_note=r.get("revision_note"),
        )
