from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.qms.append_log import AppendOnlyLog
from app.qms.utils import to_plain

ISSUE_TYPES = ("risk", "opportunity")
SWOT_QUADRANTS = ("strength", "weakness", "opportunity", "threat")
CONTEXT_NATURES = ("internal", "external")
RISK_TRIGGERS = ("initial", "post_action_review")
RISK_SCALE = (1, 2, 3)
RISK_PRIORITIES = ("01", "02", "03")  # 01 = mandatory/urgent, 02 = action required, 03 = optional


@dataclass(frozen=True)
class RiskVersion:
    id: str
    version_number: int  # 1-based, monotonic per issue
    date: str
    trigger: str
    description: str
    severity: int
    probability: int
    criticity: int  # severity x probability
    priority: str
    evaluator_name: str | None = None
    notes: str | None = None

    @classmethod
    def from_record(cls, r: dict[str, Any]) -> "RiskVersion":
        return cls(
            id=r["id"],
            version_number=int(r["version_number"]),
            date=r["date"],
            trigger=r.get("trigger") or "initial",
            description=r.get("description") or "",
            severity=int(r["severity"]),
            probability=int(r["probability"]),
            criticity=int(r["criticity"]),
            priority=r["priority"],
            evaluator_name=r.get("evaluator_name"),
            notes=r.get("notes"),
        )


@dataclass(frozen=True)
class ContextIssue:
    id: str
    code: str  # RISK/YY/NNN or OPP/YY/NNN
    type: str
    quadrant: str
    description: str
    context_nature: str
    process_id: str
    created_at: str
    updated_at: str
    version: int
    revision_date: str
    risk_versions: AppendOnlyLog[RiskVersion] = AppendOnlyLog()
    # Mirror of the latest RiskVersion
    severity: int | None = None
    probability: int | None = None
    criticity: int | None = None
    priority: str | None = None
    revision_note: str | None = None

    def to_record(self) -> dict[str, Any]:
        return to_plain(self)

    @classmethod
    def from_record(cls, r: dict[str, Any]) -> "ContextIssue":
        return cls(
            id=r["id"],
            code=r.get("code") or "",
            type=r.get("type") or "risk",
            quadrant=r.get("quadrant") or "threat",
            description=r.get("description") or "",
            context_nature=r.get("context_nature") or "internal",
            process_id=r.get("process_id") or "",
            created_at=r["created_at"],
            updated_at=r["updated_at"],
            version=int(r.get("version") or 1),
            revision_date=r.get("revision_date") or r["updated_at"],
            risk_versions=AppendOnlyLog([RiskVersion.from_record(v) for v in r.get("risk_versions") or ()]),
            severity=r.get("severity"),
            probability=r.get("probability"),
            criticity=r.get("criticity"),
            priority=r.get("priority"),
            revision_note=r.get("revision_note"),
        )
