"""
Context issues (risks and opportunities) and risk versioning.

Risk scoring:
- criticity = severity x probability, both on a 1..3 scale
- priority "03" for criticity <= 3, "02" for 4..6, "01" for 7..9

A risk issue's history is an append-only log of RiskVersions. The issue's
severity/probability/criticity/priority/version/revision_date always mirror the
version with the highest version_number.

A post_action_review version is expected only once an action linked to the issue
has been evaluated (see actions.service.can_evaluate_residual_risk); that check is
the caller's responsibility and is not repeated here.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, Any

from app.qms.errors import ValidationError
from app.qms.modules.risk.models import (
    CONTEXT_NATURES,
    ISSUE_TYPES,
    RISK_SCALE,
    RISK_TRIGGERS,
    SWOT_QUADRANTS,
    ContextIssue,
    RiskVersion,
)
from app.qms.utils import check_choice, clean_str, next_code

if TYPE_CHECKING:
    from app.qms.repository import ManagementRepository

logger = logging.getLogger(__name__)

CODE_PREFIXES = {"risk": "RISK", "opportunity": "OPP"}
_ISSUE_FIELDS = ("quadrant", "description", "context_nature", "process_id")


def calculate_criticity(severity: int, probability: int) -> int:
    return severity * probability


def priority_from_criticity(criticity: int) -> str:
    if criticity <= 3:
        return "03"
    if criticity <= 6:
        return "02"
    return "01"


def _check_scale(errors: list[str], field: str, value: Any) -> None:
    if isinstance(value, bool) or value not in RISK_SCALE:
        errors.append(f"Invalid {field} {value!r}. Must be one of: 1, 2, 3")


def _mirror(issue: ContextIssue, version: RiskVersion, updated_at: str) -> ContextIssue:
    return dataclasses.replace(
        issue,
        risk_versions=issue.risk_versions.append(version),
        severity=version.severity,
        probability=version.probability,
        criticity=version.criticity,
        priority=version.priority,
        version=version.version_number,
        revision_date=version.date,
        revision_note=issue.revision_note if version.version_number == 1 else f"Residual risk evaluation v{version.version_number}",
        updated_at=updated_at,
    )


def _new_version(repo: "ManagementRepository", number: int, payload: dict) -> RiskVersion:
    severity = int(payload["severity"])
    probability = int(payload["probability"])
    criticity = calculate_criticity(severity, probability)
    return RiskVersion(
        id=repo.new_id(),
        version_number=number,
        date=payload.get("date") or repo.clock(),
        trigger=payload.get("trigger") or "initial",
        description=clean_str(payload.get("description")) or "",
        severity=severity,
        probability=probability,
        criticity=criticity,
        priority=priority_from_criticity(criticity),
        evaluator_name=clean_str(payload.get("evaluator_name")),
        notes=clean_str(payload.get("notes")),
    )


def validate_issue_payload(payload: dict, *, partial: bool = False) -> list[str]:
    errors: list[str] = []
    if not partial:
        check_choice(errors, "issue type", payload.get("type"), ISSUE_TYPES)
        if not clean_str(payload.get("process_id")):
            errors.append("process_id is required.")
    if not partial or "description" in payload:
        if not clean_str(payload.get("description")):
            errors.append("Issue description is required.")
    if not partial or "quadrant" in payload:
        check_choice(errors, "quadrant", payload.get("quadrant"), SWOT_QUADRANTS)
    if not partial or "context_nature" in payload:
        check_choice(errors, "context nature", payload.get("context_nature"), CONTEXT_NATURES)
    if not partial and payload.get("type") == "risk":
        _check_scale(errors, "severity", payload.get("severity"))
        _check_scale(errors, "probability", payload.get("probability"))
    return errors


def create_issue(repo: "ManagementRepository", payload: dict) -> ContextIssue:
    """Create a risk or opportunity; risks get their initial RiskVersion here."""
    errors = validate_issue_payload(payload)
    if errors:
        raise ValidationError(errors)

    now = repo.clock()
    issue_type = payload["type"]
    year_prefix = f"{CODE_PREFIXES[issue_type]}/{repo.today().year % 100:02d}"
    issue = ContextIssue(
        id=repo.new_id(),
        code=next_code(year_prefix, (i.code for i in repo.issues), sep="/"),
        type=issue_type,
        quadrant=payload["quadrant"],
        description=clean_str(payload["description"]) or "",
        context_nature=payload["context_nature"],
        process_id=payload["process_id"],
        created_at=now,
        updated_at=now,
        version=1,
        revision_date=now,
    )
    if issue_type == "risk":
        initial = _new_version(repo, 1, {
            "severity": payload["severity"],
            "probability": payload["probability"],
            "trigger": "initial",
            "date": now,
            "description": payload.get("evaluation_description") or "Initial evaluation",
            "evaluator_name": payload.get("evaluator_name"),
            "notes": payload.get("notes"),
        })
        issue = _mirror(issue, initial, now)
    repo.add("issues", issue)
    return issue


def update_issue(repo: "ManagementRepository", issue_id: str, partial: dict, revision_note: str | None = None) -> ContextIssue | None:
    """
    Update descriptive fields. Scoring fields only change through add_risk_version.
    """
    issue = repo.get("issues", issue_id)
    if issue is None:
        logger.warning("update_issue: unknown issue %s", issue_id)
        return None
    scoring = sorted(k for k in ("severity", "probability", "criticity", "priority", "version") if k in partial)
    if scoring:
        raise ValidationError(f"Use add_risk_version to change: {', '.join(scoring)}")
    errors = validate_issue_payload(partial, partial=True)
    if errors:
        raise ValidationError(errors)

    now = repo.clock()
    changes: dict[str, Any] = {k: partial[k] for k in _ISSUE_FIELDS if k in partial}
    if issue.type == "opportunity":
        changes.update(version=issue.version + 1, revision_date=now)
    updated = dataclasses.replace(
        issue,
        **changes,
        updated_at=now,
        revision_note=revision_note or partial.get("revision_note") or issue.revision_note,
    )
    repo.replace("issues", updated)
    return updated


def delete_issue(repo: "ManagementRepository", issue_id: str) -> bool:
    if repo.get("issues", issue_id) is None:
        logger.warning("delete_issue: unknown issue %s", issue_id)
        return False
    repo.remove("issues", issue_id)
    return True


def add_risk_version(repo: "ManagementRepository", issue_id: str, payload: dict) -> ContextIssue | None:
    """
    Append a RiskVersion (version_number = max + 1) and mirror it onto the issue.
    """
    issue = repo.get("issues", issue_id)
    if issue is None:
        logger.warning("RISK: add_risk_version on unknown issue %s", issue_id)
        return None

    errors: list[str] = []
    if issue.type != "risk":
        errors.append(f"Issue {issue.code} is an opportunity; only risks carry risk versions.")
    _check_scale(errors, "severity", payload.get("severity"))
    _check_scale(errors, "probability", payload.get("probability"))
    check_choice(errors, "trigger", payload.get("trigger") or "post_action_review", RISK_TRIGGERS)
    if errors:
        raise ValidationError(errors)

    number = max((v.version_number for v in issue.risk_versions), default=0) + 1
    trigger = payload.get("trigger") or "post_action_review"
    version = _new_version(repo, number, {**payload, "trigger": trigger, "date": None})
    updated = _mirror(issue, version, version.date)
    repo.replace("issues", updated)
    logger.info(
        "RISK: %s v%s criticity=%s priority=%s (%s)",
        issue.code, number, version.criticity, version.priority, version.trigger,
    )
    return updated


def get_latest_risk_version(repo: "ManagementRepository", issue_id: str) -> RiskVersion | None:
    issue = repo.get("issues", issue_id)
    if issue is None or not issue.risk_versions:
        return None
    return max(issue.risk_versions, key=lambda v: v.version_number)


def get_risk_history(repo: "ManagementRepository", issue_id: str) -> list[RiskVersion]:
    issue = repo.get("issues", issue_id)
    if issue is None:
        return []
    return sorted(issue.risk_versions, key=lambda v: v.version_number)


def get_issue_by_id(repo: "ManagementRepository", issue_id: str) -> ContextIssue | None:
    return repo.get("issues", issue_id)


def get_issues_by_process(repo: "ManagementRepository", process_id: str) -> list[ContextIssue]:
    return [i for i in repo.issues if i.process_id == process_id]


def get_issues_by_quadrant(repo: "ManagementRepository", quadrant: str, process_id: str | None = None) -> list[ContextIssue]:
    return [
        i for i in repo.issues
        if i.quadrant == quadrant and (process_id is None or i.process_id == process_id)
    ]


def get_risks_by_priority(repo: "ManagementRepository", process_id: str | None = None) -> list[ContextIssue]:
    """Risk issues, highest criticity first."""
    risks = [
        i for i in repo.issues
        if i.type == "risk" and (process_id is None or i.process_id == process_id)
    ]
    return sorted(risks, key=lambda i: i.criticity or 0, reverse=True)
