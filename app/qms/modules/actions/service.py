"""
Action lifecycle.

planned -> in_progress | cancelled
in_progress -> completed_pending_evaluation | cancelled
completed_pending_evaluation -> evaluated (only through evaluate_action_efficiency)

evaluated and cancelled are terminal. Every status change appends a StatusChange;
version/revision_date bump on every mutation.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, Any

from app.qms.errors import TransitionError, ValidationError
from app.qms.modules.actions.models import (
    ACTION_ORIGINS,
    ACTION_STATUSES,
    EFFICIENCY_RESULTS,
    EVIDENCE_TYPES,
    Action,
    EfficiencyEvaluation,
    StatusChange,
)
from app.qms.utils import check_choice, check_str_list, clean_str, next_code, parse_date

if TYPE_CHECKING:
    from app.qms.repository import ManagementRepository

logger = logging.getLogger(__name__)

STATUS_TRANSITIONS: dict[str, set[str]] = {
    "planned": {"in_progress", "cancelled"},
    "in_progress": {"completed_pending_evaluation", "cancelled"},
    "completed_pending_evaluation": set(),  # evaluated only via evaluate_action_efficiency
    "evaluated": set(),
    "cancelled": set(),
}

TERMINAL_STATUSES = frozenset({"evaluated", "cancelled"})
INITIAL_STATUSES = ("planned", "in_progress")
NOT_OVERDUE_STATUSES = frozenset({"evaluated", "completed_pending_evaluation", "cancelled"})
IMPLEMENTED_STATUSES = frozenset({"completed_pending_evaluation", "evaluated"})

_ACTION_FIELDS = ("title", "description", "origin", "process_id", "deadline", "linked_issue_ids", "responsible_name")


def can_transition(from_status: str, to_status: str) -> bool:
    return to_status in STATUS_TRANSITIONS.get(from_status, set())


def _status_change(repo: "ManagementRepository", from_status: str | None, to_status: str, notes: str | None = None, changed_by: str | None = None) -> StatusChange:
    return StatusChange(
        id=repo.new_id(),
        date=repo.clock(),
        from_status=from_status,
        to_status=to_status,
        changed_by=changed_by,
        notes=notes,
    )


def _bump(action: Action, now: str, note: str | None, **changes: Any) -> Action:
    return dataclasses.replace(
        action,
        **changes,
        updated_at=now,
        version=action.version + 1,
        revision_date=now,
        revision_note=note or action.revision_note,
    )


def validate_action_payload(payload: dict, *, partial: bool = False) -> list[str]:
    errors: list[str] = []
    if not partial or "title" in payload:
        if not clean_str(payload.get("title")):
            errors.append("Action title is required.")
    if not partial or "origin" in payload:
        check_choice(errors, "origin", payload.get("origin"), ACTION_ORIGINS)
    if not partial:
        if not clean_str(payload.get("process_id")):
            errors.append("process_id is required.")
    if not partial or "deadline" in payload:
        try:
            if parse_date(payload.get("deadline")) is None:
                errors.append("Deadline is required.")
        except ValueError:
            errors.append(f"Invalid deadline {payload.get('deadline')!r}. Expected YYYY-MM-DD.")
    if "status" in payload:
        check_choice(errors, "status", payload.get("status"), ACTION_STATUSES)
    check_str_list(errors, "linked_issue_ids", payload.get("linked_issue_ids"))
    return errors


def create_action(repo: "ManagementRepository", payload: dict, *, created_by: str | None = None) -> Action:
    errors = validate_action_payload(payload)
    status = payload.get("status") or "planned"
    if status not in INITIAL_STATUSES:
        errors.append(f"New actions start as one of: {', '.join(INITIAL_STATUSES)}")
    if errors:
        raise ValidationError(errors)

    now = repo.clock()
    action = Action(
        id=repo.new_id(),
        code=clean_str(payload.get("code")) or next_code("ACT", (a.code for a in repo.actions)),
        title=clean_str(payload["title"]) or "",
        description=clean_str(payload.get("description")) or "",
        origin=payload["origin"],
        process_id=payload["process_id"],
        deadline=parse_date(payload["deadline"]).isoformat(),
        status=status,
        created_at=now,
        updated_at=now,
        version=1,
        revision_date=now,
        linked_issue_ids=tuple(payload.get("linked_issue_ids") or ()),
        responsible_name=clean_str(payload.get("responsible_name")),
    )
    initial = _status_change(repo, None, status, "Action created", created_by)
    action = dataclasses.replace(action, status_history=action.status_history.append(initial))
    repo.add("actions", action)
    return action


def update_action(repo: "ManagementRepository", action_id: str, partial: dict, note: str | None = None) -> Action | None:
    """
    Generic mutation. A status change must follow STATUS_TRANSITIONS and is logged
    before the other fields apply; version bumps on every call.
    """
    action = repo.get("actions", action_id)
    if action is None:
        logger.warning("ACTION: update on unknown action %s", action_id)
        return None
    errors = validate_action_payload(partial, partial=True)
    if errors:
        raise ValidationError(errors)

    new_status = partial.get("status")
    history = action.status_history
    changes: dict[str, Any] = {}
    if new_status is not None and new_status != action.status:
        if new_status == "evaluated":
            raise TransitionError(action.status, new_status, "use evaluate_action_efficiency")
        if not can_transition(action.status, new_status):
            raise TransitionError(action.status, new_status)
        history = history.append(_status_change(repo, action.status, new_status, note))
        changes["status"] = new_status
        if new_status == "completed_pending_evaluation" and not action.completed_date:
            changes["completed_date"] = repo.today().isoformat()

    for key in _ACTION_FIELDS:
        if key not in partial:
            continue
        value = partial[key]
        if key == "linked_issue_ids":
            value = tuple(value or ())
        elif key == "deadline":
            value = parse_date(value).isoformat()
        elif key in ("title", "description"):
            value = clean_str(value) or ""
        changes[key] = value

    updated = _bump(action, repo.clock(), note, status_history=history, **changes)
    repo.replace("actions", updated)
    return updated


def complete_action(repo: "ManagementRepository", action_id: str, note: str | None = None) -> Action | None:
    """Mark the action done and waiting for its efficiency evaluation."""
    action = repo.get("actions", action_id)
    if action is None:
        logger.warning("ACTION: complete on unknown action %s", action_id)
        return None
    if action.status in TERMINAL_STATUSES:
        raise TransitionError(action.status, "completed_pending_evaluation", "action is closed")

    target = "completed_pending_evaluation"
    history = action.status_history
    if action.status != target:
        history = history.append(_status_change(repo, action.status, target, note or "Action completed"))
    updated = _bump(
        action,
        repo.clock(),
        note,
        status=target,
        status_history=history,
        completed_date=action.completed_date or repo.today().isoformat(),
    )
    repo.replace("actions", updated)
    return updated


def evaluate_action_efficiency(repo: "ManagementRepository", action_id: str, payload: dict) -> Action | None:
    """
    Record the single efficiency evaluation and close the action as evaluated.
    """
    action = repo.get("actions", action_id)
    if action is None:
        logger.warning("ACTION: evaluate on unknown action %s", action_id)
        return None

    errors: list[str] = []
    check_choice(errors, "efficiency result", payload.get("result"), EFFICIENCY_RESULTS)
    if payload.get("evidence_type") is not None:
        check_choice(errors, "evidence type", payload.get("evidence_type"), EVIDENCE_TYPES)
    if errors:
        raise ValidationError(errors)
    if action.efficiency_evaluation is not None or action.status != "completed_pending_evaluation":
        raise TransitionError(action.status, "evaluated", "only completed actions awaiting evaluation can be evaluated")

    now = repo.clock()
    evaluation = EfficiencyEvaluation(
        id=repo.new_id(),
        date=now,
        result=payload["result"],
        evidence=clean_str(payload.get("evidence")),
        evidence_type=payload.get("evidence_type"),
        evaluator_name=clean_str(payload.get("evaluator_name")),
        notes=clean_str(payload.get("notes")),
    )
    change = _status_change(
        repo, action.status, "evaluated",
        f"Efficiency evaluated: {evaluation.result}", evaluation.evaluator_name,
    )
    updated = _bump(
        action,
        now,
        f"Efficiency evaluated: {evaluation.result}",
        status="evaluated",
        status_history=action.status_history.append(change),
        efficiency_evaluation=evaluation,
    )
    repo.replace("actions", updated)
    logger.info("ACTION: %s evaluated as %s", action.code, evaluation.result)
    return updated


# ── Reads ────────────────────────────────────────────────────────────────


def get_action_by_id(repo: "ManagementRepository", action_id: str) -> Action | None:
    return repo.get("actions", action_id)


def get_actions_by_process(repo: "ManagementRepository", process_id: str) -> list[Action]:
    return [a for a in repo.actions if a.process_id == process_id]


def get_actions_by_status(repo: "ManagementRepository", status: str) -> list[Action]:
    return [a for a in repo.actions if a.status == status]


def get_actions_by_issue(repo: "ManagementRepository", issue_id: str) -> list[Action]:
    return [a for a in repo.actions if issue_id in a.linked_issue_ids]


def has_actions_for_issue(repo: "ManagementRepository", issue_id: str) -> bool:
    return any(issue_id in a.linked_issue_ids for a in repo.actions)


def get_actions_pending_evaluation(repo: "ManagementRepository") -> list[Action]:
    return get_actions_by_status(repo, "completed_pending_evaluation")


def get_overdue_actions(repo: "ManagementRepository") -> list[Action]:
    """Open actions whose deadline is strictly before today."""
    today = repo.today()
    return [
        a for a in repo.actions
        if a.status not in NOT_OVERDUE_STATUSES and parse_date(a.deadline) < today
    ]


def get_implemented_controls(repo: "ManagementRepository", issue_id: str) -> list[Action]:
    """Completed or evaluated actions linked to the issue, most recently completed first."""
    done = [a for a in get_actions_by_issue(repo, issue_id) if a.status in IMPLEMENTED_STATUSES]
    return sorted(done, key=lambda a: a.completed_date or "", reverse=True)


def can_evaluate_residual_risk(repo: "ManagementRepository", issue_id: str) -> bool:
    """True once an action linked to the issue has been evaluated."""
    return any(a.status == "evaluated" for a in get_actions_by_issue(repo, issue_id))
