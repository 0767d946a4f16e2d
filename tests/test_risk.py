import logging
from datetime import date

import pytest

from app.qms.errors import ValidationError
from app.qms.modules.actions.service import (
    can_evaluate_residual_risk,
    complete_action,
    evaluate_action_efficiency,
    update_action,
)
from app.qms.modules.risk.service import (
    add_risk_version,
    calculate_criticity,
    create_issue,
    delete_issue,
    get_issues_by_quadrant,
    get_latest_risk_version,
    get_risk_history,
    get_risks_by_priority,
    priority_from_criticity,
    update_issue,
)
from app.qms.repository import ManagementRepository


def _risk(repo, severity=2, probability=3, process_id="proc-1", **extra):
    payload = {
        "type": "risk",
        "quadrant": "threat",
        "description": "Key supplier may fail",
        "context_nature": "external",
        "process_id": process_id,
        "severity": severity,
        "probability": probability,
        **extra,
    }
    return create_issue(repo, payload)


@pytest.mark.parametrize("severity", [1, 2, 3])
@pytest.mark.parametrize("probability", [1, 2, 3])
def test_criticity_and_priority_tiers(severity, probability):
    criticity = calculate_criticity(severity, probability)
    assert criticity == severity * probability
    priority = priority_from_criticity(criticity)
    if criticity <= 3:
        assert priority == "03"
    elif criticity <= 6:
        assert priority == "02"
    else:
        assert priority == "01"


def test_severe_and_likely_risk_is_urgent(repo):
    issue = _risk(repo, severity=3, probability=3)
    assert issue.criticity == 9
    assert issue.priority == "01"


def test_minor_risk_is_optional(repo):
    issue = _risk(repo, severity=1, probability=2)
    assert issue.criticity == 2
    assert issue.priority == "03"


def test_create_risk_records_initial_version(repo):
    issue = _risk(repo)
    assert issue.code == "RISK/26/001"
    assert len(issue.risk_versions) == 1
    v1 = issue.risk_versions[0]
    assert v1.version_number == 1
    assert v1.trigger == "initial"
    assert (issue.version, issue.revision_date) == (1, v1.date)
    assert repo.get("issues", issue.id) == issue


def test_issue_codes_are_sequential_per_type(repo):
    _risk(repo)
    second = _risk(repo)
    opp = create_issue(repo, {
        "type": "opportunity",
        "quadrant": "opportunity",
        "description": "New market",
        "context_nature": "external",
        "process_id": "proc-1",
    })
    assert second.code == "RISK/26/002"
    assert opp.code == "OPP/26/001"
    assert opp.risk_versions.latest() is None
    assert opp.criticity is None


def test_risk_requires_scores(repo):
    with pytest.raises(ValidationError) as exc:
        _risk(repo, severity=None, probability=4)
    assert len(exc.value.errors) == 2
    assert repo.issues == []


def test_residual_risk_after_evaluated_action(repo, make_action):
    issue = _risk(repo, severity=2, probability=3)
    assert can_evaluate_residual_risk(repo, issue.id) is False

    action = make_action(process_id="proc-1", linked_issue_ids=[issue.id])
    update_action(repo, action.id, {"status": "in_progress"})
    complete_action(repo, action.id)
    assert can_evaluate_residual_risk(repo, issue.id) is False

    evaluate_action_efficiency(repo, action.id, {"result": "effective"})
    assert can_evaluate_residual_risk(repo, issue.id) is True

    updated = add_risk_version(repo, issue.id, {
        "trigger": "post_action_review",
        "severity": 1,
        "probability": 2,
        "description": "Second supplier qualified",
        "evaluator_name": "QA lead",
    })
    latest = get_latest_risk_version(repo, issue.id)
    assert latest.version_number == 2
    assert latest.trigger == "post_action_review"
    assert (updated.severity, updated.probability, updated.criticity, updated.priority) == (1, 2, 2, "03")
    assert (updated.version, updated.revision_date) == (2, latest.date)


def test_add_risk_version_always_appends(repo):
    issue = _risk(repo)
    for n in range(3):
        before = len(get_risk_history(repo, issue.id))
        add_risk_version(repo, issue.id, {"severity": 1, "probability": 1, "description": f"review {n}"})
        history = get_risk_history(repo, issue.id)
        assert len(history) == before + 1
        assert history[0].trigger == "initial"
    numbers = [v.version_number for v in get_risk_history(repo, issue.id)]
    assert numbers == [1, 2, 3, 4]
    assert get_latest_risk_version(repo, issue.id).version_number == max(numbers)


def test_add_risk_version_is_not_gated_here(repo):
    # residual-risk gating is the caller's contract
    issue = _risk(repo)
    updated = add_risk_version(repo, issue.id, {"trigger": "post_action_review", "severity": 2, "probability": 2})
    assert updated.version == 2


def test_add_risk_version_validates_before_mutating(repo):
    issue = _risk(repo)
    with pytest.raises(ValidationError):
        add_risk_version(repo, issue.id, {"severity": 0, "probability": 2})
    with pytest.raises(ValidationError):
        add_risk_version(repo, issue.id, {"severity": 1, "probability": 2, "trigger": "whenever"})
    assert len(get_risk_history(repo, issue.id)) == 1


def test_add_risk_version_unknown_issue_returns_none(repo):
    assert add_risk_version(repo, "nope", {"severity": 1, "probability": 1}) is None
    assert get_latest_risk_version(repo, "nope") is None
    assert get_risk_history(repo, "nope") == []


def test_update_issue_keeps_scores(repo):
    issue = _risk(repo)
    updated = update_issue(repo, issue.id, {"description": "Reworded"})
    assert updated.description == "Reworded"
    assert (updated.version, updated.criticity) == (issue.version, issue.criticity)
    with pytest.raises(ValidationError):
        update_issue(repo, issue.id, {"severity": 1})


def test_risks_by_priority_and_quadrant(repo):
    low = _risk(repo, severity=1, probability=1)
    high = _risk(repo, severity=3, probability=3, quadrant="weakness")
    mid = _risk(repo, severity=2, probability=2)
    assert [i.id for i in get_risks_by_priority(repo)] == [high.id, mid.id, low.id]
    assert [i.id for i in get_issues_by_quadrant(repo, "weakness")] == [high.id]


def test_delete_issue(repo, caplog):
    issue = _risk(repo)
    assert delete_issue(repo, issue.id) is True
    with caplog.at_level(logging.WARNING, logger="app.qms.modules.risk.service"):
        assert delete_issue(repo, issue.id) is False
    assert repo.issues == []
    assert any(f"unknown issue {issue.id}" in r.getMessage() for r in caplog.records)


def test_latest_version_by_number_when_timestamps_tie(store):
    repo = ManagementRepository(store, clock=lambda: "2026-03-15T09:00:00+00:00", today=lambda: date(2026, 3, 15))
    issue = _risk(repo, severity=3, probability=3)
    add_risk_version(repo, issue.id, {"severity": 2, "probability": 2})
    updated = add_risk_version(repo, issue.id, {"severity": 1, "probability": 2})

    history = get_risk_history(repo, issue.id)
    assert len({v.date for v in history}) == 1
    assert [v.version_number for v in history] == [1, 2, 3]
    latest = get_latest_risk_version(repo, issue.id)
    assert latest.version_number == 3
    assert (updated.version, updated.criticity, updated.priority) == (3, 2, "03")


def test_later_versions_note_residual_evaluation(repo):
    issue = _risk(repo)
    assert issue.revision_note is None
    updated = add_risk_version(repo, issue.id, {"severity": 1, "probability": 1})
    assert updated.revision_note == "Residual risk evaluation v2"
