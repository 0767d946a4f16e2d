from __future__ import annotations

from dataclasses import dataclass, field

from app.qms.modules.catalog.models import Requirement

FULFILLMENT_STATES = ("satisfied", "not_satisfied")
ITEM_TYPES = ("document_linked", "issue_linked", "action_linked")


@dataclass(frozen=True)
class ItemRef:
    type: str  # document_linked | issue_linked | action_linked
    item_id: str


@dataclass(frozen=True)
class RequirementFulfillment:
    requirement_id: str
    process_id: str
    state: str
    inferred_from: tuple[ItemRef, ...] = ()

    @property
    def is_satisfied(self) -> bool:
        return self.state == "satisfied"


@dataclass(frozen=True)
class RequirementAllocation:
    requirement_id: str
    process_id: str
    activity_id: str
    is_system_allocated: bool = False


@dataclass(frozen=True)
class RequirementStatus:
    requirement: Requirement
    fulfillment: RequirementFulfillment


@dataclass(frozen=True)
class RequirementsOverview:
    total: int
    allocated: int
    satisfied: int
    not_satisfied: int
    by_type: dict[str, int] = field(default_factory=dict)
    requirements: tuple[RequirementStatus, ...] = ()
