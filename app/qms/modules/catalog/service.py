from __future__ import annotations

from app.qms.modules.catalog.functions import ISO_9001_FUNCTIONS, POLICY_MANAGEMENT_FUNCTION_ID
from app.qms.modules.catalog.models import Requirement, StandardFunction
from app.qms.modules.catalog.requirements import ISO9001_REQUIREMENTS

CATEGORY_LABELS = {
    "context": "Context of the Organization",
    "leadership": "Leadership",
    "support": "Support",
    "operation": "Operation",
    "performance": "Performance Evaluation",
    "improvement": "Improvement",
}

CLAUSE_LABELS = {
    "4": "Context of the Organization",
    "5": "Leadership",
    "6": "Planning",
    "7": "Support",
    "8": "Operation",
    "9": "Performance Evaluation",
    "10": "Improvement",
}

_REQUIREMENTS_BY_ID: dict[str, Requirement] = {r.id: r for r in ISO9001_REQUIREMENTS}
_FUNCTIONS_BY_ID: dict[str, StandardFunction] = {f.id: f for f in ISO_9001_FUNCTIONS}


def get_requirements() -> tuple[Requirement, ...]:
    return ISO9001_REQUIREMENTS


def get_requirement_by_id(requirement_id: str) -> Requirement | None:
    return _REQUIREMENTS_BY_ID.get(requirement_id)


def get_requirements_by_type(type_: str) -> list[Requirement]:
    return [r for r in ISO9001_REQUIREMENTS if r.type == type_]


def get_generic_requirements() -> list[Requirement]:
    return get_requirements_by_type("generic")


def get_functions() -> tuple[StandardFunction, ...]:
    return ISO_9001_FUNCTIONS


def get_function_by_id(function_id: str) -> StandardFunction | None:
    return _FUNCTIONS_BY_ID.get(function_id)


def get_functions_for_process_type(process_type: str) -> list[StandardFunction]:
    """Active functions a process of this type may host (catalog order)."""
    return [
        f for f in ISO_9001_FUNCTIONS
        if f.status == "active" and process_type in f.eligible_process_types
    ]


def is_policy_management(function_id: str) -> bool:
    return function_id == POLICY_MANAGEMENT_FUNCTION_ID


def clause_in_family(clause_reference: str, family: str) -> bool:
    """
    True when `clause_reference` belongs to clause `family` ("9.1" is in "9", "10.2" is not in "1").
    """
    ref = clause_reference.strip()
    fam = family.strip()
    return ref == fam or ref.startswith(f"{fam}.")
