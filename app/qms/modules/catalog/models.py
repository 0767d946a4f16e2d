from __future__ import annotations

from dataclasses import dataclass

REQUIREMENT_TYPES = ("generic", "unique", "duplicable")
DUPLICATION_RULES = ("unique", "per_process")
FUNCTION_CATEGORIES = ("context", "leadership", "support", "operation", "performance", "improvement")
PROCESS_TYPES = ("management", "operational", "support")


@dataclass(frozen=True)
class Requirement:
    id: str
    clause_number: str  # e.g. "6.1"
    clause_title: str
    description: str
    type: str  # generic | unique | duplicable


@dataclass(frozen=True)
class StandardFunction:
    id: str
    name: str
    clause_references: tuple[str, ...]
    description: str
    duplication_rule: str  # unique | per_process
    mandatory: bool
    category: str
    eligible_process_types: tuple[str, ...]
    linked_standards: tuple[str, ...] = ("ISO_9001",)
    status: str = "active"  # active | future
