from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from app.qms.modules.catalog.service import CATEGORY_LABELS, CLAUSE_LABELS, clause_in_family, get_function_by_id
from app.qms.modules.functions.models import FunctionInstance

if TYPE_CHECKING:
    from app.qms.repository import ManagementRepository


@dataclass(frozen=True)
class ComplianceMetrics:
    total_functions: int = 0
    implemented_count: int = 0
    partially_implemented_count: int = 0
    not_implemented_count: int = 0
    nonconformity_count: int = 0
    improvement_opportunity_count: int = 0
    compliance_percentage: int = 0


@dataclass(frozen=True)
class CategoryCompliance:
    category: str
    label: str
    metrics: ComplianceMetrics


@dataclass(frozen=True)
class ClauseCompliance:
    clause: str
    label: str
    metrics: ComplianceMetrics


def round_half_up(value: float) -> int:
    # round() is banker's rounding; 12.5 must give 13
    return int(math.floor(value + 0.5))


def compliance_percentage(implemented: int, partial: int, total: int) -> int:
    if total == 0:
        return 0
    return round_half_up(((implemented + 0.5 * partial) / total) * 100)


def metrics_for(instances: Iterable[FunctionInstance]) -> ComplianceMetrics:
    counts = {
        "implemented": 0,
        "partially_implemented": 0,
        "not_implemented": 0,
        "nonconformity": 0,
        "improvement_opportunity": 0,
    }
    total = 0
    for fi in instances:
        total += 1
        if fi.status in counts:
            counts[fi.status] += 1
    if total == 0:
        return ComplianceMetrics()
    return ComplianceMetrics(
        total_functions=total,
        implemented_count=counts["implemented"],
        partially_implemented_count=counts["partially_implemented"],
        not_implemented_count=counts["not_implemented"],
        nonconformity_count=counts["nonconformity"],
        improvement_opportunity_count=counts["improvement_opportunity"],
        compliance_percentage=compliance_percentage(
            counts["implemented"], counts["partially_implemented"], total
        ),
    )


def calculate_compliance_metrics(repo: "ManagementRepository") -> ComplianceMetrics:
    return metrics_for(repo.function_instances)


def get_compliance_by_category(repo: "ManagementRepository") -> list[CategoryCompliance]:
    """One row per function category, including categories with no instances."""
    rows = []
    for category, label in CATEGORY_LABELS.items():
        matching = []
        for fi in repo.function_instances:
            function = get_function_by_id(fi.function_id)
            if function is not None and function.category == category:
                matching.append(fi)
        rows.append(CategoryCompliance(category, label, metrics_for(matching)))
    return rows


def get_compliance_by_clause(repo: "ManagementRepository") -> list[ClauseCompliance]:
    """
    One row per top-level clause (4..10). An instance counts toward every clause
    its function references.
    """
    rows = []
    for clause, label in CLAUSE_LABELS.items():
        matching = []
        for fi in repo.function_instances:
            function = get_function_by_id(fi.function_id)
            if function is None:
                continue
            if any(clause_in_family(ref, clause) for ref in function.clause_references):
                matching.append(fi)
        rows.append(ClauseCompliance(clause, label, metrics_for(matching)))
    return rows


def get_compliance_by_process(repo: "ManagementRepository", process_id: str) -> ComplianceMetrics:
    return metrics_for(fi for fi in repo.function_instances if fi.process_id == process_id)
