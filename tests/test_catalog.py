from app.qms.modules.catalog.functions import POLICY_MANAGEMENT_FUNCTION_ID
from app.qms.modules.catalog.models import DUPLICATION_RULES, FUNCTION_CATEGORIES, PROCESS_TYPES, REQUIREMENT_TYPES
from app.qms.modules.catalog.service import (
    clause_in_family,
    get_function_by_id,
    get_functions,
    get_functions_for_process_type,
    get_requirement_by_id,
    get_requirements,
    get_requirements_by_type,
    is_policy_management,
)


def test_requirement_inventory():
    reqs = get_requirements()
    assert len(reqs) == 54
    assert len({r.id for r in reqs}) == len(reqs)
    assert {r.type for r in reqs} <= set(REQUIREMENT_TYPES)
    assert len(get_requirements_by_type("generic")) == 17
    assert {r.clause_number for r in get_requirements_by_type("unique")} == {"5.2", "5.2.1", "5.2.2", "9.2", "9.3", "10.2"}
    assert get_requirement_by_id("req-8.7").type == "duplicable"
    assert get_requirement_by_id("req-99") is None


def test_function_catalog_is_consistent():
    functions = get_functions()
    assert len({f.id for f in functions}) == len(functions)
    for f in functions:
        assert f.duplication_rule in DUPLICATION_RULES
        assert f.category in FUNCTION_CATEGORIES
        assert set(f.eligible_process_types) <= set(PROCESS_TYPES)
        assert f.clause_references


def test_functions_for_process_type():
    support = {f.id for f in get_functions_for_process_type("support")}
    assert "fn-7.2-competence" in support
    assert "fn-8.1-operational-control" not in support
    assert get_functions_for_process_type("unknown") == []


def test_policy_management_function():
    assert is_policy_management(POLICY_MANAGEMENT_FUNCTION_ID)
    assert get_function_by_id(POLICY_MANAGEMENT_FUNCTION_ID).duplication_rule == "unique"
    assert not is_policy_management("fn-4.4-process-management")


def test_clause_family():
    assert clause_in_family("9.1.2", "9")
    assert clause_in_family("9.1", "9.1")
    assert not clause_in_family("10.2", "1")
    assert not clause_in_family("6.10", "6.1")
