from __future__ import annotations

import dataclasses
import uuid
from datetime import date, datetime, timezone
from typing import Any, Callable, Iterable

from app.qms.append_log import AppendOnlyLog

Clock = Callable[[], str]
IdFactory = Callable[[], str]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return str(uuid.uuid4())


def parse_date(value: str | date | None) -> date | None:
    """Parse YYYY-MM-DD (or a full ISO timestamp) into a date."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Expected a YYYY-MM-DD string, got {type(value).__name__}")
    s = value.strip()
    if not s:
        return None
    if len(s) > 10:
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    return date.fromisoformat(s)


def clean_str(value: object) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def check_choice(errors: list[str], field: str, value: object, allowed: Iterable[str]) -> None:
    allowed = tuple(allowed)
    if value not in allowed:
        errors.append(f"Invalid {field} {value!r}. Must be one of: {', '.join(allowed)}")


def check_str_list(errors: list[str], field: str, value: object) -> None:
    """A list of strings or nothing; a bare string is not a one-item list."""
    if value is None:
        return
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        errors.append(f"Invalid {field} {value!r}. Must be a list of strings.")


def next_code(prefix: str, existing_codes: Iterable[str], *, sep: str = "-") -> str:
    """
    Sequential human-readable codes: PRO-001, ACT-014, RISK/26/003.

    Uses max(existing suffix) + 1 so deletions never produce duplicates.
    """
    head = f"{prefix}{sep}"
    highest = 0
    for code in existing_codes:
        if not code or not code.startswith(head):
            continue
        tail = code[len(head):]
        if tail.isdigit():
            highest = max(highest, int(tail))
    return f"{head}{highest + 1:03d}"


def to_plain(value: Any) -> Any:
    """JSON-safe copy of an entity: dataclasses become dicts, tuples and logs become lists."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        out = {f.name: to_plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
        kind = getattr(value, "kind", None)
        if isinstance(kind, str):
            out["kind"] = kind
        return out
    if isinstance(value, dict):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, AppendOnlyLog)):
        return [to_plain(v) for v in value]
    return value
