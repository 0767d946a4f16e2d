from __future__ import annotations


class ValidationError(ValueError):
    """
    Raised before any state change when a payload is rejected.

    `errors` keeps the individual messages; str(exc) joins them.
    """

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class TransitionError(ValidationError):
    def __init__(self, from_status: str | None, to_status: str, reason: str | None = None):
        msg = f"Cannot move from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
        self.from_status = from_status
        self.to_status = to_status
