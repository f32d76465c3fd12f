"""
filefield Validation — per-submission validation context.

A Validation wraps the submitted data for one record, runs plain per-field
rules and then the validatable fields (e.g. FileField) in order, and
collects one error reason per field. Upload results computed during the
pass are kept in ``results`` so the save step can read them.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from filefield.engine.errors import FileFieldValidationError
from filefield.upload import UploadResult

logger = logging.getLogger("filefield.validation")

Rule = Callable[..., Any]

# Default messages per reason key; "{label}" is replaced with the field label.
MESSAGES: Dict[str, str] = {
    "upload.type": "{label} is not an allowed file type",
    "upload.size": "{label} is too large",
    "upload.save": "{label} could not be saved",
    "not_empty": "{label} must not be empty",
}


class Validation:
    """
    Validation context for one submission.

    Usage:
        validation = Validation({"title": "Hi", "photo": request_files["photo"]})
        validation.rule("title", not_empty)
        if not validation.check([photo_field], model=record):
            print(validation.errors())
    """

    def __init__(self, data: Optional[Mapping[str, Any]] = None):
        self._data: Dict[str, Any] = dict(data or {})
        self._rules: Dict[str, List[Tuple[Rule, Tuple[Any, ...]]]] = {}
        self._errors: Dict[str, str] = {}
        self.results: Dict[str, UploadResult] = {}

    # -------------------------------------------------------------------
    # Data access
    # -------------------------------------------------------------------

    def __getitem__(self, field: str) -> Any:
        return self._data[field]

    def __contains__(self, field: str) -> bool:
        return field in self._data

    def get(self, field: str, default: Any = None) -> Any:
        return self._data.get(field, default)

    @property
    def data(self) -> Dict[str, Any]:
        return dict(self._data)

    # -------------------------------------------------------------------
    # Errors
    # -------------------------------------------------------------------

    def errors(self) -> Dict[str, str]:
        """Errors recorded so far as {field: reason}. Empty dict when valid."""
        return dict(self._errors)

    def error(self, field: str, reason: str) -> "Validation":
        """Record an error for a field. Only the first error per field is kept."""
        if field not in self._errors:
            self._errors[field] = reason
            logger.debug(f"Validation error: {field} -> {reason}")
        return self

    def messages(self, labels: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """Human-readable messages for the recorded errors."""
        labels = labels or {}
        out: Dict[str, str] = {}
        for field, reason in self._errors.items():
            label = labels.get(field) or field.replace("_", " ").capitalize()
            template = MESSAGES.get(reason, "{label} is invalid")
            out[field] = template.format(label=label)
        return out

    def raise_for_errors(self, **context: Any) -> None:
        """Raise FileFieldValidationError when any error was recorded."""
        if not self._errors:
            return
        raise FileFieldValidationError(
            f"Validation failed for: {', '.join(sorted(self._errors))}",
            validation_errors=[
                {"field": f, "error": r} for f, r in self._errors.items()
            ],
            **context,
        )

    # -------------------------------------------------------------------
    # Rules
    # -------------------------------------------------------------------

    def rule(self, field: str, rule: Rule, *args: Any) -> "Validation":
        """
        Add a plain rule for a field. The rule is called as
        ``rule(value, *args)``; returning False records ``rule.__name__``.
        """
        self._rules.setdefault(field, []).append((rule, args))
        return self

    def check(self, validatables: Iterable[Any] = (), model: Any = None) -> bool:
        """
        Run plain rules, then each validatable's ``validate(self, model)``.

        Returns True when no error was recorded.
        """
        for field, rules in self._rules.items():
            for rule, args in rules:
                if field in self._errors:
                    break
                if rule(self.get(field), *args) is False:
                    self.error(field, getattr(rule, "__name__", "rule"))

        for validatable in validatables:
            validatable.validate(self, model)

        return not self._errors

    def __repr__(self) -> str:
        return f"<Validation fields={len(self._data)} errors={len(self._errors)}>"


# ---------------------------------------------------------------------------
# Common rules
# ---------------------------------------------------------------------------

def not_empty(value: Any) -> bool:
    """Value is present and not an empty string/collection."""
    if value is None:
        return False
    if isinstance(value, (str, bytes, list, tuple, dict, set)):
        return len(value) > 0
    return True


def max_length(value: Any, length: int) -> bool:
    return value is None or len(str(value)) <= length
