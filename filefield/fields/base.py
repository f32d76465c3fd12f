"""
filefield Field base — column descriptors for Model.

A Field is declared as a class attribute on a Model. It owns the column's
default, its plain validation rules and two behavioural hooks:

    validate(validation, model)       — runs after plain rules (Validatable)
    save(model, value, loaded, ...)   — returns the value to persist
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, List, Optional, Protocol, Sequence, Tuple, Union

if TYPE_CHECKING:
    from filefield.validation import Validation

RuleSpec = Union[Callable[..., Any], Tuple[Any, ...]]


class Validatable(Protocol):
    """Anything the validation pipeline can run after the plain rules."""

    def validate(self, validation: "Validation", model: Any) -> Any:
        ...


class Field:
    """Plain column: stores whatever value is set on the model."""

    def __init__(
        self,
        default: Any = None,
        column: Optional[str] = None,
        rules: Optional[Sequence[RuleSpec]] = None,
        label: Optional[str] = None,
    ):
        self.default = default
        self.column = column
        self.rules: List[RuleSpec] = list(rules or [])
        self.label = label
        self.name: Optional[str] = None
        self.model: Optional[type] = None

    def initialize(self, model: type, name: str) -> None:
        """Bind the field to its model class and attribute name."""
        self.model = model
        self.name = name
        if self.column is None:
            self.column = name
        if self.label is None:
            self.label = name.replace("_", " ").capitalize()

    def add_rules(self, validation: "Validation") -> None:
        """Register this field's plain rules on a validation."""
        for spec in self.rules:
            if isinstance(spec, tuple):
                rule, *args = spec
                validation.rule(self.name, rule, *args)
            else:
                validation.rule(self.name, spec)

    def is_payload(self, value: Any) -> bool:
        """True when a submitted value is a raw payload rather than the column value."""
        return False

    def validate(self, validation: "Validation", model: Any) -> Any:
        return None

    def save(self, model: Any, value: Any, loaded: bool, validation: Optional["Validation"] = None) -> Any:
        return value

    @property
    def ref(self) -> str:
        """``Model.field`` reference used in logs."""
        owner = self.model.__name__ if self.model else "?"
        return f"{owner}.{self.name}"

    # Descriptor access on model instances
    def __get__(self, instance: Any, owner: Optional[type] = None) -> Any:
        if instance is None:
            return self
        return instance.get(self.name)

    def __set__(self, instance: Any, value: Any) -> None:
        instance.set(self.name, value)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.ref}>"
