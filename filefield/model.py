"""
filefield Model — record base class binding declared Fields to values.

Tracks the values a record was loaded (or last saved) with separately
from pending changes, so fields can look at the previous value while a
new one is being validated.

Usage:
    class Profile(Model):
        name = Field(rules=[not_empty])
        photo = FileField(path="/srv/media", default="blank.png")

    profile = Profile({"name": "Ada", "photo": "ada.png"}, loaded=True)
    validation = profile.validate({"photo": upload_payload})
    values = profile.save(validation)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from filefield.engine.errors import FileFieldValidationError
from filefield.fields.base import Field
from filefield.validation import Validation

logger = logging.getLogger("filefield.model")


class Model:
    """Base class for records with declared fields."""

    __fields__: Dict[str, Field] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        fields: Dict[str, Field] = {}
        for base in reversed(cls.__mro__[1:]):
            fields.update(getattr(base, "__fields__", {}))
        for name, value in vars(cls).items():
            if isinstance(value, Field):
                value.initialize(cls, name)
                fields[name] = value
        cls.__fields__ = fields

    def __init__(self, values: Optional[Mapping[str, Any]] = None, loaded: bool = False):
        self._original: Dict[str, Any] = {
            name: field.default for name, field in self.__fields__.items()
        }
        self._changed: Dict[str, Any] = {}
        self._loaded = loaded
        for name, value in (values or {}).items():
            self._check_field(name)
            self._original[name] = value

    def _check_field(self, name: str) -> None:
        if name not in self.__fields__:
            raise KeyError(f"{self.__class__.__name__} has no field '{name}'")

    # -------------------------------------------------------------------
    # Values
    # -------------------------------------------------------------------

    def get(self, name: str) -> Any:
        self._check_field(name)
        if name in self._changed:
            return self._changed[name]
        return self._original[name]

    def set(self, name: str, value: Any) -> "Model":
        self._check_field(name)
        self._changed[name] = value
        return self

    def original(self, name: str) -> Any:
        """Value as last loaded or saved, ignoring pending changes."""
        self._check_field(name)
        return self._original[name]

    @property
    def changed(self) -> Dict[str, Any]:
        return dict(self._changed)

    @property
    def loaded(self) -> bool:
        return self._loaded

    def as_dict(self) -> Dict[str, Any]:
        return {name: self.get(name) for name in self.__fields__}

    # -------------------------------------------------------------------
    # Validate / save
    # -------------------------------------------------------------------

    def validate(self, data: Optional[Mapping[str, Any]] = None) -> Validation:
        """
        Validate the record with submitted ``data`` overlaid.

        Plain values (including a string that clears a file column) are set
        on the record; upload payloads only go to the validation, where
        their fields pick them up.
        """
        data = dict(data or {})
        for name, value in data.items():
            self._check_field(name)
            if not self.__fields__[name].is_payload(value):
                self.set(name, value)

        values = self.as_dict()
        values.update(data)
        validation = Validation(values)

        for field in self.__fields__.values():
            field.add_rules(validation)
        validation.check(self.__fields__.values(), model=self)

        if validation.errors():
            logger.info(f"{self.__class__.__name__} failed validation: {validation.errors()}")
        return validation

    def save_values(self, validation: Optional[Validation] = None) -> Dict[str, Any]:
        """
        Compute the column values through each field's save hook without
        touching the record's stored values.

        Raises FileFieldValidationError when ``validation`` has errors.
        """
        if validation is not None and validation.errors():
            raise FileFieldValidationError(
                f"Cannot save {self.__class__.__name__} with validation errors",
                model=self.__class__.__name__,
                validation_errors=[
                    {"field": f, "error": r} for f, r in validation.errors().items()
                ],
            )

        return {
            name: field.save(self, self.get(name), self._loaded, validation)
            for name, field in self.__fields__.items()
        }

    def mark_saved(self, values: Mapping[str, Any]) -> None:
        """Make ``values`` the record's original values and mark it loaded."""
        self._original = dict(values)
        self._changed = {}
        self._loaded = True
        logger.debug(f"Saved {self.__class__.__name__}: {dict(values)}")

    def save(self, validation: Optional[Validation] = None) -> Dict[str, Any]:
        """Compute the column values and make them the record's original values."""
        values = self.save_values(validation)
        self.mark_saved(values)
        return values

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.as_dict()}>"
