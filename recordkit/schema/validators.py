"""
Column validators.

Every validator is adapted to the `ColumnValidator` capability, which returns a
`ValidationOutcome`. Supported declarations on `Column.validator`:

- a callable ``fn(value, args, record)`` returning ``bool`` or ``(bool, message)``;
- a validator class with ``validate(value) -> bool`` and
  ``get_messages() -> list[str]``, instantiated with ``Column.validator_args``
  (an instance of such a class works too);
- an object implementing ``validate(value, context) -> ValidationOutcome``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Protocol, runtime_checkable

from recordkit.domain.results import ValidationOutcome
from recordkit.exceptions import UnsupportedValidatorShape
from recordkit.schema.column import Column, flatten_valid_values, is_empty

DEFAULT_MESSAGE = "Validation failed."


@dataclass
class ValidationContext:
    column: Column
    args: Dict[str, Any] = field(default_factory=dict)
    record: Any = None


@runtime_checkable
class ColumnValidator(Protocol):
    def validate(self, value: Any, context: ValidationContext) -> ValidationOutcome:
        ...


def _to_outcome(result: Any, context: ValidationContext) -> ValidationOutcome:
    name = context.column.name
    if isinstance(result, ValidationOutcome):
        return result
    if isinstance(result, bool):
        return ValidationOutcome(valid=result, field=name, message=None if result else DEFAULT_MESSAGE)
    if isinstance(result, (tuple, list)) and len(result) == 2:
        return ValidationOutcome(valid=bool(result[0]), field=name, message=result[1])
    raise UnsupportedValidatorShape(
        f"Wrong validation result format for {name}, return (valid, message) or valid"
    )


class CallableValidator:
    def __init__(self, fn: Callable[..., Any]) -> None:
        self.fn = fn

    def validate(self, value: Any, context: ValidationContext) -> ValidationOutcome:
        return _to_outcome(self.fn(value, context.args, context.record), context)


class StructuredValidator:
    """Adapter for validator classes exposing validate(value) and get_messages()."""

    def __init__(self, validator: Any, validator_args: Any = None) -> None:
        self.validator = validator
        self.validator_args = validator_args

    def _instance(self) -> Any:
        if not isinstance(self.validator, type):
            return self.validator
        if self.validator_args is not None:
            return self.validator(self.validator_args)
        return self.validator()

    def validate(self, value: Any, context: ValidationContext) -> ValidationOutcome:
        instance = self._instance()
        valid = bool(instance.validate(value))
        messages = list(instance.get_messages() or [])
        message = messages[0] if messages else DEFAULT_MESSAGE
        return ValidationOutcome(valid=valid, field=context.column.name, message=message)


class _ProtocolValidator:
    def __init__(self, validator: ColumnValidator) -> None:
        self.validator = validator

    def validate(self, value: Any, context: ValidationContext) -> ValidationOutcome:
        return _to_outcome(self.validator.validate(value, context), context)


def _is_structured(validator: Any) -> bool:
    return hasattr(validator, "validate") and hasattr(validator, "get_messages")


def adapt_validator(validator: Any, validator_args: Any = None) -> ColumnValidator:
    """
    Adapt a column's declared validator to the ColumnValidator capability.

    Raises
    ------
    UnsupportedValidatorShape
        If the declaration matches none of the supported shapes.
    """
    if isinstance(validator, type):
        if _is_structured(validator):
            return StructuredValidator(validator, validator_args)
        raise UnsupportedValidatorShape(f"Unsupported validator class {validator.__name__}")
    if _is_structured(validator):
        return StructuredValidator(validator)
    if isinstance(validator, ColumnValidator):
        return _ProtocolValidator(validator)
    if callable(validator):
        return CallableValidator(validator)
    raise UnsupportedValidatorShape(f"Unsupported validator {validator!r}")


def validate_column(
    column: Column,
    value: Any,
    args: Optional[Dict[str, Any]] = None,
    record: Any = None,
) -> Optional[ValidationOutcome]:
    """
    Validate one column value.

    Returns None when the column declares nothing to check (not required,
    no validator, no valid values applicable).
    """
    args = args if args is not None else {}
    if column.required and is_empty(value):
        return ValidationOutcome(
            valid=False,
            field=column.name,
            message=f"Field {column.get_label()} is required.",
        )

    if column.validator is not None:
        context = ValidationContext(column=column, args=args, record=record)
        return adapt_validator(column.validator, column.validator_args).validate(value, context)

    if value and (column.valid_values is not None or column.valid_value_builder is not None):
        valid_values = column.get_valid_values(record, args)
        if valid_values and value not in flatten_valid_values(valid_values):
            return ValidationOutcome(
                valid=False,
                field=column.name,
                message=f"{value} is not a valid value for {column.name}",
            )
        return ValidationOutcome(valid=True, field=column.name)
    return None


__all__ = [
    "ColumnValidator",
    "ValidationContext",
    "CallableValidator",
    "StructuredValidator",
    "adapt_validator",
    "validate_column",
]
