"""
Column definitions and the per-column value pipeline.

A `Column` carries the declarative rules of one table column: default value,
logical type (`isa`), type constraint, canonicalizer, validator, valid values,
and the inflate/deflate transforms between Python values and their storage
representation. Columns are immutable once declared.
"""
from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from recordkit.exceptions import TypeConstraintViolation

ISA_TYPES: Dict[str, Any] = {
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "decimal": Decimal,
    "datetime": datetime,
    "date": date,
    "json": Any,
}

_ADAPTERS: Dict[str, TypeAdapter] = {}


def _adapter(isa: str) -> TypeAdapter:
    if isa not in _ADAPTERS:
        _ADAPTERS[isa] = TypeAdapter(ISA_TYPES[isa])
    return _ADAPTERS[isa]


def is_empty(value: Any) -> bool:
    """Null or empty string; zero and False are real values."""
    return value is None or (isinstance(value, str) and value == "")


def flatten_valid_values(valid_values: Any) -> List[Any]:
    """
    Flatten the allowed values of a column.

    Supports flat lists, ``{label: value}`` maps and grouped
    ``{group: {label: value}}`` maps.
    """
    if isinstance(valid_values, dict):
        values: List[Any] = []
        for item in valid_values.values():
            if isinstance(item, dict):
                values.extend(item.values())
            elif isinstance(item, (list, tuple)):
                values.extend(item)
            else:
                values.append(item)
        return values
    return list(valid_values)


class Column(BaseModel):
    """
    Declarative description of a table column.
    """

    name: str
    isa: str = "str"
    type: Optional[str] = Field(None, description="Explicit SQL type, wins over `isa` in DDL.")
    label: Optional[str] = None

    required: bool = False
    not_null: bool = False
    null: bool = False
    primary: bool = False
    auto_increment: bool = False
    unique: bool = False
    virtual: bool = Field(False, description="Not persisted; excluded from SQL.")

    default: Any = Field(None, description="Static value, raw SQL list, or builder(record, args).")
    type_constraint: bool = False
    filter: Optional[Callable[..., Any]] = None
    canonicalizer: Optional[Callable[..., Any]] = None
    validator: Any = None
    validator_args: Any = None
    valid_values: Any = None
    valid_value_builder: Optional[Callable[..., Any]] = None
    inflator: Optional[Callable[..., Any]] = None
    deflator: Optional[Callable[..., Any]] = None

    model_config = {
        "frozen": True,
        "arbitrary_types_allowed": True,
    }

    def get_label(self) -> str:
        return self.label or self.name

    def is_raw_value(self, value: Any) -> bool:
        """
        Raw SQL values are one-element lists or tuples (``["CURRENT_TIMESTAMP"]``).
        JSON columns keep lists as data, so only tuples are raw there.
        """
        if self.isa == "json":
            return isinstance(value, tuple)
        return isinstance(value, (list, tuple))

    def get_default_value(self, record: Any = None, args: Optional[Dict[str, Any]] = None) -> Any:
        if callable(self.default):
            return self.default(record, args if args is not None else {})
        return self.default

    def check_type_constraint(self, value: Any) -> Any:
        """
        Enforce the logical type strictly.

        Raises
        ------
        TypeConstraintViolation
            If the value is not already of the column's logical type.
        """
        if self.isa not in ISA_TYPES or self.isa == "json":
            return value
        try:
            return _adapter(self.isa).validate_python(value, strict=True)
        except ValidationError as exc:
            raise TypeConstraintViolation(self.name, value, self.isa) from exc

    def type_cast(self, value: Any) -> Any:
        """
        Best-effort coercion to the logical type. A failed cast returns the
        value unchanged.
        """
        if self.isa not in ISA_TYPES or self.isa == "json":
            return value
        if self.isa == "str" and isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
            return str(value)
        try:
            return _adapter(self.isa).validate_python(value)
        except ValidationError:
            return value

    def canonicalize(self, value: Any, record: Any = None, args: Optional[Dict[str, Any]] = None) -> Any:
        args = args if args is not None else {}
        if self.filter is not None:
            value = self.filter(value, record, args)
        if self.canonicalizer is not None:
            value = self.canonicalizer(value, record, args)
        return value

    def get_valid_values(self, record: Any = None, args: Optional[Dict[str, Any]] = None) -> Any:
        args = args if args is not None else {}
        if self.valid_value_builder is not None:
            return self.valid_value_builder(record, args)
        if callable(self.valid_values):
            return self.valid_values(record, args)
        return self.valid_values

    def inflate(self, value: Any, record: Any = None) -> Any:
        """Convert a storage value into its Python representation."""
        if self.inflator is not None:
            return self.inflator(value, record)
        if value is None:
            return None
        if self.isa == "datetime" and isinstance(value, str):
            return datetime.fromisoformat(value)
        if self.isa == "date" and isinstance(value, str):
            return date.fromisoformat(value)
        if self.isa == "json" and isinstance(value, (str, bytes)):
            return json.loads(value)
        if self.isa == "decimal" and not isinstance(value, Decimal):
            return Decimal(str(value))
        if self.isa in ("int", "float", "bool"):
            return self.type_cast(value)
        return value

    def deflate(self, value: Any) -> Any:
        """Convert a Python value into its storage representation."""
        if self.deflator is not None:
            return self.deflator(value)
        if value is None:
            return None
        if self.isa == "datetime" and isinstance(value, datetime):
            return value.isoformat(sep=" ")
        if self.isa == "date" and isinstance(value, date):
            if isinstance(value, datetime):
                value = value.date()
            return value.isoformat()
        if self.isa == "json" and not isinstance(value, str):
            return json.dumps(value)
        if self.isa == "decimal" and isinstance(value, Decimal):
            return str(value)
        return value

    def display(self, value: Any, record: Any = None) -> Any:
        """Human-readable value: the option label when labelled options are declared."""
        valid_values = self.get_valid_values(record)
        if isinstance(valid_values, dict):
            for label, option in valid_values.items():
                if isinstance(option, dict):
                    for sub_label, sub_option in option.items():
                        if sub_option == value:
                            return sub_label
                elif option == value:
                    return label
        return self.inflate(value, record)


__all__ = ["Column", "ISA_TYPES", "flatten_valid_values", "is_empty"]
