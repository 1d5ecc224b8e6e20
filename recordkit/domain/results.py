"""
Operation results returned by record lifecycle operations.

Every public lifecycle operation returns an `OperationResult`; callers branch on
`result.success` instead of catching exceptions.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from pydantic import BaseModel


class ValidationOutcome(BaseModel):
    """
    Outcome of validating one column value.
    """

    valid: bool
    field: str
    message: Optional[str] = None

    model_config = {"frozen": True}


@dataclass(frozen=True)
class OperationResult:
    """
    Base result: a message plus diagnostic context (sql, args, vars,
    validations, id, exception).
    """

    message: str
    extra: Dict[str, Any] = field(default_factory=dict)

    success = False

    @property
    def error(self) -> bool:
        return not self.success

    @property
    def id(self) -> Any:
        return self.extra.get("id")

    @property
    def sql(self) -> Optional[str]:
        return self.extra.get("sql")

    @property
    def validations(self) -> Dict[str, ValidationOutcome]:
        return self.extra.get("validations") or {}

    @property
    def exception(self) -> Optional[BaseException]:
        return self.extra.get("exception")

    def __bool__(self) -> bool:
        return self.success


@dataclass(frozen=True)
class OperationSuccess(OperationResult):
    success = True


@dataclass(frozen=True)
class OperationError(OperationResult):
    success = False


__all__ = ["ValidationOutcome", "OperationResult", "OperationSuccess", "OperationError"]
