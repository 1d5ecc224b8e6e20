"""
Domain package for recordkit.

Exports the result and validation value types shared by the lifecycle engine,
collections and column validators.
"""

from recordkit.domain.results import (
    OperationError,
    OperationResult,
    OperationSuccess,
    ValidationOutcome,
)

__all__ = [
    "OperationError",
    "OperationResult",
    "OperationSuccess",
    "ValidationOutcome",
]
