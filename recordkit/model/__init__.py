"""
Record lifecycle engine, collections and relationship resolution.
"""

from recordkit.model.collection import Collection
from recordkit.model.record import Record, RelationKey
from recordkit.model.relationships import resolve_relation

__all__ = ["Record", "RelationKey", "Collection", "resolve_relation"]
