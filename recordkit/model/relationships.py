"""
Relationship resolver.

Turns relation metadata of a record's schema into related records or
collections. Results are memoized by `Record.related`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional, Union

import sqlalchemy as sa

from recordkit.exceptions import JunctionRecordError, RelationshipConfigurationError
from recordkit.schema.column import is_empty
from recordkit.schema.registry import SchemaRegistry
from recordkit.schema.relations import BelongsTo, HasMany, HasOne, ManyToMany
from recordkit.schema.schema import Schema

if TYPE_CHECKING:
    from recordkit.model.collection import Collection
    from recordkit.model.record import Record


def _registry_of(record: "Record", relation_id: str) -> SchemaRegistry:
    if record.registry is None:
        raise RelationshipConfigurationError(
            f"relation {relation_id} of {record.schema.get_table()} needs a schema registry"
        )
    return record.registry


def _junction_column(junction: sa.FromClause, schema: Schema, name: str) -> sa.ColumnElement:
    if name not in junction.c:
        raise RelationshipConfigurationError(f"column {name} is not defined in {schema.get_table()}")
    return junction.c[name]


def resolve_one(record: "Record", relation_id: str, relation: Union[HasOne, BelongsTo]) -> Optional["Record"]:
    """Related record loaded by the foreign column, or None."""
    registry = _registry_of(record, relation_id)
    if not record.has_value(relation.self_column):
        return None
    model = registry.new_model(relation.foreign_schema, record.connections)
    ret = model.load({relation.foreign_column: record.get_value(relation.self_column)})
    return model if ret.success else None


def resolve_many(record: "Record", relation_id: str, relation: HasMany) -> Optional["Collection"]:
    registry = _registry_of(record, relation_id)
    if not record.has_value(relation.self_column):
        return None
    value = record.get_value(relation.self_column)
    collection = registry.new_collection(relation.foreign_schema, record.connections)
    collection.where(collection.column(relation.foreign_column) == value)
    # Records created through the collection get the linking key.
    collection.set_preset_vars({relation.foreign_column: value})
    return collection


def resolve_many_to_many(record: "Record", relation_id: str, relation: ManyToMany) -> Optional["Collection"]:
    """
    Collection of far-side records joined through the junction table.

    ``relation.relation_id`` names the has-many relation from the owner to the
    junction schema; ``relation.relation_id2`` names the relation on the
    junction schema that reaches the far side.
    """
    registry = _registry_of(record, relation_id)

    middle = record.schema.get_relation(relation.relation_id)
    if middle is None or isinstance(middle, ManyToMany):
        raise RelationshipConfigurationError(
            f"first level relationship of many-to-many {relation.relation_id} is empty"
        )
    junction_schema = registry.get(middle.foreign_schema)

    foreign = junction_schema.get_relation(relation.relation_id2)
    if foreign is None or isinstance(foreign, ManyToMany):
        raise RelationshipConfigurationError(
            f"second level relationship of many-to-many {relation.relation_id2} is empty."
        )
    if not foreign.foreign_schema:
        raise RelationshipConfigurationError("foreign schema class is not defined.")

    value = record.get_value(middle.self_column)
    if is_empty(value):
        return None

    collection = registry.new_collection(foreign.foreign_schema, record.connections)
    junction = junction_schema.table_clause().alias("b")
    collection.join(
        junction,
        _junction_column(junction, junction_schema, foreign.self_column)
        == collection.column(foreign.foreign_column),
    )
    collection.where(_junction_column(junction, junction_schema, middle.foreign_column) == value)

    def create_junction(created: "Record", args: Dict[str, Any]) -> "Record":
        # Caller-supplied junction attributes travel under the junction relation id.
        junction_args = dict(args.get(relation.relation_id) or {})
        junction_args[foreign.self_column] = created.get_value(foreign.foreign_column)
        junction_args[middle.foreign_column] = value
        junction_record = registry.new_model(junction_schema.name, record.connections)
        ret = junction_record.create(junction_args)
        if not ret.success:
            raise JunctionRecordError(f"{relation.relation_id} create failed: {ret.message}")
        return junction_record

    collection.set_post_create(create_junction)
    return collection


def resolve_relation(record: "Record", relation_id: str) -> Any:
    """
    Resolve `relation_id` on `record`.

    Raises
    ------
    RelationshipConfigurationError
        If the relation is unknown, malformed, or no registry is available.
    """
    relation = record.schema.get_relation(relation_id)
    if relation is None:
        raise RelationshipConfigurationError(
            f"relation {relation_id} is not defined in {record.schema.get_table()}"
        )
    if isinstance(relation, (HasOne, BelongsTo)):
        return resolve_one(record, relation_id, relation)
    if isinstance(relation, HasMany):
        return resolve_many(record, relation_id, relation)
    if isinstance(relation, ManyToMany):
        return resolve_many_to_many(record, relation_id, relation)
    raise RelationshipConfigurationError(f"The relationship type of {relation_id} is not supported.")


__all__ = ["resolve_relation", "resolve_one", "resolve_many", "resolve_many_to_many"]
