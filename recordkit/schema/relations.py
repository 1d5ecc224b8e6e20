"""
Relation variants: has-one, has-many, belongs-to and many-to-many.

`foreign_schema` names a schema registered in a `SchemaRegistry`; names are
resolved at use time so schemas may reference each other in cycles.
"""
from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class _ForeignKeyRelation(BaseModel):
    self_column: str
    foreign_schema: str
    foreign_column: str

    model_config = {"frozen": True}


class HasOne(_ForeignKeyRelation):
    kind: Literal["has_one"] = "has_one"


class HasMany(_ForeignKeyRelation):
    kind: Literal["has_many"] = "has_many"


class BelongsTo(_ForeignKeyRelation):
    kind: Literal["belongs_to"] = "belongs_to"


class ManyToMany(BaseModel):
    """
    Two-hop relation: `relation_id` names the junction relation on the owning
    schema, `relation_id2` the relation defined on the junction schema that
    reaches the far side.
    """

    kind: Literal["many_to_many"] = "many_to_many"
    relation_id: str
    relation_id2: str

    model_config = {"frozen": True}


Relation = Annotated[
    Union[HasOne, HasMany, BelongsTo, ManyToMany],
    Field(discriminator="kind"),
]


def has_one(self_column: str, foreign_schema: str, foreign_column: str) -> HasOne:
    return HasOne(self_column=self_column, foreign_schema=foreign_schema, foreign_column=foreign_column)


def has_many(self_column: str, foreign_schema: str, foreign_column: str) -> HasMany:
    return HasMany(self_column=self_column, foreign_schema=foreign_schema, foreign_column=foreign_column)


def belongs_to(self_column: str, foreign_schema: str, foreign_column: str) -> BelongsTo:
    return BelongsTo(self_column=self_column, foreign_schema=foreign_schema, foreign_column=foreign_column)


def many_to_many(relation_id: str, relation_id2: str) -> ManyToMany:
    return ManyToMany(relation_id=relation_id, relation_id2=relation_id2)


__all__ = [
    "HasOne",
    "HasMany",
    "BelongsTo",
    "ManyToMany",
    "Relation",
    "has_one",
    "has_many",
    "belongs_to",
    "many_to_many",
]
