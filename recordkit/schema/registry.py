"""
Explicit schema registry.

An external loader populates the registry at process start; relation metadata
refers to schemas by name and is resolved here. Model classes may be bound to
a schema so related records are materialized with the right subclass.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, Iterator, Optional, Type

from recordkit.exceptions import RelationshipConfigurationError
from recordkit.schema.schema import Schema

if TYPE_CHECKING:
    from recordkit.model.collection import Collection
    from recordkit.model.record import Record


class SchemaRegistry:
    def __init__(self, schemas: Iterable[Schema] = ()) -> None:
        self._schemas: Dict[str, Schema] = {}
        self._models: Dict[str, Type["Record"]] = {}
        self.load(schemas)

    def load(self, schemas: Iterable[Schema]) -> None:
        for schema in schemas:
            self.register(schema)

    def register(self, schema: Schema, model_class: Optional[Type["Record"]] = None) -> Schema:
        self._schemas[schema.name] = schema
        if model_class is not None:
            self._models[schema.name] = model_class
        return schema

    def register_model(self, model_class: Type["Record"]) -> Type["Record"]:
        """
        Class decorator binding a model class to its schema.

            @registry.register_model
            class Book(Record):
                schema = books
        """
        if model_class.schema is None:
            raise RelationshipConfigurationError(f"{model_class.__name__} declares no schema")
        if model_class.registry is None:
            model_class.registry = self
        self.register(model_class.schema, model_class)
        return model_class

    def get_schema(self, name: str) -> Optional[Schema]:
        return self._schemas.get(name)

    def get(self, name: str) -> Schema:
        schema = self._schemas.get(name)
        if schema is None:
            raise RelationshipConfigurationError(f"schema {name} is not registered")
        return schema

    def model_class(self, name: str) -> Type["Record"]:
        from recordkit.model.record import Record

        return self._models.get(name, Record)

    def new_model(self, name: str, connections: Any) -> "Record":
        schema = self.get(name)
        return self.model_class(name)(connections, schema=schema, registry=self)

    def new_collection(self, name: str, connections: Any) -> "Collection":
        from recordkit.model.collection import Collection

        schema = self.get(name)
        return Collection(connections, schema, registry=self, model_class=self.model_class(name))

    def __contains__(self, name: object) -> bool:
        return name in self._schemas

    def __iter__(self) -> Iterator[Schema]:
        return iter(self._schemas.values())

    def __len__(self) -> int:
        return len(self._schemas)


__all__ = ["SchemaRegistry"]
