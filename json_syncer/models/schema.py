"""
Schema descriptors for importable entity types.

An EntitySchema is a static description of one SQLAlchemy model: its plain
attributes, the relations it owns (with arity, target type and the foreign
key on the child side) and the import/export whitelists. Descriptors are
built once, when first requested from a SchemaRegistry, and are consulted
by the classifier, the relation resolver, the importer and the exporter.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type, Union

from sqlalchemy import inspect
from sqlalchemy.orm import RelationshipDirection

from json_syncer.core.exceptions import SchemaNotRegisteredError


class Arity(str, Enum):
    """How many related instances a relation holds per parent"""
    SINGULAR = "singular"  # at most one child
    PLURAL = "plural"  # zero or more children


@dataclass(frozen=True)
class RelationSpec:
    """A relation owned by an entity type (the child carries the foreign key)"""
    name: str
    arity: Arity
    target: Union[str, type]  # related model class or its registered name
    foreign_key: str  # attribute on the child that stores the parent id

    @property
    def is_plural(self) -> bool:
        return self.arity == Arity.PLURAL


@dataclass
class EntitySchema:
    """Static description of one entity type"""
    model: type
    attributes: Tuple[str, ...]
    relations: Dict[str, RelationSpec] = field(default_factory=dict)
    primary_key: str = "id"
    excluded_attributes: frozenset = frozenset()
    importable_relations: Optional[Tuple[str, ...]] = None
    hidden_attributes: frozenset = frozenset()
    exportable_relations: Optional[Tuple[str, ...]] = None

    @property
    def name(self) -> str:
        """Fully-qualified entity type name"""
        return f"{self.model.__module__}.{self.model.__qualname__}"

    @property
    def default_importable_attributes(self) -> Tuple[str, ...]:
        """All plain attributes minus the ones excluded from import"""
        return tuple(a for a in self.attributes if a not in self.excluded_attributes)

    @property
    def default_importable_relations(self) -> Tuple[str, ...]:
        """Type-level importable relations, or every declared relation"""
        if self.importable_relations is not None:
            return self.importable_relations
        return tuple(self.relations)

    @property
    def default_exportable_attributes(self) -> Tuple[str, ...]:
        return tuple(a for a in self.attributes if a not in self.hidden_attributes)

    @property
    def default_exportable_relations(self) -> Tuple[str, ...]:
        if self.exportable_relations is not None:
            return self.exportable_relations
        return tuple(self.relations)

    def new_instance(self) -> Any:
        return self.model()

    def identity_of(self, instance: Any) -> Any:
        return getattr(instance, self.primary_key)

    @classmethod
    def from_model(
        cls,
        model: type,
        attributes: Optional[Iterable[str]] = None,
        relations: Optional[Iterable[RelationSpec]] = None,
        excluded_attributes: Iterable[str] = (),
        importable_relations: Optional[Iterable[str]] = None,
        hidden_attributes: Iterable[str] = (),
        exportable_relations: Optional[Iterable[str]] = None,
    ) -> "EntitySchema":
        """
        Build a schema from a mapped SQLAlchemy model.

        Plain attributes default to the mapped columns that are neither
        primary keys nor foreign keys. Relations default to the model's
        one-to-many relationships; `uselist` decides the arity. Explicit
        arguments replace the derived values.

        Args:
            model: Declarative model class
            attributes: Plain attribute names (derived when omitted)
            relations: Relation specs (derived when omitted)
            excluded_attributes: Attributes never accepted by the importer
            importable_relations: Type-level importable relation subset
            hidden_attributes: Attributes left out of exports
            exportable_relations: Type-level exportable relation subset

        Returns:
            EntitySchema
        """
        mapper = inspect(model)

        if len(mapper.primary_key) != 1:
            raise ValueError(f"{model.__qualname__} must have a single-column primary key")
        primary_key = mapper.get_property_by_column(mapper.primary_key[0]).key

        if attributes is None:
            attributes = [
                prop.key
                for prop in mapper.column_attrs
                if not any(col.primary_key or col.foreign_keys for col in prop.columns)
            ]

        if relations is None:
            relations = _relations_from_mapper(mapper)

        return cls(
            model=model,
            attributes=tuple(attributes),
            relations={spec.name: spec for spec in relations},
            primary_key=primary_key,
            excluded_attributes=frozenset(excluded_attributes),
            importable_relations=tuple(importable_relations) if importable_relations is not None else None,
            hidden_attributes=frozenset(hidden_attributes),
            exportable_relations=tuple(exportable_relations) if exportable_relations is not None else None,
        )


def _relations_from_mapper(mapper) -> List[RelationSpec]:
    """Read the one-to-many relationships of a mapper into relation specs"""
    specs = []
    for rel in mapper.relationships:
        if rel.direction is not RelationshipDirection.ONETOMANY or rel.secondary is not None:
            continue
        remote_columns = [col for col in rel.remote_side if col.foreign_keys]
        if len(remote_columns) != 1:
            continue
        foreign_key = rel.mapper.get_property_by_column(remote_columns[0]).key
        specs.append(RelationSpec(
            name=rel.key,
            arity=Arity.PLURAL if rel.uselist else Arity.SINGULAR,
            target=rel.mapper.class_,
            foreign_key=foreign_key,
        ))
    return specs


class SchemaRegistry:
    """
    Lookup from model class or entity name to EntitySchema.

    Models can be registered before their relationship targets exist; the
    descriptor is built from the mapper the first time it is requested.
    """

    def __init__(self):
        self._schemas: Dict[type, EntitySchema] = {}
        self._pending: Dict[type, Dict[str, Any]] = {}
        self._names: Dict[str, type] = {}

    def register(self, model: Optional[type] = None, **options):
        """
        Register a model, optionally with EntitySchema.from_model options.

        Usable directly (`registry.register(Foo)`) or as a class decorator
        (`@registry.register(excluded_attributes=["secret"])`).
        """
        if model is None:
            def decorator(cls):
                self.register(cls, **options)
                return cls
            return decorator

        self._schemas.pop(model, None)
        self._pending[model] = options
        self._index_names(model)
        return model

    def add(self, schema: EntitySchema) -> EntitySchema:
        """Register a ready-made schema descriptor"""
        self._pending.pop(schema.model, None)
        self._schemas[schema.model] = schema
        self._index_names(schema.model)
        return schema

    def get(self, key: Union[type, str, EntitySchema]) -> EntitySchema:
        """
        Get the schema for a model class, entity name or schema.

        Raises:
            SchemaNotRegisteredError: If nothing is registered under the key
        """
        if isinstance(key, EntitySchema):
            return key

        model = self._names.get(key) if isinstance(key, str) else key
        if model in self._schemas:
            return self._schemas[model]
        if model in self._pending:
            schema = EntitySchema.from_model(model, **self._pending.pop(model))
            self._schemas[model] = schema
            return schema

        raise SchemaNotRegisteredError(f"No schema registered for {key!r}")

    def is_registered(self, key: Union[type, str]) -> bool:
        model = self._names.get(key) if isinstance(key, str) else key
        return model in self._schemas or model in self._pending

    def _index_names(self, model: type):
        self._names[model.__name__] = model
        self._names[f"{model.__module__}.{model.__qualname__}"] = model


# Default process-wide registry
registry = SchemaRegistry()


def register(model: Optional[Type] = None, **options):
    """Register a model with the default registry"""
    return registry.register(model, **options)
