"""
Resolves relation names to their arity and related entity type
"""
from dataclasses import dataclass
from typing import Optional

from json_syncer.core.exceptions import UndeclaredRelationError
from json_syncer.models.schema import (Arity, EntitySchema, SchemaRegistry,
                                       registry as default_registry)


@dataclass(frozen=True)
class ResolvedRelation:
    """A relation resolved against the registry"""
    name: str
    arity: Arity
    target: EntitySchema
    foreign_key: str

    @property
    def is_plural(self) -> bool:
        return self.arity == Arity.PLURAL


def resolve_relation(
    schema: EntitySchema,
    name: str,
    registry: Optional[SchemaRegistry] = None
) -> ResolvedRelation:
    """
    Resolve a relation declared on an entity type.

    Args:
        schema: Owning entity type
        name: Relation name
        registry: Registry used to look up the related type

    Returns:
        ResolvedRelation with arity, related schema and child foreign key

    Raises:
        UndeclaredRelationError: If the type declares no such relation
    """
    spec = schema.relations.get(name)
    if spec is None:
        raise UndeclaredRelationError(name, schema.name)

    registry = registry or default_registry
    return ResolvedRelation(
        name=spec.name,
        arity=spec.arity,
        target=registry.get(spec.target),
        foreign_key=spec.foreign_key,
    )
