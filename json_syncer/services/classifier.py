"""
Computes which attributes and relations an import (or export) call accepts
"""
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from json_syncer.core.exceptions import UnknownAttributeError
from json_syncer.models.schema import EntitySchema, SchemaRegistry
from json_syncer.services.relation_resolver import resolve_relation


@dataclass(frozen=True)
class ImportableSet:
    """Effective attribute and relation whitelists for one entity type"""
    attributes: Tuple[str, ...]
    relations: Tuple[str, ...]

    def is_attribute(self, key: str) -> bool:
        return key in self.attributes

    def is_relation(self, key: str) -> bool:
        return key in self.relations


def _checked_attributes(schema: EntitySchema, attributes: Iterable[str]) -> Tuple[str, ...]:
    """An attribute override may only name plain attributes of the type"""
    attributes = tuple(attributes)
    for name in attributes:
        if name not in schema.attributes:
            raise UnknownAttributeError(name, schema.name)
    return attributes


def classify(
    schema: EntitySchema,
    attributes: Optional[Iterable[str]] = None,
    relations: Optional[Iterable[str]] = None,
    registry: Optional[SchemaRegistry] = None
) -> ImportableSet:
    """
    Effective importable attributes and relations for an import call.

    Attributes default to the plain attributes minus the excluded ones;
    relations default to every relation the type declares (or its own
    importable subset). An override replaces the default, it is never merged.
    Excluded attributes may be re-enabled by an override.

    Raises:
        UnknownAttributeError: If an attribute override names something that is
            not a plain attribute of the type
        UndeclaredRelationError: If a relation override names an undeclared relation
    """
    if attributes is None:
        effective_attributes = schema.default_importable_attributes
    else:
        effective_attributes = _checked_attributes(schema, attributes)

    if relations is None:
        effective_relations = schema.default_importable_relations
    else:
        effective_relations = tuple(relations)
        for name in effective_relations:
            resolve_relation(schema, name, registry)

    return ImportableSet(attributes=effective_attributes, relations=effective_relations)


def classify_export(
    schema: EntitySchema,
    attributes: Optional[Iterable[str]] = None,
    relations: Optional[Iterable[str]] = None,
    registry: Optional[SchemaRegistry] = None
) -> ImportableSet:
    """Same as classify(), using the export whitelists"""
    if attributes is None:
        effective_attributes = schema.default_exportable_attributes
    else:
        effective_attributes = _checked_attributes(schema, attributes)

    if relations is None:
        effective_relations = schema.default_exportable_relations
    else:
        effective_relations = tuple(relations)
        for name in effective_relations:
            resolve_relation(schema, name, registry)

    return ImportableSet(attributes=effective_attributes, relations=effective_relations)
