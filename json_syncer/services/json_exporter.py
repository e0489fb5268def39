"""
JSON exporter: serializes entities and their owned relations into import-ready trees
"""
import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Union
from uuid import UUID

from json_syncer.core.logging_config import LoggingConfig
from json_syncer.models.schema import EntitySchema, SchemaRegistry
from json_syncer.models.schema import registry as default_registry
from json_syncer.services.classifier import classify_export
from json_syncer.services.relation_resolver import resolve_relation

logger = LoggingConfig.get_logger(__name__)


def _json_default(value: Any) -> Any:
    """Serialize the column types json.dumps does not know about"""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class JsonExporter:
    """Turns entities into dict/list trees shaped like import payloads"""

    def __init__(self, registry: Optional[SchemaRegistry] = None):
        self.registry = registry or default_registry

    def export_tree(
        self,
        instances: Any,
        attributes: Optional[Iterable[str]] = None,
        relations: Optional[Iterable[str]] = None
    ) -> Union[Dict[str, Any], List[Dict[str, Any]]]:
        """
        Export one instance (or a list of instances of the same type).

        Overrides apply to the root instances only; related entities are
        exported with their own type's defaults.

        Raises:
            UnknownAttributeError: If an attribute override is not a plain attribute of the root type
            UndeclaredRelationError: If a relation override is not declared on the root type
        """
        if attributes is not None:
            attributes = tuple(attributes)
        if relations is not None:
            relations = tuple(relations)

        if isinstance(instances, (list, tuple)):
            return [self._export_node(instance, attributes, relations) for instance in instances]
        return self._export_node(instances, attributes, relations)

    def export_to_json(
        self,
        instances: Any,
        attributes: Optional[Iterable[str]] = None,
        relations: Optional[Iterable[str]] = None,
        indent: Optional[int] = None
    ) -> str:
        """Export to JSON text"""
        tree = self.export_tree(instances, attributes=attributes, relations=relations)
        return json.dumps(tree, indent=indent, ensure_ascii=False, default=_json_default)

    def _export_node(
        self,
        instance: Any,
        attributes: Optional[tuple] = None,
        relations: Optional[tuple] = None
    ) -> Dict[str, Any]:
        schema: EntitySchema = self.registry.get(type(instance))
        exportable = classify_export(schema, attributes, relations, self.registry)

        node = {name: getattr(instance, name) for name in exportable.attributes}

        for name in exportable.relations:
            relation = resolve_relation(schema, name, self.registry)
            value = getattr(instance, name)
            if relation.is_plural:
                node[name] = [self._export_node(child) for child in (value or [])]
            else:
                node[name] = self._export_node(value) if value is not None else None

        logger.debug(f"Exported {schema.name} {schema.identity_of(instance)}")
        return node
