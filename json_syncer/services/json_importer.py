"""
Recursive JSON importer: materializes a tree of entities from a JSON document
"""
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from sqlalchemy.orm import Session

from json_syncer.core.config import get_settings
from json_syncer.core.database import session_scope
from json_syncer.core.decoder import decode
from json_syncer.core.exceptions import RelationShapeError, UnknownAttributeError
from json_syncer.core.import_mode import importing
from json_syncer.core.logging_config import LoggingConfig
from json_syncer.models.schema import EntitySchema, SchemaRegistry
from json_syncer.models.schema import registry as default_registry
from json_syncer.services.classifier import classify
from json_syncer.services.relation_resolver import (ResolvedRelation,
                                                    resolve_relation)

logger = LoggingConfig.get_logger(__name__)

EntityRef = Union[type, str, EntitySchema]
# (foreign key attribute on the child, parent identifier)
ParentLink = Tuple[str, Any]


class JsonImporter:
    """Creates entities (and their related entities) from JSON trees"""

    def __init__(
        self,
        db: Session,
        registry: Optional[SchemaRegistry] = None,
        atomic: Optional[bool] = None
    ):
        """
        Initialize JSON importer

        Args:
            db: Database session
            registry: Schema registry (defaults to the process-wide one)
            atomic: Commit once per call and roll back on failure instead of
                committing every entity as it is created. Defaults to the
                `import_atomic` setting.
        """
        self.db = db
        self.registry = registry or default_registry
        self.atomic = get_settings().import_atomic if atomic is None else atomic

    def import_tree(
        self,
        entity: EntityRef,
        payload: Any,
        attributes: Optional[Iterable[str]] = None,
        relations: Optional[Iterable[str]] = None
    ) -> Union[Any, List[Any]]:
        """
        Import a JSON object or array of objects as new entities.

        The attribute/relation overrides apply to the root nodes only; nested
        entities always use their own type's defaults. Every call creates new
        rows, nothing is matched against existing data.

        Args:
            entity: Root model class, registered entity name or schema
            payload: JSON text or an already decoded dict/list
            attributes: Importable attributes for the root type (replaces the default)
            relations: Importable relations for the root type (replaces the default)

        Returns:
            The created root instance, or a list of them for an array payload

        Raises:
            DecodingError: If the payload is not valid JSON
            UnknownAttributeError: If a node holds a key its type does not accept, or an
                attribute override is not a plain attribute of the root type
            UndeclaredRelationError: If a relation override is not declared on the root type
            RelationShapeError: If a relation value does not match its arity
        """
        schema = self.registry.get(entity)
        tree = decode(payload)

        if attributes is not None:
            attributes = tuple(attributes)
        if relations is not None:
            relations = tuple(relations)

        previous_context = LoggingConfig.get_context()
        LoggingConfig.set_context(import_root=schema.name)
        try:
            if isinstance(tree, list):
                roots = [self._import_node(schema, node, attributes, relations) for node in tree]
            else:
                roots = [self._import_node(schema, tree, attributes, relations)]

            if self.atomic:
                self.db.commit()
            for root in roots:
                self.db.refresh(root)
        except Exception as e:
            # Entities committed before the failure stay persisted
            self.db.rollback()
            logger.warning(f"Import of {schema.name} aborted: {e}")
            raise
        finally:
            LoggingConfig.clear_context()
            LoggingConfig.set_context(**previous_context)

        logger.info(f"Imported {len(roots)} root {schema.name} entit{'y' if len(roots) == 1 else 'ies'}")
        return roots if isinstance(tree, list) else roots[0]

    def _import_node(
        self,
        schema: EntitySchema,
        node: Dict[str, Any],
        attributes: Optional[Tuple[str, ...]] = None,
        relations: Optional[Tuple[str, ...]] = None,
        parent_link: Optional[ParentLink] = None
    ) -> Any:
        """Validate, create and persist one node, then descend into its relations"""
        importable = classify(schema, attributes, relations, self.registry)

        attribute_keys = []
        relation_keys = []
        for key in node:
            if importable.is_attribute(key):
                attribute_keys.append(key)
            elif importable.is_relation(key):
                relation_keys.append(key)
            else:
                raise UnknownAttributeError(key, schema.name)

        instance = schema.new_instance()
        if parent_link is not None:
            foreign_key, parent_id = parent_link
            setattr(instance, foreign_key, parent_id)

        with importing(instance):
            for key in attribute_keys:
                setattr(instance, key, node[key])
            self._persist(instance)

        logger.debug(f"Created {schema.name} {schema.identity_of(instance)}")

        for key in relation_keys:
            relation = resolve_relation(schema, key, self.registry)
            self._import_relation(schema, instance, relation, node[key])

        if self.atomic and relation_keys:
            # Children were linked by foreign key only; reload the collections on access
            self.db.expire(instance, relation_keys)

        return instance

    def _import_relation(
        self,
        schema: EntitySchema,
        parent: Any,
        relation: ResolvedRelation,
        value: Any
    ) -> List[Any]:
        """Import the children of one relation, linked to the parent's identifier"""
        if value is None:
            return []

        link = (relation.foreign_key, schema.identity_of(parent))

        if not relation.is_plural:
            if not isinstance(value, Mapping):
                raise RelationShapeError(
                    relation.name, schema.name, "an object or null", type(value).__name__
                )
            return [self._import_node(relation.target, dict(value), parent_link=link)]

        if not isinstance(value, (list, tuple)):
            raise RelationShapeError(
                relation.name, schema.name, "an array of objects", type(value).__name__
            )

        children = []
        for item in value:
            if not isinstance(item, Mapping):
                raise RelationShapeError(
                    relation.name, schema.name, "an array of objects",
                    f"an element of type {type(item).__name__}"
                )
            children.append(self._import_node(relation.target, dict(item), parent_link=link))
        return children

    def _persist(self, instance: Any):
        self.db.add(instance)
        if self.atomic:
            self.db.flush()
        else:
            self.db.commit()
            self.db.refresh(instance)


def import_from_json(
    entity: EntityRef,
    payload: Any,
    attributes: Optional[Iterable[str]] = None,
    relations: Optional[Iterable[str]] = None,
    registry: Optional[SchemaRegistry] = None,
    atomic: Optional[bool] = None
) -> Union[Any, List[Any]]:
    """
    Import a JSON tree using a session from the configured database.

    The returned root instances are detached once the session closes: their
    plain attributes are loaded, their relations are not.
    """
    with session_scope() as db:
        return JsonImporter(db, registry=registry, atomic=atomic).import_tree(
            entity, payload, attributes=attributes, relations=relations
        )
