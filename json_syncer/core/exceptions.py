"""
Errors raised while decoding, validating and importing JSON trees
"""
from typing import Optional


class JsonSyncerError(Exception):
    """Base class for all json-syncer errors"""
    pass


class DecodingError(JsonSyncerError):
    """Input text is not valid JSON, or the payload is not an object/array tree"""
    pass


class UnknownAttributeError(JsonSyncerError):
    """A payload key is neither an importable attribute nor an importable relation"""

    def __init__(self, key: str, entity_name: str):
        self.key = key
        self.entity_name = entity_name
        super().__init__(f'Unknown attribute or relation "{key}" in "{entity_name}".')


class UndeclaredRelationError(JsonSyncerError):
    """A relation name is not declared on the entity type"""

    def __init__(self, relation: str, entity_name: str):
        self.relation = relation
        self.entity_name = entity_name
        super().__init__(f'Relation "{relation}" is not declared on "{entity_name}".')


class RelationShapeError(JsonSyncerError):
    """The JSON value of a relation does not match its declared arity"""

    def __init__(self, relation: str, entity_name: str, expected: str, got: Optional[str] = None):
        self.relation = relation
        self.entity_name = entity_name
        self.expected = expected
        message = f'Relation "{relation}" in "{entity_name}" expects {expected}'
        if got:
            message += f", got {got}"
        super().__init__(message + ".")


class SchemaNotRegisteredError(JsonSyncerError):
    """No schema descriptor is registered for a model or entity name"""
    pass
