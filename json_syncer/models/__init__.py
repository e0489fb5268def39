"""
Schema descriptors and model helpers
"""
from json_syncer.models.mixins import JsonImportable  # noqa: F401
from json_syncer.models.schema import (Arity, EntitySchema,  # noqa: F401
                                       RelationSpec, SchemaRegistry, register,
                                       registry)

__all__ = [
    "Arity",
    "EntitySchema",
    "RelationSpec",
    "SchemaRegistry",
    "register",
    "registry",
    "JsonImportable",
]
