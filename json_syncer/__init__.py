"""
json-syncer: import and export trees of SQLAlchemy entities as JSON
"""
from json_syncer.core.decoder import decode  # noqa: F401
from json_syncer.core.exceptions import (DecodingError,  # noqa: F401
                                         JsonSyncerError, RelationShapeError,
                                         SchemaNotRegisteredError,
                                         UndeclaredRelationError,
                                         UnknownAttributeError)
from json_syncer.core.import_mode import (begin_import,  # noqa: F401
                                          end_import, importing, is_importing)
from json_syncer.models import (Arity, EntitySchema,  # noqa: F401
                                JsonImportable, RelationSpec, SchemaRegistry,
                                register, registry)
from json_syncer.services.json_exporter import JsonExporter  # noqa: F401
from json_syncer.services.json_importer import (JsonImporter,  # noqa: F401
                                                import_from_json)

__version__ = "0.1.0"

__all__ = [
    "decode",
    "JsonSyncerError",
    "DecodingError",
    "UnknownAttributeError",
    "UndeclaredRelationError",
    "RelationShapeError",
    "SchemaNotRegisteredError",
    "begin_import",
    "end_import",
    "importing",
    "is_importing",
    "Arity",
    "EntitySchema",
    "RelationSpec",
    "SchemaRegistry",
    "register",
    "registry",
    "JsonImportable",
    "JsonImporter",
    "JsonExporter",
    "import_from_json",
]
