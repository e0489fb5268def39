"""
Mixins for models that take part in JSON import/export
"""
from json_syncer.core import import_mode


class JsonImportable:
    """
    Gives a model access to its import-mode flag.

    Attribute hooks (e.g. SQLAlchemy ``@validates`` methods) can call
    ``self.is_importing()`` to behave differently while the importer is
    assigning the instance's attributes.
    """

    def is_importing(self) -> bool:
        return import_mode.is_importing(self)
