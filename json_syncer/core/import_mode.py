"""
Per-instance "currently importing" state.

The flag is a depth counter stored on the instance itself, so nested
imports of the same instance stack and unrelated instances never see it.
"""
from contextlib import contextmanager
from typing import Any, Iterator

_DEPTH_ATTR = "_json_import_depth"


def begin_import(instance: Any) -> None:
    """Mark an instance as being imported"""
    setattr(instance, _DEPTH_ATTR, getattr(instance, _DEPTH_ATTR, 0) + 1)


def end_import(instance: Any) -> None:
    """Leave one level of import mode for an instance"""
    depth = getattr(instance, _DEPTH_ATTR, 0)
    if depth <= 1:
        if hasattr(instance, _DEPTH_ATTR):
            delattr(instance, _DEPTH_ATTR)
    else:
        setattr(instance, _DEPTH_ATTR, depth - 1)


def is_importing(instance: Any) -> bool:
    """Whether the instance is inside an import scope"""
    return getattr(instance, _DEPTH_ATTR, 0) > 0


@contextmanager
def importing(instance: Any) -> Iterator[Any]:
    """Hold import mode on an instance for the duration of the block"""
    begin_import(instance)
    try:
        yield instance
    finally:
        end_import(instance)
