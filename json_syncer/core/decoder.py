"""
Turns raw import input into a canonical dict/list tree
"""
import json
from collections.abc import Mapping
from typing import Any, Dict, List, Union

from json_syncer.core.exceptions import DecodingError

JsonTree = Union[Dict[str, Any], List[Dict[str, Any]]]


def decode(payload: Any) -> JsonTree:
    """
    Decode an import payload.

    Args:
        payload: JSON text (str/bytes) or an already decoded mapping/sequence

    Returns:
        A dict for an object root, a list of dicts for an array root

    Raises:
        DecodingError: If the text is not valid JSON or the root is not an
            object or an array of objects
    """
    if isinstance(payload, (str, bytes, bytearray)):
        try:
            payload = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodingError(f"Invalid JSON payload: {e}") from e

    if isinstance(payload, Mapping):
        return dict(payload)

    if isinstance(payload, (list, tuple)):
        for index, item in enumerate(payload):
            if not isinstance(item, Mapping):
                raise DecodingError(
                    f"Array element {index} must be an object, got {type(item).__name__}"
                )
        return [dict(item) for item in payload]

    raise DecodingError(
        f"Import payload must be a JSON object or array, got {type(payload).__name__}"
    )
