from enum import Enum
from typing import Any


PRIMITIVE_TYPES = (str, int, float, bool, type(None))


def serialize_result(obj: Any):
    """
    Serialize engine results into JSON-compatible structures.
    Uses to_dict() where the result defines one.
    """

    # Enums before primitives: str-based enums are also str
    if isinstance(obj, Enum):
        return obj.value

    if isinstance(obj, PRIMITIVE_TYPES):
        return obj

    if hasattr(obj, "to_dict"):
        return serialize_result(obj.to_dict())

    if isinstance(obj, (list, tuple)):
        return [serialize_result(item) for item in obj]

    if isinstance(obj, (set, frozenset)):
        return sorted(serialize_result(item) for item in obj)

    if isinstance(obj, dict):
        return {str(k): serialize_result(v) for k, v in obj.items()}

    if hasattr(obj, "__dict__"):
        return {
            key: serialize_result(value)
            for key, value in obj.__dict__.items()
            if not key.startswith("_")
        }

    return str(obj)
