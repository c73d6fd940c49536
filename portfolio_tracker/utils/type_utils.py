from typing import Any, Union, get_origin, get_args
from pathlib import Path
import types


def convert_type(value: Any, expected_type: type | types.UnionType) -> Any:
    """Convert a value to the expected type with fallback handling and clear errors."""

    if value is None:
        return None

    origin = get_origin(expected_type)

    # Handle Union or `|` (e.g., float | None)
    if origin is Union or origin is types.UnionType:
        for subtype in get_args(expected_type):
            if subtype is type(None):
                continue
            try:
                return convert_type(value, subtype)
            except (TypeError, ValueError):
                continue
        raise ValueError(f"Cannot convert {value!r} to any of {get_args(expected_type)}")

    if expected_type is Any:
        return value

    if expected_type is Path:
        return Path(value)

    if expected_type is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered: str = value.strip().lower()
            if lowered in ("true", "1", "yes", "on"):
                return True
            if lowered in ("false", "0", "no", "off"):
                return False
        raise ValueError(f"Cannot convert {value!r} to bool")

    # Bools are ints in Python; refuse to let True become 1 silently
    if expected_type in (int, float) and isinstance(value, bool):
        raise ValueError(f"Expected {expected_type.__name__}, got bool {value!r}")

    if isinstance(expected_type, type):
        try:
            return expected_type(value)
        except (TypeError, ValueError) as e:
            raise ValueError(
                f"Invalid value: expected {expected_type.__name__}, "
                f"got {value!r} ({type(value).__name__})"
            ) from e

    raise TypeError(f"Expected a callable type, got {expected_type!r}")
