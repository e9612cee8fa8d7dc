"""
Tool name validation and argument sanitization.

Everything here runs before a tool call reaches the stream. A bad tool
name is rejected outright; arguments are filtered down to identifier keys
with scalar values.

Usage:
    from context7_mcp.sanitize import sanitize_arguments, validate_tool_name

    name = validate_tool_name("get-library-docs")
    args = sanitize_arguments({"library_id": "react", "opts": {"x": 1}})
    # {"library_id": "react"}
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Dict, Mapping

from context7_mcp.errors import ToolValidationError

logger = logging.getLogger(__name__)

# Starts with a letter, then letters, digits or hyphens
TOOL_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9-]*$")

# Identifier: letters, digits or underscore, not starting with a digit
ARGUMENT_KEY_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def validate_tool_name(name: Any) -> str:
    """
    Check a tool name before any network interaction.

    Args:
        name: Candidate tool name

    Returns:
        The name, unchanged

    Raises:
        ToolValidationError: If the name does not match TOOL_NAME_PATTERN
    """
    if not isinstance(name, str):
        raise ToolValidationError("tool name", f"expected a string, got {type(name).__name__}")
    if not TOOL_NAME_PATTERN.fullmatch(name):
        raise ToolValidationError("tool name", f"{name[:64]!r} is not a valid tool name")
    return name


def _is_encodable(value: str) -> bool:
    # Lone surrogates survive as str but have no UTF-8 encoding
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _is_allowed_value(value: Any) -> bool:
    if isinstance(value, str):
        return _is_encodable(value)
    if value is None or isinstance(value, (bool, int)):
        return True
    if isinstance(value, float):
        # NaN and infinities have no JSON encoding
        return math.isfinite(value)
    return False


def sanitize_arguments(arguments: Any) -> Dict[str, Any]:
    """
    Filter tool arguments down to what is safe to put on the wire.

    Keys must match ARGUMENT_KEY_PATTERN. Values must be str (encodable
    as UTF-8), int, float, bool or None; nested mappings and sequences
    are dropped entirely rather than sanitized recursively.

    Args:
        arguments: Candidate arguments mapping (None means no arguments)

    Returns:
        A new dict with only the allowed entries

    Raises:
        ToolValidationError: If arguments is not a mapping

    Example:
        >>> sanitize_arguments({"a": "x", "bad key!": 1, "nested": {"y": 1}, "b": 5})
        {'a': 'x', 'b': 5}
    """
    if arguments is None:
        return {}
    if not isinstance(arguments, Mapping):
        raise ToolValidationError(
            "arguments", f"expected a mapping, got {type(arguments).__name__}"
        )

    sanitized: Dict[str, Any] = {}
    for key, value in arguments.items():
        if not isinstance(key, str) or not ARGUMENT_KEY_PATTERN.fullmatch(key):
            logger.debug(f"Dropping argument with disallowed key: {key!r}")
            continue
        if not _is_allowed_value(value):
            logger.debug(f"Dropping argument {key!r} with {type(value).__name__} value")
            continue
        sanitized[key] = value

    return sanitized
