"""
Validation functions for configuration and command-line input.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .exceptions import ValidationError


def validate_bool(value: Any, field_name: str = "value") -> bool:
    """
    Validate that a value is a real boolean.

    TOML gives us proper booleans, so strings such as "yes" are rejected
    rather than guessed at.
    """
    if not isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a boolean, got {value!r}",
            field_name=field_name,
            value=value
        )
    return value


def validate_optional_string(value: Any, field_name: str = "value") -> Optional[str]:
    """
    Validate an optional string setting.

    Returns:
        The stripped string, or None when the value is missing or blank
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(
            f"{field_name} must be a string, got {value!r}",
            field_name=field_name,
            value=value
        )
    value = value.strip()
    return value or None


def validate_executable_name(name: Any, field_name: str = "executable") -> str:
    """
    Validate a bare executable file name (no directory component).

    Raises:
        ValidationError: If the name is empty or contains a path separator
    """
    if not name or not isinstance(name, str) or not name.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=name
        )
    if "/" in name or "\\" in name:
        raise ValidationError(
            f"{field_name} must be a file name, not a path: {name}",
            field_name=field_name,
            value=name
        )
    return name.strip()


def validate_path_exists(path: Union[str, Path], field_name: str = "path") -> str:
    """
    Validate that a path exists.

    Returns:
        Validated path string

    Raises:
        ValidationError: If path doesn't exist
    """
    path_str = str(path)
    if not os.path.exists(path_str):
        raise ValidationError(
            f"{field_name} does not exist: {path_str}",
            field_name=field_name,
            value=path_str
        )
    return path_str


def validate_enum_choice(
    value: Any,
    choices: List[str],
    field_name: str = "value",
    case_sensitive: bool = True
) -> str:
    """
    Validate that a value is one of the allowed choices.

    Args:
        value: Value to validate
        choices: List of allowed choices
        field_name: Name of the field being validated
        case_sensitive: Whether the comparison should be case-sensitive

    Returns:
        Validated choice, in the spelling used by ``choices``

    Raises:
        ValidationError: If value is not in choices
    """
    str_value = str(value)

    if case_sensitive:
        if str_value not in choices:
            raise ValidationError(
                f"{field_name} must be one of {choices}, got {value}",
                field_name=field_name,
                value=value
            )
        return str_value

    lower_choices = [choice.lower() for choice in choices]
    lower_value = str_value.lower()
    if lower_value not in lower_choices:
        raise ValidationError(
            f"{field_name} must be one of {choices}, got {value}",
            field_name=field_name,
            value=value
        )
    return choices[lower_choices.index(lower_value)]


def validate_env_assignments(assignments: List[str], field_name: str = "env") -> Dict[str, str]:
    """
    Parse ``KEY=VALUE`` strings into an environment mapping.

    The value may be empty and may itself contain '='; later assignments of
    the same key win.

    Raises:
        ValidationError: If an item has no '=' or an empty key
    """
    env: Dict[str, str] = {}
    for item in assignments:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise ValidationError(
                f"{field_name} entries must look like KEY=VALUE, got {item!r}",
                field_name=field_name,
                value=item
            )
        env[key.strip()] = value
    return env
