"""OpenAPI vendor extensions understood by the generator and their parsers."""

from __future__ import annotations

from typing import Any

EXT_PROP_GO_TYPE = "x-go-type"
EXT_PROP_GO_IMPORT = "x-go-type-import"
EXT_GO_NAME = "x-go-name"
EXT_GO_TYPE_NAME = "x-go-type-name"
EXT_PROP_GO_JSON_IGNORE = "x-go-json-ignore"
EXT_PROP_OMIT_EMPTY = "x-omitempty"
EXT_PROP_EXTRA_TAGS = "x-oapi-codegen-extra-tags"
EXT_ENUM_VAR_NAMES = "x-enum-varnames"
EXT_ENUM_NAMES = "x-enumNames"
EXT_DEPRECATION_REASON = "x-deprecated-reason"


class ExtensionError(TypeError):
    """Raised when an extension value has the wrong type."""


def _fail(value: Any) -> ExtensionError:
    return ExtensionError(f"failed to convert type: {type(value).__name__}")


def ext_string(value: Any) -> str:
    """Return the extension value as a string."""
    if not isinstance(value, str):
        raise _fail(value)
    return value


def ext_type_name(value: Any) -> str:
    """Parse an ``x-go-type-name`` value."""
    return ext_string(value)


def ext_parse_go_field_name(value: Any) -> str:
    """Parse an ``x-go-name`` value."""
    return ext_string(value)


def _ext_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise _fail(value)
    return value


def ext_parse_omit_empty(value: Any) -> bool:
    """Parse an ``x-omitempty`` value."""
    return _ext_bool(value)


def ext_extra_tags(value: Any) -> dict[str, str]:
    """Parse an ``x-oapi-codegen-extra-tags`` mapping of tag names to values."""
    if not isinstance(value, dict) or not all(isinstance(key, str) for key in value):
        raise _fail(value)
    return {key: ext_string(item) for key, item in value.items()}


def ext_parse_go_json_ignore(value: Any) -> bool:
    """Parse an ``x-go-json-ignore`` value."""
    return _ext_bool(value)


def ext_parse_enum_var_names(value: Any) -> list[str]:
    """Parse an ``x-enum-varnames`` list."""
    if not isinstance(value, list):
        raise _fail(value)
    return [ext_string(item) for item in value]


def ext_parse_deprecation_reason(value: Any) -> str:
    """Parse an ``x-deprecated-reason`` value."""
    return ext_string(value)