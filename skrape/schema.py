"""Schema translation for extraction requests.

The caller describes the data it wants with Pydantic: a BaseModel subclass,
or any type Pydantic can build a TypeAdapter for (``list[Product]``,
``dict[str, int]``, ...). This module turns that description into a
self-contained JSON Schema for the request body, and validates the
service's result back into the described type.

A plain dict is taken to be JSON Schema already. It is sent after the same
normalization, and results for it are returned without validation.

Normalization removes converter-internal wrapping from the top level:

- ``{"definitions": {"Schema": {...}}}`` becomes the inner definition.
- ``{"$ref": "#/$defs/Product", "$defs": {...}}`` becomes the Product
  definition.
- Local ``$ref`` pointers are inlined so no ``$defs`` container is left,
  unless a definition refers to itself, in which case the refs and the
  container are kept.
"""

from __future__ import annotations

import copy
import logging
from functools import lru_cache
from typing import Any

from pydantic import TypeAdapter, ValidationError

from skrape.exceptions import ResultValidationError

logger = logging.getLogger(__name__)

_DEFINITION_KEYS = ("$defs", "definitions")
_WRAPPED_DEFINITION_NAME = "Schema"


class _RecursiveSchema(Exception):
    """Internal signal that a definition refers to itself."""


@lru_cache(maxsize=128)
def _adapter_for(schema: Any) -> TypeAdapter[Any]:
    return TypeAdapter(schema)


def get_adapter(schema: Any) -> TypeAdapter[Any]:
    """Return a (cached where possible) TypeAdapter for a schema type."""
    try:
        return _adapter_for(schema)
    except TypeError:
        # Unhashable type expressions cannot be cached.
        return TypeAdapter(schema)


def schema_name(schema: Any) -> str:
    """Human-readable name of a schema type, for error messages."""
    if isinstance(schema, dict):
        return str(schema.get("title", "JSON Schema"))
    return getattr(schema, "__name__", None) or repr(schema)


def to_json_schema(schema: Any) -> dict[str, Any]:
    """Translate a schema description into wire JSON Schema.

    Args:
        schema: A Pydantic model class, any type accepted by TypeAdapter,
            or a JSON Schema dict.

    Returns:
        A JSON Schema dict with top-level definition wrappers removed and
        local references inlined.
    """
    if isinstance(schema, dict):
        full_schema = copy.deepcopy(schema)
    else:
        full_schema = get_adapter(schema).json_schema()
    return normalize_json_schema(full_schema)


def normalize_json_schema(full_schema: dict[str, Any]) -> dict[str, Any]:
    """Unwrap and dereference a JSON Schema document.

    Args:
        full_schema: JSON Schema as produced by a converter.

    Returns:
        The normalized schema. The input is not modified.
    """
    unwrapped = _unwrap(full_schema)

    definitions: dict[str, dict[str, Any]] = {}
    for key in _DEFINITION_KEYS:
        for name, definition in full_schema.get(key, {}).items():
            definitions[f"#/{key}/{name}"] = definition

    body = {k: v for k, v in unwrapped.items() if k not in _DEFINITION_KEYS}
    if not definitions:
        return copy.deepcopy(body)

    try:
        return _inline(body, definitions, ())
    except _RecursiveSchema:
        logger.debug(
            "Schema is recursive; keeping $defs and references in payload"
        )
        result = copy.deepcopy(body)
        for key in _DEFINITION_KEYS:
            if key in full_schema:
                result[key] = copy.deepcopy(full_schema[key])
        return result


def _unwrap(full_schema: dict[str, Any]) -> dict[str, Any]:
    """Strip a top-level named-definition wrapper, if there is one."""
    for key in _DEFINITION_KEYS:
        defs = full_schema.get(key)
        if not isinstance(defs, dict):
            continue

        # {"definitions": {"Schema": <def>}} with nothing else describing
        # the top level.
        described = set(full_schema) - {key, "$schema"}
        if not described and _WRAPPED_DEFINITION_NAME in defs:
            return defs[_WRAPPED_DEFINITION_NAME]

        # {"$ref": "#/$defs/<name>", "$defs": {...}}
        ref = full_schema.get("$ref")
        prefix = f"#/{key}/"
        if (
            described == {"$ref"}
            and isinstance(ref, str)
            and ref.startswith(prefix)
            and ref[len(prefix) :] in defs
        ):
            return defs[ref[len(prefix) :]]

    return full_schema


def _inline(
    node: Any,
    definitions: dict[str, dict[str, Any]],
    stack: tuple[str, ...],
) -> Any:
    """Recursively replace local ``$ref`` pointers with their definitions."""
    if isinstance(node, list):
        return [_inline(item, definitions, stack) for item in node]
    if not isinstance(node, dict):
        return node

    ref = node.get("$ref")
    if isinstance(ref, str) and ref in definitions:
        if ref in stack:
            raise _RecursiveSchema(ref)
        resolved = _inline(definitions[ref], definitions, (*stack, ref))
        # Sibling keywords next to $ref (e.g. description) are kept.
        siblings = {
            k: _inline(v, definitions, stack)
            for k, v in node.items()
            if k != "$ref"
        }
        return {**resolved, **siblings}

    return {
        key: _inline(value, definitions, stack) for key, value in node.items()
    }


def validate_result(schema: Any, result: Any) -> Any:
    """Validate an extraction result against the requested schema.

    Args:
        schema: The schema passed to ``extract``.
        result: The decoded ``result`` field from the response.

    Returns:
        The validated value (for example a model instance). Dict schemas
        return ``result`` unchanged.

    Raises:
        ResultValidationError: If the result does not match the schema.
    """
    if isinstance(schema, dict):
        return result

    try:
        return get_adapter(schema).validate_python(result)
    except ValidationError as e:
        # Convert Pydantic ErrorDetails to dict for the exception
        errors_list = [dict(err) for err in e.errors()]
        raise ResultValidationError(
            errors=errors_list,
            result=result,
            schema_name=schema_name(schema),
        ) from e
