"""
Declarative shape descriptors and the validator that enforces them.

A model reply is only trusted once it has passed `validate()`. The validator
builds a fresh dict holding the declared fields only; undeclared keys are
dropped. Any violation rejects the whole candidate, with one exception:
numbers on a field marked `clamp=True` (scores) are pulled back into range
instead.
"""

from __future__ import annotations

import copy
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger(__name__)

_TYPE_NAMES = {str: "string", float: "number", bool: "boolean", list: "array", dict: "object"}


class ValidationFailure(ValueError):
    """Raised when a candidate does not match its shape. `errors` lists every problem found."""

    def __init__(self, shape_name: str, errors: list[str]) -> None:
        super().__init__(f"{shape_name}: {'; '.join(errors)}")
        self.shape_name = shape_name
        self.errors = errors


@dataclass(frozen=True)
class Field:
    """
    Constraints for one field.

    `type` is one of str, float (any JSON number), bool, list or dict.
    `choices` are compared case-insensitively and stored lower-case.
    """

    type: type
    required: bool = True
    nullable: bool = False
    choices: Optional[frozenset] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    clamp: bool = False
    max_items: Optional[int] = None
    items: Optional["Field"] = None
    shape: Optional["Shape"] = None
    default: Any = None


@dataclass(frozen=True)
class Shape:
    """A named set of fields describing one JSON object."""

    name: str
    fields: dict = field(default_factory=dict)


@dataclass
class _Run:
    errors: list = field(default_factory=list)
    clamped: list = field(default_factory=list)


def validate(candidate: Any, shape: Shape) -> dict:
    """
    Check `candidate` against `shape` and return the cleaned object.

    Raises ValidationFailure listing every field that failed.
    """
    run = _Run()
    cleaned = _check_object(candidate, shape, "", run)
    if run.errors:
        raise ValidationFailure(shape.name, run.errors)
    if run.clamped:
        logger.info("%s: clamped %s into range", shape.name, ", ".join(run.clamped))
    return cleaned


def describe(shape: Shape) -> str:
    """Render a shape as the JSON template shown to the model."""
    lines = _describe_object(shape, indent=1)
    return "{\n" + ",\n".join(lines) + "\n}"


# ── checks ────────────────────────────────────────────────────

def _check_object(value: Any, shape: Shape, path: str, run: _Run) -> dict:
    if not isinstance(value, dict):
        run.errors.append(f"{path or shape.name} must be an object (got {_type_name(value)})")
        return {}

    cleaned: dict = {}
    for name, spec in shape.fields.items():
        where = f"{path}.{name}" if path else name
        if name not in value:
            if spec.required:
                run.errors.append(f"missing field '{where}'")
            else:
                cleaned[name] = copy.deepcopy(spec.default)
            continue
        cleaned[name] = _check_value(value[name], spec, where, run)
    return cleaned


def _check_value(value: Any, spec: Field, where: str, run: _Run) -> Any:
    if value is None:
        if not spec.nullable:
            run.errors.append(f"'{where}' must not be null")
        return None

    if spec.type is float:
        return _check_number(value, spec, where, run)

    if spec.type is bool:
        if not isinstance(value, bool):
            run.errors.append(f"'{where}' must be a boolean (got {_type_name(value)})")
        return value

    if spec.type is str:
        if not isinstance(value, str):
            run.errors.append(f"'{where}' must be a string (got {_type_name(value)})")
            return value
        if spec.choices is not None:
            normalised = value.strip().lower()
            if normalised not in spec.choices:
                run.errors.append(
                    f"'{where}' must be one of {sorted(spec.choices)!r} (got {value!r})"
                )
            return normalised
        return value

    if spec.type is list:
        if not isinstance(value, list):
            run.errors.append(f"'{where}' must be an array (got {_type_name(value)})")
            return value
        if spec.max_items is not None and len(value) > spec.max_items:
            run.errors.append(f"'{where}' has {len(value)} items (max {spec.max_items})")
        if spec.items is None:
            return list(value)
        return [_check_value(item, spec.items, f"{where}[{i}]", run) for i, item in enumerate(value)]

    if spec.type is dict:
        if spec.shape is None:
            if not isinstance(value, dict):
                run.errors.append(f"'{where}' must be an object (got {_type_name(value)})")
            return value
        return _check_object(value, spec.shape, where, run)

    raise TypeError(f"Unsupported field type for '{where}': {spec.type!r}")


def _check_number(value: Any, spec: Field, where: str, run: _Run) -> Any:
    # bool is an int subclass; a JSON true is never a score
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        run.errors.append(f"'{where}' must be a number (got {_type_name(value)}: {value!r})")
        return value
    if isinstance(value, float) and not math.isfinite(value):
        run.errors.append(f"'{where}' must be finite (got {value!r})")
        return value

    low, high = spec.min_value, spec.max_value
    out_of_range = (low is not None and value < low) or (high is not None and value > high)
    if not out_of_range:
        return value
    if spec.clamp:
        run.clamped.append(f"'{where}'={value!r}")
        if low is not None and value < low:
            return low
        return high
    run.errors.append(f"'{where}' must be between {low} and {high} (got {value!r})")
    return value


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    for py_type in (bool, str, dict, list):
        if isinstance(value, py_type):
            return _TYPE_NAMES[py_type]
    if isinstance(value, (int, float)):
        return "number"
    return type(value).__name__


# ── prompt rendering ──────────────────────────────────────────

def _describe_object(shape: Shape, indent: int) -> list[str]:
    pad = "  " * indent
    return [f'{pad}"{name}": {_describe_value(spec, indent)}' for name, spec in shape.fields.items()]


def _describe_value(spec: Field, indent: int) -> str:
    if spec.type is dict and spec.shape is not None:
        inner = _describe_object(spec.shape, indent + 1)
        text = "{\n" + ",\n".join(inner) + "\n" + "  " * indent + "}"
    elif spec.type is list:
        element = _describe_value(spec.items, indent) if spec.items is not None else "…"
        limit = f" (max {spec.max_items})" if spec.max_items is not None else ""
        text = f"[{element}]{limit}"
    elif spec.choices is not None:
        text = " | ".join(f'"{c}"' for c in sorted(spec.choices))
    elif spec.type is float:
        if spec.min_value is not None and spec.max_value is not None:
            text = f"number {spec.min_value:g}-{spec.max_value:g}"
        else:
            text = "number"
    else:
        text = _TYPE_NAMES.get(spec.type, "value")
    if spec.nullable:
        text += " or null"
    return text
