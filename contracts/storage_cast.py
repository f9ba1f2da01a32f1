"""Casting helpers from wire-format shovel level records to Arrow/storage format.

The storage boundary is intentionally strict: any schema/type mismatch should be
surfaced early (tests/CI) rather than silently drifting.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

import pyarrow as pa


class StorageCastError(ValueError):
    """Raised when a wire record cannot be cast to the Arrow storage schema."""


def _parse_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        txt = value.strip()
        if txt == "":
            return None
        try:
            dec = Decimal(txt)
        except InvalidOperation:
            return None
        if dec != dec.to_integral_value():
            return None
        return int(dec)
    return None


def _parse_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, str):
        txt = value.strip()
        if txt == "":
            return None
        try:
            return float(txt)
        except ValueError:
            return None
    return None


def _int_bounds(field_type: pa.DataType) -> tuple[int, int]:
    bits = field_type.bit_width
    if pa.types.is_signed_integer(field_type):
        return -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    return 0, (1 << bits) - 1


def _empty_to_none_if_needed(value: Any, field_type: pa.DataType) -> Any:
    # For non-string fields, "" should become None
    if isinstance(value, str) and value.strip() == "":
        if pa.types.is_string(field_type) or pa.types.is_large_string(field_type):
            return value
        return None
    return value


def cast_value(value: Any, field_type: pa.DataType) -> Any:
    """
    Cast a single value to match an Arrow field type.
    Returns Python values suitable for pa.Table.from_pylist(..., schema=...).
    """
    value = _empty_to_none_if_needed(value, field_type)
    if value is None:
        return None

    # Strings
    if pa.types.is_string(field_type) or pa.types.is_large_string(field_type):
        return str(value)

    # Integers
    if pa.types.is_integer(field_type):
        parsed = _parse_int(value)
        if parsed is None:
            raise StorageCastError(f"Cannot cast {value!r} to int")
        low, high = _int_bounds(field_type)
        if not low <= parsed <= high:
            raise StorageCastError(f"Value {parsed} out of range for {field_type} ({low}..{high})")
        return parsed

    # Floats
    if pa.types.is_floating(field_type):
        parsed_f = _parse_float(value)
        if parsed_f is None:
            raise StorageCastError(f"Cannot cast {value!r} to float")
        return parsed_f

    # Fallback: allow if it's already compatible
    return value


def cast_for_storage(wire_record: Mapping[str, Any], schema: pa.Schema) -> dict[str, Any]:
    """
    Cast a wire-format record into a storage-format record that matches the given Arrow schema.
    Unknown fields are ignored (schema is the contract for storage).
    Missing fields are set to None.
    """
    out: dict[str, Any] = {}
    for field in schema:
        try:
            out[field.name] = cast_value(wire_record.get(field.name), field.type)
        except StorageCastError as exc:
            raise StorageCastError(f"{field.name}: {exc}") from exc
    return out
