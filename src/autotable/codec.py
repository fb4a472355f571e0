"""Per-attribute conversion between Python values and SQLite storage primitives."""

from __future__ import annotations

import math
import struct
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from autotable.errors import CodecError
from autotable.introspect import Attribute
from autotable.types import IDENTITY_COLUMN, Kind, is_json_codable_type


class _Omit:
    """Marker returned by encode() for values that must not be written."""

    _instance: _Omit | None = None

    def __new__(cls) -> _Omit:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "OMIT"

    def __bool__(self) -> bool:
        return False


OMIT = _Omit()


def narrow_float32(value: float) -> float:
    """Round a float to IEEE-754 single precision; overflow becomes +/-inf."""
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def wrap_int(value: int, bits: int) -> int:
    """Truncate to ``bits`` with two's-complement wrap-around."""
    mask = (1 << bits) - 1
    value &= mask
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def _encode_opaque(attribute: Attribute, value: Any) -> str:
    to_json = getattr(value, "to_json", None)
    if callable(to_json):
        try:
            return str(to_json())
        except Exception as e:
            raise CodecError(attribute.name, attribute.python_type, f"to_json failed: {e}") from e

    adapter = attribute.json_adapter
    if adapter is None:
        raise CodecError(attribute.name, attribute.python_type, "type has no JSON representation")
    try:
        return adapter.dump_json(value).decode("utf-8")
    except (ValueError, TypeError) as e:
        raise CodecError(attribute.name, attribute.python_type, str(e)) from e


def _decode_opaque(attribute: Attribute, raw: Any) -> Any:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    tp = attribute.python_type
    if is_json_codable_type(tp):
        try:
            return tp.from_json(raw)
        except Exception as e:
            raise CodecError(attribute.name, tp, f"from_json failed: {e}") from e

    adapter = attribute.json_adapter
    if adapter is None:
        raise CodecError(attribute.name, tp, "type has no JSON representation")
    try:
        return adapter.validate_json(raw)
    except ValueError as e:
        raise CodecError(attribute.name, tp, str(e)) from e


def encode(attribute: Attribute, value: Any) -> Any:
    """Convert an attribute value to a storage primitive, or OMIT."""
    kind = attribute.kind
    if value is None:
        return OMIT if kind is Kind.ENUM else None

    try:
        if kind is Kind.TEXT:
            return value
        if kind is Kind.BOOLEAN:
            return 1 if value else 0
        if kind in (Kind.INT8, Kind.INT16, Kind.INT32, Kind.INT64):
            return int(value)
        if kind is Kind.FLOAT32:
            return narrow_float32(float(value))
        if kind is Kind.FLOAT64:
            return float(value)
    except (TypeError, ValueError) as e:
        raise CodecError(attribute.name, attribute.python_type, str(e)) from e

    if kind is Kind.ENUM:
        if isinstance(value, Enum):
            return value.name
        if isinstance(value, str) and value in attribute.python_type.__members__:
            return value
        raise CodecError(
            attribute.name, attribute.python_type, f"{value!r} is not a member"
        )
    return _encode_opaque(attribute, value)


def decode(attribute: Attribute, raw: Any) -> Any:
    """Convert a storage primitive back to the attribute's declared type."""
    if raw is None:
        return attribute.zero_value()

    kind = attribute.kind
    if kind is Kind.TEXT:
        if isinstance(raw, bytes):
            return raw.decode("utf-8")
        return raw if isinstance(raw, str) else str(raw)
    if kind is Kind.BOOLEAN:
        return raw == 1
    if kind is Kind.ENUM:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return attribute.python_type.__members__.get(str(raw))
    if kind is Kind.OPAQUE:
        return _decode_opaque(attribute, raw)

    if isinstance(raw, bytes):
        raise CodecError(attribute.name, attribute.python_type, "stored value is a blob")
    try:
        if kind is Kind.FLOAT32:
            return narrow_float32(float(raw))
        if kind is Kind.FLOAT64:
            return float(raw)
        return wrap_int(int(raw), kind.bits or 64)
    except (TypeError, ValueError) as e:
        raise CodecError(
            attribute.name, attribute.python_type, f"incompatible stored value {raw!r}"
        ) from e


def encode_record(record: Any, attributes: Iterable[Attribute]) -> dict[str, Any]:
    """Encode every attribute of ``record``, dropping omitted values."""
    values: dict[str, Any] = {}
    for attribute in attributes:
        encoded = encode(attribute, attribute.get(record))
        if encoded is OMIT:
            continue
        values[attribute.name] = encoded
    return values


def decode_row(record: Any, row: Mapping[str, Any], attributes: Iterable[Attribute]) -> None:
    """Assign every attribute of ``record`` from ``row``.

    Column names match case-insensitively; absent columns decode as NULL.
    """
    by_name = {key.lower(): row[key] for key in row.keys() if key != IDENTITY_COLUMN}
    for attribute in attributes:
        attribute.set(record, decode(attribute, by_name.get(attribute.name.lower())))
