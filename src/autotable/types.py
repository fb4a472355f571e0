"""Field descriptor, width markers and storage classifications for autotable."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Generic, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")

UNSAVED_ID = -1
IDENTITY_COLUMN = "_id"

_SENTINEL = object()


class StorageType(str, Enum):
    """Column type tokens used in generated DDL."""

    TEXT = "TEXT"
    BOOLEAN = "BOOLEAN"
    INTEGER = "INTEGER"
    REAL = "REAL"


class Kind(str, Enum):
    """Declared type classification of a persistable attribute."""

    TEXT = "text"
    BOOLEAN = "boolean"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    ENUM = "enum"
    OPAQUE = "opaque"

    @property
    def storage_type(self) -> StorageType:
        return _STORAGE_TYPES[self]

    @property
    def bits(self) -> int | None:
        return _BITS.get(self)


_STORAGE_TYPES = {
    Kind.TEXT: StorageType.TEXT,
    Kind.BOOLEAN: StorageType.BOOLEAN,
    Kind.INT8: StorageType.INTEGER,
    Kind.INT16: StorageType.INTEGER,
    Kind.INT32: StorageType.INTEGER,
    Kind.INT64: StorageType.INTEGER,
    Kind.FLOAT32: StorageType.REAL,
    Kind.FLOAT64: StorageType.REAL,
    Kind.ENUM: StorageType.TEXT,
    Kind.OPAQUE: StorageType.TEXT,
}

_BITS = {
    Kind.INT8: 8,
    Kind.INT16: 16,
    Kind.INT32: 32,
    Kind.INT64: 64,
    Kind.FLOAT32: 32,
    Kind.FLOAT64: 64,
}


@dataclass(frozen=True)
class Width:
    """Annotated metadata fixing the storage width of an int or float attribute."""

    bits: int


Int8 = Annotated[int, Width(8)]
Int16 = Annotated[int, Width(16)]
Int32 = Annotated[int, Width(32)]
Int64 = Annotated[int, Width(64)]
Float32 = Annotated[float, Width(32)]
Float64 = Annotated[float, Width(64)]


@runtime_checkable
class JsonCodable(Protocol):
    """Values that serialize themselves to JSON text.

    Implementations also provide a ``from_json(text)`` classmethod; opaque fields
    whose declared type has both are encoded through them instead of pydantic.
    """

    def to_json(self) -> str: ...


def is_json_codable_type(tp: Any) -> bool:
    return (
        isinstance(tp, type)
        and callable(getattr(tp, "to_json", None))
        and callable(getattr(tp, "from_json", None))
    )


class Field(Generic[T]):
    """Field descriptor for Record attributes.

    ``save=True`` persists the attribute even when it is private or the record
    type is in whitelist mode; ``exclude=True`` never persists it.
    """

    def __init__(
        self,
        default: Any = _SENTINEL,
        *,
        default_factory: Any | None = None,
        save: bool = False,
        exclude: bool = False,
    ) -> None:
        if save and exclude:
            raise ValueError("Field cannot be both save=True and exclude=True")
        self.default = default
        self.default_factory = default_factory
        self.save = save
        self.exclude = exclude
        self.name: str = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, obj: Any, objtype: type | None = None) -> Any:
        if obj is None:
            return self
        if self.name not in obj.__dict__:
            if not self.has_default():
                raise AttributeError(self.name)
            obj.__dict__[self.name] = self.get_default()
        return obj.__dict__[self.name]

    def __set__(self, obj: Any, value: Any) -> None:
        obj.__dict__[self.name] = value

    def has_default(self) -> bool:
        return self.default is not _SENTINEL or self.default_factory is not None

    def get_default(self) -> Any:
        if self.default_factory is not None:
            return self.default_factory()
        if self.default is not _SENTINEL:
            return self.default
        raise ValueError(f"Field '{self.name}' has no default")

    def __repr__(self) -> str:
        flags = []
        if self.save:
            flags.append("save=True")
        if self.exclude:
            flags.append("exclude=True")
        if self.default is not _SENTINEL:
            flags.insert(0, f"default={self.default!r}")
        return f"Field({', '.join(flags)})"
