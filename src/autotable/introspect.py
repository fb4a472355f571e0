"""Field introspection: the static attribute descriptor table of a record type."""

from __future__ import annotations

import enum
import inspect
import sys
import types as _pytypes
import typing
from collections.abc import Callable, Collection
from dataclasses import dataclass
from functools import cached_property
from typing import Annotated, Any, ClassVar, get_args, get_origin

from pydantic import PydanticSchemaGenerationError, TypeAdapter

from autotable.errors import ConfigurationError
from autotable.types import (
    _SENTINEL,
    IDENTITY_COLUMN,
    Field,
    Kind,
    StorageType,
    Width,
)

_INT_KINDS = {None: Kind.INT64, 8: Kind.INT8, 16: Kind.INT16, 32: Kind.INT32, 64: Kind.INT64}
_FLOAT_KINDS = {None: Kind.FLOAT64, 32: Kind.FLOAT32, 64: Kind.FLOAT64}

_ZERO_VALUES: dict[Kind, Any] = {
    Kind.TEXT: None,
    Kind.BOOLEAN: False,
    Kind.INT8: 0,
    Kind.INT16: 0,
    Kind.INT32: 0,
    Kind.INT64: 0,
    Kind.FLOAT32: 0.0,
    Kind.FLOAT64: 0.0,
    Kind.ENUM: None,
    Kind.OPAQUE: None,
}


@dataclass(frozen=True)
class Attribute:
    """One persistable attribute: name, classification and accessor pair."""

    name: str
    kind: Kind
    annotation: Any
    python_type: Any = None
    nullable: bool = False
    default: Any = _SENTINEL
    default_factory: Callable[[], Any] | None = None

    @property
    def storage_type(self) -> StorageType:
        return self.kind.storage_type

    def get(self, record: Any) -> Any:
        return getattr(record, self.name)

    def set(self, record: Any, value: Any) -> None:
        setattr(record, self.name, value)

    def zero_value(self) -> Any:
        if self.nullable:
            return None
        return _ZERO_VALUES[self.kind]

    def has_default(self) -> bool:
        return self.default is not _SENTINEL or self.default_factory is not None

    def initial_value(self) -> Any:
        if self.default_factory is not None:
            return self.default_factory()
        if self.default is not _SENTINEL:
            return self.default
        return self.zero_value()

    @cached_property
    def json_adapter(self) -> TypeAdapter[Any] | None:
        """pydantic adapter for opaque values, or None if the type has no JSON schema."""
        try:
            return TypeAdapter(self.python_type)
        except (PydanticSchemaGenerationError, TypeError):
            return None


def resolve_annotation(ann: Any, owner: type) -> Any:
    """Evaluate string annotations in the namespace of the defining module."""
    if not isinstance(ann, str):
        return ann
    module = sys.modules.get(owner.__module__, None)
    ns = dict(vars(module)) if module else {}
    ns.setdefault(owner.__name__, owner)
    try:
        return eval(ann, ns)  # noqa: S307
    except Exception as e:
        raise ConfigurationError(
            f"Record '{owner.__name__}': cannot resolve annotation {ann!r}: {e}"
        ) from e


def _is_classvar(ann: Any) -> bool:
    return ann is ClassVar or get_origin(ann) is ClassVar


def _split_optional(ann: Any) -> tuple[Any, bool]:
    """Strip None from a Union, returning (inner, nullable)."""
    origin = get_origin(ann)
    if origin is typing.Union or origin is _pytypes.UnionType:
        args = get_args(ann)
        rest = tuple(a for a in args if a is not type(None))
        if len(rest) == len(args):
            return ann, False
        if len(rest) == 1:
            return rest[0], True
        return typing.Union[rest], True  # type: ignore[return-value]
    return ann, False


def classify(ann: Any, *, owner: str = "?", name: str = "?") -> tuple[Kind, Any, bool]:
    """Classify a resolved annotation into (kind, python_type, nullable)."""
    if get_origin(ann) is Field:
        args = get_args(ann)
        ann = args[0] if args else Any

    inner, nullable = _split_optional(ann)
    width: int | None = None
    python_type = inner
    if get_origin(inner) is Annotated:
        base, *metadata = get_args(inner)
        widths = [m for m in metadata if isinstance(m, Width)]
        if widths:
            width = widths[-1].bits
        inner, extra_nullable = _split_optional(base)
        nullable = nullable or extra_nullable
        if widths:
            python_type = inner

    if inner is bool:
        kind = Kind.BOOLEAN
    elif inner is int:
        if width not in _INT_KINDS:
            raise ConfigurationError(
                f"Record '{owner}' field '{name}': unsupported integer width {width}"
            )
        return _INT_KINDS[width], int, nullable
    elif inner is float:
        if width not in _FLOAT_KINDS:
            raise ConfigurationError(
                f"Record '{owner}' field '{name}': unsupported float width {width}"
            )
        return _FLOAT_KINDS[width], float, nullable
    elif inner is str:
        kind = Kind.TEXT
    elif isinstance(inner, type) and issubclass(inner, enum.Enum):
        kind = Kind.ENUM
        python_type = inner
    else:
        kind = Kind.OPAQUE

    if width is not None:
        raise ConfigurationError(
            f"Record '{owner}' field '{name}': Width({width}) only applies to int or float"
        )
    return kind, python_type, nullable


def introspect(
    cls: type,
    *,
    base: type = object,
    reserved: Collection[str] = (),
) -> tuple[Attribute, ...]:
    """Compute the persistable attributes of ``cls`` in declaration order.

    Annotations are collected from every class in the MRO below ``base``, base
    classes first; a subclass redeclaring a name replaces it in place.
    """
    whitelist = bool(getattr(cls, "__exclude_by_default__", False))
    collected: dict[str, Attribute] = {}

    for klass in reversed(cls.__mro__):
        if klass is base or not issubclass(klass, base):
            continue
        for name, raw_ann in inspect.get_annotations(klass).items():
            ann = resolve_annotation(raw_ann, klass)
            if _is_classvar(ann):
                continue
            if name in reserved:
                raise ConfigurationError(
                    f"Record '{cls.__name__}' field '{name}' shadows a reserved Record attribute"
                )

            desc = klass.__dict__.get(name, _SENTINEL)
            is_field = isinstance(desc, Field)
            save = is_field and desc.save
            exclude = is_field and desc.exclude
            persistable = (save or (not whitelist and not name.startswith("_"))) and not exclude
            if not persistable:
                collected.pop(name, None)
                continue

            kind, python_type, nullable = classify(ann, owner=cls.__name__, name=name)
            default: Any = _SENTINEL
            default_factory = None
            if is_field:
                default = desc.default
                default_factory = desc.default_factory
            elif desc is not _SENTINEL:
                default = desc

            collected[name] = Attribute(
                name=name,
                kind=kind,
                annotation=ann,
                python_type=python_type,
                nullable=nullable,
                default=default,
                default_factory=default_factory,
            )

    seen: dict[str, str] = {}
    for name in collected:
        lowered = name.lower()
        if lowered == IDENTITY_COLUMN.lower():
            raise ConfigurationError(
                f"Record '{cls.__name__}' field '{name}' collides with the identity column"
            )
        if lowered in seen:
            raise ConfigurationError(
                f"Record '{cls.__name__}' fields '{seen[lowered]}' and '{name}' "
                f"differ only by case"
            )
        seen[lowered] = name

    return tuple(collected.values())


def attributes_of(cls: type) -> tuple[Attribute, ...]:
    """The attribute table computed for ``cls`` when it was created."""
    attributes = getattr(cls, "__record_attributes__", None)
    if attributes is None:
        raise ConfigurationError(f"'{cls.__name__}' is not a Record type")
    return attributes


def annotated_names(cls: type, *, base: type = object) -> set[str]:
    """Every annotated name below ``base``, persistable or not."""
    names: set[str] = set()
    for klass in cls.__mro__:
        if klass is base or not issubclass(klass, base):
            continue
        names.update(inspect.get_annotations(klass))
    return names
