"""Bulk JSON ingestion: documents whose array fields hold records."""

from __future__ import annotations

import inspect
from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING, Any, Generic, Optional, TypeVar, get_args, get_origin

from pydantic import ConfigDict, ValidationError, create_model
from pydantic import Field as PydanticField

from autotable.errors import ConfigurationError, JsonError
from autotable.introspect import resolve_annotation
from autotable.model import Record

if TYPE_CHECKING:
    from autotable.manager import Manager

R = TypeVar("R", bound=Record)
CollectionT = TypeVar("CollectionT", bound="RecordCollection[Any]")

_SEQUENCE_ORIGINS = (list, tuple, Sequence)


def _element_type(ann: Any, owner: type, name: str) -> tuple[type[Record], bool]:
    """Return (element type, is_tuple) for ``list[R]``/``tuple[R, ...]`` annotations."""
    origin = get_origin(ann)
    args = get_args(ann)
    if origin in _SEQUENCE_ORIGINS and args:
        if origin is tuple and not (len(args) == 2 and args[1] is Ellipsis):
            args = ()
        element = args[0] if args else None
        if isinstance(element, type) and issubclass(element, Record):
            return element, origin is tuple
    raise ConfigurationError(
        f"Collection '{owner.__name__}' field '{name}' must be list[Record] or "
        f"tuple[Record, ...], got {ann!r}"
    )


class RecordCollection(Generic[R]):
    """Groups of records parsed from one JSON document.

        class Roster(RecordCollection[Person]):
            people: list[Person]
            alumni: tuple[Person, ...] = ()

    Saving cascades to every contained record, one statement at a time.
    """

    def __init__(self, **groups: Sequence[R]) -> None:
        fields = self.collection_fields()
        unknown = set(groups) - set(fields)
        if unknown:
            raise TypeError(
                f"{type(self).__name__}() got unexpected keyword argument(s): "
                f"{', '.join(sorted(unknown))}"
            )
        for name, (_, is_tuple) in fields.items():
            items = groups.get(name, ())
            setattr(self, name, tuple(items) if is_tuple else list(items))

    @classmethod
    def collection_fields(cls) -> dict[str, tuple[type[Record], bool]]:
        fields: dict[str, tuple[type[Record], bool]] = {}
        for klass in reversed(cls.__mro__):
            if klass is RecordCollection or not issubclass(klass, RecordCollection):
                continue
            for name, raw_ann in inspect.get_annotations(klass).items():
                ann = resolve_annotation(raw_ann, klass)
                fields[name] = _element_type(ann, cls, name)
        return fields

    @classmethod
    def parse(
        cls: type[CollectionT], json_text: str | bytes, manager: Manager[Any]
    ) -> CollectionT:
        record_type = manager.record_type
        fields = cls.collection_fields()
        definitions: dict[str, Any] = {}
        for index, (name, (element, _)) in enumerate(fields.items()):
            if not issubclass(record_type, element):
                raise ConfigurationError(
                    f"Collection '{cls.__name__}' field '{name}' holds {element.__name__}, "
                    f"which {record_type.__name__} does not extend"
                )
            definitions[f"group_{index}"] = (
                Optional[list[record_type._pydantic_model]],  # type: ignore[name-defined]
                PydanticField(default=None, alias=name),
            )

        payload_model = create_model(  # type: ignore[call-overload]
            f"_{cls.__name__}Payload",
            __config__=ConfigDict(extra="ignore"),
            **definitions,
        )
        try:
            payload = payload_model.model_validate_json(json_text)
        except (ValidationError, ValueError) as e:
            raise JsonError(f"Cannot parse {cls.__name__} from JSON: {e}") from e

        groups = {}
        for index, name in enumerate(fields):
            items = getattr(payload, f"group_{index}") or []
            groups[name] = [record_type._from_validated(item, manager.config) for item in items]
        return cls(**groups)

    def records(self) -> list[R]:
        return [record for name in self.collection_fields() for record in getattr(self, name)]

    def save(self) -> None:
        """Save every record in order; a failure leaves earlier saves in place."""
        for record in self:
            record.save()

    def __iter__(self) -> Iterator[R]:
        return iter(self.records())

    def __len__(self) -> int:
        return len(self.records())

    def __repr__(self) -> str:
        sizes = ", ".join(
            f"{name}={len(getattr(self, name))}" for name in self.collection_fields()
        )
        return f"{type(self).__name__}({sizes})"
