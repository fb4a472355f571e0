"""Record base class: identity, lifecycle and JSON round-trips."""

from __future__ import annotations

import json
from enum import Enum
from typing import Annotated, Any, ClassVar, Optional, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, PlainSerializer, create_model
from pydantic import Field as PydanticField

from autotable.codec import decode_row, encode_record
from autotable.config import AutotableConfig
from autotable.errors import JsonError, NotFoundError, StateError
from autotable.introspect import Attribute, annotated_names, introspect
from autotable.schema import reconcile, run_with_repair, where_identity
from autotable.storage import Store, open_store
from autotable.types import _SENTINEL, IDENTITY_COLUMN, UNSAVED_ID, Kind, is_json_codable_type

RecordT = TypeVar("RecordT", bound="Record")


def _enum_by_name(enum_type: type[Enum]) -> Any:
    def validate(value: Any) -> Any:
        if value is None or isinstance(value, enum_type):
            return value
        if isinstance(value, str):
            # Unknown names map to None rather than failing the whole document
            return enum_type.__members__.get(value)
        return value

    return validate


def _json_codable(tp: Any) -> Any:
    def validate(value: Any) -> Any:
        if value is None or isinstance(value, tp):
            return value
        return tp.from_json(json.dumps(value))

    return validate


def _pydantic_annotation(attribute: Attribute) -> Any:
    kind = attribute.kind
    if kind is Kind.TEXT:
        return Optional[str]
    if kind is Kind.BOOLEAN:
        return Optional[bool]
    if kind in (Kind.FLOAT32, Kind.FLOAT64):
        return Optional[float]
    if kind is Kind.ENUM:
        return Annotated[
            Optional[attribute.python_type],
            BeforeValidator(_enum_by_name(attribute.python_type)),
            PlainSerializer(lambda v: None if v is None else v.name),
        ]
    if kind is Kind.OPAQUE:
        if is_json_codable_type(attribute.python_type):
            return Annotated[
                Optional[Any],
                BeforeValidator(_json_codable(attribute.python_type)),
                PlainSerializer(lambda v: None if v is None else json.loads(v.to_json())),
            ]
        return Optional[attribute.python_type]
    return Optional[int]


def _build_pydantic_model(
    model_name: str, attributes: tuple[Attribute, ...]
) -> tuple[type[BaseModel], dict[str, str]]:
    """Build the validation model; fields are keyed internally and aliased to attribute names."""
    definitions: dict[str, Any] = {}
    keys: dict[str, str] = {}
    for index, attribute in enumerate(attributes):
        key = f"field_{index}"
        keys[attribute.name] = key
        if attribute.default_factory is not None:
            field_info = PydanticField(
                default_factory=attribute.default_factory, alias=attribute.name
            )
        elif attribute.default is not _SENTINEL:
            field_info = PydanticField(default=attribute.default, alias=attribute.name)
        else:
            field_info = PydanticField(default=attribute.zero_value(), alias=attribute.name)
        definitions[key] = (_pydantic_annotation(attribute), field_info)

    model = create_model(  # type: ignore[call-overload]
        model_name,
        __config__=ConfigDict(extra="ignore", arbitrary_types_allowed=True),
        **definitions,
    )
    return model, keys


class Record:
    """Base class for persisted records.

    Subclasses declare attributes with annotations; the table is created and
    widened automatically the first time a statement needs it.

        class Person(Record, database="people"):
            name: str
            age: Int32 = 0
    """

    __record_name__: ClassVar[str] = "Record"
    __record_database__: ClassVar[str | None] = None
    __exclude_by_default__: ClassVar[bool] = False
    __record_attributes__: ClassVar[tuple[Attribute, ...]] = ()
    _pydantic_model: ClassVar[type[BaseModel]]
    _pydantic_keys: ClassVar[dict[str, str]]

    def __init_subclass__(
        cls,
        table: str | None = None,
        database: str | None = None,
        exclude_by_default: bool | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init_subclass__(**kwargs)

        cls.__record_name__ = table or cls.__name__
        if database is not None:
            cls.__record_database__ = database
        if exclude_by_default is not None:
            cls.__exclude_by_default__ = bool(exclude_by_default)

        cls.__record_attributes__ = introspect(cls, base=Record, reserved=_RESERVED)
        cls._pydantic_model, cls._pydantic_keys = _build_pydantic_model(
            f"_{cls.__name__}Model", cls.__record_attributes__
        )

    def __init__(self, **data: Any) -> None:
        cls = type(self)
        persisted = {a.name for a in cls.__record_attributes__}
        extra = {k: v for k, v in data.items() if k not in persisted}
        unknown = set(extra) - annotated_names(cls, base=Record)
        if unknown:
            raise TypeError(
                f"{cls.__name__}() got unexpected keyword argument(s): {', '.join(sorted(unknown))}"
            )

        self._init_state(None)
        validated = cls._pydantic_model.model_validate(
            {k: v for k, v in data.items() if k in persisted}
        )
        self._assign(validated)
        for name, value in extra.items():
            setattr(self, name, value)

    def _init_state(self, config: AutotableConfig | None) -> None:
        self._id = UNSAVED_ID
        self._config = config
        self._deleted = False

    def _assign(self, validated: BaseModel) -> None:
        for attribute in self.__record_attributes__:
            value = getattr(validated, self._pydantic_keys[attribute.name])
            if value is None:
                value = attribute.zero_value()
            attribute.set(self, value)

    @classmethod
    def _from_validated(
        cls: type[RecordT], validated: BaseModel, config: AutotableConfig | None = None
    ) -> RecordT:
        record = cls.__new__(cls)
        record._init_state(config)
        record._assign(validated)
        return record

    # --- identity and context ---

    @property
    def id(self) -> int:
        return self._id

    def is_saved(self) -> bool:
        return self._id != UNSAVED_ID

    @property
    def is_deleted(self) -> bool:
        return self._deleted

    @property
    def config(self) -> AutotableConfig:
        if self._config is None:
            self._config = AutotableConfig.from_env()
        return self._config

    def attach(self: RecordT, config: AutotableConfig) -> RecordT:
        self._config = config
        return self

    @property
    def database_name(self) -> str:
        return self.__record_database__ or self.config.default_store

    @classmethod
    def table_name(cls) -> str:
        return cls.__record_name__

    def _store(self) -> Store:
        return open_store(self.database_name, self.config)

    def _check_live(self, operation: str) -> None:
        if self._deleted:
            raise StateError(
                f"Cannot {operation} {type(self).__name__} with id {self._id}: record was deleted"
            )

    def _repair(self, store: Store) -> Any:
        return lambda: reconcile(store, self.table_name(), self.__record_attributes__)

    # --- lifecycle ---

    def save(self) -> None:
        """Insert the record if unsaved, otherwise update its row."""
        self._check_live("save")
        store = self._store()
        table = self.table_name()
        values = encode_record(self, self.__record_attributes__)

        def attempt() -> None:
            if self._id == UNSAVED_ID:
                self._id = store.insert(table, values)
            else:
                store.update(table, values, where_identity(self._id))

        run_with_repair(attempt, self._repair(store), action="save")

    def delete(self) -> None:
        self._check_live("delete")
        if not self.is_saved():
            raise StateError(f"Cannot delete unsaved {type(self).__name__}")
        store = self._store()
        run_with_repair(
            lambda: store.delete(self.table_name(), where_identity(self._id)),
            self._repair(store),
            action="delete",
        )
        self._deleted = True

    def load(self: RecordT, identity: int) -> RecordT:
        self._check_live("load")
        if identity < 0:
            raise ValueError(f"Record identity must be non-negative, got {identity}")
        self._id = identity
        return self.reload()

    def reload(self: RecordT) -> RecordT:
        """Refresh every attribute from the stored row."""
        self._check_live("reload")
        if not self.is_saved():
            raise StateError(f"Cannot reload unsaved {type(self).__name__}")
        store = self._store()
        table = self.table_name()
        columns = [a.name for a in self.__record_attributes__] + [IDENTITY_COLUMN]
        rows = run_with_repair(
            lambda: store.query(table, columns, where=where_identity(self._id)),
            self._repair(store),
            action="reload",
        )
        if not rows:
            raise NotFoundError(type(self).__name__, self._id)
        decode_row(self, rows[0], self.__record_attributes__)
        return self

    # --- JSON ---

    def model_dump(self) -> dict[str, Any]:
        return {a.name: a.get(self) for a in self.__record_attributes__}

    def to_json(self) -> str:
        keys = self._pydantic_keys
        model = self._pydantic_model.model_construct(
            **{keys[name]: value for name, value in self.model_dump().items()}
        )
        try:
            return model.model_dump_json(by_alias=True)
        except (ValueError, TypeError) as e:
            raise JsonError(f"Cannot serialize {type(self).__name__}: {e}") from e

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self.model_dump().items())
        prefix = f"id={self._id}" + (", " if fields else "")
        return f"{self.__class__.__name__}({prefix}{fields})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Record):
            return NotImplemented
        return (
            type(self) is type(other)
            and self._id == other._id
            and self.model_dump() == other.model_dump()
        )


_RESERVED = frozenset(dir(Record)) | {
    "_id",
    "_config",
    "_deleted",
    "_pydantic_model",
    "_pydantic_keys",
}
