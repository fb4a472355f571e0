"""Type-parameterized query layer over one record type."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, Sequence, TypeVar

from pydantic import ValidationError

from autotable.config import AutotableConfig
from autotable.errors import JsonError, NotFoundError
from autotable.logging import get_logger
from autotable.model import Record
from autotable.schema import reconcile, run_with_repair
from autotable.storage import Store, close_store, open_store
from autotable.types import IDENTITY_COLUMN

if TYPE_CHECKING:
    from autotable.collection import RecordCollection

logger = get_logger(__name__)

R = TypeVar("R", bound=Record)
C = TypeVar("C", bound="RecordCollection[Any]")


class Manager(Generic[R]):
    """Create, find and select records of one type.

    Every selection first scans identities and then loads each record
    individually, so rows deleted concurrently are skipped.
    """

    def __init__(self, record_type: type[R], config: AutotableConfig | None = None) -> None:
        if not (isinstance(record_type, type) and issubclass(record_type, Record)):
            raise TypeError(f"Manager requires a Record subclass, got {record_type!r}")
        self.record_type = record_type
        self.config = config or AutotableConfig.from_env()

    @property
    def table(self) -> str:
        return self.record_type.table_name()

    @property
    def database_name(self) -> str:
        return self.record_type.__record_database__ or self.config.default_store

    @property
    def store(self) -> Store:
        return open_store(self.database_name, self.config)

    def _repair(self, store: Store) -> Any:
        return lambda: reconcile(store, self.table, self.record_type.__record_attributes__)

    # --- construction ---

    def create(self, json_text: str | bytes | None = None) -> R:
        """A new unsaved record, optionally parsed from a JSON object."""
        if json_text is None:
            return self.record_type().attach(self.config)
        try:
            validated = self.record_type._pydantic_model.model_validate_json(json_text)
        except (ValidationError, ValueError) as e:
            raise JsonError(f"Cannot parse {self.record_type.__name__} from JSON: {e}") from e
        return self.record_type._from_validated(validated, self.config)

    def create_collection(self, json_text: str | bytes, collection_type: type[C]) -> C:
        """Parse a JSON object whose array fields hold records of this type."""
        return collection_type.parse(json_text, self)

    # --- lookup ---

    def find(self, identity: int) -> R:
        return self.create().load(identity)

    def find_by_unique_key(self, column: str, key: Any) -> R:
        names = {a.name.lower() for a in self.record_type.__record_attributes__}
        names.add(IDENTITY_COLUMN.lower())
        if column.lower() not in names:
            raise ValueError(f"'{column}' is not a column of {self.record_type.__name__}")
        records = self.where(f"{column} = ?", [key])
        if not records:
            raise NotFoundError(
                self.record_type.__name__, detail=f"No {self.table} with {column} = {key!r}"
            )
        return records[0]

    def _select_ids(
        self,
        where: str | None = None,
        args: Sequence[Any] | None = None,
        *,
        group_by: str | None = None,
        having: str | None = None,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[int]:
        store = self.store
        rows = run_with_repair(
            lambda: store.query(
                self.table,
                [IDENTITY_COLUMN],
                where=where,
                args=args,
                group_by=group_by,
                having=having,
                order_by=order_by,
                limit=limit,
            ),
            self._repair(store),
            action="select",
        )
        return [row[0] for row in rows]

    def _records(self, identities: Sequence[int]) -> list[R]:
        records = []
        for identity in identities:
            try:
                records.append(self.find(identity))
            except NotFoundError:
                logger.warning("record_vanished", table=self.table, id=identity)
        return records

    def all(self) -> list[R]:
        return self.where(None)

    def where(
        self,
        predicate: str | None,
        args: Sequence[Any] | None = None,
        *,
        group_by: str | None = None,
        having: str | None = None,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[R]:
        """Records matching a raw SQL predicate with ``?`` placeholders."""
        identities = self._select_ids(
            predicate, args, group_by=group_by, having=having, order_by=order_by, limit=limit
        )
        return self._records(identities)

    def last(self) -> R:
        """The last row of an unordered scan; not necessarily the newest insert."""
        identities = self._select_ids()
        if not identities:
            raise NotFoundError(self.record_type.__name__, detail=f"table {self.table} is empty")
        return self.find(identities[-1])

    def load_record(self, position: int) -> R:
        """The record at 0-based ``position`` of an unordered scan."""
        identities = self._select_ids()
        if position < 0 or position >= len(identities):
            raise NotFoundError(
                self.record_type.__name__,
                detail=f"No {self.table} at position {position} (count {len(identities)})",
            )
        return self.find(identities[position])

    def count(self) -> int:
        return len(self._select_ids())

    # --- maintenance ---

    def delete_all(self) -> int:
        store = self.store
        return run_with_repair(
            lambda: store.delete(self.table),
            self._repair(store),
            action="delete_all",
        )

    def drop_table(self) -> None:
        self.store.drop_table(self.table)

    def reconcile(self) -> list[str]:
        return reconcile(self.store, self.table, self.record_type.__record_attributes__)

    def close_store(self) -> bool:
        return close_store(self.database_name)

    def __repr__(self) -> str:
        return f"Manager({self.record_type.__name__}, store={self.database_name!r})"
