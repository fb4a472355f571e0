"""Schema reconciliation: create and widen tables to match a record type."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TypeVar

from autotable.errors import SchemaRepairableError, StoreError
from autotable.introspect import Attribute
from autotable.logging import get_logger
from autotable.storage import Store
from autotable.types import IDENTITY_COLUMN

logger = get_logger(__name__)

T = TypeVar("T")


def create_table_sql(table: str, attributes: Sequence[Attribute]) -> str:
    columns = [f"{a.name} {a.storage_type.value}" for a in attributes]
    columns.append(f"{IDENTITY_COLUMN} integer primary key autoincrement")
    return f"CREATE TABLE {table} ({', '.join(columns)})"


def add_column_sql(table: str, attribute: Attribute) -> str:
    return f"ALTER TABLE {table} ADD {attribute.name} {attribute.storage_type.value};"


def where_identity(identity: int) -> str:
    return f"{IDENTITY_COLUMN} = {int(identity)}"


def plan_reconcile(store: Store, table: str, attributes: Sequence[Attribute]) -> list[str]:
    """Statements that would bring ``table`` up to date, without running them."""
    existing = store.table_columns(table)
    if not existing:
        return [create_table_sql(table, attributes)]

    known = {name.lower(): declared for name, declared in existing.items()}
    statements = []
    for attribute in attributes:
        declared = known.get(attribute.name.lower())
        if declared is None:
            statements.append(add_column_sql(table, attribute))
        elif declared != attribute.storage_type.value:
            logger.debug(
                "column_type_drift",
                table=table,
                column=attribute.name,
                stored=declared,
                declared=attribute.storage_type.value,
            )
    return statements


def reconcile(store: Store, table: str, attributes: Sequence[Attribute]) -> list[str]:
    """Create or widen ``table``; returns the statements executed.

    Existing columns are never altered or removed. Any failure is fatal.
    """
    statements = plan_reconcile(store, table, attributes)
    for sql in statements:
        try:
            store.execute(sql)
        except SchemaRepairableError as e:
            raise StoreError("reconcile", f"{table}: {e.detail}") from e
        if sql.startswith("CREATE TABLE"):
            logger.info("table_created", store=store.name, table=table, columns=len(attributes))
        else:
            logger.info("column_added", store=store.name, table=table, sql=sql)
    return statements


def run_with_repair(
    operation: Callable[[], T],
    repair: Callable[[], object],
    *,
    action: str,
) -> T:
    """Run ``operation``; on a schema-lag failure repair once and retry once."""
    try:
        return operation()
    except SchemaRepairableError as e:
        logger.info("schema_repair", action=action, table=e.table, reason=e.detail)
        repair()

    try:
        return operation()
    except SchemaRepairableError as e:
        raise StoreError(action, f"still failing after schema repair: {e.detail}") from e


__all__ = [
    "create_table_sql",
    "add_column_sql",
    "where_identity",
    "plan_reconcile",
    "reconcile",
    "run_with_repair",
]
