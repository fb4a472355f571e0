"""autotable info: show store location, tables and row counts."""

from __future__ import annotations

import os
from typing import Any

import typer

from autotable.cli import _exitcodes as ec
from autotable.cli._output import print_error, print_object
from autotable.cli._storage import open_cli_store, store_path
from autotable.errors import StoreError
from autotable.storage import MEMORY, close_store


def info_cmd() -> None:
    """Show store path, tables, and row and column counts."""
    from autotable.cli import state

    json_mode = state.json_output
    db_path = store_path()
    if db_path != MEMORY and not os.path.exists(db_path):
        print_error(f"Store not found: {db_path}")
        raise typer.Exit(ec.DATABASE_ERROR)

    try:
        store = open_cli_store()
    except StoreError as e:
        print_error(f"Cannot open store: {e}")
        raise typer.Exit(ec.DATABASE_ERROR)

    try:
        tables: dict[str, dict[str, int]] = {}
        for table in store.list_tables():
            tables[table] = {
                "rows": store.count(table),
                "columns": len(store.table_columns(table)),
            }
        data: dict[str, Any] = {"store": state.store, "db_path": db_path}
        if db_path != MEMORY:
            data["file_size_bytes"] = os.path.getsize(db_path)
        data["tables"] = tables

        if json_mode:
            print_object(data, json_mode=True)
        else:
            print(f"Store: {state.store}")
            print(f"Database: {db_path}")
            if "file_size_bytes" in data:
                print(f"File size: {int(data['file_size_bytes']):,} bytes")
            print("\nTables:")
            if not tables:
                print("  (none)")
            for name, stats in tables.items():
                print(f"  {name}: {stats['rows']} rows, {stats['columns']} columns")
    except StoreError as e:
        print_error(str(e))
        raise typer.Exit(ec.DATABASE_ERROR)
    finally:
        close_store(store.name)
