"""autotable schema: inspect, reconcile and drop tables."""

from __future__ import annotations

import json
from typing import Any, Optional

import typer
import yaml

from autotable.cli import _exitcodes as ec
from autotable.cli._loader import load_models
from autotable.cli._output import print_error, print_object, print_table
from autotable.cli._storage import manager_for, open_cli_store
from autotable.errors import AutotableError, StoreError
from autotable.schema import plan_reconcile
from autotable.storage import close_all_stores

app = typer.Typer(no_args_is_help=True)


@app.command(name="show")
def schema_show_cmd(
    table: str = typer.Option(..., "--table", help="Table name"),
    fmt: str = typer.Option("json", "--format", help="Output format: json or yaml"),
) -> None:
    """Show the stored column map of a table."""
    if fmt not in ("json", "yaml"):
        print_error("--format must be 'json' or 'yaml'")
        raise typer.Exit(ec.USAGE_ERROR)

    try:
        store = open_cli_store()
        columns = store.table_columns(table)
    except StoreError as e:
        print_error(str(e))
        raise typer.Exit(ec.DATABASE_ERROR)
    finally:
        close_all_stores()

    if not columns:
        print_error(f"Table not found: {table}")
        raise typer.Exit(ec.NOT_FOUND)

    _write_output({"table": table, "columns": columns}, fmt)


@app.command(name="sync")
def schema_sync_cmd(
    models: Optional[str] = typer.Option(None, "--models", help="Python import path for models"),
    models_path: Optional[str] = typer.Option(
        None, "--models-path", help="Filesystem path to models"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print statements without running them"),
) -> None:
    """Create or widen the table of every record type in the models module."""
    from autotable.cli import state

    if not models and not models_path:
        print_error("One of --models or --models-path is required")
        raise typer.Exit(ec.USAGE_ERROR)

    try:
        record_types = load_models(models, models_path)
    except Exception as e:
        print_error(f"Failed to load models: {e}")
        raise typer.Exit(ec.GENERAL_ERROR)

    rows: list[list[Any]] = []
    try:
        for name, record_type in sorted(record_types.items()):
            manager = manager_for(record_type)
            if dry_run:
                statements = plan_reconcile(
                    manager.store, manager.table, record_type.__record_attributes__
                )
            else:
                statements = manager.reconcile()
            for sql in statements:
                rows.append([name, manager.database_name, sql])
    except AutotableError as e:
        print_error(str(e))
        raise typer.Exit(ec.DATABASE_ERROR)
    finally:
        close_all_stores()

    if state.json_output:
        print_table(["table", "store", "statement"], rows, json_mode=True)
        return
    if not rows:
        print("Schema is up to date.")
        return
    prefix = "Would run" if dry_run else "Ran"
    print(f"{prefix} {len(rows)} statement(s):")
    for table, _, sql in rows:
        print(f"  [{table}] {sql}")


@app.command(name="drop")
def schema_drop_cmd(
    table: str = typer.Option(..., "--table", help="Table to drop"),
    yes: bool = typer.Option(False, "--yes", help="Confirm the drop"),
) -> None:
    """Drop a table and every row in it."""
    from autotable.cli import state

    if not yes:
        print_error(f"Refusing to drop '{table}' without --yes")
        raise typer.Exit(ec.SCHEMA_DROP_SAFETY)

    try:
        store = open_cli_store()
        existed = store.table_exists(table)
        store.drop_table(table)
    except StoreError as e:
        print_error(str(e))
        raise typer.Exit(ec.DATABASE_ERROR)
    finally:
        close_all_stores()

    if not existed:
        print_error(f"Table not found: {table}")
        raise typer.Exit(ec.NOT_FOUND)
    print_object({"dropped": table}, json_mode=state.json_output)


def _write_output(data: dict[str, Any], fmt: str) -> None:
    if fmt == "yaml":
        content = yaml.dump(data, default_flow_style=False, sort_keys=False)
    else:
        content = json.dumps(data, indent=2, default=str)
    print(content)
