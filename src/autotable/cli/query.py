"""autotable query: list decoded records of one type."""

from __future__ import annotations

import json
from typing import Any, Optional

import typer

from autotable.cli import _exitcodes as ec
from autotable.cli._loader import load_models, resolve_type
from autotable.cli._output import print_error, print_table
from autotable.cli._storage import manager_for
from autotable.errors import AutotableError
from autotable.model import Record
from autotable.storage import close_all_stores
from autotable.types import IDENTITY_COLUMN


def record_row(record: Record) -> dict[str, Any]:
    """JSON-safe view of a record: identity first, then attributes."""
    return {IDENTITY_COLUMN: record.id, **json.loads(record.to_json())}


def query_cmd(
    models: Optional[str] = typer.Option(None, "--models", help="Python import path for models"),
    models_path: Optional[str] = typer.Option(
        None, "--models-path", help="Filesystem path to models"
    ),
    type_name: str = typer.Option(..., "--type", help="Record type (table or class name)"),
    where: Optional[str] = typer.Option(None, "--where", help="Raw SQL predicate"),
    order_by: Optional[str] = typer.Option(None, "--order-by", help="Raw SQL ORDER BY clause"),
    limit: Optional[int] = typer.Option(None, "--limit", help="Max records to show"),
) -> None:
    """List records of one type, optionally filtered by a SQL predicate."""
    from autotable.cli import state

    if not models and not models_path:
        print_error("One of --models or --models-path is required")
        raise typer.Exit(ec.USAGE_ERROR)
    if limit is not None and limit < 0:
        print_error("--limit must be non-negative")
        raise typer.Exit(ec.USAGE_ERROR)

    try:
        record_type = resolve_type(load_models(models, models_path), type_name)
    except KeyError as e:
        print_error(str(e.args[0]))
        raise typer.Exit(ec.NOT_FOUND)
    except Exception as e:
        print_error(f"Failed to load models: {e}")
        raise typer.Exit(ec.GENERAL_ERROR)

    try:
        records = manager_for(record_type).where(where, order_by=order_by, limit=limit)
        rows = [record_row(r) for r in records]
    except AutotableError as e:
        print_error(str(e))
        raise typer.Exit(ec.DATABASE_ERROR)
    finally:
        close_all_stores()

    headers = [IDENTITY_COLUMN] + [a.name for a in record_type.__record_attributes__]
    print_table(headers, [[row.get(h) for h in headers] for row in rows], json_mode=state.json_output)
