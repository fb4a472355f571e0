"""autotable import: ingest records from a JSON document."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer

from autotable.cli import _exitcodes as ec
from autotable.cli._loader import load_models, resolve_type
from autotable.cli._output import print_error, print_object
from autotable.cli._storage import manager_for
from autotable.collection import RecordCollection
from autotable.errors import AutotableError, JsonError
from autotable.manager import Manager
from autotable.model import Record
from autotable.storage import close_all_stores


def _collection_type(record_type: type[Record], field: str) -> type[RecordCollection[Any]]:
    """A one-field collection type nesting ``record_type`` under ``field``."""
    return type(
        f"{record_type.__name__}Import",
        (RecordCollection,),
        {"__annotations__": {field: list[record_type]}},  # type: ignore[valid-type]
    )


def _parse(manager: Manager[Any], text: str, field: str | None) -> list[Record]:
    if field:
        return list(manager.create_collection(text, _collection_type(manager.record_type, field)))
    try:
        document = json.loads(text)
    except ValueError as e:
        raise JsonError(f"Invalid JSON: {e}") from e
    if isinstance(document, list):
        return [manager.create(json.dumps(item)) for item in document]
    return [manager.create(text)]


def import_cmd(
    input_path: str = typer.Option(..., "--input", help="JSON file to ingest"),
    models: Optional[str] = typer.Option(None, "--models", help="Python import path for models"),
    models_path: Optional[str] = typer.Option(
        None, "--models-path", help="Filesystem path to models"
    ),
    type_name: str = typer.Option(..., "--type", help="Record type (table or class name)"),
    field: Optional[str] = typer.Option(
        None, "--field", help="Object key holding an array of records"
    ),
) -> None:
    """Ingest a JSON object, an array of objects, or an array nested under --field."""
    from autotable.cli import state

    if not models and not models_path:
        print_error("One of --models or --models-path is required")
        raise typer.Exit(ec.USAGE_ERROR)

    path = Path(input_path)
    if not path.is_file():
        print_error(f"Input file not found: {input_path}")
        raise typer.Exit(ec.USAGE_ERROR)

    try:
        record_type = resolve_type(load_models(models, models_path), type_name)
    except KeyError as e:
        print_error(str(e.args[0]))
        raise typer.Exit(ec.NOT_FOUND)
    except Exception as e:
        print_error(f"Failed to load models: {e}")
        raise typer.Exit(ec.GENERAL_ERROR)

    manager = manager_for(record_type)
    try:
        records = _parse(manager, path.read_text(encoding="utf-8"), field)
    except JsonError as e:
        print_error(str(e))
        raise typer.Exit(ec.IMPORT_FAILURE)

    saved: list[int] = []
    try:
        for record in records:
            record.save()
            saved.append(record.id)
    except AutotableError as e:
        print_error(f"Import stopped after {len(saved)} record(s): {e}")
        raise typer.Exit(ec.DATABASE_ERROR)
    finally:
        close_all_stores()

    print_object(
        {"table": manager.table, "imported": len(saved), "ids": saved},
        json_mode=state.json_output,
    )
