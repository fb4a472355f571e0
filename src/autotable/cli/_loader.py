"""Model loader: import a Python module and discover its Record types."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

from autotable.model import Record


def load_models(
    models: str | None = None,
    models_path: str | None = None,
) -> dict[str, type[Record]]:
    """Load Record subclasses from a Python module.

    Args:
        models: Dotted Python import path (e.g. 'myapp.models')
        models_path: Filesystem path to a Python file

    Returns:
        Record types keyed by table name
    """
    if models_path:
        path = Path(models_path).resolve()
        if not path.exists():
            raise FileNotFoundError(f"Models path not found: {models_path}")
        # Add parent to sys.path so import works
        parent = str(path.parent)
        if parent not in sys.path:
            sys.path.insert(0, parent)
        module = importlib.import_module(path.stem)
    elif models:
        module = importlib.import_module(models)
    else:
        raise ValueError("One of --models or --models-path is required")

    record_types: dict[str, type[Record]] = {}
    for attr_name in dir(module):
        obj = getattr(module, attr_name)
        if isinstance(obj, type) and issubclass(obj, Record) and obj is not Record:
            record_types[obj.table_name()] = obj
    return record_types


def resolve_type(record_types: dict[str, type[Record]], name: str) -> type[Record]:
    """Find a loaded type by table name or class name."""
    if name in record_types:
        return record_types[name]
    for record_type in record_types.values():
        if record_type.__name__ == name:
            return record_type
    known = ", ".join(sorted(record_types)) or "(none)"
    raise KeyError(f"Unknown record type '{name}'. Known types: {known}")
