"""autotable CLI: operator console for inspecting and reconciling record stores."""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

import typer

from autotable.cli import import_cmd, info, query, schema
from autotable.config import AutotableConfig
from autotable.logging import configure_from_config

app = typer.Typer(
    name="autotable",
    help="autotable CLI: inspect stores, reconcile schemas, query and import records.",
    no_args_is_help=True,
)


class _State:
    """Global CLI state shared across subcommands."""

    data_dir: str = "."
    store: str = "autotable"
    json_output: bool = False


state = _State()


def _version_callback(value: bool) -> None:
    if value:
        try:
            from importlib.metadata import version

            v = version("autotable")
        except Exception:
            v = "unknown"
        print(f"autotable {v}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    data_dir: str = typer.Option(
        ".",
        "--data-dir",
        envvar="AUTOTABLE_DATA_DIR",
        help="Directory holding store files",
    ),
    store: str = typer.Option(
        "autotable",
        "--store",
        envvar="AUTOTABLE_STORE",
        help="Store name, ':memory:' or sqlite:///path",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        envvar="AUTOTABLE_LOG_LEVEL",
        help="Log level for stderr diagnostics (default: WARNING)",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output when supported"),
    version: bool = typer.Option(
        False, "--version", help="Show version", is_eager=True, callback=_version_callback
    ),
) -> None:
    """Global options for all autotable commands."""
    from autotable.storage import parse_storage_target

    try:
        parse_storage_target(store, data_dir)
    except Exception as e:
        raise typer.BadParameter(str(e))

    if log_level:
        configure_from_config(replace(AutotableConfig.from_env(), log_level=log_level.upper()))

    state.data_dir = data_dir
    state.store = store
    state.json_output = json_output
    if ctx.invoked_subcommand is None and not version:
        print(ctx.get_help())
        raise typer.Exit()


# Register subcommand groups
app.add_typer(schema.app, name="schema", help="Inspect and reconcile table schemas")

# Register top-level commands
app.command(name="info")(info.info_cmd)
app.command(name="query")(query.query_cmd)
app.command(name="import")(import_cmd.import_cmd)


def main() -> None:
    """Entry point for the autotable CLI."""
    app()
