"""CLI helpers for building config, stores and managers from global options."""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from autotable.config import AutotableConfig
from autotable.manager import Manager
from autotable.storage import Store, open_store, parse_storage_target


def cli_config() -> AutotableConfig:
    """Environment config overridden by the global --data-dir/--store options."""
    from autotable.cli import state

    return replace(AutotableConfig.from_env(), data_dir=state.data_dir, default_store=state.store)


def store_path() -> str:
    config = cli_config()
    return parse_storage_target(config.default_store, config.data_dir).db_path


def open_cli_store() -> Store:
    config = cli_config()
    return open_store(config.default_store, config)


def manager_for(record_type: type[Any]) -> Manager[Any]:
    return Manager(record_type, cli_config())
