"""Shared fixtures for CLI tests."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from typer.testing import CliRunner

from autotable import AutotableConfig, Manager
from autotable.cli import app
from autotable.storage import close_all_stores
from tests.cli.cli_models import Mood, Person

if TYPE_CHECKING:
    from click.testing import Result

STORE = "cli"
MODELS = "tests.cli.cli_models"
MODELS_PATH = os.path.join(os.path.dirname(__file__), "cli_models.py")


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def data_dir(tmp_path):
    return str(tmp_path)


@pytest.fixture
def seeded_dir(data_dir):
    """A data directory whose store holds two Person rows."""
    people = Manager(Person, AutotableConfig(data_dir=data_dir, default_store=STORE))
    for name, age, mood in [("Alice", 30, Mood.CALM), ("Bob", 41, None)]:
        person = people.create()
        person.name = name
        person.age = age
        person.mood = mood
        person.save()
    close_all_stores()
    return data_dir


def invoke(runner: CliRunner, args: list[str], data_dir: str | None = None) -> "Result":
    """Invoke the CLI against the test store in ``data_dir``."""
    if data_dir:
        args = ["--data-dir", data_dir, "--store", STORE] + args
    return runner.invoke(app, args, catch_exceptions=False)
