"""Shared test fixtures and record types for autotable tests."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum

import pytest

from autotable import AutotableConfig, Float32, Int8, Int16, Int32, Manager, Record
from autotable.storage import close_all_stores

# --- Value types ---


class Answer(Enum):
    YES = "yes"
    NO = "no"


@dataclass
class Point:
    x: int
    y: int


class Tag:
    """Opaque value that serializes itself."""

    def __init__(self, label: str) -> None:
        self.label = label

    def to_json(self) -> str:
        return json.dumps({"label": self.label})

    @classmethod
    def from_json(cls, text: str) -> Tag:
        return cls(json.loads(text)["label"])

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Tag) and other.label == self.label

    def __repr__(self) -> str:
        return f"Tag({self.label!r})"


# --- Record types ---


class Sample(Record):
    text: str
    flag: bool
    tiny: Int8
    small: Int16
    medium: Int32
    big: int
    single: Float32
    double: float
    answer: Answer
    point: Point | None = None
    tag: Tag | None = None
    _secret: str = "hidden"


class Simple(Record, table="Test"):
    stringField: str
    booleanField: bool
    intField: int


class Widened(Record, table="Test"):
    stringField: str
    booleanField: bool
    intField: int
    doubleField: float


# --- Fixtures ---


@pytest.fixture(autouse=True)
def _close_stores():
    yield
    close_all_stores()


@pytest.fixture
def config(tmp_path):
    """Config rooted in a per-test data directory."""
    return AutotableConfig(data_dir=str(tmp_path), default_store="test")


@pytest.fixture
def samples(config):
    return Manager(Sample, config)


@pytest.fixture
def simples(config):
    return Manager(Simple, config)
