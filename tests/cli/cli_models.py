"""Record types loaded by the CLI tests through --models/--models-path."""

from __future__ import annotations

from enum import Enum

from autotable import Int32, Record


class Mood(Enum):
    CALM = "calm"
    GRUMPY = "grumpy"


class Person(Record):
    name: str
    age: Int32 = 0
    mood: Mood | None = None


class Pet(Record, table="pets"):
    name: str
    species: str = "cat"
