"""Tests for attribute introspection and class-creation validation."""

from __future__ import annotations

from typing import Annotated, ClassVar, Optional

import pytest

from autotable import Field, Record, Width, attributes_of
from autotable.errors import ConfigurationError
from autotable.types import Kind, StorageType
from tests.conftest import Answer, Point, Sample, Simple


def _by_name(record_type):
    return {a.name: a for a in attributes_of(record_type)}


class TestClassification:
    def test_declaration_order(self):
        names = [a.name for a in attributes_of(Sample)]
        assert names == [
            "text",
            "flag",
            "tiny",
            "small",
            "medium",
            "big",
            "single",
            "double",
            "answer",
            "point",
            "tag",
        ]

    def test_kinds(self):
        attrs = _by_name(Sample)
        assert attrs["text"].kind is Kind.TEXT
        assert attrs["flag"].kind is Kind.BOOLEAN
        assert attrs["tiny"].kind is Kind.INT8
        assert attrs["small"].kind is Kind.INT16
        assert attrs["medium"].kind is Kind.INT32
        assert attrs["big"].kind is Kind.INT64
        assert attrs["single"].kind is Kind.FLOAT32
        assert attrs["double"].kind is Kind.FLOAT64
        assert attrs["answer"].kind is Kind.ENUM
        assert attrs["point"].kind is Kind.OPAQUE

    def test_storage_types(self):
        attrs = _by_name(Sample)
        assert attrs["text"].storage_type is StorageType.TEXT
        assert attrs["flag"].storage_type is StorageType.BOOLEAN
        assert attrs["tiny"].storage_type is StorageType.INTEGER
        assert attrs["big"].storage_type is StorageType.INTEGER
        assert attrs["single"].storage_type is StorageType.REAL
        assert attrs["answer"].storage_type is StorageType.TEXT
        assert attrs["tag"].storage_type is StorageType.TEXT

    def test_python_types(self):
        attrs = _by_name(Sample)
        assert attrs["answer"].python_type is Answer
        assert attrs["point"].python_type is Point

    def test_optional_marks_nullable(self):
        class Maybe(Record):
            count: Optional[int]
            ratio: float | None

        attrs = _by_name(Maybe)
        assert attrs["count"].kind is Kind.INT64
        assert attrs["count"].nullable
        assert attrs["count"].zero_value() is None
        assert attrs["ratio"].kind is Kind.FLOAT64
        assert attrs["ratio"].nullable

    def test_field_annotation_unwrapped(self):
        class Wrapped(Record):
            name: Field[str] = Field(default="x")

        attr = _by_name(Wrapped)["name"]
        assert attr.kind is Kind.TEXT
        assert attr.initial_value() == "x"

    def test_attributes_cached_on_class(self):
        assert attributes_of(Sample) is Sample.__record_attributes__

    def test_attributes_of_rejects_plain_class(self):
        with pytest.raises(ConfigurationError):
            attributes_of(Point)


class TestZeroValues:
    def test_zero_values(self):
        attrs = _by_name(Sample)
        assert attrs["text"].zero_value() is None
        assert attrs["flag"].zero_value() is False
        assert attrs["tiny"].zero_value() == 0
        assert attrs["double"].zero_value() == 0.0
        assert attrs["answer"].zero_value() is None
        assert attrs["point"].zero_value() is None

    def test_initial_value_prefers_default(self):
        class Defaults(Record):
            count: int = 7
            items: Field[list] = Field(default_factory=list)

        attrs = _by_name(Defaults)
        assert attrs["count"].initial_value() == 7
        assert attrs["items"].initial_value() == []
        assert attrs["items"].initial_value() is not attrs["items"].initial_value()


class TestInclusion:
    def test_private_names_skipped(self):
        assert "_secret" not in _by_name(Sample)

    def test_classvar_skipped(self):
        class WithClassVar(Record):
            counter: ClassVar[int] = 0
            name: str

        assert list(_by_name(WithClassVar)) == ["name"]

    def test_save_marker_includes_private(self):
        class Marked(Record):
            _hidden: Field[str] = Field(default="h", save=True)
            shown: str

        assert list(_by_name(Marked)) == ["_hidden", "shown"]

    def test_exclude_marker(self):
        class Excluding(Record):
            kept: str
            cache: Field[str] = Field(default="", exclude=True)

        assert list(_by_name(Excluding)) == ["kept"]

    def test_whitelist_mode(self):
        class Whitelisted(Record, exclude_by_default=True):
            ignored: int
            chosen: Field[int] = Field(default=0, save=True)

        assert list(_by_name(Whitelisted)) == ["chosen"]

    def test_whitelist_mode_inherited(self):
        class Parent(Record, exclude_by_default=True):
            chosen: Field[int] = Field(default=0, save=True)

        class Child(Parent):
            extra: int

        assert list(_by_name(Child)) == ["chosen"]

    def test_save_and_exclude_conflict(self):
        with pytest.raises(ValueError):
            Field(save=True, exclude=True)


class TestInheritance:
    def test_base_fields_first(self):
        class Base(Record):
            a: str

        class Derived(Base):
            b: int

        assert [a.name for a in attributes_of(Derived)] == ["a", "b"]
        assert Derived.table_name() == "Derived"

    def test_redeclared_field_keeps_position(self):
        class Base(Record):
            a: str
            b: str

        class Derived(Base):
            a: int

        attrs = attributes_of(Derived)
        assert [a.name for a in attrs] == ["a", "b"]
        assert attrs[0].kind is Kind.INT64

    def test_table_keyword(self):
        assert Simple.table_name() == "Test"


class TestValidation:
    def test_case_insensitive_duplicates(self):
        with pytest.raises(ConfigurationError, match="differ only by case"):

            class Dupe(Record):
                name: str
                Name: str

    def test_identity_column_name(self):
        with pytest.raises(ConfigurationError):

            class Clash(Record):
                _ID: Field[int] = Field(default=0, save=True)

    def test_reserved_member(self):
        with pytest.raises(ConfigurationError, match="reserved"):

            class Shadow(Record):
                save: int

    def test_width_on_text(self):
        with pytest.raises(ConfigurationError):

            class BadWidth(Record):
                name: Annotated[str, Width(8)]

    def test_unsupported_width(self):
        with pytest.raises(ConfigurationError, match="unsupported integer width"):

            class OddWidth(Record):
                count: Annotated[int, Width(12)]

    def test_unresolvable_annotation(self):
        with pytest.raises(ConfigurationError, match="cannot resolve"):

            class Unknown(Record):
                thing: DoesNotExist  # noqa: F821
