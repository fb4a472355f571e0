"""Tests for RecordCollection bulk ingestion."""

from __future__ import annotations

import pytest

from autotable import Record, RecordCollection
from autotable.errors import ConfigurationError, JsonError
from tests.conftest import Sample


class Batch(RecordCollection[Sample]):
    fresh: list[Sample]
    archived: tuple[Sample, ...] = ()


class Unrelated(Record):
    name: str


class Mismatched(RecordCollection[Unrelated]):
    items: list[Unrelated]


DOCUMENT = """
{
    "fresh": [{"text": "a", "answer": "YES"}, {"text": "b", "unknown": 1}],
    "archived": [{"text": "c"}],
    "note": "ignored"
}
"""


class TestParse:
    def test_groups_parsed(self, config, samples):
        batch = samples.create_collection(DOCUMENT, Batch)

        assert [r.text for r in batch.fresh] == ["a", "b"]
        assert isinstance(batch.archived, tuple)
        assert [r.text for r in batch.archived] == ["c"]
        assert all(r.config is config and not r.is_saved() for r in batch)

    def test_len_and_iteration(self, samples):
        batch = samples.create_collection(DOCUMENT, Batch)
        assert len(batch) == 3
        assert [r.text for r in batch] == ["a", "b", "c"]

    def test_missing_group_is_empty(self, samples):
        batch = samples.create_collection('{"fresh": [{"text": "a"}]}', Batch)
        assert batch.archived == ()
        assert len(batch) == 1

    def test_invalid_document(self, samples):
        with pytest.raises(JsonError):
            samples.create_collection('{"fresh": "nope"}', Batch)

    def test_element_type_must_match_manager(self, simples):
        with pytest.raises(ConfigurationError):
            simples.create_collection('{"items": []}', Mismatched)

    def test_bad_annotation(self, samples):
        class Loose(RecordCollection[Sample]):
            items: dict

        with pytest.raises(ConfigurationError):
            samples.create_collection("{}", Loose)


class TestSave:
    def test_save_cascades(self, samples):
        batch = samples.create_collection(DOCUMENT, Batch)
        batch.save()

        assert all(r.is_saved() for r in batch)
        assert sorted(r.text for r in samples.all()) == ["a", "b", "c"]

    def test_constructed_directly(self, config, samples):
        batch = Batch(fresh=[Sample(text="x").attach(config)])
        batch.save()
        assert samples.count() == 1

    def test_unknown_group(self):
        with pytest.raises(TypeError):
            Batch(others=[])
