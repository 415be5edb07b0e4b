from __future__ import annotations

import pytest
from pymongo import ReplaceOne

from geomigrate.common.errors import WriteFailed
from geomigrate.common.models import GeocodeResult, SourceRecord
from geomigrate.pipeline.enrich import enrich
from geomigrate.pipeline.writer import BatchWriter
from tests.fakes import FakeCollection


def _record(zipcode: str, place_id: str = "p"):
    source = SourceRecord.from_document({"city": "Town", "state": "ST", "zipcode": zipcode, "country": "US"})
    return enrich(source, GeocodeResult(lat=1.0, lng=2.0, place_id=place_id))


def test_write_inserts_whole_batch_in_one_call():
    target = FakeCollection()
    written = BatchWriter(target).write([_record("1"), _record("2")])

    assert written == 2
    assert len(target.insert_calls) == 1
    assert [doc["zipcode"] for doc in target.insert_calls[0]] == ["1", "2"]


def test_write_rejects_empty_batch():
    target = FakeCollection()
    with pytest.raises(ValueError):
        BatchWriter(target).write([])
    assert target.insert_calls == []


def test_write_wraps_store_errors():
    target = FakeCollection(fail_on_insert_call=1)
    with pytest.raises(WriteFailed) as excinfo:
        BatchWriter(target).write([_record("1")])
    assert excinfo.value.error_code == "WRITE_FAILED"
    assert len(target.insert_calls) == 1


def test_write_does_not_catch_unrelated_errors():
    class Broken:
        def insert_many(self, documents, ordered=True):
            raise RuntimeError("not a store error")

    with pytest.raises(RuntimeError):
        BatchWriter(Broken()).write([_record("1")])


def test_plain_insert_duplicates_on_rewrite():
    target = FakeCollection()
    writer = BatchWriter(target)
    writer.write([_record("1")])
    writer.write([_record("1")])

    assert len(target.docs) == 2


def test_upsert_key_replaces_matching_documents():
    target = FakeCollection()
    writer = BatchWriter(target, upsert_key="zipcode")
    writer.write([_record("1", "old"), _record("2")])
    writer.write([_record("1", "new")])

    assert target.insert_calls == []
    assert len(target.bulk_calls) == 2
    assert len(target.docs) == 2
    assert {doc["zipcode"]: doc["place_id"] for doc in target.docs}["1"] == "new"
    assert target.bulk_calls[1] == [ReplaceOne({"zipcode": "1"}, _record("1", "new").to_document(), upsert=True)]


def test_upsert_key_missing_from_documents_is_a_write_failure():
    target = FakeCollection()

    with pytest.raises(WriteFailed, match="zip"):
        BatchWriter(target, upsert_key="zip").write([_record("1")])

    assert target.bulk_calls == []
