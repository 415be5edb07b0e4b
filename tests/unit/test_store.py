from __future__ import annotations

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from geomigrate.common.errors import ConnectionFailed
from geomigrate.common.store import MongoStore


class FakeAdmin:
    def __init__(self, fail: bool):
        self.fail = fail

    def command(self, name):
        if self.fail:
            raise ServerSelectionTimeoutError("no servers")
        return {"ok": 1}


class FakeMongoClient:
    instances: list["FakeMongoClient"] = []

    def __init__(self, uri, fail=False, **kwargs):
        self.uri = uri
        self.kwargs = kwargs
        self.admin = FakeAdmin(fail)
        self.closed = False
        FakeMongoClient.instances.append(self)

    def __getitem__(self, name):
        return {"stations": f"{name}.stations", "stations_geocoded": f"{name}.stations_geocoded"}

    def close(self):
        self.closed = True


def test_connect_pings_and_exposes_collections(settings):
    store = MongoStore(settings, client_factory=FakeMongoClient)
    with store:
        assert store.client.kwargs["serverSelectionTimeoutMS"] == settings.connect_timeout_ms
        assert store.source_collection() == "geo.stations"
        assert store.target_collection() == "geo.stations_geocoded"
        client = store.client
    assert client.closed is True
    assert store.client is None


def test_connect_failure_raises_and_closes_client(settings):
    store = MongoStore(settings, client_factory=lambda uri, **kw: FakeMongoClient(uri, fail=True, **kw))

    with pytest.raises(ConnectionFailed):
        store.connect()

    assert FakeMongoClient.instances[-1].closed is True
    assert store.client is None


def test_collections_require_connection(settings):
    with pytest.raises(ConnectionFailed):
        MongoStore(settings, client_factory=FakeMongoClient).source_collection()
