"""Scoped MongoDB connection shared by the reader and the writer."""

from __future__ import annotations

from types import TracebackType
from typing import Any, Callable

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from geomigrate.common.config_loader import Settings
from geomigrate.common.errors import ConnectionFailed


class MongoStore:
    def __init__(
        self,
        settings: Settings,
        *,
        client_factory: Callable[..., Any] = MongoClient,
    ) -> None:
        self.settings = settings
        self.client_factory = client_factory
        self.client: Any | None = None

    def connect(self) -> "MongoStore":
        client = None
        try:
            client = self.client_factory(
                self.settings.mongo_uri,
                serverSelectionTimeoutMS=self.settings.connect_timeout_ms,
            )
            client.admin.command("ping")
        except PyMongoError as exc:
            if client is not None:
                client.close()
            raise ConnectionFailed(f"Could not connect to store: {exc}") from exc
        self.client = client
        return self

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
            self.client = None

    def __enter__(self) -> "MongoStore":
        if self.client is None:
            self.connect()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _database(self):
        if self.client is None:
            raise ConnectionFailed("Store is not connected")
        return self.client[self.settings.database_name]

    def source_collection(self) -> Collection:
        return self._database()[self.settings.source_collection]

    def target_collection(self) -> Collection:
        return self._database()[self.settings.target_collection]
