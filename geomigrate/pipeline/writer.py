"""Batch writes of enriched records to the target collection."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from pymongo import ReplaceOne
from pymongo.errors import PyMongoError

from geomigrate.common.errors import WriteFailed
from geomigrate.common.logging import log_event
from geomigrate.common.models import TargetRecord


class BatchWriter:
    """Persist one page of records in a single store call.

    With ``upsert_key`` unset every call is a plain ``insert_many``, so
    re-running a migration against the same target inserts duplicates. Setting
    it (for example to ``"zipcode"``) replaces documents matching that field
    instead.
    """

    def __init__(
        self,
        collection: Any,
        *,
        upsert_key: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.collection = collection
        self.upsert_key = upsert_key
        self.logger = logger or logging.getLogger(__name__)

    def _replace_ops(self, documents: list[dict[str, Any]]) -> list[ReplaceOne]:
        missing = sum(1 for doc in documents if self.upsert_key not in doc)
        if missing:
            raise WriteFailed(f"Upsert key {self.upsert_key!r} missing from {missing} of {len(documents)} records")
        return [ReplaceOne({self.upsert_key: doc[self.upsert_key]}, doc, upsert=True) for doc in documents]

    def write(self, records: Sequence[TargetRecord]) -> int:
        if not records:
            raise ValueError("write() requires at least one record")

        documents = [record.to_document() for record in records]
        log_event(
            self.logger,
            "Uploading data to target collection",
            stage="write",
            event="UPLOAD_START",
            status="ok",
            rows_in=len(documents),
        )
        try:
            if self.upsert_key is None:
                self.collection.insert_many(documents, ordered=True)
            else:
                self.collection.bulk_write(self._replace_ops(documents), ordered=True)
        except PyMongoError as exc:
            raise WriteFailed(f"Upload of {len(documents)} records failed: {exc}") from exc

        log_event(
            self.logger,
            "Data uploaded to target collection",
            stage="write",
            event="UPLOAD_END",
            status="ok",
            rows_out=len(documents),
        )
        return len(documents)
