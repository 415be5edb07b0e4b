"""Skip/limit pagination over the source collection with per-record fail-soft enrichment."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, replace
from typing import Any

from geomigrate.common.errors import GeocodingFailed
from geomigrate.common.logging import log_event
from geomigrate.common.models import SourceRecord, TargetRecord
from geomigrate.pipeline.enrich import enrich
from geomigrate.pipeline.geocode import GeocodingClient
from geomigrate.pipeline.writer import BatchWriter


@dataclass(frozen=True)
class PaginationCursor:
    page_size: int
    offset: int = 0
    exhausted: bool = False

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            raise ValueError("page_size must be positive")
        if self.offset < 0:
            raise ValueError("offset must not be negative")

    def advance(self) -> "PaginationCursor":
        return replace(self, offset=self.offset + self.page_size)

    def exhaust(self) -> "PaginationCursor":
        return replace(self, exhausted=True)


@dataclass
class RunStats:
    fetch_calls: int = 0
    pages_processed: int = 0
    records_seen: int = 0
    processed: int = 0
    failed: int = 0
    batches_written: int = 0
    final_offset: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


class PaginationDriver:
    """Fetch pages, enrich records one at a time and write each page's successes.

    Records are geocoded strictly in fetch order; the geocoder's fixed delay is
    the only throttle against the provider's rate limit. A record whose
    geocoding fails permanently is logged and dropped. Store errors, write
    failures included, propagate and end the run.
    """

    def __init__(
        self,
        geocoder: GeocodingClient,
        *,
        page_size: int,
        upsert_key: str | None = None,
        max_pages: int | None = None,
        dry_run: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        if max_pages is not None and max_pages < 1:
            raise ValueError("max_pages must be at least 1")
        self.geocoder = geocoder
        self.page_size = page_size
        self.upsert_key = upsert_key
        self.max_pages = max_pages
        self.dry_run = dry_run
        self.logger = logger or logging.getLogger(__name__)

    def _fetch_page(self, source_store: Any, cursor: PaginationCursor) -> list[dict[str, Any]]:
        page = list(source_store.find({}).skip(cursor.offset).limit(cursor.page_size))
        log_event(
            self.logger,
            f"fetched {len(page)} records",
            stage="fetch",
            event="PAGE_FETCH",
            status="ok",
            offset=cursor.offset,
            page_size=cursor.page_size,
            rows_out=len(page),
        )
        return page

    def _enrich_page(self, page: list[dict[str, Any]], stats: RunStats) -> list[TargetRecord]:
        records: list[TargetRecord] = []
        for document in page:
            stats.records_seen += 1
            source = SourceRecord.from_document(document)
            log_event(
                self.logger,
                f"count: {stats.records_seen}",
                stage="enrich",
                event="RECORD_START",
                status="ok",
            )
            if not source.city:
                stats.failed += 1
                log_event(
                    self.logger,
                    f"record {stats.records_seen} has no city, skipping",
                    level=logging.WARNING,
                    stage="enrich",
                    event="RECORD_FAIL",
                    status="skipped",
                    error_code="MISSING_CITY",
                )
                continue
            try:
                geocode = self.geocoder.resolve(source.city, source.country)
            except GeocodingFailed as exc:
                stats.failed += 1
                log_event(
                    self.logger,
                    f"Failed to process record {stats.records_seen}: {exc}",
                    level=logging.ERROR,
                    stage="enrich",
                    event="RECORD_FAIL",
                    status="error",
                    attempt=exc.attempts,
                    error_code=exc.error_code,
                )
                continue
            records.append(enrich(source, geocode))
        return records

    def _write_page(self, writer: BatchWriter, records: list[TargetRecord], cursor: PaginationCursor) -> int:
        if not records:
            log_event(
                self.logger,
                "no records enriched on this page, skipping write",
                level=logging.WARNING,
                stage="write",
                event="PAGE_SKIP_WRITE",
                status="skipped",
                offset=cursor.offset,
            )
            return 0
        if self.dry_run:
            log_event(
                self.logger,
                f"dry run, not writing {len(records)} records",
                stage="write",
                event="PAGE_SKIP_WRITE",
                status="dry_run",
                offset=cursor.offset,
                rows_in=len(records),
            )
            return len(records)
        return writer.write(records)

    def run(self, source_store: Any, target_store: Any, stats: RunStats | None = None) -> RunStats:
        writer = BatchWriter(target_store, upsert_key=self.upsert_key, logger=self.logger)
        cursor = PaginationCursor(page_size=self.page_size)
        stats = stats if stats is not None else RunStats()

        while not cursor.exhausted:
            page = self._fetch_page(source_store, cursor)
            stats.fetch_calls += 1
            if not page:
                cursor = cursor.exhaust()
                log_event(self.logger, "No more data to fetch", stage="fetch", event="NO_MORE_DATA", status="ok")
                continue

            records = self._enrich_page(page, stats)
            written = self._write_page(writer, records, cursor)
            if written and not self.dry_run:
                stats.batches_written += 1
            stats.processed += written

            cursor = cursor.advance()
            stats.final_offset = cursor.offset
            stats.pages_processed += 1
            if self.max_pages is not None and stats.pages_processed >= self.max_pages:
                log_event(
                    self.logger,
                    f"stopping after {stats.pages_processed} pages",
                    stage="fetch",
                    event="MAX_PAGES_REACHED",
                    status="ok",
                    offset=cursor.offset,
                )
                break

        return stats
