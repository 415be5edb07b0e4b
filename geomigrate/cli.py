"""CLI entrypoint for the geocoding migration."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Callable

from geomigrate.common.config_loader import Settings, load_settings
from geomigrate.common.constants import EXIT_RUN_FAILED, EXIT_STARTUP_FAIL, EXIT_SUCCESS
from geomigrate.common.errors import ConfigError, ConnectionFailed, PipelineError
from geomigrate.common.http import HttpClient, TimeoutConfig
from geomigrate.common.ids import generate_run_id
from geomigrate.common.logging import build_logger, log_event
from geomigrate.common.store import MongoStore
from geomigrate.pipeline.geocode import GeocodingClient, RetryPolicy
from geomigrate.pipeline.paginate import PaginationDriver, RunStats
from geomigrate.pipeline.reports import write_run_summary


def positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from exc
    if parsed < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {parsed}")
    return parsed


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--config", default=None, help="YAML tuning file")
    parser.add_argument("--env-file", default=None)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--log-dir", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    parser.add_argument("--summary-path", default=None)
    parser.add_argument("--max-pages", type=positive_int, default=None)
    parser.add_argument("--dry-run", action="store_true")
    parser.add_argument("--strict", action="store_true", help="exit non-zero when the run fails")
    return parser.parse_args(argv)


def build_driver(
    settings: Settings,
    http_client: HttpClient,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> PaginationDriver:
    geocoder = GeocodingClient(
        http_client,
        settings.api_key,
        base_url=settings.geocode_base_url,
        timeout=TimeoutConfig(connect=settings.timeout_seconds, read=settings.timeout_seconds),
        retry_policy=RetryPolicy(max_attempts=settings.max_attempts, delay_seconds=settings.delay_seconds),
        logger=logger,
    )
    return PaginationDriver(
        geocoder,
        page_size=settings.page_size,
        upsert_key=settings.upsert_key,
        max_pages=args.max_pages,
        dry_run=args.dry_run,
        logger=logger,
    )


def run_command(
    args: argparse.Namespace,
    *,
    settings: Settings | None = None,
    store_factory: Callable[[Settings], Any] = MongoStore,
    http_client_factory: Callable[..., HttpClient] = HttpClient,
) -> int:
    run_id = args.run_id or generate_run_id()
    log_dir = Path(args.log_dir) if args.log_dir else None
    logger = build_logger(run_id, log_dir=log_dir, level=args.log_level)
    log_event(logger, "run start", run_id=run_id, stage="run", event="RUN_START", status="ok")

    if settings is None:
        try:
            settings = load_settings(
                config_path=Path(args.config) if args.config else None,
                env_file=Path(args.env_file) if args.env_file else None,
            )
        except ConfigError as exc:
            log_event(
                logger,
                f"invalid configuration: {exc}",
                level=logging.ERROR,
                run_id=run_id,
                stage="run",
                event="CONFIG_FAIL",
                status="error",
                error_code=exc.error_code,
            )
            return EXIT_STARTUP_FAIL

    failure_exit_code = EXIT_RUN_FAILED if args.strict else settings.failure_exit_code

    store = store_factory(settings)
    try:
        store.connect()
    except ConnectionFailed as exc:
        log_event(
            logger,
            f"Failed to connect to MongoDB: {exc}",
            level=logging.ERROR,
            run_id=run_id,
            stage="run",
            event="CONNECT_FAIL",
            status="error",
            error_code=exc.error_code,
        )
        return EXIT_STARTUP_FAIL
    log_event(logger, "connected to store", run_id=run_id, stage="run", event="CONNECT_OK", status="ok")

    stats = RunStats()
    error_code: str | None = None
    exit_code = EXIT_SUCCESS
    with store, http_client_factory(
        timeout=TimeoutConfig(connect=settings.timeout_seconds, read=settings.timeout_seconds)
    ) as http_client:
        driver = build_driver(settings, http_client, args, logger)
        try:
            driver.run(store.source_collection(), store.target_collection(), stats=stats)
        except PipelineError as exc:
            error_code = exc.error_code
            exit_code = failure_exit_code
            log_event(
                logger,
                f"Batch processing error: {exc}",
                level=logging.ERROR,
                run_id=run_id,
                stage="run",
                event="RUN_FAIL",
                status="error",
                offset=stats.final_offset,
                error_code=error_code,
            )
        except Exception as exc:
            error_code = "UNEXPECTED_ERROR"
            exit_code = failure_exit_code
            logger.exception(
                "Application error: %s",
                exc,
                extra={
                    "run_id": run_id,
                    "stage": "run",
                    "event": "RUN_FAIL",
                    "status": "error",
                    "offset": stats.final_offset,
                    "error_code": error_code,
                },
            )

    if args.summary_path:
        write_run_summary(Path(args.summary_path), run_id=run_id, stats=stats, error_code=error_code)

    log_event(
        logger,
        f"run end: {stats.processed} records processed, {stats.failed} failed",
        run_id=run_id,
        stage="run",
        event="RUN_END",
        status="ok" if error_code is None else "error",
        rows_in=stats.records_seen,
        rows_out=stats.processed,
        error_code=error_code,
    )
    return exit_code


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        return run_command(args)
    except PipelineError:
        return EXIT_STARTUP_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
