import json
import logging
from datetime import datetime, timezone

from geomigrate.common.errors import ConfigError, GeocodingFailed, PipelineError, WriteFailed
from geomigrate.common.ids import generate_run_id
from geomigrate.common.logging import JsonLineFormatter, build_logger, log_event


def test_generate_run_id_is_sortable_and_unique():
    now = datetime(2026, 10, 18, 9, 30, 5, tzinfo=timezone.utc)
    first = generate_run_id(now)
    second = generate_run_id(now)

    assert first.startswith("migrate-20261018T093005Z-")
    assert first != second


def test_error_codes():
    assert issubclass(WriteFailed, PipelineError)
    assert ConfigError.error_code == "CONFIG_ERROR"
    err = GeocodingFailed("Paris", 3, ValueError("x"))
    assert "Paris" in str(err)
    assert err.error_code == "GEOCODING_FAILED"


def test_json_formatter_emits_stable_fields():
    record = logging.LogRecord("geomigrate.test", logging.INFO, __file__, 1, "page %s", (2,), None)
    record.event = "PAGE_FETCH"
    record.offset = 50

    payload = json.loads(JsonLineFormatter().format(record))

    assert payload["message"] == "page 2"
    assert payload["event"] == "PAGE_FETCH"
    assert payload["offset"] == 50
    assert payload["error_code"] is None
    assert payload["level"] == "INFO"


def test_build_logger_writes_jsonl_file(tmp_path):
    logger = build_logger("run-x", log_dir=tmp_path)
    log_event(logger, "hello", event="RUN_START", status="ok")
    for handler in logger.handlers:
        handler.flush()

    lines = (tmp_path / "run-x.log.jsonl").read_text(encoding="utf-8").splitlines()
    assert json.loads(lines[-1])["event"] == "RUN_START"
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def test_run_summary_status(tmp_path):
    from geomigrate.pipeline.paginate import RunStats
    from geomigrate.pipeline.reports import write_run_summary

    path = write_run_summary(tmp_path / "s.json", run_id="run-1", stats=RunStats(processed=4, failed=1))
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["status"] == "partial"
    assert payload["counts"]["processed"] == 4

    write_run_summary(tmp_path / "s.json", run_id="run-1", stats=RunStats(processed=4))
    assert json.loads(path.read_text(encoding="utf-8"))["status"] == "success"
