"""Run summary output."""

from __future__ import annotations

import json
from pathlib import Path

from geomigrate.common.time_utils import utc_timestamp_iso
from geomigrate.pipeline.paginate import RunStats


def summary_status(stats: RunStats | None, error_code: str | None) -> str:
    if error_code is not None:
        return "error"
    if stats is not None and stats.failed > 0:
        return "partial"
    return "success"


def write_run_summary(
    path: Path,
    *,
    run_id: str,
    stats: RunStats | None,
    error_code: str | None = None,
) -> Path:
    payload = {
        "run_id": run_id,
        "finished_at": utc_timestamp_iso(),
        "status": summary_status(stats, error_code),
        "error_code": error_code,
        "counts": stats.to_dict() if stats is not None else {},
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2, sort_keys=True)
        f.write("\n")
    return path
