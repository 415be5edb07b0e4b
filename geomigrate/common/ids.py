"""Run identifier helpers."""

from __future__ import annotations

import secrets
from datetime import datetime, timezone

RUN_ID_PREFIX = "migrate"


def generate_run_id(now: datetime | None = None) -> str:
    """Sortable run id; the random suffix keeps runs started in the same second apart."""

    stamp = (now or datetime.now(tz=timezone.utc)).strftime("%Y%m%dT%H%M%SZ")
    return f"{RUN_ID_PREFIX}-{stamp}-{secrets.token_hex(3)}"
