from __future__ import annotations

import pytest

from geomigrate.common.config_loader import Settings


@pytest.fixture
def settings() -> Settings:
    return Settings(
        mongo_uri="mongodb://localhost:27017",
        database_name="geo",
        source_collection="stations",
        target_collection="stations_geocoded",
        api_key="test-key",
        page_size=50,
        delay_seconds=0.0,
    )
