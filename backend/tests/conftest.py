import sys
from pathlib import Path

import pytest

# Ensure `backend/` is on sys.path so tests can import local modules
# like `aggs.*`, `geo.*`, and `main`.
BACKEND_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_ROOT))

from settings.registry import clear_settings_cache  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    # Keep telemetry and settings per-test; never touch the repo data dir.
    monkeypatch.setenv("GEOAGG_TELEMETRY_PATH", str(tmp_path / "telemetry.duckdb"))
    monkeypatch.setenv("GEOAGG_TELEMETRY", "0")
    for name in ("GEOAGG_SETTINGS_PATH", "GEOAGG_MAX_PRECISION", "GEOAGG_COLLAR_SCALE", "GEOAGG_GRID_BOUNDS"):
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()
