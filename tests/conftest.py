import os
import sys
from pathlib import Path
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# settings are read once at import; pin them so a local .env cannot leak in
# (load_dotenv never overrides variables that are already set)
os.environ["OPENWEATHER_URL"] = "https://api.openweathermap.org/data/2.5/weather"
os.environ["WEATHER_TIMEOUT"] = ""
os.environ["CITY"] = "DefaultCity"
os.environ["SCHEDULER_TIMEZONE"] = "UTC"


@pytest.fixture(autouse=True)
def _test_env(monkeypatch):
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", os.getenv("TELEGRAM_BOT_TOKEN", "test-token"))
    monkeypatch.setenv("OPENWEATHER_API_KEY", os.getenv("OPENWEATHER_API_KEY", "test-key"))

@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    if request.node.get_closest_marker("integration") or request.node.get_closest_marker("network"):
        return

    import httpx

    def _boom(*args, **kwargs):
        raise RuntimeError(
            "Network is blocked in unit tests. "
            "Mock httpx or mark the test with @pytest.mark.network"
        )

    monkeypatch.setattr(httpx.Client, "request", _boom, raising=True)
    monkeypatch.setattr(httpx.AsyncClient, "request", _boom, raising=True)
