import sys
from pathlib import Path
import pytest

# Ensure project root is on sys.path so `import cvardump...` works when running pytest from repo root
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

FIXTURES_DIR = Path(__file__).parent / "fixtures"


# Pytest configuration: network tests are opt-in; enable with --rcon-host
def pytest_addoption(parser):
    parser.addoption(
        "--rcon-host",
        action="store",
        default=None,
        help="host[:port] of a live Source server for RCON tests (password from $RCON_TEST_PASSWORD)",
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "live: marks tests that talk to a real Source server over RCON")


def pytest_collection_modifyitems(config, items):
    if not items:
        return
    if not config.getoption("--rcon-host"):
        skip_live = pytest.mark.skip(reason="live RCON tests need --rcon-host")
        for item in items:
            if item.get_closest_marker("live") is not None:
                item.add_marker(skip_live)


@pytest.fixture
def rcon_host(request):
    return request.config.getoption("--rcon-host")


@pytest.fixture
def cvarlist_text():
    return (FIXTURES_DIR / "cvarlist.txt").read_text(encoding="utf-8")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # Keep a developer's .env from leaking into CLI defaults
    for var in ("RCON_PASSWORD", "RCON_TIMEOUT", "CVARDUMP_OUTPUT"):
        monkeypatch.delenv(var, raising=False)
