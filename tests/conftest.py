import pytest
from click.testing import CliRunner

from fleetreach.config import settings

from fakes import FakeClock


@pytest.fixture
def cli_runner():
    return CliRunner()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def isolated_puppetdb_defaults(tmp_path, monkeypatch):
    """Point the default config and token paths at files that do not exist."""
    monkeypatch.setattr(settings, "PUPPETDB_CONFIG", str(tmp_path / "no-puppetdb.conf"))
    monkeypatch.setattr(settings, "PUPPETDB_TOKEN", str(tmp_path / "no-token"))
