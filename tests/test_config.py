"""
Tests for settings and PuppetDB configuration discovery.
"""

import json

import pytest

from fleetreach.config import PuppetDBConfig, Settings, load_puppetdb_config, settings
from fleetreach.errors import ConfigurationError


def write_config(path, **values):
    path.write_text(json.dumps({"puppetdb": values}))
    return path


class TestSettings:
    def test_defaults(self):
        fresh = Settings()

        assert fresh.PUPPETDB_DEFAULT_PORT == 8081
        assert fresh.WAIT_TIME == 120.0
        assert fresh.RETRY_INTERVAL == 1.0

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("FLEETREACH_QUERY_TIMEOUT", "7.5")
        monkeypatch.setenv("FLEETREACH_PUPPETDB_TOKEN", "/etc/fleetreach/token")

        fresh = Settings()

        assert fresh.QUERY_TIMEOUT == 7.5
        assert fresh.PUPPETDB_TOKEN == "/etc/fleetreach/token"


class TestLoadPuppetDBConfig:
    def test_command_line_only(self):
        config = load_puppetdb_config(None, {"server_urls": ["https://pdb.example.com"]})

        assert config.server_url == "https://pdb.example.com"
        assert config.token is None
        assert config.cert is None

    def test_missing_url(self):
        with pytest.raises(ConfigurationError, match="server URL"):
            load_puppetdb_config(None, {})

    def test_config_file(self, tmp_path):
        path = write_config(
            tmp_path / "puppetdb.conf",
            server_urls="https://pdb.example.com:8081",
            cacert="/etc/ssl/ca.pem",
            cert="/etc/ssl/client.pem",
            key="/etc/ssl/client.key",
        )

        config = load_puppetdb_config(path)

        assert config.server_urls == ["https://pdb.example.com:8081"]
        assert config.cacert == "/etc/ssl/ca.pem"
        assert config.cert == "/etc/ssl/client.pem"
        assert config.key == "/etc/ssl/client.key"

    def test_command_line_beats_config_file(self, tmp_path):
        path = write_config(tmp_path / "puppetdb.conf", server_urls=["https://from-file"], cacert="/file/ca.pem")

        config = load_puppetdb_config(
            path, {"server_urls": ["https://from-cli"], "cacert": None, "cert": None}
        )

        assert config.server_url == "https://from-cli"
        assert config.cacert == "/file/ca.pem"

    def test_explicit_config_must_exist(self, tmp_path):
        with pytest.raises(ConfigurationError, match="does not exist"):
            load_puppetdb_config(tmp_path / "missing.conf", {"server_urls": ["https://pdb"]})

    def test_config_file_must_be_json(self, tmp_path):
        path = tmp_path / "puppetdb.conf"
        path.write_text("server_urls = nope")

        with pytest.raises(ConfigurationError, match="parse"):
            load_puppetdb_config(path)

    def test_default_config_used_when_present(self, tmp_path, monkeypatch):
        path = write_config(tmp_path / "default.conf", server_urls=["https://default-pdb"])
        monkeypatch.setattr(settings, "PUPPETDB_CONFIG", str(path))

        config = load_puppetdb_config()

        assert config.server_url == "https://default-pdb"

    def test_token_file_from_command_line(self, tmp_path):
        token = tmp_path / "token"
        token.write_text("cli-token\n")

        config = load_puppetdb_config(None, {"server_urls": ["https://pdb"], "token-file": str(token)})

        assert config.token == "cli-token"

    def test_token_file_from_config(self, tmp_path):
        token = tmp_path / "token"
        token.write_text("file-token")
        path = write_config(tmp_path / "puppetdb.conf", server_urls=["https://pdb"], **{"token-file": str(token)})

        assert load_puppetdb_config(path).token == "file-token"

    def test_default_token_used_when_present(self, tmp_path):
        token = tmp_path / "default-token"
        token.write_text("default-token")

        config = load_puppetdb_config(
            None, {"server_urls": ["https://pdb"]}, default_token=token
        )

        assert config.token == "default-token"

    def test_command_line_token_beats_default(self, tmp_path):
        default = tmp_path / "default-token"
        default.write_text("default-token")
        explicit = tmp_path / "explicit-token"
        explicit.write_text("explicit-token")

        config = load_puppetdb_config(
            None, {"server_urls": ["https://pdb"], "token-file": str(explicit)}, default_token=default
        )

        assert config.token == "explicit-token"

    def test_unreadable_token_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="token file"):
            load_puppetdb_config(None, {"server_urls": ["https://pdb"], "token-file": str(tmp_path / "nope")})

    def test_cert_requires_key(self):
        with pytest.raises(ConfigurationError, match="together"):
            load_puppetdb_config(None, {"server_urls": ["https://pdb"], "cert": "/etc/ssl/client.pem"})


class TestPuppetDBConfig:
    def test_expands_home(self):
        config = PuppetDBConfig(server_urls="https://pdb", cacert="~/ca.pem")

        assert not config.cacert.startswith("~")
        assert config.cacert.endswith("ca.pem")

    def test_token_hidden_from_repr(self):
        config = PuppetDBConfig(server_urls=["https://pdb"], token="very-secret")

        assert "very-secret" not in repr(config)
