"""
Unit tests for settings
"""

import pytest
from pydantic import ValidationError

from docker_logentries.core.config import Settings
from docker_logentries.core.exceptions import (
    ConfigurationError,
    InvalidPatternError,
    InvalidPortError,
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    for name in ("TOKEN", "LOGSTOKEN", "STATSTOKEN", "EVENTSTOKEN", "PORT", "SECURE", "SERVER"):
        monkeypatch.delenv(f"LOGENTRIES_{name}", raising=False)
    # Keep a stray .env out of the tests
    monkeypatch.chdir(tmp_path)


class TestSettings:
    
    def test_defaults(self):
        settings = Settings()
        assert settings.server == "data.logentries.com"
        assert settings.logs and settings.stats and settings.docker_events
        assert settings.statsinterval == 30
        assert settings.connect_timeout is None
        assert "host" in settings.add
    
    def test_resolved_port(self):
        assert Settings().resolved_port == 80
        assert Settings(secure=True).resolved_port == 443
        assert Settings(secure=True, port=10000).resolved_port == 10000
    
    def test_environment_tokens(self, monkeypatch):
        monkeypatch.setenv("LOGENTRIES_TOKEN", "base")
        monkeypatch.setenv("LOGENTRIES_STATSTOKEN", "stats")
        settings = Settings()
        assert settings.token == "base"
        assert settings.statstoken == "stats"
        assert settings.has_explicit_tokens
    
    def test_explicit_values_override_environment(self, monkeypatch):
        monkeypatch.setenv("LOGENTRIES_SERVER", "env.example.com")
        assert Settings.load(server="cli.example.com").server == "cli.example.com"
        assert Settings.load(server=None).server == "env.example.com"
    
    def test_frozen(self):
        settings = Settings()
        with pytest.raises(ValidationError):
            settings.logstoken = "changed"
    
    def test_no_tokens(self):
        assert not Settings().has_explicit_tokens


class TestSettingsErrors:
    
    def test_invalid_port(self):
        with pytest.raises(InvalidPortError) as exc_info:
            Settings.load(port="eighty")
        assert exc_info.value.message == "port must be a number"
        assert exc_info.value.code == "INVALID_PORT"
    
    @pytest.mark.parametrize("port", [0, -1, 65536, 70000])
    def test_port_out_of_range(self, port):
        with pytest.raises(InvalidPortError) as exc_info:
            Settings.load(port=port, logstoken="LT")
        assert exc_info.value.details == {"value": port}
    
    def test_port_bounds_accepted(self):
        assert Settings.load(port=1).resolved_port == 1
        assert Settings.load(port=65535).resolved_port == 65535
    
    def test_invalid_pattern(self):
        with pytest.raises(InvalidPatternError) as exc_info:
            Settings.load(match_by_name="web[")
        assert exc_info.value.details["option"] == "match_by_name"
    
    def test_invalid_interval(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings.load(statsinterval=0)
        assert exc_info.value.code == "INVALID_OPTION"
