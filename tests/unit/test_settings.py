"""Tests for configuration loading and validation."""

import pytest
import yaml

from fems_ingestor.config.settings import (
    ConfigurationError,
    FemsConfig,
    load_settings,
    substitute_env_vars,
)


def write_config(tmp_path, data) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data))
    return str(path)


@pytest.mark.unit
class TestFemsConfig:

    def test_defaults(self):
        config = FemsConfig(url="10.0.0.5:8085", channels=["_sum/State"])

        assert config.password == "owner"
        assert config.measurement == "fems"
        assert config.reconnect_interval_seconds == 10.0
        assert config.ping_interval_seconds is None

    @pytest.mark.parametrize("password", [None, ""])
    def test_empty_password_falls_back_to_default(self, password):
        config = FemsConfig(url="10.0.0.5:8085", password=password, channels=["_sum/State"])
        assert config.password == "owner"

    def test_channel_order_preserved(self):
        channels = ["z/Last", "a/First", "m/Middle"]
        assert FemsConfig(url="h:1", channels=channels).channels == channels

    def test_is_immutable(self):
        config = FemsConfig(url="h:1", channels=["a"])
        with pytest.raises(Exception):
            config.url = "other:2"


@pytest.mark.unit
class TestLoadSettings:

    def test_load_from_yaml(self, tmp_path):
        path = write_config(tmp_path, {
            "service_name": "fems-test",
            "fems": {"url": "10.0.0.5:8085", "password": "pw", "channels": ["_sum/EssSoc"]},
            "logging": {"level": "DEBUG", "format": "text"},
        })

        settings = load_settings(path)

        assert settings.service_name == "fems-test"
        assert settings.fems.url == "10.0.0.5:8085"
        assert settings.fems.password == "pw"
        assert settings.fems.channels == ["_sum/EssSoc"]
        assert settings.logging.level == "DEBUG"
        assert settings.health.port == 8080

    def test_env_substitution(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TEST_FEMS_HOST", "edge.local:8085")
        monkeypatch.delenv("TEST_FEMS_PASSWORD", raising=False)
        path = write_config(tmp_path, {
            "fems": {
                "url": "${TEST_FEMS_HOST}",
                "password": "${TEST_FEMS_PASSWORD:-fallback}",
                "channels": ["_sum/State"],
            },
        })

        settings = load_settings(path)

        assert settings.fems.url == "edge.local:8085"
        assert settings.fems.password == "fallback"

    def test_missing_required_env_var(self, monkeypatch):
        monkeypatch.delenv("TEST_FEMS_UNSET", raising=False)
        with pytest.raises(ConfigurationError):
            substitute_env_vars({"url": "${TEST_FEMS_UNSET}"})

    @pytest.mark.parametrize("fems", [
        {"channels": ["_sum/State"]},
        {"url": "", "channels": ["_sum/State"]},
        {"url": "10.0.0.5:8085", "channels": []},
        {"url": "10.0.0.5:8085"},
    ])
    def test_invalid_target(self, tmp_path, fems):
        path = write_config(tmp_path, {"fems": fems})

        with pytest.raises(ConfigurationError):
            load_settings(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_settings(str(tmp_path / "missing.yaml"))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("fems: [unclosed")

        with pytest.raises(ConfigurationError):
            load_settings(str(path))

    def test_invalid_environment(self, tmp_path):
        path = write_config(tmp_path, {
            "environment": "staging",
            "fems": {"url": "h:1", "channels": ["a"]},
        })

        with pytest.raises(ConfigurationError):
            load_settings(path)
