"""
Tests for configuration loading.

Covers environment variables, waveform.yaml discovery and the precedence
between them.
"""

import pytest
import yaml
from pydantic import ValidationError

from waveform_builder.config import Config, get_config, load_waveform_yaml
from waveform_builder.models.options import ResponseFormat


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Isolate from WAVEFORM_BUILDER_ variables and stray config files."""
    for name in ("REQUEST_TIMEOUT", "ZOOM_LEVELS", "WITH_CREDENTIALS", "RESPONSE_FORMATS"):
        monkeypatch.delenv(f"WAVEFORM_BUILDER_{name}", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _write_yaml(directory, section):
    (directory / "waveform.yaml").write_text(yaml.safe_dump({"waveform": section}))


class TestConfig:
    """Tests for Config defaults and environment variables."""

    def test_defaults(self, clean_env):
        """Defaults cover the transport and waveform settings."""
        config = Config(_env_file=None)

        assert config.request_timeout == 15.0
        assert config.zoom_levels[0] == 512
        assert config.with_credentials is False
        assert config.response_formats == [ResponseFormat.BINARY, ResponseFormat.JSON]

    def test_env_prefix(self, clean_env, monkeypatch):
        """WAVEFORM_BUILDER_ variables override defaults."""
        monkeypatch.setenv("WAVEFORM_BUILDER_REQUEST_TIMEOUT", "30")
        monkeypatch.setenv("WAVEFORM_BUILDER_WITH_CREDENTIALS", "true")

        config = Config(_env_file=None)

        assert config.request_timeout == 30.0
        assert config.with_credentials is True

    def test_capabilities(self, clean_env):
        """capabilities() reflects response_formats."""
        config = Config(_env_file=None, response_formats=["json"])
        capabilities = config.capabilities()

        assert capabilities.supports(ResponseFormat.JSON)
        assert not capabilities.supports(ResponseFormat.BINARY)

    def test_empty_zoom_levels_rejected(self, clean_env):
        """At least one zoom level is required."""
        with pytest.raises(ValidationError):
            Config(_env_file=None, zoom_levels=[])

    def test_non_positive_timeout_rejected(self, clean_env):
        """The request timeout must be positive."""
        with pytest.raises(ValidationError):
            Config(_env_file=None, request_timeout=0)


class TestWaveformYaml:
    """Tests for waveform.yaml loading."""

    def test_missing_file(self, clean_env):
        """No file means an empty dict."""
        assert load_waveform_yaml(clean_env) == {}

    def test_found_in_parent(self, clean_env):
        """The search walks up parent directories."""
        _write_yaml(clean_env, {"zoom_levels": [256]})
        nested = clean_env / "a" / "b"
        nested.mkdir(parents=True)

        assert load_waveform_yaml(nested) == {"waveform": {"zoom_levels": [256]}}

    def test_get_config_applies_yaml(self, clean_env):
        """waveform.yaml settings are applied."""
        _write_yaml(clean_env, {"zoom_levels": [256, 512], "response_formats": ["json"]})

        config = get_config(clean_env)

        assert config.zoom_levels == [256, 512]
        assert config.response_formats == [ResponseFormat.JSON]

    def test_env_beats_yaml(self, clean_env, monkeypatch):
        """Environment variables take precedence over waveform.yaml."""
        _write_yaml(clean_env, {"request_timeout": 5})
        monkeypatch.setenv("WAVEFORM_BUILDER_REQUEST_TIMEOUT", "42")

        assert get_config(clean_env).request_timeout == 42.0
