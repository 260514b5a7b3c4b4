"""
Configuration management for the waveform builder.

Provides centralized configuration using Pydantic for validation and
environment variable support. Supports waveform.yaml for per-project settings.
"""

import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import Field, PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict

from waveform_builder.models.options import FormatCapabilities, ResponseFormat


ENV_PREFIX = "WAVEFORM_BUILDER_"
YAML_FILENAME = "waveform.yaml"
YAML_SECTION = "waveform"


def load_waveform_yaml(search_dir: Optional[Path] = None) -> dict:
    """
    Load waveform.yaml configuration file.

    Searches for waveform.yaml starting from search_dir (or the current
    working directory) and walking up to 3 parent directories.

    Args:
        search_dir: Directory to start searching from

    Returns:
        Dictionary with waveform.yaml contents, or empty dict if not found
    """
    start = (search_dir or Path.cwd()).resolve()
    for parent in [start] + list(start.parents)[:3]:
        candidate = parent / YAML_FILENAME
        if candidate.exists():
            with open(candidate, "r", encoding="utf-8") as f:
                return yaml.safe_load(f) or {}
    return {}


class Config(BaseSettings):
    """
    Application configuration with environment variable support.

    Configuration can be provided via:
    1. Environment variables (prefixed with WAVEFORM_BUILDER_)
    2. .env file
    3. waveform.yaml (``waveform:`` section)
    4. Default values

    Example:
        export WAVEFORM_BUILDER_REQUEST_TIMEOUT=30
        export WAVEFORM_BUILDER_RESPONSE_FORMATS='["json"]'
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # HTTP transport
    request_timeout: float = Field(
        default=15.0,
        gt=0,
        description="Connect/read timeout for HTTP requests, in seconds"
    )
    chunk_size: PositiveInt = Field(
        default=64 * 1024,
        description="Streaming chunk size for downloads, in bytes"
    )
    max_workers: PositiveInt = Field(
        default=2,
        description="Worker threads available for concurrent downloads"
    )
    user_agent: str = Field(
        default="waveform-builder",
        description="User-Agent header sent with HTTP requests"
    )
    with_credentials: bool = Field(
        default=False,
        description="Default for sending cookies/auth with HTTP requests"
    )

    # Waveform data
    response_formats: List[ResponseFormat] = Field(
        default_factory=lambda: [ResponseFormat.BINARY, ResponseFormat.JSON],
        description="Waveform response formats this environment can consume"
    )
    zoom_levels: List[PositiveInt] = Field(
        default_factory=lambda: [512, 1024, 2048, 4096],
        min_length=1,
        description="Zoom levels in samples per pixel; the first is the decode scale"
    )

    def capabilities(self) -> FormatCapabilities:
        """Build the response format capability descriptor."""
        return FormatCapabilities(formats=tuple(self.response_formats))


def get_config(search_dir: Optional[Path] = None) -> Config:
    """
    Get the application configuration instance.

    Merges settings from environment variables, .env file,
    and waveform.yaml (if present). Environment variables take
    precedence over waveform.yaml.

    Args:
        search_dir: Directory to start the waveform.yaml search from

    Returns:
        Config: Application configuration
    """
    yaml_config = load_waveform_yaml(search_dir)
    section = yaml_config.get(YAML_SECTION, {}) or {}

    overrides = {
        key: value
        for key, value in section.items()
        if f"{ENV_PREFIX}{key.upper()}" not in os.environ
    }
    return Config(**overrides)
