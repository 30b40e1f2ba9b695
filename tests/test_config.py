"""Tests for helper configuration and logging setup."""

import json
import logging
from pathlib import Path

import pytest
import structlog
import yaml
from pydantic import ValidationError

from ecr_login import DEFAULT_REFRESH_FRACTION, HelperConfig, LogFormats
from ecr_login.config import DEFAULT_CACHE_DIR
from ecr_login.logs import remove_handler, setup_logging


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("CACHE_DIR", "DISABLE_CACHE", "REFRESH_FRACTION", "LOG_LEVEL",
                 "LOG_FORMAT", "LOG_TO_STDERR"):
        monkeypatch.delenv(f"AWS_ECR_{name}", raising=False)


def test_defaults(tmp_path):
    """Missing config file gives defaults."""
    config = HelperConfig.load(tmp_path / "missing.yaml")
    assert config.cache_dir == DEFAULT_CACHE_DIR
    assert config.disable_cache is False
    assert config.refresh_fraction == DEFAULT_REFRESH_FRACTION
    assert config.log_format == LogFormats.CONSOLE
    assert config.cache_file == DEFAULT_CACHE_DIR / "cache.json"
    assert config.log_file == DEFAULT_CACHE_DIR / "log" / "ecr-login.log"


def test_from_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        f"cache_dir: {tmp_path / 'ecr'}\n"
        "disable_cache: true\n"
        "refresh_fraction: 0.5\n"
        "log_level: debug\n"
        "log_format: json\n"
    )
    config = HelperConfig.load(path)

    assert config.cache_dir == tmp_path / "ecr"
    assert config.disable_cache is True
    assert config.refresh_fraction == 0.5
    assert config.log_level == "DEBUG"
    assert config.log_format == LogFormats.JSON


def test_empty_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("")
    assert HelperConfig.load(path).disable_cache is False


def test_environment_overrides_file(tmp_path, monkeypatch):
    """AWS_ECR_* variables beat values from the YAML file."""
    path = tmp_path / "config.yaml"
    path.write_text("disable_cache: false\nrefresh_fraction: 0.2\n")
    monkeypatch.setenv("AWS_ECR_DISABLE_CACHE", "1")
    monkeypatch.setenv("AWS_ECR_CACHE_DIR", str(tmp_path / "env"))

    config = HelperConfig.load(path)
    assert config.disable_cache is True
    assert config.cache_dir == tmp_path / "env"
    assert config.refresh_fraction == 0.2


def test_invalid_refresh_fraction(tmp_path):
    for value in (-0.1, 1.0):
        with pytest.raises(ValidationError, match="refresh_fraction"):
            HelperConfig(refresh_fraction=value)


def test_invalid_log_level():
    with pytest.raises(ValidationError):
        HelperConfig(log_level="LOUD")


def test_invalid_yaml_document(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ValueError, match="mapping"):
        HelperConfig.load(path)


def test_setup_logging_writes_json_to_file(tmp_path):
    """Logs go to the file under the cache directory, never stdout."""
    config = HelperConfig(cache_dir=tmp_path, log_format="json", log_level="DEBUG")
    handler = setup_logging(config)
    try:
        structlog.stdlib.get_logger("ecr_login.test").info("hello", registry="123456789012")
        handler.flush()
    finally:
        remove_handler(handler)
        structlog.reset_defaults()

    assert handler not in logging.getLogger().handlers
    lines = Path(config.log_file).read_text().splitlines()
    record = json.loads(lines[-1])
    assert record["event"] == "hello"
    assert record["registry"] == "123456789012"
    assert record["level"] == "info"


def test_load_reads_config_from_cache_dir_env(tmp_path, monkeypatch):
    """Without an explicit path the file is looked up under AWS_ECR_CACHE_DIR."""
    monkeypatch.setenv("AWS_ECR_CACHE_DIR", str(tmp_path))
    (tmp_path / "config.yaml").write_text("disable_cache: true\nrefresh_fraction: 0.25\n")

    config = HelperConfig.load()

    assert config.cache_dir == tmp_path
    assert config.disable_cache is True
    assert config.refresh_fraction == 0.25


def test_malformed_yaml_raises_yaml_error(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("key: [unclosed\n")
    with pytest.raises(yaml.YAMLError):
        HelperConfig.load(path)


def test_setup_logging_falls_back_to_stderr(tmp_path):
    """An unwritable log directory sends logs to stderr instead of failing."""
    blocker = tmp_path / "blocker"
    blocker.write_text("x")
    config = HelperConfig(cache_dir=blocker)
    handler = setup_logging(config)
    try:
        assert not isinstance(handler, logging.FileHandler)
        assert isinstance(handler, logging.StreamHandler)
    finally:
        remove_handler(handler)
        structlog.reset_defaults()
