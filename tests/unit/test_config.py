"""Unit tests for config.py"""

import pytest

from mdblocks.config import Settings, load_config


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


def test_load_config_defaults():
    """Settings defaults apply when no config.yaml, env var, or override exists."""
    settings = load_config()
    assert settings == Settings()
    assert settings.content_mode == "minimal"
    assert (settings.min_level, settings.max_level) == (1, 6)


def test_load_config_reads_config_yaml(tmp_path):
    """Values in config.yaml replace the defaults."""
    (tmp_path / "config.yaml").write_text("content_mode: smart\nmax_content_length: 500\n")
    settings = load_config()
    assert settings.content_mode == "smart"
    assert settings.max_content_length == 500


def test_load_config_env_overrides_config_yaml(tmp_path, monkeypatch):
    """MDBLOCKS_CONTENT_MODE takes precedence over config.yaml."""
    (tmp_path / "config.yaml").write_text("content_mode: smart\n")
    monkeypatch.setenv("MDBLOCKS_CONTENT_MODE", "full")
    assert load_config().content_mode == "full"


def test_load_config_cli_overrides_env(monkeypatch):
    """A non-None CLI override beats the env var; None overrides are ignored."""
    monkeypatch.setenv("MDBLOCKS_MAX_LEVEL", "4")
    assert load_config(overrides={"max_level": 2}).max_level == 2
    assert load_config(overrides={"max_level": None}).max_level == 4


@pytest.mark.parametrize("name,value,field,expected", [
    ("MDBLOCKS_MIN_LEVEL", "2", "min_level", 2),
    ("MDBLOCKS_INCLUDE_CONTENT", "false", "include_content", False),
    ("MDBLOCKS_BLANK_LINES", "0", "blank_lines", 0),
    ("MDBLOCKS_LOG_LEVEL", "DEBUG", "log_level", "DEBUG"),
])
def test_load_config_env_coerced(monkeypatch, name, value, field, expected):
    """Env var strings are coerced to the field's type."""
    monkeypatch.setenv(name, value)
    assert getattr(load_config(), field) == expected


def test_load_config_invalid_yaml(tmp_path):
    """load_config raises ValueError when config.yaml contains invalid YAML."""
    (tmp_path / "config.yaml").write_text("key: [unclosed\n")
    with pytest.raises(ValueError, match="Invalid config.yaml"):
        load_config()


@pytest.mark.parametrize("overrides", [
    {"min_level": 4, "max_level": 2},
    {"max_level": 7},
    {"content_mode": "everything"},
    {"max_content_length": 0},
])
def test_load_config_rejects_invalid(overrides):
    """Out-of-range or inconsistent settings fail validation."""
    with pytest.raises(ValueError):
        load_config(overrides=overrides)
