"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from forum_bridge.config import BridgeConfig, DrupalConfig, LoggingConfig, load_config_from_yaml


def write(tmp_path, content):
    path = tmp_path / "config.yaml"
    path.write_text(content)
    return path


def test_defaults(tmp_path):
    config = load_config_from_yaml(write(tmp_path, "source:\n  url: sqlite:///drupal.db\n"))

    assert config.target.url == "sqlite:///forum.db"
    assert config.target.rate_limit == 0
    assert config.importer.batch_size == 1000
    assert config.importer.admin is None
    assert config.drupal.category_vocabulary_id == 1
    assert config.drupal.blog_category == "Blog"


def test_env_var_expansion(tmp_path, monkeypatch):
    monkeypatch.setenv("DRUPAL_URL", "mysql+pymysql://root@localhost/newsite3")

    config = load_config_from_yaml(write(tmp_path, "source:\n  url: ${DRUPAL_URL}\n"))

    assert config.source.url == "mysql+pymysql://root@localhost/newsite3"


def test_missing_env_var(tmp_path, monkeypatch):
    monkeypatch.delenv("MISSING_URL", raising=False)

    with pytest.raises(ValueError, match="MISSING_URL"):
        load_config_from_yaml(write(tmp_path, "source:\n  url: ${MISSING_URL}\n"))


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config_from_yaml(tmp_path / "nope.yaml")


def test_empty_file(tmp_path):
    with pytest.raises(ValueError, match="Empty"):
        load_config_from_yaml(write(tmp_path, ""))


def test_rejects_unknown_scheme():
    with pytest.raises(ValidationError):
        BridgeConfig(source={"url": "http://example.com"})


def test_rejects_negative_rate_limit():
    with pytest.raises(ValidationError):
        BridgeConfig(source={"url": "sqlite://"}, target={"rate_limit": -1})


def test_rejects_zero_batch_size():
    with pytest.raises(ValidationError):
        BridgeConfig(source={"url": "sqlite://"}, importer={"batch_size": 0})


def test_log_level_is_normalized():
    assert LoggingConfig(level="debug").level == "DEBUG"
    with pytest.raises(ValidationError):
        LoggingConfig(level="loud")


def test_blog_category_is_stripped():
    assert DrupalConfig(blog_category=" News ").blog_category == "News"
    with pytest.raises(ValidationError):
        DrupalConfig(blog_category="  ")
