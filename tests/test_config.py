"""Tests for config loading and env var resolution."""

from __future__ import annotations

import pytest

from saaksh.config import (
    get_batch_config,
    get_cache_config,
    get_cluster_config,
    get_llm_provider_config,
    get_log_config,
    get_source_config,
    load_config,
)
from saaksh.errors import ConfigurationError


def test_load_config(sample_config):
    """Config loads and has expected structure."""
    assert "llm" in sample_config
    assert "sources" in sample_config
    assert "batch" in sample_config


def test_env_var_resolution(tmp_path, monkeypatch):
    """Environment variables in ${VAR} format are resolved."""
    monkeypatch.setenv("TEST_API_KEY", "my-secret-key")
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("""
llm:
  providers:
    test:
      api_key: "${TEST_API_KEY}"
      base_url: "https://${TEST_API_KEY}.example.com"
""")
    config = load_config(str(cfg_path))
    provider = config["llm"]["providers"]["test"]
    assert provider["api_key"] == "my-secret-key"
    assert provider["base_url"] == "https://my-secret-key.example.com"


def test_empty_config_file(tmp_path):
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("")
    assert load_config(str(cfg_path)) == {}


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_configured_provider(sample_config):
    cfg = get_llm_provider_config(sample_config, "primary")
    assert cfg["provider_name"] == "mock"
    assert cfg["provider_type"] == "openai_compatible"
    assert cfg["api_key"] == "test-key"
    assert cfg["model"] == "test-model"
    assert cfg["json_mode"] is True
    assert cfg["max_retries"] == 1
    assert cfg["initial_backoff"] == 0.01
    assert cfg["max_backoff"] == 60.0


def test_disabled_fallback(sample_config):
    assert get_llm_provider_config(sample_config, "fallback") is None


def test_default_providers_read_environment(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "gem")
    monkeypatch.setenv("GROQ_API_KEY", "groq")

    primary = get_llm_provider_config({}, "primary")
    fallback = get_llm_provider_config({}, "fallback")

    assert (primary["provider_name"], primary["provider_type"]) == ("gemini", "gemini")
    assert primary["api_key"] == "gem"
    assert primary["max_retries"] == 3
    assert primary["initial_backoff"] == 1.0
    assert fallback["provider_type"] == "openai_compatible"
    assert fallback["base_url"] == "https://api.groq.com/openai/v1"
    assert fallback["model"] == "llama-3.3-70b-versatile"
    assert fallback["api_key"] == "groq"


def test_unknown_provider_name():
    with pytest.raises(ConfigurationError):
        get_llm_provider_config({"llm": {"primary": "mystery"}}, "primary")


def test_cache_and_batch_defaults():
    assert get_cache_config({}) == {
        "ttl_seconds": 300, "max_entries": 100, "fingerprint_length": 500,
    }
    assert get_batch_config({}) == {"size": 5, "debounce_seconds": 0.2}


def test_cache_and_batch_overrides(sample_config):
    assert get_cache_config(sample_config)["ttl_seconds"] == 60
    assert get_batch_config(sample_config)["size"] == 2


def test_source_defaults(monkeypatch):
    monkeypatch.setenv("YOUTUBE_API_KEY", "yt")
    monkeypatch.delenv("REDDIT_CLIENT_ID", raising=False)

    reddit = get_source_config({}, "reddit")
    assert reddit["min_interval"] == 2.0
    assert reddit["cache_max_entries"] == 50
    assert reddit["on_failure"] == "drop"
    assert reddit["user_agent"] == "SaakshAI/1.0"
    assert reddit["client_id"] == ""

    youtube = get_source_config({}, "youtube")
    assert youtube["min_interval"] == 1.0
    assert youtube["comment_limit"] == 30
    assert youtube["on_failure"] == "substitute"
    assert youtube["api_key"] == "yt"


def test_source_overrides_merge_over_defaults(sample_config):
    youtube = get_source_config(sample_config, "youtube")
    assert youtube["api_key"] == "test-youtube-key"
    assert youtube["min_interval"] == 0
    assert youtube["max_retries"] == 3


def test_cluster_config():
    assert get_cluster_config({}, "reddit")["min_fake_risk"] == 60
    cfg = get_cluster_config({"cluster": {"youtube": {"min_size": 4}}}, "youtube")
    assert cfg["min_size"] == 4
    assert cfg["group_by"] == "signature"


def test_log_config(sample_config):
    cfg = get_log_config(sample_config)
    assert cfg["level"] == "DEBUG"
    assert cfg["file"].endswith("saaksh.log")
    assert get_log_config({}) == {"level": "INFO", "file": "data/saaksh.log"}
