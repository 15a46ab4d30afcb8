"""Load and validate configuration from YAML with env var substitution."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml

from saaksh.errors import ConfigurationError

DEFAULT_PROVIDERS: dict[str, dict] = {
    "gemini": {
        "type": "gemini",
        "api_key": "${GEMINI_API_KEY}",
        "default_model": "gemini-2.5-pro",
        "json_mode": True,
    },
    "groq": {
        "type": "openai_compatible",
        "api_key": "${GROQ_API_KEY}",
        "base_url": "https://api.groq.com/openai/v1",
        "default_model": "llama-3.3-70b-versatile",
        "json_mode": True,
    },
}

SOURCE_DEFAULTS: dict[str, dict] = {
    "reddit": {
        "min_interval": 2.0,
        "max_retries": 3,
        "retry_delay": 2.0,
        "comment_limit": 20,
        "include_comments": True,
        "batch_size": 5,
        "batch_delay": 1.0,
        "on_failure": "drop",
        "cache_ttl_seconds": 300,
        "cache_max_entries": 50,
        "user_agent": "SaakshAI/1.0",
        "client_id": "${REDDIT_CLIENT_ID}",
        "client_secret": "${REDDIT_CLIENT_SECRET}",
    },
    "youtube": {
        "min_interval": 1.0,
        "max_retries": 3,
        "retry_delay": 2.0,
        "comment_limit": 30,
        "batch_size": 5,
        "batch_delay": 1.0,
        "on_failure": "substitute",
        "cache_ttl_seconds": 300,
        "cache_max_entries": 50,
        "api_key": "${YOUTUBE_API_KEY}",
    },
}

CLUSTER_DEFAULTS: dict[str, dict] = {
    "reddit": {
        "group_by": "container",
        "threat_rule": "mean_bucket",
        "min_fake_risk": 60,
        "min_size": 2,
        "assign_cluster_ids": False,
        "id_prefix": "cluster",
    },
    "youtube": {
        "group_by": "signature",
        "threat_rule": "majority",
        "min_fake_risk": 40,
        "min_size": 2,
        "assign_cluster_ids": True,
        "id_prefix": "youtube_cluster",
    },
}


def _load_dotenv(path: str | Path = ".env") -> None:
    """Load a .env file into os.environ (without overwriting existing vars)."""
    env_path = Path(path)
    if not env_path.is_file():
        return
    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip().strip("'\"")
            if key and key not in os.environ:
                os.environ[key] = value


def _resolve_env_vars(value: Any) -> Any:
    """Recursively resolve ${ENV_VAR} patterns in config values."""
    if isinstance(value, str):
        pattern = re.compile(r"\$\{([^}]+)\}")
        match = pattern.search(value)
        if match:
            env_key = match.group(1)
            env_val = os.environ.get(env_key, "")
            # If the entire string is a single env var, return the resolved value
            if match.group(0) == value:
                return env_val
            return pattern.sub(lambda m: os.environ.get(m.group(1), ""), value)
        return value
    if isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_env_vars(item) for item in value]
    return value


def load_config(path: str | Path = "config.yaml") -> dict[str, Any]:
    """Load config from YAML file and resolve environment variables."""
    _load_dotenv()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    return _resolve_env_vars(raw)


def get_llm_provider_config(config: dict, role: str) -> dict | None:
    """Settings for the ``primary`` or ``fallback`` provider.

    Returns None when the role is not configured. The primary defaults to
    Gemini and the fallback to Groq; both read their keys from the
    environment unless the config overrides them.
    """
    llm = config.get("llm", {})
    default_name = {"primary": "gemini", "fallback": "groq"}.get(role)
    provider_name = llm.get(role, default_name)
    if not provider_name:
        return None

    providers = llm.get("providers", {})
    if provider_name in providers:
        provider_cfg = providers[provider_name]
    elif provider_name in DEFAULT_PROVIDERS:
        provider_cfg = _resolve_env_vars(DEFAULT_PROVIDERS[provider_name])
    else:
        raise ConfigurationError(f"LLM provider '{provider_name}' is not configured")

    return {
        "provider_name": provider_name,
        "provider_type": provider_cfg.get("type", "openai_compatible"),
        "api_key": provider_cfg.get("api_key", ""),
        "base_url": provider_cfg.get("base_url", ""),
        "model": provider_cfg.get("default_model", ""),
        "json_mode": provider_cfg.get("json_mode", False),
        "timeout": provider_cfg.get("timeout", 120),
        "max_retries": llm.get("max_retries", 3),
        "initial_backoff": llm.get("initial_backoff", 1.0),
        "max_backoff": llm.get("max_backoff", 60.0),
    }


def get_cache_config(config: dict) -> dict:
    cfg = config.get("cache", {})
    return {
        "ttl_seconds": cfg.get("ttl_seconds", 300),
        "max_entries": cfg.get("max_entries", 100),
        "fingerprint_length": cfg.get("fingerprint_length", 500),
    }


def get_batch_config(config: dict) -> dict:
    cfg = config.get("batch", {})
    return {
        "size": cfg.get("size", 5),
        "debounce_seconds": cfg.get("debounce_seconds", 0.2),
    }


def get_source_config(config: dict, source: str) -> dict:
    """Source settings merged over the built-in defaults."""
    defaults = _resolve_env_vars(SOURCE_DEFAULTS.get(source, {}))
    overrides = config.get("sources", {}).get(source, {}) or {}
    return {**defaults, **overrides}


def get_cluster_config(config: dict, platform: str) -> dict:
    """Clustering settings for a platform merged over the built-in defaults."""
    defaults = CLUSTER_DEFAULTS.get(platform, CLUSTER_DEFAULTS["reddit"])
    overrides = config.get("cluster", {}).get(platform, {}) or {}
    return {**defaults, **overrides}


def get_log_config(config: dict) -> dict:
    cfg = config.get("logging", {})
    return {
        "level": str(cfg.get("level", "INFO")).upper(),
        "file": cfg.get("file", "data/saaksh.log"),
    }
