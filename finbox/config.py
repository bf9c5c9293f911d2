"""
Config loader for finbox.
Reads config.yaml once at startup. All other modules receive the dict
explicitly; nothing below the service/CLI layer calls get_config().

Set FINBOX_CONFIG to point at a different file.
"""

import os
import re
from pathlib import Path

import yaml
from dotenv import load_dotenv

load_dotenv()

_CONFIG_PATH = Path(__file__).parent.parent / "config.yaml"

_config: dict | None = None

DEFAULTS: dict = {
    "server": {"host": "0.0.0.0", "port": 8000},
    "gateway": {
        "provider": "huggingface",
        "url": "https://api-inference.huggingface.co",
        "model": "meta-llama/Llama-3.2-3B-Instruct",
        "api_key": "",
        "timeout": 30,
        "context_window": 6,
    },
    "generation": {"temperature": 0.7, "max_output_tokens": 500, "top_p": 0.95},
    "retry": {"max_attempts": 3, "base_delay": 2.0, "warmup_delay": 10.0},
    "storage": {"path": "./data/finbox.json", "export_dir": "./data/exports"},
    "logging": {"level": "INFO"},
    "app": {"environment": "development", "version": "1.0.0"},
}


def _resolve_env_vars(value: str) -> str:
    """Replace ${ENV_VAR} patterns with actual environment variable values."""
    def replacer(match):
        var_name = match.group(1)
        return os.environ.get(var_name, "")
    return re.sub(r"\$\{(\w+)\}", replacer, value)


def _walk_and_resolve(obj):
    """Recursively resolve env vars in all string values."""
    if isinstance(obj, dict):
        return {k: _walk_and_resolve(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_walk_and_resolve(v) for v in obj]
    elif isinstance(obj, str):
        return _resolve_env_vars(obj)
    return obj


def _merge(base: dict, override: dict) -> dict:
    """Merge override onto base one level deep (sections are dicts)."""
    merged = {k: dict(v) if isinstance(v, dict) else v for k, v in base.items()}
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


def load_config(path: Path | None = None) -> dict:
    """Load and cache config from YAML file, layered over DEFAULTS."""
    global _config
    if _config is not None and path is None:
        return _config

    env_path = os.environ.get("FINBOX_CONFIG")
    config_path = path or (Path(env_path) if env_path else _CONFIG_PATH)
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    _config = _walk_and_resolve(_merge(DEFAULTS, raw))
    return _config


def get_config() -> dict:
    """Return cached config, loading if necessary."""
    if _config is None:
        return load_config()
    return _config


def reset_config():
    """Drop the cached config (tests and CLI overrides)."""
    global _config
    _config = None
