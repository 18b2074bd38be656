"""TOML config loader: defaults + optional override merge, secrets from .env."""

import os
import tomllib
from pathlib import Path

import tomli_w

DEFAULTS_PATH = Path(__file__).parent.parent.parent.parent / "config" / "defaults.toml"
ENV_PATH = DEFAULTS_PATH.parent.parent / ".env"

# Environment variable naming an override TOML merged over the defaults
OVERRIDE_ENV_VAR = "FIRSTWEEK_CONFIG"

SECRET_KEYS = ("ANTHROPIC_API_KEY", "GITHUB_TOKEN", "RESEND_API_KEY")


def load_defaults() -> dict:
    """Load the global defaults.toml."""
    with open(DEFAULTS_PATH, "rb") as f:
        return tomllib.load(f)


def load_config(override_toml: Path | None = None) -> dict:
    """Load defaults, merged with an override TOML if one exists.

    The override path defaults to $FIRSTWEEK_CONFIG.
    """
    config = load_defaults()
    if override_toml is None:
        env_path = os.environ.get(OVERRIDE_ENV_VAR)
        override_toml = Path(env_path) if env_path else None
    if override_toml is not None and override_toml.exists():
        with open(override_toml, "rb") as f:
            overrides = tomllib.load(f)
        _deep_merge(config, overrides)
    return config


def save_config(path: Path, config: dict) -> None:
    """Write an override TOML file."""
    with open(path, "wb") as f:
        tomli_w.dump(config, f)


def load_env(*env_paths: Path | None) -> dict:
    """Load secrets from .env file(s) or environment.

    Accepts multiple paths; the first existing file wins. With no paths,
    reads ``ENV_PATH`` as it is at call time. Keys missing from the file
    fall back to environment variables.
    """
    if not env_paths:
        env_paths = (ENV_PATH,)
    env = {}

    for env_path in env_paths:
        if env_path and env_path.exists():
            for line in env_path.read_text().splitlines():
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, val = line.split("=", 1)
                env[key.strip()] = val.strip().strip('"').strip("'")
            break

    for key in SECRET_KEYS:
        if key not in env:
            val = os.environ.get(key)
            if val:
                env[key] = val

    return env


def get_secret(env: dict, key: str) -> str:
    """Get a required secret, raising if it is not set."""
    value = env.get(key)
    if not value:
        raise ValueError(f"Secret not configured: {key} (set it in .env or the environment)")
    return value


def _deep_merge(base: dict, override: dict) -> None:
    """Merge override into base in-place, recursing into dicts."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
