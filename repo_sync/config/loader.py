"""
Config Loader — Locate and parse config.yaml.

Lookup order for the config file:
1. Explicit path (``-c/--config``)
2. REPO_SYNC_CONFIG environment variable
3. ``<home>/config.yaml`` where home is REPO_SYNC_HOME or ``~/.repo-sync``

Local mirrors live in ``<cache_dir>/<name>.git``; cache_dir defaults to
``<home>/repos``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError as SchemaError

from ..validation import ConfigurationError, ValidationError, validate_file_readable
from .models import RepoConfig, SyncConfig

logger = logging.getLogger(__name__)

HOME_ENV = "REPO_SYNC_HOME"
CONFIG_ENV = "REPO_SYNC_CONFIG"
CONFIG_FILENAME = "config.yaml"

SAMPLE_CONFIG = """repos:
  - name: example-repo
    public: https://github.com/org/example-repo.git
    private: git@private.company.com:vendor/example-repo.git
"""


def get_home() -> Path:
    """Base directory for config and mirrors."""
    custom = os.environ.get(HOME_ENV)
    if custom:
        return Path(custom).expanduser()
    return Path.home() / ".repo-sync"


def get_config_path(custom_path: Optional[Union[str, Path]] = None) -> Path:
    if custom_path:
        return Path(custom_path).expanduser()
    from_env = os.environ.get(CONFIG_ENV)
    if from_env:
        return Path(from_env).expanduser()
    return get_home() / CONFIG_FILENAME


def get_cache_dir(config: SyncConfig) -> Path:
    if config.cache_dir:
        return Path(config.cache_dir).expanduser()
    return get_home() / "repos"


def get_repo_path(config: SyncConfig, repo_name: str) -> Path:
    """Path of the local bare mirror for a repository."""
    return get_cache_dir(config) / f"{repo_name}.git"


def ensure_cache_dir(config: SyncConfig) -> Path:
    path = get_cache_dir(config)
    path.mkdir(parents=True, exist_ok=True)
    return path


def _describe_schema_error(error: SchemaError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "config"
    return f"{location}: {first['msg']}"


def parse_config(data: Any) -> SyncConfig:
    """Validate already-loaded YAML data."""
    if not isinstance(data, dict) or not isinstance(data.get("repos"), list):
        raise ConfigurationError("Config must have a 'repos' array")
    try:
        return SyncConfig(**data)
    except SchemaError as e:
        raise ConfigurationError(f"Invalid config: {_describe_schema_error(e)}") from e


def load_config(config_path: Optional[Union[str, Path]] = None) -> SyncConfig:
    """
    Load and validate the config file.

    Raises:
        ConfigurationError: If the file is missing, unreadable, or invalid
    """
    path = get_config_path(config_path)

    if not path.exists():
        raise ConfigurationError(
            f"Config file not found: {path}\n"
            f"Create it with:\n\n"
            f"  mkdir -p {path.parent}\n"
            f"  cat > {path} << 'EOF'\n{SAMPLE_CONFIG}EOF"
        )

    try:
        content = validate_file_readable(path, "Config file")
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e

    try:
        data: Dict[str, Any] = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    config = parse_config(data)
    logger.debug(f"Loaded {len(config.repos)} repo(s) from {path}")
    return config


def find_repo(config: SyncConfig, name: str) -> Optional[RepoConfig]:
    return config.get_repo(name)
