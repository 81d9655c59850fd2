from pathlib import Path

import yaml

from brewcook.constants import CONFIG_FILE, DEFAULT_BREW, MANIFEST_FILE
from brewcook.errors import ConfigError
from brewcook.manifest import Manifest, parse_manifest

DEFAULTS = {
    'brew': DEFAULT_BREW,
    'stop_on_error': False,
}


def _read_yaml(path: Path):
    try:
        with open(path) as f:
            return yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f'Cannot read {path}: {e.strerror or e}') from e
    except yaml.YAMLError as e:
        raise ConfigError(f'Invalid YAML in {path}: {e}') from e


def load_config(path: Path = CONFIG_FILE) -> dict:
    """Load tool settings, falling back to defaults."""
    config = dict(DEFAULTS)
    if not path.exists():
        return config
    data = _read_yaml(path) or {}
    if not isinstance(data, dict):
        raise ConfigError(f'Config must be a mapping: {path}')
    config.update(data)
    return config


def resolve_stop_on_error(config: dict, override: bool | None) -> bool:
    """Resolve effective stop-on-error from config and CLI override."""
    stop = bool(config.get('stop_on_error', False))
    return stop if override is None else override


def load_manifest(path: Path | None = None, hostname: str | None = None) -> Manifest:
    """Load and evaluate the manifest file."""
    path = Path(path or MANIFEST_FILE).expanduser()
    if not path.is_file():
        raise ConfigError(f'Manifest not found: {path}. Supply a path or create {MANIFEST_FILE}')
    return parse_manifest(_read_yaml(path), hostname)
