from pathlib import Path

CONFIG_DIR = Path.home() / '.config' / 'brewcook'
CONFIG_FILE = CONFIG_DIR / 'config.yaml'
MANIFEST_FILE = CONFIG_DIR / 'manifest.yaml'

DEFAULT_BREW = 'brew'
