import os
from datetime import timezone, datetime

import yaml

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

DEFAULT_CONFIG = {
    "app": {"name": "CricTrack", "secret_key": None},
    "database": {"uri": f"sqlite:///{os.path.join(PROJECT_ROOT, 'data', 'crictrack.db')}"},
    "logging": {"level": "INFO", "dir": "logs", "max_bytes": 10 * 1024 * 1024, "backup_count": 5},
    "server": {"host": "127.0.0.1", "port": 5000},
}


def load_config():
    """
    Load config.yaml merged over DEFAULT_CONFIG.

    CRICTRACK_CONFIG_PATH points at an alternative file; a missing file
    just means defaults.
    """
    config_path = os.getenv("CRICTRACK_CONFIG_PATH") or os.path.join(PROJECT_ROOT, "config", "config.yaml")
    loaded = {}
    if os.path.exists(config_path):
        with open(config_path, "r") as f:
            loaded = yaml.safe_load(f) or {}

    config = {}
    for section, defaults in DEFAULT_CONFIG.items():
        config[section] = dict(defaults)
        config[section].update(loaded.get(section) or {})
    return config


def parse_datetime(value):
    """
    Parse an ISO-8601 string into a naive UTC datetime.

    Aware values are converted to UTC; naive ones are taken as UTC already.
    Raises ValueError on anything unparseable.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError("date must be an ISO-8601 string")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
