# flowstate/utils/config.py
import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .paths import DB_PATH, config_dir

_DEFAULTS: Dict[str, Any] = {
    "database": {
        "path": None,
    },
    "logging": {
        "level": "INFO",
    },
}


def settings_file() -> Path:
    return config_dir() / "settings.json"


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    path = path or settings_file()
    if path.exists():
        try:
            return _merge(_DEFAULTS, json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError):
            logging.getLogger("flowstate.config").warning("Ignoring unreadable settings file %s", path)
            return copy.deepcopy(_DEFAULTS)
    return copy.deepcopy(_DEFAULTS)


def save_settings(data: Dict[str, Any], path: Optional[Path] = None) -> None:
    path = path or settings_file()
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def resolve_db_path(settings: Optional[Dict[str, Any]] = None) -> Path:
    """FLOWSTATE_DB env var, then settings.json, then the XDG default."""
    env = os.environ.get("FLOWSTATE_DB")
    if env:
        return Path(env).expanduser()
    settings = settings if settings is not None else load_settings()
    configured = (settings.get("database") or {}).get("path")
    if configured:
        return Path(configured).expanduser()
    return DB_PATH
