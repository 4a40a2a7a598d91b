# common/config_loader.py
import os
import yaml
import logging
import hashlib
import pathlib
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from dotenv import load_dotenv

_log = logging.getLogger("ops-dashboard")


def load_env_files(candidates: Iterable[str] = (".env.local", "env.local", ".env")) -> None:
    """
    Load env files from both CWD and project root (relative to this file),
    without overriding values already provided by the platform.
    """
    here = pathlib.Path(__file__).resolve()
    roots = {
        pathlib.Path.cwd(),
        here.parent.parent,
    }
    for fname in candidates:
        for root in roots:
            p = root / fname
            if p.exists():
                load_dotenv(p, override=False)


def load_config() -> Dict[str, Any]:
    """Load YAML from CONFIG_PATH or ./config.yaml, with safe defaults."""
    config_path = Path(os.getenv("CONFIG_PATH", "config.yaml"))
    if not config_path.exists():
        _log.warning("Config file not found at %s. Using built-in defaults.", config_path)
        return {}
    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        _log.error("Failed to parse %s: %s. Using built-in defaults.", config_path, e)
        return {}
    if not isinstance(data, dict):
        _log.error("Config file %s is not a mapping. Using built-in defaults.", config_path)
        return {}
    return data


def cfg_get(d: Dict[str, Any], path: str, default=None):
    """Safely fetch a nested key via dotted path, e.g. cfg_get(cfg, 'airtable.tables.jobs')."""
    cur = d
    for part in path.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


def mask_key(key: Optional[str]) -> str:
    """Fingerprint an API key for log lines (Airtable token, Stripe secret)."""
    if not key:
        return "<none>"
    digest = hashlib.sha256(key.encode()).hexdigest()
    return f"sha256:{digest[:8]}"
