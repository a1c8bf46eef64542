"""Configuration for the Santalink service.

Reads from config/santalink.ini if present, environment variables override.
The database URL may carry credentials; keep it out of version control.
"""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass
from pathlib import Path

_ROOT = Path(__file__).resolve().parent.parent.parent
_CONFIG_FILE = _ROOT / "config" / "santalink.ini"


@dataclass(frozen=True)
class SantalinkConfig:
    """Service configuration. Immutable once loaded."""

    data_dir: str = str(_ROOT / "data")
    roster_seed: str = str(_ROOT / "data" / "colleagues.json")
    store_backend: str = "auto"
    database_url: str = ""
    store_timeout: float = 5.0
    base_url: str = ""
    host: str = "127.0.0.1"
    port: int = 3000


_CASTS = {"port": int, "store_timeout": float}


def _cast(config_key: str, val: str):
    return _CASTS.get(config_key, str)(val)


def load_config(config_path: Path | None = None) -> SantalinkConfig:
    """Load config from INI file, then override with environment variables."""
    path = config_path or _CONFIG_FILE
    kwargs: dict = {}

    if path.exists():
        parser = configparser.ConfigParser()
        parser.read(path)
        sections = {
            "store": [
                ("data_dir", "data_dir"),
                ("roster_seed", "roster_seed"),
                ("backend", "store_backend"),
                ("database_url", "database_url"),
                ("timeout", "store_timeout"),
            ],
            "gateway": [
                ("base_url", "base_url"),
                ("host", "host"),
                ("port", "port"),
            ],
        }
        for section, keys in sections.items():
            if not parser.has_section(section):
                continue
            for ini_key, config_key in keys:
                val = parser.get(section, ini_key, fallback=None)
                if val is not None:
                    kwargs[config_key] = _cast(config_key, val)

    env_map = {
        "SANTALINK_DATA_DIR": "data_dir",
        "SANTALINK_ROSTER_SEED": "roster_seed",
        "SANTALINK_STORE_BACKEND": "store_backend",
        "SANTALINK_DATABASE_URL": "database_url",
        "SANTALINK_STORE_TIMEOUT": "store_timeout",
        "SANTALINK_BASE_URL": "base_url",
        "SANTALINK_HOST": "host",
        "SANTALINK_PORT": "port",
    }
    for env_key, config_key in env_map.items():
        val = os.getenv(env_key)
        if val is not None:
            kwargs[config_key] = _cast(config_key, val)

    if "base_url" in kwargs:
        kwargs["base_url"] = kwargs["base_url"].rstrip("/")
    return SantalinkConfig(**kwargs)
