"""
Configuration loader for the watcher.

Reads a YAML config and lets the environment override the server URL.
"""

from __future__ import annotations

import os

import yaml
from dotenv import load_dotenv

from .api.bootstrap import DEFAULT_CONFIG_PATH
from .api.utils import API_TIMEOUT

load_dotenv()

DEFAULTS = {
    "url": None,
    "config_path": DEFAULT_CONFIG_PATH,
    "worlds": [],
    "timeout": API_TIMEOUT,
    "poll_interval": None,
    "headers": {},
}


def load_config(config_path: str = "config.yaml", url: str | None = None) -> dict:
    """
    Load configuration from a YAML file, falling back to defaults.

    Precedence for the server URL: ``url`` argument, then DYNMAP_URL from
    the environment (or a .env file), then ``url`` in the file.
    """
    config = dict(DEFAULTS)
    if os.path.exists(config_path):
        with open(config_path, "r") as f:
            config.update(yaml.safe_load(f) or {})

    env_url = os.getenv("DYNMAP_URL")
    if url:
        config["url"] = url
    elif env_url:
        config["url"] = env_url
    if not config.get("url"):
        raise ValueError("Dynmap URL not set (config 'url' or DYNMAP_URL)")

    worlds = config.get("worlds") or []
    if isinstance(worlds, str):
        worlds = [worlds]
    config["worlds"] = list(worlds)

    return config
