"""
Session discovery for a Dynmap server.

The standalone web UI ships a small JavaScript file that names every
endpoint the client needs, e.g.::

    var config = {
      url : {
        configuration: 'up/configuration',
        update: 'up/world/{world}/{timestamp}',
        sendmessage: 'up/sendmessage',
        login: 'up/login',
        register: 'up/register',
        tiles: 'tiles/',
        markers: 'tiles/'
      }
    };

We scrape that file, then load the JSON configuration it points at.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from pydantic import ValidationError

from ..errors import AuthRequiredError, BootstrapParseError
from .http import Transport, fetch_url
from .models import Endpoints, ServerConfig, World
from .utils import join_url

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "standalone/config.js"

LOGIN_REQUIRED = "login-required"

_REQUIRED_KEYS = ("configuration", "update", "markers", "login")
_OPTIONAL_KEYS = ("tiles",)


def _pattern(key: str) -> re.Pattern:
    return re.compile(rf"\b{key}\s*:\s*'([^']+)'")


_PATTERNS = {key: _pattern(key) for key in _REQUIRED_KEYS + _OPTIONAL_KEYS}


@dataclass
class Session:
    """Everything learned from bootstrap; fixed for the client's lifetime."""
    endpoints: Endpoints
    config: ServerConfig
    worlds: dict[str, World] = field(default_factory=dict)

    @property
    def default_world(self) -> str:
        return self.config.defaultworld

    @property
    def update_rate(self) -> int:
        """Server-requested poll interval in milliseconds."""
        return self.config.updaterate


def parse_bootstrap(document: str) -> Endpoints:
    """Extract endpoint templates from the bootstrap document text."""
    found: dict[str, str] = {}
    for key, pattern in _PATTERNS.items():
        match = pattern.search(document)
        if match:
            found[key] = match.group(1)

    missing = [key for key in _REQUIRED_KEYS if key not in found]
    if missing:
        raise BootstrapParseError(
            f"Bootstrap document is missing: {', '.join(missing)}"
        )
    return Endpoints(**found)


def parse_server_config(payload: object) -> ServerConfig:
    """Validate the JSON configuration, rejecting login-protected servers."""
    if not isinstance(payload, dict):
        raise BootstrapParseError("Server configuration is not a JSON object")
    if payload.get("error") == LOGIN_REQUIRED:
        raise AuthRequiredError("Login required to access")
    try:
        return ServerConfig.model_validate(payload)
    except ValidationError as e:
        raise BootstrapParseError(f"Malformed server configuration: {e}") from e


async def fetch_session(
    transport: Transport,
    base_url: str,
    config_path: str = DEFAULT_CONFIG_PATH,
) -> Session:
    """
    Discover endpoints and load the server configuration.

    Raises:
        TransportError: either fetch failed
        BootstrapParseError: the bootstrap text or configuration is unusable
        AuthRequiredError: the server wants a login first
    """
    document = await fetch_url(transport, join_url(base_url, config_path), json=False)
    if not isinstance(document, str):
        raise BootstrapParseError("Bootstrap document is not text")
    endpoints = parse_bootstrap(document)
    logger.debug("Discovered endpoints: %s", endpoints.model_dump())

    payload = await fetch_url(transport, join_url(base_url, endpoints.configuration))
    config = parse_server_config(payload)

    worlds = {world.name: world for world in config.worlds}
    logger.info(
        "Loaded configuration: %d worlds, default %s, update rate %d ms",
        len(worlds), config.defaultworld, config.updaterate,
    )
    return Session(endpoints=endpoints, config=config, worlds=worlds)
