from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional

from .errors import ConfigError, ConfigNotFound

DEFAULT_REDIRECT_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


@dataclass(frozen=True)
class GateConfig:
    # Address and port the gate listens on
    listen_host: str = "0.0.0.0"
    listen_port: int = 8080

    # Wrap accepted sockets in TLS using certificate/key (PEM files)
    listen_ssl: bool = False
    certificate: str = ""
    key: str = ""

    # Substrings matched case-sensitively against organization names.
    # Empty tuple = gating disabled, every connection is allowed.
    blocked_organizations: tuple[str, ...] = ()

    # Where blocked peers are sent
    redirect_url: str = DEFAULT_REDIRECT_URL

    # Seconds allowed for one RDAP lookup (None = ipwhois default)
    lookup_timeout: Optional[float] = None

    def with_blocked(self, patterns: tuple[str, ...]) -> "GateConfig":
        return GateConfig(
            listen_host=self.listen_host,
            listen_port=self.listen_port,
            listen_ssl=self.listen_ssl,
            certificate=self.certificate,
            key=self.key,
            blocked_organizations=patterns,
            redirect_url=self.redirect_url,
            lookup_timeout=self.lookup_timeout,
        )


# JSON key -> (field name, accepted types)
_FIELDS: dict[str, tuple[str, tuple[type, ...]]] = {
    "listenHost": ("listen_host", (str,)),
    "listenPort": ("listen_port", (int,)),
    "listenSSL": ("listen_ssl", (bool,)),
    "certificate": ("certificate", (str,)),
    "key": ("key", (str,)),
    "blockedOrganizations": ("blocked_organizations", (list,)),
    "redirectUrl": ("redirect_url", (str,)),
    "lookupTimeout": ("lookup_timeout", (int, float, type(None))),
}


def config_from_dict(data: dict[str, Any]) -> GateConfig:
    """Build a GateConfig from the parsed contents of config.json.

    Unknown keys are ignored, missing keys keep their defaults.
    """
    if not isinstance(data, dict):
        raise ConfigError("config root must be a JSON object")

    kwargs: dict[str, Any] = {}
    for json_key, (name, types) in _FIELDS.items():
        if json_key not in data:
            continue
        value = data[json_key]
        # bool is an int subclass; don't accept true as a port
        if isinstance(value, bool) and bool not in types:
            raise ConfigError(f"{json_key}: expected {types[0].__name__}, got bool")
        if not isinstance(value, types):
            raise ConfigError(
                f"{json_key}: expected {types[0].__name__}, got {type(value).__name__}"
            )
        kwargs[name] = value

    blocked = kwargs.get("blocked_organizations")
    if blocked is not None:
        if not all(isinstance(p, str) for p in blocked):
            raise ConfigError("blockedOrganizations: every entry must be a string")
        kwargs["blocked_organizations"] = tuple(blocked)

    port = kwargs.get("listen_port")
    if port is not None and not 0 <= port <= 65535:
        raise ConfigError(f"listenPort: {port} is out of range")

    cfg = GateConfig(**kwargs)
    if cfg.listen_ssl and not (cfg.certificate and cfg.key):
        raise ConfigError("listenSSL requires both certificate and key")
    return cfg


def load_config(path: str) -> GateConfig:
    """Read and validate a JSON config file. Raises ConfigError."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigNotFound(f"{path} does not exist") from e
    except OSError as e:
        raise ConfigError(f"could not read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"{path} is not valid JSON: {e}") from e
    return config_from_dict(data)
