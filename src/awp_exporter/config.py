"""Exporter configuration."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

DEFAULT_PORT = 6255
DEFAULT_HOST = "0.0.0.0"
DEFAULT_MIRROR_PORT = 8000
DEFAULT_MIRROR_PATH = "/data/report"
HTTPS_PORT = 443
MIRROR_TIMEOUT_SECONDS = 10.0
MIRROR_USER_AGENT = "awp-exporter-mirror/1.0"

ENV_PREFIX = "AWP_EXPORTER_"


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class MirrorConfig:
    """Where decoded reports are replicated to.

    Attributes:
        host: Sink hostname. Empty disables mirroring.
        port: Sink port. ``None`` means "not set": 8000 for plain HTTP, 443
            for HTTPS. An explicit 80 is also promoted to 443 when HTTPS is on.
        path: Path prefix; the station identifier is appended to it.
        https: Use HTTPS instead of HTTP.
        timeout: Upper bound in seconds for one outbound request.
    """

    host: str = ""
    port: int | None = None
    path: str = DEFAULT_MIRROR_PATH
    https: bool = False
    timeout: float = MIRROR_TIMEOUT_SECONDS

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    @property
    def scheme(self) -> str:
        return "https" if self.https else "http"

    @property
    def effective_port(self) -> int:
        if self.https and self.port in (None, 80):
            return HTTPS_PORT
        return DEFAULT_MIRROR_PORT if self.port is None else self.port

    def url_for(self, station: str) -> str:
        """Return the sink URL (without query) for a station's report."""
        path = self.path.rstrip("/")
        return f"{self.scheme}://{self.host}:{self.effective_port}{path}/{station}"


@dataclasses.dataclass(frozen=True)
class ExporterConfig:
    """Process configuration.

    Attributes:
        port: Port the HTTP server listens on.
        host: Address the HTTP server binds to.
        verbose: Enable debug-level logging.
        mirror: Mirror sink settings.
    """

    port: int = DEFAULT_PORT
    host: str = DEFAULT_HOST
    verbose: bool = False
    mirror: MirrorConfig = dataclasses.field(default_factory=MirrorConfig)

    @classmethod
    def from_env(cls, **overrides: Any) -> ExporterConfig:
        """Create configuration from ``AWP_EXPORTER_*`` environment variables.

        Explicit keyword arguments override environment values. Mirror
        settings may be overridden with a ``mirror`` dict or MirrorConfig.

        Raises:
            ValueError: If a numeric variable does not parse.
        """
        env = os.environ

        mirror_kwargs: dict[str, Any] = {}
        host_env = env.get(f"{ENV_PREFIX}MIRROR_HOST")
        if host_env is not None:
            mirror_kwargs["host"] = host_env
        port_env = env.get(f"{ENV_PREFIX}MIRROR_PORT")
        if port_env is not None:
            mirror_kwargs["port"] = int(port_env)
        path_env = env.get(f"{ENV_PREFIX}MIRROR_PATH")
        if path_env is not None:
            mirror_kwargs["path"] = path_env
        mirror_kwargs["https"] = _env_bool(env.get(f"{ENV_PREFIX}MIRROR_HTTPS"), False)

        mirror_overrides = overrides.pop("mirror", None)
        if isinstance(mirror_overrides, dict):
            mirror_kwargs.update(mirror_overrides)
        elif isinstance(mirror_overrides, MirrorConfig):
            mirror_kwargs = dataclasses.asdict(mirror_overrides)

        config_kwargs: dict[str, Any] = {"mirror": MirrorConfig(**mirror_kwargs)}

        port_env = env.get(f"{ENV_PREFIX}PORT")
        if port_env is not None:
            config_kwargs["port"] = int(port_env)
        host_env = env.get(f"{ENV_PREFIX}HOST")
        if host_env is not None:
            config_kwargs["host"] = host_env
        config_kwargs["verbose"] = _env_bool(env.get(f"{ENV_PREFIX}VERBOSE"), False)

        config_kwargs.update(overrides)
        return cls(**config_kwargs)
