from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any, Iterable, Mapping

from dotenv import load_dotenv

from .models import CommMode


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ConnectorConfig:
    host: str
    port: int
    url_scheme: str = "http"
    auth_port: int | None = None
    transport_mode: CommMode = CommMode.POST
    timeout_seconds: float = 10.0
    verify_ssl: bool = True

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> ConnectorConfig:
        """Build from the ``{webserver: {host, port, authPort}, urlScheme}`` shape."""
        webserver = values.get("webserver")
        if not isinstance(webserver, Mapping):
            raise ConfigError("Missing required config section: webserver")
        host = str(webserver.get("host") or "").strip()
        _validate(bool(host), "Missing required config value: webserver.host")
        port = _coerce_port("webserver.port", webserver.get("port"))
        auth_port = webserver.get("authPort")
        return cls(
            host=host,
            port=port,
            url_scheme=str(values.get("urlScheme") or "http"),
            auth_port=_coerce_port("webserver.authPort", auth_port) if auth_port is not None else None,
            transport_mode=_coerce_mode(values.get("mode"), CommMode.POST),
        )

    def locate(self, host: str, port: int) -> ConnectorConfig:
        return replace(self, host=host, port=int(port))


class SessionConfig:
    """The configuration a session started with, plus the copy load balancing rewrites."""

    def __init__(self, original: ConnectorConfig) -> None:
        self._original = original
        self.working = original

    @property
    def original(self) -> ConnectorConfig:
        return self._original

    def locate(self, host: str, port: int) -> None:
        self.working = self.working.locate(host, port)

    def reset(self) -> None:
        self.working = self._original


def _require(values: dict[str, str | None], required: Iterable[str]) -> None:
    missing = [key for key in required if not values.get(key)]
    if missing:
        raise ConfigError(f"Missing required config values: {', '.join(missing)}")


def _validate(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigError(message)


def _coerce_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _coerce_port(name: str, raw: object) -> int:
    try:
        port = int(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected an integer, got {raw!r}") from exc
    _validate(0 < port < 65536, f"Invalid {name}: expected 1-65535, got {port}")
    return port


def _coerce_mode(raw: object, default: CommMode) -> CommMode:
    if raw is None or raw == "":
        return default
    wanted = str(raw).strip().lower()
    for mode in CommMode:
        if mode.value.lower() == wanted:
            return mode
    allowed = ", ".join(mode.value for mode in CommMode)
    raise ConfigError(f"Invalid transport mode: expected one of {allowed}, got {raw!r}")


def _read_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected a number, got {raw!r}") from exc


def load_config(env_file: str | None = None) -> ConnectorConfig:
    """Load config from environment with optional .env override."""
    load_dotenv(env_file)

    host = (os.getenv("GAMECONN_HOST") or "").strip()
    port = (os.getenv("GAMECONN_PORT") or "").strip()
    _require({"GAMECONN_HOST": host, "GAMECONN_PORT": port}, ["GAMECONN_HOST", "GAMECONN_PORT"])

    url_scheme = (os.getenv("GAMECONN_URL_SCHEME") or "http").strip().lower()
    _validate(
        url_scheme in {"http", "https"},
        f"Invalid GAMECONN_URL_SCHEME: expected http or https, got {url_scheme!r}",
    )

    raw_auth_port = (os.getenv("GAMECONN_AUTH_PORT") or "").strip()
    auth_port = _coerce_port("GAMECONN_AUTH_PORT", raw_auth_port) if raw_auth_port else None

    timeout_seconds = _read_float("GAMECONN_TIMEOUT_SECONDS", "10")
    _validate(
        timeout_seconds > 0,
        f"Invalid GAMECONN_TIMEOUT_SECONDS: expected > 0, got {timeout_seconds}",
    )

    return ConnectorConfig(
        host=host,
        port=_coerce_port("GAMECONN_PORT", port),
        url_scheme=url_scheme,
        auth_port=auth_port,
        transport_mode=_coerce_mode(os.getenv("GAMECONN_MODE"), CommMode.POST),
        timeout_seconds=timeout_seconds,
        verify_ssl=_coerce_bool(os.getenv("GAMECONN_VERIFY_SSL"), True),
    )
