from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

DEFAULT_IGNORED_NAMESPACES = ("kube-system", "kube-public")

# Levels accepted by both uvicorn and logging.
LOG_LEVELS = ("critical", "error", "warning", "info", "debug")
_LOG_LEVEL_ALIASES = {"warn": "warning", "fatal": "critical"}


def normalise_log_level(level: str) -> str:
    key = level.strip().lower()
    key = _LOG_LEVEL_ALIASES.get(key, key)
    if key not in LOG_LEVELS:
        raise ValueError(f"unknown log level {level!r}; expected one of {', '.join(LOG_LEVELS)}")
    return key


@dataclass
class WebhookSettings:
    host: str = "0.0.0.0"
    port: int = 8443
    tls_cert: Optional[str] = None
    tls_key: Optional[str] = None
    ignored_namespaces: Tuple[str, ...] = field(default=DEFAULT_IGNORED_NAMESPACES)
    log_level: str = "info"

    @property
    def tls_enabled(self) -> bool:
        return bool(self.tls_cert and self.tls_key)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "WebhookSettings":
        env = os.environ if environ is None else environ
        raw_port = env.get("WEBHOOK_PORT", "8443")
        try:
            port = int(raw_port)
        except ValueError as exc:
            raise ValueError(f"WEBHOOK_PORT must be an integer, got {raw_port!r}") from exc
        if not 0 < port < 65536:
            raise ValueError(f"WEBHOOK_PORT out of range: {port}")

        raw_namespaces = env.get("WEBHOOK_IGNORED_NAMESPACES")
        if raw_namespaces is None:
            namespaces = DEFAULT_IGNORED_NAMESPACES
        else:
            namespaces = tuple(item.strip() for item in raw_namespaces.split(",") if item.strip())

        return cls(
            host=env.get("WEBHOOK_HOST", "0.0.0.0"),
            port=port,
            tls_cert=env.get("WEBHOOK_TLS_CERT") or None,
            tls_key=env.get("WEBHOOK_TLS_KEY") or None,
            ignored_namespaces=namespaces,
            log_level=normalise_log_level(env.get("WEBHOOK_LOG_LEVEL", "info")),
        )


__all__ = ["DEFAULT_IGNORED_NAMESPACES", "LOG_LEVELS", "WebhookSettings", "normalise_log_level"]
