"""
Proxy client configuration.

This module provides the settings of a proxy client: where the proxy
instances live, the namespace, and the defaults applied to new request
contexts. Settings can be built directly or read from the environment.
"""

import os
from typing import List, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field, ValidationError, field_validator

from oiosds.core.context import RequestContext
from oiosds.core.deadline import DeadlineManager
from oiosds.shared.constants import DEFAULT_TIMEOUT_MS
from oiosds.shared.exceptions import ConfigurationError


def _as_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _as_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _host_of(url: str) -> str:
    """Reduce ``http://host:port/...`` or ``host:port`` to ``host:port``."""
    candidate = url.strip()
    if "://" not in candidate:
        candidate = f"//{candidate}"
    parsed = urlparse(candidate)
    if not parsed.hostname:
        raise ValueError(f"no host in proxy address: {url!r}")
    host = parsed.hostname
    if ":" in host:
        host = f"[{host}]"
    return f"{host}:{parsed.port}" if parsed.port else host


class ProxySettings(BaseModel):
    """Settings of a proxy client."""
    url: str
    ns: str
    hosts: List[str] = Field(default_factory=list)
    scheme: str = "http"
    autocreate: bool = False
    ecd: Optional[str] = None
    ecdrain: bool = False
    default_timeout_ms: int = DEFAULT_TIMEOUT_MS

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _host_of(v)

    @field_validator("hosts")
    @classmethod
    def validate_hosts(cls, v: List[str]) -> List[str]:
        return [_host_of(h) for h in v]

    @field_validator("ns")
    @classmethod
    def validate_ns(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("namespace cannot be empty")
        return v.strip()

    @field_validator("scheme")
    @classmethod
    def validate_scheme(cls, v: str) -> str:
        if v not in ("http", "https"):
            raise ValueError(f"unsupported scheme: {v}")
        return v

    @field_validator("default_timeout_ms")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("default_timeout_ms must be positive")
        return v

    @classmethod
    def create(cls, **kwargs) -> "ProxySettings":
        """Build settings, reporting invalid values as ConfigurationError."""
        try:
            return cls(**kwargs)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid proxy settings: {e}") from e

    @classmethod
    def from_environment(cls) -> "ProxySettings":
        """Read settings from ``OIO_*`` environment variables."""
        url = os.environ.get("OIO_PROXY_URL")
        ns = os.environ.get("OIO_NS")
        if not url or not ns:
            raise ConfigurationError("OIO_PROXY_URL and OIO_NS must be set")

        try:
            timeout = int(os.environ.get("OIO_TIMEOUT_MS", DEFAULT_TIMEOUT_MS))
        except ValueError as e:
            raise ConfigurationError(f"OIO_TIMEOUT_MS must be an integer: {e}") from e

        return cls.create(
            url=url,
            ns=ns,
            hosts=_as_list(os.environ.get("OIO_PROXY_HOSTS")),
            scheme=os.environ.get("OIO_PROXY_SCHEME", "http"),
            autocreate=_as_bool(os.environ.get("OIO_AUTOCREATE"), False),
            ecd=os.environ.get("OIO_ECD") or None,
            ecdrain=_as_bool(os.environ.get("OIO_ECDRAIN"), False),
            default_timeout_ms=timeout,
        )

    def all_hosts(self) -> List[str]:
        """Candidate hosts: the main url first, then the extra ones, without duplicates."""
        seen = set()
        result = []
        for host in [self.url, *self.hosts]:
            if host not in seen:
                seen.add(host)
                result.append(host)
        return result

    def new_context(self, deadline_manager: Optional[DeadlineManager] = None) -> RequestContext:
        """Request context preset with the configured timeout."""
        return RequestContext(timeout=self.default_timeout_ms, deadline_manager=deadline_manager)
