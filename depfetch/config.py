"""Runtime settings, read from the environment with CLI overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace

from depfetch import __version__
from depfetch.exceptions import ConfigError

DEFAULT_CDN_HOSTS = (
    "https://unpkg.com",
    "https://cdn.jsdelivr.net/npm",
    "https://bundle.run",
)


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None
    if value < 0:
        raise ConfigError(f"{name} must not be negative, got {raw!r}")
    return value


def _env_hosts(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name)
    if not raw:
        return default
    hosts = tuple(h.strip().rstrip("/") for h in raw.split(",") if h.strip())
    return hosts or default


@dataclass(frozen=True)
class Settings:
    """Knobs for scanning, URL generation and fetching."""

    request_timeout: float = 5.0
    max_redirects: int = 5
    validation_bytes: int = 100
    content_probe_bytes: int = 1024
    output_dir_name: str = "external-dependencies"
    fallback_base_url: str = "https://cdn.example.com"
    cdn_hosts: tuple[str, ...] = field(default=DEFAULT_CDN_HOSTS)
    user_agent: str = f"depfetch/{__version__}"

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from ``DEPFETCH_*`` environment variables.

        Raises :class:`ConfigError` on malformed numeric values.
        """
        defaults = cls()
        return cls(
            request_timeout=_env_float("DEPFETCH_TIMEOUT", defaults.request_timeout),
            max_redirects=_env_int("DEPFETCH_MAX_REDIRECTS", defaults.max_redirects),
            output_dir_name=os.environ.get("DEPFETCH_OUTPUT_DIR") or defaults.output_dir_name,
            fallback_base_url=(
                os.environ.get("DEPFETCH_FALLBACK_BASE_URL") or defaults.fallback_base_url
            ).rstrip("/"),
            cdn_hosts=_env_hosts("DEPFETCH_CDN_HOSTS", defaults.cdn_hosts),
            user_agent=os.environ.get("DEPFETCH_USER_AGENT") or defaults.user_agent,
        )

    def with_overrides(self, **overrides: object) -> Settings:
        """Return a copy with every non-``None`` override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self
