"""URLCandidateGenerator — guess where a dependency's script artifact lives.

Candidates are ordered most-specific first:

1. vendor pattern ``{base}{prefix}/bundles/{name}.js`` (embedded-eval
   records carrying both a base URL and a path prefix)
2. three generic patterns on the record's base URL, or the fallback host
3. public package CDNs, grouped by suffix: every host's minified dist
   build, then every host's dist build, then flat, then generic bundle
"""

from __future__ import annotations

import re

from depfetch.config import Settings
from depfetch.exceptions import UnsupportedURLError
from depfetch.models import DependencyRecord, SourceStrategy

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")
_DUP_SLASH_RE = re.compile(r"(?<!:)/{2,}")

CDN_SUFFIXES = (
    "/dist/{name}.min.js",
    "/dist/{name}.js",
    "/{name}.js",
    "/bundle.js",
)


def normalize_url(url: str) -> str:
    """Make *url* fetchable over HTTPS.

    ``//host/x``, bare ``host/x`` and ``http://host/x`` all become
    ``https://host/x``; repeated slashes after the scheme are collapsed.
    Any other scheme raises :class:`UnsupportedURLError`.
    """
    url = url.strip()
    if url.startswith("//"):
        url = "https:" + url
    elif not _SCHEME_RE.match(url):
        url = "https://" + url.lstrip("/")
    scheme, _, rest = url.partition("://")
    scheme = scheme.lower()
    if scheme not in ("http", "https"):
        raise UnsupportedURLError(url)
    return f"https://{_DUP_SLASH_RE.sub('/', rest)}"


class URLCandidateGenerator:
    """Deterministic, finite candidate list for a :class:`DependencyRecord`."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or Settings()

    def candidates(self, record: DependencyRecord) -> list[str]:
        name = record.name
        version = record.version
        urls: list[str] = []

        if (
            record.source_strategy is SourceStrategy.EMBEDDED_EVAL
            and record.base_url
            and record.path_prefix
        ):
            urls.append(f"{record.base_url}{record.path_prefix}/bundles/{name}.js")

        base = record.base_url or self._settings.fallback_base_url
        urls.extend(
            [
                f"{base}/{name}@{version}/dist/{name}.js",
                f"{base}/{name}@{version}/{name}.js",
                f"{base}/{record.path_prefix or name}/{name}.js",
            ]
        )

        for suffix in CDN_SUFFIXES:
            for host in self._settings.cdn_hosts:
                urls.append(f"{host}/{name}@{version}" + suffix.format(name=name))

        return urls


def candidates(record: DependencyRecord, settings: Settings | None = None) -> list[str]:
    """Convenience wrapper around :class:`URLCandidateGenerator`."""
    return URLCandidateGenerator(settings).candidates(record)
