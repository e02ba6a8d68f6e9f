"""Fetcher — try candidate URLs in order and keep the first valid script."""

from __future__ import annotations

import dataclasses
import os
import re
from pathlib import Path

import httpx
import structlog

from depfetch.config import Settings
from depfetch.exceptions import UnsupportedURLError
from depfetch.models import AttemptOutcome, DependencyRecord, DownloadAttempt, ResolveResult
from depfetch.urls import URLCandidateGenerator, normalize_url

log = structlog.get_logger("depfetch.engine")

REDIRECT_STATUSES = frozenset({301, 302, 307, 308})
NO_VALID_LOCATION = "no valid location found"

_SCRIPT_TOKEN_RE = re.compile(r"\b(?:function|var|const|let|class)\b|=>")
_HTML_PREFIX_RE = re.compile(r"\A\s*<(?:!doctype|html)\b", re.IGNORECASE)


def looks_like_script(head: str) -> bool:
    """Heuristic: does *head* read like script source rather than an error page?"""
    if _HTML_PREFIX_RE.match(head):
        return False
    return _SCRIPT_TOKEN_RE.search(head) is not None


class Fetcher:
    """Resolve dependency records to validated files on disk.

    Candidates for one dependency are tried strictly one after another; the
    first validated download wins.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
        generator: URLCandidateGenerator | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._generator = generator or URLCandidateGenerator(self._settings)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(self._settings.request_timeout),
            follow_redirects=False,
            headers={"User-Agent": self._settings.user_agent},
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> Fetcher:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    async def resolve(self, record: DependencyRecord, output_dir: Path) -> ResolveResult:
        """Download *record* into *output_dir*.

        Returns a :class:`ResolveResult` whose ``path`` is set on success, or
        whose ``reason`` is ``"no valid location found"`` once every candidate
        has been rejected.
        """
        dest = output_dir / record.artifact_filename
        result = ResolveResult(record=record)

        for url in self._generator.candidates(record):
            if await self._try_candidate(url, dest, result.attempts):
                result.path = dest
                log.info("fetcher.resolved", dependency=record.label, url=result.resolved_url)
                return result

        result.reason = NO_VALID_LOCATION
        log.info(
            "fetcher.exhausted",
            dependency=record.label,
            attempts=len(result.attempts),
        )
        return result

    # ── internal ───────────────────────────────────────────────────────────

    async def _try_candidate(
        self,
        url: str,
        dest: Path,
        attempts: list[DownloadAttempt],
    ) -> bool:
        """Fetch one candidate, following at most ``max_redirects`` hops."""
        try:
            current = normalize_url(url)
        except UnsupportedURLError as exc:
            attempts.append(DownloadAttempt(url, AttemptOutcome.NETWORK_ERROR, detail=str(exc)))
            log.debug("fetcher.unsupported_url", url=url)
            return False
        hops_left = self._settings.max_redirects

        while True:
            attempt, next_url = await self._fetch_once(current, dest)
            attempts.append(attempt)
            log.debug(
                "fetcher.attempt",
                url=attempt.url,
                outcome=attempt.outcome.value,
                status=attempt.status_code,
                detail=attempt.detail,
            )

            if next_url is None:
                return attempt.outcome is AttemptOutcome.VALIDATED_SUCCESS

            if hops_left == 0:
                attempts[-1] = dataclasses.replace(
                    attempt,
                    outcome=AttemptOutcome.REJECTED_STATUS,
                    detail="redirect limit exceeded",
                )
                return False
            hops_left -= 1
            current = next_url

    async def _fetch_once(self, url: str, dest: Path) -> tuple[DownloadAttempt, str | None]:
        """Issue a single GET; never raises for network or HTTP failures.

        Returns the attempt and, for a redirect, the normalized absolute target.
        """
        part = dest.with_name(dest.name + ".part")
        try:
            async with self._client.stream("GET", url) as response:
                status = response.status_code
                location = response.headers.get("location")
                if status in REDIRECT_STATUSES and location:
                    try:
                        target = normalize_url(str(response.url.join(location)))
                    except UnsupportedURLError as exc:
                        attempt = DownloadAttempt(url, AttemptOutcome.REJECTED_STATUS, status, str(exc))
                        return attempt, None
                    return DownloadAttempt(url, AttemptOutcome.REDIRECTED, status, target), target
                if status != 200:
                    return DownloadAttempt(url, AttemptOutcome.REJECTED_STATUS, status), None

                with part.open("wb") as fh:
                    async for chunk in response.aiter_bytes():
                        fh.write(chunk)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            part.unlink(missing_ok=True)
            attempt = DownloadAttempt(url, AttemptOutcome.NETWORK_ERROR, detail=type(exc).__name__)
            return attempt, None
        except OSError:
            part.unlink(missing_ok=True)
            raise

        if not looks_like_script(self._read_head(part)):
            part.unlink(missing_ok=True)
            return DownloadAttempt(url, AttemptOutcome.REJECTED_CONTENT, 200), None

        os.replace(part, dest)
        return DownloadAttempt(url, AttemptOutcome.VALIDATED_SUCCESS, 200), None

    def _read_head(self, path: Path) -> str:
        with path.open("rb") as fh:
            raw = fh.read(self._settings.validation_bytes)
        return raw.decode("utf-8", errors="replace")
