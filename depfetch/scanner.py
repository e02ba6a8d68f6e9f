"""ManifestScanner — find files that plausibly declare third-party dependencies.

Classification is heuristic: a file is a candidate when its name matches one
of the manifest-name patterns, or when the first ``content_probe_bytes`` of
its content match those patterns or a generic declaration keyword.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterable, Iterator
from pathlib import Path

import structlog

from depfetch.config import Settings
from depfetch.models import DetectionReason, ManifestCandidate

log = structlog.get_logger("depfetch.engine")

# Ordered; all case-insensitive.
DEFAULT_NAME_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"dependencies?",
        r"bender",
        r"manifest",
        r"modules?",
        r"components?",
        r"packages?",
        r"vendor",
        r"libs?",
        r"externals?",
        r"include",
        r"require",
        r"imports?",
    )
)

_DECLARATION_KEYWORDS_RE = re.compile(r"dependencies|depVersions|require|import", re.IGNORECASE)

# Build artifacts, VCS metadata and dependency caches.
DEFAULT_SKIP_DIRS = frozenset({"node_modules", "dist", "build", ".git", ".cache"})


class ManifestScanner:
    """Walk a directory tree and classify manifest candidates."""

    def __init__(
        self,
        settings: Settings | None = None,
        name_patterns: Iterable[re.Pattern[str]] = DEFAULT_NAME_PATTERNS,
        skip_dirs: Iterable[str] = DEFAULT_SKIP_DIRS,
    ) -> None:
        self._settings = settings or Settings()
        self._name_patterns = tuple(name_patterns)
        self._skip_dirs = {d.lower() for d in skip_dirs}
        # Never re-scan previously downloaded artifacts.
        self._skip_dirs.add(self._settings.output_dir_name.lower())

    def scan(self, root: Path) -> list[ManifestCandidate]:
        """Return manifest candidates under *root* in traversal order."""
        return list(self.iter_candidates(root))

    def iter_candidates(self, root: Path) -> Iterator[ManifestCandidate]:
        stack = [Path(root)]
        while stack:
            current = stack.pop()
            try:
                entries = list(os.scandir(current))
            except OSError as exc:
                log.debug("scanner.list_failed", path=str(current), error=str(exc))
                continue

            subdirs: list[Path] = []
            for entry in entries:
                try:
                    if entry.is_dir(follow_symlinks=False):
                        if entry.name.lower() not in self._skip_dirs:
                            subdirs.append(Path(entry.path))
                        continue
                    if not entry.is_file():
                        continue
                except OSError:
                    continue

                reason = self.classify(Path(entry.path))
                if reason is not None:
                    yield ManifestCandidate(path=Path(entry.path), detection_reason=reason)

            # Reversed so subdirectories are visited in listing order.
            stack.extend(reversed(subdirs))

    def classify(self, path: Path) -> DetectionReason | None:
        """Return why *path* looks like a manifest, or ``None``.

        An unreadable file whose name does not match is excluded rather than
        aborting the scan.
        """
        if self._matches_name(path.name):
            return DetectionReason.FILENAME

        try:
            head = self._read_head(path)
        except OSError as exc:
            log.debug("scanner.read_failed", path=str(path), error=str(exc))
            return None

        if self._matches_content(head):
            return DetectionReason.CONTENT
        return None

    def _matches_name(self, name: str) -> bool:
        return any(p.search(name) for p in self._name_patterns)

    def _matches_content(self, head: str) -> bool:
        if any(p.search(head) for p in self._name_patterns):
            return True
        return _DECLARATION_KEYWORDS_RE.search(head) is not None

    def _read_head(self, path: Path) -> str:
        # Bounded byte read first, then decode: a multi-byte sequence cut at
        # the boundary becomes a replacement character.
        with path.open("rb") as fh:
            raw = fh.read(self._settings.content_probe_bytes)
        return raw.decode("utf-8", errors="replace")


def scan(root: Path, settings: Settings | None = None) -> list[ManifestCandidate]:
    """Convenience wrapper around :class:`ManifestScanner`."""
    return ManifestScanner(settings).scan(root)
