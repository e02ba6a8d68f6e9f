"""Data models for manifest scanning, parsing and fetching."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class DetectionReason(str, Enum):
    FILENAME = "filename-match"
    CONTENT = "content-match"


class SourceStrategy(str, Enum):
    EMBEDDED_EVAL = "embedded-eval"
    STRUCTURED_JSON = "structured-json"
    STRUCTURED_YAML = "structured-yaml"
    TEXTUAL_REGEX = "textual-regex"


class AttemptOutcome(str, Enum):
    REDIRECTED = "redirected"
    VALIDATED_SUCCESS = "validated-success"
    REJECTED_STATUS = "rejected-status"
    REJECTED_CONTENT = "rejected-content"
    NETWORK_ERROR = "network-error"


@dataclass(frozen=True)
class ManifestCandidate:
    """A file suspected of declaring dependency names/versions."""

    path: Path
    detection_reason: DetectionReason


@dataclass(frozen=True)
class DependencyRecord:
    """A (name, version) pair plus the provenance needed to guess a location."""

    name: str
    version: str
    source_strategy: SourceStrategy
    path_prefix: str | None = None
    base_url: str | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("dependency name must be non-empty")
        if not self.version:
            raise ValueError(f"dependency {self.name!r} has an empty version")

    @property
    def artifact_filename(self) -> str:
        """Output filename: ``<name with "/" replaced by "_">@<version>.js``."""
        name = self.name.replace("/", "_").replace("\\", "_")
        version = self.version.replace("/", "_").replace("\\", "_")
        return f"{name}@{version}.js"

    @property
    def label(self) -> str:
        return f"{self.name}@{self.version}"


@dataclass(frozen=True)
class DownloadAttempt:
    """One outbound request and what became of it."""

    url: str
    outcome: AttemptOutcome
    status_code: int | None = None
    detail: str | None = None


@dataclass
class ResolveResult:
    """Terminal outcome of resolving one dependency."""

    record: DependencyRecord
    path: Path | None = None
    reason: str | None = None
    attempts: list[DownloadAttempt] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.path is not None

    @property
    def resolved_url(self) -> str | None:
        for attempt in reversed(self.attempts):
            if attempt.outcome is AttemptOutcome.VALIDATED_SUCCESS:
                return attempt.url
        return None


@dataclass
class ManifestReport:
    """Per-manifest outcome collected by the orchestrator."""

    candidate: ManifestCandidate
    strategy: SourceStrategy | None = None
    results: list[ResolveResult] = field(default_factory=list)
    error: str | None = None

    @property
    def dependency_count(self) -> int:
        return len(self.results)

    @property
    def downloaded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.ok)


@dataclass
class RunSummary:
    """Result of a full scan -> parse -> fetch run."""

    root: Path
    output_dir: Path
    manifests: list[ManifestReport] = field(default_factory=list)

    @property
    def dependencies_found(self) -> int:
        return sum(m.dependency_count for m in self.manifests)

    @property
    def downloaded(self) -> int:
        return sum(m.downloaded for m in self.manifests)

    @property
    def failed(self) -> int:
        return sum(m.failed for m in self.manifests)

    def to_dict(self) -> dict:
        return {
            "root": str(self.root),
            "output_dir": str(self.output_dir),
            "dependencies_found": self.dependencies_found,
            "downloaded": self.downloaded,
            "failed": self.failed,
            "manifests": [
                {
                    "path": str(m.candidate.path),
                    "detection_reason": m.candidate.detection_reason.value,
                    "strategy": m.strategy.value if m.strategy else None,
                    "error": m.error,
                    "dependencies": [
                        {
                            "name": r.record.name,
                            "version": r.record.version,
                            "ok": r.ok,
                            "path": str(r.path) if r.path else None,
                            "url": r.resolved_url,
                            "reason": r.reason,
                            "attempts": len(r.attempts),
                        }
                        for r in m.results
                    ],
                }
                for m in self.manifests
            ],
        }
