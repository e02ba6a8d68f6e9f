"""Orchestrator — scan -> parse (per manifest) -> resolve + fetch (per dependency)."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import structlog

from depfetch.config import Settings
from depfetch.exceptions import ManifestReadError, RootDirectoryError
from depfetch.fetcher import Fetcher
from depfetch.models import ManifestReport, ResolveResult, RunSummary
from depfetch.parsers import parse_manifest
from depfetch.scanner import ManifestScanner

log = structlog.get_logger("depfetch.engine")


class DependencyOrchestrator:
    """Run the full pipeline over one root directory.

    Manifests, and dependencies within a manifest, are processed strictly in
    sequence. A failure on one unit of work is recorded in the summary and
    never stops the rest of the run.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        scanner: ManifestScanner | None = None,
        fetcher: Fetcher | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._scanner = scanner or ManifestScanner(self._settings)
        self._fetcher = fetcher
        self.callbacks: list[Callable[[str, object], None]] = []

    async def run(self, root: str | Path = ".") -> RunSummary:
        """Process *root* and return a :class:`RunSummary`.

        Raises :class:`RootDirectoryError` when *root* is not a directory;
        that is the only error surfaced to the caller.
        """
        root_path = Path(root)
        if not root_path.is_dir():
            raise RootDirectoryError(str(root))

        output_dir = root_path / self._settings.output_dir_name
        summary = RunSummary(root=root_path, output_dir=output_dir)

        candidates = self._scanner.scan(root_path)
        log.info("orchestrator.scanned", root=str(root_path), manifests=len(candidates))
        if not candidates:
            return summary

        output_dir.mkdir(parents=True, exist_ok=True)

        fetcher = self._fetcher or Fetcher(self._settings)
        try:
            for candidate in candidates:
                report = ManifestReport(candidate=candidate)
                summary.manifests.append(report)
                self._notify("manifest", report)
                await self._process_manifest(report, fetcher, output_dir)
                self._notify("manifest_done", report)
        finally:
            if self._fetcher is None:
                await fetcher.close()

        log.info(
            "orchestrator.done",
            dependencies=summary.dependencies_found,
            downloaded=summary.downloaded,
            failed=summary.failed,
        )
        return summary

    async def _process_manifest(
        self,
        report: ManifestReport,
        fetcher: Fetcher,
        output_dir: Path,
    ) -> None:
        path = report.candidate.path
        try:
            records = parse_manifest(report.candidate)
        except ManifestReadError as exc:
            report.error = str(exc)
            log.warning("orchestrator.manifest_unreadable", path=str(path), error=exc.reason)
            return

        if not records:
            log.debug("orchestrator.no_dependencies", path=str(path))
            return

        report.strategy = records[0].source_strategy
        log.info(
            "orchestrator.manifest_parsed",
            path=str(path),
            strategy=report.strategy.value,
            dependencies=len(records),
        )

        for record in records:
            try:
                result = await fetcher.resolve(record, output_dir)
            except OSError as exc:
                # Local write failure; the next dependency may still succeed.
                result = ResolveResult(record=record, reason=f"write failed: {exc}")
                log.warning("orchestrator.write_failed", dependency=record.label, error=str(exc))
            report.results.append(result)
            self._notify("dependency", result)

        log.info(
            "orchestrator.manifest_done",
            path=str(path),
            downloaded=report.downloaded,
            total=report.dependency_count,
        )

    def _notify(self, event: str, payload: object) -> None:
        for cb in self.callbacks:
            try:
                cb(event, payload)
            except Exception:
                log.debug("orchestrator.callback_failed", event_name=event, exc_info=True)


async def run(root: str | Path = ".", settings: Settings | None = None) -> RunSummary:
    """Convenience wrapper around :class:`DependencyOrchestrator`."""
    return await DependencyOrchestrator(settings).run(root)
