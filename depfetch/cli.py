"""CLI entry point for standalone usage: depfetch.

Usage:
    depfetch                         # scan the current directory
    depfetch /path/to/recovered-src
    depfetch /path/to/recovered-src --json
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click

from depfetch.config import Settings
from depfetch.core.logging import setup_logging
from depfetch.exceptions import ConfigError, RootDirectoryError
from depfetch.models import ManifestReport, ResolveResult, RunSummary
from depfetch.orchestrator import DependencyOrchestrator


def _relative(path: Path, root: Path) -> str:
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)


class _ConsoleReporter:
    """Print progress lines as the orchestrator works through manifests."""

    def __init__(self, root: Path) -> None:
        self._root = root

    def __call__(self, event: str, payload: object) -> None:
        if isinstance(payload, ResolveResult):
            if payload.ok:
                click.echo(f"  ✓ {payload.record.label}")
            else:
                click.echo(f"  ✗ {payload.record.name}: {payload.reason}")
        elif not isinstance(payload, ManifestReport):
            return
        elif event == "manifest":
            click.echo(f"\nProcessing: {_relative(payload.candidate.path, self._root)}")
        elif event == "manifest_done":
            if payload.error:
                click.echo(f"  Failed to process: {payload.error}")
            elif not payload.results:
                click.echo("  No dependencies found in this manifest")
            else:
                click.echo(
                    f"  Downloaded {payload.downloaded}/{payload.dependency_count} "
                    f"dependencies ({payload.strategy.value if payload.strategy else '-'})"
                )


def _print_summary(summary: RunSummary) -> None:
    if not summary.manifests:
        click.echo("No dependency manifests found")
        return

    click.echo("\nManifests:")
    for report in summary.manifests:
        rel = _relative(report.candidate.path, summary.root)
        click.echo(
            f"  - {rel} ({report.candidate.detection_reason.value}): "
            f"{report.dependency_count} dependencies"
        )
    click.echo(f"\nDependency output: {summary.output_dir}")
    click.echo(f"Downloaded {summary.downloaded}/{summary.dependencies_found} dependencies")


@click.command()
@click.argument("root", default=".", type=click.Path(file_okay=False, path_type=Path))
@click.option("--timeout", type=float, default=None, help="Per-request timeout in seconds")
@click.option("--max-redirects", type=int, default=None, help="Redirect hops per candidate URL")
@click.option("--json", "as_json", is_flag=True, help="Print the run summary as JSON")
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def main(
    root: Path,
    timeout: float | None,
    max_redirects: int | None,
    as_json: bool,
    verbose: bool,
) -> None:
    """Find dependency manifests under ROOT and download each dependency."""
    setup_logging("DEBUG" if verbose else None)

    try:
        settings = Settings.from_env().with_overrides(
            request_timeout=timeout,
            max_redirects=max_redirects,
        )
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    orchestrator = DependencyOrchestrator(settings)
    if not as_json:
        click.echo(f"Scanning for dependency manifests in: {root}")
        orchestrator.callbacks.append(_ConsoleReporter(root))

    try:
        summary = asyncio.run(orchestrator.run(root))
    except RootDirectoryError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(summary.to_dict(), indent=2))
    else:
        _print_summary(summary)


if __name__ == "__main__":
    main()
