"""Strategy registry — ordered manifest parsing strategies, first non-empty wins."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import structlog

from depfetch.exceptions import ManifestReadError
from depfetch.models import DependencyRecord, ManifestCandidate, SourceStrategy

log = structlog.get_logger("depfetch.engine")


@runtime_checkable
class ParseStrategy(Protocol):
    """Interface that every parsing strategy must satisfy."""

    source_strategy: SourceStrategy

    def parse(self, content: str) -> list[DependencyRecord]: ...


# Registration order is precedence order.
STRATEGY_REGISTRY: list[ParseStrategy] = []


def register_strategy(strategy: ParseStrategy) -> None:
    """Append a strategy instance; a strategy registered twice keeps its first slot."""
    if any(s.source_strategy == strategy.source_strategy for s in STRATEGY_REGISTRY):
        return
    STRATEGY_REGISTRY.append(strategy)


def parse_text(content: str) -> list[DependencyRecord]:
    """Run the strategies in precedence order over *content*.

    The first strategy that yields one or more records wins; strategies
    that raise or return nothing are skipped. Returns ``[]`` when every
    strategy comes up empty.
    """
    for strategy in STRATEGY_REGISTRY:
        try:
            records = strategy.parse(content)
        except Exception as exc:
            log.debug(
                "parser.strategy_failed",
                strategy=strategy.source_strategy.value,
                error=str(exc),
            )
            continue
        if records:
            return records
    return []


def parse_manifest(candidate: ManifestCandidate) -> list[DependencyRecord]:
    """Read *candidate* in full and extract its dependency records.

    Raises :class:`ManifestReadError` if the file cannot be read.
    """
    content = read_manifest(candidate.path)
    return parse_text(content)


def read_manifest(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise ManifestReadError(str(path), exc.strerror or str(exc)) from exc


def records_from_mapping(
    mapping: Any,
    source_strategy: SourceStrategy,
) -> list[DependencyRecord]:
    """Turn a ``{name: version}`` mapping into records, skipping unusable entries.

    Numeric versions (``1.0`` from YAML, ``2`` from JSON) are stringified;
    booleans, nested values and empty strings are dropped.
    """
    if not isinstance(mapping, dict):
        return []
    records: list[DependencyRecord] = []
    for name, version in mapping.items():
        version_str = version_text(version)
        if not isinstance(name, str) or not name.strip() or version_str is None:
            continue
        records.append(
            DependencyRecord(
                name=name.strip(),
                version=version_str,
                source_strategy=source_strategy,
            )
        )
    return records


def version_text(value: Any) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
