"""Strategy 1: dependency maps embedded in a JavaScript object literal.

Bundled front-end configs often carry a container object (``bender`` by
convention) shaped like::

    bender: {
        depVersions: {"ui-kit": "static-3.12"},
        depPathPrefixes: {"ui-kit": "/ui-kit/static-3.12"},
        staticDomain: "//static.example.net",
    }

The literal is read with :mod:`depfetch.parsers.object_literal`; nothing in
the file is ever executed.
"""

from __future__ import annotations

from collections import deque
from typing import Any

from depfetch.models import DependencyRecord, SourceStrategy
from depfetch.parsers.object_literal import iter_object_literals
from depfetch.parsers.registry import register_strategy, version_text

CONTAINER_KEY = "bender"
VERSION_MAP_KEY = "depVersions"
PATH_PREFIXES_KEY = "depPathPrefixes"
BASE_URL_KEYS = ("staticDomain", "staticDomainPrefix")


def find_container(root: dict[str, Any]) -> dict[str, Any] | None:
    """Locate the object holding the version map.

    ``root[CONTAINER_KEY]`` is preferred; otherwise the first object carrying
    a ``depVersions`` mapping in breadth-first order.
    """
    preferred = root.get(CONTAINER_KEY)
    if isinstance(preferred, dict) and isinstance(preferred.get(VERSION_MAP_KEY), dict):
        return preferred

    queue: deque[Any] = deque([root])
    while queue:
        node = queue.popleft()
        if isinstance(node, dict):
            if isinstance(node.get(VERSION_MAP_KEY), dict):
                return node
            queue.extend(node.values())
        elif isinstance(node, list):
            queue.extend(node)
    return None


def _base_url(container: dict[str, Any]) -> str | None:
    for key in BASE_URL_KEYS:
        value = container.get(key)
        if isinstance(value, str) and value:
            return value
    return None


class EmbeddedObjectStrategy:
    source_strategy = SourceStrategy.EMBEDDED_EVAL

    def parse(self, content: str) -> list[DependencyRecord]:
        for literal in iter_object_literals(content):
            container = find_container(literal)
            if container is None:
                continue
            records = self._records(container)
            if records:
                return records
        return []

    def _records(self, container: dict[str, Any]) -> list[DependencyRecord]:
        versions: dict[str, Any] = container[VERSION_MAP_KEY]
        prefixes = container.get(PATH_PREFIXES_KEY)
        if not isinstance(prefixes, dict):
            prefixes = {}
        base_url = _base_url(container)

        records: list[DependencyRecord] = []
        for name, version in versions.items():
            version_str = version_text(version)
            if not name or version_str is None:
                continue
            prefix = prefixes.get(name)
            records.append(
                DependencyRecord(
                    name=name,
                    version=version_str,
                    source_strategy=self.source_strategy,
                    path_prefix=prefix if isinstance(prefix, str) and prefix else None,
                    base_url=base_url,
                )
            )
        return records


register_strategy(EmbeddedObjectStrategy())
