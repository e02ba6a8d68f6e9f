"""Strategy 4: regular-expression fallback over the raw text.

Last resort for files no structured reader understood. Three shapes are
recognised, in order:

1. ``dependencies`` / ``depVersions`` blocks assigned with ``:`` or ``=``;
   every ``name: "version"`` pair inside the braces is taken, except
   pairs belonging to a nested object.
2. Quoted ``"name": "version"`` pairs anywhere, when the value looks like
   a version (``1.2.3``, ``^4.0``, ``~2``, ``v1``, ``>=3``).
3. ``<name>Version: "x"`` fields, e.g. ``reactVersion: "18.2.0"``.

Names are deduplicated; the first occurrence wins.
"""

from __future__ import annotations

import re

from depfetch.models import DependencyRecord, SourceStrategy
from depfetch.parsers.registry import register_strategy

_BLOCK_RE = re.compile(r"\b(?:dependencies|depVersions)['\"]?\s*[:=]\s*\{([^}]*)\}")
_BLOCK_PAIR_RE = re.compile(r"(['\"]?)([@\w][\w\-@/.]*)\1\s*:\s*['\"]([^'\"]+)['\"]")
_QUOTED_PAIR_RE = re.compile(
    r"['\"]([@\w][\w\-@/.]*)['\"]\s*:\s*['\"]([\^~<>=v]*\d[\w.\-+]*)['\"]"
)
_VERSION_FIELD_RE = re.compile(r"\b([A-Za-z_]\w*?)Version['\"]?\s*:\s*['\"]([^'\"]+)['\"]")

# Keys that carry a version-shaped value but name the manifest itself.
_SELF_KEYS = frozenset({"version", "name", "engines", "node", "npm", "manifest_version"})


class TextualRegexStrategy:
    source_strategy = SourceStrategy.TEXTUAL_REGEX

    def parse(self, content: str) -> list[DependencyRecord]:
        seen: set[str] = set()
        records: list[DependencyRecord] = []

        def add(name: str, version: str) -> None:
            name = name.strip()
            version = version.strip()
            if not name or not version or name in seen:
                return
            seen.add(name)
            records.append(
                DependencyRecord(name=name, version=version, source_strategy=self.source_strategy)
            )

        for block in _BLOCK_RE.finditer(content):
            # The capture stops at the first '}', so anything after a nested
            # '{' belongs to an inner object rather than the block itself.
            body = block.group(1).split("{", 1)[0]
            for m in _BLOCK_PAIR_RE.finditer(body):
                if m.group(2).lower() not in _SELF_KEYS:
                    add(m.group(2), m.group(3))

        for m in _QUOTED_PAIR_RE.finditer(content):
            if m.group(1).lower() not in _SELF_KEYS:
                add(m.group(1), m.group(2))

        for m in _VERSION_FIELD_RE.finditer(content):
            add(m.group(1), m.group(2))

        return records


register_strategy(TextualRegexStrategy())
