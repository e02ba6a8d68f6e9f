"""Strategy 2: the whole file is a JSON document with a ``dependencies`` mapping."""

from __future__ import annotations

import json

from depfetch.models import DependencyRecord, SourceStrategy
from depfetch.parsers.registry import records_from_mapping, register_strategy


class StructuredJsonStrategy:
    source_strategy = SourceStrategy.STRUCTURED_JSON

    def parse(self, content: str) -> list[DependencyRecord]:
        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            return []

        if not isinstance(data, dict):
            return []
        return records_from_mapping(data.get("dependencies"), self.source_strategy)


register_strategy(StructuredJsonStrategy())
