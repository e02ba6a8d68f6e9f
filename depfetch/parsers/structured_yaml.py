"""Strategy 3: YAML documents with a top-level ``dependencies`` mapping."""

from __future__ import annotations

import re

import yaml

from depfetch.models import DependencyRecord, SourceStrategy
from depfetch.parsers.registry import records_from_mapping, register_strategy

# A document marker, or a line that opens with ``key:``.
_YAML_LIKE_RE = re.compile(r"\A---|^[ \t]*[\"']?[\w.@/-]+[\"']?[ \t]*:(?:[ \t]|$)", re.MULTILINE)


def looks_like_yaml(content: str) -> bool:
    return _YAML_LIKE_RE.search(content.strip()) is not None


class StructuredYamlStrategy:
    source_strategy = SourceStrategy.STRUCTURED_YAML

    def parse(self, content: str) -> list[DependencyRecord]:
        if not looks_like_yaml(content):
            return []
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError:
            return []

        if not isinstance(data, dict):
            return []
        return records_from_mapping(data.get("dependencies"), self.source_strategy)


register_strategy(StructuredYamlStrategy())
