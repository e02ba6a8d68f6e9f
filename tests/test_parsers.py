"""Tests for the manifest parsing strategies and their precedence."""

from __future__ import annotations

import json

import pytest

from depfetch.exceptions import ManifestReadError
from depfetch.models import DetectionReason, ManifestCandidate, SourceStrategy
from depfetch.parsers import STRATEGY_REGISTRY, parse_manifest, parse_text, registry
from depfetch.parsers.embedded_object import EmbeddedObjectStrategy, find_container
from depfetch.parsers.structured_json import StructuredJsonStrategy
from depfetch.parsers.structured_yaml import StructuredYamlStrategy, looks_like_yaml
from depfetch.parsers.textual_regex import TextualRegexStrategy

BENDER_JS = """\
var __WEBPACK_NAMESPACE_OBJECT__;
__WEBPACK_NAMESPACE_OBJECT__ = {
  bender: {
    depVersions: {
      "ui-kit": "static-3.12",
      "head-dlb": "static-1.4",
    },
    depPathPrefixes: {
      "ui-kit": "/ui-kit/static-3.12",
    },
    staticDomain: "//static.example.net",
  },
  // "dependencies": {"decoy": "9.9.9"}
};
"""


def _pairs(records) -> list[tuple[str, str]]:
    return [(r.name, r.version) for r in records]


# ── registry ─────────────────────────────────────────────────────────────


class TestRegistry:
    def test_precedence_order(self):
        assert [s.source_strategy for s in STRATEGY_REGISTRY] == [
            SourceStrategy.EMBEDDED_EVAL,
            SourceStrategy.STRUCTURED_JSON,
            SourceStrategy.STRUCTURED_YAML,
            SourceStrategy.TEXTUAL_REGEX,
        ]

    def test_empty_text_yields_nothing(self):
        assert parse_text("") == []

    def test_failing_strategy_falls_through(self, monkeypatch):
        class Boom:
            source_strategy = SourceStrategy.EMBEDDED_EVAL

            def parse(self, content):
                raise RuntimeError("boom")

        monkeypatch.setattr(registry, "STRATEGY_REGISTRY", [Boom(), *STRATEGY_REGISTRY[1:]])
        records = parse_text(json.dumps({"dependencies": {"a": "1.0.0"}}))
        assert _pairs(records) == [("a", "1.0.0")]
        assert records[0].source_strategy is SourceStrategy.STRUCTURED_JSON


# ── embedded-eval ────────────────────────────────────────────────────────


class TestEmbeddedObjectStrategy:
    @pytest.fixture
    def strategy(self):
        return EmbeddedObjectStrategy()

    def test_bender_manifest(self, strategy):
        records = strategy.parse(BENDER_JS)
        assert _pairs(records) == [("ui-kit", "static-3.12"), ("head-dlb", "static-1.4")]
        ui_kit, head = records
        assert ui_kit.path_prefix == "/ui-kit/static-3.12"
        assert ui_kit.base_url == "//static.example.net"
        assert head.path_prefix is None
        assert head.base_url == "//static.example.net"
        assert all(r.source_strategy is SourceStrategy.EMBEDDED_EVAL for r in records)

    def test_static_domain_prefix_fallback(self, strategy):
        text = "module.exports = {bender: {depVersions: {a: '1'}, staticDomainPrefix: 'https://cdn.x'}};"
        (record,) = strategy.parse(text)
        assert record.base_url == "https://cdn.x"

    def test_nested_container_without_bender_key(self, strategy):
        text = "{build: {meta: [{depVersions: {a: '2.0'}}]}}"
        assert _pairs(strategy.parse(text)) == [("a", "2.0")]

    def test_no_version_map(self, strategy):
        assert strategy.parse('{"dependencies": {"a": "1"}}') == []

    def test_non_string_versions_skipped(self, strategy):
        text = "{bender: {depVersions: {a: {x: 1}, b: 3, c: ''}}}"
        assert _pairs(strategy.parse(text)) == [("b", "3")]

    def test_code_is_never_executed(self, strategy, tmp_path):
        marker = tmp_path / "pwned"
        text = (
            "module.exports = {bender: {depVersions: {a: '1'}}};\n"
            f"require('fs').writeFileSync('{marker}', 'x');\n"
        )
        assert _pairs(strategy.parse(text)) == [("a", "1")]
        assert not marker.exists()

    def test_find_container_prefers_bender(self):
        root = {"other": {"depVersions": {"x": "1"}}, "bender": {"depVersions": {"y": "2"}}}
        assert find_container(root) == {"depVersions": {"y": "2"}}


# ── structured-json ──────────────────────────────────────────────────────


class TestStructuredJsonStrategy:
    @pytest.fixture
    def strategy(self):
        return StructuredJsonStrategy()

    def test_package_json(self, strategy):
        text = json.dumps(
            {"name": "app", "version": "1.0.0", "dependencies": {"left-pad": "1.3.0", "@babel/core": "^7.0.0"}}
        )
        records = strategy.parse(text)
        assert _pairs(records) == [("left-pad", "1.3.0"), ("@babel/core", "^7.0.0")]
        assert all(r.source_strategy is SourceStrategy.STRUCTURED_JSON for r in records)
        assert all(r.path_prefix is None and r.base_url is None for r in records)

    def test_no_dependencies_key(self, strategy):
        assert strategy.parse('{"name": "app"}') == []

    def test_dependencies_not_a_mapping(self, strategy):
        assert strategy.parse('{"dependencies": ["a", "b"]}') == []

    def test_invalid_json(self, strategy):
        assert strategy.parse("{not json") == []

    def test_top_level_array(self, strategy):
        assert strategy.parse("[1, 2]") == []

    def test_numeric_version_stringified(self, strategy):
        assert _pairs(strategy.parse('{"dependencies": {"a": 2}}')) == [("a", "2")]


# ── structured-yaml ──────────────────────────────────────────────────────


class TestStructuredYamlStrategy:
    @pytest.fixture
    def strategy(self):
        return StructuredYamlStrategy()

    def test_yaml_manifest(self, strategy):
        text = "---\nname: app\ndependencies:\n  left-pad: 1.3.0\n  lodash: '4.17.21'\n"
        records = strategy.parse(text)
        assert _pairs(records) == [("left-pad", "1.3.0"), ("lodash", "4.17.21")]
        assert all(r.source_strategy is SourceStrategy.STRUCTURED_YAML for r in records)

    def test_float_version_stringified(self, strategy):
        assert _pairs(strategy.parse("dependencies:\n  a: 1.5\n")) == [("a", "1.5")]

    def test_not_yaml_like(self, strategy):
        assert not looks_like_yaml("just some words")
        assert strategy.parse("just some words") == []

    def test_yaml_like_detection(self):
        assert looks_like_yaml("--- \nfoo")
        assert looks_like_yaml("dependencies:\n  a: 1")

    def test_invalid_yaml(self, strategy):
        assert strategy.parse("dependencies: [unclosed\n") == []

    def test_no_dependencies(self, strategy):
        assert strategy.parse("name: app\n") == []


# ── textual-regex ────────────────────────────────────────────────────────


class TestTextualRegexStrategy:
    @pytest.fixture
    def strategy(self):
        return TextualRegexStrategy()

    def test_dependencies_block(self, strategy):
        text = "window.cfg = { dependencies: { react: '18.2.0', 'react-dom': \"18.2.0\" }, x: fn() }"
        records = strategy.parse(text)
        assert _pairs(records) == [("react", "18.2.0"), ("react-dom", "18.2.0")]
        assert all(r.source_strategy is SourceStrategy.TEXTUAL_REGEX for r in records)

    def test_dep_versions_assignment(self, strategy):
        text = "depVersions = { jquery: '3.6.0' };"
        assert _pairs(strategy.parse(text)) == [("jquery", "3.6.0")]

    def test_quoted_version_pairs(self, strategy):
        text = 'load({"lodash": "^4.17.21", "title": "Hello", "version": "1.0.0"})'
        assert _pairs(strategy.parse(text)) == [("lodash", "^4.17.21")]

    def test_version_fields(self, strategy):
        text = "const meta = { reactVersion: '18.2.0' };"
        assert _pairs(strategy.parse(text)) == [("react", "18.2.0")]

    def test_deduplicates_by_name(self, strategy):
        text = "dependencies: { a: '1.0.0' }\n'a': '2.0.0'\n"
        assert _pairs(strategy.parse(text)) == [("a", "1.0.0")]

    def test_nothing_found(self, strategy):
        assert strategy.parse("function f() { return 1; }") == []

    def test_nested_entries_in_block_are_skipped(self, strategy):
        text = "dependencies: { a: '1.0.0', b: { version: '2.0.0' }, c: '3.0.0' }"
        assert _pairs(strategy.parse(text)) == [("a", "1.0.0")]

    def test_self_keys_in_block_are_skipped(self, strategy):
        text = "dependencies = { version: '1.0.0', jquery: '3.6.0' }"
        assert _pairs(strategy.parse(text)) == [("jquery", "3.6.0")]

    def test_lockfile_shape_yields_nothing(self):
        assert parse_text('{"dependencies": {"a": {"version": "1.0.0"}}}') == []


# ── precedence over whole files ──────────────────────────────────────────


class TestPrecedence:
    def test_embedded_wins_over_json_and_regex(self):
        text = json.dumps(
            {
                "bender": {"depVersions": {"ui-kit": "static-1.0"}},
                "dependencies": {"left-pad": "1.3.0"},
            }
        )
        records = parse_text(text)
        assert _pairs(records) == [("ui-kit", "static-1.0")]
        assert {r.source_strategy for r in records} == {SourceStrategy.EMBEDDED_EVAL}

    def test_json_only_manifest(self):
        records = parse_text('{"dependencies": {"left-pad": "1.3.0", "lodash": "4.17.21"}}')
        assert _pairs(records) == [("left-pad", "1.3.0"), ("lodash", "4.17.21")]
        assert {r.source_strategy for r in records} == {SourceStrategy.STRUCTURED_JSON}

    def test_yaml_when_not_json(self):
        records = parse_text("dependencies:\n  a: '1.0'\n")
        assert {r.source_strategy for r in records} == {SourceStrategy.STRUCTURED_YAML}

    def test_regex_as_last_resort(self):
        records = parse_text("x = 1; var deps = dependencies = { a: '1.0' } + y;")
        assert {r.source_strategy for r in records} == {SourceStrategy.TEXTUAL_REGEX}


# ── parse_manifest ───────────────────────────────────────────────────────


class TestParseManifest:
    def test_reads_candidate(self, tmp_path):
        f = tmp_path / "package.json"
        f.write_text('{"dependencies": {"left-pad": "1.3.0"}}')
        candidate = ManifestCandidate(path=f, detection_reason=DetectionReason.FILENAME)
        assert _pairs(parse_manifest(candidate)) == [("left-pad", "1.3.0")]

    def test_missing_file_raises(self, tmp_path):
        candidate = ManifestCandidate(
            path=tmp_path / "gone.json", detection_reason=DetectionReason.FILENAME
        )
        with pytest.raises(ManifestReadError):
            parse_manifest(candidate)

    def test_reparse_is_stable(self, tmp_path):
        f = tmp_path / "bender.js"
        f.write_text(BENDER_JS)
        candidate = ManifestCandidate(path=f, detection_reason=DetectionReason.FILENAME)
        assert set(parse_manifest(candidate)) == set(parse_manifest(candidate))
