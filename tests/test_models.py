"""Tests for data model invariants."""

from __future__ import annotations

import pytest

from depfetch.models import DependencyRecord, SourceStrategy


class TestDependencyRecord:
    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            DependencyRecord(name="", version="1.0", source_strategy=SourceStrategy.TEXTUAL_REGEX)

    def test_empty_version_rejected(self):
        with pytest.raises(ValueError):
            DependencyRecord(name="a", version="", source_strategy=SourceStrategy.TEXTUAL_REGEX)

    def test_immutable(self):
        record = DependencyRecord(name="a", version="1", source_strategy=SourceStrategy.STRUCTURED_JSON)
        with pytest.raises(AttributeError):
            record.name = "b"  # type: ignore[misc]

    @pytest.mark.parametrize(
        ("name", "version", "expected"),
        [
            ("left-pad", "1.3.0", "left-pad@1.3.0.js"),
            ("@babel/core", "7.0.0", "@babel_core@7.0.0.js"),
            ("a/b/c", "github:org/repo", "a_b_c@github:org_repo.js"),
        ],
    )
    def test_artifact_filename(self, name, version, expected):
        record = DependencyRecord(name=name, version=version, source_strategy=SourceStrategy.STRUCTURED_JSON)
        assert record.artifact_filename == expected
