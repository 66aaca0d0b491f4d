"""Tests for ``modelmux cache`` CLI commands."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
from click.testing import CliRunner

from modelmux.cli import main

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def cache_file(tmp_path: Path) -> Path:
    path = tmp_path / "cache.json"
    path.write_text(
        json.dumps(
            {
                "modelmux.cache.__index__": ["deepseekPendingReasoning", "toolCallMetadata"],
                "modelmux.cache.toolCallMetadata": {
                    "entries": [["call_1", {"provider_metadata": {"google": {"thought_signature": "s"}}}]]
                },
                "modelmux.cache.deepseekPendingReasoning": {"entries": [["pending", "because"]]},
            }
        )
    )
    return path


class TestCacheShow:
    def test_table(self, cache_file: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["cache", "show", str(cache_file)])

        assert result.exit_code == 0
        assert "toolCallMetadata" in result.output
        assert "call_1" not in result.output

    def test_keys(self, cache_file: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["cache", "show", str(cache_file), "--keys"])

        assert result.exit_code == 0
        assert "call_1" in result.output

    def test_json(self, cache_file: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["cache", "show", str(cache_file), "--json"])

        assert result.exit_code == 0
        assert '"thought_signature": "s"' in result.output

    def test_empty(self, tmp_path: Path) -> None:
        f = tmp_path / "cache.json"
        f.write_text("{}")

        runner = CliRunner()
        result = runner.invoke(main, ["cache", "show", str(f)])

        assert result.exit_code == 0
        assert "No cached metadata" in result.output


class TestCacheClear:
    def test_clear_all(self, cache_file: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["cache", "clear", str(cache_file)])

        assert result.exit_code == 0
        assert "Cleared all namespaces" in result.output
        document = json.loads(cache_file.read_text())
        assert document["modelmux.cache.toolCallMetadata"] == {"entries": []}
        assert document["modelmux.cache.deepseekPendingReasoning"] == {"entries": []}

    def test_clear_namespace(self, cache_file: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["cache", "clear", str(cache_file), "-n", "deepseekPendingReasoning"])

        assert result.exit_code == 0
        document = json.loads(cache_file.read_text())
        assert document["modelmux.cache.deepseekPendingReasoning"] == {"entries": []}
        assert len(document["modelmux.cache.toolCallMetadata"]["entries"]) == 1
