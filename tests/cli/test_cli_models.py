"""Tests for ``modelmux models`` CLI command."""

from __future__ import annotations

from typing import TYPE_CHECKING

from click.testing import CliRunner

from modelmux.cli import main

if TYPE_CHECKING:
    from pathlib import Path


class TestModelsCommand:
    def test_table(self, gateway_yaml: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["models", str(gateway_yaml)])

        assert result.exit_code == 0
        assert "gpt-4o" in result.output
        assert "llama3" in result.output
        assert "Configured Models" in result.output

    def test_json(self, gateway_yaml: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["models", str(gateway_yaml), "--json"])

        assert result.exit_code == 0
        assert '"id": "openai/gpt-4o"' in result.output
        assert '"kind": "openai-compatible"' in result.output

    def test_no_models(self, tmp_path: Path) -> None:
        f = tmp_path / "empty.yaml"
        f.write_text('version: "1"\n')

        runner = CliRunner()
        result = runner.invoke(main, ["models", str(f)])

        assert result.exit_code == 0
        assert "No models configured" in result.output

    def test_invalid(self, tmp_path: Path) -> None:
        f = tmp_path / "bad.yaml"
        f.write_text("models:\n  - id: x\n    provider: ghost\n")

        runner = CliRunner()
        result = runner.invoke(main, ["models", str(f)])

        assert result.exit_code == 1
        assert "Validation error" in result.output
