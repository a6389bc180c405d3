"""Tests for the board generation CLI."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from railmap.generation.cli import build_parser, main


class TestParser:
    """Tests for argument parsing."""

    def test_defaults(self) -> None:
        """Unset options stay None so config values apply."""
        args = build_parser().parse_args([])
        assert args.config is None
        assert args.seed is None
        assert args.major_cities is None
        assert not args.verbose

    def test_overrides(self) -> None:
        """Options parse to their types."""
        args = build_parser().parse_args(
            ["--seed", "4", "--width", "800", "--lakes", "2", "--major-cities", "1", "-v"]
        )
        assert args.seed == 4
        assert args.width == 800.0
        assert args.lakes == 2
        assert args.major_cities == 1
        assert args.verbose


class TestMain:
    """Tests for the CLI entry point."""

    def test_writes_snapshot(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """The board is generated, summarized and written as JSON."""
        output = tmp_path / "out" / "board.json"
        main(
            [
                "--seed", "5",
                "--width", "600",
                "--height", "600",
                "--lakes", "1",
                "--rivers", "1",
                "--major-cities", "1",
                "--output", str(output),
            ]
        )

        captured = capsys.readouterr().out
        assert "Generation complete" in captured
        assert "Mileposts:" in captured

        data = json.loads(output.read_text())
        assert data["config"]["seed"] == 5
        assert data["config"]["width"] == 600
        assert data["config"]["lakes"]["count"] == 1
        assert len(data["lakes"]) <= 1
        assert data["mileposts"]

    def test_named_config(self, capsys: pytest.CaptureFixture[str]) -> None:
        """A bundled config can be selected by name."""
        main(["--config", "small", "--rivers", "0"])
        assert "600x600" in capsys.readouterr().out

    def test_validation_logged_once(self, capsys: pytest.CaptureFixture[str]) -> None:
        """The outcome is logged by generation and only printed by the CLI."""
        with patch("railmap.generation.validation.logger") as logger:
            main(["--config", "small", "--rivers", "0"])

        outcomes = [
            call
            for call in logger.method_calls
            if call.args and call.args[0] in ("board_validation_passed", "board_validation_failed")
        ]
        assert len(outcomes) == 1
        assert "Validation:" in capsys.readouterr().out
