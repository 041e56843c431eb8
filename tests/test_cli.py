"""Tests for the command-line entry point."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from photonflow.cli import main


class TestMain:
    """Tests for cli.main()."""

    def test_runs_uvicorn_with_app_path(self) -> None:
        """main() hands the app import path and bind address to uvicorn."""
        with (
            patch.dict(os.environ, {}, clear=True),
            patch("photonflow.cli.configure_logging"),
            patch("photonflow.cli.uvicorn.run") as run,
        ):
            assert main(["--host", "0.0.0.0", "--port", "9000"]) == 0

        run.assert_called_once_with(
            "photonflow.server.app:app",
            host="0.0.0.0",
            port=9000,
            reload=False,
            log_config=None,
        )

    def test_flags_exported_to_settings_env(self) -> None:
        """--seed, --noise and --colorful become PHOTONFLOW_* settings."""
        with (
            patch.dict(os.environ, {}, clear=True),
            patch("photonflow.cli.configure_logging"),
            patch("photonflow.cli.uvicorn.run"),
        ):
            main(["--seed", "17", "--noise", "--colorful"])
            env = dict(os.environ)

        assert env["PHOTONFLOW_SEED"] == "17"
        assert env["PHOTONFLOW_NOISE_ENABLED"] == "true"
        assert env["PHOTONFLOW_COLORFUL_MODE"] == "true"

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        """--version prints the version and exits."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])

        assert exc_info.value.code == 0
        assert "0.1.0" in capsys.readouterr().out
