"""Tests for the ``tagtrail`` console script."""

from __future__ import annotations

import os
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from tagtrail.cli import cli


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("TAGTRAIL_"):
            monkeypatch.delenv(key)


class TestCli:
    def test_missing_image_host_exits_non_zero(self) -> None:
        with patch("tagtrail.app.TagtrailApp") as app_cls, patch("tagtrail.app.setup_logging"):
            result = CliRunner().invoke(cli, [])
        assert result.exit_code == 1
        app_cls.assert_not_called()

    def test_invalid_image_host_exits_non_zero(self) -> None:
        with patch("tagtrail.app.TagtrailApp") as app_cls, patch("tagtrail.app.setup_logging"):
            result = CliRunner().invoke(cli, ["--image-host", "("])
        assert result.exit_code == 1
        app_cls.assert_not_called()

    def test_options_forwarded_to_main(self) -> None:
        with patch("tagtrail.cli.main.main", new_callable=AsyncMock) as main:
            result = CliRunner().invoke(
                cli,
                [
                    "--image-host",
                    r".*example\.com.*",
                    "--no-ns",
                    "kube-system|staging",
                    "--record-path",
                    "",
                    "--kinds",
                    "Deployment|StatefulSet",
                    "--report-all-changes",
                    "--log-level",
                    "debug",
                ],
            )

        assert result.exit_code == 0, result.output
        options = main.await_args.args[0]
        assert options["image_pattern"] == r".*example\.com.*"
        assert options["excluded_namespaces"] == "kube-system|staging"
        assert options["record_path"] == ""
        assert options["kinds"] == "Deployment|StatefulSet"
        assert options["report_all_changes"] is True
        assert options["report_image_swaps"] is None
        assert options["api_enabled"] is None
        assert options["log_level"] == "debug"

    def test_version(self) -> None:
        from tagtrail import __version__

        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help(self) -> None:
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "--image-host" in result.output
