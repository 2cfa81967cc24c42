"""
Unit tests for the CLI module.

Tests follow the Given/When/Then pattern for clarity.
"""

import logging
from unittest.mock import patch

import pytest

from mintwatch import cli
from mintwatch.errors import FetchError


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(f"es_key: test-es-key\nlog_file: {tmp_path / 'mintwatch.log'}\n")
    return str(path)


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()


class TestArguments:
    """Tests for argument parsing."""

    def test_parses_all_options(self):
        """
        Given every supported option
        When parsing
        Then each value should be typed and stored
        """
        # When
        args = cli.build_parser().parse_args(
            ["-c", "conf.yaml", "-i", "erc721_mint_act", "-a", "0xabc", "-l", "30", "-p", "1",
             "-o", "gs://bucket/chart.html"]
        )

        # Then
        assert args.config == "conf.yaml"
        assert args.command == "erc721_mint_act"
        assert args.address == "0xabc"
        assert args.lookback_days == 30
        assert args.post == 1
        assert args.output == "gs://bucket/chart.html"

    def test_defaults(self):
        args = cli.build_parser().parse_args(["-c", "conf.yaml", "-i", "migration"])
        assert args.lookback_days == 0
        assert args.post == 0
        assert args.address is None

    def test_unknown_command_exits(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["-c", "conf.yaml", "-i", "honeyd_stat"])

    def test_post_flag_must_be_zero_or_one(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["-c", "conf.yaml", "-i", "migration", "-p", "2"])


class TestMain:
    """Tests for the entry point's exit codes."""

    def test_success_returns_zero(self, config_file):
        """
        Given a valid config and command
        When running main
        Then the command should be dispatched and 0 returned
        """
        # Given
        with patch("mintwatch.cli.run_command", return_value="ok") as run:
            # When
            code = cli.main(["-c", config_file, "-i", "bee_mint_act", "-l", "7"])

        # Then
        assert code == 0
        args, kwargs = run.call_args
        assert args[0] == "bee_mint_act"
        assert args[1]["es_key"] == "test-es-key"
        assert kwargs["lookback_days"] == 7
        assert kwargs["post"] is False

    def test_pipeline_error_returns_one(self, config_file):
        """
        Given a pipeline that fails
        When running main
        Then 1 should be returned
        """
        # Given
        with patch("mintwatch.cli.run_command", side_effect=FetchError("down")):
            # When
            code = cli.main(["-c", config_file, "-i", "migration"])

        # Then
        assert code == 1

    def test_lookback_over_limit_returns_one(self, config_file):
        """
        Given a lookback of 181 days
        When running main
        Then the run should be rejected with exit code 1 before fetching anything
        """
        # Given
        with patch("mintwatch.pipeline.mint_activity") as fetch:
            # When
            code = cli.main(["-c", config_file, "-i", "bee_mint_act", "-l", "181"])

        # Then
        assert code == 1
        fetch.assert_not_called()

    def test_missing_config_returns_one(self, tmp_path):
        assert cli.main(["-c", str(tmp_path / "missing.yaml"), "-i", "migration"]) == 1
