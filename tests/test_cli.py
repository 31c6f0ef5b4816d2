"""Tests for the command-line entry point.

``run_sync`` and ``load_sync_config`` are patched out; these tests cover
flag parsing, the fix policy handed to the run, and exit codes.
"""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from ch_schema_sync.cli import build_parser, main
from ch_schema_sync.config.models import ServerEndpoint
from ch_schema_sync.errors import (
    ConfigError,
    DatabaseSelectError,
    EndpointFailure,
    ReplicaPoolError,
)
from ch_schema_sync.schema.models import (
    ColumnMissing,
    FixOutcome,
    FixPolicy,
    SyncReport,
    TableCheck,
)


@pytest.fixture
def mock_config():
    with patch("ch_schema_sync.cli.load_sync_config", return_value=MagicMock()) as mock_load:
        yield mock_load


@pytest.fixture
def mock_run():
    with patch("ch_schema_sync.cli.run_sync", new_callable=AsyncMock) as mock_run_sync:
        mock_run_sync.return_value = SyncReport()
        yield mock_run_sync


# ------------------------------------------------------------------
# Parser
# ------------------------------------------------------------------


class TestParser:
    """Flags and defaults."""

    def test_defaults(self) -> None:
        args = build_parser().parse_args([])
        assert args.config == "config.yml"
        assert args.sync is False
        assert args.drop_columns is False
        assert args.debug is False

    @pytest.mark.parametrize("flag", ["--debug", "--verbose", "-v"])
    def test_debug_aliases(self, flag: str) -> None:
        assert build_parser().parse_args([flag]).debug is True

    def test_all_flags(self) -> None:
        args = build_parser().parse_args(["--config", "prod.yml", "--sync", "--drop-columns"])
        assert args.config == "prod.yml"
        assert args.sync is True
        assert args.drop_columns is True

    def test_prog_name(self) -> None:
        assert build_parser().prog == "ch-schema-sync"


# ------------------------------------------------------------------
# Runs
# ------------------------------------------------------------------


class TestMain:
    """main() maps outcomes to exit codes."""

    def test_report_only_run(self, mock_config, mock_run) -> None:
        assert main(["--config", "c.yml"]) == 0

        mock_config.assert_called_once_with("c.yml")
        mock_run.assert_awaited_once_with(mock_config.return_value, FixPolicy())

    @pytest.mark.parametrize(
        "argv, policy",
        [
            (["--sync"], FixPolicy(apply_fixes=True)),
            (["--sync", "--drop-columns"], FixPolicy(apply_fixes=True, allow_column_drop=True)),
            (["--drop-columns"], FixPolicy(allow_column_drop=True)),
        ],
    )
    def test_flags_become_policy(self, mock_config, mock_run, argv, policy) -> None:
        assert main(argv) == 0
        assert mock_run.await_args.args[1] == policy

    def test_drift_does_not_fail_run(self, mock_config, mock_run, capsys) -> None:
        mock_run.return_value = SyncReport(
            checks=[
                TableCheck(
                    host="ch1",
                    database="db",
                    table="t",
                    divergences=[ColumnMissing(column="c", want_type="String")],
                )
            ],
            fixes=[
                FixOutcome(
                    host="ch1",
                    database="db",
                    table="t",
                    column="c",
                    statement="ALTER TABLE t ADD COLUMN c String",
                    success=False,
                    error="read-only",
                )
            ],
        )

        assert main([]) == 0
        out = capsys.readouterr().out
        assert "Schema Check" in out
        assert "ch1" in out

    def test_in_sync_message(self, mock_config, mock_run, capsys) -> None:
        assert main([]) == 0
        assert "Schema in sync" in capsys.readouterr().out

    def test_sync_hint_when_report_only(self, mock_config, mock_run, capsys) -> None:
        mock_run.return_value = SyncReport(
            checks=[TableCheck(host="ch1", database="db", table="t", error="timeout")]
        )
        assert main([]) == 0
        assert "--sync" in capsys.readouterr().out

    def test_config_error(self, mock_run, capsys) -> None:
        with patch("ch_schema_sync.cli.load_sync_config", side_effect=ConfigError("Config not found: x")):
            assert main([]) == 1
        assert "Config not found" in capsys.readouterr().out
        mock_run.assert_not_awaited()

    def test_connect_error(self, mock_config, mock_run, capsys) -> None:
        failures = [
            EndpointFailure(endpoint=ServerEndpoint(host="ch1"), cause=ConnectionError("refused")),
            EndpointFailure(endpoint=ServerEndpoint(host="ch3"), cause=ConnectionError("refused")),
        ]
        mock_run.side_effect = ReplicaPoolError("connect", failures)

        assert main([]) == 1
        out = capsys.readouterr().out
        assert "Failed to connect replicas" in out
        assert "ch1:9000: refused" in out
        assert "ch3:9000: refused" in out

    def test_database_select_error(self, mock_config, mock_run, capsys) -> None:
        failures = [
            EndpointFailure(endpoint=ServerEndpoint(host="ch2"), cause=RuntimeError("unknown database")),
        ]
        mock_run.side_effect = DatabaseSelectError("analytics", failures)

        assert main([]) == 1
        out = capsys.readouterr().out
        assert "analytics" in out
        assert "ch2:9000: unknown database" in out

    def test_debug_configures_verbose_logging(self, mock_config, mock_run) -> None:
        with patch("ch_schema_sync.cli.configure_logging") as mock_logging:
            main(["--debug"])
        mock_logging.assert_called_once_with(verbose=True)

    def test_real_config_file(self, tmp_path: Path, mock_run) -> None:
        config_file = tmp_path / "config.yml"
        config_file.write_text("servers:\n  - host: ch1\n")

        assert main(["--config", str(config_file)]) == 0
        config = mock_run.await_args.args[0]
        assert config.servers[0].host == "ch1"


class TestErrorTextIsLiteral:
    """Error messages containing square brackets are printed verbatim."""

    def test_validation_error_keeps_bracketed_details(self, tmp_path: Path, mock_run, capsys) -> None:
        config_file = tmp_path / "config.yml"
        config_file.write_text("servers:\n  - port: 9000\n")

        assert main(["--config", str(config_file)]) == 1

        out = capsys.readouterr().out
        assert "Field required" in out
        assert "[type=missing" in out
        mock_run.assert_not_awaited()

    def test_closing_tag_in_config_value(self, tmp_path: Path, mock_run, capsys) -> None:
        config_file = tmp_path / "config.yml"
        config_file.write_text("servers:\n  - host: ch1\n    port: '[/x]'\n")

        assert main(["--config", str(config_file)]) == 1
        assert "[/x]" in capsys.readouterr().out

    def test_pool_error_header(self, mock_config, mock_run, capsys) -> None:
        failures = [
            EndpointFailure(endpoint=ServerEndpoint(host="ch1"), cause=ConnectionError("[bold]refused")),
        ]
        mock_run.side_effect = ReplicaPoolError("[/connect]", failures)

        assert main([]) == 1
        out = capsys.readouterr().out
        assert "Failed to [/connect] replicas" in out
        assert "ch1:9000: [bold]refused" in out

    def test_database_name_with_brackets(self, mock_config, mock_run, capsys) -> None:
        failures = [
            EndpointFailure(endpoint=ServerEndpoint(host="ch2"), cause=RuntimeError("unknown database")),
        ]
        mock_run.side_effect = DatabaseSelectError("[/db]", failures)

        assert main([]) == 1
        assert "Failed to select database '[/db]'" in capsys.readouterr().out


class TestDebugReport:
    """--debug prints the full drift report after the summary table."""

    @pytest.fixture
    def drifted(self, mock_run) -> SyncReport:
        report = SyncReport(
            checks=[
                TableCheck(
                    host="ch1",
                    database="db",
                    table="t",
                    divergences=[ColumnMissing(column="c", want_type="String")],
                )
            ]
        )
        mock_run.return_value = report
        return report

    def test_report_printed_with_debug(self, mock_config, drifted, capsys) -> None:
        with patch("ch_schema_sync.cli.configure_logging"):
            assert main(["--debug"]) == 0
        out = capsys.readouterr().out
        assert "Schema drift detected (1 divergences):" in out
        assert "ch1 db.t.c: Table has not enough columns" in out

    def test_report_omitted_without_debug(self, mock_config, drifted, capsys) -> None:
        assert main([]) == 0
        assert "Schema drift detected" not in capsys.readouterr().out
