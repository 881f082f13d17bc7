"""Tests for the tscatalog command line."""

import json
import os
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from tscatalog.cli import CLIError, ErrorCode, app

from conftest import make_ts


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def runner():
    """Create CLI runner."""
    return CliRunner()


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run commands from an empty directory with no TSCATALOG_* settings."""
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith("TSCATALOG_"):
            monkeypatch.delenv(key)
    return tmp_path


@pytest.fixture
def broken_catalog(tmp_path) -> Path:
    path = tmp_path / "broken_ja.ts"
    path.write_text(make_ts(
        "<message><source>&amp;Copy</source><translation>コピー</translation></message>"
        "<message><source>Total: %1 (%2)</source><translation>合計: %1</translation></message>"
    ), encoding="utf-8")
    return path


# =============================================================================
# Translate Command
# =============================================================================


class TestTranslateCommand:
    """Tests for tscatalog translate."""

    def test_with_catalog_file(self, runner, isolated, dash_ja_path):
        result = runner.invoke(
            app, ["translate", "AddressBookPage", "&Copy", "--catalog", str(dash_ja_path)]
        )
        assert result.exit_code == 0
        assert result.output.strip() == "コピー(&C)"

    def test_with_locale_directory(self, runner, isolated, locale_dir):
        result = runner.invoke(app, [
            "translate", "BitcoinGUI", "Processed %n block(s) of transaction history.",
            "--count", "3", "--locale", "ja", "--dir", str(locale_dir), "--domain", "dash",
        ])
        assert result.exit_code == 0
        assert result.output.strip() == "3 ブロックのトランザクション履歴を処理"

    def test_fallback_with_arguments(self, runner, isolated):
        result = runner.invoke(
            app, ["translate", "UnknownContext", "Hello %1", "--arg", "World", "--locale", "ja"]
        )
        assert result.exit_code == 0
        assert result.output.strip() == "Hello World"

    def test_disambiguation(self, runner, isolated, dash_ja_path):
        result = runner.invoke(app, [
            "translate", "BitcoinGUI", "Open", "--comment", "verb", "--catalog", str(dash_ja_path),
        ])
        assert result.output.strip() == "開く"

    def test_missing_count(self, runner, isolated, dash_ja_path):
        result = runner.invoke(app, [
            "translate", "BitcoinGUI", "%n active connection(s) to Dash network",
            "--catalog", str(dash_ja_path),
        ])
        assert result.exit_code == ErrorCode.USAGE_ERROR.value
        assert "requires a count" in result.output

    def test_negative_count(self, runner, isolated, dash_ja_path):
        result = runner.invoke(app, [
            "translate", "BitcoinGUI", "%n active connection(s) to Dash network",
            "--count=-1", "--catalog", str(dash_ja_path),
        ])
        assert result.exit_code == ErrorCode.USAGE_ERROR.value

    def test_strict_missing_argument(self, runner, isolated):
        result = runner.invoke(app, ["translate", "T", "%1 and %2", "-a", "x", "--strict", "-l", "en"])
        assert result.exit_code == ErrorCode.USAGE_ERROR.value
        assert "%2" in result.output

    def test_config_file(self, runner, isolated, locale_dir):
        config = isolated / "tscatalog.yaml"
        config.write_text(
            f"locale: ja\ndomain: dash\ncatalog_dirs: ['{locale_dir.as_posix()}']\n",
            encoding="utf-8",
        )
        result = runner.invoke(app, ["translate", "QObject", "Amount", "--config", str(config)])
        assert result.exit_code == 0
        assert result.output.strip() == "総額"

    def test_config_log_level(self, runner, isolated, locale_dir):
        config = isolated / "tscatalog.yaml"
        config.write_text(
            f"locale: ja\ndomain: dash\nlog_level: info\ncatalog_dirs: ['{locale_dir.as_posix()}']\n",
            encoding="utf-8",
        )
        result = runner.invoke(app, ["translate", "QObject", "Amount", "--config", str(config)])
        assert result.exit_code == 0
        assert "Loaded 15 messages" in result.output

        result = runner.invoke(
            app, ["--log-level", "ERROR", "translate", "QObject", "Amount", "--config", str(config)]
        )
        assert result.exit_code == 0
        assert "Loaded 15 messages" not in result.output

    def test_env_log_level(self, runner, isolated, locale_dir, monkeypatch):
        monkeypatch.setenv("TSCATALOG_LOG_LEVEL", "INFO")
        result = runner.invoke(app, [
            "translate", "QObject", "Amount", "-l", "ja", "-d", str(locale_dir), "--domain", "dash",
        ])
        assert result.exit_code == 0
        assert "Loaded 15 messages" in result.output

    def test_invalid_config_log_level(self, runner, isolated):
        config = isolated / "tscatalog.yaml"
        config.write_text("log_level: loud\n", encoding="utf-8")
        result = runner.invoke(app, ["translate", "T", "x", "-l", "en", "--config", str(config)])
        assert result.exit_code == ErrorCode.CONFIG_INVALID.value

    def test_invalid_config(self, runner, isolated):
        config = isolated / "tscatalog.yaml"
        config.write_text("colour: red\n", encoding="utf-8")
        result = runner.invoke(app, ["translate", "T", "x", "--config", str(config)])
        assert result.exit_code == ErrorCode.CONFIG_INVALID.value
        assert "colour" in result.output

    def test_missing_catalog_file(self, runner, isolated):
        result = runner.invoke(app, ["translate", "T", "x", "-l", "ja", "--catalog", "nope.ts"])
        assert result.exit_code == ErrorCode.FILE_NOT_FOUND.value


# =============================================================================
# Check Command
# =============================================================================


class TestCheckCommand:
    """Tests for tscatalog check."""

    def test_clean_catalog(self, runner, dash_ja_path):
        result = runner.invoke(app, ["check", str(dash_ja_path)])
        assert result.exit_code == 0
        assert "15 messages, 0 errors, 0 warnings" in result.output

    def test_issues_fail(self, runner, broken_catalog):
        result = runner.invoke(app, ["check", str(broken_catalog)])
        assert result.exit_code == ErrorCode.VALIDATION_FAILED.value
        assert "1 errors, 1 warnings" in result.output

    def test_json_output(self, runner, broken_catalog):
        result = runner.invoke(app, ["check", str(broken_catalog), "--format", "json"])
        data = json.loads(result.stdout)
        assert data["language"] == "ja"
        assert data["errors"] == 1
        assert data["warnings"] == 1
        assert {i["code"] for i in data["issues"]} == {"placeholder-missing", "accelerator-missing"}

    def test_warnings_only(self, runner, tmp_path):
        path = tmp_path / "warn_ja.ts"
        path.write_text(make_ts(
            "<message><source>&amp;Copy</source><translation>コピー</translation></message>"
        ), encoding="utf-8")
        assert runner.invoke(app, ["check", str(path)]).exit_code == 0
        result = runner.invoke(app, ["check", str(path), "--fail-on-warning"])
        assert result.exit_code == ErrorCode.VALIDATION_FAILED.value

    def test_dropped_entries_are_errors(self, runner, tmp_path):
        path = tmp_path / "forms_ja.ts"
        path.write_text(make_ts(
            '<message numerus="yes"><source>%n file(s)</source><translation>'
            "<numerusform>%n file</numerusform><numerusform>%n files</numerusform>"
            "</translation></message>"
        ), encoding="utf-8")
        result = runner.invoke(app, ["check", str(path)])
        assert result.exit_code == ErrorCode.VALIDATION_FAILED.value
        assert "0 messages, 1 errors" in result.output

    def test_malformed_catalog(self, runner, tmp_path):
        path = tmp_path / "bad_ja.ts"
        path.write_text("<TS", encoding="utf-8")
        result = runner.invoke(app, ["check", str(path)])
        assert result.exit_code == ErrorCode.INVALID_FILE_FORMAT.value
        assert "Error:" in result.output

    def test_unknown_output_format(self, runner, dash_ja_path):
        result = runner.invoke(app, ["check", str(dash_ja_path), "--format", "xml"])
        assert result.exit_code == ErrorCode.USAGE_ERROR.value


# =============================================================================
# Stats Command
# =============================================================================


class TestStatsCommand:
    """Tests for tscatalog stats."""

    def test_json(self, runner, dash_ja_path):
        result = runner.invoke(app, ["stats", str(dash_ja_path), "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data[0]["catalog"] == str(dash_ja_path)
        assert data[0]["messages"] == 15
        assert data[0]["plural_messages"] == 2

    def test_console(self, runner, dash_ja_path):
        result = runner.invoke(app, ["stats", str(dash_ja_path)])
        assert result.exit_code == 0
        assert "Catalog statistics" in result.output

    def test_strict_policy_rejects(self, runner, tmp_path):
        path = tmp_path / "forms_ja.ts"
        path.write_text(make_ts(
            '<message numerus="yes"><source>%n x</source><translation>'
            "<numerusform>a</numerusform><numerusform>b</numerusform></translation></message>"
        ), encoding="utf-8")
        assert runner.invoke(app, ["stats", str(path)]).exit_code == ErrorCode.DATA_CORRUPT.value
        assert runner.invoke(app, ["stats", str(path), "--policy", "drop"]).exit_code == 0

    def test_unknown_policy(self, runner, dash_ja_path):
        result = runner.invoke(app, ["stats", str(dash_ja_path), "--policy", "lenient"])
        assert result.exit_code == ErrorCode.USAGE_ERROR.value


# =============================================================================
# Convert Command
# =============================================================================


class TestConvertCommand:
    """Tests for tscatalog convert."""

    def test_to_json(self, runner, dash_ja_path, tmp_path):
        output = tmp_path / "dash_ja.json"
        result = runner.invoke(app, ["convert", str(dash_ja_path), str(output)])
        assert result.exit_code == 0
        assert "Converted 15 messages" in result.output
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["language"] == "ja"

    def test_to_yaml_without_unfinished(self, runner, dash_ja_path, tmp_path):
        output = tmp_path / "dash_ja.yaml"
        result = runner.invoke(app, ["convert", str(dash_ja_path), str(output), "--no-unfinished"])
        assert result.exit_code == 0
        data = yaml.safe_load(output.read_text(encoding="utf-8"))
        sources = [m["source"] for c in data["contexts"] for m in c["messages"]]
        assert "Wallet" not in sources
        assert "&Copy" in sources

    def test_converted_catalog_translates(self, runner, isolated, dash_ja_path):
        output = isolated / "dash_ja.json"
        runner.invoke(app, ["convert", str(dash_ja_path), str(output)])
        result = runner.invoke(app, ["translate", "AddressBookPage", "&Copy", "--catalog", str(output)])
        assert result.output.strip() == "コピー(&C)"

    def test_unsupported_output(self, runner, dash_ja_path, tmp_path):
        result = runner.invoke(app, ["convert", str(dash_ja_path), str(tmp_path / "out.po")])
        assert result.exit_code == ErrorCode.USAGE_ERROR.value
        assert "Hint:" in result.output


# =============================================================================
# Locales Command
# =============================================================================


class TestLocalesCommand:
    """Tests for tscatalog locales."""

    def test_lists_locales(self, runner, locale_dir):
        (locale_dir / "dash_pt_BR.ts").write_text("", encoding="utf-8")
        result = runner.invoke(app, ["locales", str(locale_dir), "--domain", "dash"])
        assert result.exit_code == 0
        assert result.output.split() == ["ja", "pt_BR"]

    def test_empty_directory(self, runner, tmp_path):
        result = runner.invoke(app, ["locales", str(tmp_path)])
        assert result.exit_code == 0
        assert "No catalogs found" in result.output

    def test_not_a_directory(self, runner, tmp_path):
        result = runner.invoke(app, ["locales", str(tmp_path / "missing")])
        assert result.exit_code == ErrorCode.FILE_NOT_FOUND.value


# =============================================================================
# Global options and errors
# =============================================================================


class TestGlobalOptions:
    """Tests for logging options and error conversion."""

    def test_verbose_logs_loading(self, runner, dash_ja_path):
        result = runner.invoke(app, ["--verbose", "stats", str(dash_ja_path)])
        assert result.exit_code == 0
        assert "Loaded 15 messages" in result.output

    def test_invalid_log_format(self, runner, dash_ja_path):
        result = runner.invoke(app, ["--log-format", "xml", "stats", str(dash_ja_path)])
        assert result.exit_code == ErrorCode.USAGE_ERROR.value

    def test_cli_error_str(self):
        error = CLIError("Bad input", ErrorCode.USAGE_ERROR, hint="Try again.")
        assert str(error) == "Bad input\nHint: Try again."
