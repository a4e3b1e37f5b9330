"""
tests/test_cli.py

interactlog CLI, driven through click's CliRunner.
"""

import json

import pytest
from click.testing import CliRunner

from interactlog import ZERO_IDENTITY
from interactlog.cli import cli
from interactlog.core.canonical import canonical_line


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def store(tmp_path):
    return str(tmp_path / "interactions.jsonl")


def _run(runner, store, *args):
    result = runner.invoke(cli, ["--store", store, *args])
    assert result.exit_code == 0, result.output
    return result.output


class TestLedgerCommands:

    def test_scenario(self, runner, store):
        assert _run(runner, store, "interact", "--user", "alice", "--time", "100") == "0\n"
        assert _run(runner, store, "interact", "--user", "bob",   "--time", "200") == "1\n"
        assert _run(runner, store, "interact", "--user", "alice", "--time", "300") == "2\n"

        assert _run(runner, store, "total") == "3\n"
        assert _run(runner, store, "users") == "alice\nbob\nalice\n"
        assert _run(runner, store, "timestamps") == "100\n200\n300\n"
        assert _run(runner, store, "latest") == "alice 300\n"

    def test_json_format(self, runner, store):
        _run(runner, store, "interact", "--user", "alice", "--time", "100")

        assert json.loads(_run(runner, store, "users", "--format", "json")) == ["alice"]
        assert json.loads(_run(runner, store, "timestamps", "--format", "json")) == [100]
        assert json.loads(_run(runner, store, "latest", "--format", "json")) == ["alice", 100]
        assert json.loads(_run(runner, store, "total", "--format", "json")) == 1

    def test_empty_ledger(self, runner, store):
        assert _run(runner, store, "total") == "0\n"
        assert _run(runner, store, "users") == ""
        assert _run(runner, store, "latest") == f"{ZERO_IDENTITY} 0\n"

    def test_interact_defaults_time_to_now(self, runner, store):
        _run(runner, store, "interact", "--user", "alice")
        timestamp = json.loads(_run(runner, store, "timestamps", "--format", "json"))[0]
        assert isinstance(timestamp, int) and timestamp > 0

    def test_interact_requires_user(self, runner, store):
        result = runner.invoke(cli, ["--store", store, "interact"])
        assert result.exit_code == 2

    def test_corrupted_store_is_reported(self, runner, store, tmp_path):
        (tmp_path / "interactions.jsonl").write_text(
            canonical_line({"index": 3, "timestamp": 1, "user": "a"}),
            encoding="utf-8",
        )
        result = runner.invoke(cli, ["--store", store, "total"])
        assert result.exit_code == 1
        assert "Index out of order" in result.output


class TestCallCommand:

    def test_call_by_external_name(self, runner, store):
        assert _run(runner, store, "call", "interact", "--user", "alice", "--time", "5") == "0\n"
        assert _run(runner, store, "call", "totalInteractions") == "1\n"
        assert _run(runner, store, "call", "getAllUsers") == "alice\n"
        assert _run(runner, store, "call", "getAllTimestamps") == "5\n"
        assert _run(runner, store, "call", "latestInteraction") == "alice 5\n"

    def test_call_interact_without_user(self, runner, store):
        result = runner.invoke(cli, ["--store", store, "call", "interact"])
        assert result.exit_code == 2

    def test_call_unknown_operation(self, runner, store):
        result = runner.invoke(cli, ["--store", store, "call", "wipe"])
        assert result.exit_code == 2


class TestConfigOptions:

    def test_config_file(self, runner, tmp_path):
        store_path = tmp_path / "from-config.jsonl"
        config     = tmp_path / "interactlog.yaml"
        config.write_text(f"store_path: {store_path}\n", encoding="utf-8")

        result = runner.invoke(cli, ["--config", str(config), "interact", "--user", "a", "--time", "1"])
        assert result.exit_code == 0, result.output
        assert store_path.exists()

    def test_bad_config_is_usage_error(self, runner, tmp_path):
        config = tmp_path / "bad.yaml"
        config.write_text("nonsense: 1\n", encoding="utf-8")
        result = runner.invoke(cli, ["--config", str(config), "total"])
        assert result.exit_code == 2
        assert "Unknown configuration key" in result.output


class TestVerifyCommand:

    def test_valid_store(self, runner, store):
        _run(runner, store, "interact", "--user", "alice", "--time", "100")
        result = runner.invoke(cli, ["verify", store, "--no-color"])
        assert result.exit_code == 0, result.output
        assert "VALID" in result.output

    def test_defaults_to_configured_store(self, runner, store):
        _run(runner, store, "interact", "--user", "alice", "--time", "100")
        result = runner.invoke(cli, ["--store", store, "verify", "--quiet"])
        assert result.exit_code == 0

    def test_json_output(self, runner, store):
        _run(runner, store, "interact", "--user", "alice", "--time", "100")
        result = runner.invoke(cli, ["verify", store, "--format", "json"])
        out = json.loads(result.output)["interactlog_verify"]
        assert out["valid"] is True
        assert out["total_entries"] == 1

    def test_gap_exits_1(self, runner, store, tmp_path):
        (tmp_path / "interactions.jsonl").write_text(
            canonical_line({"index": 0, "timestamp": 1, "user": "a"})
            + canonical_line({"index": 2, "timestamp": 2, "user": "b"}),
            encoding="utf-8",
        )
        result = runner.invoke(cli, ["verify", store, "--format", "compact", "--no-color"])
        assert result.exit_code == 1
        assert result.output.startswith("INVALID")

    def test_missing_store_exits_2(self, runner, tmp_path):
        result = runner.invoke(cli, ["verify", str(tmp_path / "nope.jsonl"), "--quiet"])
        assert result.exit_code == 2

    def test_export(self, runner, store, tmp_path):
        _run(runner, store, "interact", "--user", "alice", "--time", "100")
        report = tmp_path / "report.json"
        result = runner.invoke(cli, ["verify", store, "--quiet", "--export", str(report)])
        assert result.exit_code == 0
        assert json.loads(report.read_text(encoding="utf-8"))["valid"] is True
