"""
Tests for the CLI interface.
"""
import json
import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml
from typer.testing import CliRunner

from ocusage.cli.main import EXIT_CODE_CONFIG_ERROR, EXIT_CODE_OK, app
from ocusage.demo.seed_demo_data import seed_demo_data, write_message, write_session

runner = CliRunner()


class CLITestCase:
    """Seeded data directory and an isolated config home."""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.data_dir = os.path.join(self.temp_dir, "project")
        os.makedirs(self.data_dir)
        self.env = {
            "XDG_CONFIG_HOME": os.path.join(self.temp_dir, "config"),
            "OCUSAGE_DATA_DIR": None,
            "OCUSAGE_CONFIG": None,
        }

    def teardown_method(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def invoke(self, *args):
        return runner.invoke(app, list(args), env=self.env)

    def seed(self):
        seed_demo_data(Path(self.data_dir))


class TestReportCommands(CLITestCase):
    """Test the batch report commands."""

    def test_session_json(self):
        self.seed()
        result = self.invoke("session", "--json", "--data-dir", self.data_dir)

        assert result.exit_code == EXIT_CODE_OK
        data = json.loads(result.stdout)
        assert [row["id"] for row in data] == ["ses_002", "ses_001"]
        assert data[1]["inputTokens"] == 300
        assert "models" in data[0]

    def test_session_no_show_models(self):
        self.seed()
        result = self.invoke("session", "--json", "--no-show-models", "--data-dir", self.data_dir)
        assert all("models" not in row for row in json.loads(result.stdout))

    def test_session_date_filter(self):
        self.seed()
        result = self.invoke("session", "--json", "--since", "2024-03-04", "--data-dir", self.data_dir)
        assert [row["id"] for row in json.loads(result.stdout)] == ["ses_002"]

    def test_session_table(self):
        self.seed()
        result = self.invoke("session", "--data-dir", self.data_dir)
        assert result.exit_code == EXIT_CODE_OK
        assert "Total" in result.output

    def test_session_xml(self):
        self.seed()
        result = self.invoke("session", "--xml", "--json", "--data-dir", self.data_dir)
        assert result.stdout.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        assert "<sessions><item><id>ses_002</id>" in result.stdout

    def test_data_dir_from_environment(self):
        self.seed()
        self.env["OCUSAGE_DATA_DIR"] = self.data_dir
        result = self.invoke("monthly", "--json")
        assert json.loads(result.stdout)[0]["period"] == "2024-03"

    def test_daily_json_has_no_status_line(self):
        self.seed()
        result = self.invoke("daily", "--json", "--data-dir", self.data_dir)
        assert "Generating" not in result.stdout
        periods = [row["period"] for row in json.loads(result.stdout)]
        assert periods == sorted(periods)

    def test_daily_table_has_status_line(self):
        self.seed()
        result = self.invoke("daily", "--data-dir", self.data_dir)
        assert "Generating daily report..." in result.output

    def test_weekly_table(self):
        self.seed()
        result = self.invoke("weekly", "--data-dir", self.data_dir)
        assert "Generating weekly report..." in result.output

    def test_hourly_and_minutely_keys(self):
        self.seed()
        hourly = json.loads(self.invoke("hourly", "--json", "--data-dir", self.data_dir).stdout)
        minutely = json.loads(self.invoke("minutely", "--json", "--data-dir", self.data_dir).stdout)
        assert all(len(row["period"]) == len("2024-03-01T14") for row in hourly)
        assert all(len(row["period"]) == len("2024-03-01T14:32") for row in minutely)
        assert len(minutely) >= len(hourly)

    def test_today(self):
        storage = write_session(Path(self.data_dir), "p", "ses_now", "Now", datetime.now())
        write_message(storage, "ses_now", "msg_1", datetime.now(), cost=0.5, input_tokens=10)
        self.seed()

        result = self.invoke("today", "--json", "--data-dir", self.data_dir)
        data = json.loads(result.stdout)
        assert sum(row["totalCost"] for row in data) == 0.5

    def test_invalid_since(self):
        result = self.invoke("daily", "--since", "yesterday", "--data-dir", self.data_dir)
        assert result.exit_code == 2

    def test_invalid_start_time(self):
        result = self.invoke("session", "--start-time", "9am", "--data-dir", self.data_dir)
        assert result.exit_code == 2


class TestNoData(CLITestCase):
    """Missing data directories and empty session lists."""

    def test_missing_dir_json(self):
        missing = os.path.join(self.temp_dir, "missing")
        result = self.invoke("session", "--json", "--data-dir", missing)
        assert result.exit_code == EXIT_CODE_OK
        assert result.stdout.strip() == "[]"

    def test_missing_dir_table(self):
        missing = os.path.join(self.temp_dir, "missing")
        result = self.invoke("daily", "--data-dir", missing)
        assert result.exit_code == EXIT_CODE_OK
        assert "opencode data directory not found" in result.output

    def test_file_as_data_dir_json(self):
        path = os.path.join(self.temp_dir, "not-a-dir.json")
        Path(path).write_text("{}", encoding="utf-8")
        result = self.invoke("session", "--json", "--data-dir", path)
        assert result.exit_code == EXIT_CODE_OK
        assert result.stdout.strip() == "[]"

    def test_file_as_data_dir_table(self):
        path = os.path.join(self.temp_dir, "not-a-dir.json")
        Path(path).write_text("{}", encoding="utf-8")
        result = self.invoke("daily", "--data-dir", path)
        assert result.exit_code == EXIT_CODE_OK
        assert "opencode data directory not found" in result.output

    def test_file_as_data_dir_live(self):
        path = os.path.join(self.temp_dir, "not-a-dir.json")
        Path(path).write_text("{}", encoding="utf-8")
        result = self.invoke("live", "--json", "--data-dir", path)
        assert result.exit_code == EXIT_CODE_OK
        assert result.stdout.strip() == "[]"

    def test_unreadable_data_dir_live(self):
        with patch("ocusage.cli.main.LiveMonitor") as monitor_cls:
            monitor_cls.return_value.run.side_effect = PermissionError(13, "Permission denied")
            result = self.invoke("live", "--data-dir", self.data_dir)
        assert result.exit_code == EXIT_CODE_OK
        assert "Permission denied" in result.output

    def test_empty_dir_table(self):
        result = self.invoke("session", "--data-dir", self.data_dir)
        assert "No opencode session data found." in result.output

    def test_empty_dir_period_table(self):
        result = self.invoke("monthly", "--data-dir", self.data_dir)
        assert "No opencode usage data found." in result.output

    def test_empty_dir_xml(self):
        result = self.invoke("session", "--xml", "--data-dir", self.data_dir)
        assert "<message>No sessions found</message>" in result.stdout


class TestConfigOption(CLITestCase):
    """The YAML config file supplies defaults for the flags."""

    def _write_config(self, config_data) -> str:
        config_path = os.path.join(self.temp_dir, "ocusage.yaml")
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_data, f)
        return config_path

    def test_config_output_and_data_dir(self):
        self.seed()
        config_path = self._write_config({"output": "json", "data_dir": self.data_dir})
        result = self.invoke("--config", config_path, "session")
        assert len(json.loads(result.stdout)) == 2

    def test_config_show_models_can_be_overridden(self):
        self.seed()
        config_path = self._write_config({"output": "json", "show_models": False})
        hidden = self.invoke("-c", config_path, "session", "--data-dir", self.data_dir)
        shown = self.invoke("-c", config_path, "session", "--show-models", "--data-dir", self.data_dir)
        assert "models" not in json.loads(hidden.stdout)[0]
        assert "models" in json.loads(shown.stdout)[0]

    def test_flag_overrides_config_output(self):
        self.seed()
        config_path = self._write_config({"output": "json"})
        result = self.invoke("-c", config_path, "session", "--xml", "--data-dir", self.data_dir)
        assert result.stdout.startswith("<?xml")

    def test_missing_config_file(self):
        result = self.invoke("--config", os.path.join(self.temp_dir, "nope.yaml"), "session")
        assert result.exit_code == EXIT_CODE_CONFIG_ERROR
        assert "Error loading config" in result.output

    def test_invalid_config_file(self):
        config_path = self._write_config({"output": "csv"})
        result = self.invoke("--config", config_path, "session")
        assert result.exit_code == EXIT_CODE_CONFIG_ERROR


class TestMiscCommands(CLITestCase):

    def test_no_command(self):
        result = self.invoke()
        assert result.exit_code == EXIT_CODE_OK
        assert "Use --help to see available commands" in result.output

    def test_live_runs_monitor(self):
        with patch("ocusage.cli.main.LiveMonitor") as monitor_cls:
            result = self.invoke("live", "--json", "--data-dir", self.data_dir)

        assert result.exit_code == EXIT_CODE_OK
        monitor_cls.return_value.run.assert_called_once_with()
        _, kwargs = monitor_cls.call_args
        assert kwargs["show_models"] is True
        assert kwargs["output_mode"].value == "json"

    def test_live_missing_dir_json(self):
        missing = os.path.join(self.temp_dir, "missing")
        result = self.invoke("live", "--json", "--data-dir", missing)
        assert result.exit_code == EXIT_CODE_OK
        assert result.stdout.strip() == "[]"

    @pytest.mark.parametrize("command", ["session", "daily", "weekly", "monthly", "hourly", "minutely", "today", "live"])
    def test_help(self, command):
        result = self.invoke(command, "--help")
        assert result.exit_code == EXIT_CODE_OK
        assert "--json" in result.output
