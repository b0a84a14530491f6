"""
Unit tests for the 'init' command.
"""

from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from jsongraph.cli.commands.init import init


class TestInitCommand:
    """Test the init command."""

    @pytest.fixture
    def runner(self):
        return CliRunner()

    @pytest.fixture
    def mock_cwd(self, tmp_path):
        """Mock current working directory to a temp path."""
        with patch("pathlib.Path.cwd", return_value=tmp_path):
            yield tmp_path

    def test_init_creates_default_config(self, runner, mock_cwd):
        result = runner.invoke(init)

        assert result.exit_code == 0
        assert "Initialized successfully" in result.output

        config_path = mock_cwd / ".jsongraph/config.yaml"
        with open(config_path) as f:
            config = yaml.safe_load(f)

        assert config["storage"]["backend"] == "sqlite"
        assert config["storage"]["debounce_seconds"] == 0.5
        assert ".jsongraph/" in (mock_cwd / ".gitignore").read_text()

    def test_init_json_backend(self, runner, mock_cwd):
        result = runner.invoke(init, ["--backend", "json"])

        assert result.exit_code == 0
        config = yaml.safe_load((mock_cwd / ".jsongraph/config.yaml").read_text())
        assert config["storage"]["backend"] == "json"
        assert config["storage"]["path"].endswith("json-states.json")

    @patch("jsongraph.cli.commands.init.Confirm.ask")
    def test_init_existing_config_declined(self, mock_confirm, runner, mock_cwd):
        mock_confirm.return_value = False
        config_path = mock_cwd / ".jsongraph/config.yaml"
        config_path.parent.mkdir()
        config_path.write_text("custom: true\n")

        result = runner.invoke(init)

        assert result.exit_code == 0
        assert "Aborted" in result.output
        assert config_path.read_text() == "custom: true\n"

    def test_init_force_overwrites(self, runner, mock_cwd):
        config_path = mock_cwd / ".jsongraph/config.yaml"
        config_path.parent.mkdir()
        config_path.write_text("custom: true\n")

        result = runner.invoke(init, ["--force"])

        assert result.exit_code == 0
        assert "storage" in yaml.safe_load(config_path.read_text())

    def test_gitignore_entry_not_duplicated(self, runner, mock_cwd):
        (mock_cwd / ".gitignore").write_text("node_modules/\n.jsongraph/\n")
        runner.invoke(init)
        assert (mock_cwd / ".gitignore").read_text().count(".jsongraph") == 1
