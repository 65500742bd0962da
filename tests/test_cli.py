"""Tests for the command-line interface."""

import json
import logging

import pytest
import structlog
from rich.console import Console

from connectai.assistant import Assistant
from connectai.cli import create_parser, main, run_shell


@pytest.fixture(autouse=True)
def restore_logging():
    """The CLI reconfigures logging; undo it after each test."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)
    structlog.reset_defaults()


class TestArgumentParser:
    """Test CLI argument parser creation."""

    def test_ask(self):
        args = create_parser().parse_args(["ask", "Najdi firmu Alza", "--data-dir", "export", "--json"])

        assert args.command == "ask"
        assert args.query == "Najdi firmu Alza"
        assert args.data_dir == "export"
        assert args.json is True
        assert args.config is None
        assert args.verbose is False

    def test_shell_options(self):
        args = create_parser().parse_args(["shell", "-c", "config.json", "-v"])
        assert args.command == "shell"
        assert args.config == "config.json"
        assert args.verbose is True

    def test_init_config(self):
        args = create_parser().parse_args(["init-config", "out.json"])
        assert args.path == "out.json"


class TestCommands:
    """Test CLI commands end to end."""

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage: connectai" in capsys.readouterr().out

    def test_ask(self, data_dir, capsys):
        exit_code = main(["ask", "Kolik firem je v systému?", "--data-dir", str(data_dir)])

        assert exit_code == 0
        assert "3 firmy" in capsys.readouterr().out

    def test_ask_json(self, data_dir, capsys):
        exit_code = main(["ask", "Jaké kontakty má firma Microsoft?", "--data-dir", str(data_dir), "--json"])

        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["type"] == "related"
        assert [record["id"] for record in output["related_records"]] == ["p2", "p3"]

    def test_ask_detail_prints_record(self, data_dir, capsys):
        main(["ask", "Najdi firmu Alza", "--data-dir", str(data_dir)])
        assert "27082440" in capsys.readouterr().out

    def test_stats(self, data_dir, capsys):
        assert main(["stats", "--data-dir", str(data_dir)]) == 0

        out = capsys.readouterr().out
        assert "company" in out
        assert "7" in out

    def test_test_connection(self, data_dir, tmp_path, capsys):
        assert main(["test-connection", "--data-dir", str(data_dir)]) == 0
        assert main(["test-connection", "--data-dir", str(tmp_path / "nope")]) == 1

    def test_init_config(self, tmp_path, capsys):
        target = tmp_path / "config.json"

        assert main(["init-config", str(target)]) == 0

        assert json.loads(target.read_text(encoding="utf-8"))["app"]["name"] == "My Connect AI"
        assert "Configuration template saved" in capsys.readouterr().out

    def test_invalid_config_file(self, tmp_path, capsys):
        config_file = tmp_path / "config.json"
        config_file.write_text("{broken", encoding="utf-8")

        assert main(["ask", "Kolik firem?", "--config", str(config_file)]) == 1
        assert "Error" in capsys.readouterr().out


class TestShell:
    """Test the interactive loop."""

    async def test_answers_until_exit(self, app_config, data_dir):
        app_config.crm.data_dir = str(data_dir)
        assistant = Assistant.from_config(app_config)
        console = Console(record=True, width=120)
        lines = iter(["Kolik kontaktů máme?", "", "exit", "Kolik firem?"])

        exit_code = await run_shell(assistant, console, read_line=lambda prompt: next(lines))

        output = console.export_text()
        assert exit_code == 0
        assert "3 kontakty" in output
        assert "firmy" not in output

    async def test_end_of_input(self, app_config):
        assistant = Assistant(app_config)
        console = Console(record=True, width=120)

        def read_line(prompt):
            raise EOFError

        assert await run_shell(assistant, console, read_line=read_line) == 0
