"""Tests for the command-line entry point."""
import io
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest import mock

from creditflow import main as cli
from creditflow.utils.logger import configure_logging


class TestParser(unittest.TestCase):
    """Test argument parsing."""

    def test_csv_flag_forms(self):
        parser = cli.build_parser()

        self.assertIsNone(parser.parse_args(["analyze", "f.pdf"]).csv_path)
        self.assertEqual(parser.parse_args(["analyze", "f.pdf", "--csv"]).csv_path, "")
        self.assertEqual(parser.parse_args(["analyze", "f.pdf", "--csv", "out.csv"]).csv_path, "out.csv")

    def test_log_level_choices(self):
        parser = cli.build_parser()

        self.assertEqual(parser.parse_args(["analyze", "f.pdf", "--log-level", "debug"]).log_level, "DEBUG")
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                parser.parse_args(["analyze", "f.pdf", "--log-level", "verbose"])

    def test_resolve_csv_path(self):
        self.assertIsNone(cli.resolve_csv_path(None, "Maria Souza"))
        self.assertEqual(cli.resolve_csv_path("", "Maria Souza"), Path("relatorio_creditos_maria_souza.csv"))
        self.assertEqual(cli.resolve_csv_path("", ""), Path("relatorio_analise_creditos.csv"))
        self.assertEqual(cli.resolve_csv_path("x.csv", "Maria Souza"), Path("x.csv"))


class TestMain(unittest.TestCase):
    """Test startup checks."""

    def test_invalid_config_exits_before_analysis(self):
        log_dir = tempfile.mkdtemp(prefix="creditflow-logs-")
        self.addCleanup(configure_logging)

        environ = {"CREDITFLOW_LOG_DIR": log_dir}
        with mock.patch.dict(os.environ, environ, clear=True), \
                mock.patch("sys.argv", ["creditflow", "analyze", "statement.pdf"]), \
                mock.patch.object(cli, "analyze_command") as analyze, \
                redirect_stdout(io.StringIO()) as out:
            with self.assertRaises(SystemExit) as exit_info:
                cli.main()

        self.assertEqual(exit_info.exception.code, 1)
        self.assertIn("API key not found", out.getvalue())
        analyze.assert_not_called()


if __name__ == "__main__":
    unittest.main()
