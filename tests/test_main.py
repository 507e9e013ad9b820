# tests/test_main.py

"""Tests for CLI argument parsing and dispatch."""

import logging
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import main
from catalog_schedule.cli import runner


class TestLoggingFlags(unittest.TestCase):
    """-v, -q and --log-dir reach setup_logging."""

    def _dispatch(self, argv: list[str]) -> tuple[int, tuple]:
        with patch.object(main, "setup_logging",
                          return_value=Path("run.log")) as setup, \
                patch.object(runner, "run_search", return_value=0):
            with self.assertRaises(SystemExit) as ctx:
                main.main(argv)
        return ctx.exception.code, setup.call_args.args

    def test_defaults(self) -> None:
        """No flags means warnings on stderr and the default directory."""
        code, args = self._dispatch(["search"])
        self.assertEqual(code, 0)
        self.assertEqual(args, (0, None, "search"))

    def test_verbose_count_and_log_dir(self) -> None:
        """-vv and --log-dir are passed through."""
        _, args = self._dispatch(["-vv", "--log-dir", "/tmp/runs", "search"])
        self.assertEqual(args, (2, Path("/tmp/runs"), "search"))

    def test_quiet(self) -> None:
        """-q maps to verbosity -1."""
        _, args = self._dispatch(["-q", "search", "tap"])
        self.assertEqual(args[0], -1)

    def test_verbose_and_quiet_conflict(self) -> None:
        """-v and -q cannot be combined."""
        with patch("sys.stderr"), self.assertRaises(SystemExit) as ctx:
            main._build_parser().parse_args(["-v", "-q", "search"])
        self.assertEqual(ctx.exception.code, 2)

    def test_run_log_captures_command(self) -> None:
        """A real run writes the command's records to --log-dir."""
        log_dir = Path(tempfile.mkdtemp())
        self.addCleanup(self._close_handlers)
        with patch.object(runner, "run_search", return_value=1):
            with self.assertRaises(SystemExit):
                main.main(["--log-dir", str(log_dir), "search", "tap"])
        (log_file,) = log_dir.glob("run_*_search.log")
        for handler in logging.getLogger("catalog_schedule").handlers:
            handler.flush()
        self.assertIn("catalog_schedule search starting",
                      log_file.read_text(encoding="utf-8"))

    @staticmethod
    def _close_handlers() -> None:
        root_logger = logging.getLogger("catalog_schedule")
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()


class TestAssetDispatch(unittest.TestCase):
    """upload and asset subcommands route to their runners."""

    def _run(self, argv: list[str], name: str) -> tuple:
        with patch.object(main, "setup_logging", return_value=Path("run.log")), \
                patch.object(runner, name, return_value=0) as command:
            with self.assertRaises(SystemExit):
                main.main(argv)
        return command.call_args.args

    def test_upload(self) -> None:
        """upload passes the file, type and token."""
        args = self._run(
            ["upload", "clip.mp4", "--content-type", "video/mp4",
             "--token", "t"],
            "run_upload",
        )
        self.assertEqual(args, (Path("clip.mp4"), "video/mp4", "t", None))

    def test_asset_get(self) -> None:
        """asset get looks up the tag."""
        args = self._run(["asset", "get", "header-logo"], "run_asset_lookup")
        self.assertEqual(args, ("header-logo", None))

    def test_asset_set_url(self) -> None:
        """asset set forwards the parsed options."""
        args = self._run(
            ["asset", "set", "header-logo", "--url", "https://cdn/x.png",
             "--filename", "x.png"],
            "run_asset_set",
        )
        options = args[0]
        self.assertEqual(options["tag"], "header-logo")
        self.assertEqual(options["url"], "https://cdn/x.png")
        self.assertIsNone(options["file"])

    def test_asset_set_needs_a_source(self) -> None:
        """Either --file or --url is required."""
        with patch("sys.stderr"), self.assertRaises(SystemExit) as ctx:
            main._build_parser().parse_args(["asset", "set", "header-logo"])
        self.assertEqual(ctx.exception.code, 2)

    def test_asset_seed(self) -> None:
        """asset seed passes the seed file."""
        args = self._run(
            ["--db", "c.db", "asset", "seed", "assets.json"], "run_asset_seed",
        )
        self.assertEqual(args, (Path("assets.json"), None, Path("c.db")))


if __name__ == "__main__":
    unittest.main()
