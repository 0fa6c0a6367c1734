"""Tests for the solve entry point: output, exit codes and configuration."""

from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
import io
import json
import sys
import tempfile
import unittest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from nqanneal import cli
from nqanneal.utils import conflicts


def run_cli(argv):
    """Run ``cli.main`` and return (exit_code, stdout)."""
    out = io.StringIO()
    with redirect_stdout(out):
        code = cli.main(argv)
    return code, out.getvalue()


def parse_grid(lines):
    """Turn rendered grid lines back into ``board[col] = row``."""
    n = len(lines)
    board = [None] * n
    for row, line in enumerate(lines):
        for column, cell in enumerate(line.split()):
            if cell == "Q":
                board[column] = row
    return board


class SolveCliTests(unittest.TestCase):
    def test_solved_board_is_printed(self):
        code, output = run_cli(["8", "10000", "-t", "4000", "--seed", "3", "--restarts", "5"])
        self.assertEqual(code, cli.EXIT_SOLVED)
        lines = output.strip().splitlines()
        self.assertEqual(len(lines), 9)
        self.assertTrue(lines[-1].startswith("Solved N=8"))
        board = parse_grid(lines[:8])
        self.assertNotIn(None, board)
        self.assertEqual(conflicts(board), 0)

    def test_single_queen(self):
        code, output = run_cli(["1", "5"])
        self.assertEqual(code, cli.EXIT_SOLVED)
        self.assertEqual(output.splitlines()[0], "Q")

    def test_unsolvable_board_reports_exhaustion(self):
        code, output = run_cli(["3", "200", "--seed", "1"])
        self.assertEqual(code, cli.EXIT_UNSOLVED)
        lines = output.strip().splitlines()
        self.assertEqual(len(lines), 4)
        self.assertIn("No solution found for N=3 within 200 iterations", lines[-1])

    def test_invalid_input_exit_code(self):
        for argv in (["0", "100"], ["8", "0"], ["8", "100", "-t", "-5"], ["8", "100", "-t", "nan"],
                     ["8", "100", "--restarts", "0"], ["8", "100", "--floor", "0"]):
            with self.subTest(argv=argv):
                code, output = run_cli(argv)
                self.assertEqual(code, cli.EXIT_INVALID)
                self.assertTrue(output.startswith("Invalid input:"))

    def test_malformed_arguments_are_usage_errors(self):
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                cli.main(["8", "100", "-t", "warm"])
        self.assertEqual(ctx.exception.code, 2)

    def test_seeded_output_is_reproducible(self):
        first = run_cli(["12", "3000", "--seed", "9"])
        second = run_cli(["12", "3000", "--seed", "9"])
        self.assertEqual(first[0], second[0])
        self.assertEqual(first[1].splitlines()[:12], second[1].splitlines()[:12])


class SolveCliConfigTests(unittest.TestCase):
    def test_config_supplies_annealing_defaults(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.json"
            path.write_text(json.dumps({
                "annealing": {
                    "temperature_per_queen": 2.0,
                    "temperature_floor": 0.01,
                    "schedule": "geometric",
                    "init": "random",
                }
            }))
            defaults = cli.load_annealing_defaults(str(path))
            self.assertEqual(defaults["init"], "random")
            code, output = run_cli(["6", "20000", "--seed", "0", "--restarts", "4", "--config", str(path)])
        self.assertIn(code, (cli.EXIT_SOLVED, cli.EXIT_UNSOLVED))
        self.assertEqual(len(output.strip().splitlines()), 7)

    def test_numeric_strings_in_config_are_converted(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.json"
            path.write_text(json.dumps({"annealing": {"temperature_per_queen": "2"}}))
            code, output = run_cli(["6", "5000", "--seed", "1", "--restarts", "3", "--config", str(path)])
            self.assertIn(code, (cli.EXIT_SOLVED, cli.EXIT_UNSOLVED))
            self.assertEqual(len(output.strip().splitlines()), 7)

            path.write_text(json.dumps({"annealing": {"temperature_per_queen": "warm"}}))
            code, output = run_cli(["6", "100", "--config", str(path)])
        self.assertEqual(code, cli.EXIT_INVALID)
        self.assertTrue(output.startswith("Invalid input:"))

    def test_bad_config_values_are_invalid_input(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.json"
            path.write_text(json.dumps({"annealing": {"schedule": "cauchy"}}))
            code, output = run_cli(["8", "100", "--config", str(path)])
        self.assertEqual(code, cli.EXIT_INVALID)
        self.assertIn("cauchy", output)

    def test_missing_config(self):
        code, output = run_cli(["8", "100", "--config", "/nonexistent/config.json"])
        self.assertEqual(code, cli.EXIT_INVALID)
        self.assertTrue(output.startswith("Configuration file not found"))

    def test_no_config_means_no_defaults(self):
        self.assertEqual(cli.load_annealing_defaults(None), {})


if __name__ == "__main__":
    unittest.main()
