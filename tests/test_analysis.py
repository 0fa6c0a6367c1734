"""Tests for statistics, experiment runners, restarts, reporting and configuration."""

from contextlib import redirect_stdout
from pathlib import Path
import csv
import io
import json
import os
import sys
import tempfile
import unittest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config_manager import ConfigManager
from nqanneal.analysis import cli, settings
from nqanneal.analysis.experiments import (
    run_sa_experiments,
    run_sa_experiments_parallel,
    solve_with_restarts,
)
from nqanneal.analysis.reporting import save_raw_data_to_csv, save_results_to_csv
from nqanneal.analysis.stats import (
    ProgressPrinter,
    compute_detailed_statistics,
    compute_grouped_statistics,
)
from nqanneal.utils import InvalidInputError, is_valid_solution

SETTING_NAMES = [
    "N_VALUES",
    "RUNS_SA_FINAL",
    "ITERATION_FACTOR",
    "TEMPERATURE_PER_QUEEN",
    "TEMPERATURE_FLOOR",
    "SCHEDULE",
    "INIT_METHOD",
    "BASE_SEED",
    "OUT_DIR",
    "NUM_PROCESSES",
    "DATE_IN_FILENAMES",
]


class SettingsIsolation(unittest.TestCase):
    """Restore ``settings`` globals after each test."""

    def setUp(self):
        self._saved = {name: getattr(settings, name) for name in SETTING_NAMES}

    def tearDown(self):
        for name, value in self._saved.items():
            setattr(settings, name, value)


class StatisticsTests(unittest.TestCase):
    def test_empty_values(self):
        summary = compute_detailed_statistics([])
        self.assertEqual(summary["count"], 0)
        self.assertIsNone(summary["mean"])
        self.assertIsNone(summary["q75"])

    def test_summary_values(self):
        summary = compute_detailed_statistics([4, 1, 3, 2, 5, 6, 8, 7])
        self.assertEqual(summary["count"], 8)
        self.assertEqual(summary["mean"], 4.5)
        self.assertEqual(summary["median"], 4.5)
        self.assertEqual(summary["min"], 1)
        self.assertEqual(summary["max"], 8)
        self.assertEqual(summary["range"], 7)
        self.assertEqual(summary["q25"], 3)
        self.assertEqual(summary["q75"], 7)
        self.assertAlmostEqual(summary["std"], 2.29128784747792)
        self.assertEqual(compute_detailed_statistics([3.0])["std"], 0.0)

    def test_grouped_statistics(self):
        runs = [
            {"success": True, "steps": 100, "time": 0.1, "evals": 101, "accepted": 50, "best_conflicts": 0},
            {"success": True, "steps": 300, "time": 0.3, "evals": 301, "accepted": 90, "best_conflicts": 0},
            {"success": False, "steps": 1000, "time": 1.0, "evals": 1001, "accepted": 400, "best_conflicts": 2},
        ]
        stats = compute_grouped_statistics(runs)
        self.assertEqual(stats["total_runs"], 3)
        self.assertEqual(stats["successes"], 2)
        self.assertEqual(stats["failures"], 1)
        self.assertAlmostEqual(stats["success_rate"], 2 / 3)
        self.assertAlmostEqual(stats["failure_rate"], 1 / 3)
        self.assertEqual(stats["success_steps"]["mean"], 200)
        self.assertEqual(stats["failure_best_conflicts"]["min"], 2)
        self.assertEqual(stats["all_evals"]["count"], 3)

    def test_grouped_statistics_without_runs(self):
        stats = compute_grouped_statistics([])
        self.assertEqual(stats["total_runs"], 0)
        self.assertEqual(stats["success_rate"], 0.0)
        self.assertNotIn("all_steps", stats)

    def test_progress_printer(self):
        out = io.StringIO()
        with redirect_stdout(out):
            ProgressPrinter(4, "Experiments SA").update(1, "N=8")
            ProgressPrinter(0, "Empty").update(1)
        lines = out.getvalue().splitlines()
        self.assertEqual(lines[0], "[Experiments SA] 1/4 (25%) - N=8")
        self.assertEqual(lines[1], "[Empty] 1/1 (100%)")


class ExperimentTests(SettingsIsolation):
    def test_sequential_runs_are_seeded(self):
        with redirect_stdout(io.StringIO()):
            first = run_sa_experiments([3, 6], runs=3, base_seed=10, validate=True)
            second = run_sa_experiments([3, 6], runs=3, base_seed=10)
        self.assertEqual(sorted(first), [3, 6])
        for n in (3, 6):
            entry = first[n]
            self.assertEqual(entry["total_runs"], 3)
            self.assertEqual(entry["max_iter"], settings.ITERATION_FACTOR * n * n)
            self.assertEqual(entry["T0"], settings.TEMPERATURE_PER_QUEEN * n)
            self.assertEqual([run["seed"] for run in entry["raw_runs"]], [10, 11, 12])
            self.assertEqual(
                [run["steps"] for run in entry["raw_runs"]],
                [run["steps"] for run in second[n]["raw_runs"]],
            )
        self.assertEqual(first[3]["success_rate"], 0.0)
        self.assertEqual(first[3]["failure_best_conflicts"]["min"], 1)

    def test_parallel_matches_sequential(self):
        settings.ITERATION_FACTOR = 20
        with redirect_stdout(io.StringIO()):
            sequential = run_sa_experiments([8], runs=4, base_seed=0)
            parallel = run_sa_experiments_parallel([8], runs=4, base_seed=0, num_processes=2)
        strip = lambda entry: [(r["seed"], r["success"], r["steps"], r["best_conflicts"]) for r in entry["raw_runs"]]
        self.assertEqual(strip(sequential[8]), strip(parallel[8]))

    def test_settings_drive_the_runs(self):
        settings.ITERATION_FACTOR = 1
        settings.SCHEDULE = "linear"
        with redirect_stdout(io.StringIO()):
            results = run_sa_experiments([10], runs=2, base_seed=0)
        self.assertEqual(results[10]["max_iter"], 100)
        self.assertTrue(all(run["steps"] <= 100 for run in results[10]["raw_runs"]))


class RestartTests(unittest.TestCase):
    def test_restarts_find_a_solution(self):
        result = solve_with_restarts(8, 6400, restarts=5, seed=0)
        self.assertTrue(result.solved)
        self.assertTrue(is_valid_solution(result.board))
        self.assertIn(result.seed, range(5))

    def test_sequential_restarts_stop_at_first_solution(self):
        result = solve_with_restarts(1, 10, restarts=3, seed=40)
        self.assertTrue(result.solved)
        self.assertEqual(result.seed, 40)

    def test_unsolvable_returns_lowest_cost(self):
        result = solve_with_restarts(3, 500, restarts=3, seed=0)
        self.assertFalse(result.solved)
        self.assertEqual(result.cost, 1)

    def test_parallel_restarts(self):
        result = solve_with_restarts(10, 10000, restarts=3, seed=5, workers=2)
        self.assertTrue(result.solved)
        self.assertTrue(is_valid_solution(result.board))
        self.assertIn(result.seed, (5, 6, 7))

    def test_invalid_restart_parameters(self):
        with self.assertRaises(InvalidInputError):
            solve_with_restarts(8, 100, restarts=0)
        with self.assertRaises(InvalidInputError):
            solve_with_restarts(8, 100, workers=0)
        with self.assertRaises(InvalidInputError):
            solve_with_restarts(0, 100)


class ReportingTests(SettingsIsolation):
    def test_csv_files(self):
        settings.DATE_IN_FILENAMES = False
        with redirect_stdout(io.StringIO()):
            results = run_sa_experiments([3, 8], runs=2, base_seed=0)
            with tempfile.TemporaryDirectory() as tmpdir:
                summary_path = save_results_to_csv(results, [3, 8], tmpdir)
                raw_path = save_raw_data_to_csv(results, [3, 8], tmpdir)
                with open(summary_path, newline="") as f:
                    summary_rows = list(csv.DictReader(f))
                with open(raw_path, newline="") as f:
                    raw_rows = list(csv.DictReader(f))

        self.assertEqual(os.path.basename(summary_path), "results_SA.csv")
        self.assertEqual([row["n"] for row in summary_rows], ["3", "8"])
        self.assertEqual(summary_rows[0]["sa_success_rate"], "0.0")
        self.assertEqual(summary_rows[0]["sa_success_steps_mean"], "")
        self.assertEqual(len(raw_rows), 4)
        self.assertEqual([row["seed"] for row in raw_rows], ["0", "1", "0", "1"])
        self.assertEqual(raw_rows[0]["success"], "False")

    def test_run_suffix(self):
        settings.DATE_IN_FILENAMES = True
        with redirect_stdout(io.StringIO()):
            results = run_sa_experiments([4], runs=1, base_seed=0)
            with tempfile.TemporaryDirectory() as tmpdir:
                path = save_results_to_csv(results, [4], tmpdir)
        self.assertTrue(os.path.basename(path).endswith(f"_{settings.RUN_ID}.csv"))


class PlotTests(SettingsIsolation):
    def test_charts_are_written(self):
        from nqanneal.analysis.plots import plot_and_save, plot_trace
        from nqanneal.simulated_annealing import sa_nqueens

        settings.DATE_IN_FILENAMES = False
        with redirect_stdout(io.StringIO()):
            results = run_sa_experiments([4, 8], runs=3, base_seed=0)
        traced = sa_nqueens(8, max_iter=2000, seed=1, trace_every=50)
        with tempfile.TemporaryDirectory() as tmpdir:
            written = plot_and_save(results, [4, 8], tmpdir)
            written.append(plot_trace(traced, tmpdir))
            for path in written:
                self.assertTrue(os.path.exists(path), path)
                self.assertGreater(os.path.getsize(path), 0)
            self.assertIn(os.path.join(tmpdir, "trace_N8.png"), written)

    def test_trace_requires_history(self):
        from nqanneal.analysis.plots import plot_trace
        from nqanneal.simulated_annealing import sa_nqueens

        with self.assertRaises(ValueError):
            plot_trace(sa_nqueens(4, max_iter=100, seed=0), tempfile.gettempdir())


class ConfigurationTests(SettingsIsolation):
    def _write(self, tmpdir, payload):
        path = Path(tmpdir) / "config.json"
        path.write_text(json.dumps(payload) if not isinstance(payload, str) else payload)
        return path

    def test_config_manager_sections(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = self._write(tmpdir, {"annealing": {"schedule": "linear"}, "parallel": {"num_processes": 2}})
            mgr = ConfigManager(path)
            self.assertEqual(mgr.get_annealing_settings(), {"schedule": "linear"})
            self.assertEqual(mgr.get_experiment_settings(), {})
            self.assertEqual(mgr.get_parallel_settings(), {"num_processes": 2})

    def test_config_manager_errors(self):
        with self.assertRaises(FileNotFoundError):
            ConfigManager("/nonexistent/config.json")
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaises(ValueError):
                ConfigManager(self._write(tmpdir, "{not json"))
            with self.assertRaises(ValueError):
                ConfigManager(self._write(tmpdir, "[1, 2]"))

    def test_repository_template_loads(self):
        cli.apply_configuration(str(ROOT / "config.json"))
        self.assertEqual(settings.N_VALUES, [4, 8, 16, 32])
        self.assertEqual(settings.SCHEDULE, "geometric")
        self.assertEqual(settings.NUM_PROCESSES, 4)

    def test_apply_configuration_overrides_settings(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = self._write(tmpdir, {
                "annealing": {"temperature_per_queen": 2.5, "temperature_floor": 0.01,
                              "schedule": "linear", "init": "random"},
                "experiment_settings": {"N_values": [5, 6], "runs_sa_final": 3, "iteration_factor": 10,
                                        "output_dir": tmpdir, "base_seed": 99},
                "parallel": {"num_processes": 0},
            })
            cli.apply_configuration(str(path))
        self.assertEqual(settings.TEMPERATURE_PER_QUEEN, 2.5)
        self.assertEqual(settings.TEMPERATURE_FLOOR, 0.01)
        self.assertEqual(settings.SCHEDULE, "linear")
        self.assertEqual(settings.INIT_METHOD, "random")
        self.assertEqual(settings.N_VALUES, [5, 6])
        self.assertEqual(settings.RUNS_SA_FINAL, 3)
        self.assertEqual(settings.max_iter_for(5), 250)
        self.assertEqual(settings.temperature_for(4), 10.0)
        self.assertEqual(settings.BASE_SEED, 99)
        self.assertEqual(settings.NUM_PROCESSES, 1)

    def test_apply_configuration_rejects_bad_values(self):
        before = {name: getattr(settings, name) for name in SETTING_NAMES}
        with tempfile.TemporaryDirectory() as tmpdir:
            for payload in ({"annealing": {"schedule": "cauchy"}},
                            {"annealing": {"init": "diagonal"}},
                            {"annealing": {"temperature_floor": 0}},
                            {"annealing": {"temperature_per_queen": "nan"}},
                            {"annealing": {"temperature_floor": "inf"}},
                            {"experiment_settings": {"runs_sa_final": 0}},
                            {"experiment_settings": {"N_values": [4, 0]}},
                            {"experiment_settings": {"N_values": []}},
                            {"annealing": {"schedule": "linear"}, "experiment_settings": {"N_values": [-8]}}):
                with self.subTest(payload=payload):
                    with self.assertRaises(ValueError):
                        cli.apply_configuration(str(self._write(tmpdir, payload)))
                    self.assertEqual({name: getattr(settings, name) for name in SETTING_NAMES}, before)


class BenchCliTests(SettingsIsolation):
    def test_pipeline_writes_reports(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            settings.OUT_DIR = tmpdir
            settings.DATE_IN_FILENAMES = False
            out = io.StringIO()
            with redirect_stdout(out):
                code = cli.main(["--n", "4,8", "--runs", "2", "--validate"])
            self.assertEqual(code, 0)
            self.assertTrue((Path(tmpdir) / "results_SA.csv").exists())
            self.assertTrue((Path(tmpdir) / "raw_data_SA.csv").exists())
        self.assertIn("N=8: success rate", out.getvalue())

    def test_parse_n_values(self):
        self.assertIsNone(cli.parse_n_values(None))
        self.assertEqual(cli.parse_n_values(["8,4", "16", "4"]), [4, 8, 16])
        with self.assertRaises(InvalidInputError):
            cli.parse_n_values(["eight"])
        with self.assertRaises(InvalidInputError):
            cli.parse_n_values(["0"])

    def test_bad_config_values_exit_code(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.json"
            for payload in ({"experiment_settings": {"N_values": [4, 0], "runs_sa_final": 1, "output_dir": tmpdir}},
                            {"annealing": {"temperature_per_queen": "nan"},
                             "experiment_settings": {"N_values": [4], "output_dir": tmpdir}}):
                with self.subTest(payload=payload):
                    path.write_text(json.dumps(payload))
                    out = io.StringIO()
                    with redirect_stdout(out):
                        code = cli.main(["--config", str(path)])
                    self.assertEqual(code, 2)
                    self.assertTrue(out.getvalue().startswith("Configuration error:"))
            self.assertFalse((Path(tmpdir) / "results_SA.csv").exists())

    def test_bad_arguments_exit_code(self):
        with redirect_stdout(io.StringIO()):
            self.assertEqual(cli.main(["--n", "-4"]), 2)
            self.assertEqual(cli.main(["--runs", "0"]), 2)
            self.assertEqual(cli.main(["--config", "/nonexistent/config.json"]), 2)


if __name__ == "__main__":
    unittest.main()
