"""Quick regression tests for the N-Queens annealing experiment pipeline."""

from contextlib import redirect_stdout
from pathlib import Path
import io
import sys
import unittest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from nqanneal.analysis import cli


class QuickRegressionTests(unittest.TestCase):
    """Verify that the lightweight regression checks pass."""

    def test_annealing_restarts_and_csv_generation(self):
        """Ensure SA, restarts, and CSV export succeed for N=8."""
        with redirect_stdout(io.StringIO()):
            cli.run_quick_regression_tests()


if __name__ == "__main__":
    unittest.main()
