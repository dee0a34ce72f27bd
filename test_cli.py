"""Tests for the Sokobot command line."""

import os
import tempfile
import unittest

from typer.testing import CliRunner

from cli import app


runner = CliRunner()


class TestCli(unittest.TestCase):

    def test_list(self):
        result = runner.invoke(app, ["--list"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("One Box (1 boxes)", result.output)
        self.assertIn("Eight Down (8 boxes)", result.output)

    def test_solve_builtin(self):
        result = runner.invoke(app, ["One Box"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Moves: U", result.output)
        self.assertIn("1 pushes", result.output)

    def test_solve_greedy(self):
        result = runner.invoke(app, ["Two Box Line", "--greedy"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Moves: ", result.output)

    def test_solve_file(self):
        fd, path = tempfile.mkstemp(suffix=".txt")
        try:
            with os.fdopen(fd, "w") as f:
                f.write("####\n#$ #\n# .#\n# @#\n####\n")
            result = runner.invoke(app, [path])
        finally:
            os.remove(path)
        self.assertEqual(result.exit_code, 1)
        self.assertIn("No solution found.", result.output)

    def test_zero_cap(self):
        result = runner.invoke(app, ["One Box", "-n", "0"])
        self.assertEqual(result.exit_code, 1)

    def test_unknown_puzzle(self):
        result = runner.invoke(app, ["No Such Puzzle"])
        self.assertEqual(result.exit_code, 2)

    def test_unknown_heuristic(self):
        result = runner.invoke(app, ["One Box", "--heuristic", "perfect"])
        self.assertEqual(result.exit_code, 2)


if __name__ == "__main__":
    unittest.main(verbosity=2)
