import json
import shutil
import subprocess
import sys
import unittest
from pathlib import Path


class DemoRunTest(unittest.TestCase):
    def test_demo_outputs_exist(self):
        root = Path(__file__).resolve().parents[1]
        out_dir = root / "outputs" / "test_demo_baseline"
        if out_dir.exists():
            shutil.rmtree(out_dir)

        cmd = [
            sys.executable,
            str(root / "scripts" / "run_simulation.py"),
            "--scenario",
            "baseline",
            "--seed",
            "123",
            "--demo",
            "--out",
            str(out_dir),
        ]
        result = subprocess.run(cmd, capture_output=True, text=True)
        if result.returncode != 0:
            print("STDOUT:\n", result.stdout)
            print("STDERR:\n", result.stderr)
        self.assertEqual(result.returncode, 0)

        self.assertTrue((out_dir / "metadata.json").exists())
        self.assertTrue((out_dir / "trips.csv").exists())
        self.assertTrue((out_dir / "terminal_stats.csv").exists())
        self.assertTrue((out_dir / "run.log").exists())
        self.assertTrue((out_dir / "plots").exists())
        plots = list((out_dir / "plots").glob("*.png"))
        self.assertGreaterEqual(len(plots), 2)

        metadata = json.loads((out_dir / "metadata.json").read_text(encoding="utf-8"))
        self.assertEqual(metadata["seed"], 123)
        self.assertEqual(metadata["scenario_name"], "baseline")
        self.assertGreater(metadata["trip_rows"], 0)
        self.assertIn("Planner summary", (out_dir / "run.log").read_text(encoding="utf-8"))

    def test_without_demo_or_config_exits_2(self):
        root = Path(__file__).resolve().parents[1]
        cmd = [sys.executable, str(root / "scripts" / "run_simulation.py"), "--seed", "1", "--out", "unused"]
        result = subprocess.run(cmd, capture_output=True, text=True)
        self.assertEqual(result.returncode, 2)


if __name__ == "__main__":
    unittest.main()
