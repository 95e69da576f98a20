"""Pytest configuration for flatclass test suite."""

import shutil
import subprocess
import sys
from pathlib import Path

import pytest

# Add the project root to path so tests run without installation
sys.path.insert(0, str(Path(__file__).parent.parent))


class NodeRunner:
    """Runs flattened modules with node."""

    def __init__(self, executable: str) -> None:
        self.executable = executable

    def run(self, code: str, tmp_path: Path, name: str = "main") -> str:
        """Write code as an ES module, run it, and return stdout."""
        path = tmp_path / (name + ".mjs")
        path.write_text(code)
        proc = subprocess.run(
            [self.executable, str(path)],
            capture_output=True,
            text=True,
            timeout=30,
        )
        if proc.returncode != 0:
            raise AssertionError(
                "node exited with " + str(proc.returncode) + ":\n" + proc.stderr
            )
        return proc.stdout


@pytest.fixture
def node() -> NodeRunner:
    """A node runner, skipping the test when node is not installed."""
    executable = shutil.which("node")
    if executable is None:
        pytest.skip("node is not installed")
    return NodeRunner(executable)
