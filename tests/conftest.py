"""Shared pytest fixtures and helpers for converter tests."""

import os
import subprocess
import sys
from pathlib import Path

import pytest


def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).resolve().parents[1]


def cli_script() -> Path:
    """Return the path of the yaml_to_json.py entry point."""
    return project_root() / "scripts" / "yaml_to_json.py"


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A scratch working directory that already holds the ./temp/ output directory."""
    (tmp_path / "temp").mkdir()
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("YAML_TO_JSON_OUTPUT_DIR", raising=False)
    return tmp_path


def run_converter(
    cwd: Path,
    *args: str,
    env: dict[str, str] | None = None,
) -> subprocess.CompletedProcess:
    """Run the converter CLI in a subprocess.

    Args:
        cwd: Working directory; relative paths (including ./temp/) resolve here
        *args: Command-line arguments passed to yaml_to_json.py
        env: Extra environment variables layered over the current environment

    Returns:
        CompletedProcess instance with returncode, stdout, stderr
    """
    run_env = dict(os.environ)
    run_env.pop("YAML_TO_JSON_OUTPUT_DIR", None)
    if env:
        run_env.update(env)
    return subprocess.run(
        [sys.executable, str(cli_script()), *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        env=run_env,
    )
