"""
Global test configuration with support for different test types.
"""

import logging
import os

import pytest


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def isolate_recovery_env(request, monkeypatch):
    """Ensure a clean CODEGEN_RECOVERY_* environment for each test.

    - Removes all CODEGEN_RECOVERY_* variables and the DEBUG toggle
    - Leaves other variables intact for stability

    Escape hatch: mark a test with @pytest.mark.allow_env_pollution to keep
    the current environment unchanged.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return

    for key in list(os.environ.keys()):
        if key.startswith("CODEGEN_RECOVERY_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("DEBUG", raising=False)


@pytest.fixture
def isolated_project(tmp_path, monkeypatch):
    """Run a test from an empty project directory.

    Returns a helper that writes ``pyproject.toml`` with the given content and
    returns the project root.
    """
    project_dir = tmp_path / "project"
    project_dir.mkdir()
    monkeypatch.chdir(project_dir)

    def _write(pyproject_content: str = ""):
        if pyproject_content:
            (project_dir / "pyproject.toml").write_text(
                pyproject_content, encoding="utf-8"
            )
        return project_dir

    return _write


# --- Logging Fixtures ---
@pytest.fixture(scope="session", autouse=True)
def quiet_library_logging():
    """Keep parser debug output out of captured logs unless a test asks."""
    logging.getLogger("codegen_recovery").setLevel(logging.INFO)


# --- Test Environment Markers ---
def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "contract: Behavioural guarantees that must hold for every input",
        "integration: End-to-end parses through the public API",
        "characterization: Golden master tests to detect behavior changes.",
        "slow: Tests that take >1 second",
        "allow_env_pollution: Keep CODEGEN_RECOVERY_* variables for this test",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)
