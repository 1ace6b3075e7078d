"""Checks on the project's pytest configuration."""

from pathlib import Path

PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


def test_build_test_package_is_collected():
    """tests/unit/build must not be hidden by a "build" entry in norecursedirs."""
    lines = [line for line in PYPROJECT.read_text().splitlines() if line.startswith("norecursedirs")]
    assert len(lines) == 1
    assert '"build"' not in lines[0]
    assert '"build*"' not in lines[0]
