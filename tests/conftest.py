"""XCResult Explorer test configuration and fixtures."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Add src to path for imports
SRC_DIR = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(SRC_DIR))

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the fixtures directory path."""
    return FIXTURES_DIR


@pytest.fixture
def summary_json(fixtures_dir: Path) -> str:
    """Raw text of a failed run's summary document."""
    return (fixtures_dir / "summary.json").read_text(encoding="utf-8")


@pytest.fixture
def tests_json(fixtures_dir: Path) -> str:
    """Raw text of the matching tests document (1 target, 2 suites, 4 cases)."""
    return (fixtures_dir / "tests.json").read_text(encoding="utf-8")


@pytest.fixture
def activities_json(fixtures_dir: Path) -> str:
    return (fixtures_dir / "activities.json").read_text(encoding="utf-8")


@pytest.fixture
def action_log_json(fixtures_dir: Path) -> str:
    return (fixtures_dir / "action_log.json").read_text(encoding="utf-8")


@pytest.fixture
def hints_yaml_path(tmp_path: Path) -> Path:
    """A valid suite hints file."""
    path = tmp_path / "hints.yaml"
    path.write_text(
        "suites:\n"
        "  - name: APIModelTests\n"
        "    suggestions:\n"
        "      - \"Update your test data to match the current API response format\"\n"
        "      - \"Check {suite}.swift around the failing line number for context\"\n",
        encoding="utf-8",
    )
    return path
