"""Shared test fixtures for archscan tests."""

import os
import textwrap
from pathlib import Path

import pytest

from archscan.config import ScanConfig
from archscan.scanning.models import SourceUnit

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


def make_unit(source: str, relative_path: str = "src/Sample.cs") -> SourceUnit:
    """SourceUnit from an indented triple-quoted C# snippet."""
    text = textwrap.dedent(source).strip("\n")
    return SourceUnit(path=Path(relative_path), relative_path=relative_path, lines=tuple(text.splitlines()))


@pytest.fixture
def write_tree(tmp_path):
    """Factory writing ``{relative_path: source}`` under tmp_path; returns the root."""

    def _write(files: dict) -> Path:
        for rel, source in files.items():
            target = tmp_path / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(textwrap.dedent(source).lstrip("\n"), encoding="utf-8")
        return tmp_path

    return _write


@pytest.fixture
def csharp_solution() -> Path:
    """Small C# solution with known violations (see tests/fixtures/csharp_solution)."""
    return FIXTURES_DIR / "csharp_solution"


@pytest.fixture
def isolated_config(monkeypatch, tmp_path):
    """Config loading isolated from the user's home, cwd and environment."""
    home = tmp_path / "home"
    home.mkdir()
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: home))
    monkeypatch.chdir(work)
    for key in list(os.environ):
        if key.startswith("ARCHSCAN_"):
            monkeypatch.delenv(key)
    return work


@pytest.fixture
def sequential_config() -> ScanConfig:
    return ScanConfig(workers=1)


@pytest.fixture
def unit_factory():
    """The ``make_unit`` helper as a fixture."""
    return make_unit
