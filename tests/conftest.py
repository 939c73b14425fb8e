"""
Shared test fixtures.

HTTP is mocked at the requests.Session level; workbooks are real .xlsx
files written to tmp_path with openpyxl.
"""

import os
import sys
from pathlib import Path

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

import pytest
from unittest.mock import MagicMock
from typing import Callable

from openpyxl import Workbook

from config.settings import Settings
from tests.factories import make_response


# ===================
# MOCK HTTP
# ===================

@pytest.fixture
def response_factory() -> Callable[..., MagicMock]:
    """
    Build mock responses.

    Usage:
        def test_something(mock_session, response_factory):
            mock_session.request.return_value = response_factory(201, headers={...})
    """
    return make_response


@pytest.fixture
def mock_session() -> MagicMock:
    """Mock requests.Session; configure request.return_value / side_effect."""
    return MagicMock()


@pytest.fixture
def no_sleep() -> MagicMock:
    """Sleep replacement that records the requested delays."""
    return MagicMock()


# ===================
# WORKBOOKS
# ===================

def write_workbook(path: Path, rows: list[list], sheet_title: str = "Sheet1") -> Path:
    """Write rows (first row = headings) to a single-sheet .xlsx file."""
    workbook = Workbook()
    ws = workbook.active
    ws.title = sheet_title
    for row in rows:
        ws.append(row)
    workbook.save(path)
    return path


@pytest.fixture
def workbook_factory(tmp_path) -> Callable[..., Path]:
    """
    Create item workbooks in tmp_path.

    Usage:
        def test_something(workbook_factory):
            path = workbook_factory([["id", "name", ...], ["A1", ...]])
    """
    def _create(rows: list[list], name: str = "items.xlsx", sheet_title: str = "Sheet1") -> Path:
        return write_workbook(tmp_path / name, rows, sheet_title)
    return _create


@pytest.fixture
def item_headings() -> list[str]:
    """Mandatory headings in the usual order."""
    return ["id", "name", "description", "customs territories"]


# ===================
# SETTINGS
# ===================

@pytest.fixture
def clean_env(monkeypatch):
    """Remove CUSTOMS_* variables from the environment."""
    for key in list(os.environ):
        if key.upper().startswith("CUSTOMS_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch


@pytest.fixture
def settings(clean_env, tmp_path) -> Settings:
    """Settings for tests: fake key, no wait between polls, output in tmp_path."""
    return Settings(
        _env_file=None,
        api_key="test-key",
        api_url="https://customs.test",
        output_path=str(tmp_path / "result.xlsx"),
        timeout_seconds=5,
        poll_interval_seconds=0,
    )
