"""
End-to-end import test.

Runs the CLI against a real workbook with the HTTP session mocked:
submit -> two status checks -> fetch -> annotated workbook on disk.
"""

from unittest.mock import MagicMock, patch
import pytest
from openpyxl import load_workbook

import main
from tests.factories import make_response
from tests.factories import ImportResponseFactory


@pytest.fixture
def session():
    """Session answering one full import of items A1 and A2."""
    session = MagicMock()
    session.request.side_effect = [
        make_response(201, headers={"Location": "/jobs/1"}),
        make_response(200, {"status": "pending"}),
        make_response(200, {"status": "processed"}),
        make_response(200, ImportResponseFactory.create(items=[
            ImportResponseFactory.item("A1", {"eu": "8471.30", "no": "8471.30"}),
            ImportResponseFactory.item("A2", {"no": "8703.23"}),
        ])),
    ]
    return session


def test_full_import(session, workbook_factory, item_headings, clean_env, tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    clean_env.setenv("CUSTOMS_POLL_INTERVAL_SECONDS", "0")
    input_path = workbook_factory([
        item_headings + ["gross mass"],
        ["A1", "Laptop", "14 inch laptop", "EU, no", 1.5],
        ["A2", "Phone", "Smartphone", "no"],
    ])
    output_path = tmp_path / "codes.xlsx"

    with patch("integrations.customs_api.requests.Session", return_value=session):
        code = main.main([
            "--api-key", "Bearer secret",
            "--url", "https://customs.test/",
            "--output", str(output_path),
            str(input_path),
        ])

    assert code == 0
    assert "Done!" in capsys.readouterr().out

    # Requests
    calls = session.request.call_args_list
    assert [c.args for c in calls] == [
        ("POST", "https://customs.test/api/v1/items/imports"),
        ("GET", "https://customs.test/jobs/1/status"),
        ("GET", "https://customs.test/jobs/1/status"),
        ("GET", "https://customs.test/jobs/1"),
    ]
    assert all(c.kwargs["headers"]["Authorization"] == "Bearer secret" for c in calls)
    submitted = calls[0].kwargs["json"]["items"]
    assert submitted[0]["customsTerritories"] == ["eu", "no"]
    assert submitted[0]["grossMass"] == 1.5
    assert "grossMass" not in submitted[1]

    # Output workbook
    ws = load_workbook(output_path).active
    assert [c.value for c in ws[1]] == [
        "id", "name", "description", "customs territories", "gross mass", "result EU", "result NO",
    ]
    assert ws.cell(row=2, column=5).value == 1.5
    assert ws.cell(row=2, column=6).value == "8471.30"
    assert ws.cell(row=2, column=7).value == "8471.30"
    assert ws.cell(row=3, column=6).value in (None, "")
    assert ws.cell(row=3, column=7).value == "8703.23"

    # Source untouched
    source = load_workbook(input_path).active
    assert source.max_column == 5


def test_processing_failed(workbook_factory, item_headings, clean_env, tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    session = MagicMock()
    session.request.side_effect = [
        make_response(201, headers={"Location": "/jobs/1"}),
        make_response(200, {"status": "failed"}),
    ]
    input_path = workbook_factory([item_headings, ["A1", "Laptop", "14 inch laptop", "eu"]])

    with patch("integrations.customs_api.requests.Session", return_value=session):
        code = main.main(["--api-key", "secret", str(input_path)])

    assert code == 1
    assert "PROCESSING_FAILED" in capsys.readouterr().err
    assert not (tmp_path / "result.xlsx").exists()


def test_output_not_writable(session, workbook_factory, item_headings, clean_env, tmp_path, monkeypatch, capsys):
    """A save failure is reported like any other error, not as a traceback."""
    monkeypatch.chdir(tmp_path)
    clean_env.setenv("CUSTOMS_POLL_INTERVAL_SECONDS", "0")
    input_path = workbook_factory([
        item_headings,
        ["A1", "Laptop", "14 inch laptop", "eu, no"],
        ["A2", "Phone", "Smartphone", "no"],
    ])
    blocker = tmp_path / "blocker"
    blocker.write_text("")

    with patch("integrations.customs_api.requests.Session", return_value=session):
        code = main.main([
            "--api-key", "secret",
            "--output", str(blocker / "out.xlsx"),
            str(input_path),
        ])

    assert code == 1
    assert "Error [OUTPUT_WRITE_FAILED]" in capsys.readouterr().err
