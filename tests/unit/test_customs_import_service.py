"""
Unit tests for the customs import service.

Uses real workbooks in tmp_path and a mocked API client.
"""

from unittest.mock import MagicMock, patch
import pytest
from openpyxl import load_workbook

from services.customs_import_service import CustomsImportService, RunResult
from integrations.customs_api import CustomsApiClient, PollPolicy
from models.customs_import import ImportJob, ImportResponse, ImportStatusDocument
from exceptions import (
    MissingColumnError,
    ProcessingTimeoutError,
    UnmatchedResultError,
    ValidationError,
)
from tests.factories import ImportResponseFactory


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_client():
    """API client mock returning a processed two-item import."""
    client = MagicMock(spec=CustomsApiClient)
    client.submit.return_value = ImportJob(location="/jobs/1", url="https://customs.test/jobs/1")
    client.wait_for_processing.return_value = ImportStatusDocument(status="processed")
    client.fetch.return_value = ImportResponse.model_validate(ImportResponseFactory.create(items=[
        ImportResponseFactory.item("A1", {"eu": "8471.30", "no": "8471.3000"}),
        ImportResponseFactory.item("A2", {"no": "8517.1300"}),
    ]))
    return client


@pytest.fixture
def input_path(workbook_factory, item_headings):
    return workbook_factory([
        item_headings,
        ["A1", "Laptop", "14 inch laptop", "eu, no"],
        ["A2", "Phone", "Smartphone", "no"],
    ])


# ===================
# TESTS
# ===================

class TestConstruction:

    def test_missing_api_key(self, settings):
        no_key = settings.model_copy(update={"api_key": None})
        with pytest.raises(ValidationError) as exc_info:
            CustomsImportService(no_key)
        assert exc_info.value.code == "MISSING_API_KEY"

    def test_builds_client_from_settings(self, settings):
        service = CustomsImportService(settings)
        assert isinstance(service.client, CustomsApiClient)
        assert service.client.base_url == "https://customs.test"
        assert service.client.headers["Authorization"] == "Bearer test-key"

    def test_poll_policy_from_settings(self, settings, mock_client):
        service = CustomsImportService(settings, client=mock_client)
        assert service.poll_policy == PollPolicy(interval_seconds=0, max_ticks=5)


class TestRun:

    def test_run_writes_codes(self, settings, mock_client, input_path):
        service = CustomsImportService(settings, client=mock_client)

        result = service.run(input_path)

        assert isinstance(result, RunResult)
        assert result.import_id == "import-1"
        assert result.item_count == 2
        assert result.rows_updated == 2

        ws = load_workbook(result.output_path).active
        assert [c.value for c in ws[1]] == [
            "id", "name", "description", "customs territories", "result EU", "result NO",
        ]
        assert ws.cell(row=2, column=5).value == "8471.30"
        assert ws.cell(row=2, column=6).value == "8471.3000"
        assert ws.cell(row=3, column=5).value in (None, "")
        assert ws.cell(row=3, column=6).value == "8517.1300"

    def test_run_submits_all_rows(self, settings, mock_client, input_path):
        service = CustomsImportService(settings, client=mock_client)

        service.run(input_path)

        batch = mock_client.submit.call_args.args[0]
        assert batch.item_ids == ["A1", "A2"]
        mock_client.wait_for_processing.assert_called_once()
        mock_client.fetch.assert_called_once()

    def test_explicit_output_path(self, settings, mock_client, input_path, tmp_path):
        service = CustomsImportService(settings, client=mock_client)

        result = service.run(input_path, tmp_path / "custom.xlsx")

        assert result.output_path == tmp_path / "custom.xlsx"
        assert result.output_path.exists()

    def test_invalid_sheet_makes_no_requests(self, settings, mock_client, workbook_factory):
        path = workbook_factory([["id", "name", "description"], ["A1", "Laptop", "x"]])
        service = CustomsImportService(settings, client=mock_client)

        with pytest.raises(MissingColumnError):
            service.run(path)

        mock_client.submit.assert_not_called()

    def test_timeout_writes_nothing(self, settings, mock_client, input_path):
        mock_client.wait_for_processing.side_effect = ProcessingTimeoutError("/jobs/1", 5, {"status": "pending"})
        service = CustomsImportService(settings, client=mock_client)

        with pytest.raises(ProcessingTimeoutError):
            service.run(input_path)

        mock_client.fetch.assert_not_called()
        assert not (input_path.parent / "result.xlsx").exists()

    def test_unmatched_result_writes_nothing(self, settings, mock_client, input_path):
        mock_client.fetch.return_value = ImportResponse.model_validate(ImportResponseFactory.create(items=[
            ImportResponseFactory.item("A1"),
            ImportResponseFactory.item("A2"),
            ImportResponseFactory.item("A3"),
        ]))
        service = CustomsImportService(settings, client=mock_client)

        with pytest.raises(UnmatchedResultError):
            service.run(input_path)

        assert not (input_path.parent / "result.xlsx").exists()

    def test_on_tick_passed_to_client(self, settings, mock_client, input_path):
        on_tick = MagicMock()
        service = CustomsImportService(settings, client=mock_client, on_tick=on_tick)

        service.run(input_path)

        assert mock_client.wait_for_processing.call_args.kwargs["on_tick"] is on_tick


class TestClientLifecycle:

    def test_built_client_closed_after_run(self, settings, mock_client, input_path):
        with patch("services.customs_import_service.CustomsApiClient", return_value=mock_client):
            service = CustomsImportService(settings)

        service.run(input_path)

        mock_client.close.assert_called_once()

    def test_built_client_closed_on_failure(self, settings, mock_client, input_path):
        mock_client.fetch.side_effect = ProcessingTimeoutError("/jobs/1", 5)
        with patch("services.customs_import_service.CustomsApiClient", return_value=mock_client):
            service = CustomsImportService(settings)

        with pytest.raises(ProcessingTimeoutError):
            service.run(input_path)

        mock_client.close.assert_called_once()

    def test_injected_client_left_open(self, settings, mock_client, input_path):
        service = CustomsImportService(settings, client=mock_client)

        service.run(input_path)

        mock_client.close.assert_not_called()

    def test_prefix_only_api_key(self, settings):
        with pytest.raises(ValidationError) as exc_info:
            CustomsImportService(settings.model_copy(update={"api_key": "Bearer "}))
        assert exc_info.value.code == "MISSING_API_KEY"
