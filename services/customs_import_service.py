"""
Customs import service.

Runs one import end to end:

    read workbook -> map rows -> submit -> poll -> fetch -> reconcile -> save

Stages run strictly in sequence. The workbook is only modified after the
import has been processed and every result matched a row.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union
import structlog

from config.settings import Settings
from exceptions import ValidationError
from integrations.customs_api import CustomsApiClient, PollPolicy, TickCallback
from parsers.item_sheet_parser import parse_item_sheet
from parsers.workbook import ItemWorkbook
from services.reconciliation_service import reconcile

logger = structlog.get_logger(__name__)


@dataclass
class RunResult:
    """Outcome of a successful import run."""
    output_path: Path
    location: str
    import_id: str
    item_count: int
    rows_updated: int


class CustomsImportService:
    """
    Import lifecycle orchestration.

    Settings are passed in explicitly; the API client can be injected for
    tests. A client built here is closed at the end of run().
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[CustomsApiClient] = None,
        on_tick: Optional[TickCallback] = None,
    ):
        self.settings = settings
        self.on_tick = on_tick
        self._owns_client = client is None

        if client is None:
            if not settings.has_api_key:
                raise ValidationError(
                    message="Missing api-key",
                    code="MISSING_API_KEY",
                )
            client = CustomsApiClient(
                base_url=settings.api_url,
                api_key=settings.api_key,
                request_timeout=settings.request_timeout_seconds,
            )
        self.client = client

    @property
    def poll_policy(self) -> PollPolicy:
        return PollPolicy(
            interval_seconds=self.settings.poll_interval_seconds,
            max_ticks=self.settings.timeout_seconds,
        )

    def run(
        self,
        input_path: Union[str, Path],
        output_path: Optional[Union[str, Path]] = None,
    ) -> RunResult:
        """
        Import the items of a workbook and write their customs codes back.

        Args:
            input_path: Source workbook
            output_path: Destination (settings.output_path when None)

        Returns:
            RunResult with the saved path and counts

        Raises:
            AppError subclasses from any stage; nothing is saved on failure
        """
        output_path = Path(output_path or self.settings.output_path)
        logger.info("customs_import_started", input=str(input_path), output=str(output_path))

        try:
            return self._import(input_path, output_path)
        finally:
            if self._owns_client:
                self.client.close()

    def _import(self, input_path: Union[str, Path], output_path: Path) -> RunResult:
        # Read and validate
        workbook = ItemWorkbook.load(input_path, self.settings.sheet_name)
        sheet_rows = workbook.read_rows()
        parsed = parse_item_sheet(sheet_rows, sheet=workbook.sheet_name)

        # Remote import
        job = self.client.submit(parsed.batch)
        self.client.wait_for_processing(job, self.poll_policy, on_tick=self.on_tick)
        response = self.client.fetch(job)

        # Reconcile
        updates = reconcile(
            response.items,
            sheet_rows[1:],
            parsed.columns.id,
            parsed.result_columns,
        )

        # Persist
        workbook.write_cells(1, {
            index: parsed.headings[index]
            for index in parsed.result_columns.values()
        })
        for update in updates:
            workbook.write_cells(update.row_number, update.result_cells(parsed.result_columns))

        saved = workbook.save(output_path)

        result = RunResult(
            output_path=saved,
            location=job.location,
            import_id=response.id,
            item_count=parsed.item_count,
            rows_updated=len(updates),
        )
        logger.info(
            "customs_import_completed",
            output=str(saved),
            import_id=response.id,
            items=result.item_count,
            rows_updated=result.rows_updated,
        )
        return result
