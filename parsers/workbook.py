"""
Workbook I/O for item sheets.

Reads a worksheet as rows of strings and writes result cells back into the
same workbook. The workbook is opened twice: once with cached values for
reading and once as-is for writing, so formulas and formatting survive the
round trip.
"""

from datetime import date, datetime, time
from io import BytesIO
from pathlib import Path
from typing import Optional, Union
import structlog

from openpyxl import load_workbook

from exceptions import ExcelParseError, OutputWriteError

logger = structlog.get_logger(__name__)


class ItemWorkbook:
    """An item workbook loaded into memory."""

    def __init__(self, workbook, values_workbook, sheet_name: str):
        self._workbook = workbook
        self._values_workbook = values_workbook
        self.sheet_name = sheet_name

    @classmethod
    def load(
        cls,
        file: Union[str, Path, BytesIO],
        sheet_name: Optional[str] = None,
    ) -> "ItemWorkbook":
        """
        Open an Excel workbook.

        Args:
            file: File path (str/Path) or file-like object (BytesIO)
            sheet_name: Worksheet to use (active sheet when None)

        Returns:
            ItemWorkbook ready for reading and writing

        Raises:
            ExcelParseError: If file cannot be read or the sheet is missing
        """
        logger.info("loading_workbook", file=str(file) if not isinstance(file, BytesIO) else "<bytes>")

        try:
            if isinstance(file, BytesIO):
                raw = file.getvalue()
                workbook = load_workbook(BytesIO(raw))
                values_workbook = load_workbook(BytesIO(raw), data_only=True)
            else:
                workbook = load_workbook(file)
                values_workbook = load_workbook(file, data_only=True)
        except Exception as e:
            logger.error("excel_read_failed", error=str(e))
            raise ExcelParseError(
                message="Failed to read Excel file",
                details={"original_error": str(e)}
            )

        if sheet_name is None:
            sheet_name = workbook.active.title
        elif sheet_name not in workbook.sheetnames:
            logger.error("sheet_not_found", sheet=sheet_name, available=workbook.sheetnames)
            raise ExcelParseError(
                message=f"Sheet '{sheet_name}' not found",
                details={"sheet": sheet_name, "available": workbook.sheetnames}
            )

        return cls(workbook, values_workbook, sheet_name)

    @property
    def worksheet(self):
        return self._workbook[self.sheet_name]

    def read_rows(self) -> list[list[str]]:
        """
        All rows of the sheet as strings, starting at sheet row 1.

        Trailing empty cells and trailing empty rows are dropped, so rows
        may be shorter than the header row.
        """
        ws = self._values_workbook[self.sheet_name]
        rows: list[list[str]] = []

        for values in ws.iter_rows(values_only=True):
            row = [cell_to_str(v) for v in values]
            while row and row[-1] == "":
                row.pop()
            rows.append(row)

        while rows and not rows[-1]:
            rows.pop()

        logger.debug("workbook_rows_read", sheet=self.sheet_name, rows=len(rows))
        return rows

    def write_cells(self, row_number: int, cells: dict[int, str]) -> None:
        """
        Write values into one sheet row.

        Args:
            row_number: 1-indexed sheet row
            cells: 0-indexed column -> value
        """
        ws = self.worksheet
        for column_index, value in cells.items():
            ws.cell(row=row_number, column=column_index + 1, value=value)

    def save(self, path: Union[str, Path]) -> Path:
        """
        Save the workbook, creating parent directories if needed.

        Raises:
            OutputWriteError: If the directory or file cannot be written
        """
        output = Path(path)

        try:
            if not output.parent.exists():
                output.parent.mkdir(parents=True, exist_ok=True)
            self._workbook.save(output)
        except OSError as e:
            logger.error("workbook_save_failed", path=str(output), error=str(e))
            raise OutputWriteError(str(output), str(e))

        logger.info("workbook_saved", path=str(output))
        return output


def cell_to_str(value) -> str:
    """Render a cell value the way it reads in the sheet."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)
