"""
Reconciliation of import results with spreadsheet rows.

Every returned item must match exactly one original row by id, and every
original row must get a result. Any mismatch means the request and the
response disagree, so the run is aborted instead of writing partial data.
"""

from dataclasses import dataclass, field
from typing import Optional
import structlog

from exceptions import MissingResultError, UnmatchedResultError
from models.customs_import import CustomsTerritory, ImportItemResult
from parsers.item_sheet_parser import FIRST_DATA_ROW, cell_value

logger = structlog.get_logger(__name__)


@dataclass
class RowUpdate:
    """Output row for one item."""
    row_number: int  # 1-indexed sheet row
    item_id: str
    values: list[str]
    codes: dict[CustomsTerritory, str] = field(default_factory=dict)

    def result_cells(self, result_columns: dict[CustomsTerritory, int]) -> dict[int, str]:
        """Only the derived cells, keyed by column index."""
        return {index: self.values[index] for index in result_columns.values()}


def find_row(rows: list[list[str]], id_index: int, item_id: str) -> Optional[int]:
    """Offset of the first data row whose id cell equals item_id exactly."""
    for offset, row in enumerate(rows):
        if cell_value(row, id_index) == item_id:
            return offset
    return None


def apply_result(
    row: list[str],
    item: ImportItemResult,
    result_columns: dict[CustomsTerritory, int],
) -> tuple[list[str], dict[CustomsTerritory, str]]:
    """
    Write the item's codes into a copy of the row.

    The row is padded with empty cells to cover the result columns. A
    territory without a returned code gets "".
    """
    values = list(row)
    width = max(result_columns.values()) + 1
    while len(values) < width:
        values.append("")

    codes: dict[CustomsTerritory, str] = {}
    for territory, index in result_columns.items():
        code = item.code_for(territory) or ""
        values[index] = code
        codes[territory] = code

    return values, codes


def reconcile(
    items: list[ImportItemResult],
    rows: list[list[str]],
    id_index: int,
    result_columns: dict[CustomsTerritory, int],
    first_row: int = FIRST_DATA_ROW,
) -> list[RowUpdate]:
    """
    Match returned items to data rows and build the output rows.

    Args:
        items: Items of the fetched import
        rows: Original data rows (headings excluded)
        id_index: Column of the item id
        result_columns: Territory -> output column index
        first_row: Sheet row number of rows[0]

    Returns:
        RowUpdate per returned item, in response order

    Raises:
        UnmatchedResultError: A returned id has no row
        MissingResultError: A row id got no returned item
    """
    updates: list[RowUpdate] = []
    matched: set[str] = set()

    for item in items:
        offset = find_row(rows, id_index, item.id)
        if offset is None:
            logger.error("unmatched_import_result", item_id=item.id)
            raise UnmatchedResultError(item.id)

        values, codes = apply_result(rows[offset], item, result_columns)
        updates.append(RowUpdate(
            row_number=first_row + offset,
            item_id=item.id,
            values=values,
            codes=codes,
        ))
        matched.add(item.id)

        if item.error:
            logger.warning("import_item_error", item_id=item.id, status=item.status, error=item.error)

    expected = [
        cell_value(row, id_index)
        for row in rows
        if cell_value(row, id_index).strip() != ""
    ]
    missing = [item_id for item_id in expected if item_id not in matched]
    if missing:
        logger.error("missing_import_results", item_ids=missing)
        raise MissingResultError(missing)

    logger.info("import_results_reconciled", rows=len(updates))
    return updates
