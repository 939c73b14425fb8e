"""
Workbook readers and the item sheet parser.
"""

from parsers.workbook import ItemWorkbook
from parsers.item_sheet_parser import (
    parse_item_sheet,
    map_rows,
    ColumnMap,
    ItemSheetParseResult,
)

__all__ = [
    "ItemWorkbook",
    "parse_item_sheet",
    "map_rows",
    "ColumnMap",
    "ItemSheetParseResult",
]
