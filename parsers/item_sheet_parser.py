"""
Item sheet parser.

Maps the rows of an item workbook to ImportItemRecord objects. Columns are
located by header name (case-insensitive, surrounding whitespace ignored).

Mandatory columns: id, name, description, customs territories
Optional columns:  category, subcategory, country of origin, gross mass,
                   net mass, weight unit, model

Any problem aborts the whole sheet: nothing is submitted unless every row
is valid.
"""

from dataclasses import dataclass, field
import math
from decimal import Decimal, InvalidOperation
from typing import Optional
import structlog

from exceptions import (
    DuplicateItemError,
    EmptySheetError,
    MalformedFieldError,
    MissingColumnError,
    MissingValueError,
    UnsupportedTerritoryError,
)
from models.customs_import import (
    CustomsTerritory,
    ImportBatch,
    ImportItemRecord,
    SUPPORTED_TERRITORIES,
)

logger = structlog.get_logger(__name__)


# ===================
# COLUMN NAMES
# ===================

COLUMN_ID = "id"
COLUMN_NAME = "name"
COLUMN_DESCRIPTION = "description"
COLUMN_CUSTOMS_TERRITORIES = "customs territories"

MANDATORY_COLUMNS = (
    COLUMN_ID,
    COLUMN_NAME,
    COLUMN_DESCRIPTION,
    COLUMN_CUSTOMS_TERRITORIES,
)

COLUMN_CATEGORY = "category"
COLUMN_SUBCATEGORY = "subcategory"
COLUMN_COUNTRY_OF_ORIGIN = "country of origin"
COLUMN_GROSS_MASS = "gross mass"
COLUMN_NET_MASS = "net mass"
COLUMN_WEIGHT_UNIT = "weight unit"
COLUMN_MODEL = "model"

# First data row in the sheet (row 1 holds the headings)
FIRST_DATA_ROW = 2


def result_column_name(territory: CustomsTerritory) -> str:
    """Heading of the output column for a territory, e.g. 'result EU'."""
    return f"result {territory.value.upper()}"


# ===================
# DATA CLASSES
# ===================

@dataclass(frozen=True)
class ColumnMap:
    """
    Resolved column positions.

    Optional columns are None when the sheet does not have them. Always
    compare with `is None`: index 0 is a valid position.
    """
    id: int
    name: int
    description: int
    customs_territories: int
    category: Optional[int] = None
    subcategory: Optional[int] = None
    country_of_origin: Optional[int] = None
    gross_mass: Optional[int] = None
    net_mass: Optional[int] = None
    weight_unit: Optional[int] = None
    model: Optional[int] = None


@dataclass
class ItemSheetParseResult:
    """Result of mapping an item sheet."""
    batch: ImportBatch
    columns: ColumnMap
    headings: list[str]
    result_columns: dict[CustomsTerritory, int]
    row_numbers: dict[str, int] = field(default_factory=dict)  # item id -> sheet row
    skipped_rows: list[int] = field(default_factory=list)

    @property
    def item_count(self) -> int:
        return len(self.batch)


# ===================
# COLUMN RESOLUTION
# ===================

def _normalize_heading(value: str) -> str:
    return value.strip().casefold()


def find_column(headings: list[str], name: str) -> Optional[int]:
    """Index of the first heading equal to name, ignoring case and whitespace."""
    wanted = _normalize_heading(name)
    for index, heading in enumerate(headings):
        if _normalize_heading(heading) == wanted:
            return index
    return None


def require_column(headings: list[str], name: str) -> int:
    """Index of a mandatory column; raises MissingColumnError if absent."""
    index = find_column(headings, name)
    if index is None:
        raise MissingColumnError(name)
    return index


def resolve_columns(headings: list[str]) -> ColumnMap:
    """
    Resolve every known column.

    Raises:
        MissingColumnError: For the first mandatory column not found
    """
    return ColumnMap(
        id=require_column(headings, COLUMN_ID),
        name=require_column(headings, COLUMN_NAME),
        description=require_column(headings, COLUMN_DESCRIPTION),
        customs_territories=require_column(headings, COLUMN_CUSTOMS_TERRITORIES),
        category=find_column(headings, COLUMN_CATEGORY),
        subcategory=find_column(headings, COLUMN_SUBCATEGORY),
        country_of_origin=find_column(headings, COLUMN_COUNTRY_OF_ORIGIN),
        gross_mass=find_column(headings, COLUMN_GROSS_MASS),
        net_mass=find_column(headings, COLUMN_NET_MASS),
        weight_unit=find_column(headings, COLUMN_WEIGHT_UNIT),
        model=find_column(headings, COLUMN_MODEL),
    )


def resolve_result_columns(
    headings: list[str],
    width: int = 0,
) -> tuple[list[str], dict[CustomsTerritory, int]]:
    """
    Locate or append the per-territory result columns.

    Existing 'result XX' headings are reused. Missing ones are appended after
    the last used column, where width is the widest row of the sheet.

    Returns:
        Tuple of (extended headings, territory -> column index)
    """
    extended = list(headings)
    columns: dict[CustomsTerritory, int] = {}

    for territory in SUPPORTED_TERRITORIES:
        name = result_column_name(territory)
        index = find_column(extended, name)
        if index is None:
            while len(extended) < width:
                extended.append("")
            index = len(extended)
            extended.append(name)
        columns[territory] = index

    return extended, columns


# ===================
# CELL PARSING
# ===================

def cell_value(row: list[str], index: Optional[int]) -> str:
    """Cell text, or "" when the column is absent or the row is short."""
    if index is None or index >= len(row):
        return ""
    return row[index]


def optional_value(row: list[str], index: Optional[int]) -> Optional[str]:
    """Cell text, or None when the column is absent or the cell is empty."""
    value = cell_value(row, index)
    if value.strip() == "":
        return None
    return value


def parse_customs_territories(raw: str) -> list[CustomsTerritory]:
    """
    Parse a comma-separated territory list such as "EU, no".

    Entries are trimmed and lower-cased; duplicates are dropped keeping the
    first occurrence.

    Raises:
        UnsupportedTerritoryError: For the first entry outside the supported set
    """
    supported = [t.value for t in SUPPORTED_TERRITORIES]
    territories: list[CustomsTerritory] = []

    for entry in raw.split(","):
        value = entry.strip().lower()
        if value not in supported:
            raise UnsupportedTerritoryError(value, supported)
        territory = CustomsTerritory(value)
        if territory not in territories:
            territories.append(territory)

    return territories


def parse_mass(raw: str, item_id: str, field_name: str) -> Optional[Decimal]:
    """
    Parse a non-negative decimal mass.

    Returns:
        Decimal, or None for an empty cell

    Raises:
        MalformedFieldError: If the value is not a finite non-negative number
            that fits in a float
    """
    value = raw.strip()
    if value == "":
        return None

    try:
        number = Decimal(value)
    except InvalidOperation:
        raise MalformedFieldError(item_id, field_name, raw)

    if not number.is_finite() or number < 0:
        raise MalformedFieldError(item_id, field_name, raw)

    # Sent as a JSON number
    if math.isinf(float(number)):
        raise MalformedFieldError(item_id, field_name, raw)

    return number


def _is_blank(row: list[str]) -> bool:
    return all(cell.strip() == "" for cell in row)


# ===================
# ROW MAPPING
# ===================

def map_row(row: list[str], columns: ColumnMap, row_number: int) -> ImportItemRecord:
    """
    Map one data row to an ImportItemRecord.

    Args:
        row: Cell values
        columns: Resolved column positions
        row_number: 1-indexed sheet row (for error messages)
    """
    item_id = cell_value(row, columns.id)
    name = cell_value(row, columns.name)
    description = cell_value(row, columns.description)

    for field_name, value in (
        (COLUMN_ID, item_id),
        (COLUMN_NAME, name),
        (COLUMN_DESCRIPTION, description),
    ):
        if value.strip() == "":
            raise MissingValueError(row_number, field_name)

    territories = parse_customs_territories(cell_value(row, columns.customs_territories))

    return ImportItemRecord(
        id=item_id,
        name=name,
        description=description,
        customs_territories=territories,
        category=optional_value(row, columns.category),
        subcategory=optional_value(row, columns.subcategory),
        country_of_origin=optional_value(row, columns.country_of_origin),
        gross_mass=parse_mass(cell_value(row, columns.gross_mass), item_id, COLUMN_GROSS_MASS),
        net_mass=parse_mass(cell_value(row, columns.net_mass), item_id, COLUMN_NET_MASS),
        weight_unit=optional_value(row, columns.weight_unit),
        model=optional_value(row, columns.model),
    )


def map_rows(
    headings: list[str],
    rows: list[list[str]],
    sheet: str = "Sheet1",
) -> ItemSheetParseResult:
    """
    Map data rows to an ImportBatch.

    Args:
        headings: Header row
        rows: Data rows, the first one being sheet row 2

    Returns:
        ItemSheetParseResult with the batch and column positions

    Raises:
        ValidationError subclasses on the first invalid column, cell or row
    """
    columns = resolve_columns(headings)
    width = max([len(headings)] + [len(row) for row in rows])
    extended_headings, result_columns = resolve_result_columns(headings, width)

    records: list[ImportItemRecord] = []
    row_numbers: dict[str, int] = {}
    skipped_rows: list[int] = []

    for offset, row in enumerate(rows):
        row_number = FIRST_DATA_ROW + offset

        if _is_blank(row):
            skipped_rows.append(row_number)
            continue

        record = map_row(row, columns, row_number)

        if record.id in row_numbers:
            raise DuplicateItemError(record.id, [row_numbers[record.id], row_number])

        row_numbers[record.id] = row_number
        records.append(record)

    if not records:
        raise EmptySheetError(sheet)

    logger.info(
        "item_sheet_mapped",
        items=len(records),
        skipped_rows=len(skipped_rows),
        result_columns={t.value: i for t, i in result_columns.items()},
    )

    return ItemSheetParseResult(
        batch=ImportBatch(items=tuple(records)),
        columns=columns,
        headings=extended_headings,
        result_columns=result_columns,
        row_numbers=row_numbers,
        skipped_rows=skipped_rows,
    )


def parse_item_sheet(sheet_rows: list[list[str]], sheet: str = "Sheet1") -> ItemSheetParseResult:
    """
    Parse a full sheet: headings in the first row, items below.

    Raises:
        EmptySheetError: If the sheet has no headings or no data rows
    """
    logger.info("parsing_item_sheet", sheet=sheet, rows=len(sheet_rows))

    if len(sheet_rows) < 2:
        raise EmptySheetError(sheet)

    return map_rows(sheet_rows[0], sheet_rows[1:], sheet=sheet)
