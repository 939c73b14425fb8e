"""
Pydantic models for the customs import API.
"""

from models.base import (
    WireSchema,
    TimestampMixin,
)
from models.customs_import import (
    CustomsTerritory,
    SUPPORTED_TERRITORIES,
    ImportJobStatus,
    ImportItemRecord,
    ImportBatch,
    ImportStatusDocument,
    ImportJob,
    CustomsCode,
    ImportItemResult,
    ImportResponse,
)

__all__ = [
    # Base
    "WireSchema",
    "TimestampMixin",

    # Customs import
    "CustomsTerritory",
    "SUPPORTED_TERRITORIES",
    "ImportJobStatus",
    "ImportItemRecord",
    "ImportBatch",
    "ImportStatusDocument",
    "ImportJob",
    "CustomsCode",
    "ImportItemResult",
    "ImportResponse",
]
