"""
Business logic services.

Each service handles one stage of the import.
"""

from services.reconciliation_service import reconcile, RowUpdate
from services.customs_import_service import CustomsImportService, RunResult

__all__ = [
    "reconcile",
    "RowUpdate",
    "CustomsImportService",
    "RunResult",
]
