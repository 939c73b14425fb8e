"""
Customs import schemas for the item import API.

Request side: ImportItemRecord / ImportBatch.
Job tracking: ImportJob / ImportStatusDocument.
Response side: ImportResponse / ImportItemResult / CustomsCode.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from pydantic import ConfigDict, Field, field_serializer, field_validator

from models.base import WireSchema, TimestampMixin


class CustomsTerritory(str, Enum):
    """Jurisdictions a customs code can be requested for."""
    EU = "eu"
    NO = "no"


SUPPORTED_TERRITORIES: tuple[CustomsTerritory, ...] = (
    CustomsTerritory.EU,
    CustomsTerritory.NO,
)


class ImportJobStatus(str, Enum):
    """Server-side import job status."""
    PENDING = "pending"
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"


# ===================
# REQUEST
# ===================

class ImportItemRecord(WireSchema):
    """
    One spreadsheet row, validated and ready for submission.

    Required: id, name, description, customs_territories
    Optional: everything else (omitted from the wire when absent)
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    id: str = Field(..., min_length=1, description="Item identifier, unique per import")
    name: str = Field(..., description="Item name")
    description: str = Field(..., description="Item description")
    customs_territories: list[CustomsTerritory] = Field(
        ...,
        min_length=1,
        alias="customsTerritories",
        description="Territories to classify the item for"
    )
    category: Optional[str] = None
    subcategory: Optional[str] = None
    country_of_origin: Optional[str] = Field(None, alias="countryOfOrigin")
    gross_mass: Optional[Decimal] = Field(None, ge=0, alias="grossMass")
    net_mass: Optional[Decimal] = Field(None, ge=0, alias="netMass")
    weight_unit: Optional[str] = Field(None, alias="weightUnit")
    model: Optional[str] = None

    @field_serializer("gross_mass", "net_mass")
    def mass_as_number(self, v: Optional[Decimal]) -> Optional[float]:
        """Masses go over the wire as JSON numbers."""
        if v is None:
            return None
        return float(v)


class ImportBatch(WireSchema):
    """All records of one run. Immutable once built."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    items: tuple[ImportItemRecord, ...] = Field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.items)

    @property
    def item_ids(self) -> list[str]:
        return [item.id for item in self.items]


# ===================
# JOB TRACKING
# ===================

class ImportStatusDocument(WireSchema):
    """Body of GET {location}/status."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
    )

    status: str = Field(..., description="pending, processing, processed or failed")

    @property
    def is_processed(self) -> bool:
        return self.status == ImportJobStatus.PROCESSED.value

    @property
    def is_failed(self) -> bool:
        return self.status == ImportJobStatus.FAILED.value


class ImportJob(WireSchema):
    """
    Handle to a submitted import.

    Created by submit. status holds the last status observed by polling;
    unknown server values are kept as-is.
    """

    location: str = Field(..., description="Location header returned by submit")
    url: str = Field(..., description="Absolute URL of the import document")
    status: Optional[str] = Field(None, description="Last observed status")
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def status_url(self) -> str:
        return f"{self.url}/status"


# ===================
# RESPONSE
# ===================

class CustomsCode(WireSchema):
    """Code assigned to an item for one territory."""
    customs_territory: str = Field(..., alias="customsTerritory")
    code: str


class ImportItemResult(WireSchema, TimestampMixin):
    """Per-item outcome of a processed import."""

    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    country_of_origin: Optional[str] = Field(None, alias="countryOfOrigin")
    gross_mass: Optional[float] = Field(None, alias="grossMass")
    net_mass: Optional[float] = Field(None, alias="netMass")
    weight_unit: Optional[str] = Field(None, alias="weightUnit")
    customs_territories: Optional[list[str]] = Field(None, alias="customsTerritories")
    customs_codes: list[CustomsCode] = Field(default_factory=list, alias="customsCodes")
    status: Optional[str] = None
    error: Optional[str] = None
    attempts: Optional[int] = None
    max_attempts: Optional[int] = Field(None, alias="maxAttempts")

    @field_validator("customs_codes", mode="before")
    @classmethod
    def null_codes_as_empty(cls, v):
        """Items without codes may come back with customsCodes: null."""
        if v is None:
            return []
        return v

    def code_for(self, territory: Union[CustomsTerritory, str]) -> Optional[str]:
        """Code assigned for the territory, or None when not returned."""
        wanted = territory.value if isinstance(territory, CustomsTerritory) else territory
        for customs_code in self.customs_codes:
            if customs_code.customs_territory == wanted:
                return customs_code.code
        return None


class ImportResponse(WireSchema, TimestampMixin):
    """Body of GET {location} once the import is processed."""

    id: str
    items: list[ImportItemResult] = Field(default_factory=list)
