"""
Base schemas and mixins for wire models.
"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional


class WireSchema(BaseModel):
    """
    Base for all schemas exchanged with the classification service.

    Features:
        - Populate by python name or by camelCase wire alias
        - Ignore fields the service adds that we do not model
        - Strings kept verbatim (item ids are matched exactly)
    """
    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict:
        """Serialize with wire aliases, omitting absent optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TimestampMixin(BaseModel):
    """Server-side timestamps on response documents."""
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")
