"""
Export/import Pydantic schemas

Field names are camelCase on the wire to stay compatible with files
exported by the mobile app.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"


class ExportedTask(BaseModel):
    title: str
    description: Optional[str] = None
    completed: bool = False
    category: Optional[str] = None
    priority: Optional[str] = None
    created_at: str = Field(..., alias="createdAt")
    updated_at: str = Field(..., alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)


class ImportRequest(BaseModel):
    format: ExportFormat = ExportFormat.JSON
    data: str = Field(..., description="Raw JSON or CSV payload")


class ImportResponse(BaseModel):
    imported: int
    skipped: int = 0
