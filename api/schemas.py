from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class ProductFiltersModel(BaseModel):
    search: str = ""
    statuses: List[str] = Field(default_factory=list)
    brands: List[str] = Field(default_factory=list)
    damaged: Optional[bool] = None
    page: Optional[int] = None
    page_size: int = 10


class BulkImportRequest(BaseModel):
    # Left untyped so the record store reports malformed batches itself.
    products: Any = None


class ImportResponse(BaseModel):
    message: str
    count: int
    filename: Optional[str] = None
    skipped: int = 0
    skipped_rows: List[str] = Field(default_factory=list)


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str
    type: str
