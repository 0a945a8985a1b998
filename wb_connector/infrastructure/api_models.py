"""
Pydantic models for the small JSON fragments that are materialised whole.

Page bodies are walked token by token; only a response header, or a single
climate or catalog record, is ever read into a dict and validated here.
These models are the strict contract for those fragments, so any deviation
is caught at the infrastructure layer.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ApiMessage(BaseModel):
    """One entry of the error 'message' list the API sends instead of data."""

    id: Optional[str] = None
    key: Optional[str] = None
    value: Optional[str] = None


class HeaderPayload(BaseModel):
    """
    The header object that leads a generic (array) envelope.

    The API sends some fields as strings ("per_page": "50") and some as
    null; missing and null values both mean 0.
    """

    page: Optional[int] = 0
    pages: Optional[int] = 0
    per_page: Optional[int] = 0
    total: Optional[int] = 0
    message: Optional[List[ApiMessage]] = None

    @field_validator("page", "pages", "per_page", "total", mode="after")
    @classmethod
    def _null_is_zero(cls, value: Optional[int]) -> int:
        return value or 0


class MonthlyRecordPayload(BaseModel):
    """One record of the climate API's monthly-average endpoint."""

    scenario: Optional[str] = None
    gcm: str
    variable: str
    fromYear: int
    toYear: int
    monthVals: List[float] = Field(min_length=12, max_length=12)


class MetaTypeEntry(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    value: Optional[str] = None


class CatalogItemPayload(BaseModel):
    """One item of the data catalog: an id plus free-form metadata."""

    id: int
    metatype: List[MetaTypeEntry] = []
