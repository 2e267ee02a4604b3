from __future__ import annotations

from pydantic import Field

from backend.app.schemas.common import ApiModel


class InventoryStart(ApiModel):
    name: str = Field(min_length=1, max_length=200)
    started_by: str = Field(min_length=1, max_length=200)
    notes: str | None = None


class InventoryCheck(ApiModel):
    counted_qty: int = Field(ge=0)
    checked_by: str = Field(min_length=1, max_length=200)
    notes: str | None = None


class InventoryApply(ApiModel):
    performed_by: str = Field(min_length=1, max_length=200)
