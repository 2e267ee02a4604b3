from __future__ import annotations

from decimal import Decimal

from pydantic import EmailStr, Field, field_validator

from backend.app.db.models.core_types import ArticleCategory, MovementType, SerialNumberStatus
from backend.app.schemas.common import ApiModel


class ArticleCreate(ApiModel):
    sku: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    category: ArticleCategory
    description: str | None = None
    product_group: str | None = Field(default=None, max_length=128)
    product_sub_group: str | None = Field(default=None, max_length=128)
    avg_purchase_price: Decimal | None = Field(default=None, ge=0)
    unit: str = Field(default="Stk", min_length=1, max_length=32)
    min_stock_level: int = Field(default=0, ge=0)
    notes: str | None = None

    @field_validator("category", mode="before")
    @classmethod
    def _legacy_category(cls, v):
        return ArticleCategory.parse(v) if isinstance(v, str) else v


class ArticleUpdate(ApiModel):
    sku: str | None = Field(default=None, min_length=1, max_length=64)
    name: str | None = Field(default=None, min_length=1, max_length=255)
    category: ArticleCategory | None = None
    description: str | None = None
    product_group: str | None = Field(default=None, max_length=128)
    product_sub_group: str | None = Field(default=None, max_length=128)
    avg_purchase_price: Decimal | None = Field(default=None, ge=0)
    unit: str | None = Field(default=None, min_length=1, max_length=32)
    min_stock_level: int | None = Field(default=None, ge=0)
    notes: str | None = None

    @field_validator("category", mode="before")
    @classmethod
    def _legacy_category(cls, v):
        return ArticleCategory.parse(v) if isinstance(v, str) else v


class ArticleQuickCreate(ApiModel):
    name: str = Field(min_length=1, max_length=255)
    category: ArticleCategory
    unit: str = Field(default="Stk", min_length=1, max_length=32)
    min_stock_level: int = Field(default=0, ge=0)

    @field_validator("category", mode="before")
    @classmethod
    def _legacy_category(cls, v):
        return ArticleCategory.parse(v) if isinstance(v, str) else v


class SupplierCreate(ApiModel):
    name: str = Field(min_length=1, max_length=255)
    contact_name: str | None = Field(default=None, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=64)
    website: str | None = Field(default=None, max_length=255)
    notes: str | None = None

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email(cls, v):
        return None if v == "" else v


class ArticleSupplierCreate(ApiModel):
    supplier_id: int
    supplier_sku: str | None = Field(default=None, max_length=64)
    unit_price: Decimal = Field(ge=0)
    currency: str = Field(default="EUR", min_length=3, max_length=3)
    lead_time_days: int | None = Field(default=None, ge=0)
    min_order_qty: int = Field(default=1, ge=1)
    is_preferred: bool = False
    notes: str | None = None


class LocationCreate(ApiModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None


class StockMovementCreate(ApiModel):
    article_id: int
    type: MovementType
    quantity: int = Field(ge=1)
    reason: str | None = Field(default=None, max_length=255)
    performed_by: str | None = Field(default=None, max_length=200)


class SerialEntryIn(ApiModel):
    serial_no: str = Field(min_length=1, max_length=128)
    is_used: bool = False


class ReceivingCreate(ApiModel):
    article_id: int
    quantity: int = Field(ge=1)
    reason: str | None = Field(default=None, max_length=255)
    performed_by: str | None = Field(default=None, max_length=200)
    serial_numbers: list[SerialEntryIn] = Field(default_factory=list)


class SerialNumberCreate(ApiModel):
    serial_no: str = Field(min_length=1, max_length=128)
    article_id: int
    is_used: bool = False
    location_id: int | None = None
    notes: str | None = None


class SerialStatusUpdate(ApiModel):
    status: SerialNumberStatus
