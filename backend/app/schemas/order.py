from __future__ import annotations

from pydantic import Field, model_validator

from backend.app.db.models.core_types import (
    DeliveryMethod,
    MobilfunkTariff,
    MobilfunkType,
    SimType,
)
from backend.app.schemas.article import SerialEntryIn
from backend.app.schemas.common import ApiModel


class OrderItemCreate(ApiModel):
    article_id: int | None = None
    free_text: str | None = Field(default=None, max_length=500)
    quantity: int = Field(ge=1)

    @model_validator(mode="after")
    def _article_xor_free_text(self):
        if self.free_text == "":
            self.free_text = None
        if self.article_id is None and not self.free_text:
            raise ValueError("Each item needs an article or a free text")
        if self.article_id is not None and self.free_text:
            raise ValueError("An item is either article-backed or free text, not both")
        return self


class MobilfunkCreate(ApiModel):
    type: MobilfunkType
    sim_type: SimType | None = None
    tariff: MobilfunkTariff | None = None
    phone_note: str | None = None
    sim_note: str | None = None


class OrderCreate(ApiModel):
    ordered_by: str = Field(min_length=1, max_length=200)
    ordered_for: str = Field(min_length=1, max_length=200)
    cost_center: str = Field(min_length=1, max_length=64)
    delivery_method: DeliveryMethod
    shipping_company: str | None = Field(default=None, max_length=255)
    shipping_street: str | None = Field(default=None, max_length=255)
    shipping_zip: str | None = Field(default=None, max_length=16)
    shipping_city: str | None = Field(default=None, max_length=128)
    pickup_by: str | None = Field(default=None, max_length=200)
    notes: str | None = None
    items: list[OrderItemCreate] = Field(default_factory=list)
    mobilfunk: list[MobilfunkCreate] = Field(default_factory=list)

    @model_validator(mode="after")
    def _not_empty(self):
        if not self.items and not self.mobilfunk:
            raise ValueError("An order needs at least one item or mobilfunk entry")
        return self


# ---------- technician ----------
class TechnicianAssign(ApiModel):
    technician_name: str = Field(min_length=1, max_length=200)


class PickRequest(ApiModel):
    quantity: int = Field(ge=1)
    technician_name: str = Field(min_length=1, max_length=200)
    serial_number_id: int | None = None
    serial_number_ids: list[int] = Field(default_factory=list)

    @property
    def all_serial_number_ids(self) -> list[int]:
        ids = list(self.serial_number_ids)
        if self.serial_number_id is not None and self.serial_number_id not in ids:
            ids.insert(0, self.serial_number_id)
        return ids


class UnpickRequest(ApiModel):
    technician_name: str = Field(min_length=1, max_length=200)


class MobilfunkSetup(ApiModel):
    technician_name: str = Field(min_length=1, max_length=200)
    imei: str | None = Field(default=None, max_length=32)
    phone_number: str | None = Field(default=None, max_length=32)


class FinishTechWork(ApiModel):
    technician_name: str = Field(min_length=1, max_length=200)
    tracking_number: str | None = Field(default=None, max_length=128)


# ---------- procurement ----------
class ItemOrdered(ApiModel):
    supplier_id: int
    supplier_order_no: str = Field(min_length=1, max_length=128)
    ordered_by: str = Field(min_length=1, max_length=200)


class MobilfunkOrdered(ApiModel):
    provider_order_no: str = Field(min_length=1, max_length=128)
    ordered_by: str = Field(min_length=1, max_length=200)


# ---------- receiving ----------
class ReceiveItem(ApiModel):
    quantity: int = Field(ge=1)
    performed_by: str | None = Field(default=None, max_length=200)
    serial_numbers: list[SerialEntryIn] = Field(default_factory=list)


class ActorRequest(ApiModel):
    performed_by: str | None = Field(default=None, max_length=200)


# ---------- misc ----------
class ResolveFreeText(ApiModel):
    article_id: int


class DeliveredToggle(ApiModel):
    delivered: bool
