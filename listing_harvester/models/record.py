# models/record.py
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Record(BaseModel):
    """One harvested listing. Immutable once built."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str = Field(..., min_length=1)
    identifier: str = Field(..., min_length=1)
    href: str = Field(..., description="Absolute URL on the expected origin")
    price_text: Optional[str] = Field(default=None, alias="priceText")

    @property
    def dedup_key(self) -> str:
        return dedup_key(self.href)

    def to_output(self, include_price: bool = False) -> dict:
        payload = self.model_dump(by_alias=True, exclude_none=True)
        if not include_price:
            payload.pop("priceText", None)
        return payload


def dedup_key(href: str) -> str:
    return (href or "").strip().casefold()


class CardDescriptor(BaseModel):
    """Side-channel JSON attached to a card (``telemetry-data``)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    item_name: Optional[str] = Field(default=None, alias="itemName")
    item_id: Optional[str] = Field(default=None, alias="itemId")

    @field_validator("item_name", "item_id", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, (dict, list)):
            return None
        return str(value)


class CollectionEntry(BaseModel):
    """A ``{title, href}`` pair harvested from a collection page."""

    title: str
    href: str
