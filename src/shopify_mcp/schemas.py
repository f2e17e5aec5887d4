"""Nested input models for the Shopify mutation tools.

Field names accept either snake_case or the camelCase used by the Admin
API; ``dump`` always produces camelCase.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ShopifyInput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def dump(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class CustomAttribute(ShopifyInput):
    key: str
    value: str


class MetafieldInput(ShopifyInput):
    id: str | None = None
    namespace: str | None = None
    key: str | None = None
    value: str
    type: str | None = None


class ShippingAddress(ShopifyInput):
    address1: str | None = None
    address2: str | None = None
    city: str | None = None
    company: str | None = None
    country: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    province: str | None = None
    zip: str | None = None
