"""
Pydantic models for distributor catalog records.
Field aliases match the distributor's JSON keys.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DistributorItem(BaseModel):
    """Summary record from the product list endpoint."""

    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", coerce_numbers_to_str=True
    )

    item: str = Field(alias="Item")

    def has_excluded_suffix(self, suffix: str) -> bool:
        """Items ending with the reserved suffix are never synced."""
        return bool(suffix) and self.item.endswith(suffix)


class DistributorItemDetail(BaseModel):
    """Full record from the product detail endpoint."""

    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", coerce_numbers_to_str=True
    )

    item: str = Field(alias="Item")
    net: Decimal = Field(alias="Net", ge=0)
    retail: Decimal = Field(alias="Retail", ge=0)
    description: Optional[str] = Field(default=None, alias="Desc")
    description_2: Optional[str] = Field(default=None, alias="Desc2")
    description_3: Optional[str] = Field(default=None, alias="Desc3")
    upc: Optional[str] = Field(default=None, alias="UPC")
    size: Optional[str] = Field(default=None, alias="Size")
    designer: Optional[str] = Field(default=None, alias="Designer")
    fragrance: Optional[str] = Field(default=None, alias="Fragrance")
    product: Optional[str] = Field(default=None, alias="Product")
    product_line: Optional[str] = Field(default=None, alias="ProductLine")
    product_class: Optional[str] = Field(default=None, alias="ProductClass")
    available: int = Field(default=0, alias="Available")
    weight: Optional[Decimal] = Field(default=None, alias="Weight")
    image_url: Optional[str] = Field(default=None, alias="ImageURL")

    @field_validator("weight", "image_url", "upc", "size", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("available", mode="before")
    @classmethod
    def missing_quantity_is_zero(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return 0
        return value
