"""
==============================================================================
Product Models Module
==============================================================================

Pydantic models for product catalog items.

==============================================================================
"""

from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


class Product(BaseModel):
    """
    Product model for catalog items.

    Attributes:
        name: Product display name
        barcode: Barcode the product is keyed by
        brand: Brand name
        categories: Comma separated categories, as shown to the user
        image_url: Product image URL
        main_category: Top-level catalog section (e.g., "snacks")
        subcategory: Catalog subsection (e.g., "Biscuits")
    """

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    name: str = Field(..., min_length=1, description="Product name")
    barcode: str = Field(..., min_length=1, description="Product barcode")
    brand: str = Field(default="", description="Brand name")
    categories: str = Field(default="", description="Category list")
    image_url: str = Field(default="", description="Product image URL")
    main_category: Optional[str] = Field(default=None, description="Main category")
    subcategory: Optional[str] = Field(default=None, description="Subcategory")

    def to_dict(self) -> dict:
        """Public product fields."""
        return {
            "name": self.name,
            "brand": self.brand,
            "categories": self.categories,
            "image_url": self.image_url,
        }
