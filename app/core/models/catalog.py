from datetime import datetime
from typing import Optional
from beanie import Document, PydanticObjectId
from pydantic import Field
from pymongo import ASCENDING
from app.shared.timezone import get_ist_now


class CatalogItem(Document):
    """
    Sellable product in a company's catalog.

    Read-only from the production summary's point of view: summaries validate
    that the product exists for the company and copy its name and default
    batch size.
    """

    name: str = Field(..., description="Product name, e.g. 'Milk Bread 400g'")
    category: Optional[str] = None
    sub_category: Optional[str] = None
    company_id: Optional[PydanticObjectId] = None

    qty_per_batch: Optional[float] = Field(
        None,
        description="Standard units per production batch. Seeds new summary rows."
    )

    is_active: bool = True
    created_at: datetime = Field(default_factory=get_ist_now)

    class Settings:
        name = "catalog_items"
        indexes = [
            [("company_id", ASCENDING), ("name", ASCENDING)],
        ]

    def available_to(self, company_id: Optional[PydanticObjectId]) -> bool:
        """Shared items (no company) are visible to every company."""
        return self.company_id is None or self.company_id == company_id
