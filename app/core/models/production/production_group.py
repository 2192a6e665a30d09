from datetime import datetime
from typing import List, Optional
from beanie import Document, PydanticObjectId
from pydantic import Field
from pymongo import IndexModel, ASCENDING

from app.shared.timezone import get_ist_now


class ProductionGroup(Document):
    """
    Organisational grouping of products for shift / packing display.

    Not authoritative for quantities: the daily summary view only uses it to
    bucket summary rows. Items are catalog item ids.
    """

    # ==================== Identity ====================

    name: str = Field(..., description="Group name, unique within the company")
    description: Optional[str] = None
    company_id: PydanticObjectId
    created_by: Optional[str] = Field(None, description="emp_id of the creator")

    items: List[PydanticObjectId] = Field(default_factory=list)

    # ==================== Batch Figures ====================

    qty_per_batch: float = Field(default=0, ge=0)
    qty_achieved_per_batch: float = Field(default=0, ge=0)
    unit_head_or_manager: Optional[str] = Field(None, description="emp_id of the responsible unit head / manager")

    # ==================== Shift Timing ====================

    moulding_time: Optional[datetime] = None
    unloading_time: Optional[datetime] = None
    production_loss: float = Field(default=0, ge=0)

    # ==================== Metadata ====================

    is_active: bool = True
    total_items: int = 0
    created_at: datetime = Field(default_factory=get_ist_now)
    updated_at: datetime = Field(default_factory=get_ist_now)

    class Settings:
        name = "production_groups"
        indexes = [
            IndexModel([("company_id", ASCENDING), ("name", ASCENDING)], unique=True),
            [("company_id", ASCENDING), ("is_active", ASCENDING)],
        ]

    def touch_items(self):
        """Keep membership metadata in step with the item list."""
        self.total_items = len(self.items)
        self.updated_at = get_ist_now()
