"""
Daily Product Summary - one document per (product, date, company).

Holds the order aggregate (sales breakdown + totals), the production inputs
entered on the approval grid, the figures derived from both, and the
approval status.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from beanie import Document, PydanticObjectId
from pydantic import BaseModel, Field
from pymongo import IndexModel, ASCENDING

from app.shared.timezone import get_ist_now


class SummaryStatus(str, Enum):
    """Approval state of a summary row. Not the order lifecycle (see OrderStatus)."""
    pending = "pending"
    approved = "approved"


# Writing any of these resets the row to pending
PRODUCTION_INPUT_FIELDS = ("physical_stock", "batch_adjusted", "qty_per_batch")


class SalesBreakdownEntry(BaseModel):
    """Quantity one sales person ordered for the product on the day."""
    sales_person_id: Optional[PydanticObjectId] = None
    sales_person_name: str = "Unknown"
    total_quantity: int = 0
    order_count: int = 0


class SummaryApprovalRecord(BaseModel):
    approved_by: str
    approved_by_name: Optional[str] = None
    approved_at: datetime = Field(default_factory=get_ist_now)


class DailyProductSummary(Document):
    """Per-product, per-day, per-company production summary row."""

    # ---- Primary Identity ----
    product_id: PydanticObjectId
    date: str = Field(..., description="YYYY-MM-DD, company-local calendar day")
    company_id: PydanticObjectId
    product_name: Optional[str] = None

    # Date components for querying
    year: int
    month: int
    day: int

    # ---- Order Aggregate (recomputed from orders) ----
    sales_breakdown: List[SalesBreakdownEntry] = Field(default_factory=list)
    total_quantity: int = 0
    total_orders: int = 0

    # ---- Production Inputs (entered by user) ----
    physical_stock: float = 0
    batch_adjusted: float = 0
    qty_per_batch: float = Field(default=1, gt=0)

    # ---- Derived ----
    to_be_produced_day: float = 0
    production_final_batches: float = 0
    produce_batches: float = 0
    to_be_produced_batches: float = 0
    expiry_shortage: float = 0

    # ---- Approval ----
    status: SummaryStatus = SummaryStatus.pending
    approval: Optional[SummaryApprovalRecord] = None

    # ---- Concurrency ----
    version: int = 0

    # ---- Metadata ----
    last_aggregated_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=get_ist_now)
    updated_at: datetime = Field(default_factory=get_ist_now)

    class Settings:
        name = "daily_product_summaries"
        indexes = [
            IndexModel(
                [("product_id", ASCENDING), ("date", ASCENDING), ("company_id", ASCENDING)],
                unique=True,
                name="summary_key_unique",
            ),
            [("company_id", ASCENDING), ("date", ASCENDING)],
            [("company_id", ASCENDING), ("year", ASCENDING), ("month", ASCENDING)],
        ]

    @classmethod
    def by_key(
        cls,
        product_id: PydanticObjectId,
        date: str,
        company_id: PydanticObjectId,
        version: Optional[int] = None
    ):
        """FindOne query for one summary row, optionally pinned to a version."""
        criteria = [
            cls.product_id == product_id,
            cls.date == date,
            cls.company_id == company_id,
        ]
        if version is not None:
            criteria.append(cls.version == version)
        return cls.find_one(*criteria)
