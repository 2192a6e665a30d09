from datetime import datetime
from enum import Enum
from typing import List, Optional
from beanie import Document, PydanticObjectId
from pydantic import BaseModel, Field, field_validator
from pymongo import IndexModel, ASCENDING, DESCENDING

from app.shared.timezone import get_ist_now, to_naive_utc


class OrderStatus(str, Enum):
    """
    Sales order lifecycle. Independent of the production summary's
    SummaryStatus; the two must never be mixed.
    """
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    in_production = "in_production"
    completed = "completed"
    cancelled = "cancelled"


# Orders in these states contribute nothing to the daily production summary
EXCLUDED_FROM_SUMMARY = (OrderStatus.cancelled.value, OrderStatus.rejected.value)


class OrderLine(BaseModel):
    product_id: PydanticObjectId
    quantity: int = Field(..., ge=1)
    price: float = Field(default=0, ge=0)
    total: float = Field(default=0, ge=0)


class StatusHistoryEntry(BaseModel):
    status: OrderStatus
    updated_by: Optional[str] = None
    updated_at: datetime = Field(default_factory=get_ist_now)
    remarks: Optional[str] = None


class Order(Document):
    """Sales order placed by a sales person for a customer."""

    order_code: str
    customer_id: Optional[PydanticObjectId] = None
    customer_name: Optional[str] = None
    sales_person_id: Optional[PydanticObjectId] = None
    company_id: Optional[PydanticObjectId] = None

    # Stored as naive UTC
    order_date: datetime

    products: List[OrderLine] = Field(default_factory=list)
    total_amount: float = Field(default=0, ge=0)

    status: OrderStatus = OrderStatus.pending
    status_history: List[StatusHistoryEntry] = Field(default_factory=list)
    notes: Optional[str] = None

    created_at: datetime = Field(default_factory=get_ist_now)
    updated_at: datetime = Field(default_factory=get_ist_now)

    class Settings:
        name = "orders"
        indexes = [
            IndexModel([("order_code", ASCENDING)], unique=True),
            [("company_id", ASCENDING), ("order_date", DESCENDING)],
            [("products.product_id", ASCENDING), ("order_date", ASCENDING)],
            [("sales_person_id", ASCENDING)],
        ]

    @field_validator("order_date")
    @classmethod
    def _store_as_naive_utc(cls, v: datetime) -> datetime:
        return to_naive_utc(v)

    def product_ids(self) -> List[PydanticObjectId]:
        """Distinct product ids on this order, in line order."""
        seen = []
        for line in self.products:
            if line.product_id not in seen:
                seen.append(line.product_id)
        return seen
