from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from app.core.models.production.production_summary import (
    SummaryStatus,
    SalesBreakdownEntry,
    SummaryApprovalRecord,
)

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

# Grid cells arrive as numbers or as raw text; text is coerced server-side
GridValue = Optional[Union[float, str]]


# ==================== RESPONSES ====================

class SummaryResponse(BaseModel):
    id: str
    product_id: str
    product_name: Optional[str] = None
    date: str
    company_id: str

    sales_breakdown: List[SalesBreakdownEntry]
    total_quantity: int
    total_orders: int

    physical_stock: float
    batch_adjusted: float
    qty_per_batch: float

    to_be_produced_day: float
    production_final_batches: float
    produce_batches: float
    to_be_produced_batches: float
    expiry_shortage: float

    status: SummaryStatus
    approval: Optional[SummaryApprovalRecord] = None
    version: int

    last_aggregated_at: Optional[datetime] = None
    updated_at: datetime

    @classmethod
    def from_document(cls, summary) -> "SummaryResponse":
        data = summary.model_dump(exclude={"id", "product_id", "company_id"})
        return cls(
            id=str(summary.id),
            product_id=str(summary.product_id),
            company_id=str(summary.company_id),
            **data,
        )


class GroupedSummary(BaseModel):
    """Summary rows bucketed under one production group."""
    group_id: str
    group_name: str
    qty_per_batch: float = 0
    qty_achieved_per_batch: float = 0
    total_items: int = 0
    products: List[SummaryResponse] = Field(default_factory=list)


class DailySummaryResponse(BaseModel):
    date: str
    company_id: str
    total_products: int
    pending_count: int
    approved_count: int
    production_groups: List[GroupedSummary]
    ungrouped_products: List[SummaryResponse]


class BulkApprovalFailure(BaseModel):
    product_id: str
    reason: str
    status_code: int


class BulkApprovalResponse(BaseModel):
    date: str
    succeeded: int
    failed: int
    approved_product_ids: List[str]
    failures: List[BulkApprovalFailure]


# ==================== REQUESTS ====================

class ProductionInputUpdates(BaseModel):
    """
    Fields editable on the approval grid.

    Only fields present in the request are written. Blank or unparseable text
    falls back to the default; negative stock / batch counts are rejected.
    """
    physical_stock: GridValue = None
    batch_adjusted: GridValue = None
    qty_per_batch: GridValue = None
    status: Optional[SummaryStatus] = None

    @field_validator("physical_stock", "batch_adjusted")
    @classmethod
    def reject_negative(cls, v):
        if v is None:
            return v
        try:
            number = float(v.strip()) if isinstance(v, str) else float(v)
        except ValueError:
            return v
        if number < 0:
            raise ValueError("Value cannot be negative")
        return v

    def input_values(self) -> Dict[str, Any]:
        """Production inputs explicitly sent in the request."""
        sent = self.model_dump(exclude_unset=True)
        sent.pop("status", None)
        return sent


class UpdateSummaryRequest(BaseModel):
    date: str = Field(..., pattern=DATE_PATTERN, description="YYYY-MM-DD")
    product_id: str
    company_id: Optional[str] = Field(None, description="Required for Super Admin")
    updates: ProductionInputUpdates


class ApproveRequest(BaseModel):
    date: str = Field(..., pattern=DATE_PATTERN)
    product_id: str
    company_id: Optional[str] = None
    expected_version: Optional[int] = Field(
        None, ge=0, description="Version the approver reviewed; mismatch is 409"
    )


class BulkApproveRequest(BaseModel):
    date: str = Field(..., pattern=DATE_PATTERN)
    product_ids: List[str] = Field(..., min_length=1)
    company_id: Optional[str] = None


class RecomputeRequest(BaseModel):
    date: str = Field(..., pattern=DATE_PATTERN)
    product_id: str
    company_id: Optional[str] = None
