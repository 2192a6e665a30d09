from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class ProductionGroupSnapshot(BaseModel):
    """Cached view of an active group, enough to bucket summary rows."""
    id: str
    name: str
    items: List[str] = Field(default_factory=list)
    qty_per_batch: float = 0
    qty_achieved_per_batch: float = 0
    total_items: int = 0

    @classmethod
    def from_document(cls, group) -> "ProductionGroupSnapshot":
        return cls(
            id=str(group.id),
            name=group.name,
            items=[str(i) for i in group.items],
            qty_per_batch=group.qty_per_batch,
            qty_achieved_per_batch=group.qty_achieved_per_batch,
            total_items=group.total_items,
        )


class ProductionGroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    items: List[str] = Field(default_factory=list, description="Catalog item ids")
    qty_per_batch: float = Field(default=0, ge=0)
    qty_achieved_per_batch: float = Field(default=0, ge=0)
    unit_head_or_manager: Optional[str] = None
    company_id: Optional[str] = Field(None, description="Required for Super Admin")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Group name cannot be blank")
        return v


class ProductionGroupUpdate(BaseModel):
    """All fields optional; only sent fields are written."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    items: Optional[List[str]] = None
    qty_per_batch: Optional[float] = Field(None, ge=0)
    qty_achieved_per_batch: Optional[float] = Field(None, ge=0)
    unit_head_or_manager: Optional[str] = None


class ProductionGroupTimings(BaseModel):
    moulding_time: Optional[datetime] = None
    unloading_time: Optional[datetime] = None
    production_loss: Optional[float] = Field(None, ge=0)


class ProductionGroupResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    company_id: str
    created_by: Optional[str] = None
    items: List[str]
    qty_per_batch: float
    qty_achieved_per_batch: float
    unit_head_or_manager: Optional[str] = None
    moulding_time: Optional[datetime] = None
    unloading_time: Optional[datetime] = None
    production_loss: float
    is_active: bool
    total_items: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, group) -> "ProductionGroupResponse":
        data = group.model_dump(exclude={"id", "company_id", "items"})
        return cls(
            id=str(group.id),
            company_id=str(group.company_id),
            items=[str(i) for i in group.items],
            **data,
        )
