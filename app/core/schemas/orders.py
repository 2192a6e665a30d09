from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.core.models.order import OrderStatus, StatusHistoryEntry


class OrderLineRequest(BaseModel):
    product_id: str
    quantity: int = Field(..., ge=1)
    price: float = Field(default=0, ge=0)


class OrderCreate(BaseModel):
    order_code: Optional[str] = Field(None, description="Generated when omitted")
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    sales_person_id: Optional[str] = Field(None, description="Defaults to the caller")
    company_id: Optional[str] = Field(None, description="Defaults to the caller's company")
    order_date: datetime
    products: List[OrderLineRequest] = Field(..., min_length=1)
    notes: Optional[str] = None


class OrderUpdate(BaseModel):
    """Fields a sales person may change after placing the order."""
    customer_name: Optional[str] = None
    order_date: Optional[datetime] = None
    products: Optional[List[OrderLineRequest]] = None
    notes: Optional[str] = None

    @field_validator("products")
    @classmethod
    def products_not_empty(cls, v):
        if v is not None and len(v) == 0:
            raise ValueError("An order needs at least one product")
        return v


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    remarks: Optional[str] = Field(None, max_length=500)


class OrderLineResponse(BaseModel):
    product_id: str
    quantity: int
    price: float
    total: float


class OrderResponse(BaseModel):
    id: str
    order_code: str
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    sales_person_id: Optional[str] = None
    company_id: Optional[str] = None
    order_date: datetime
    products: List[OrderLineResponse]
    total_amount: float
    status: OrderStatus
    status_history: List[StatusHistoryEntry]
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, order) -> "OrderResponse":
        def as_str(value):
            return str(value) if value is not None else None

        return cls(
            id=str(order.id),
            order_code=order.order_code,
            customer_id=as_str(order.customer_id),
            customer_name=order.customer_name,
            sales_person_id=as_str(order.sales_person_id),
            company_id=as_str(order.company_id),
            order_date=order.order_date,
            products=[
                OrderLineResponse(
                    product_id=str(line.product_id),
                    quantity=line.quantity,
                    price=line.price,
                    total=line.total,
                )
                for line in order.products
            ],
            total_amount=order.total_amount,
            status=order.status,
            status_history=order.status_history,
            notes=order.notes,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
