"""
Test data factories.

Each factory inserts a Beanie document with sensible defaults; pass
overrides for the fields a test cares about.
"""

from datetime import datetime
from typing import Iterable, Optional, Tuple

from beanie import PydanticObjectId

from app.core.models.catalog import CatalogItem
from app.core.models.company import Company
from app.core.models.order import Order, OrderLine, OrderStatus
from app.core.models.user import UserAccount, UserRole
from app.core.schemas.auth import CurrentUser

# 2026-03-10 11:00 IST
DEFAULT_ORDER_DATE = datetime(2026, 3, 10, 5, 30)
DEFAULT_DAY = "2026-03-10"


class _Counter:
    value = 0

    @classmethod
    def next(cls) -> int:
        cls.value += 1
        return cls.value


class CompanyFactory:

    @staticmethod
    async def create(name: Optional[str] = None, timezone: str = "Asia/Kolkata") -> Company:
        company = Company(name=name or f"Company {_Counter.next()}", timezone=timezone)
        await company.insert()
        return company


class CatalogItemFactory:

    @staticmethod
    async def create(
        company_id: Optional[PydanticObjectId] = None,
        name: Optional[str] = None,
        qty_per_batch: Optional[float] = None,
    ) -> CatalogItem:
        item = CatalogItem(
            name=name or f"Product {_Counter.next()}",
            company_id=company_id,
            qty_per_batch=qty_per_batch,
        )
        await item.insert()
        return item


class UserAccountFactory:

    @staticmethod
    async def create(
        company_id: Optional[PydanticObjectId] = None,
        role: UserRole = UserRole.sales,
        full_name: Optional[str] = None,
    ) -> UserAccount:
        n = _Counter.next()
        user = UserAccount(
            emp_id=f"EMP{n:04d}",
            username=f"user{n}",
            full_name=full_name,
            role=role,
            company_id=company_id,
        )
        await user.insert()
        return user


class OrderFactory:
    """
    Usage:
        await OrderFactory.create(company.id, seller.id, [(product.id, 10)])
    """

    @staticmethod
    async def create(
        company_id: Optional[PydanticObjectId],
        sales_person_id: Optional[PydanticObjectId],
        lines: Iterable[Tuple[PydanticObjectId, int]],
        order_date: datetime = DEFAULT_ORDER_DATE,
        status: OrderStatus = OrderStatus.pending,
    ) -> Order:
        order = Order(
            order_code=f"ORD-TEST-{_Counter.next():05d}",
            company_id=company_id,
            sales_person_id=sales_person_id,
            order_date=order_date,
            products=[OrderLine(product_id=pid, quantity=qty) for pid, qty in lines],
            status=status,
        )
        await order.insert()
        return order


def make_user(role: str = "Unit Head", company_id=None, emp_id: str = "EMP001", full_name: str = "Test User",
              user_id: Optional[str] = None, role2: Optional[str] = None) -> CurrentUser:
    return CurrentUser(
        user_id=user_id,
        emp_id=emp_id,
        role=role,
        role2=role2,
        full_name=full_name,
        company_id=str(company_id) if company_id else None,
    )
