from datetime import datetime
from enum import Enum
from typing import Optional
from beanie import Document, PydanticObjectId
from pydantic import Field
from pymongo import IndexModel, ASCENDING
from app.shared.timezone import get_ist_now


class UserRole(str, Enum):
    super_admin = "Super Admin"
    unit_head = "Unit Head"
    unit_manager = "Unit Manager"
    sales = "Sales"
    production = "Production"
    packing = "Packing"
    dispatch = "Dispatch"
    accounts = "Accounts"


class UserAccount(Document):
    """
    Login identity and company assignment.

    Sales persons are user accounts with role 'Sales'; their names are shown
    in the per-product sales breakdown.
    """

    emp_id: str
    username: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    role: UserRole
    role2: Optional[str] = None
    company_id: Optional[PydanticObjectId] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=get_ist_now)

    class Settings:
        name = "user_accounts"
        indexes = [
            IndexModel([("emp_id", ASCENDING)], unique=True),
            [("company_id", ASCENDING), ("role", ASCENDING)],
        ]

    @property
    def display_name(self) -> str:
        return self.full_name or self.username or "Unknown"
