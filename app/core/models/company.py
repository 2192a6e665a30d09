from datetime import datetime
from beanie import Document
from pydantic import Field
from app.shared.timezone import get_ist_now


class Company(Document):
    """
    A manufacturing unit (tenant). Every order, catalog item and summary row
    belongs to exactly one company.
    """

    name: str = Field(..., description="Display name of the unit")
    timezone: str = Field(
        default="Asia/Kolkata",
        description="IANA timezone used to map order timestamps onto calendar days."
    )
    is_active: bool = True
    created_at: datetime = Field(default_factory=get_ist_now)

    class Settings:
        name = "companies"
