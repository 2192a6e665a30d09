"""
Company (tenant) scoping helpers shared by the summary, order and group routes.
"""

import logging
from typing import Optional

from beanie import PydanticObjectId
from bson.errors import InvalidId
from fastapi import HTTPException

from app.core.models.company import Company
from app.core.schemas.auth import CurrentUser
from app.core.setting import config

logger = logging.getLogger(__name__)

# Roles that may act on any company by passing company_id explicitly
CROSS_COMPANY_ROLES = ("Super Admin",)


def parse_object_id(value, field_name: str = "id") -> PydanticObjectId:
    """Convert a string to an ObjectId or raise 400."""
    if isinstance(value, PydanticObjectId):
        return value
    try:
        return PydanticObjectId(str(value))
    except (InvalidId, TypeError):
        raise HTTPException(400, f"Invalid {field_name} format: {value}")


def resolve_company_scope(
    current_user: CurrentUser,
    company_id: Optional[str] = None
) -> PydanticObjectId:
    """
    Decide which company a request operates on.

    - Super Admin: must name the company explicitly.
    - Everyone else: pinned to their own company; naming another one is 403.
    """
    if current_user.role in CROSS_COMPANY_ROLES:
        if not company_id:
            raise HTTPException(400, "company_id is required for this role")
        return parse_object_id(company_id, "company_id")

    if not current_user.company_id:
        raise HTTPException(403, "User not assigned to any company")

    if company_id and str(company_id) != str(current_user.company_id):
        raise HTTPException(403, "Insufficient permissions for this company")

    return parse_object_id(current_user.company_id, "company_id")


async def get_company_timezone(company_id: Optional[PydanticObjectId]) -> str:
    """Timezone of the company, DEFAULT_TIMEZONE when unknown."""
    if company_id is None:
        return config.DEFAULT_TIMEZONE
    company = await Company.get(company_id)
    if not company or not company.timezone:
        logger.debug(f"No timezone on company {company_id}, using {config.DEFAULT_TIMEZONE}")
        return config.DEFAULT_TIMEZONE
    return company.timezone
