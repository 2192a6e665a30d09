import logging
from typing import List

from beanie import PydanticObjectId
from fastapi import HTTPException
from pymongo.errors import DuplicateKeyError

from app.core.models.catalog import CatalogItem
from app.core.models.production.production_group import ProductionGroup
from app.core.schemas.auth import CurrentUser
from app.core.schemas.production_group import (
    ProductionGroupCreate,
    ProductionGroupUpdate,
    ProductionGroupTimings,
)
from app.shared.cache_manager import refresh_production_group_cache
from app.shared.company_scope import parse_object_id
from app.shared.timezone import get_ist_now

logger = logging.getLogger(__name__)


class ProductionGroupService:
    """
    CRUD for production groups.

    Groups only organise products for display; writing them never touches
    summary rows. Every write refreshes the company's group cache.
    """

    @staticmethod
    async def _validate_items(item_ids: List[str], company_id: PydanticObjectId) -> List[PydanticObjectId]:
        """Resolve catalog ids, dropping duplicates while keeping order."""
        ids: List[PydanticObjectId] = []
        for raw in item_ids:
            pid = parse_object_id(raw, "item id")
            if pid not in ids:
                ids.append(pid)
        if not ids:
            return ids

        found = await CatalogItem.find({"_id": {"$in": ids}}).to_list()
        usable = {item.id for item in found if item.available_to(company_id)}
        missing = [str(pid) for pid in ids if pid not in usable]
        if missing:
            raise HTTPException(404, f"Catalog items not found: {', '.join(missing)}")
        return ids

    @staticmethod
    async def _get_group(group_id: str, company_id: PydanticObjectId) -> ProductionGroup:
        group = await ProductionGroup.get(parse_object_id(group_id, "group_id"))
        if not group or not group.is_active or group.company_id != company_id:
            raise HTTPException(404, f"Production group not found: {group_id}")
        return group

    @staticmethod
    async def _save(group: ProductionGroup, insert: bool = False):
        try:
            if insert:
                await group.insert()
            else:
                await group.save()
        except DuplicateKeyError:
            raise HTTPException(409, f"Production group '{group.name}' already exists")

    # ==================== CREATE / READ ====================

    @staticmethod
    async def create_group(
        payload: ProductionGroupCreate,
        company_id: PydanticObjectId,
        current_user: CurrentUser,
    ) -> ProductionGroup:
        items = await ProductionGroupService._validate_items(payload.items, company_id)

        group = ProductionGroup(
            name=payload.name,
            description=payload.description,
            company_id=company_id,
            created_by=current_user.emp_id,
            items=items,
            qty_per_batch=payload.qty_per_batch,
            qty_achieved_per_batch=payload.qty_achieved_per_batch,
            unit_head_or_manager=payload.unit_head_or_manager,
        )
        group.touch_items()
        await ProductionGroupService._save(group, insert=True)

        logger.info(f"Production group '{group.name}' created with {group.total_items} items by {current_user.emp_id}")
        await refresh_production_group_cache(company_id)
        return group

    @staticmethod
    async def list_groups(company_id: PydanticObjectId) -> List[ProductionGroup]:
        return await ProductionGroup.find(
            ProductionGroup.company_id == company_id,
            ProductionGroup.is_active == True
        ).sort("+name").to_list()

    # ==================== UPDATE ====================

    @staticmethod
    async def update_group(
        group_id: str,
        payload: ProductionGroupUpdate,
        company_id: PydanticObjectId,
    ) -> ProductionGroup:
        group = await ProductionGroupService._get_group(group_id, company_id)
        changes = payload.model_dump(exclude_unset=True)

        if "items" in changes and changes["items"] is not None:
            group.items = await ProductionGroupService._validate_items(changes.pop("items"), company_id)
        else:
            changes.pop("items", None)

        if changes.get("name") is not None:
            changes["name"] = changes["name"].strip()
            if not changes["name"]:
                raise HTTPException(400, "Group name cannot be blank")

        for field, value in changes.items():
            if value is None and field in ("name", "qty_per_batch", "qty_achieved_per_batch"):
                continue
            setattr(group, field, value)

        group.touch_items()
        await ProductionGroupService._save(group)

        logger.info(f"Production group '{group.name}' updated ({group.total_items} items)")
        await refresh_production_group_cache(company_id)
        return group

    @staticmethod
    async def update_timings(
        group_id: str,
        payload: ProductionGroupTimings,
        company_id: PydanticObjectId,
    ) -> ProductionGroup:
        """Shift timing of the group: moulding / unloading times and production loss."""
        group = await ProductionGroupService._get_group(group_id, company_id)

        for field, value in payload.model_dump(exclude_unset=True).items():
            if field == "production_loss" and value is None:
                continue
            setattr(group, field, value)
        group.updated_at = get_ist_now()
        await group.save()

        logger.info(f"Timings updated for production group '{group.name}'")
        await refresh_production_group_cache(company_id)
        return group

    # ==================== DELETE ====================

    @staticmethod
    async def delete_group(group_id: str, company_id: PydanticObjectId) -> dict:
        """Soft delete: the group disappears from listings and the daily view."""
        group = await ProductionGroupService._get_group(group_id, company_id)
        group.is_active = False
        group.updated_at = get_ist_now()
        await group.save()

        logger.info(f"Production group '{group.name}' deactivated")
        await refresh_production_group_cache(company_id)
        return {"message": f"Production group '{group.name}' deleted"}
