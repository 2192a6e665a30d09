import json
import logging
from typing import List

import redis
from beanie import PydanticObjectId

from app.core.cache.cache_manager import get_dragonfly_client
from app.core.monitoring.prometheus_middleware import track_cache_operation
from app.core.schemas.production_group import ProductionGroupSnapshot
from app.core.setting import config

logger = logging.getLogger(__name__)

# -------------------------------------------------------------------
# PRODUCTION GROUP CACHE
# -------------------------------------------------------------------
# Only organisational data lives here. Summary rows are never cached:
# they are read straight from MongoDB so edits and approvals are always
# seen by the next request.


def _group_cache_key(company_id: PydanticObjectId) -> str:
    return f"production_groups:{company_id}"


async def _load_active_groups(company_id: PydanticObjectId) -> List[ProductionGroupSnapshot]:
    # Import model locally
    from app.core.models.production.production_group import ProductionGroup

    groups = await ProductionGroup.find(
        ProductionGroup.company_id == company_id,
        ProductionGroup.is_active == True
    ).sort("+name").to_list()
    return [ProductionGroupSnapshot.from_document(g) for g in groups]


async def refresh_production_group_cache(company_id: PydanticObjectId) -> List[ProductionGroupSnapshot]:
    """
    INVALIDATES -> FETCHES -> SAVES the active production groups of a company.

    Usage:
        Call this after POST / PUT / DELETE operations on production groups.

    Logic:
        1. Deletes old key.
        2. Fetches active groups from MongoDB (Beanie).
        3. Saves to Dragonfly with a fixed TTL (master data).

    A cache outage is logged and ignored; the fresh list is still returned.
    """
    cache_key = _group_cache_key(company_id)
    snapshots = await _load_active_groups(company_id)

    try:
        client = get_dragonfly_client()
        client.delete(cache_key)
        client.setex(
            cache_key,
            config.GROUP_CACHE_TTL_SECONDS,
            json.dumps([s.model_dump(mode="json") for s in snapshots])
        )
        track_cache_operation("production_groups_refresh")
        logger.info(
            f"Production Group Cache Refreshed: {cache_key} | "
            f"TTL: {config.GROUP_CACHE_TTL_SECONDS}s | Records: {len(snapshots)}"
        )
    except redis.RedisError as e:
        track_cache_operation("production_groups_refresh", error=True)
        logger.warning(f"⚠️ Could not refresh {cache_key}: {e}")

    return snapshots


async def get_active_production_groups(company_id: PydanticObjectId) -> List[ProductionGroupSnapshot]:
    """
    Active production groups of a company, cache first.

    Falls back to MongoDB on a miss (and repopulates) or when the cache is
    unreachable.
    """
    cache_key = _group_cache_key(company_id)

    try:
        cached = get_dragonfly_client().get(cache_key)
    except redis.RedisError as e:
        track_cache_operation("production_groups_get", error=True)
        logger.warning(f"⚠️ Cache read failed for {cache_key}, using MongoDB: {e}")
        return await _load_active_groups(company_id)

    if cached:
        track_cache_operation("production_groups_get", hit=True)
        return [ProductionGroupSnapshot(**g) for g in json.loads(cached)]

    track_cache_operation("production_groups_get", hit=False)
    return await refresh_production_group_cache(company_id)
