from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from app.core.auth.deps import require_roles
from app.core.schemas.auth import CurrentUser
from app.core.schemas.production_group import (
    ProductionGroupCreate,
    ProductionGroupResponse,
    ProductionGroupTimings,
    ProductionGroupUpdate,
)
from app.modules.production_groups.production_group_service import ProductionGroupService
from app.shared.company_scope import resolve_company_scope

router = APIRouter(tags=["Production Groups"], prefix="/production-groups")

GROUP_ROLES = ("Super Admin", "Unit Head", "Unit Manager")


@router.post(
    "",
    response_model=ProductionGroupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Production Group",
    description="""
    Groups catalog items for the daily production view.

    - Group names are unique per company.
    - Items must exist in the catalog.

    **Role Required:** Super Admin (pass `company_id`), Unit Head, Unit Manager.
    """
)
async def create_group(
    payload: ProductionGroupCreate,
    current_user: CurrentUser = Depends(require_roles(*GROUP_ROLES))
):
    scope = resolve_company_scope(current_user, payload.company_id)
    group = await ProductionGroupService.create_group(payload, scope, current_user)
    return ProductionGroupResponse.from_document(group)


@router.get("", response_model=List[ProductionGroupResponse], summary="List Production Groups")
async def list_groups(
    company_id: Optional[str] = Query(None, description="Company to read (Super Admin only)"),
    current_user: CurrentUser = Depends(require_roles(*GROUP_ROLES))
):
    scope = resolve_company_scope(current_user, company_id)
    groups = await ProductionGroupService.list_groups(scope)
    return [ProductionGroupResponse.from_document(g) for g in groups]


@router.put("/{group_id}", response_model=ProductionGroupResponse, summary="Update Production Group")
async def update_group(
    payload: ProductionGroupUpdate,
    group_id: str = Path(...),
    company_id: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(require_roles(*GROUP_ROLES))
):
    scope = resolve_company_scope(current_user, company_id)
    group = await ProductionGroupService.update_group(group_id, payload, scope)
    return ProductionGroupResponse.from_document(group)


@router.put(
    "/{group_id}/timings",
    response_model=ProductionGroupResponse,
    summary="Update Shift Timings",
    description="Sets moulding time, unloading time and production loss of the group."
)
async def update_group_timings(
    payload: ProductionGroupTimings,
    group_id: str = Path(...),
    company_id: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(require_roles(*GROUP_ROLES))
):
    scope = resolve_company_scope(current_user, company_id)
    group = await ProductionGroupService.update_timings(group_id, payload, scope)
    return ProductionGroupResponse.from_document(group)


@router.delete("/{group_id}", summary="Delete Production Group")
async def delete_group(
    group_id: str = Path(...),
    company_id: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(require_roles("Super Admin", "Unit Head"))
):
    scope = resolve_company_scope(current_user, company_id)
    return await ProductionGroupService.delete_group(group_id, scope)
