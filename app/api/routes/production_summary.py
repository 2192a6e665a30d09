from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from app.core.auth.deps import require_roles
from app.core.schemas.auth import CurrentUser
from app.core.schemas.production.production_summary import (
    ApproveRequest,
    BulkApprovalResponse,
    BulkApproveRequest,
    DailySummaryResponse,
    RecomputeRequest,
    SummaryResponse,
    UpdateSummaryRequest,
)
from app.modules.production_summary.production_summary_aggregator import ProductionSummaryAggregator
from app.modules.production_summary.production_summary_service import ProductionSummaryService, validate_day
from app.modules.production_summary.summary_approval_service import SummaryApprovalService
from app.shared.company_scope import parse_object_id, resolve_company_scope

router = APIRouter(tags=["Production Summary"], prefix="/production-summary")

SUMMARY_ROLES = ("Super Admin", "Unit Head", "Unit Manager")
RECOMPUTE_ROLES = ("Super Admin", "Unit Head")


# ==================== READ OPERATIONS ====================

@router.get(
    "/daily",
    response_model=DailySummaryResponse,
    summary="Get Daily Production Summary",
    description="""
    Returns every product summary of the day, grouped by active production group.

    **Per product:**
    - **Sales breakdown:** ordered quantity per sales person (cancelled / rejected orders excluded).
    - **Inputs:** physical stock, batch adjusted, quantity per batch.
    - **Derived:** to be produced, final batches, produce batches, expiry / shortage.
    - **Status:** pending or approved, with `version` for conditional approval.

    Products not in any group are listed under `ungrouped_products`.

    **Role Required:** Super Admin (pass `company_id`), Unit Head, Unit Manager.
    """
)
async def get_daily_summary(
    date: str = Query(..., pattern=r"^\d{4}-\d{2}-\d{2}$", description="Summary date in YYYY-MM-DD format"),
    company_id: Optional[str] = Query(None, description="Company to read (Super Admin only)"),
    current_user: CurrentUser = Depends(require_roles(*SUMMARY_ROLES))
):
    day = validate_day(date)
    scope = resolve_company_scope(current_user, company_id)
    return await ProductionSummaryService.get_daily_summary(scope, day)


@router.get(
    "/product/{product_id}",
    response_model=SummaryResponse,
    summary="Get Product Summary",
    description="Returns the summary row of one product on one day. **404** if no row exists yet."
)
async def get_product_summary(
    product_id: str = Path(..., description="Catalog item id"),
    date: str = Query(..., pattern=r"^\d{4}-\d{2}-\d{2}$"),
    company_id: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(require_roles(*SUMMARY_ROLES))
):
    day = validate_day(date)
    scope = resolve_company_scope(current_user, company_id)
    summary = await ProductionSummaryService.get_summary(
        parse_object_id(product_id, "product_id"), day, scope
    )
    return SummaryResponse.from_document(summary)


# ==================== WRITE OPERATIONS ====================

@router.post(
    "/update",
    response_model=SummaryResponse,
    summary="Update Production Inputs / Status",
    description="""
    Saves grid inputs for one product and day and recalculates the derived figures.

    **Logic:**
    - Only the fields sent are changed. Blank or unparseable values fall back to defaults
      (stock / batch adjusted → 0, quantity per batch → 1).
    - Any input change resets the row to **pending**.
    - `status: "pending"` reopens an approved row; `status: "approved"` approves it.
    - Inputs and `status: "approved"` in the same request are rejected (**400**).
    - Concurrent edits of the same row are serialised; after repeated conflicts the API returns **409**.

    **Role Required:** Super Admin, Unit Head, Unit Manager.
    """
)
async def update_summary(
    payload: UpdateSummaryRequest,
    current_user: CurrentUser = Depends(require_roles(*SUMMARY_ROLES))
):
    day = validate_day(payload.date)
    scope = resolve_company_scope(current_user, payload.company_id)
    summary = await ProductionSummaryService.update_summary(
        parse_object_id(payload.product_id, "product_id"),
        day,
        scope,
        payload.updates,
        current_user,
    )
    return SummaryResponse.from_document(summary)


@router.post(
    "/approve",
    response_model=SummaryResponse,
    summary="Approve Product Summary",
    description="""
    Approves one summary row.

    - Already approved rows are returned unchanged.
    - Pass `expected_version` (from the row you reviewed) to make sure the numbers
      did not change in the meantime; a mismatch returns **409**.

    **Role Required:** Super Admin, Unit Head, Unit Manager.
    """
)
async def approve_summary(
    payload: ApproveRequest,
    current_user: CurrentUser = Depends(require_roles(*SUMMARY_ROLES))
):
    day = validate_day(payload.date)
    scope = resolve_company_scope(current_user, payload.company_id)
    summary = await SummaryApprovalService.approve(
        parse_object_id(payload.product_id, "product_id"),
        day,
        scope,
        current_user,
        expected_version=payload.expected_version,
    )
    return SummaryResponse.from_document(summary)


@router.post(
    "/bulk-approve",
    response_model=BulkApprovalResponse,
    status_code=status.HTTP_200_OK,
    summary="Bulk Approve Product Summaries",
    description="""
    Approves several products of the same day.

    Each product is processed independently: failures (missing row, bad id) are
    reported per item in `failures` and do not stop the others.

    **Role Required:** Super Admin, Unit Head, Unit Manager.
    """
)
async def bulk_approve(
    payload: BulkApproveRequest,
    current_user: CurrentUser = Depends(require_roles(*SUMMARY_ROLES))
):
    day = validate_day(payload.date)
    scope = resolve_company_scope(current_user, payload.company_id)
    return await SummaryApprovalService.bulk_approve(payload.product_ids, day, scope, current_user)


@router.post(
    "/recompute",
    response_model=SummaryResponse,
    summary="Recompute Product Summary",
    description="""
    Rebuilds the order aggregate of one product and day from the orders collection.
    Production inputs and approval status are kept.

    **Role Required:** Super Admin, Unit Head.
    """
)
async def recompute_summary(
    payload: RecomputeRequest,
    current_user: CurrentUser = Depends(require_roles(*RECOMPUTE_ROLES))
):
    day = validate_day(payload.date)
    scope = resolve_company_scope(current_user, payload.company_id)
    summary = await ProductionSummaryAggregator.update_product_summary(
        parse_object_id(payload.product_id, "product_id"), day, scope
    )
    if summary is None:
        raise HTTPException(404, f"No orders for product {payload.product_id} on {day}")
    return SummaryResponse.from_document(summary)
