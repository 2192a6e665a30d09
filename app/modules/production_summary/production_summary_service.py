from typing import Any, Dict, List
import asyncio
import logging

from beanie import PydanticObjectId
from beanie.odm.operators.update.general import Set, Inc
from beanie.odm.queries.update import UpdateResponse
from fastapi import HTTPException
from pymongo.errors import DuplicateKeyError

from app.core.models.catalog import CatalogItem
from app.core.models.production.production_summary import (
    DailyProductSummary,
    SummaryStatus,
    PRODUCTION_INPUT_FIELDS,
)
from app.core.monitoring.prometheus_middleware import track_summary_operation, track_summary_conflict
from app.core.schemas.auth import CurrentUser
from app.core.schemas.production.production_summary import (
    DailySummaryResponse,
    GroupedSummary,
    ProductionInputUpdates,
    SummaryResponse,
)
from app.core.setting import config
from app.modules.production_summary.production_summary_aggregator import ProductionSummaryAggregator
from app.modules.production_summary.production_summary_calculator import ProductionSummaryCalculator
from app.modules.production_summary.summary_approval_service import SummaryApprovalService
from app.shared.cache_manager import get_active_production_groups
from app.shared.timezone import get_ist_now, parse_day, DAY_FORMAT

logger = logging.getLogger(__name__)


def validate_day(day: str) -> str:
    """Normalise a YYYY-MM-DD string or raise 400."""
    try:
        return parse_day(day).strftime(DAY_FORMAT)
    except (TypeError, ValueError):
        raise HTTPException(400, f"Invalid date format: {day}. Use YYYY-MM-DD")


class ProductionSummaryService:
    """
    Production-input side of the summary rows and the read views.

    Every input write recomputes all derived fields from the committed order
    total and resets approval to pending, in the same conditional update.
    """

    # ==================== DERIVATION ====================

    @staticmethod
    async def apply_production_inputs(
        product_id: PydanticObjectId,
        day: str,
        company_id: PydanticObjectId,
        inputs: Dict[str, Any],
    ) -> DailyProductSummary:
        """
        Write physical_stock / batch_adjusted / qty_per_batch and re-derive.

        Args:
            inputs: only the fields being changed; absent fields keep their
                stored values. Raw values are coerced (blank -> default).

        Raises:
            HTTPException 404: product not in catalog
            HTTPException 409: lost the row race on every retry
        """
        changes = {k: v for k, v in inputs.items() if k in PRODUCTION_INPUT_FIELDS}
        if not changes:
            raise HTTPException(400, "No production inputs provided")

        max_retries = config.SUMMARY_WRITE_MAX_RETRIES
        for attempt in range(max_retries):
            summary = await DailyProductSummary.by_key(product_id, day, company_id)
            if summary is None:
                summary = await ProductionSummaryService._ensure_summary(product_id, day, company_id)
                if summary is None:
                    # Created by someone else in between; read it on the next pass
                    continue

            merged = {
                "physical_stock": summary.physical_stock,
                "batch_adjusted": summary.batch_adjusted,
                "qty_per_batch": summary.qty_per_batch,
            }
            merged.update(changes)

            derived = ProductionSummaryCalculator.derive(
                summary.total_quantity,
                merged["physical_stock"],
                merged["batch_adjusted"],
                merged["qty_per_batch"],
            )

            updated = await DailyProductSummary.by_key(
                product_id, day, company_id, version=summary.version
            ).update(
                Set({
                    **derived,
                    "status": SummaryStatus.pending.value,
                    "approval": None,
                    "updated_at": get_ist_now(),
                }),
                Inc({"version": 1}),
                response_type=UpdateResponse.NEW_DOCUMENT,
            )
            if updated:
                logger.info(
                    f"Production inputs saved for {updated.product_name} on {day}: "
                    f"stock={derived['physical_stock']}, adjusted={derived['batch_adjusted']}, "
                    f"per_batch={derived['qty_per_batch']} -> produce_batches={derived['produce_batches']}"
                )
                track_summary_operation("derive", "success")
                return updated

            track_summary_conflict("derive")
            logger.warning(
                f"VERSION CONFLICT: production inputs for {product_id} on {day}, "
                f"attempt {attempt + 1}/{max_retries}"
            )
            await asyncio.sleep(0.1 * (2 ** attempt))

        track_summary_operation("derive", "conflict")
        raise HTTPException(
            409,
            f"Failed to save production inputs for product {product_id} on {day} "
            f"after {max_retries} retries (concurrent modification)"
        )

    @staticmethod
    async def _ensure_summary(
        product_id: PydanticObjectId,
        day: str,
        company_id: PydanticObjectId,
    ):
        """
        Lazily create the row for a catalog product.

        Orders are aggregated first so a row created here never shows a
        stale zero total. Returns None if another request won the insert.
        """
        product = await CatalogItem.get(product_id)
        if not product or not product.available_to(company_id):
            track_summary_operation("derive", "not_found")
            raise HTTPException(404, f"Product not found: {product_id}")

        summary = await ProductionSummaryAggregator.update_product_summary(product_id, day, company_id)
        if summary is not None:
            return summary

        day_value = parse_day(day)
        qty_per_batch = ProductionSummaryCalculator.coerce_qty_per_batch(product.qty_per_batch)
        summary = DailyProductSummary(
            product_id=product_id,
            date=day,
            company_id=company_id,
            product_name=product.name,
            year=day_value.year,
            month=day_value.month,
            day=day_value.day,
            **ProductionSummaryCalculator.derive(0, 0, 0, qty_per_batch),
        )
        try:
            await summary.insert()
        except DuplicateKeyError:
            return None

        logger.info(f"CREATED NEW: empty product summary for {product.name} on {day}")
        return summary

    # ==================== UPDATE DISPATCH ====================

    @staticmethod
    async def update_summary(
        product_id: PydanticObjectId,
        day: str,
        company_id: PydanticObjectId,
        updates: ProductionInputUpdates,
        current_user: CurrentUser,
    ) -> DailyProductSummary:
        """
        Apply a grid update: inputs first, then an explicit status change.

        Inputs together with status=approved is rejected; approving must be a
        separate request made after the new figures were seen.
        """
        inputs = updates.input_values()

        if inputs and updates.status == SummaryStatus.approved:
            raise HTTPException(
                400,
                "Production inputs and approval cannot be sent together. Save the inputs, then approve."
            )
        if not inputs and updates.status is None:
            raise HTTPException(400, "No updates provided")

        summary = None
        if inputs:
            summary = await ProductionSummaryService.apply_production_inputs(
                product_id, day, company_id, inputs
            )

        if updates.status == SummaryStatus.approved:
            summary = await SummaryApprovalService.approve(product_id, day, company_id, current_user)
        elif updates.status == SummaryStatus.pending and summary is None:
            summary = await SummaryApprovalService.mark_pending(product_id, day, company_id)

        return summary

    # ==================== READ OPERATIONS ====================

    @staticmethod
    async def get_summary(
        product_id: PydanticObjectId,
        day: str,
        company_id: PydanticObjectId,
    ) -> DailyProductSummary:
        summary = await DailyProductSummary.by_key(product_id, day, company_id)
        if not summary:
            raise HTTPException(404, f"Summary not found for product {product_id} on {day}")
        return summary

    @staticmethod
    async def get_daily_summary(company_id: PydanticObjectId, day: str) -> DailySummaryResponse:
        """
        All summary rows of the day, bucketed by active production group.

        A product listed in several groups appears under each of them; rows
        not in any group go to `ungrouped_products`.
        """
        summaries: List[DailyProductSummary] = await DailyProductSummary.find(
            DailyProductSummary.company_id == company_id,
            DailyProductSummary.date == day,
        ).sort("+product_name").to_list()

        groups = await get_active_production_groups(company_id)

        rows = {str(s.product_id): SummaryResponse.from_document(s) for s in summaries}
        grouped_ids = set()
        grouped: List[GroupedSummary] = []

        for group in groups:
            products = [rows[pid] for pid in group.items if pid in rows]
            grouped_ids.update(p.product_id for p in products)
            grouped.append(GroupedSummary(
                group_id=group.id,
                group_name=group.name,
                qty_per_batch=group.qty_per_batch,
                qty_achieved_per_batch=group.qty_achieved_per_batch,
                total_items=group.total_items,
                products=products,
            ))

        ungrouped = [row for pid, row in rows.items() if pid not in grouped_ids]
        approved_count = sum(1 for s in summaries if s.status == SummaryStatus.approved)

        return DailySummaryResponse(
            date=day,
            company_id=str(company_id),
            total_products=len(summaries),
            pending_count=len(summaries) - approved_count,
            approved_count=approved_count,
            production_groups=grouped,
            ungrouped_products=ungrouped,
        )
