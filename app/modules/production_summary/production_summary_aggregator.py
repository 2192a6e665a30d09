from datetime import date as date_type, datetime
from typing import Optional, Union
import asyncio
import logging

from beanie import PydanticObjectId
from beanie.odm.operators.update.general import Set, Inc
from beanie.odm.queries.update import UpdateResponse
from fastapi import HTTPException
from pymongo.errors import DuplicateKeyError

from app.core.models.catalog import CatalogItem
from app.core.models.production.production_summary import DailyProductSummary
from app.core.monitoring.prometheus_middleware import track_summary_operation, track_summary_conflict
from app.core.setting import config
from app.modules.orders.order_store import OrderStore
from app.modules.production_summary.production_summary_calculator import ProductionSummaryCalculator
from app.shared.company_scope import get_company_timezone
from app.shared.timezone import get_ist_now, to_company_day, company_day_bounds, parse_day

logger = logging.getLogger(__name__)


class ProductionSummaryAggregator:
    """
    Keeps DailyProductSummary rows in step with the order collection.

    ARCHITECTURE DECISION:
    - Store of Truth: Orders. A summary row is always rebuilt from a full
      re-scan of the day's orders, never patched incrementally.
    - Writes: compare-and-set on `version`. The row version is read BEFORE the
      order scan, so an order change that lands mid-scan makes the write lose
      and the scan is repeated.
    - Production inputs and approval status are never touched here.
    """

    @staticmethod
    async def update_product_summary(
        product_id: PydanticObjectId,
        order_date: Union[datetime, date_type, str],
        company_id: Optional[PydanticObjectId],
    ) -> Optional[DailyProductSummary]:
        """
        Recompute one summary row from the orders of that product/day/company.

        Returns:
            The committed row, or None when there is nothing to store
            (no company scope, or no row yet and no matching orders).

        Raises:
            HTTPException 404: product not in the company's catalog
            HTTPException 409: lost the row race on every retry
        """
        if not company_id:
            logger.warning(f"Skipping summary aggregation for product {product_id}: no company scope")
            track_summary_operation("aggregate", "skipped")
            return None

        product = await CatalogItem.get(product_id)
        if not product or not product.available_to(company_id):
            track_summary_operation("aggregate", "not_found")
            raise HTTPException(404, f"Product not found: {product_id}")

        tz_name = await get_company_timezone(company_id)
        try:
            day = to_company_day(order_date, tz_name)
        except ValueError:
            raise HTTPException(400, f"Invalid date format: {order_date}")
        window_start, window_end = company_day_bounds(day, tz_name)

        max_retries = config.SUMMARY_WRITE_MAX_RETRIES
        for attempt in range(max_retries):
            summary = await DailyProductSummary.by_key(product_id, day, company_id)

            breakdown = await OrderStore.sales_breakdown(product_id, company_id, window_start, window_end)
            total_quantity, total_orders = ProductionSummaryCalculator.summarize_breakdown(breakdown)

            if summary is None:
                if not breakdown:
                    logger.info(f"No orders for {product.name} on {day}; summary not created")
                    track_summary_operation("aggregate", "skipped")
                    return None

                created = await ProductionSummaryAggregator._insert_summary(
                    product, day, company_id, breakdown, total_quantity, total_orders
                )
                if created:
                    track_summary_operation("aggregate", "success")
                    return created
            else:
                derived = ProductionSummaryCalculator.derive(
                    total_quantity,
                    summary.physical_stock,
                    summary.batch_adjusted,
                    summary.qty_per_batch,
                )
                now = get_ist_now()
                updated = await DailyProductSummary.by_key(
                    product_id, day, company_id, version=summary.version
                ).update(
                    Set({
                        "sales_breakdown": [entry.model_dump() for entry in breakdown],
                        "total_quantity": total_quantity,
                        "total_orders": total_orders,
                        "to_be_produced_day": derived["to_be_produced_day"],
                        "production_final_batches": derived["production_final_batches"],
                        "produce_batches": derived["produce_batches"],
                        "to_be_produced_batches": derived["to_be_produced_batches"],
                        "expiry_shortage": derived["expiry_shortage"],
                        "last_aggregated_at": now,
                        "updated_at": now,
                    }),
                    Inc({"version": 1}),
                    response_type=UpdateResponse.NEW_DOCUMENT,
                )
                if updated:
                    logger.info(
                        f"Updated product summary for {product.name} on {day}: "
                        f"total_quantity={total_quantity}, total_orders={total_orders}"
                    )
                    track_summary_operation("aggregate", "success")
                    return updated

            track_summary_conflict("aggregate")
            logger.warning(
                f"VERSION CONFLICT: summary {product.name} on {day}, attempt {attempt + 1}/{max_retries}"
            )
            await asyncio.sleep(0.1 * (2 ** attempt))

        track_summary_operation("aggregate", "conflict")
        raise HTTPException(
            409,
            f"Failed to update summary for {product.name} on {day} after {max_retries} retries (concurrent modification)"
        )

    @staticmethod
    async def _insert_summary(
        product: CatalogItem,
        day: str,
        company_id: PydanticObjectId,
        breakdown,
        total_quantity: int,
        total_orders: int,
    ) -> Optional[DailyProductSummary]:
        """Create the row; None when another request created it first."""
        qty_per_batch = ProductionSummaryCalculator.coerce_qty_per_batch(product.qty_per_batch)
        derived = ProductionSummaryCalculator.derive(total_quantity, 0, 0, qty_per_batch)
        day_value = parse_day(day)
        now = get_ist_now()

        summary = DailyProductSummary(
            product_id=product.id,
            date=day,
            company_id=company_id,
            product_name=product.name,
            year=day_value.year,
            month=day_value.month,
            day=day_value.day,
            sales_breakdown=breakdown,
            total_quantity=total_quantity,
            total_orders=total_orders,
            last_aggregated_at=now,
            **derived,
        )
        try:
            await summary.insert()
        except DuplicateKeyError:
            return None

        logger.info(
            f"CREATED NEW: product summary for {product.name} on {day} "
            f"(total_quantity={total_quantity}, qty_per_batch={qty_per_batch})"
        )
        return summary
