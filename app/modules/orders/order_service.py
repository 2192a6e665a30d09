import logging
import uuid
from datetime import datetime
from typing import Iterable, List, Optional, Set as SetType, Tuple

from beanie import PydanticObjectId
from fastapi import HTTPException
from pymongo.errors import DuplicateKeyError

from app.core.models.catalog import CatalogItem
from app.core.models.order import Order, OrderLine, OrderStatus, StatusHistoryEntry
from app.core.monitoring.prometheus_middleware import track_order_operation, track_summary_operation
from app.core.schemas.auth import CurrentUser
from app.core.schemas.orders import OrderCreate, OrderUpdate, OrderStatusUpdate, OrderLineRequest
from app.modules.orders.order_store import OrderStore
from app.modules.production_summary.production_summary_aggregator import ProductionSummaryAggregator
from app.modules.production_summary.production_summary_calculator import ProductionSummaryCalculator
from app.shared.company_scope import CROSS_COMPANY_ROLES, parse_object_id, resolve_company_scope
from app.shared.timezone import get_ist_now, to_naive_utc

logger = logging.getLogger(__name__)

# Orders in these states are closed for line edits
LOCKED_STATUSES = (OrderStatus.cancelled, OrderStatus.completed)

SummaryKey = Tuple[PydanticObjectId, datetime]


class OrderService:
    """
    Sales order writes.

    Every write refreshes the production summaries of the (product, day)
    pairs it touched. The refresh is best-effort: a failure is logged and
    counted, and the order write still stands.
    """

    # ==================== CREATE ====================

    @staticmethod
    async def create_order(payload: OrderCreate, current_user: CurrentUser) -> Order:
        if payload.company_id:
            company_id = resolve_company_scope(current_user, payload.company_id)
        elif current_user.company_id:
            company_id = parse_object_id(current_user.company_id, "company_id")
        else:
            company_id = None

        sales_person_id = payload.sales_person_id or current_user.user_id
        sales_person_oid = parse_object_id(sales_person_id, "sales_person_id") if sales_person_id else None
        owner_company = company_id or await OrderStore.company_for_sales_person(sales_person_oid)
        lines = await OrderService._build_lines(payload.products, owner_company)
        now = get_ist_now()

        order = Order(
            order_code=payload.order_code or OrderService._generate_order_code(),
            customer_id=parse_object_id(payload.customer_id, "customer_id") if payload.customer_id else None,
            customer_name=payload.customer_name,
            sales_person_id=sales_person_oid,
            company_id=company_id,
            order_date=payload.order_date,
            products=lines,
            total_amount=OrderService._order_total(lines),
            status=OrderStatus.pending,
            status_history=[StatusHistoryEntry(
                status=OrderStatus.pending,
                updated_by=current_user.emp_id,
                updated_at=now,
                remarks="Order created",
            )],
            notes=payload.notes,
            created_at=now,
            updated_at=now,
        )

        try:
            await order.insert()
        except DuplicateKeyError:
            raise HTTPException(409, f"Order code already exists: {order.order_code}")

        logger.info(f"🧾 Order {order.order_code} created by {current_user.emp_id} ({len(lines)} lines)")
        track_order_operation("created")

        await OrderService._refresh_summaries_safely(order, OrderService._summary_keys(order))
        return order

    # ==================== READ ====================

    @staticmethod
    async def get_order(order_id: str, current_user: CurrentUser) -> Order:
        order = await Order.get(parse_object_id(order_id, "order_id"))
        if not order:
            raise HTTPException(404, f"Order not found: {order_id}")
        await OrderService._check_company_access(order, current_user)
        return order

    # ==================== UPDATE ====================

    @staticmethod
    async def update_order(order_id: str, payload: OrderUpdate, current_user: CurrentUser) -> Order:
        """
        Edit lines / date. Summaries of both the old and the new
        (product, day) pairs are refreshed, so a product moved off an order
        or to another day stops counting where it was.
        """
        order = await OrderService.get_order(order_id, current_user)
        if order.status in LOCKED_STATUSES:
            raise HTTPException(400, f"Cannot edit an order that is {order.status.value}")

        old_keys = OrderService._summary_keys(order)

        changes = payload.model_dump(exclude_unset=True)
        if "customer_name" in changes:
            order.customer_name = payload.customer_name
        if "notes" in changes:
            order.notes = payload.notes
        if payload.order_date is not None:
            order.order_date = to_naive_utc(payload.order_date)
        if payload.products is not None:
            owner_company = await OrderStore.company_for_order(order)
            order.products = await OrderService._build_lines(payload.products, owner_company)
            order.total_amount = OrderService._order_total(order.products)

        order.updated_at = get_ist_now()
        await order.save()

        logger.info(f"Order {order.order_code} updated by {current_user.emp_id}")
        track_order_operation("updated")

        await OrderService._refresh_summaries_safely(order, old_keys | OrderService._summary_keys(order))
        return order

    @staticmethod
    async def update_status(order_id: str, payload: OrderStatusUpdate, current_user: CurrentUser) -> Order:
        """Move the order through its lifecycle and record the change in its history."""
        order = await OrderService.get_order(order_id, current_user)

        previous = order.status
        now = get_ist_now()
        order.status = payload.status
        order.status_history.append(StatusHistoryEntry(
            status=payload.status,
            updated_by=current_user.emp_id,
            updated_at=now,
            remarks=payload.remarks,
        ))
        order.updated_at = now
        await order.save()

        logger.info(
            f"Order {order.order_code} status {previous.value} → {payload.status.value} "
            f"by {current_user.emp_id}"
        )
        track_order_operation("status_changed")

        await OrderService._refresh_summaries_safely(order, OrderService._summary_keys(order))
        return order

    # ==================== DELETE ====================

    @staticmethod
    async def delete_order(order_id: str, current_user: CurrentUser) -> dict:
        order = await OrderService.get_order(order_id, current_user)
        keys = OrderService._summary_keys(order)

        await order.delete()

        logger.info(f"🗑️ Order {order.order_code} deleted by {current_user.emp_id}")
        track_order_operation("deleted")

        await OrderService._refresh_summaries_safely(order, keys)
        return {"message": f"Order {order.order_code} deleted"}

    # ==================== HELPERS ====================

    @staticmethod
    def _generate_order_code() -> str:
        return f"ORD-{get_ist_now():%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"

    @staticmethod
    async def _build_lines(
        lines: List[OrderLineRequest],
        company_id: Optional[PydanticObjectId],
    ) -> List[OrderLine]:
        """Validate products against the company's catalog and price the lines."""
        product_ids = [parse_object_id(line.product_id, "product_id") for line in lines]

        found = await CatalogItem.find({"_id": {"$in": product_ids}}).to_list()
        found_ids = {item.id for item in found if item.available_to(company_id)}
        missing = [str(pid) for pid in product_ids if pid not in found_ids]
        if missing:
            raise HTTPException(404, f"Products not found: {', '.join(missing)}")

        return [
            OrderLine(
                product_id=pid,
                quantity=line.quantity,
                price=line.price,
                total=ProductionSummaryCalculator.round2(line.quantity * line.price),
            )
            for pid, line in zip(product_ids, lines)
        ]

    @staticmethod
    def _order_total(lines: Iterable[OrderLine]) -> float:
        return ProductionSummaryCalculator.round2(sum(line.total for line in lines))

    @staticmethod
    def _summary_keys(order: Order) -> SetType[SummaryKey]:
        return {(pid, order.order_date) for pid in order.product_ids()}

    @staticmethod
    async def _check_company_access(order: Order, current_user: CurrentUser):
        """Orders without a company belong to their sales person's company."""
        if current_user.role in CROSS_COMPANY_ROLES:
            return
        owner_company = await OrderStore.company_for_order(order)
        if owner_company is None or str(owner_company) != str(current_user.company_id):
            raise HTTPException(403, "Insufficient permissions for this order")

    @staticmethod
    async def _refresh_summaries_safely(order: Order, keys: Iterable[SummaryKey]):
        """Re-aggregate the touched summaries. Never raises."""
        try:
            company_id = await OrderStore.company_for_order(order)
        except Exception as e:
            logger.error(f"❌ Could not resolve company for order {order.order_code}: {e}", exc_info=True)
            track_summary_operation("aggregate", "error")
            return

        for product_id, order_date in keys:
            try:
                await ProductionSummaryAggregator.update_product_summary(product_id, order_date, company_id)
            except Exception as e:
                logger.error(
                    f"❌ Summary refresh failed for product {product_id} "
                    f"(order {order.order_code}, {order_date}): {e}",
                    exc_info=True
                )
                track_summary_operation("aggregate", "error")
