import logging
from datetime import datetime
from typing import Dict, List, Optional

from beanie import PydanticObjectId

from app.core.models.order import Order, EXCLUDED_FROM_SUMMARY
from app.core.models.user import UserAccount
from app.core.models.production.production_summary import SalesBreakdownEntry

logger = logging.getLogger(__name__)


class OrderStore:
    """
    Read side of the order collection as seen by the production summary.

    The summary never writes orders; it only asks for per-sales-person
    aggregates within a company and a day window.
    """

    @staticmethod
    async def sales_person_ids_for_company(company_id: PydanticObjectId) -> List[PydanticObjectId]:
        """
        Accounts assigned to the company, whatever their role.

        Orders saved without a company id are attributed to the company of
        their sales person through this join. Any account can be named as
        sales person, so the role is not filtered here.
        """
        users = await UserAccount.find(UserAccount.company_id == company_id).to_list()
        return [u.id for u in users]

    @staticmethod
    async def company_for_sales_person(
        sales_person_id: Optional[PydanticObjectId],
    ) -> Optional[PydanticObjectId]:
        """Write-side counterpart of the join above."""
        if not sales_person_id:
            return None
        sales_person = await UserAccount.get(sales_person_id)
        return sales_person.company_id if sales_person else None

    @staticmethod
    async def company_for_order(order: Order) -> Optional[PydanticObjectId]:
        """Company the order counts towards: its own, else its sales person's."""
        if order.company_id:
            return order.company_id
        return await OrderStore.company_for_sales_person(order.sales_person_id)

    @staticmethod
    async def build_company_match(company_id: PydanticObjectId) -> Dict:
        """Mongo filter selecting orders that belong to the company."""
        sales_person_ids = await OrderStore.sales_person_ids_for_company(company_id)
        if not sales_person_ids:
            return {"company_id": company_id}
        return {
            "$or": [
                {"company_id": company_id},
                {"company_id": None, "sales_person_id": {"$in": sales_person_ids}},
            ]
        }

    @staticmethod
    async def sales_breakdown(
        product_id: PydanticObjectId,
        company_id: PydanticObjectId,
        window_start: datetime,
        window_end: datetime,
    ) -> List[SalesBreakdownEntry]:
        """
        Aggregate ordered quantity of one product per sales person.

        Args:
            product_id: catalog item id
            company_id: tenant
            window_start / window_end: naive-UTC [start, end) day window

        Returns:
            Entries sorted by sales person name, then id (stable across calls).
        """
        company_match = await OrderStore.build_company_match(company_id)

        pipeline = [
            # Step 1: Orders of the company on the day that contain the product
            {
                "$match": {
                    **company_match,
                    "order_date": {"$gte": window_start, "$lt": window_end},
                    "products.product_id": product_id,
                    "status": {"$nin": list(EXCLUDED_FROM_SUMMARY)},
                }
            },
            # Step 2: One row per order line, keep only this product's lines
            {"$unwind": "$products"},
            {"$match": {"products.product_id": product_id}},
            # Step 3: Group by sales person
            {
                "$group": {
                    "_id": "$sales_person_id",
                    "total_quantity": {"$sum": "$products.quantity"},
                    "order_ids": {"$addToSet": "$_id"},
                }
            },
        ]

        rows = await Order.aggregate(pipeline).to_list()

        names = await OrderStore._sales_person_names([r["_id"] for r in rows if r["_id"] is not None])

        entries = [
            SalesBreakdownEntry(
                sales_person_id=row["_id"],
                sales_person_name=names.get(row["_id"], "Unknown"),
                total_quantity=int(row["total_quantity"]),
                order_count=len(row["order_ids"]),
            )
            for row in rows
        ]
        entries.sort(key=lambda e: (e.sales_person_name, str(e.sales_person_id)))

        logger.debug(
            f"Sales breakdown for product {product_id} in company {company_id} "
            f"[{window_start} - {window_end}): {len(entries)} sales persons"
        )
        return entries

    @staticmethod
    async def _sales_person_names(ids: List[PydanticObjectId]) -> Dict[PydanticObjectId, str]:
        if not ids:
            return {}
        users = await UserAccount.find({"_id": {"$in": ids}}).to_list()
        return {u.id: u.display_name for u in users}
