import logging
from typing import List, Optional, Set as SetType

from beanie import PydanticObjectId
from beanie.odm.operators.update.general import Set, Inc
from beanie.odm.queries.update import UpdateResponse
from fastapi import HTTPException

from app.core.models.production.production_summary import (
    DailyProductSummary,
    SummaryStatus,
    SummaryApprovalRecord,
)
from app.core.monitoring.prometheus_middleware import track_summary_operation
from app.core.schemas.auth import CurrentUser
from app.core.schemas.production.production_summary import BulkApprovalResponse, BulkApprovalFailure
from app.shared.company_scope import parse_object_id
from app.shared.timezone import get_ist_now

logger = logging.getLogger(__name__)


class SummaryApprovalService:
    """
    Approval state of summary rows.

    pending -> approved happens only here. approved -> pending happens on any
    production-input write (see ProductionSummaryService) or on an explicit
    mark_pending. Each transition is one conditional find-and-update, so an
    approval can never land on numbers the approver did not see.
    """

    @staticmethod
    async def approve(
        product_id: PydanticObjectId,
        day: str,
        company_id: PydanticObjectId,
        current_user: CurrentUser,
        expected_version: Optional[int] = None,
    ) -> DailyProductSummary:
        """
        Approve one summary row.

        Raises:
            HTTPException 404: row does not exist
            HTTPException 409: row changed since `expected_version`
        """
        now = get_ist_now()
        approval = SummaryApprovalRecord(
            approved_by=current_user.emp_id,
            approved_by_name=current_user.full_name,
            approved_at=now,
        )

        criteria = [
            DailyProductSummary.product_id == product_id,
            DailyProductSummary.date == day,
            DailyProductSummary.company_id == company_id,
            DailyProductSummary.status == SummaryStatus.pending,
        ]
        if expected_version is not None:
            criteria.append(DailyProductSummary.version == expected_version)

        updated = await DailyProductSummary.find_one(*criteria).update(
            Set({
                "status": SummaryStatus.approved.value,
                "approval": approval.model_dump(),
                "updated_at": now,
            }),
            Inc({"version": 1}),
            response_type=UpdateResponse.NEW_DOCUMENT,
        )
        if updated:
            logger.info(f"✅ Summary approved: product {product_id} on {day} by {current_user.emp_id}")
            track_summary_operation("approve", "success")
            return updated

        # Nothing matched: missing row, already approved, or stale version
        current = await DailyProductSummary.by_key(product_id, day, company_id)
        if not current:
            track_summary_operation("approve", "not_found")
            raise HTTPException(404, f"Summary not found for product {product_id} on {day}")

        if expected_version is not None and current.version != expected_version:
            track_summary_operation("approve", "conflict")
            raise HTTPException(
                409,
                f"Summary changed since it was reviewed (expected version {expected_version}, "
                f"current {current.version}). Reload and approve again."
            )

        if current.status == SummaryStatus.approved:
            track_summary_operation("approve", "noop")
            return current

        # Row flipped back to pending between the two reads
        track_summary_operation("approve", "conflict")
        raise HTTPException(409, f"Summary for product {product_id} on {day} is being modified, retry")

    @staticmethod
    async def mark_pending(
        product_id: PydanticObjectId,
        day: str,
        company_id: PydanticObjectId,
    ) -> DailyProductSummary:
        """Explicitly move an approved row back to pending. No-op when already pending."""
        updated = await DailyProductSummary.find_one(
            DailyProductSummary.product_id == product_id,
            DailyProductSummary.date == day,
            DailyProductSummary.company_id == company_id,
            DailyProductSummary.status == SummaryStatus.approved,
        ).update(
            Set({
                "status": SummaryStatus.pending.value,
                "approval": None,
                "updated_at": get_ist_now(),
            }),
            Inc({"version": 1}),
            response_type=UpdateResponse.NEW_DOCUMENT,
        )
        if updated:
            logger.info(f"Summary reopened: product {product_id} on {day}")
            track_summary_operation("reopen", "success")
            return updated

        current = await DailyProductSummary.by_key(product_id, day, company_id)
        if not current:
            track_summary_operation("reopen", "not_found")
            raise HTTPException(404, f"Summary not found for product {product_id} on {day}")
        return current

    @staticmethod
    async def bulk_approve(
        product_ids: List[str],
        day: str,
        company_id: PydanticObjectId,
        current_user: CurrentUser,
    ) -> BulkApprovalResponse:
        """
        Approve many rows of one day.

        Items are independent: a failure is recorded and the loop moves on.
        Nothing is rolled back. Repeated ids are handled once.
        """
        approved_ids: List[str] = []
        failures: List[BulkApprovalFailure] = []
        seen: SetType[PydanticObjectId] = set()

        for raw_id in product_ids:
            try:
                product_id = parse_object_id(raw_id, "product_id")
                if product_id in seen:
                    continue
                seen.add(product_id)
                await SummaryApprovalService.approve(product_id, day, company_id, current_user)
                approved_ids.append(str(product_id))
            except HTTPException as e:
                failures.append(BulkApprovalFailure(
                    product_id=str(raw_id),
                    reason=str(e.detail),
                    status_code=e.status_code,
                ))
            except Exception as e:
                logger.error(f"❌ Bulk approval failed for product {raw_id} on {day}: {e}", exc_info=True)
                track_summary_operation("approve", "error")
                failures.append(BulkApprovalFailure(
                    product_id=str(raw_id),
                    reason=str(e),
                    status_code=500,
                ))

        logger.info(
            f"Bulk approval on {day}: {len(approved_ids)} approved, {len(failures)} failed "
            f"(by {current_user.emp_id})"
        )
        return BulkApprovalResponse(
            date=day,
            succeeded=len(approved_ids),
            failed=len(failures),
            approved_product_ids=approved_ids,
            failures=failures,
        )
