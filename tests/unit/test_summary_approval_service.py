"""
Unit tests for SummaryApprovalService.

Run: pytest tests/unit/test_summary_approval_service.py -v
"""

import pytest
from beanie import PydanticObjectId
from fastapi import HTTPException

from app.core.models.production.production_summary import DailyProductSummary, SummaryStatus
from app.modules.production_summary.production_summary_aggregator import ProductionSummaryAggregator
from app.modules.production_summary.production_summary_service import ProductionSummaryService
from app.modules.production_summary.summary_approval_service import SummaryApprovalService
from tests.factories import CatalogItemFactory, DEFAULT_DAY, OrderFactory

approve = SummaryApprovalService.approve


@pytest.fixture
async def row(company, product, sales_person):
    await OrderFactory.create(company.id, sales_person.id, [(product.id, 12)])
    return await ProductionSummaryAggregator.update_product_summary(product.id, DEFAULT_DAY, company.id)


# ===================
# SINGLE APPROVAL
# ===================

async def test_approve_records_approver(company, product, manager, row):
    summary = await approve(product.id, DEFAULT_DAY, company.id, manager)

    assert summary.status == SummaryStatus.approved
    assert summary.approval.approved_by == "MGR001"
    assert summary.approval.approved_by_name == "Ravi Kumar"
    assert summary.version == row.version + 1


async def test_approve_leaves_figures_untouched(company, product, manager, row):
    summary = await approve(product.id, DEFAULT_DAY, company.id, manager)

    assert summary.total_quantity == row.total_quantity
    assert summary.produce_batches == row.produce_batches
    assert summary.physical_stock == row.physical_stock


async def test_approving_twice_is_a_noop(company, product, manager, row):
    first = await approve(product.id, DEFAULT_DAY, company.id, manager)
    second = await approve(product.id, DEFAULT_DAY, company.id, manager)

    assert second.status == SummaryStatus.approved
    assert second.version == first.version


async def test_approve_missing_row_is_404(company, product, manager):
    with pytest.raises(HTTPException) as exc:
        await approve(product.id, DEFAULT_DAY, company.id, manager)
    assert exc.value.status_code == 404


async def test_approve_other_company_row_is_404(company, other_company, product, manager, row):
    with pytest.raises(HTTPException) as exc:
        await approve(product.id, DEFAULT_DAY, other_company.id, manager)
    assert exc.value.status_code == 404


async def test_expected_version_match_approves(company, product, manager, row):
    summary = await approve(product.id, DEFAULT_DAY, company.id, manager, expected_version=row.version)
    assert summary.status == SummaryStatus.approved


async def test_stale_expected_version_is_409(company, product, manager, row):
    await ProductionSummaryService.apply_production_inputs(
        product.id, DEFAULT_DAY, company.id, {"physical_stock": 2}
    )

    with pytest.raises(HTTPException) as exc:
        await approve(product.id, DEFAULT_DAY, company.id, manager, expected_version=row.version)

    assert exc.value.status_code == 409
    current = await DailyProductSummary.by_key(product.id, DEFAULT_DAY, company.id)
    assert current.status == SummaryStatus.pending


# ===================
# REOPEN
# ===================

async def test_mark_pending_clears_approval(company, product, manager, row):
    await approve(product.id, DEFAULT_DAY, company.id, manager)

    summary = await SummaryApprovalService.mark_pending(product.id, DEFAULT_DAY, company.id)

    assert summary.status == SummaryStatus.pending
    assert summary.approval is None


async def test_mark_pending_on_pending_row_is_noop(company, product, row):
    summary = await SummaryApprovalService.mark_pending(product.id, DEFAULT_DAY, company.id)
    assert summary.version == row.version


async def test_mark_pending_missing_row_is_404(company, product):
    with pytest.raises(HTTPException) as exc:
        await SummaryApprovalService.mark_pending(product.id, DEFAULT_DAY, company.id)
    assert exc.value.status_code == 404


# ===================
# BULK APPROVAL
# ===================

async def test_bulk_approve_reports_missing_rows(company, product, sales_person, manager):
    p1 = product
    p2 = await CatalogItemFactory.create(company_id=company.id, name="No Orders")
    p3 = await CatalogItemFactory.create(company_id=company.id, name="Rusk 200g")
    await OrderFactory.create(company.id, sales_person.id, [(p1.id, 5), (p3.id, 7)])
    for p in (p1, p3):
        await ProductionSummaryAggregator.update_product_summary(p.id, DEFAULT_DAY, company.id)

    result = await SummaryApprovalService.bulk_approve(
        [str(p1.id), str(p2.id), str(p3.id)], DEFAULT_DAY, company.id, manager
    )

    assert result.succeeded == 2
    assert result.failed == 1
    assert result.approved_product_ids == [str(p1.id), str(p3.id)]
    assert result.failures[0].product_id == str(p2.id)
    assert result.failures[0].status_code == 404
    assert "not found" in result.failures[0].reason
    for p in (p1, p3):
        row = await DailyProductSummary.by_key(p.id, DEFAULT_DAY, company.id)
        assert row.status == SummaryStatus.approved


async def test_bulk_approve_invalid_id_does_not_stop_the_rest(company, product, manager, row):
    result = await SummaryApprovalService.bulk_approve(
        ["not-an-id", str(product.id)], DEFAULT_DAY, company.id, manager
    )

    assert result.succeeded == 1
    assert result.failures[0].product_id == "not-an-id"
    assert result.failures[0].status_code == 400


async def test_bulk_approve_counts_already_approved_as_success(company, product, manager, row):
    await approve(product.id, DEFAULT_DAY, company.id, manager)

    result = await SummaryApprovalService.bulk_approve([str(product.id)], DEFAULT_DAY, company.id, manager)

    assert result.succeeded == 1
    assert result.failed == 0


async def test_bulk_approve_handles_repeated_ids_once(company, product, manager, row):
    result = await SummaryApprovalService.bulk_approve(
        [str(product.id), str(product.id)], DEFAULT_DAY, company.id, manager
    )

    assert result.succeeded == 1
    assert result.failed == 0
    assert result.approved_product_ids == [str(product.id)]
    summary = await DailyProductSummary.by_key(product.id, DEFAULT_DAY, company.id)
    assert summary.version == row.version + 1


async def test_bulk_approve_unknown_ids_only(company, manager):
    result = await SummaryApprovalService.bulk_approve(
        [str(PydanticObjectId()), str(PydanticObjectId())], DEFAULT_DAY, company.id, manager
    )

    assert result.succeeded == 0
    assert result.failed == 2
