"""
Unit tests for company scoping and role checks.
"""

import pytest
from beanie import PydanticObjectId
from fastapi import HTTPException

from app.core.auth.deps import has_any_role
from app.shared.company_scope import get_company_timezone, parse_object_id, resolve_company_scope
from tests.factories import CompanyFactory, make_user

COMPANY_ID = PydanticObjectId()
OTHER_ID = PydanticObjectId()


class TestResolveCompanyScope:

    def test_super_admin_must_name_a_company(self):
        admin = make_user(role="Super Admin")

        with pytest.raises(HTTPException) as exc:
            resolve_company_scope(admin, None)
        assert exc.value.status_code == 400

    def test_super_admin_can_pick_any_company(self):
        admin = make_user(role="Super Admin")
        assert resolve_company_scope(admin, str(OTHER_ID)) == OTHER_ID

    def test_unit_head_defaults_to_own_company(self):
        head = make_user(role="Unit Head", company_id=COMPANY_ID)
        assert resolve_company_scope(head, None) == COMPANY_ID

    def test_unit_head_cannot_cross_companies(self):
        head = make_user(role="Unit Head", company_id=COMPANY_ID)

        with pytest.raises(HTTPException) as exc:
            resolve_company_scope(head, str(OTHER_ID))
        assert exc.value.status_code == 403

    def test_user_without_company_is_forbidden(self):
        with pytest.raises(HTTPException) as exc:
            resolve_company_scope(make_user(role="Unit Manager"), None)
        assert exc.value.status_code == 403


def test_parse_object_id_rejects_garbage():
    with pytest.raises(HTTPException) as exc:
        parse_object_id("12345", "product_id")
    assert exc.value.status_code == 400
    assert "product_id" in exc.value.detail


def test_has_any_role_checks_secondary_role():
    user = make_user(role="Sales", role2="Unit Manager")

    assert has_any_role(user, ("Unit Manager",))
    assert not has_any_role(make_user(role="Sales"), ("Unit Manager",))


async def test_company_timezone_lookup(db):
    plant = await CompanyFactory.create(timezone="Europe/Berlin")

    assert await get_company_timezone(plant.id) == "Europe/Berlin"
    assert await get_company_timezone(PydanticObjectId()) == "Asia/Kolkata"
    assert await get_company_timezone(None) == "Asia/Kolkata"
