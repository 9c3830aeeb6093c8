# Overview: Pytest coverage for company membership, owner scope and the authorization guard.

"""
Company and Guard Tests

A company is an admin plus the staff that admin created. These tests pin
down who may see and touch which created_by values.
"""

import pytest

from conftest import as_principal
from imeitrack.services.access_service import (
    AccessDeniedError,
    authorize,
    require_access,
    require_role,
    require_user_management,
)
from imeitrack.services.company_service import (
    company_admin_id,
    company_user_ids,
    is_user_in_company,
    owner_scope,
)
from imeitrack.permissions import Role


class TestCompanyMembership:
    def test_company_contains_admin_and_their_staff(self, db_session, company_x, bob, alice, carol):
        assert company_user_ids(company_x.id) == {company_x.id, bob.id, alice.id}

    def test_company_without_staff_is_just_the_admin(self, db_session, company_y):
        assert company_user_ids(company_y.id) == {company_y.id}

    def test_membership_recomputed_after_staff_deleted(self, db_session, company_x, bob):
        assert is_user_in_company(company_x.id, bob.id)
        db_session.delete(bob)
        db_session.commit()
        assert not is_user_in_company(company_x.id, bob.id)

    def test_none_owner_is_not_a_member(self, db_session, company_x):
        assert is_user_in_company(company_x.id, None) is False

    def test_company_admin_id(self, db_session, superadmin, company_x, bob):
        assert company_admin_id(company_x) == company_x.id
        assert company_admin_id(bob) == company_x.id
        assert company_admin_id(superadmin) is None


class TestOwnerScope:
    def test_superadmin_unfiltered(self, db_session, superadmin):
        assert owner_scope(as_principal(superadmin)) is None

    def test_admin_sees_company(self, db_session, company_x, bob):
        assert owner_scope(as_principal(company_x)) == {company_x.id, bob.id}

    def test_staff_sees_self(self, db_session, bob, alice):
        assert owner_scope(as_principal(bob)) == {bob.id}


class TestAuthorize:
    def test_superadmin_allowed_everywhere(self, db_session, superadmin, carol):
        assert authorize(as_principal(superadmin), carol.id)

    def test_admin_allowed_on_own_staff_records(self, db_session, company_x, bob):
        assert authorize(as_principal(company_x), bob.id, "update")

    def test_admin_denied_on_other_company(self, db_session, company_x, carol):
        decision = authorize(as_principal(company_x), carol.id)
        assert not decision
        assert decision.reason == "not in your company"

    def test_staff_denied_on_colleague_record(self, db_session, bob, alice):
        decision = authorize(as_principal(bob), alice.id)
        assert not decision
        assert decision.reason == "not your record"

    def test_ownerless_records_are_shared(self, db_session, company_x, bob):
        assert authorize(as_principal(company_x), None)
        assert authorize(as_principal(bob), None, "delete")

    def test_require_access_raises_with_reason(self, db_session, company_y, bob):
        with pytest.raises(AccessDeniedError) as exc:
            require_access(as_principal(company_y), bob.id, "delete")
        assert exc.value.reason == "not in your company"
        assert "delete" in str(exc.value)


class TestUserManagement:
    def test_admin_manages_own_staff(self, db_session, company_x, bob):
        require_user_management(as_principal(company_x), bob)

    def test_admin_cannot_manage_other_company_staff(self, db_session, company_x, carol):
        with pytest.raises(AccessDeniedError):
            require_user_management(as_principal(company_x), carol)

    def test_admin_cannot_manage_another_admin(self, db_session, company_x, company_y):
        with pytest.raises(AccessDeniedError):
            require_user_management(as_principal(company_x), company_y)

    def test_staff_manages_nobody(self, db_session, bob, alice):
        with pytest.raises(AccessDeniedError):
            require_user_management(as_principal(bob), alice)

    def test_require_role(self, db_session, bob):
        with pytest.raises(AccessDeniedError):
            require_role(as_principal(bob), Role.SUPERADMIN, Role.ADMIN)
        require_role(as_principal(bob), Role.STAFF)
