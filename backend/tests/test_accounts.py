# Overview: Pytest coverage for staff, admin (company) and profile account management.

import pytest

from conftest import PASSWORD, as_principal
from imeitrack.models import ActivityLog, ImeiRecord, User
from imeitrack.permissions import MENU_PERMISSION_CODES, Role
from imeitrack.services import (
    admin_service,
    imei_service,
    profile_service,
    session_service,
    sold_service,
    staff_service,
)
from imeitrack.services.access_service import AccessDeniedError
from imeitrack.services.auth_service import authenticate
from imeitrack.validation import ConflictError, NotFoundError, ValidationError


class TestStaff:
    def test_admin_creates_staff_in_own_company(self, db_session, company_x):
        staff = staff_service.create_staff(
            as_principal(company_x),
            {"name": "Dan", "email": "DAN@example.com", "password": PASSWORD, "permissions": {"stock": True}},
        )
        assert staff["created_by"] == company_x.id
        assert staff["role"] == Role.STAFF
        assert staff["email"] == "dan@example.com"
        assert set(staff["permissions"]) == set(MENU_PERMISSION_CODES)
        assert staff["permissions"]["stock"] is True

    def test_required_fields(self, db_session, company_x):
        with pytest.raises(ValidationError):
            staff_service.create_staff(as_principal(company_x), {"name": "Dan", "email": "dan@example.com"})

    def test_short_password_rejected(self, db_session, company_x):
        with pytest.raises(ValidationError):
            staff_service.create_staff(
                as_principal(company_x), {"name": "Dan", "email": "dan@example.com", "password": "short"}
            )

    def test_duplicate_email(self, db_session, company_x, bob):
        with pytest.raises(ConflictError):
            staff_service.create_staff(
                as_principal(company_x), {"name": "Bob 2", "email": "bob@example.com", "password": PASSWORD}
            )

    def test_superadmin_must_name_company(self, db_session, superadmin, company_x, bob):
        payload = {"name": "Dan", "email": "dan@example.com", "password": PASSWORD}
        with pytest.raises(ValidationError):
            staff_service.create_staff(as_principal(superadmin), payload)
        with pytest.raises(ValidationError):
            staff_service.create_staff(as_principal(superadmin), {**payload, "company_id": bob.id})

        staff = staff_service.create_staff(as_principal(superadmin), {**payload, "company_id": company_x.id})
        assert staff["created_by"] == company_x.id

    def test_staff_cannot_manage_staff(self, db_session, bob):
        with pytest.raises(AccessDeniedError):
            staff_service.list_staff(as_principal(bob))

    def test_admin_lists_only_own_staff(self, db_session, company_x, company_y, bob, alice, carol):
        result = staff_service.list_staff(as_principal(company_x))
        assert {u["name"] for u in result["items"]} == {"Bob", "Alice"}
        assert staff_service.count_staff(as_principal(company_y)) == 1

    def test_admin_cannot_touch_other_company_staff(self, db_session, company_x, carol):
        with pytest.raises(AccessDeniedError):
            staff_service.update_staff(as_principal(company_x), carol.id, {"name": "Mallory"})

    def test_non_staff_id_is_not_found(self, db_session, company_x, company_y):
        with pytest.raises(NotFoundError):
            staff_service.get_staff(as_principal(company_x), company_y.id)

    def test_update_permissions_and_password(self, db_session, company_x, bob):
        _session, token = session_service.create_session(bob.id)

        staff = staff_service.update_staff(
            as_principal(company_x), bob.id,
            {"permissions": {"reports": True}, "password": "NewPassword1"},
        )

        assert staff["permissions"]["reports"] is True
        assert staff["permissions"]["dashboard"] is False
        assert session_service.validate_session(token) is None
        assert authenticate("bob@example.com", "NewPassword1") is not None

    def test_delete_staff_keeps_records_out_of_scope(self, db_session, company_x, bob):
        record = imei_service.create_imei_record(as_principal(bob), {"imei": "123456789012345"})

        staff_service.delete_staff(as_principal(company_x), bob.id)

        assert db_session.get(User, bob.id) is None
        assert db_session.get(ImeiRecord, record["id"]).created_by == bob.id
        assert imei_service.count_imei_records(as_principal(company_x)) == 0


class TestAdmins:
    def test_only_superadmin(self, db_session, company_x):
        with pytest.raises(AccessDeniedError):
            admin_service.list_admins(as_principal(company_x))

    def test_create_and_list(self, db_session, superadmin, company_x):
        created = admin_service.create_admin(
            as_principal(superadmin),
            {"name": "CompanyZ", "email": "z@example.com", "password": PASSWORD, "permissions": {"dashboard": True}},
        )
        assert created["created_by"] is None
        assert created["role"] == Role.ADMIN

        result = admin_service.list_admins(as_principal(superadmin))
        assert {a["name"] for a in result["items"]} == {"CompanyX", "CompanyZ"}

    def test_update_email_conflict(self, db_session, superadmin, company_x, company_y):
        with pytest.raises(ConflictError):
            admin_service.update_admin(as_principal(superadmin), company_x.id, {"email": "y@example.com"})
        # validation happens before any mutation
        assert db_session.get(User, company_x.id).email == "x@example.com"

    def test_cannot_delete_self(self, db_session, superadmin):
        with pytest.raises(ValidationError):
            admin_service.delete_admin(as_principal(superadmin), superadmin.id)

    def test_delete_admin_leaves_staff(self, db_session, superadmin, company_x, bob):
        admin_service.delete_admin(as_principal(superadmin), company_x.id)
        assert db_session.get(User, company_x.id) is None
        assert db_session.get(User, bob.id).created_by == company_x.id

    def test_superadmin_actions_not_audited(self, db_session, superadmin):
        admin_service.create_admin(
            as_principal(superadmin), {"name": "CompanyZ", "email": "z@example.com", "password": PASSWORD}
        )
        assert db_session.query(ActivityLog).count() == 0

    def test_company_details(self, db_session, superadmin, company_x, company_y, bob, carol):
        phone = imei_service.create_imei_record(as_principal(bob), {"imei": "123456789012345", "amount": "10000"})
        sold_service.create_sold_record(as_principal(bob), {"imei_id": phone["id"], "sold_amount": "15000"})
        imei_service.create_imei_record(as_principal(carol), {"imei": "999999999999999"})

        details = admin_service.company_details(as_principal(superadmin), company_x.id)

        assert details["admin"]["id"] == company_x.id
        assert details["stats"]["staff_count"] == 1
        assert details["stats"]["imei_count"] == 1
        assert details["stats"]["sold_count"] == 1
        assert details["stats"]["stock_stats"]["profit"] == 5000.0
        assert [s["name"] for s in details["recent"]["staff"]] == ["Bob"]
        assert len(details["recent"]["imei"]) == 1
        assert len(details["recent"]["sold"]) == 1

    def test_company_details_requires_admin_id(self, db_session, superadmin, bob):
        with pytest.raises(NotFoundError):
            admin_service.company_details(as_principal(superadmin), bob.id)


class TestProfile:
    def test_rename(self, db_session, bob):
        user = profile_service.update_profile(as_principal(bob), {"name": "Robert"})
        assert user["name"] == "Robert"

    def test_nothing_to_update(self, db_session, bob):
        with pytest.raises(ValidationError, match="No fields to update"):
            profile_service.update_profile(as_principal(bob), {"name": "   "})

    def test_password_change_needs_current_password(self, db_session, bob):
        with pytest.raises(ValidationError, match="Current password is required"):
            profile_service.update_profile(as_principal(bob), {"new_password": "NewPassword1"})
        with pytest.raises(ValidationError, match="Current password is incorrect"):
            profile_service.update_profile(
                as_principal(bob), {"new_password": "NewPassword1", "current_password": "wrong-password"}
            )

    def test_password_change_keeps_current_session(self, db_session, bob):
        _s1, current = session_service.create_session(bob.id)
        _s2, other = session_service.create_session(bob.id)

        profile_service.update_profile(
            as_principal(bob),
            {"new_password": "NewPassword1", "current_password": PASSWORD},
            current_token=current,
        )

        assert session_service.validate_session(current) is not None
        assert session_service.validate_session(other) is None
        assert authenticate("bob@example.com", "NewPassword1") is not None

    def test_email_taken(self, db_session, bob, alice):
        with pytest.raises(ConflictError):
            profile_service.update_profile(as_principal(bob), {"email": "alice@example.com"})

    def test_profile_update_audited_without_password(self, db_session, bob):
        profile_service.update_profile(
            as_principal(bob), {"new_password": "NewPassword1", "current_password": PASSWORD}
        )
        log = db_session.query(ActivityLog).filter_by(entity_type="profile").one()
        assert log.details == {"changes": {"password": {"changed": True}}}
