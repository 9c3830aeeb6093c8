# Overview: Pytest coverage for IMEI record scoping, duplicate detection and the IMEI check.

import pytest

from conftest import as_principal
from imeitrack.models import ActivityLog, ImeiRecord, SoldRecord
from imeitrack.services import imei_service, sold_service
from imeitrack.services.access_service import AccessDeniedError
from imeitrack.services.imei_service import DuplicateImeiError
from imeitrack.validation import NotFoundError, ValidationError


IMEI = "123456789012345"


def _create(user, imei=IMEI, **fields):
    payload = {"imei": imei, **fields}
    return imei_service.create_imei_record(as_principal(user), payload)


class TestCompanyScenario:
    """CompanyX creates Bob, Bob buys a handset, CompanyY must not see it."""

    def test_record_visible_to_company_only(self, db_session, company_x, company_y, bob):
        created = _create(bob, purchase="Shop A", amount="10000", brand="Samsung")
        assert created["created_by"] == bob.id
        assert created["status"] == "available"

        x_items = imei_service.list_imei_records(as_principal(company_x))["items"]
        assert [r["imei"] for r in x_items] == [IMEI]
        assert x_items[0]["created_by_name"] == "Bob"

        y_result = imei_service.list_imei_records(as_principal(company_y))
        assert y_result["items"] == []
        assert y_result["total"] == 0

        check = imei_service.check_imei(as_principal(company_y), IMEI)
        assert check["exists"] is True
        assert check["access_denied"] is True
        assert check["record"] is None
        assert check["message"] == "This IMEI belongs to another company"

    def test_staff_sees_only_own_records(self, db_session, company_x, bob, alice):
        _create(bob)
        _create(alice, "999999999999999")

        bob_items = imei_service.list_imei_records(as_principal(bob))["items"]
        assert [r["imei"] for r in bob_items] == [IMEI]

        denied = imei_service.check_imei(as_principal(alice), IMEI)
        assert denied["access_denied"] is True
        assert denied["message"] == "This IMEI belongs to another user"

    def test_superadmin_sees_everything(self, db_session, superadmin, bob, carol):
        _create(bob)
        _create(carol, "999999999999999")
        assert imei_service.count_imei_records(as_principal(superadmin)) == 2


class TestCreate:
    def test_imei_required(self, db_session, bob):
        with pytest.raises(ValidationError):
            imei_service.create_imei_record(as_principal(bob), {"brand": "Apple"})

    def test_blank_imei_rejected(self, db_session, bob):
        with pytest.raises(ValidationError):
            imei_service.create_imei_record(as_principal(bob), {"imei": "   "})

    def test_unknown_field_rejected(self, db_session, bob):
        with pytest.raises(ValidationError):
            imei_service.create_imei_record(as_principal(bob), {"imei": IMEI, "created_by": 1})

    @pytest.mark.parametrize("amount", ["1e30", "-1e30", 10**40])
    def test_oversized_amount_rejected(self, db_session, bob, amount):
        with pytest.raises(ValidationError, match="amount"):
            imei_service.create_imei_record(as_principal(bob), {"imei": IMEI, "amount": amount})
        assert db_session.query(ImeiRecord).count() == 0

    def test_superadmin_records_are_ownerless(self, db_session, superadmin):
        created = _create(superadmin)
        assert created["created_by"] is None

    def test_create_is_audited(self, db_session, bob):
        created = _create(bob)
        log = db_session.query(ActivityLog).one()
        assert log.action == "create"
        assert log.entity_type == "imei"
        assert log.entity_id == created["id"]
        assert log.user_id == bob.id
        assert log.description == f"Created IMEI record: {IMEI}"


class TestDuplicates:
    def test_duplicate_in_scope_carries_existing_id(self, db_session, company_x, bob):
        first = _create(bob)
        with pytest.raises(DuplicateImeiError) as exc:
            _create(company_x)
        assert exc.value.existing_id == first["id"]
        assert exc.value.to_dict() == {"error": "IMEI already exists", "existing_id": first["id"]}

    def test_duplicate_across_companies_hides_the_id(self, db_session, company_y, bob):
        _create(bob)
        with pytest.raises(DuplicateImeiError) as exc:
            _create(company_y)
        assert exc.value.existing_id is None
        assert exc.value.to_dict() == {"error": "IMEI already exists", "access_denied": True}

    def test_duplicate_leaves_single_row(self, db_session, bob, carol):
        _create(bob)
        with pytest.raises(DuplicateImeiError):
            _create(carol)
        assert db_session.query(ImeiRecord).count() == 1


class TestCheckImei:
    def test_unknown_imei(self, db_session, bob):
        assert imei_service.check_imei(as_principal(bob), IMEI) == {"exists": False}

    def test_blank_imei_is_a_validation_error(self, db_session, bob):
        with pytest.raises(ValidationError):
            imei_service.check_imei(as_principal(bob), "  ")
        with pytest.raises(ValidationError):
            imei_service.check_imei(as_principal(bob), None)

    def test_visible_record_reports_sold_state(self, db_session, company_x, bob):
        created = _create(bob, amount="100")
        result = imei_service.check_imei(as_principal(company_x), IMEI)
        assert result["record"]["id"] == created["id"]
        assert result["already_sold"] is False
        assert result["sold_record"] is None

        sold_service.create_sold_record(as_principal(bob), {"imei_id": created["id"], "sold_amount": "150"})
        result = imei_service.check_imei(as_principal(company_x), IMEI)
        assert result["already_sold"] is True
        assert result["sold_record"]["sold_amount"] == 150.0

    def test_check_is_idempotent_and_read_only(self, db_session, bob, company_y):
        _create(bob)
        logs_before = db_session.query(ActivityLog).count()
        first = imei_service.check_imei(as_principal(company_y), IMEI)
        second = imei_service.check_imei(as_principal(company_y), IMEI)
        assert first == second
        assert db_session.query(ActivityLog).count() == logs_before
        assert db_session.query(ImeiRecord).count() == 1


class TestUpdateDelete:
    def test_update_records_changes(self, db_session, company_x, bob):
        created = _create(bob, color="Black")
        updated = imei_service.update_imei_record(
            as_principal(company_x), created["id"], {"color": "Blue", "amount": "250.5"}
        )
        assert updated["color"] == "Blue"
        assert updated["amount"] == 250.5

        log = db_session.query(ActivityLog).filter_by(action="update").one()
        assert log.details["changes"]["color"] == {"old": "Black", "new": "Blue"}

    def test_imei_itself_not_editable(self, db_session, bob):
        created = _create(bob)
        with pytest.raises(ValidationError):
            imei_service.update_imei_record(as_principal(bob), created["id"], {"imei": "1"})

    def test_missing_record_is_not_found(self, db_session, bob):
        with pytest.raises(NotFoundError):
            imei_service.update_imei_record(as_principal(bob), 9999, {"color": "Red"})

    def test_other_company_denied(self, db_session, company_y, bob):
        created = _create(bob)
        with pytest.raises(AccessDeniedError):
            imei_service.delete_imei_record(as_principal(company_y), created["id"])
        with pytest.raises(AccessDeniedError):
            imei_service.get_imei_record(as_principal(company_y), created["id"])

    def test_delete_removes_sold_record(self, db_session, bob):
        created = _create(bob)
        sold_service.create_sold_record(as_principal(bob), {"imei_id": created["id"], "sold_name": "Eve"})

        imei_service.delete_imei_record(as_principal(bob), created["id"])

        assert db_session.query(ImeiRecord).count() == 0
        assert db_session.query(SoldRecord).count() == 0


class TestFilters:
    def test_status_filter(self, db_session, bob):
        sold = _create(bob, "111111111111111")
        _create(bob, "222222222222222")
        sold_service.create_sold_record(as_principal(bob), {"imei_id": sold["id"], "sold_amount": "10"})

        principal = as_principal(bob)
        available = imei_service.list_imei_records(principal, {"status": "available"})
        sold_rows = imei_service.list_imei_records(principal, {"status": "sold"})
        assert [r["imei"] for r in available["items"]] == ["222222222222222"]
        assert [r["imei"] for r in sold_rows["items"]] == ["111111111111111"]
        assert sold_rows["items"][0]["status"] == "sold"
        assert sold_rows["items"][0]["sold_amount"] == 10.0

    def test_bad_status_rejected(self, db_session, bob):
        with pytest.raises(ValidationError):
            imei_service.list_imei_records(as_principal(bob), {"status": "lost"})

    def test_search_and_amount_range(self, db_session, bob):
        _create(bob, "111111111111111", brand="Apple", amount="500")
        _create(bob, "222222222222222", brand="Samsung", amount="1500")

        principal = as_principal(bob)
        assert imei_service.count_imei_records(principal, {"q": "sams"}) == 1
        assert imei_service.count_imei_records(principal, {"purchase_amount_min": "1000"}) == 1
        assert imei_service.count_imei_records(principal, {"brand": "Apple", "purchase_amount_max": "600"}) == 1

    def test_pagination_total_matches_count(self, db_session, bob):
        for i in range(5):
            _create(bob, f"35000000000000{i}")
        page = imei_service.list_imei_records(as_principal(bob), page=2, page_size=2)
        assert page["total"] == 5
        assert len(page["items"]) == 2
        assert page["pagination"]["total_pages"] == 3
        assert page["pagination"]["has_next"] is True

    @pytest.mark.parametrize("page", ["-3", "0", "abc", None])
    @pytest.mark.parametrize("page_size", ["0", "-1", "abc"])
    def test_garbage_pagination_falls_back(self, db_session, bob, page, page_size):
        _create(bob)
        result = imei_service.list_imei_records(as_principal(bob), page=page, page_size=page_size)
        assert result["pagination"]["page"] == 1
        assert result["pagination"]["page_size"] == 20
        assert len(result["items"]) == 1

    def test_oversized_page_size_is_capped(self, db_session, bob):
        _create(bob)
        result = imei_service.list_imei_records(as_principal(bob), page=None, page_size="999999")
        assert result["pagination"]["page_size"] == 10000
        assert result["total"] == 1

    def test_recent_imeis(self, db_session, bob, carol):
        _create(bob, "111111111111111")
        _create(carol, "222222222222222")
        assert imei_service.list_recent_imeis(as_principal(bob)) == ["111111111111111"]
