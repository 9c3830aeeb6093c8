# Overview: Pytest coverage for the brand picklist; shared brands, company scope and delete behavior.

import pytest

from conftest import as_principal
from imeitrack.models import Brand, ImeiRecord
from imeitrack.services import brand_service, imei_service
from imeitrack.services.access_service import AccessDeniedError
from imeitrack.validation import ConflictError, NotFoundError, ValidationError


def _brand(user, name, **fields):
    return brand_service.create_brand(as_principal(user), {"name": name, **fields})


class TestVisibility:
    def test_superadmin_brands_shared_with_everyone(self, db_session, superadmin, company_x, bob, carol):
        shared = _brand(superadmin, "Apple")
        assert shared["created_by"] is None

        for user in (company_x, bob, carol):
            names = [b["name"] for b in brand_service.list_active_brands(as_principal(user))]
            assert names == ["Apple"]

    def test_company_brand_hidden_from_other_company(self, db_session, company_x, company_y, bob):
        _brand(bob, "Xiaomi")
        assert [b["name"] for b in brand_service.list_active_brands(as_principal(company_x))] == ["Xiaomi"]
        assert brand_service.count_brands(as_principal(company_y)) == 0

    def test_inactive_brands_filtered_unless_requested(self, db_session, company_x):
        _brand(company_x, "Nokia", is_active=False)
        _brand(company_x, "Oppo")
        principal = as_principal(company_x)
        assert brand_service.count_brands(principal) == 1
        assert brand_service.count_brands(principal, active_only=False) == 2
        assert [b["name"] for b in brand_service.list_brands(principal, q="nok", active_only=False)["items"]] == ["Nokia"]


class TestWrites:
    def test_name_required(self, db_session, company_x):
        with pytest.raises(ValidationError):
            brand_service.create_brand(as_principal(company_x), {"is_active": True})

    def test_duplicate_name_in_scope(self, db_session, company_x, bob):
        first = _brand(bob, "Vivo")
        with pytest.raises(ConflictError) as exc:
            _brand(company_x, "Vivo")
        assert exc.value.existing_id == first["id"]

    def test_duplicate_name_in_other_company(self, db_session, company_y, bob):
        _brand(bob, "Vivo")
        with pytest.raises(ConflictError) as exc:
            _brand(company_y, "Vivo")
        assert exc.value.access_denied is True
        assert exc.value.existing_id is None

    def test_rename(self, db_session, company_x):
        brand = _brand(company_x, "Realme")
        updated = brand_service.update_brand(as_principal(company_x), brand["id"], {"name": "Realme Pro"})
        assert updated["name"] == "Realme Pro"

    def test_other_company_cannot_edit(self, db_session, company_x, company_y):
        brand = _brand(company_x, "Honor")
        with pytest.raises(AccessDeniedError):
            brand_service.update_brand(as_principal(company_y), brand["id"], {"is_active": False})

    def test_missing_brand(self, db_session, company_x):
        with pytest.raises(NotFoundError):
            brand_service.delete_brand(as_principal(company_x), 12345)


class TestDelete:
    def test_delete_keeps_brand_text_on_imei_records(self, db_session, company_x, bob):
        brand = _brand(company_x, "Samsung")
        record = imei_service.create_imei_record(as_principal(bob), {"imei": "123456789012345", "brand": "Samsung"})

        brand_service.delete_brand(as_principal(company_x), brand["id"])

        assert db_session.get(Brand, brand["id"]) is None
        assert db_session.get(ImeiRecord, record["id"]).brand == "Samsung"
