# Overview: Pytest coverage for supplier management.

import pytest
from retailpos.services import supplier_service
from retailpos.validation import ConflictError, NotFoundError, ValidationError


class TestSupplierService:
    def test_create_normalizes_email(self, db_session, store_a):
        supplier = supplier_service.create_supplier(
            store_id=store_a.id,
            name="  Fresh Farms ",
            email="Sales@FreshFarms.TEST",
            phone="",
        )

        assert supplier.name == "Fresh Farms"
        assert supplier.email == "sales@freshfarms.test"
        assert supplier.phone is None
        assert supplier.is_active is True

    def test_duplicate_email_in_store(self, db_session, store_a, supplier_a):
        with pytest.raises(ConflictError):
            supplier_service.create_supplier(store_id=store_a.id, name="Other", email="ORDERS@acme.test")

    def test_same_email_other_store_allowed(self, db_session, store_b, supplier_a):
        supplier = supplier_service.create_supplier(store_id=store_b.id, name="Acme B", email="orders@acme.test")
        assert supplier.store_id == store_b.id

    @pytest.mark.parametrize("name,email", [
        ("", "a@b.test"),
        ("Name", ""),
        ("Name", "no-at-sign"),
    ])
    def test_invalid_input(self, db_session, store_a, name, email):
        with pytest.raises(ValidationError):
            supplier_service.create_supplier(store_id=store_a.id, name=name, email=email)

    def test_get_other_store_not_found(self, db_session, store_b, supplier_a):
        with pytest.raises(NotFoundError):
            supplier_service.get_supplier(store_id=store_b.id, supplier_id=supplier_a.id)

    def test_list_search_and_inactive(self, db_session, store_a, supplier_a):
        other = supplier_service.create_supplier(store_id=store_a.id, name="Zed Imports", email="z@zed.test")
        supplier_service.deactivate_supplier(store_id=store_a.id, supplier_id=other.id)

        active, total = supplier_service.list_suppliers(store_id=store_a.id)
        assert total == 1
        assert active[0].id == supplier_a.id

        everything, total = supplier_service.list_suppliers(store_id=store_a.id, include_inactive=True)
        assert total == 2
        assert [s.name for s in everything] == ["Acme Wholesale", "Zed Imports"]

        found, total = supplier_service.list_suppliers(store_id=store_a.id, search="acme")
        assert total == 1

    def test_update(self, db_session, store_a, supplier_a):
        updated = supplier_service.update_supplier(
            store_id=store_a.id,
            supplier_id=supplier_a.id,
            patch={"contact_person": "Jo", "email": "New@Acme.test"},
        )
        assert updated.contact_person == "Jo"
        assert updated.email == "new@acme.test"

    def test_update_unknown_field(self, db_session, store_a, supplier_a):
        with pytest.raises(ValidationError):
            supplier_service.update_supplier(
                store_id=store_a.id, supplier_id=supplier_a.id, patch={"is_active": False},
            )

    def test_deactivate_twice(self, db_session, store_a, supplier_a):
        supplier_service.deactivate_supplier(store_id=store_a.id, supplier_id=supplier_a.id)
        with pytest.raises(ValidationError):
            supplier_service.deactivate_supplier(store_id=store_a.id, supplier_id=supplier_a.id)


class TestSupplierEndpoints:
    def test_create_and_list(self, client, db_session, manager_headers):
        created = client.post("/api/suppliers", json={
            "name": "Bakery Co",
            "email": "bread@bakery.test",
            "contact_person": "Sam",
        }, headers=manager_headers)

        assert created.status_code == 201
        assert created.get_json()["supplier"]["email"] == "bread@bakery.test"

        listing = client.get("/api/suppliers", headers=manager_headers)
        assert listing.status_code == 200
        assert listing.get_json()["count"] == 1

    def test_duplicate_is_409(self, client, db_session, admin_headers, supplier_a):
        response = client.post("/api/suppliers", json={"name": "Acme 2", "email": "orders@acme.test"},
                               headers=admin_headers)
        assert response.status_code == 409

    def test_sales_can_view_not_create(self, client, db_session, sales_headers, supplier_a):
        assert client.get("/api/suppliers", headers=sales_headers).status_code == 200
        response = client.post("/api/suppliers", json={"name": "X", "email": "x@x.test"}, headers=sales_headers)
        assert response.status_code == 403

    def test_update_and_deactivate(self, client, db_session, admin_headers, supplier_a):
        updated = client.put(f"/api/suppliers/{supplier_a.id}", json={"phone": "555-0100"}, headers=admin_headers)
        assert updated.status_code == 200
        assert updated.get_json()["supplier"]["phone"] == "555-0100"

        deleted = client.delete(f"/api/suppliers/{supplier_a.id}", headers=admin_headers)
        assert deleted.status_code == 200
        assert deleted.get_json()["supplier"]["is_active"] is False

    def test_other_store_supplier_is_404(self, client, db_session, admin_b_headers, supplier_a):
        response = client.get(f"/api/suppliers/{supplier_a.id}", headers=admin_b_headers)
        assert response.status_code == 404
