"""
Client API tests: purchase, invoice, history.

Verifies:
- 201 purchase with total and stock decrement
- Error kinds map to 400/404/401 with structured bodies
- Invoices are scoped to owner or admin (404 otherwise)
- History is newest-first and paginates
"""

import pytest

from storefront.services import inventory_service, purchase_service
from storefront.services.purchase_service import BasketItem


def _buy(client, headers, *items):
    return client.post(
        "/client/purchase",
        json={"products": [{"product_id": pid, "quantity": qty} for pid, qty in items]},
        headers=headers,
    )


class TestPurchaseEndpoint:

    def test_purchase_success(self, client, customer_headers, make_product):
        p = make_product(quantity=5, price_cents=999)

        resp = _buy(client, customer_headers, (p, 2))

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["purchase"]["total_cents"] == 1998
        assert inventory_service.get_stock(p) == 3

    def test_insufficient_stock_is_400_with_product(self, client, customer_headers, make_product):
        p = make_product(quantity=1)

        resp = _buy(client, customer_headers, (p, 2))

        assert resp.status_code == 400
        body = resp.get_json()
        assert body["kind"] == "insufficient_stock"
        assert body["details"]["product_id"] == p
        assert inventory_service.get_stock(p) == 1

    def test_unknown_product_is_404(self, client, customer_headers, make_product):
        p = make_product(quantity=3)

        resp = _buy(client, customer_headers, (p, 1), (p + 1000, 1))

        assert resp.status_code == 404
        assert resp.get_json()["kind"] == "not_found"
        assert inventory_service.get_stock(p) == 3

    @pytest.mark.parametrize(
        "body,field",
        [
            ({}, "products"),
            ({"products": "nope"}, "products"),
            ({"products": []}, "products"),
            ({"products": [{"product_id": "x", "quantity": 1}]}, "products[0].product_id"),
            ({"products": [{"product_id": 1, "quantity": 0}]}, "products[0].quantity"),
            ({"products": [{"product_id": 1, "quantity": 1.5}]}, "products[0].quantity"),
            ({"products": [{"product_id": 1, "quantity": 10**20}]}, "products[0].quantity"),
            ({"products": [{"product_id": 10**20, "quantity": 1}]}, "products[0].product_id"),
            ({"products": [{"product_id": str(2**63), "quantity": 1}]}, "products[0].product_id"),
        ],
    )
    def test_validation_errors_are_listed(self, client, customer_headers, body, field):
        resp = client.post("/client/purchase", json=body, headers=customer_headers)

        assert resp.status_code == 400
        data = resp.get_json()
        assert data["kind"] == "validation_error"
        assert field in [e["field"] for e in data["errors"]]

    def test_every_bad_item_is_reported(self, client, customer_headers):
        resp = client.post(
            "/client/purchase",
            json={"products": [{"product_id": 1, "quantity": -1}, {"quantity": 2}]},
            headers=customer_headers,
        )
        fields = [e["field"] for e in resp.get_json()["errors"]]
        assert fields == ["products[0].quantity", "products[1].product_id"]

    def test_oversized_integers_are_field_errors_and_change_nothing(self, client, customer_headers, make_product):
        p = make_product(quantity=5)

        resp = client.post(
            "/client/purchase",
            json={"products": [{"product_id": p, "quantity": 10**20}, {"product_id": 10**20, "quantity": 1}]},
            headers=customer_headers,
        )

        assert resp.status_code == 400
        assert resp.get_json()["errors"] == [
            {"field": "products[0].quantity", "message": "Quantity is out of range"},
            {"field": "products[1].product_id", "message": "Product ID is out of range"},
        ]
        assert inventory_service.get_stock(p) == 5

    def test_requires_token(self, client, db_session):
        resp = client.post("/client/purchase", json={"products": [{"product_id": 1, "quantity": 1}]})
        assert resp.status_code == 401
        assert resp.get_json()["kind"] == "unauthorized"

    def test_rejects_unknown_token(self, client, db_session):
        resp = client.post(
            "/client/purchase",
            json={"products": [{"product_id": 1, "quantity": 1}]},
            headers={"Authorization": "Bearer not-a-real-token"},
        )
        assert resp.status_code == 401
        assert resp.get_json()["kind"] == "invalid_token"


class TestInvoice:

    def test_owner_sees_invoice(self, client, customer, customer_headers, make_product):
        p = make_product(quantity=5, price_cents=300, name="Tea")
        purchase_id = purchase_service.place_purchase(customer.id, [BasketItem(p, 2)]).id

        resp = client.get(f"/client/invoice/{purchase_id}", headers=customer_headers)

        assert resp.status_code == 200
        invoice = resp.get_json()["purchase"]
        assert invoice["user"]["username"] == "alice"
        assert invoice["total_cents"] == 600
        assert invoice["lines"][0]["product"]["name"] == "Tea"

    def test_other_customer_gets_404(self, client, customer, other_headers, make_product):
        p = make_product(quantity=5)
        purchase_id = purchase_service.place_purchase(customer.id, [BasketItem(p, 1)]).id

        resp = client.get(f"/client/invoice/{purchase_id}", headers=other_headers)

        assert resp.status_code == 404

    def test_admin_sees_any_invoice(self, client, customer, admin_headers, make_product):
        p = make_product(quantity=5)
        purchase_id = purchase_service.place_purchase(customer.id, [BasketItem(p, 1)]).id

        resp = client.get(f"/client/invoice/{purchase_id}", headers=admin_headers)

        assert resp.status_code == 200

    @pytest.mark.parametrize("purchase_id", [999999, 10**20])
    def test_missing_invoice(self, client, customer_headers, purchase_id):
        resp = client.get(f"/client/invoice/{purchase_id}", headers=customer_headers)
        assert resp.status_code == 404


class TestHistory:

    def test_history_is_own_and_newest_first(self, client, customer, other_customer, customer_headers, make_product):
        p = make_product(quantity=20)
        first = purchase_service.place_purchase(customer.id, [BasketItem(p, 1)]).id
        second = purchase_service.place_purchase(customer.id, [BasketItem(p, 2)]).id
        purchase_service.place_purchase(other_customer.id, [BasketItem(p, 3)])

        resp = client.get("/client/history", headers=customer_headers)

        assert resp.status_code == 200
        body = resp.get_json()
        assert [item["id"] for item in body["items"]] == [second, first]
        assert "pagination" not in body

    def test_history_pagination(self, client, customer, customer_headers, make_product):
        p = make_product(quantity=20)
        for _ in range(3):
            purchase_service.place_purchase(customer.id, [BasketItem(p, 1)])

        resp = client.get("/client/history?page=2&per_page=2", headers=customer_headers)

        body = resp.get_json()
        assert body["count"] == 1
        assert body["pagination"] == {
            "page": 2,
            "per_page": 2,
            "total": 3,
            "total_pages": 2,
            "has_next": False,
            "has_prev": True,
        }
