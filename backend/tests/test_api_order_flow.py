"""
End-to-end dealer flow through the HTTP API.

place order -> admin approve (stock deducted) -> invoice -> payments -> dispatch/deliver
"""

from decimal import Decimal

from ricemill.models import RiceStock
from ricemill.time_utils import utcnow


def _place(client, headers, **overrides):
    body = {"rice_type": "Basmati", "brand": "Royal", "bag_size": "25kg", "quantity_bags": 4}
    body.update(overrides)
    return client.post("/api/dealer-orders/dealer", json=body, headers=headers)


class TestDealerOrderFlow:

    def test_full_flow(self, client, db_session, admin_headers, dealer_headers, dealer, sku):
        placed = _place(client, dealer_headers)
        assert placed.status_code == 201
        order = placed.json["order"]
        assert order["status"] == "pending"
        assert order["dealer_id"] == dealer.dealer_id
        assert order["total_quantity_kg"] == 100

        approved = client.post(f"/api/dealer-orders/{order['id']}/approve", headers=admin_headers)
        assert approved.status_code == 200
        assert approved.json["order"]["status"] == "approved"
        assert approved.json["order"]["approved_by"]["email"] == "admin@mill.local"

        db_session.expire_all()
        stock = db_session.get(RiceStock, sku.id)
        assert stock.bags_25kg == 6
        assert Decimal(stock.quantity_kg) == Decimal("200")

        invoice = client.post(
            "/api/invoices",
            json={"dealer_id": dealer.dealer_id, "order_id": order["id"], "amount": 5000},
            headers=admin_headers,
        )
        assert invoice.status_code == 201
        inv = invoice.json["invoice"]
        assert inv["invoice_number"] == "INV-0001"
        assert inv["payment_status"] == "pending"
        assert inv["order"]["rate_per_kg"] == 50

        first = client.post(
            "/api/payments",
            json={"invoice_id": inv["id"], "amount": 2000, "customer_name": "Ravi Traders", "payment_method": "upi"},
            headers=admin_headers,
        )
        assert first.status_code == 201
        assert first.json["invoice"]["payment_status"] == "partial"
        assert first.json["invoice"]["balance_amount"] == 3000

        second = client.post(
            "/api/payments",
            json={"invoice_id": inv["id"], "amount": 3000, "customer_name": "Ravi Traders"},
            headers=admin_headers,
        )
        assert second.json["invoice"]["payment_status"] == "paid"
        assert second.json["payment"]["payment_method"] == "cash"

        for status in ("dispatched", "delivered"):
            resp = client.post(f"/api/dealer-orders/{order['id']}/status", json={"status": status}, headers=admin_headers)
            assert resp.status_code == 200
            assert resp.json["order"]["status"] == status

        mine = client.get("/api/invoices/dealer", headers=dealer_headers)
        assert [i["invoice_number"] for i in mine.json["invoices"]] == ["INV-0001"]

        analytics = client.get("/api/dealer-orders/dealer/analytics", headers=dealer_headers)
        assert analytics.json["total_quantity"] == 100
        assert analytics.json["most_purchased_rice_type"] == "Basmati"


class TestErrorMapping:

    def test_validation_is_400(self, client, dealer_headers):
        resp = _place(client, dealer_headers, bag_size="30kg")
        assert resp.status_code == 400
        assert resp.json["kind"] == "ValidationError"

    def test_unknown_order_is_404(self, client, admin_headers):
        resp = client.post("/api/dealer-orders/999/approve", headers=admin_headers)
        assert resp.status_code == 404

    def test_insufficient_stock_is_409(self, client, admin_headers, dealer_headers, sku):
        placed = _place(client, dealer_headers, quantity_bags=20)
        resp = client.post(f"/api/dealer-orders/{placed.json['order']['id']}/approve", headers=admin_headers)
        assert resp.status_code == 409
        assert resp.json["kind"] == "InsufficientStock"

        order = client.get(f"/api/dealer-orders/{placed.json['order']['id']}", headers=admin_headers)
        assert order.json["order"]["status"] == "pending"

    def test_double_approve_is_409(self, client, admin_headers, dealer_headers, sku):
        order_id = _place(client, dealer_headers).json["order"]["id"]
        assert client.post(f"/api/dealer-orders/{order_id}/approve", headers=admin_headers).status_code == 200

        again = client.post(f"/api/dealer-orders/{order_id}/approve", headers=admin_headers)
        assert again.status_code == 409
        assert again.json["kind"] == "InvalidState"

    def test_status_cannot_approve(self, client, admin_headers, dealer_headers):
        order_id = _place(client, dealer_headers).json["order"]["id"]
        resp = client.post(f"/api/dealer-orders/{order_id}/status", json={"status": "approved"}, headers=admin_headers)
        assert resp.status_code == 409

    def test_payment_needs_exactly_one_target(self, client, admin_headers):
        resp = client.post("/api/payments", json={"amount": 10, "customer_name": "x"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_invoice_for_unknown_order_is_404(self, client, admin_headers, dealer):
        resp = client.post(
            "/api/invoices",
            json={"dealer_id": dealer.dealer_id, "order_id": 42, "amount": 100},
            headers=admin_headers,
        )
        assert resp.status_code == 404


class TestAdminCatalog:

    def test_paddy_intake_respects_capacity(self, client, admin_headers, db_session):
        created = client.post(
            "/api/godowns",
            json={"name": "Small", "location": "East", "capacity": 100},
            headers=admin_headers,
        )
        assert created.status_code == 201
        godown_id = created.json["godown"]["id"]

        intake = {
            "paddy_type": "Basmati", "quantity": 2, "weight": 95, "quality_grade": "A",
            "moisture_percent": 14, "seller_name": "Farmer Raju", "seller_contact": "9000000002",
            "vehicle_number": "AP07 TX 1234", "location": "Tenali", "godown_id": godown_id,
        }
        ok = client.post("/api/paddy", json=intake, headers=admin_headers)
        assert ok.status_code == 201
        assert ok.json["godown"]["current_stock"] == 95

        over = client.post("/api/paddy", json={**intake, "weight": 10}, headers=admin_headers)
        assert over.status_code == 409
        assert over.json["kind"] == "CapacityExceeded"

        bad = client.post("/api/paddy", json={**intake, "moisture_percent": 120}, headers=admin_headers)
        assert bad.status_code == 400

    def test_sale_total_through_api(self, client, admin_headers):
        resp = client.post(
            "/api/sales",
            json={"customer_name": "Walk-in", "customer_contact": "9000000003",
                  "rice_type": "Parboiled", "quantity": 10, "rate": 45.5},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json["sale"]["total_amount"] == 455
        assert resp.json["sale"]["payment_status"] == "pending"

    def test_health(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json["checks"]["database"]["status"] == "healthy"


class TestInvoiceAndListingRules:

    def test_second_invoice_for_order_is_409(self, client, admin_headers, dealer_headers, dealer):
        order_id = _place(client, dealer_headers).json["order"]["id"]
        body = {"dealer_id": dealer.dealer_id, "order_id": order_id, "amount": 5000}

        assert client.post("/api/invoices", json=body, headers=admin_headers).status_code == 201
        again = client.post("/api/invoices", json={**body, "amount": 10}, headers=admin_headers)
        assert again.status_code == 409
        assert again.json["kind"] == "Conflict"

    def test_bare_end_date_includes_that_day(self, client, admin_headers, dealer_headers):
        _place(client, dealer_headers)
        today = utcnow().date().isoformat()

        resp = client.get(f"/api/dealer-orders?start={today}&end={today}", headers=admin_headers)
        assert resp.status_code == 200
        assert len(resp.json["orders"]) == 1

        bad = client.get("/api/dealer-orders?end=yesterday", headers=admin_headers)
        assert bad.status_code == 400
