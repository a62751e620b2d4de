from decimal import Decimal

from storefront.api.deps import get_cart_service
from storefront.services import notification_service
from storefront.services.cart_service import CartService

USER = {"X-User-Id": "user-1"}
ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "admin"}

NETFLIX = {
    "plan_id": "netflix-tier-1",
    "service_name": "Netflix",
    "plan_name": "Netflix Standard - 1 month",
    "price": "2800",
}

GUEST_A = {"X-Guest-Id": "browser-a"}
GUEST_B = {"X-Guest-Id": "browser-b"}

CUSTOMER = {
    "customer_name": "Ayesha Khan",
    "customer_email": "ayesha@example.com",
    "customer_whatsapp": "+923001234567",
}


# ===== HEALTH / CATALOG =====

def test_health(client):
    res = client.get("/health")

    assert res.status_code == 200
    assert res.json() == {"service": "storefront", "status": "ok", "database": "ok"}


def test_list_services_by_category(client):
    res = client.get("/services", params={"category": "streaming"})

    assert res.status_code == 200
    slugs = [s["slug"] for s in res.json()]
    assert "netflix" in slugs
    assert "figma" not in slugs


def test_unknown_service_is_404(client):
    assert client.get("/services/myspace").status_code == 404


# ===== CART =====

def test_cart_requires_user(client):
    res = client.get("/cart")

    assert res.status_code == 401
    assert res.json()["detail"] == "Please log in to manage your cart"


def test_get_cart_creates_empty_cart(client):
    body = client.get("/cart", headers=USER).json()

    assert body["user_id"] == "user-1"
    assert body["items"] == []
    assert body["is_empty"] is True
    assert Decimal(body["total"]) == 0


def test_cart_flow(client):
    client.post("/cart/items", json=NETFLIX, headers=USER)
    body = client.post("/cart/items", json=NETFLIX, headers=USER).json()

    assert len(body["items"]) == 1
    assert body["item_count"] == 2
    assert Decimal(body["subtotal"]) == Decimal("5600")

    res = client.post("/cart/discount", json={"code": "save10"}, headers=USER)
    discount = res.json()
    assert discount["applied"] is True
    assert Decimal(discount["cart"]["total"]) == Decimal("5040")
    assert discount["cart"]["discount_code"] == "SAVE10"

    item_id = body["items"][0]["id"]
    body = client.patch(f"/cart/items/{item_id}", json={"quantity": 3}, headers=USER).json()
    assert body["item_count"] == 3

    body = client.delete(f"/cart/items/{item_id}", headers=USER).json()
    assert body["is_empty"] is True
    assert Decimal(body["total"]) == 0
    assert Decimal(body["discount"]) == Decimal("560")

    body = client.delete("/cart", headers=USER).json()
    assert Decimal(body["discount"]) == 0
    assert body["discount_code"] is None


def test_unknown_discount_code(client):
    body = client.post("/cart/discount", json={"code": "NOPE"}, headers=USER).json()

    assert body["recognized"] is False
    assert body["applied"] is False


def test_add_item_rejects_zero_quantity(client):
    res = client.post("/cart/items", json={**NETFLIX, "quantity": 0}, headers=USER)

    assert res.status_code == 422


def test_price_and_names_come_from_catalog(client):
    body = client.post(
        "/cart/items",
        json={"plan_id": "netflix-tier-3", "service_name": "Cheap", "plan_name": "Bargain", "price": "0.01"},
        headers=USER,
    ).json()

    item = body["items"][0]
    assert Decimal(item["price"]) == Decimal("29000")
    assert item["service_name"] == "Netflix"
    assert item["plan_name"] == "Netflix Premium - 12 months"

    order = client.post("/orders", json=CUSTOMER, headers=USER).json()
    assert Decimal(order["amount"]) == Decimal("29000")


def test_unknown_plan_is_404(client):
    res = client.post("/cart/items", json={"plan_id": "myspace-gold"}, headers=USER)

    assert res.status_code == 404
    assert client.get("/cart", headers=USER).json()["is_empty"] is True


def test_unavailable_store_is_503(client):
    class DownStorage:
        def load(self, user_id):
            raise OSError("storage offline")

        def save(self, cart):
            raise OSError("storage offline")

        def delete(self, user_id):
            raise OSError("storage offline")

    client.app.dependency_overrides[get_cart_service] = lambda: CartService(DownStorage())

    res = client.get("/cart", headers=USER)

    assert res.status_code == 503


# ===== GUEST CART =====

def test_guest_cart_flow(client):
    client.post("/guest-cart/items", json=NETFLIX, headers=GUEST_A)
    body = client.get("/guest-cart", headers=GUEST_A).json()

    assert body["item_count"] == 1
    assert Decimal(body["total"]) == Decimal("2800")

    assert client.delete("/guest-cart", headers=GUEST_A).status_code == 204
    assert client.get("/guest-cart", headers=GUEST_A).json()["is_empty"] is True


def test_visitors_do_not_share_a_guest_cart(client):
    client.post("/guest-cart/items", json=NETFLIX, headers=GUEST_A)

    other = client.get("/guest-cart", headers=GUEST_B).json()
    mine = client.get("/guest-cart", headers=GUEST_A).json()

    assert other["items"] == []
    assert [i["plan_id"] for i in mine["items"]] == ["netflix-tier-1"]

    client.delete("/guest-cart", headers=GUEST_B)
    assert client.get("/guest-cart", headers=GUEST_A).json()["item_count"] == 1


def test_guest_cart_requires_guest_id(client):
    assert client.get("/guest-cart").status_code == 400


# ===== ORDERS =====

def test_checkout_empty_cart_is_400(client):
    res = client.post("/orders", json=CUSTOMER, headers=USER)

    assert res.status_code == 400


def test_checkout_places_order_and_clears_cart(client):
    client.post("/cart/items", json={**NETFLIX, "quantity": 2}, headers=USER)
    client.post(
        "/cart/items",
        json={"plan_id": "netflix-tier-2", "service_name": "Netflix", "plan_name": "Netflix Standard - 3 months", "price": 7900},
        headers=USER,
    )
    client.post("/cart/discount", json={"code": "FIRST100"}, headers=USER)

    res = client.post("/orders", json=CUSTOMER, headers=USER)

    assert res.status_code == 201
    order = res.json()
    assert order["status"] == "pending"
    assert Decimal(order["amount"]) == Decimal("13400")
    assert sorted(i["duration_months"] for i in order["items"]) == [1, 3]

    cart = client.get("/cart", headers=USER).json()
    assert cart["is_empty"] is True
    assert Decimal(cart["discount"]) == 0

    orders = client.get("/orders", headers=USER).json()
    assert [o["id"] for o in orders] == [order["id"]]


def test_checkout_validates_contact(client):
    client.post("/cart/items", json=NETFLIX, headers=USER)

    res = client.post("/orders", json={**CUSTOMER, "customer_email": "not-an-email"}, headers=USER)

    assert res.status_code == 422


def test_order_access_rules(client):
    client.post("/cart/items", json=NETFLIX, headers=USER)
    order_id = client.post("/orders", json=CUSTOMER, headers=USER).json()["id"]

    assert client.get(f"/orders/{order_id}", headers=USER).status_code == 200
    assert client.get(f"/orders/{order_id}", headers={"X-User-Id": "user-2"}).status_code == 403
    assert client.get("/orders/missing", headers=USER).status_code == 404
    assert client.get("/orders/all", headers=USER).status_code == 403


def test_admin_marks_order_delivered(client):
    client.post("/cart/items", json=NETFLIX, headers=USER)
    order_id = client.post("/orders", json=CUSTOMER, headers=USER).json()["id"]

    res = client.patch(f"/orders/{order_id}/status", json={"status": "delivered"}, headers=ADMIN)

    assert res.status_code == 200
    assert res.json()["status"] == "delivered"
    assert res.json()["delivered_at"] is not None
    assert len(client.get("/orders/all", headers=ADMIN).json()) == 1


def test_unknown_status_is_rejected(client):
    res = client.patch("/orders/whatever/status", json={"status": "shipped"}, headers=ADMIN)

    assert res.status_code == 422


def test_checkout_survives_notification_failure(client, monkeypatch):
    def broker_down(*args, **kwargs):
        raise ConnectionError("broker unreachable")

    monkeypatch.setattr(notification_service.send_order_notification_task, "delay", broker_down)
    client.post("/cart/items", json=NETFLIX, headers=USER)

    res = client.post("/orders", json=CUSTOMER, headers=USER)

    assert res.status_code == 201
    assert client.get("/cart", headers=USER).json()["is_empty"] is True
    assert len(client.get("/orders", headers=USER).json()) == 1


def test_dashboard_stats(client):
    client.post("/cart/items", json=NETFLIX, headers=USER)
    first = client.post("/orders", json=CUSTOMER, headers=USER).json()["id"]
    client.post("/cart/items", json={"plan_id": "spotify-duo-1"}, headers={"X-User-Id": "user-2"})
    client.post("/orders", json=CUSTOMER, headers={"X-User-Id": "user-2"})
    client.patch(f"/orders/{first}/status", json={"status": "delivered"}, headers=ADMIN)

    assert client.get("/orders/stats", headers=USER).status_code == 403

    stats = client.get("/orders/stats", headers=ADMIN).json()
    assert Decimal(stats["total_revenue"]) == Decimal("2800")
    assert stats["pending_orders"] == 1
    assert stats["active_customers"] == 2
    assert stats["delivered_today"] == 1
