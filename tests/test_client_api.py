from sqlalchemy import func, select

from cafeqr_shared.constants import UNIQUE_CODE_MAX, UNIQUE_CODE_MIN
from cafeqr_shared.db import get_session
from cafeqr_shared.models import Order, RealtimeEvent
from cafeqr_shared.services import order_service, tenant_service


def _order_count() -> int:
    with get_session() as session:
        return session.execute(select(func.count()).select_from(Order)).scalar_one()


def _checkout(client, cafe, items, payment_method="cash", token=None, table=None):
    table = table or cafe.tables[0]
    return client.post(
        f"/api/{cafe.tenant['slug']}/order/{table['id']}/checkout",
        json={
            "items": items,
            "payment_method": payment_method,
            "verification_token": cafe.tenant["daily_token"] if token is None else token,
        },
    )


def test_health(customer_client):
    response = customer_client.get("/health")
    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"


def test_order_page_lists_available_menus(customer_client, cafe):
    table = cafe.tables[0]
    response = customer_client.get(f"/api/{cafe.tenant['slug']}/order/{table['id']}")
    assert response.status_code == 200
    data = response.get_json()["data"]

    assert data["tenant"]["name"] == "Kopi Kenangan"
    assert "daily_token" not in data["tenant"]
    assert data["table"]["table_number"] == 1
    [category] = data["menu"]["categories"]
    assert category["name"] == "Minuman"
    assert [item["name"] for item in category["items"]] == ["Kopi Susu", "Teh Tarik"]


def test_order_page_unknown_tenant_and_table(customer_client, cafe, other_cafe):
    response = customer_client.get(f"/api/tidak-ada/order/{cafe.tables[0]['id']}")
    assert response.status_code == 404
    assert response.get_json()["details"]["code"] == "TENANT_NOT_FOUND"

    response = customer_client.get(f"/api/{cafe.tenant['slug']}/order/{other_cafe.tables[0]['id']}")
    assert response.status_code == 404
    assert response.get_json()["details"]["code"] == "TABLE_NOT_FOUND"


def test_renamed_cafe_redirects_permanently(customer_client, cafe):
    old_slug = cafe.tenant["slug"]
    tenant_service.rename_tenant(cafe.tenant["id"], "Kopi Kenangan Baru")
    table_id = cafe.tables[0]["id"]

    response = customer_client.get(f"/api/{old_slug}/order/{table_id}?lang=id")
    assert response.status_code == 308
    assert response.headers["Location"] == f"/api/kopi-kenangan-baru/order/{table_id}?lang=id"
    body = response.get_json()
    assert body["details"]["code"] == "TENANT_MOVED"
    assert body["details"]["canonical_slug"] == "kopi-kenangan-baru"


def test_cash_checkout(customer_client, cafe):
    response = _checkout(
        customer_client,
        cafe,
        [{"menu_id": cafe.menus["kopi"]["id"], "quantity": 2}, {"menu_id": cafe.menus["teh"]["id"], "quantity": 1}],
    )
    assert response.status_code == 201
    order = response.get_json()["data"]
    assert order["subtotal"] == 50000
    assert order["unique_code"] is None
    assert order["total_amount"] == 50000
    assert order["status"] == "received"
    assert order["payment_verified"] is False
    assert order["status_url"] == f"/{cafe.tenant['slug']}/order/{cafe.tables[0]['id']}/status/{order['id']}"
    assert "tenant_id" not in order


def test_qris_checkout_adds_unique_code(customer_client, cafe):
    response = _checkout(
        customer_client,
        cafe,
        [{"menu_id": cafe.menus["kopi"]["id"], "quantity": 2}, {"menu_id": cafe.menus["teh"]["id"], "quantity": 1}],
        payment_method="qris",
    )
    assert response.status_code == 201
    order = response.get_json()["data"]
    assert UNIQUE_CODE_MIN <= order["unique_code"] < UNIQUE_CODE_MAX
    assert order["total_amount"] == 50000 + order["unique_code"]


def test_repeated_menu_lines_are_merged(customer_client, cafe):
    menu_id = cafe.menus["kopi"]["id"]
    response = _checkout(
        customer_client, cafe, [{"menu_id": menu_id, "quantity": 1}, {"menu_id": menu_id, "quantity": 2}]
    )
    order = response.get_json()["data"]
    assert order["order_items"] == [{"id": menu_id, "name": "Kopi Susu", "price": 15000, "quantity": 3}]


def test_client_prices_are_ignored(customer_client, cafe):
    response = _checkout(
        customer_client, cafe, [{"menu_id": cafe.menus["kopi"]["id"], "quantity": 1, "price": 1}]
    )
    assert response.get_json()["data"]["total_amount"] == 15000


def test_wrong_token_creates_nothing(customer_client, cafe):
    wrong = "0000" if cafe.tenant["daily_token"] != "0000" else "1111"
    response = _checkout(customer_client, cafe, [{"menu_id": cafe.menus["kopi"]["id"], "quantity": 1}], token=wrong)
    assert response.status_code == 422
    details = response.get_json()["details"]
    assert details["code"] == "CHECKOUT_INVALID"
    assert "verification_token" in details["fields"]
    assert _order_count() == 0
    with get_session() as session:
        events = session.execute(
            select(RealtimeEvent).where(RealtimeEvent.event_type == "orders.new")
        ).scalars().all()
        assert events == []


def test_rotated_token_stops_working(customer_client, cafe):
    tenant_service.rotate_daily_token(cafe.tenant["id"])
    response = _checkout(customer_client, cafe, [{"menu_id": cafe.menus["kopi"]["id"], "quantity": 1}])
    assert response.status_code == 422
    assert _order_count() == 0


def test_sold_out_and_foreign_menus_are_rejected(customer_client, cafe, other_cafe):
    response = _checkout(
        customer_client,
        cafe,
        [
            {"menu_id": cafe.menus["kopi"]["id"], "quantity": 1},
            {"menu_id": cafe.menus["habis"]["id"], "quantity": 1},
            {"menu_id": other_cafe.menus["teh"]["id"], "quantity": 1},
        ],
    )
    assert response.status_code == 422
    fields = response.get_json()["details"]["fields"]
    assert set(fields) == {"items.1.menu_id", "items.2.menu_id"}
    assert _order_count() == 0


def test_invalid_body(customer_client, cafe):
    response = _checkout(customer_client, cafe, [])
    assert response.status_code == 400
    assert "items" in response.get_json()["details"]["fields"]

    response = _checkout(
        customer_client, cafe, [{"menu_id": cafe.menus["kopi"]["id"], "quantity": 0}], payment_method="kartu"
    )
    fields = response.get_json()["details"]["fields"]
    assert "items.0.quantity" in fields
    assert "payment_method" in fields


def test_checkout_on_renamed_cafe_redirects(customer_client, cafe):
    old_slug = cafe.tenant["slug"]
    tenant_service.rename_tenant(cafe.tenant["id"], "Kopi Pindah")
    response = customer_client.post(
        f"/api/{old_slug}/order/{cafe.tables[0]['id']}/checkout",
        json={
            "items": [{"menu_id": cafe.menus["kopi"]["id"], "quantity": 1}],
            "payment_method": "cash",
            "verification_token": cafe.tenant["daily_token"],
        },
    )
    assert response.status_code == 308
    assert _order_count() == 0


def test_checkout_emits_new_order_event(customer_client, cafe):
    response = _checkout(customer_client, cafe, [{"menu_id": cafe.menus["kopi"]["id"], "quantity": 1}])
    order_id = response.get_json()["data"]["id"]
    with get_session() as session:
        event = session.execute(
            select(RealtimeEvent).where(RealtimeEvent.event_type == "orders.new")
        ).scalar_one()
        assert event.tenant_id == cafe.tenant["id"]
        assert event.payload == {"order_id": order_id, "table_number": 1}


def test_status_page_follows_payment(customer_client, cafe):
    tenant_service.update_tenant_settings(cafe.tenant["id"], {"receipt_message": "Terima kasih!"})
    response = _checkout(
        customer_client, cafe, [{"menu_id": cafe.menus["kopi"]["id"], "quantity": 1}], payment_method="qris"
    )
    order = response.get_json()["data"]
    url = f"/api{order['status_url']}"

    data = customer_client.get(url).get_json()["data"]
    assert data["payment"]["state"] == "awaiting_qris"
    assert data["payment"]["qris_image_url"] == "https://cdn.test/qris.png"
    assert data["payment"]["amount"] == order["total_amount"]
    assert data["order"]["status_display"] == "Pesanan diterima"
    assert data["receipt_message"] == "Terima kasih!"

    order_service.set_payment_verified(cafe.tenant["id"], order["id"], True)
    order_service.update_order_status(cafe.tenant["id"], order["id"], "preparing")
    data = customer_client.get(url).get_json()["data"]
    assert data["payment"]["state"] == "paid"
    assert data["order"]["status"] == "preparing"


def test_cash_status_page_points_to_cashier(customer_client, cafe):
    response = _checkout(customer_client, cafe, [{"menu_id": cafe.menus["kopi"]["id"], "quantity": 1}])
    order = response.get_json()["data"]
    data = customer_client.get(f"/api{order['status_url']}").get_json()["data"]
    assert data["payment"]["state"] == "pay_at_cashier"


def test_status_page_checks_table_and_tenant(customer_client, cafe, other_cafe):
    response = _checkout(customer_client, cafe, [{"menu_id": cafe.menus["kopi"]["id"], "quantity": 1}])
    order_id = response.get_json()["data"]["id"]

    wrong_table = f"/api/{cafe.tenant['slug']}/order/{cafe.tables[1]['id']}/status/{order_id}"
    assert customer_client.get(wrong_table).status_code == 404

    wrong_tenant = f"/api/{other_cafe.tenant['slug']}/order/{cafe.tables[0]['id']}/status/{order_id}"
    assert customer_client.get(wrong_tenant).status_code == 404


def test_checkout_rate_limit(clients_app, cafe):
    clients_app.config["RATE_LIMIT_IN_TESTS"] = True
    clients_app.config["CHECKOUT_RATE_LIMIT"] = 2
    client = clients_app.test_client()
    wrong = "0000" if cafe.tenant["daily_token"] != "0000" else "1111"
    items = [{"menu_id": cafe.menus["kopi"]["id"], "quantity": 1}]

    statuses = [_checkout(client, cafe, items, token=wrong).status_code for _ in range(3)]
    assert statuses == [422, 422, 429]
