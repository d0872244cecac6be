from datetime import datetime

import pytest

from cafeqr_shared.jwt_service import create_access_token
from cafeqr_shared.services import identity_service
from cafeqr_shared.services.identity_service import AuthenticatedIdentity


def _headers(identity: AuthenticatedIdentity) -> dict:
    return {"Authorization": f"Bearer {create_access_token(identity.uid, identity.email)}"}


def test_first_visitor_becomes_super_admin(admin_client):
    owner = identity_service.create_identity("owner@cafeqr.test", "pemilik123")
    response = admin_client.get("/api/admin/dashboard", headers=_headers(owner))
    assert response.status_code == 200
    body = response.get_json()
    assert body["data"]["super_admin"]["bootstrapped"] is True
    assert body["message"] == "Anda terdaftar sebagai super admin"

    response = admin_client.get("/api/admin/dashboard", headers=_headers(owner))
    assert response.get_json()["data"]["super_admin"]["bootstrapped"] is False


def test_console_rejects_others(admin_client, super_admin, cafe):
    assert admin_client.get("/api/admin/tenants").status_code == 401

    response = admin_client.get("/api/admin/tenants", headers=cafe.headers)
    assert response.status_code == 403
    assert response.get_json()["details"]["reason"] == "tenant_admin"

    stranger = identity_service.create_identity("asing@cafeqr.test", "asing1234")
    response = admin_client.get("/api/admin/tenants", headers=_headers(stranger))
    assert response.status_code == 403
    assert response.get_json()["details"]["reason"] == "bootstrap_rejected"


def test_dashboard_counts(admin_client, super_admin, cafe, other_cafe):
    data = admin_client.get("/api/admin/dashboard", headers=super_admin.headers).get_json()["data"]
    assert data["total_tenants"] == 2
    assert data["total_users"] == 2
    assert data["total_menus"] == 6
    assert data["total_orders"] == 0


def test_tenant_crud(admin_client, super_admin):
    headers = super_admin.headers
    response = admin_client.post(
        "/api/admin/tenants", json={"name": "Kopi Baru", "address": "  ", "owner_name": "Sari"}, headers=headers
    )
    assert response.status_code == 201
    tenant = response.get_json()["data"]
    assert tenant["slug"] == "kopi-baru"
    assert tenant["address"] is None
    assert tenant["owner_name"] == "Sari"

    response = admin_client.post("/api/admin/tenants", json={"name": "Kopi  Baru"}, headers=headers)
    assert response.status_code == 409

    response = admin_client.post("/api/admin/tenants", json={"name": "ab"}, headers=headers)
    assert response.status_code == 400

    response = admin_client.patch(
        f"/api/admin/tenants/{tenant['id']}", json={"name": "Kopi Lebih Baru"}, headers=headers
    )
    data = response.get_json()["data"]
    assert data["slug_changed"] is True
    assert data["tenant"]["slug"] == "kopi-lebih-baru"

    fetched = admin_client.get(f"/api/admin/tenants/{tenant['id']}", headers=headers).get_json()["data"]
    assert fetched["name"] == "Kopi Lebih Baru"

    listed = admin_client.get("/api/admin/tenants", headers=headers).get_json()["data"]
    assert [t["name"] for t in listed] == ["Kopi Lebih Baru"]

    assert admin_client.delete(f"/api/admin/tenants/{tenant['id']}", headers=headers).status_code == 200
    assert admin_client.get(f"/api/admin/tenants/{tenant['id']}", headers=headers).status_code == 404


def test_user_management(admin_client, super_admin, cafe, other_cafe):
    headers = super_admin.headers
    response = admin_client.post(
        "/api/admin/users",
        json={"email": "kasir@example.com", "password": "rahasia123", "tenant_id": cafe.tenant["id"]},
        headers={**headers, "Idempotency-Key": "buat-kasir"},
    )
    assert response.status_code == 201
    user = response.get_json()["data"]
    assert user["tenant_name"] == "Kopi Kenangan"

    replay = admin_client.post(
        "/api/admin/users",
        json={"email": "kasir@example.com", "password": "rahasia123", "tenant_id": cafe.tenant["id"]},
        headers={**headers, "Idempotency-Key": "buat-kasir"},
    )
    assert replay.status_code == 201
    assert replay.get_json()["data"]["uid"] == user["uid"]

    response = admin_client.post(
        "/api/admin/users",
        json={"email": "bukan email", "password": "123", "tenant_id": cafe.tenant["id"]},
        headers=headers,
    )
    assert response.status_code == 400
    assert {"email", "password"} <= set(response.get_json()["details"]["fields"])

    response = admin_client.patch(
        f"/api/admin/users/{user['uid']}", json={"tenant_id": other_cafe.tenant["id"]}, headers=headers
    )
    assert response.get_json()["data"]["tenant_name"] == "Warung Senja"

    emails = [u["email"] for u in admin_client.get("/api/admin/users", headers=headers).get_json()["data"]]
    assert "kasir@example.com" in emails

    assert admin_client.delete(f"/api/admin/users/{user['uid']}", headers=headers).status_code == 200
    assert admin_client.get(f"/api/admin/users/{user['uid']}", headers=headers).status_code == 404


@pytest.mark.parametrize("email", ["kasir@kopi.test", "kasir@example.com"])
def test_user_form_accepts_what_sign_up_accepts(admin_client, super_admin, cafe, email):
    response = admin_client.post(
        "/api/admin/users",
        json={"email": email, "password": "rahasia123", "tenant_id": cafe.tenant["id"]},
        headers=super_admin.headers,
    )
    assert response.status_code == 201
    assert identity_service.sign_in(email, "rahasia123").uid == response.get_json()["data"]["uid"]


def test_moved_admin_follows_new_tenant(admin_client, super_admin, cafe, other_cafe):
    admin_client.patch(
        f"/api/admin/users/{cafe.identity.uid}", json={"tenant_id": other_cafe.tenant["id"]}, headers=super_admin.headers
    )
    old_panel = admin_client.get(f"/api/{cafe.tenant['slug']}/admin/menus", headers=cafe.headers)
    assert old_panel.status_code == 403
    new_panel = admin_client.get(f"/api/{other_cafe.tenant['slug']}/admin/menus", headers=cafe.headers)
    assert new_panel.status_code == 200


def test_reports_across_tenants(admin_client, super_admin, cafe, other_cafe, make_order):
    make_order(cafe.tenant["id"], datetime(2024, 5, 1, 3), total=10000)
    make_order(other_cafe.tenant["id"], datetime(2024, 5, 20, 3), total=20000)
    make_order(other_cafe.tenant["id"], datetime(2024, 6, 2, 3), total=40000)
    headers = super_admin.headers

    everything = admin_client.get(
        "/api/admin/reports?tenant_id=all&period=month&year=2024&month=5", headers=headers
    ).get_json()["data"]
    assert everything["total_revenue"] == 30000
    assert everything["label"] == "2024-05"
    assert everything["tenant_name"] is None

    single = admin_client.get(
        f"/api/admin/reports?tenant_id={other_cafe.tenant['id']}&period=year&year=2024", headers=headers
    ).get_json()["data"]
    assert single["total_transactions"] == 2
    assert single["tenant_name"] == "Warung Senja"

    response = admin_client.get(
        "/api/admin/reports?period=day", headers=headers
    )
    assert response.status_code == 400

    export = admin_client.get("/api/admin/reports/export?period=year&year=2024", headers=headers)
    assert export.headers["Content-Disposition"] == 'attachment; filename="laporan-semua-kafe-2024.csv"'


def test_error_catalog(admin_client, super_admin):
    catalog = admin_client.get("/api/admin/errors", headers=super_admin.headers).get_json()["data"]
    assert catalog["CHECKOUT_INVALID"]["http_code"] == 422
