from cafeqr_shared.jwt_service import create_refresh_token, decode_token
from cafeqr_shared.services import identity_service


def _login(client, email, password):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def test_login_returns_tokens_and_landing_route(admin_client, cafe):
    response = _login(admin_client, cafe.admin["email"].upper(), "rahasia123")
    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["user"] == {"uid": cafe.admin["uid"], "email": cafe.admin["email"]}
    assert data["redirect_to"] == f"/{cafe.tenant['slug']}/admin"
    assert decode_token(data["access_token"], verify_type="access")["sub"] == cafe.admin["uid"]

    cookies = response.headers.getlist("Set-Cookie")
    assert any(c.startswith("access_token=") and "HttpOnly" in c for c in cookies)
    assert any(c.startswith("refresh_token=") for c in cookies)


def test_login_sends_newcomers_to_the_console(admin_client):
    identity_service.create_identity("owner@cafeqr.test", "pemilik123")
    data = _login(admin_client, "owner@cafeqr.test", "pemilik123").get_json()["data"]
    assert data["redirect_to"] == "/admin"


def test_login_failures(admin_client, cafe):
    response = _login(admin_client, cafe.admin["email"], "salah-sandi")
    assert response.status_code == 401
    assert response.get_json()["details"]["code"] == "AUTH_001"

    response = _login(admin_client, "bukan-email", "x")
    assert response.status_code == 400


def test_cookie_session_reaches_the_panel(admin_client, cafe):
    _login(admin_client, cafe.admin["email"], "rahasia123")
    response = admin_client.get(f"/api/{cafe.tenant['slug']}/admin/settings")
    assert response.status_code == 200

    admin_client.post("/api/auth/logout")
    response = admin_client.get(f"/api/{cafe.tenant['slug']}/admin/settings")
    assert response.status_code == 401


def test_me(admin_client, cafe):
    assert admin_client.get("/api/auth/me").status_code == 401
    data = admin_client.get("/api/auth/me", headers=cafe.headers).get_json()["data"]
    assert data["uid"] == cafe.admin["uid"]
    assert data["redirect_to"] == f"/{cafe.tenant['slug']}/admin"


def test_refresh(admin_client, cafe):
    refresh_token = create_refresh_token(cafe.admin["uid"])
    response = admin_client.post("/api/auth/refresh", json={"refresh_token": refresh_token})
    assert response.status_code == 200
    access_token = response.get_json()["data"]["access_token"]
    assert decode_token(access_token, verify_type="access")["email"] == cafe.admin["email"]


def test_refresh_rejects_bad_tokens(admin_client, cafe):
    assert admin_client.post("/api/auth/refresh", json={}).status_code == 400

    response = admin_client.post("/api/auth/refresh", json={"refresh_token": "bukan.token.jwt"})
    assert response.status_code == 401

    access_token = cafe.headers["Authorization"].removeprefix("Bearer ")
    response = admin_client.post("/api/auth/refresh", json={"refresh_token": access_token})
    assert response.status_code == 401


def test_refresh_for_deleted_identity(admin_client, cafe):
    refresh_token = create_refresh_token(cafe.admin["uid"])
    identity_service.delete_identity(cafe.admin["uid"])
    response = admin_client.post("/api/auth/refresh", json={"refresh_token": refresh_token})
    assert response.status_code == 401


def _register(client, email, password="pemilik123", confirm=None):
    return client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "confirm_password": confirm or password},
    )


def test_first_registrant_becomes_super_admin(admin_client):
    response = _register(admin_client, " Pemilik@Example.com ")
    assert response.status_code == 201
    data = response.get_json()["data"]
    assert data["user"]["email"] == "pemilik@example.com"
    assert data["redirect_to"] == "/admin"
    assert any(c.startswith("access_token=") for c in response.headers.getlist("Set-Cookie"))

    owner = {"Authorization": f"Bearer {data['access_token']}"}
    assert admin_client.get("/api/admin/dashboard", headers=owner).status_code == 200

    second = _register(admin_client, "tamu@example.com").get_json()["data"]
    response = admin_client.get(
        "/api/admin/dashboard", headers={"Authorization": f"Bearer {second['access_token']}"}
    )
    assert response.status_code == 403
    assert response.get_json()["details"]["reason"] == "bootstrap_rejected"

    assert admin_client.get("/api/admin/dashboard", headers=owner).status_code == 200


def test_register_validation(admin_client):
    response = _register(admin_client, "bukan-email", password="123")
    assert response.status_code == 400
    assert {"email", "password"} <= set(response.get_json()["details"]["fields"])

    response = _register(admin_client, "pemilik@example.com", confirm="lain-lagi")
    assert response.status_code == 400

    assert _register(admin_client, "pemilik@example.com").status_code == 201
    response = _register(admin_client, "PEMILIK@example.com")
    assert response.status_code == 409
    assert _login(admin_client, "pemilik@example.com", "pemilik123").status_code == 200
