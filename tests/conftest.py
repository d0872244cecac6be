import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-cafeqr-0123456789")
os.environ.setdefault("PASSWORD_HASH_SALT", "test-salt-for-cafeqr")

from types import SimpleNamespace

import pytest

from cafeqr_admin.app import create_app as create_admin_app
from cafeqr_clients.app import create_app as create_clients_app
from cafeqr_shared.config import AppConfig
from cafeqr_shared.db import get_session, init_db, init_engine, reset_engine
from cafeqr_shared.jwt_service import create_access_token
from cafeqr_shared.models import Base, Order
from cafeqr_shared.security_middleware import get_rate_limiter
from cafeqr_shared.services import (
    admin_user_service,
    category_service,
    identity_service,
    menu_service,
    table_service,
    tenant_service,
)
from cafeqr_shared.services.access_gate import verify_super_admin
from cafeqr_shared.supabase.storage import SupabaseStorage

DAILY_TOKEN = "4821"
ADMIN_PASSWORD = "rahasia123"


@pytest.fixture
def config(tmp_path):
    return AppConfig(
        app_name="cafeqr-test",
        database_url="sqlite://",
        secret_key=os.environ["SECRET_KEY"],
        log_level="WARNING",
        public_origin="https://cafeqr.test",
        report_timezone="Asia/Jakarta",
        orders_page_size=10,
        max_upload_bytes=5 * 1024 * 1024,
        upload_folder=str(tmp_path / "uploads"),
        supabase_url="",
        supabase_service_role_key="",
        storage_bucket_menu="menu-images",
        storage_bucket_branding="tenant-branding",
        debug_mode=True,
        checkout_rate_limit=10,
        jwt_access_token_expires_hours=24,
        jwt_refresh_token_expires_days=7,
    )


@pytest.fixture(autouse=True)
def database(config):
    reset_engine()
    init_engine(config)
    init_db(Base.metadata)
    get_rate_limiter().reset()
    SupabaseStorage.reset()
    yield
    reset_engine()


@pytest.fixture
def admin_app(config):
    return create_admin_app(config, testing=True)


@pytest.fixture
def admin_client(admin_app):
    return admin_app.test_client()


@pytest.fixture
def clients_app(config):
    return create_clients_app(config, testing=True)


@pytest.fixture
def customer_client(clients_app):
    return clients_app.test_client()


def auth_headers(uid: str, email: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(uid, email)}"}


def seed_cafe(name: str = "Kopi Kenangan", email: str | None = None, table_numbers=(1, 2)):
    """A tenant with its admin, one category, three menus (one sold out) and tables."""
    tenant = tenant_service.create_tenant(name, qris_image_url="https://cdn.test/qris.png")
    tenant = tenant_service.update_tenant_settings(tenant["id"], {"daily_token": DAILY_TOKEN})["tenant"]

    email = email or f"admin@{tenant['slug']}.test"
    admin = admin_user_service.create_admin_user(email, ADMIN_PASSWORD, tenant["id"])

    category = category_service.create_category(tenant["id"], "Minuman")
    menus = {
        "kopi": menu_service.create_menu(
            tenant["id"], {"name": "Kopi Susu", "price": 15000, "category_id": category["id"]}
        ),
        "teh": menu_service.create_menu(
            tenant["id"], {"name": "Teh Tarik", "price": 20000, "category_id": category["id"]}
        ),
        "habis": menu_service.create_menu(
            tenant["id"],
            {"name": "Es Cokelat", "price": 18000, "category_id": category["id"], "available": False},
        ),
    }
    tables = [table_service.create_table(tenant["id"], number) for number in table_numbers]

    return SimpleNamespace(
        tenant=tenant,
        admin=admin,
        identity=identity_service.AuthenticatedIdentity(uid=admin["uid"], email=admin["email"]),
        headers=auth_headers(admin["uid"], admin["email"]),
        category=category,
        menus=menus,
        tables=tables,
    )


@pytest.fixture
def cafe():
    return seed_cafe()


@pytest.fixture
def other_cafe():
    return seed_cafe("Warung Senja")


@pytest.fixture
def super_admin():
    identity = identity_service.create_identity("owner@cafeqr.test", "pemilik123")
    outcome = verify_super_admin(identity)
    assert outcome.context.bootstrapped
    return SimpleNamespace(identity=identity, headers=auth_headers(identity.uid, identity.email))


def insert_order(tenant_id: str, created_at, total: int = 10000, status: str = "received") -> str:
    """Store an order with an explicit timestamp, bypassing checkout."""
    with get_session() as session:
        order = Order(
            tenant_id=tenant_id,
            table_id="table-1",
            table_number=1,
            order_items=[{"id": "menu-1", "name": "Kopi Susu", "price": total, "quantity": 1}],
            subtotal=total,
            total_amount=total,
            unique_code=None,
            status=status,
            payment_method="cash",
            payment_verified=False,
            verification_token=DAILY_TOKEN,
            created_at=created_at,
            updated_at=created_at,
        )
        session.add(order)
        session.flush()
        return order.id


@pytest.fixture
def make_cafe():
    return seed_cafe


@pytest.fixture
def make_order():
    return insert_order
