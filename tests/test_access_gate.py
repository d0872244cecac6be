import pytest
from sqlalchemy import func, select

from cafeqr_shared import access_rules
from cafeqr_shared.db import get_session
from cafeqr_shared.models import AdminProfile, SuperAdminRole
from cafeqr_shared.services import identity_service, tenant_service
from cafeqr_shared.services.access_gate import (
    AdminContext,
    DenialReason,
    GateRun,
    GateState,
    landing_route,
    verify_super_admin,
    verify_tenant_admin,
)


def _set_profile(uid: str, **fields):
    with get_session() as session:
        profile = session.get(AdminProfile, uid)
        for key, value in fields.items():
            setattr(profile, key, value)


def test_admin_of_the_tenant_is_authorized(cafe):
    outcome = verify_tenant_admin(cafe.identity, cafe.tenant["slug"])
    assert outcome.state == GateState.AUTHORIZED
    assert isinstance(outcome.context, AdminContext)
    assert outcome.context.tenant.id == cafe.tenant["id"]
    assert outcome.context.profile.id == cafe.identity.uid


def test_anonymous_is_sent_to_login(cafe):
    outcome = verify_tenant_admin(None, cafe.tenant["slug"])
    assert outcome.state == GateState.DENIED
    assert outcome.reason == DenialReason.NOT_SIGNED_IN
    assert outcome.redirect_to == "/login"


def test_identity_without_profile_is_denied(cafe):
    stranger = identity_service.create_identity("orang@luar.test", "rahasia123")
    outcome = verify_tenant_admin(stranger, cafe.tenant["slug"])
    assert outcome.reason == DenialReason.NO_PROFILE


@pytest.mark.parametrize(
    ("fields", "reason"),
    [
        ({"tenant_id": None}, DenialReason.NO_TENANT),
        ({"role": "kasir"}, DenialReason.MALFORMED_PROFILE),
        ({"role": "superadmin"}, DenialReason.WRONG_ROLE),
        ({"tenant_id": "tenant-yang-sudah-dihapus"}, DenialReason.TENANT_MISSING),
    ],
)
def test_broken_profiles_fail_closed(cafe, fields, reason):
    _set_profile(cafe.identity.uid, **fields)
    outcome = verify_tenant_admin(cafe.identity, cafe.tenant["slug"])
    assert outcome.state == GateState.DENIED
    assert outcome.reason == reason
    assert outcome.context is None


def test_admin_cannot_open_another_tenants_panel(cafe, other_cafe):
    outcome = verify_tenant_admin(cafe.identity, other_cafe.tenant["slug"])
    assert outcome.state == GateState.DENIED
    assert outcome.reason == DenialReason.OTHER_TENANT


def test_stale_slug_of_own_tenant_redirects(cafe):
    old_slug = cafe.tenant["slug"]
    tenant_service.rename_tenant(cafe.tenant["id"], "Kopi Kenangan Baru")
    outcome = verify_tenant_admin(cafe.identity, old_slug)
    assert outcome.state == GateState.REDIRECT
    assert outcome.canonical_slug == "kopi-kenangan-baru"


def test_unknown_slug_redirects_to_own_panel(cafe):
    outcome = verify_tenant_admin(cafe.identity, "salah-ketik")
    assert outcome.state == GateState.REDIRECT
    assert outcome.canonical_slug == cafe.tenant["slug"]


def test_old_slug_of_another_tenant_is_denied(cafe, other_cafe):
    other_old_slug = other_cafe.tenant["slug"]
    tenant_service.rename_tenant(other_cafe.tenant["id"], "Warung Fajar")
    outcome = verify_tenant_admin(cafe.identity, other_old_slug)
    assert outcome.reason == DenialReason.OTHER_TENANT


def test_deleted_tenant_locks_its_admin_out(cafe):
    tenant_service.delete_tenant(cafe.tenant["id"])
    outcome = verify_tenant_admin(cafe.identity, cafe.tenant["slug"])
    assert outcome.reason == DenialReason.TENANT_MISSING


def test_gate_run_finishes_once():
    run = GateRun("tenant_admin", None, "kopi")
    run.deny(DenialReason.NOT_SIGNED_IN)
    with pytest.raises(RuntimeError):
        run.deny(DenialReason.NOT_SIGNED_IN)


def test_first_identity_bootstraps_super_admin():
    owner = identity_service.create_identity("owner@cafeqr.test", "pemilik123")
    outcome = verify_super_admin(owner)
    assert outcome.state == GateState.AUTHORIZED
    assert outcome.context.bootstrapped is True

    again = verify_super_admin(owner)
    assert again.state == GateState.AUTHORIZED
    assert again.context.bootstrapped is False


def test_second_identity_cannot_bootstrap(super_admin):
    latecomer = identity_service.create_identity("kedua@cafeqr.test", "kedua1234")
    outcome = verify_super_admin(latecomer)
    assert outcome.state == GateState.DENIED
    assert outcome.reason == DenialReason.BOOTSTRAP_REJECTED
    with get_session() as session:
        assert session.get(SuperAdminRole, latecomer.uid) is None


def test_tenant_admin_is_not_a_super_admin(cafe):
    outcome = verify_super_admin(cafe.identity)
    assert outcome.reason == DenialReason.TENANT_ADMIN
    with get_session() as session:
        assert session.get(SuperAdminRole, cafe.identity.uid) is None


def test_concurrent_bootstrap_loser_is_rejected(monkeypatch, super_admin):
    # The loser passed the rule check before the winner committed.
    monkeypatch.setattr(access_rules, "check_super_admin_create", lambda *args, **kwargs: None)
    loser = identity_service.create_identity("balapan@cafeqr.test", "balapan123")
    outcome = verify_super_admin(loser)
    assert outcome.reason == DenialReason.BOOTSTRAP_REJECTED
    with get_session() as session:
        assert session.execute(select(func.count()).select_from(SuperAdminRole)).scalar_one() == 1


def test_anonymous_super_admin_check():
    outcome = verify_super_admin(None)
    assert outcome.reason == DenialReason.NOT_SIGNED_IN
    assert outcome.redirect_to == "/login"


def test_landing_route(cafe, super_admin):
    assert landing_route(cafe.identity) == f"/{cafe.tenant['slug']}/admin"
    assert landing_route(super_admin.identity) == "/admin"
    newcomer = identity_service.create_identity("baru@cafeqr.test", "barubaru")
    assert landing_route(newcomer) == "/admin"


def test_landing_route_for_orphaned_admin(make_cafe):
    cafe = make_cafe("Kopi Yatim")
    tenant_service.delete_tenant(cafe.tenant["id"])
    assert landing_route(cafe.identity) is None
