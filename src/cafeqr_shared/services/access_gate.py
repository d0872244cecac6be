"""
Access control gate for the tenant admin panel and the super-admin console.

Each protected request runs the gate from scratch: nothing is cached between
requests. A run starts UNVERIFIED, moves to VERIFYING and ends AUTHORIZED,
DENIED or REDIRECT (the admin is legitimate but the URL carries a stale slug).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from cafeqr_shared import access_rules
from cafeqr_shared.constants import LOGIN_ROUTE, SUPER_ADMIN_ROUTE, Roles
from cafeqr_shared.db import get_session
from cafeqr_shared.documents import (
    AdminProfileDocument,
    SuperAdminDocument,
    TenantDocument,
    load_document,
)
from cafeqr_shared.errors import AppError, MalformedDocumentError, PermissionDeniedError
from cafeqr_shared.models import AdminProfile, SuperAdminRole, Tenant, TenantSlugAlias
from cafeqr_shared.services.identity_service import AuthenticatedIdentity
from cafeqr_shared.services.tenant_service import admin_url

logger = logging.getLogger(__name__)


class GateState(str, Enum):
    UNVERIFIED = "unverified"
    VERIFYING = "verifying"
    AUTHORIZED = "authorized"
    DENIED = "denied"
    REDIRECT = "redirect"


_FINAL_STATES = {GateState.AUTHORIZED, GateState.DENIED, GateState.REDIRECT}


class DenialReason(str, Enum):
    NOT_SIGNED_IN = "not_signed_in"
    NO_PROFILE = "no_profile"
    MALFORMED_PROFILE = "malformed_profile"
    WRONG_ROLE = "wrong_role"
    NO_TENANT = "no_tenant"
    TENANT_MISSING = "tenant_missing"
    OTHER_TENANT = "other_tenant"
    TENANT_ADMIN = "tenant_admin"
    BOOTSTRAP_REJECTED = "bootstrap_rejected"
    VERIFICATION_FAILED = "verification_failed"


DENIAL_MESSAGES = {
    DenialReason.NOT_SIGNED_IN: "Silakan login terlebih dahulu",
    DenialReason.OTHER_TENANT: "Anda tidak memiliki akses ke kafe ini",
    DenialReason.TENANT_ADMIN: "Halaman ini khusus super admin",
    DenialReason.VERIFICATION_FAILED: "Gagal memverifikasi akses, silakan coba lagi",
}
DEFAULT_DENIAL_MESSAGE = "Anda tidak memiliki akses ke halaman ini"


@dataclass(frozen=True)
class AdminContext:
    """Everything a tenant admin view needs, passed explicitly as ``ctx``."""

    identity: AuthenticatedIdentity
    profile: AdminProfileDocument
    tenant: TenantDocument


@dataclass(frozen=True)
class SuperAdminContext:
    identity: AuthenticatedIdentity
    role: SuperAdminDocument
    bootstrapped: bool = False


@dataclass(frozen=True)
class GateOutcome:
    state: GateState
    context: AdminContext | SuperAdminContext | None = None
    reason: DenialReason | None = None
    canonical_slug: str | None = None
    redirect_to: str | None = None

    @property
    def message(self) -> str:
        return DENIAL_MESSAGES.get(self.reason, DEFAULT_DENIAL_MESSAGE)


class GateRun:
    """Tracks the state of one gate evaluation and enforces its transitions."""

    def __init__(self, kind: str, identity: AuthenticatedIdentity | None, target: str = ""):
        self.kind = kind
        self.identity = identity
        self.target = target
        self.state = GateState.UNVERIFIED

    def _finish(self, outcome: GateOutcome) -> GateOutcome:
        if self.state in _FINAL_STATES:
            raise RuntimeError(f"Gate run already finished in state {self.state.value}")
        self.state = outcome.state
        return outcome

    def begin(self) -> None:
        if self.state != GateState.UNVERIFIED:
            raise RuntimeError("Gate run already started")
        self.state = GateState.VERIFYING

    def authorize(self, context) -> GateOutcome:
        return self._finish(GateOutcome(GateState.AUTHORIZED, context=context))

    def redirect(self, canonical_slug: str) -> GateOutcome:
        logger.info(
            f"{self.kind} gate: redirecting uid={self.identity.uid} "
            f"from '{self.target}' to '{canonical_slug}'"
        )
        return self._finish(GateOutcome(GateState.REDIRECT, canonical_slug=canonical_slug))

    def deny(self, reason: DenialReason) -> GateOutcome:
        uid = self.identity.uid if self.identity else None
        logger.warning(
            f"{self.kind} gate denied",
            extra={"uid": uid, "target": self.target, "reason": reason.value},
        )
        redirect_to = LOGIN_ROUTE if reason == DenialReason.NOT_SIGNED_IN else None
        return self._finish(GateOutcome(GateState.DENIED, reason=reason, redirect_to=redirect_to))


def verify_tenant_admin(identity: AuthenticatedIdentity | None, slug: str) -> GateOutcome:
    """
    Decide whether ``identity`` may use the admin panel at ``/{slug}/admin``.

    Fails closed: a missing or malformed profile, a role other than
    admin_kafe, a missing tenant id or a tenant that no longer exists all deny.
    """
    run = GateRun("tenant_admin", identity, slug)
    if identity is None:
        return run.deny(DenialReason.NOT_SIGNED_IN)

    run.begin()
    try:
        with get_session() as session:
            row = session.get(AdminProfile, identity.uid)
            if row is None:
                return run.deny(DenialReason.NO_PROFILE)
            if not row.tenant_id:
                return run.deny(DenialReason.NO_TENANT)
            try:
                profile = load_document(AdminProfileDocument, row, f"users/{identity.uid}")
            except MalformedDocumentError:
                return run.deny(DenialReason.MALFORMED_PROFILE)
            if profile.role != Roles.ADMIN_KAFE:
                return run.deny(DenialReason.WRONG_ROLE)

            tenant_row = session.get(Tenant, profile.tenant_id)
            if tenant_row is None:
                return run.deny(DenialReason.TENANT_MISSING)
            tenant = load_document(TenantDocument, tenant_row, f"tenants/{tenant_row.id}")

            if tenant.slug == slug:
                return run.authorize(AdminContext(identity, profile, tenant))

            other = session.execute(
                select(Tenant.id).where(Tenant.slug == slug)
            ).scalar_one_or_none()
            if other is not None:
                return run.deny(DenialReason.OTHER_TENANT)

            alias = session.get(TenantSlugAlias, slug)
            if alias is not None and alias.tenant_id != tenant.id:
                return run.deny(DenialReason.OTHER_TENANT)

            return run.redirect(tenant.slug)
    except (SQLAlchemyError, AppError) as exc:
        logger.error(f"Tenant admin verification failed for uid={identity.uid}: {exc}")
        return run.deny(DenialReason.VERIFICATION_FAILED)


def _bootstrap_super_admin(identity: AuthenticatedIdentity) -> SuperAdminDocument | None:
    """
    Try to become the first super-admin.

    The access rules reject the insert when any super-admin already exists;
    the unique ``slot`` column rejects the loser of a concurrent race.
    Returns None when the attempt was rejected.
    """
    try:
        with get_session() as session:
            access_rules.check_super_admin_create(session, identity.uid, identity.email)
            role = SuperAdminRole(
                user_id=identity.uid, email=identity.email, role=Roles.SUPER_ADMIN.value, slot=1
            )
            session.add(role)
            session.flush()
            document = load_document(SuperAdminDocument, role, f"super_admin_roles/{identity.uid}")
    except PermissionDeniedError:
        return None
    except IntegrityError:
        logger.warning(f"Concurrent super-admin bootstrap lost by uid={identity.uid}")
        return None

    logger.warning(f"Super-admin bootstrapped for uid={identity.uid} ({identity.email})")
    return document


def verify_super_admin(identity: AuthenticatedIdentity | None) -> GateOutcome:
    """
    Decide whether ``identity`` may use the super-admin console.

    An identity with neither a super-admin role nor an admin profile attempts
    the one-time bootstrap and is authorized only if it succeeds.
    """
    run = GateRun("super_admin", identity)
    if identity is None:
        return run.deny(DenialReason.NOT_SIGNED_IN)

    run.begin()
    try:
        with get_session() as session:
            row = session.get(SuperAdminRole, identity.uid)
            if row is not None:
                try:
                    role = load_document(
                        SuperAdminDocument, row, f"super_admin_roles/{identity.uid}"
                    )
                except MalformedDocumentError:
                    return run.deny(DenialReason.MALFORMED_PROFILE)
                if role.role != Roles.SUPER_ADMIN:
                    return run.deny(DenialReason.WRONG_ROLE)
                return run.authorize(SuperAdminContext(identity, role))

            has_profile = session.get(AdminProfile, identity.uid) is not None
        if has_profile:
            return run.deny(DenialReason.TENANT_ADMIN)

        role = _bootstrap_super_admin(identity)
    except (SQLAlchemyError, AppError) as exc:
        logger.error(f"Super-admin verification failed for uid={identity.uid}: {exc}")
        return run.deny(DenialReason.VERIFICATION_FAILED)

    if role is None:
        return run.deny(DenialReason.BOOTSTRAP_REJECTED)
    return run.authorize(SuperAdminContext(identity, role, bootstrapped=True))


def landing_route(identity: AuthenticatedIdentity) -> str | None:
    """
    Where a freshly signed-in identity should go.

    Tenant admins land on their cafe's panel, everyone else on the console
    (which may bootstrap the first super-admin). None when the profile points
    at a cafe that no longer exists.
    """
    with get_session() as session:
        if session.get(SuperAdminRole, identity.uid) is not None:
            return SUPER_ADMIN_ROUTE
        profile = session.get(AdminProfile, identity.uid)
        if profile is None:
            return SUPER_ADMIN_ROUTE
        tenant = session.get(Tenant, profile.tenant_id) if profile.tenant_id else None
        return admin_url(tenant.slug) if tenant else None
