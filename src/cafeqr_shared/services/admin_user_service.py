"""
Provisioning of tenant admin users by the super-admin.

Creating a user touches two systems: the identity provider and the profile
store. ``create_admin_user`` runs them as a saga. If the profile cannot be
written, the identity created in step 1 is deleted again; a failed
compensation is logged and the original error still propagates.
"""

from __future__ import annotations

import logging
import uuid
from datetime import timedelta
from typing import Any

from sqlalchemy import select

from cafeqr_shared.constants import PROVISIONING_STALE_SECONDS, ProvisioningStatus, Roles
from cafeqr_shared.datetime_utils import utcnow_naive
from cafeqr_shared.db import get_session
from cafeqr_shared.errors import ConflictError, TenantNotFoundError, UserNotFoundError
from cafeqr_shared.models import AdminProfile, ProvisioningRecord, Tenant
from cafeqr_shared.serializers import serialize_admin_user
from cafeqr_shared.services import identity_service

logger = logging.getLogger(__name__)


def _tenant_names(session) -> dict[str, str]:
    return dict(session.execute(select(Tenant.id, Tenant.name)).all())


def list_admin_users() -> list[dict[str, Any]]:
    """All tenant admins, with the tenant name joined at read time."""
    with get_session() as session:
        names = _tenant_names(session)
        profiles = session.execute(select(AdminProfile).order_by(AdminProfile.email)).scalars()
        return [serialize_admin_user(p, names.get(p.tenant_id)) for p in profiles]


def get_admin_user(uid: str) -> dict[str, Any]:
    with get_session() as session:
        profile = session.get(AdminProfile, uid)
        if profile is None:
            raise UserNotFoundError()
        tenant = session.get(Tenant, profile.tenant_id) if profile.tenant_id else None
        return serialize_admin_user(profile, tenant.name if tenant else None)


def _begin_provisioning(idempotency_key: str, email: str, tenant_id: str) -> dict[str, Any] | None:
    """
    Claim the idempotency key.

    Returns the existing profile when the key already completed, None when
    the caller should run the saga. A pending record belongs to a request
    still in flight and raises ConflictError until it goes stale.
    """
    with get_session() as session:
        if session.get(Tenant, tenant_id) is None:
            raise TenantNotFoundError()

        record = session.get(ProvisioningRecord, idempotency_key)
        if record is None:
            session.add(
                ProvisioningRecord(idempotency_key=idempotency_key, email=email, tenant_id=tenant_id)
            )
            return None

        if record.status == ProvisioningStatus.COMPLETED.value and record.identity_uid:
            profile = session.get(AdminProfile, record.identity_uid)
            if profile is not None:
                tenant = session.get(Tenant, profile.tenant_id)
                logger.info(f"Provisioning {idempotency_key} already completed; returning profile")
                return serialize_admin_user(profile, tenant.name if tenant else None)

        if record.status == ProvisioningStatus.PENDING.value:
            age = utcnow_naive() - record.updated_at
            if age < timedelta(seconds=PROVISIONING_STALE_SECONDS):
                raise ConflictError("Pembuatan user sedang diproses")
            logger.warning(f"Provisioning {idempotency_key} stuck in pending for {age}; retrying")

        record.email = email
        record.tenant_id = tenant_id
        record.status = ProvisioningStatus.PENDING.value
        record.identity_uid = None
        record.error = None
        return None


def _mark(idempotency_key: str, status: ProvisioningStatus, **fields: Any) -> None:
    with get_session() as session:
        record = session.get(ProvisioningRecord, idempotency_key)
        if record is None or record.status == ProvisioningStatus.COMPLETED.value:
            return
        record.status = status.value
        for key, value in fields.items():
            setattr(record, key, value)


def _create_profile(uid: str, email: str, tenant_id: str) -> dict[str, Any]:
    with get_session() as session:
        tenant = session.get(Tenant, tenant_id)
        if tenant is None:
            raise TenantNotFoundError()
        profile = AdminProfile(id=uid, email=email, role=Roles.ADMIN_KAFE.value, tenant_id=tenant_id)
        session.add(profile)
        session.flush()
        return serialize_admin_user(profile, tenant.name)


def create_admin_user(
    email: str, password: str, tenant_id: str, idempotency_key: str | None = None
) -> dict[str, Any]:
    """
    Create identity + admin profile for a tenant.

    Repeating a completed ``idempotency_key`` returns the profile created the
    first time without touching either system again.
    """
    idempotency_key = idempotency_key or uuid.uuid4().hex
    email = email.strip().lower()

    existing = _begin_provisioning(idempotency_key, email, tenant_id)
    if existing is not None:
        return existing

    # Step 1: identity provider
    try:
        identity = identity_service.create_identity(email, password)
    except Exception as exc:
        _mark(idempotency_key, ProvisioningStatus.ROLLED_BACK, error=str(exc))
        raise
    _mark(idempotency_key, ProvisioningStatus.PENDING, identity_uid=identity.uid)

    # Step 2: profile store, compensated by deleting the identity
    try:
        profile = _create_profile(identity.uid, email, tenant_id)
    except Exception as exc:
        logger.error(f"Profile creation failed for {email}; deleting identity {identity.uid}")
        try:
            identity_service.delete_identity(identity.uid)
        except Exception as rollback_exc:
            logger.critical(
                "Identity rollback failed",
                extra={"uid": identity.uid, "email": email, "error": str(rollback_exc)},
            )
        _mark(idempotency_key, ProvisioningStatus.ROLLED_BACK, error=str(exc))
        raise

    _mark(idempotency_key, ProvisioningStatus.COMPLETED)
    logger.info(f"Admin user {identity.uid} provisioned for tenant {tenant_id}")
    return profile


def update_admin_user(uid: str, tenant_id: str) -> dict[str, Any]:
    """Move an admin to another tenant. The email is read-only."""
    with get_session() as session:
        profile = session.get(AdminProfile, uid)
        if profile is None:
            raise UserNotFoundError()
        tenant = session.get(Tenant, tenant_id)
        if tenant is None:
            raise TenantNotFoundError()
        profile.tenant_id = tenant_id
        return serialize_admin_user(profile, tenant.name)


def delete_admin_user(uid: str) -> None:
    """Delete the profile, then the identity."""
    with get_session() as session:
        profile = session.get(AdminProfile, uid)
        if profile is None:
            raise UserNotFoundError()
        session.delete(profile)
    try:
        identity_service.delete_identity(uid)
    except UserNotFoundError:
        logger.warning(f"Identity {uid} was already gone when deleting admin user")

