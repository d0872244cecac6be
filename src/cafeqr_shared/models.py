"""
SQLAlchemy ORM models shared by the cafeqr services.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator

from .constants import OrderStatus, ProvisioningStatus, Roles, TableStatus
from .datetime_utils import utcnow_naive


class JSONBType(TypeDecorator):
    """
    Custom type that provides JSONB support for PostgreSQL
    and falls back to TEXT with JSON serialization for SQLite.
    """

    impl = Text
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(Text())

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "postgresql":
            return value
        return json.dumps(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "postgresql":
            return value
        if isinstance(value, str):
            return json.loads(value)
        return value

    @property
    def python_type(self):
        return object


JSONB_TYPE = JSONBType()


def new_id() -> str:
    return uuid.uuid4().hex


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


class Tenant(Base):
    __tablename__ = "cafeqr_tenants"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    slug: Mapped[str] = mapped_column(String(140), unique=True, nullable=False, index=True)
    daily_token: Mapped[str] = mapped_column(String(4), nullable=False)
    logo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    qris_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    owner_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    receipt_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow_naive, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow_naive, onupdate=utcnow_naive, nullable=False
    )

    aliases: Mapped[list[TenantSlugAlias]] = relationship(
        "TenantSlugAlias", back_populates="tenant", cascade="all, delete-orphan"
    )


class TenantSlugAlias(Base):
    """A slug the tenant used before being renamed."""

    __tablename__ = "cafeqr_tenant_slug_aliases"

    slug: Mapped[str] = mapped_column(String(140), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(
        ForeignKey("cafeqr_tenants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow_naive, nullable=False)

    tenant: Mapped[Tenant] = relationship("Tenant", back_populates="aliases")


class Identity(Base):
    """Sign-in identities. Only the salted credential hash is stored."""

    __tablename__ = "cafeqr_identities"

    uid: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    auth_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow_naive, nullable=False)


class AdminProfile(Base):
    """
    Tenant admin profile keyed by identity uid.

    ``tenant_id`` is a plain reference: a profile may outlive its tenant and
    is then rejected at the access gate.
    """

    __tablename__ = "cafeqr_admin_profiles"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(32), nullable=False, default=Roles.ADMIN_KAFE.value)
    tenant_id: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow_naive, nullable=False)


class SuperAdminRole(Base):
    """
    The platform owner. ``slot`` is constant and unique, so the table can hold
    at most one row regardless of how many bootstrap attempts race.
    """

    __tablename__ = "cafeqr_super_admin_roles"
    __table_args__ = (
        UniqueConstraint("slot", name="uq_super_admin_slot"),
        CheckConstraint("slot = 1", name="ck_super_admin_single_slot"),
    )

    user_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(32), nullable=False, default=Roles.SUPER_ADMIN.value)
    slot: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    assigned_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow_naive, nullable=False)


class Category(Base):
    __tablename__ = "cafeqr_categories"
    __table_args__ = (UniqueConstraint("tenant_id", "name", name="uq_category_tenant_name"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    tenant_id: Mapped[str] = mapped_column(
        ForeignKey("cafeqr_tenants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Menu(Base):
    __tablename__ = "cafeqr_menus"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_menu_price_non_negative"),
        Index("ix_menu_tenant_available", "tenant_id", "available"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    tenant_id: Mapped[str] = mapped_column(
        ForeignKey("cafeqr_tenants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    category_id: Mapped[str] = mapped_column(ForeignKey("cafeqr_categories.id"), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow_naive, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow_naive, onupdate=utcnow_naive, nullable=False
    )

    category: Mapped[Category] = relationship("Category")


class Table(Base):
    __tablename__ = "cafeqr_tables"
    __table_args__ = (
        UniqueConstraint("tenant_id", "table_number", name="uq_table_tenant_number"),
        CheckConstraint("table_number > 0", name="ck_table_number_positive"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    tenant_id: Mapped[str] = mapped_column(
        ForeignKey("cafeqr_tenants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    table_number: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=TableStatus.AVAILABLE.value
    )


class Order(Base):
    """
    A customer order. ``order_items`` is a snapshot of name, price and
    quantity taken at checkout and never edited afterwards.
    """

    __tablename__ = "cafeqr_orders"
    __table_args__ = (
        Index("ix_order_tenant_created", "tenant_id", "created_at"),
        Index("ix_order_created_at", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    tenant_id: Mapped[str] = mapped_column(
        ForeignKey("cafeqr_tenants.id", ondelete="CASCADE"), nullable=False
    )
    table_id: Mapped[str] = mapped_column(String(32), nullable=False)
    table_number: Mapped[int] = mapped_column(Integer, nullable=False)
    order_items: Mapped[list[dict[str, Any]]] = mapped_column(JSONB_TYPE, nullable=False)
    subtotal: Mapped[int] = mapped_column(Integer, nullable=False)
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    unique_code: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=OrderStatus.RECEIVED.value
    )
    payment_method: Mapped[str] = mapped_column(String(16), nullable=False)
    payment_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    verification_token: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow_naive, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow_naive, onupdate=utcnow_naive, nullable=False
    )

    history: Mapped[list[OrderStatusEvent]] = relationship(
        "OrderStatusEvent",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderStatusEvent.id",
    )


class OrderStatusEvent(Base):
    """Audit trail of status changes and payment verification toggles."""

    __tablename__ = "cafeqr_order_status_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(
        ForeignKey("cafeqr_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    from_status: Mapped[str] = mapped_column(String(32), nullable=False)
    to_status: Mapped[str] = mapped_column(String(32), nullable=False)
    actor_uid: Mapped[str | None] = mapped_column(String(32), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow_naive, nullable=False)

    order: Mapped[Order] = relationship("Order", back_populates="history")


class ProvisioningRecord(Base):
    """Idempotency record for admin user provisioning."""

    __tablename__ = "cafeqr_provisioning_records"

    idempotency_key: Mapped[str] = mapped_column(String(128), primary_key=True)
    identity_uid: Mapped[str | None] = mapped_column(String(32), nullable=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    tenant_id: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=ProvisioningStatus.PENDING.value
    )
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow_naive, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow_naive, onupdate=utcnow_naive, nullable=False
    )


class RealtimeEvent(Base):
    """Change feed consumed by polling subscribers."""

    __tablename__ = "cafeqr_realtime_events"
    __table_args__ = (Index("ix_realtime_tenant_id", "tenant_id", "id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    payload: Mapped[dict[str, Any] | None] = mapped_column(JSONB_TYPE, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow_naive, nullable=False)
