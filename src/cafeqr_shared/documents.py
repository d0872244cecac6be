"""
Schema-validated views of stored records.

Rows read from the database are parsed into these documents before any
decision is made on them; a row that does not parse raises
MalformedDocumentError instead of being trusted.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from cafeqr_shared.constants import OrderStatus, PaymentMethod, Roles
from cafeqr_shared.errors import MalformedDocumentError
from cafeqr_shared.logging_config import get_logger

logger = get_logger(__name__)


class _Document(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)


class TenantDocument(_Document):
    id: str
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1, pattern=r"^[a-z0-9]+(-[a-z0-9]+)*$")
    daily_token: str = Field(..., min_length=4, max_length=4)
    logo_url: str | None = None
    qris_image_url: str | None = None
    address: str | None = None
    owner_name: str | None = None
    phone_number: str | None = None
    receipt_message: str | None = None
    created_at: datetime | None = None


class AdminProfileDocument(_Document):
    id: str
    email: str
    role: Roles
    tenant_id: str = Field(..., min_length=1)


class SuperAdminDocument(_Document):
    user_id: str
    email: str
    role: Roles
    assigned_at: datetime | None = None


class OrderItemDocument(_Document):
    id: str
    name: str
    price: int = Field(..., ge=0)
    quantity: int = Field(..., gt=0)


class OrderDocument(_Document):
    id: str
    tenant_id: str
    table_id: str
    table_number: int
    order_items: list[OrderItemDocument] = Field(..., min_length=1)
    subtotal: int = Field(..., ge=0)
    total_amount: int = Field(..., ge=0)
    unique_code: int | None = None
    status: OrderStatus
    payment_method: PaymentMethod
    payment_verified: bool
    verification_token: str
    created_at: datetime
    updated_at: datetime | None = None


def load_document(document_cls: type[_Document], record, path: str):
    """
    Parse an ORM row (or mapping) into ``document_cls``.

    Raises:
        MalformedDocumentError: the stored record does not match the schema
    """
    try:
        if isinstance(record, dict):
            return document_cls.model_validate(record)
        return document_cls.model_validate(record, from_attributes=True)
    except PydanticValidationError as exc:
        errors = exc.errors(include_url=False, include_context=False, include_input=False)
        logger.error("Malformed document", extra={"path": path, "errors": errors})
        raise MalformedDocumentError(path, errors) from exc
