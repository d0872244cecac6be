"""
Pydantic schemas for request validation.
"""

from pydantic import BaseModel, Field, field_validator, model_validator

from cafeqr_shared.constants import (
    EMAIL_PATTERN,
    MAX_ITEMS_PER_ORDER,
    MIN_PASSWORD_LENGTH,
    MIN_TENANT_NAME_LENGTH,
    OrderStatus,
    PaymentMethod,
    TableStatus,
)

DAILY_TOKEN_PATTERN = r"^\d{4}$"


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value.strip() if isinstance(value, str) else value


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, pattern=r"^[^@]+@[^@]+\.[^@]+$")
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()


class CheckoutItemRequest(BaseModel):
    menu_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1, le=99)


class CheckoutRequest(BaseModel):
    items: list[CheckoutItemRequest] = Field(..., min_length=1, max_length=MAX_ITEMS_PER_ORDER)
    payment_method: PaymentMethod
    verification_token: str = Field(..., min_length=1, max_length=16)


class _TenantProfileFields(BaseModel):
    address: str | None = Field(None, max_length=255)
    owner_name: str | None = Field(None, max_length=120)
    phone_number: str | None = Field(None, max_length=32)
    receipt_message: str | None = Field(None, max_length=500)
    logo_url: str | None = None
    qris_image_url: str | None = None

    @field_validator(
        "address", "owner_name", "phone_number", "receipt_message", "logo_url", "qris_image_url",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v):
        return _blank_to_none(v)


class CreateTenantRequest(_TenantProfileFields):
    name: str = Field(..., min_length=MIN_TENANT_NAME_LENGTH, max_length=120)


class UpdateTenantSettingsRequest(_TenantProfileFields):
    name: str | None = Field(None, min_length=MIN_TENANT_NAME_LENGTH, max_length=120)
    daily_token: str | None = Field(None, pattern=DAILY_TOKEN_PATTERN)


class CreateMenuRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    price: int = Field(..., ge=0)
    category_id: str = Field(..., min_length=1)
    description: str | None = None
    image_url: str | None = None
    available: bool = Field(default=True)

    @field_validator("description", "image_url", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return _blank_to_none(v)


class UpdateMenuRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=120)
    price: int | None = Field(None, ge=0)
    category_id: str | None = None
    description: str | None = None
    image_url: str | None = None
    available: bool | None = None


class MenuAvailabilityRequest(BaseModel):
    available: bool


class CategoryRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Nama kategori wajib diisi")
        return v


class CreateTableRequest(BaseModel):
    table_number: int = Field(..., gt=0)


class TableStatusRequest(BaseModel):
    status: TableStatus


class OrderStatusRequest(BaseModel):
    status: OrderStatus
    reason: str | None = Field(None, max_length=500)


class PaymentVerificationRequest(BaseModel):
    verified: bool = True


class _CredentialsRequest(BaseModel):
    """Same email rule as identity_service.create_identity."""

    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class RegisterRequest(_CredentialsRequest):
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Kata sandi tidak cocok")
        return self


class CreateAdminUserRequest(_CredentialsRequest):
    tenant_id: str = Field(..., min_length=1)
    idempotency_key: str | None = Field(None, max_length=128)


class UpdateAdminUserRequest(BaseModel):
    tenant_id: str = Field(..., min_length=1)
