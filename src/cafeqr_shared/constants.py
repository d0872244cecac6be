"""
Application constants and enums.
"""

from enum import Enum


class OrderStatus(str, Enum):
    RECEIVED = "received"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    QRIS = "qris"
    CASH = "cash"


class TableStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"


class Roles(str, Enum):
    ADMIN_KAFE = "admin_kafe"
    SUPER_ADMIN = "superadmin"


class ProvisioningStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    ROLLED_BACK = "rolled_back"


TERMINAL_ORDER_STATUSES = {
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
}

ORDER_TRANSITIONS = {
    (OrderStatus.RECEIVED, OrderStatus.PREPARING): {"action": "start_preparing"},
    (OrderStatus.PREPARING, OrderStatus.READY): {"action": "mark_ready"},
    (OrderStatus.READY, OrderStatus.DELIVERED): {"action": "deliver"},
    (OrderStatus.RECEIVED, OrderStatus.CANCELLED): {"action": "cancel"},
    (OrderStatus.PREPARING, OrderStatus.CANCELLED): {"action": "cancel"},
    (OrderStatus.READY, OrderStatus.CANCELLED): {"action": "cancel"},
}

ORDER_STATUS_META_DEFAULT = {
    OrderStatus.RECEIVED.value: {
        "client_label": "Pesanan diterima",
        "admin_label": "Diterima",
    },
    OrderStatus.PREPARING.value: {
        "client_label": "Pesanan sedang disiapkan",
        "admin_label": "Disiapkan",
    },
    OrderStatus.READY.value: {
        "client_label": "Pesanan siap diantar",
        "admin_label": "Siap",
    },
    OrderStatus.DELIVERED.value: {
        "client_label": "Pesanan sudah diantar",
        "admin_label": "Diantar",
    },
    OrderStatus.CANCELLED.value: {
        "client_label": "Pesanan dibatalkan",
        "admin_label": "Dibatalkan",
    },
}

# Unique codes are drawn from range(UNIQUE_CODE_MIN, UNIQUE_CODE_MAX).
UNIQUE_CODE_MIN = 100
UNIQUE_CODE_MAX = 999

DAILY_TOKEN_LENGTH = 4
MIN_PASSWORD_LENGTH = 6
MIN_TENANT_NAME_LENGTH = 3
MAX_ITEMS_PER_ORDER = 50

# A pending provisioning record younger than this is owned by a running request.
PROVISIONING_STALE_SECONDS = 300

EMAIL_PATTERN = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

ALLOWED_IMAGE_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp"}

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

LOGIN_ROUTE = "/login"
SUPER_ADMIN_ROUTE = "/admin"

# First path segments taken by the apps themselves.
RESERVED_SLUGS = frozenset({"admin", "api", "health", "login", "uploads"})
