"""
Domain enums shared by models, services and routers.
"""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "outForDelivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class ActorRole(str, Enum):
    ADMIN = "admin"
    CUSTOMER = "customer"


class PaymentMethod(str, Enum):
    COD = "cod"
    ONLINE = "online"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class NotificationType(str, Enum):
    STATUS_UPDATE = "status_update"
    QUERY_RESOLVED = "query_resolved"
    ADMIN_RESPONSE = "admin_response"


class NotificationStatus(str, Enum):
    UNREAD = "unread"
    READ = "read"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
