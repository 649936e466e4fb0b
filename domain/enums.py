"""Domain Enums"""
from enum import Enum


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    REFUNDED = "refunded"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class MaintenancePriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class MaintenanceStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class UserRole(str, Enum):
    USER = "user"
    HOTEL_OWNER = "hotel_owner"
    ADMIN = "admin"


class SortOption(str, Enum):
    STAR_RATING = "star_rating"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    LAST_UPDATED = "last_updated"
    POPULARITY = "popularity"


class NotificationType(str, Enum):
    BOOKING_CONFIRMATION = "booking_confirmation"
    BOOKING_UPDATED = "booking_updated"
    BOOKING_CANCELLED = "booking_cancelled"
    WAITLIST_JOINED = "waitlist_joined"
    WAITLIST_AVAILABLE = "waitlist_available"


# Reservations in these states hold their dates against the hotel.
BLOCKING_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})
