"""Domain Entities - Aggregates"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from datetime import datetime, date, timezone
from typing import Optional, List, Set
from decimal import Decimal

from domain.enums import (
    BookingStatus, PaymentStatus, MaintenancePriority, MaintenanceStatus, BLOCKING_STATUSES
)
from domain.exceptions import InvalidStatusTransitionError
from domain.value_objects import (
    DateRange, GuestCount, GuestContact, RoomAllocation, Location, AmenityGroups
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Status changes a caller may request through a booking modification.
ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.CANCELLED, BookingStatus.COMPLETED},
    BookingStatus.CANCELLED: {BookingStatus.REFUNDED},
    BookingStatus.COMPLETED: {BookingStatus.REFUNDED},
    BookingStatus.REFUNDED: set(),
}


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity"""

    # Identity
    booking_id: UUID = Field(default_factory=uuid4)

    # References to other contexts
    hotel_id: str
    guest_id: str
    contact: GuestContact

    # Value Objects
    date_range: DateRange
    guest_count: GuestCount
    room_count: int = Field(ge=1, default=1)
    rooms: List[RoomAllocation] = []
    total_cost: Decimal = Field(ge=0)

    # Enums/Status
    status: BookingStatus = BookingStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: Optional[str] = None

    special_requests: Optional[str] = None
    cancellation_reason: Optional[str] = None
    refund_amount: Decimal = Decimal("0")

    # Reminder tracking, flipped by the external scheduler
    reminder_sent: bool = False
    checkout_reminder_sent: bool = False

    # Metadata
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    version: int = 1

    class Config:
        from_attributes = True

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        hotel_id: str,
        guest_id: str,
        contact: GuestContact,
        date_range: DateRange,
        guest_count: GuestCount,
        total_cost: Decimal,
        room_count: int = 1,
        rooms: Optional[List[RoomAllocation]] = None,
        payment_method: Optional[str] = None,
        special_requests: Optional[str] = None
    ) -> "Reservation":
        """Create a reservation whose payment has already cleared externally"""
        return Reservation(
            hotel_id=hotel_id,
            guest_id=guest_id,
            contact=contact,
            date_range=date_range,
            guest_count=guest_count,
            total_cost=total_cost,
            room_count=room_count,
            rooms=rooms or [],
            payment_method=payment_method,
            special_requests=special_requests,
            status=BookingStatus.CONFIRMED,
            payment_status=PaymentStatus.PAID
        )

    # ==================== QUERY METHODS ====================
    @property
    def check_in(self) -> date:
        return self.date_range.check_in

    @property
    def check_out(self) -> date:
        return self.date_range.check_out

    def holds_dates(self) -> bool:
        """Pending and confirmed reservations block their window"""
        return self.status in BLOCKING_STATUSES

    def conflicts_with(self, check_in: date, check_out: date) -> bool:
        return self.holds_dates() and self.date_range.overlaps(check_in, check_out)

    # ==================== MODIFICATION METHODS ====================
    def reschedule(self, new_date_range: DateRange) -> None:
        """Move the stay; callers must have re-checked availability"""
        if not self.holds_dates():
            raise InvalidStatusTransitionError(
                f"Cannot change dates of a {self.status.value} booking"
            )
        self.date_range = new_date_range
        self._touch()

    def mark_reminder_sent(self, checkout: bool = False) -> None:
        if checkout:
            self.checkout_reminder_sent = True
        else:
            self.reminder_sent = True
        self._touch()

    # ==================== STATE TRANSITION METHODS ====================
    def cancel(self, reason: Optional[str] = None) -> bool:
        """Cancel; returns False when already cancelled (no state change)"""
        if self.status == BookingStatus.CANCELLED:
            return False
        if self.status not in BLOCKING_STATUSES:
            raise InvalidStatusTransitionError(
                f"Cannot cancel booking with status {self.status.value}"
            )

        self.status = BookingStatus.CANCELLED
        self.cancellation_reason = reason
        if self.payment_status == PaymentStatus.PAID:
            self.payment_status = PaymentStatus.REFUNDED
            self.refund_amount = self.total_cost
        self._touch()
        return True

    def transition_to(self, new_status: BookingStatus) -> bool:
        """Apply a requested status change; returns False for a no-op"""
        if new_status == self.status:
            return False
        if new_status not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidStatusTransitionError(
                f"Cannot move booking from {self.status.value} to {new_status.value}"
            )
        if new_status == BookingStatus.CANCELLED:
            return self.cancel()

        if new_status == BookingStatus.REFUNDED and self.payment_status == PaymentStatus.PAID:
            self.payment_status = PaymentStatus.REFUNDED
            self.refund_amount = self.total_cost
        self.status = new_status
        self._touch()
        return True

    def _touch(self) -> None:
        self.updated_at = _utcnow()
        self.version += 1


class MaintenanceWindow(BaseModel):
    """Hotel-initiated blackout window"""

    maintenance_id: UUID = Field(default_factory=uuid4)
    hotel_id: str
    title: Optional[str] = None
    description: Optional[str] = None
    window: DateRange
    priority: MaintenancePriority = MaintenancePriority.MEDIUM
    status: MaintenanceStatus = MaintenanceStatus.SCHEDULED
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    class Config:
        from_attributes = True

    @staticmethod
    def create(
        hotel_id: str,
        start_date: date,
        end_date: date,
        title: Optional[str] = None,
        description: Optional[str] = None,
        priority: MaintenancePriority = MaintenancePriority.MEDIUM,
        created_by: Optional[str] = None
    ) -> "MaintenanceWindow":
        return MaintenanceWindow(
            hotel_id=hotel_id,
            window=DateRange.create(start_date, end_date),
            title=title,
            description=description,
            priority=priority,
            created_by=created_by
        )

    @property
    def start_date(self) -> date:
        return self.window.check_in

    @property
    def end_date(self) -> date:
        return self.window.check_out

    def overlaps(self, start: date, end: date) -> bool:
        return self.window.overlaps(start, end)


class WaitlistEntry(BaseModel):
    """Guest interest in a window that was unavailable"""

    waitlist_id: UUID = Field(default_factory=uuid4)
    hotel_id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    requested_dates: DateRange
    created_at: datetime = Field(default_factory=_utcnow)

    class Config:
        from_attributes = True
        frozen = True

    @staticmethod
    def join(
        hotel_id: str,
        email: str,
        requested_dates: DateRange,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None
    ) -> "WaitlistEntry":
        return WaitlistEntry(
            hotel_id=hotel_id,
            email=email,
            first_name=first_name,
            last_name=last_name,
            requested_dates=requested_dates
        )


class HotelListing(BaseModel):
    """Read model of a catalog hotel, owned by the listing service"""

    hotel_id: str
    owner_id: str
    name: str
    description: str = ""
    type: List[str] = []
    city: Optional[str] = None
    country: Optional[str] = None
    location: Optional[Location] = None
    facilities: List[str] = []
    tags: List[str] = []
    amenities: Optional[AmenityGroups] = None
    is_featured: bool = False
    adult_count: int = 1
    child_count: int = 0
    price_per_night: Decimal
    star_rating: int = Field(ge=1, le=5)
    image_urls: List[str] = []
    last_updated: datetime = Field(default_factory=_utcnow)
    total_bookings: int = 0
    total_revenue: Decimal = Decimal("0")

    class Config:
        from_attributes = True

    def location_texts(self) -> List[str]:
        """City/country values, top-level and nested"""
        texts = [self.city, self.country]
        if self.location:
            texts.extend([self.location.city, self.location.country])
        return [t for t in texts if t]

    def amenity_set(self) -> Set[str]:
        return self.amenities.all_amenities() if self.amenities else set()
