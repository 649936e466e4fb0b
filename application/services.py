"""Application Services - Business use cases"""
from dataclasses import dataclass
from uuid import UUID
from datetime import date
from decimal import Decimal
from typing import List, Optional, Set

import structlog

from domain.auth import User
from domain.entities import (
    Reservation, MaintenanceWindow, WaitlistEntry, HotelListing, ALLOWED_TRANSITIONS
)
from domain.enums import BookingStatus, MaintenancePriority, NotificationType, UserRole
from domain.events import NotificationEvent, NotificationPublisher, booking_event, waitlist_event
from domain.exceptions import (
    DatesUnavailableError, MaintenanceOverlapError, NotFoundError, ForbiddenError,
    InvalidStatusTransitionError
)
from domain.repositories import (
    ReservationRepository, MaintenanceRepository, WaitlistRepository, HotelCatalogRepository
)
from domain.value_objects import DateRange, GuestCount, GuestContact, RoomAllocation
from infrastructure.locks import HotelLockRegistry

logger = structlog.get_logger(__name__)


async def _publish_quietly(notifier: NotificationPublisher, event: NotificationEvent) -> None:
    """Delivery failures never affect the outcome of the calling operation"""
    try:
        await notifier.publish(event)
    except Exception as e:
        logger.warning(
            "Notification delivery failed",
            type=event.type.value,
            to=event.to,
            error=str(e)
        )


# ============================================================================
# INTERVAL OVERLAP DETECTOR
# ============================================================================

@dataclass(frozen=True)
class ConflictReport:
    booking_conflict: bool
    maintenance_conflict: bool

    @property
    def has_conflict(self) -> bool:
        return self.booking_conflict or self.maintenance_conflict


@dataclass(frozen=True)
class BlockedHotels:
    by_bookings: Set[str]
    by_maintenance: Set[str]

    @property
    def all(self) -> Set[str]:
        return self.by_bookings | self.by_maintenance


class AvailabilityService:
    """Reconciles both ledgers against a half-open date window"""

    def __init__(self, reservation_repo: ReservationRepository, maintenance_repo: MaintenanceRepository):
        self.reservation_repo = reservation_repo
        self.maintenance_repo = maintenance_repo

    async def check(
        self,
        hotel_id: str,
        check_in: date,
        check_out: date,
        exclude_booking_id: Optional[UUID] = None
    ) -> ConflictReport:
        window = DateRange.create(check_in, check_out)
        bookings = await self.reservation_repo.find_overlapping(
            hotel_id, window.check_in, window.check_out, exclude_booking_id=exclude_booking_id
        )
        maintenance = await self.maintenance_repo.find_overlapping(
            hotel_id, window.check_in, window.check_out
        )
        return ConflictReport(booking_conflict=bool(bookings), maintenance_conflict=bool(maintenance))

    async def has_conflict(
        self,
        hotel_id: str,
        check_in: date,
        check_out: date,
        exclude_booking_id: Optional[UUID] = None
    ) -> bool:
        report = await self.check(hotel_id, check_in, check_out, exclude_booking_id)
        return report.has_conflict

    async def blocked_hotel_ids(self, check_in: date, check_out: date) -> BlockedHotels:
        """Bulk form used by search: one query per ledger"""
        window = DateRange.create(check_in, check_out)
        return BlockedHotels(
            by_bookings=await self.reservation_repo.find_hotel_ids_with_overlap(
                window.check_in, window.check_out
            ),
            by_maintenance=await self.maintenance_repo.find_hotel_ids_with_overlap(
                window.check_in, window.check_out
            )
        )


# ============================================================================
# ACCESS POLICY
# ============================================================================

class HotelAccessPolicy:
    """Owner scoping on top of the identity collaborator's role claim"""

    def __init__(self, catalog_repo: HotelCatalogRepository):
        self.catalog_repo = catalog_repo

    async def ensure_owner(self, actor: User, hotel_id: str) -> HotelListing:
        if not actor.has_role(UserRole.HOTEL_OWNER, UserRole.ADMIN):
            raise ForbiddenError("Hotel owner role required")
        hotel = await self.catalog_repo.find_by_id(hotel_id)
        if hotel is None or (not actor.is_admin and hotel.owner_id != actor.user_id):
            raise NotFoundError("Hotel not found")
        return hotel

    async def can_access_booking(self, actor: User, reservation: Reservation) -> bool:
        if actor.is_admin or reservation.guest_id == actor.user_id:
            return True
        if actor.role == UserRole.HOTEL_OWNER:
            hotel = await self.catalog_repo.find_by_id(reservation.hotel_id)
            return hotel is not None and hotel.owner_id == actor.user_id
        return False


# ============================================================================
# WAITLIST REGISTRY
# ============================================================================

class WaitlistService:
    """Service for Waitlist business use cases"""

    def __init__(
        self,
        repository: WaitlistRepository,
        availability: AvailabilityService,
        notifier: NotificationPublisher,
        access: Optional[HotelAccessPolicy] = None
    ):
        self.repository = repository
        self.availability = availability
        self.notifier = notifier
        self.access = access

    async def join(
        self,
        hotel_id: str,
        email: str,
        check_in: date,
        check_out: date,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None
    ) -> WaitlistEntry:
        """Record interest in a window; several guests may wait on the same dates"""
        entry = WaitlistEntry.join(
            hotel_id=hotel_id,
            email=email,
            requested_dates=DateRange.create(check_in, check_out),
            first_name=first_name,
            last_name=last_name
        )
        await self.repository.save(entry)
        logger.info(
            "Waitlist joined",
            waitlist_id=str(entry.waitlist_id),
            hotel_id=hotel_id,
            check_in=check_in.isoformat(),
            check_out=check_out.isoformat()
        )
        await _publish_quietly(self.notifier, waitlist_event(NotificationType.WAITLIST_JOINED, entry))
        return entry

    async def list_entries(self, hotel_id: str, actor: User) -> List[WaitlistEntry]:
        if self.access is not None:
            await self.access.ensure_owner(actor, hotel_id)
        return await self.repository.find_by_hotel_id(hotel_id)

    async def release_cleared_entries(self, hotel_id: str) -> List[WaitlistEntry]:
        """Consume entries whose window no longer conflicts"""
        released = []
        for entry in await self.repository.find_by_hotel_id(hotel_id):
            dates = entry.requested_dates
            if await self.availability.has_conflict(hotel_id, dates.check_in, dates.check_out):
                continue
            if await self.repository.delete(entry.waitlist_id):
                released.append(entry)
                await _publish_quietly(
                    self.notifier, waitlist_event(NotificationType.WAITLIST_AVAILABLE, entry)
                )
        if released:
            logger.info("Waitlist entries released", hotel_id=hotel_id, count=len(released))
        return released


# ============================================================================
# BOOKING LEDGER
# ============================================================================

class BookingLedgerService:
    """Service for Reservation business use cases"""

    def __init__(
        self,
        repository: ReservationRepository,
        availability: AvailabilityService,
        locks: HotelLockRegistry,
        notifier: NotificationPublisher,
        access: HotelAccessPolicy,
        waitlist: Optional[WaitlistService] = None
    ):
        self.repository = repository
        self.availability = availability
        self.locks = locks
        self.notifier = notifier
        self.access = access
        self.waitlist = waitlist

    async def create_booking(
        self,
        hotel_id: str,
        guest_id: str,
        contact: GuestContact,
        check_in: date,
        check_out: date,
        adult_count: int,
        child_count: int,
        total_cost: Decimal,
        room_count: int = 1,
        rooms: Optional[List[RoomAllocation]] = None,
        payment_method: Optional[str] = None,
        special_requests: Optional[str] = None
    ) -> Reservation:
        """Persist a paid booking unless the window is taken"""
        date_range = DateRange.create(check_in, check_out)
        guest_count = GuestCount(adult_count=adult_count, child_count=child_count)

        async with self.locks.hold(hotel_id):
            report = await self.availability.check(hotel_id, date_range.check_in, date_range.check_out)
            if report.has_conflict:
                logger.info(
                    "Booking rejected, dates unavailable",
                    hotel_id=hotel_id,
                    check_in=check_in.isoformat(),
                    check_out=check_out.isoformat(),
                    booking_conflict=report.booking_conflict,
                    maintenance_conflict=report.maintenance_conflict
                )
                raise DatesUnavailableError(hotel_id, check_in, check_out)

            reservation = Reservation.create(
                hotel_id=hotel_id,
                guest_id=guest_id,
                contact=contact,
                date_range=date_range,
                guest_count=guest_count,
                total_cost=total_cost,
                room_count=room_count,
                rooms=rooms,
                payment_method=payment_method,
                special_requests=special_requests
            )
            await self.repository.save(reservation)

        logger.info(
            "Booking confirmed",
            booking_id=str(reservation.booking_id),
            hotel_id=hotel_id,
            check_in=check_in.isoformat(),
            check_out=check_out.isoformat()
        )
        await _publish_quietly(
            self.notifier, booking_event(NotificationType.BOOKING_CONFIRMATION, reservation)
        )
        return reservation

    async def get_booking(self, booking_id: UUID, actor: User) -> Reservation:
        reservation = await self.repository.find_by_id(booking_id)
        if reservation is None or not await self.access.can_access_booking(actor, reservation):
            raise NotFoundError("Booking not found")
        return reservation

    async def get_guest_bookings(self, guest_id: str) -> List[Reservation]:
        return await self.repository.find_by_guest_id(guest_id)

    async def get_hotel_bookings(self, hotel_id: str, actor: User) -> List[Reservation]:
        await self.access.ensure_owner(actor, hotel_id)
        return await self.repository.find_by_hotel_id(hotel_id)

    async def modify_booking(
        self,
        booking_id: UUID,
        actor: User,
        new_check_in: Optional[date] = None,
        new_check_out: Optional[date] = None,
        new_status: Optional[BookingStatus] = None
    ) -> Reservation:
        """Change dates and/or status as one unit; if any part fails nothing is changed.

        A request to cancel goes through Cancel and ignores requested dates,
        so it never runs an overlap check.
        """
        reservation = await self.get_booking(booking_id, actor)

        if new_status == BookingStatus.CANCELLED:
            await self._cancel(reservation, reason=None)
            return reservation

        async with self.locks.hold(reservation.hotel_id):
            reservation = await self.repository.find_by_id(booking_id) or reservation

            target = new_status if new_status not in (None, reservation.status) else None
            if target is not None and target not in ALLOWED_TRANSITIONS[reservation.status]:
                raise InvalidStatusTransitionError(
                    f"Cannot move booking from {reservation.status.value} to {target.value}"
                )

            new_range = None
            if new_check_in is not None or new_check_out is not None:
                new_range = DateRange.create(
                    new_check_in or reservation.check_in,
                    new_check_out or reservation.check_out
                )
                if new_range == reservation.date_range:
                    new_range = None
            if new_range is not None:
                await self._ensure_dates_free(reservation, new_range)

            if new_range is None and target is None:
                return reservation

            frees_dates = new_range is not None
            if new_range is not None:
                reservation.reschedule(new_range)
            if target is not None:
                reservation.transition_to(target)
                frees_dates = frees_dates or not reservation.holds_dates()
            await self.repository.update(reservation)

        logger.info(
            "Booking updated",
            booking_id=str(reservation.booking_id),
            hotel_id=reservation.hotel_id,
            status=reservation.status.value
        )
        await _publish_quietly(
            self.notifier, booking_event(NotificationType.BOOKING_UPDATED, reservation)
        )
        if frees_dates and self.waitlist is not None:
            await self.waitlist.release_cleared_entries(reservation.hotel_id)
        return reservation

    async def cancel_booking(
        self,
        booking_id: UUID,
        actor: User,
        reason: Optional[str] = None
    ) -> Reservation:
        """Idempotent: cancelling a cancelled booking succeeds without changes"""
        reservation = await self.get_booking(booking_id, actor)
        await self._cancel(reservation, reason)
        return reservation

    async def mark_reminder_sent(self, booking_id: UUID, checkout: bool = False) -> Reservation:
        reservation = await self.repository.find_by_id(booking_id)
        if reservation is None:
            raise NotFoundError("Booking not found")
        reservation.mark_reminder_sent(checkout=checkout)
        return await self.repository.update(reservation)

    async def _ensure_dates_free(self, reservation: Reservation, new_range: DateRange) -> None:
        """Caller must hold the hotel lock"""
        if not reservation.holds_dates():
            raise InvalidStatusTransitionError(
                f"Cannot change dates of a {reservation.status.value} booking"
            )
        # The booking being moved never conflicts with itself
        report = await self.availability.check(
            reservation.hotel_id,
            new_range.check_in,
            new_range.check_out,
            exclude_booking_id=reservation.booking_id
        )
        if report.has_conflict:
            logger.info(
                "Date change rejected, dates unavailable",
                booking_id=str(reservation.booking_id),
                hotel_id=reservation.hotel_id,
                check_in=new_range.check_in.isoformat(),
                check_out=new_range.check_out.isoformat()
            )
            raise DatesUnavailableError(
                reservation.hotel_id, new_range.check_in, new_range.check_out
            )

    async def _cancel(self, reservation: Reservation, reason: Optional[str]) -> bool:
        async with self.locks.hold(reservation.hotel_id):
            if not reservation.cancel(reason):
                return False
            await self.repository.update(reservation)

        logger.info(
            "Booking cancelled",
            booking_id=str(reservation.booking_id),
            hotel_id=reservation.hotel_id,
            payment_status=reservation.payment_status.value
        )
        await _publish_quietly(
            self.notifier, booking_event(NotificationType.BOOKING_CANCELLED, reservation)
        )
        if self.waitlist is not None:
            await self.waitlist.release_cleared_entries(reservation.hotel_id)
        return True


# ============================================================================
# MAINTENANCE LEDGER
# ============================================================================

class MaintenanceService:
    """Service for hotel blackout windows"""

    def __init__(
        self,
        repository: MaintenanceRepository,
        locks: HotelLockRegistry,
        access: HotelAccessPolicy,
        waitlist: Optional[WaitlistService] = None
    ):
        self.repository = repository
        self.locks = locks
        self.access = access
        self.waitlist = waitlist

    async def create_window(
        self,
        hotel_id: str,
        actor: User,
        start_date: date,
        end_date: date,
        title: Optional[str] = None,
        description: Optional[str] = None,
        priority: MaintenancePriority = MaintenancePriority.MEDIUM
    ) -> MaintenanceWindow:
        """Reject overlaps with other maintenance; overlapping bookings are allowed"""
        await self.access.ensure_owner(actor, hotel_id)
        window = MaintenanceWindow.create(
            hotel_id=hotel_id,
            start_date=start_date,
            end_date=end_date,
            title=title,
            description=description,
            priority=priority,
            created_by=actor.user_id
        )

        async with self.locks.hold(hotel_id):
            overlapping = await self.repository.find_overlapping(hotel_id, start_date, end_date)
            if overlapping:
                raise MaintenanceOverlapError(hotel_id, str(overlapping[0].maintenance_id))
            await self.repository.save(window)

        logger.info(
            "Maintenance scheduled",
            maintenance_id=str(window.maintenance_id),
            hotel_id=hotel_id,
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat()
        )
        return window

    async def list_windows(self, hotel_id: str, actor: User) -> List[MaintenanceWindow]:
        await self.access.ensure_owner(actor, hotel_id)
        return await self.repository.find_by_hotel_id(hotel_id)

    async def delete_window(self, hotel_id: str, maintenance_id: UUID, actor: User) -> None:
        await self.access.ensure_owner(actor, hotel_id)
        async with self.locks.hold(hotel_id):
            window = await self.repository.find_by_id(maintenance_id)
            if window is None or window.hotel_id != hotel_id:
                raise NotFoundError("Maintenance window not found")
            await self.repository.delete(maintenance_id)

        logger.info("Maintenance deleted", maintenance_id=str(maintenance_id), hotel_id=hotel_id)
        if self.waitlist is not None:
            await self.waitlist.release_cleared_entries(hotel_id)
