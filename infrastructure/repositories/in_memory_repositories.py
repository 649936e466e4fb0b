"""In-Memory Repository Implementations"""
import json
from pathlib import Path
from typing import Optional, List, Dict, Set, Iterable
from uuid import UUID
from datetime import date

from domain.repositories import (
    ReservationRepository, MaintenanceRepository, WaitlistRepository, HotelCatalogRepository
)
from domain.entities import Reservation, MaintenanceWindow, WaitlistEntry, HotelListing


class InMemoryReservationRepository(ReservationRepository):
    """In-memory implementation of the Booking Ledger"""

    def __init__(self):
        self._storage: Dict[UUID, Reservation] = {}

    async def save(self, reservation: Reservation) -> Reservation:
        """Save reservation to memory"""
        self._storage[reservation.booking_id] = reservation
        return reservation

    async def update(self, reservation: Reservation) -> Reservation:
        """Update reservation"""
        if reservation.booking_id in self._storage:
            self._storage[reservation.booking_id] = reservation
            return reservation
        raise ValueError("Reservation not found")

    async def find_by_id(self, booking_id: UUID) -> Optional[Reservation]:
        return self._storage.get(booking_id)

    async def find_by_guest_id(self, guest_id: str) -> List[Reservation]:
        return self._newest_first(r for r in self._storage.values() if r.guest_id == guest_id)

    async def find_by_hotel_id(self, hotel_id: str) -> List[Reservation]:
        return self._newest_first(r for r in self._storage.values() if r.hotel_id == hotel_id)

    async def find_overlapping(
        self,
        hotel_id: str,
        check_in: date,
        check_out: date,
        exclude_booking_id: Optional[UUID] = None
    ) -> List[Reservation]:
        return [
            r for r in self._storage.values()
            if r.hotel_id == hotel_id
            and r.booking_id != exclude_booking_id
            and r.conflicts_with(check_in, check_out)
        ]

    async def find_hotel_ids_with_overlap(self, check_in: date, check_out: date) -> Set[str]:
        return {r.hotel_id for r in self._storage.values() if r.conflicts_with(check_in, check_out)}

    @staticmethod
    def _newest_first(reservations: Iterable[Reservation]) -> List[Reservation]:
        return sorted(reservations, key=lambda r: r.created_at, reverse=True)


class InMemoryMaintenanceRepository(MaintenanceRepository):
    """In-memory implementation of the Maintenance Ledger"""

    def __init__(self):
        self._storage: Dict[UUID, MaintenanceWindow] = {}

    async def save(self, window: MaintenanceWindow) -> MaintenanceWindow:
        self._storage[window.maintenance_id] = window
        return window

    async def find_by_id(self, maintenance_id: UUID) -> Optional[MaintenanceWindow]:
        return self._storage.get(maintenance_id)

    async def find_by_hotel_id(self, hotel_id: str) -> List[MaintenanceWindow]:
        windows = [w for w in self._storage.values() if w.hotel_id == hotel_id]
        return sorted(windows, key=lambda w: w.start_date)

    async def find_overlapping(self, hotel_id: str, start: date, end: date) -> List[MaintenanceWindow]:
        return [
            w for w in self._storage.values()
            if w.hotel_id == hotel_id and w.overlaps(start, end)
        ]

    async def find_hotel_ids_with_overlap(self, start: date, end: date) -> Set[str]:
        return {w.hotel_id for w in self._storage.values() if w.overlaps(start, end)}

    async def delete(self, maintenance_id: UUID) -> bool:
        if maintenance_id in self._storage:
            del self._storage[maintenance_id]
            return True
        return False


class InMemoryWaitlistRepository(WaitlistRepository):
    """In-memory implementation of the Waitlist Registry"""

    def __init__(self):
        self._storage: Dict[UUID, WaitlistEntry] = {}

    async def save(self, entry: WaitlistEntry) -> WaitlistEntry:
        self._storage[entry.waitlist_id] = entry
        return entry

    async def find_by_hotel_id(self, hotel_id: str) -> List[WaitlistEntry]:
        entries = [e for e in self._storage.values() if e.hotel_id == hotel_id]
        return sorted(entries, key=lambda e: e.created_at)

    async def delete(self, waitlist_id: UUID) -> bool:
        if waitlist_id in self._storage:
            del self._storage[waitlist_id]
            return True
        return False


class InMemoryHotelCatalogRepository(HotelCatalogRepository):
    """Local copy of the listing collaborator's catalog"""

    def __init__(self, listings: Optional[Iterable[HotelListing]] = None):
        self._storage: Dict[str, HotelListing] = {}
        for listing in listings or []:
            self.add(listing)

    def add(self, listing: HotelListing) -> HotelListing:
        self._storage[listing.hotel_id] = listing
        return listing

    async def find_all(self) -> List[HotelListing]:
        return list(self._storage.values())

    async def find_by_id(self, hotel_id: str) -> Optional[HotelListing]:
        return self._storage.get(hotel_id)

    @classmethod
    def from_json_file(cls, path: str) -> "InMemoryHotelCatalogRepository":
        """Load a JSON array of listings"""
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls(HotelListing.model_validate(item) for item in raw)
