"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Optional, List, Set
from uuid import UUID
from datetime import date

from domain.entities import Reservation, MaintenanceWindow, WaitlistEntry, HotelListing


class ReservationRepository(ABC):
    """Repository interface for the Booking Ledger"""

    @abstractmethod
    async def save(self, reservation: Reservation) -> Reservation:
        """Insert a new reservation"""
        pass

    @abstractmethod
    async def update(self, reservation: Reservation) -> Reservation:
        """Persist changes to an existing reservation"""
        pass

    @abstractmethod
    async def find_by_id(self, booking_id: UUID) -> Optional[Reservation]:
        pass

    @abstractmethod
    async def find_by_guest_id(self, guest_id: str) -> List[Reservation]:
        """Guest's reservations, newest first"""
        pass

    @abstractmethod
    async def find_by_hotel_id(self, hotel_id: str) -> List[Reservation]:
        """Hotel's reservations, newest first"""
        pass

    @abstractmethod
    async def find_overlapping(
        self,
        hotel_id: str,
        check_in: date,
        check_out: date,
        exclude_booking_id: Optional[UUID] = None
    ) -> List[Reservation]:
        """Pending/confirmed reservations of one hotel overlapping [check_in, check_out)"""
        pass

    @abstractmethod
    async def find_hotel_ids_with_overlap(self, check_in: date, check_out: date) -> Set[str]:
        """Distinct hotel ids holding a pending/confirmed reservation in the window"""
        pass


class MaintenanceRepository(ABC):
    """Repository interface for the Maintenance Ledger"""

    @abstractmethod
    async def save(self, window: MaintenanceWindow) -> MaintenanceWindow:
        pass

    @abstractmethod
    async def find_by_id(self, maintenance_id: UUID) -> Optional[MaintenanceWindow]:
        pass

    @abstractmethod
    async def find_by_hotel_id(self, hotel_id: str) -> List[MaintenanceWindow]:
        """Hotel's windows ordered by start date"""
        pass

    @abstractmethod
    async def find_overlapping(self, hotel_id: str, start: date, end: date) -> List[MaintenanceWindow]:
        pass

    @abstractmethod
    async def find_hotel_ids_with_overlap(self, start: date, end: date) -> Set[str]:
        pass

    @abstractmethod
    async def delete(self, maintenance_id: UUID) -> bool:
        pass


class WaitlistRepository(ABC):
    """Repository interface for the Waitlist Registry"""

    @abstractmethod
    async def save(self, entry: WaitlistEntry) -> WaitlistEntry:
        pass

    @abstractmethod
    async def find_by_hotel_id(self, hotel_id: str) -> List[WaitlistEntry]:
        pass

    @abstractmethod
    async def delete(self, waitlist_id: UUID) -> bool:
        pass


class HotelCatalogRepository(ABC):
    """Read-only view of the listing collaborator"""

    @abstractmethod
    async def find_all(self) -> List[HotelListing]:
        """Raises CatalogUnavailableError when the catalog cannot be reached"""
        pass

    @abstractmethod
    async def find_by_id(self, hotel_id: str) -> Optional[HotelListing]:
        pass
