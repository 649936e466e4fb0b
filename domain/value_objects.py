"""Domain Value Objects"""
from pydantic import BaseModel, Field, field_validator
from datetime import date
from decimal import Decimal
from typing import Optional, List, Set

from domain.exceptions import InvalidRangeError


def intervals_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Half-open overlap test: [a, b) and [c, d) conflict iff a < d and c < b"""
    return start_a < end_b and start_b < end_a


class DateRange(BaseModel):
    """Value Object for a half-open stay window [check_in, check_out)"""
    check_in: date
    check_out: date

    @field_validator('check_out')
    @classmethod
    def check_out_after_check_in(cls, v, info):
        check_in = info.data.get('check_in')
        if check_in and v <= check_in:
            raise ValueError('Check-out must be after check-in')
        return v

    @staticmethod
    def create(check_in: Optional[date], check_out: Optional[date]) -> "DateRange":
        """Build a window, failing with InvalidRangeError instead of a validation error"""
        if not isinstance(check_in, date) or not isinstance(check_out, date):
            raise InvalidRangeError("Both check-in and check-out dates are required")
        if check_in >= check_out:
            raise InvalidRangeError(
                f"Check-out ({check_out}) must be after check-in ({check_in})"
            )
        return DateRange(check_in=check_in, check_out=check_out)

    def overlaps(self, start: date, end: date) -> bool:
        return intervals_overlap(self.check_in, self.check_out, start, end)

    def nights(self) -> int:
        """Calculate number of nights"""
        return (self.check_out - self.check_in).days

    class Config:
        frozen = True


class GuestCount(BaseModel):
    """Value Object for occupancy"""
    adult_count: int = Field(ge=1)
    child_count: int = Field(ge=0, default=0)

    class Config:
        frozen = True


class GuestContact(BaseModel):
    """Contact details the notification collaborator delivers to"""
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None

    class Config:
        frozen = True


class RoomAllocation(BaseModel):
    """Child value object: one room within a multi-room booking"""
    room_type: str
    room_number: Optional[str] = None
    adult_count: int = Field(ge=1, default=1)
    child_count: int = Field(ge=0, default=0)
    price_per_night: Decimal = Field(ge=0)
    special_requests: Optional[str] = None

    class Config:
        frozen = True


class Location(BaseModel):
    address_line1: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class AmenityGroups(BaseModel):
    general: List[str] = []
    room: List[str] = []
    dining: List[str] = []
    wellness: List[str] = []
    business: List[str] = []
    accessibility: List[str] = []
    safety: List[str] = []
    technology: List[str] = []
    services: List[str] = []

    def all_amenities(self) -> Set[str]:
        """Union of every sub-group"""
        amenities = set()
        for group in self.model_dump().values():
            amenities.update(group)
        return amenities
