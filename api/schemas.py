"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import Dict, List, Optional

from domain.enums import BookingStatus, MaintenancePriority, MaintenanceStatus, PaymentStatus


# ============================================================================
# BOOKING SCHEMAS
# ============================================================================

class RoomAllocationRequest(BaseModel):
    """Room allocation request DTO"""
    room_type: str
    room_number: Optional[str] = None
    adult_count: int = Field(ge=1, default=1)
    child_count: int = Field(ge=0, default=0)
    price_per_night: Decimal = Field(ge=0)
    special_requests: Optional[str] = None


class CreateBookingRequest(BaseModel):
    """Create booking request DTO; payment has already been captured"""
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: Optional[str] = None
    adult_count: int = Field(ge=1)
    child_count: int = Field(ge=0, default=0)
    check_in: date
    check_out: date
    total_cost: Decimal = Field(ge=0)
    room_count: int = Field(ge=1, default=1)
    rooms: List[RoomAllocationRequest] = []
    payment_method: Optional[str] = None
    special_requests: Optional[str] = None


class ModifyBookingRequest(BaseModel):
    """Modify booking request DTO"""
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    status: Optional[BookingStatus] = None


class CancelBookingRequest(BaseModel):
    """Cancel booking request DTO"""
    reason: Optional[str] = None


class RoomAllocationResponse(BaseModel):
    room_type: str
    room_number: Optional[str] = None
    adult_count: int
    child_count: int
    price_per_night: Decimal
    special_requests: Optional[str] = None


class BookingResponse(BaseModel):
    """Booking response DTO"""
    booking_id: UUID
    hotel_id: str
    guest_id: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    check_in: date
    check_out: date
    adult_count: int
    child_count: int
    room_count: int
    rooms: List[RoomAllocationResponse]
    total_cost: Decimal
    status: BookingStatus
    payment_status: PaymentStatus
    payment_method: Optional[str] = None
    special_requests: Optional[str] = None
    cancellation_reason: Optional[str] = None
    refund_amount: Decimal
    reminder_sent: bool
    checkout_reminder_sent: bool
    created_at: datetime
    updated_at: datetime


# ============================================================================
# AVAILABILITY SCHEMAS
# ============================================================================

class AvailabilityResponse(BaseModel):
    """Point availability response DTO"""
    hotel_id: str
    check_in: date
    check_out: date
    available: bool
    booking_conflict: bool
    maintenance_conflict: bool


# ============================================================================
# MAINTENANCE SCHEMAS
# ============================================================================

class CreateMaintenanceRequest(BaseModel):
    """Create maintenance window request DTO"""
    title: Optional[str] = None
    description: Optional[str] = None
    start_date: date
    end_date: date
    priority: MaintenancePriority = MaintenancePriority.MEDIUM


class MaintenanceResponse(BaseModel):
    """Maintenance window response DTO"""
    maintenance_id: UUID
    hotel_id: str
    title: Optional[str] = None
    description: Optional[str] = None
    start_date: date
    end_date: date
    priority: MaintenancePriority
    status: MaintenanceStatus
    created_by: Optional[str] = None
    created_at: datetime


# ============================================================================
# WAITLIST SCHEMAS
# ============================================================================

class JoinWaitlistRequest(BaseModel):
    """Join waitlist request DTO"""
    email: str = Field(min_length=3)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    check_in: date
    check_out: date


class WaitlistResponse(BaseModel):
    """Waitlist response DTO"""
    waitlist_id: UUID
    hotel_id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    check_in: date
    check_out: date
    created_at: datetime


# ============================================================================
# SEARCH SCHEMAS
# ============================================================================

class HotelSummaryResponse(BaseModel):
    """One hotel in a search page"""
    hotel_id: str
    name: str
    city: Optional[str] = None
    country: Optional[str] = None
    type: List[str]
    facilities: List[str]
    tags: List[str]
    star_rating: int
    price_per_night: Decimal
    adult_count: int
    child_count: int
    is_featured: bool
    image_urls: List[str]
    total_bookings: int
    last_updated: datetime


class PaginationResponse(BaseModel):
    total: int
    page: int
    pages: int
    page_size: int


class PriceRangeResponse(BaseModel):
    min: Optional[Decimal] = None
    max: Optional[Decimal] = None


class FacetsResponse(BaseModel):
    star_ratings: Dict[int, int]
    types: Dict[str, int]
    price: PriceRangeResponse


class AvailabilitySummaryResponse(BaseModel):
    checked: bool
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    excluded_by_bookings: int
    excluded_by_maintenance: int
    excluded_total: int


class SearchResponse(BaseModel):
    """Search response DTO"""
    data: List[HotelSummaryResponse]
    pagination: PaginationResponse
    facets: FacetsResponse
    availability: AvailabilitySummaryResponse
    served_from_cache: bool
