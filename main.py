from dataclasses import dataclass
from datetime import date
from typing import List, Optional
from uuid import UUID

import structlog
from fastapi import FastAPI, HTTPException, Depends, Query, Response, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.schemas import (
    # Bookings
    CreateBookingRequest, ModifyBookingRequest, CancelBookingRequest,
    BookingResponse, RoomAllocationResponse,
    # Availability
    AvailabilityResponse,
    # Maintenance
    CreateMaintenanceRequest, MaintenanceResponse,
    # Waitlist
    JoinWaitlistRequest, WaitlistResponse,
    # Search
    SearchResponse, HotelSummaryResponse, PaginationResponse, FacetsResponse,
    PriceRangeResponse, AvailabilitySummaryResponse
)
from api.dependencies import get_current_user
from domain.auth import User
from domain.entities import Reservation, MaintenanceWindow, WaitlistEntry, HotelListing
from domain.enums import SortOption
from domain.events import NotificationPublisher
from domain.exceptions import (
    DomainError, InvalidRangeError, DatesUnavailableError, MaintenanceOverlapError,
    NotFoundError, ForbiddenError, InvalidStatusTransitionError, CatalogUnavailableError
)
from domain.repositories import HotelCatalogRepository
from domain.value_objects import GuestContact, RoomAllocation

from application.services import (
    AvailabilityService, BookingLedgerService, MaintenanceService, WaitlistService, HotelAccessPolicy
)
from application.search import HotelSearchService, SearchFilters, SearchRequest, SearchResult
from infrastructure import config
from infrastructure.cache import ResultCache
from infrastructure.locks import HotelLockRegistry
from infrastructure.log_config import configure_logging
from infrastructure.notifications import build_publisher
from infrastructure.repositories.in_memory_repositories import (
    InMemoryReservationRepository, InMemoryMaintenanceRepository, InMemoryWaitlistRepository,
    InMemoryHotelCatalogRepository
)

configure_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Hotel Availability API",
    description="Availability-aware search and booking-conflict engine",
    version="1.0.0"
)


# ============================================================================
# COMPOSITION
# ============================================================================

@dataclass
class Container:
    catalog_repo: HotelCatalogRepository
    availability: AvailabilityService
    bookings: BookingLedgerService
    maintenance: MaintenanceService
    waitlist: WaitlistService
    search: HotelSearchService


def build_container(
    catalog_repo: Optional[HotelCatalogRepository] = None,
    notifier: Optional[NotificationPublisher] = None,
    cache: Optional[ResultCache] = None
) -> Container:
    """Wire ledgers, catalog and services; every call yields fresh in-memory state"""
    if catalog_repo is None:
        if config.CATALOG_SEED_PATH:
            catalog_repo = InMemoryHotelCatalogRepository.from_json_file(config.CATALOG_SEED_PATH)
        else:
            catalog_repo = InMemoryHotelCatalogRepository()
    notifier = notifier or build_publisher()

    reservation_repo = InMemoryReservationRepository()
    maintenance_repo = InMemoryMaintenanceRepository()
    availability = AvailabilityService(reservation_repo, maintenance_repo)
    access = HotelAccessPolicy(catalog_repo)
    waitlist = WaitlistService(InMemoryWaitlistRepository(), availability, notifier, access)
    # Both ledgers share one writer per hotel
    locks = HotelLockRegistry()

    return Container(
        catalog_repo=catalog_repo,
        availability=availability,
        bookings=BookingLedgerService(
            reservation_repo, availability, locks, notifier, access, waitlist
        ),
        maintenance=MaintenanceService(maintenance_repo, locks, access, waitlist),
        waitlist=waitlist,
        search=HotelSearchService(catalog_repo, availability, cache if cache is not None else ResultCache())
    )


container = build_container()


# Dependency injection
def get_availability_service() -> AvailabilityService:
    return container.availability

def get_booking_service() -> BookingLedgerService:
    return container.bookings

def get_maintenance_service() -> MaintenanceService:
    return container.maintenance

def get_waitlist_service() -> WaitlistService:
    return container.waitlist

def get_search_service() -> HotelSearchService:
    return container.search


# ============================================================================
# ERROR MAPPING
# ============================================================================

_ERROR_STATUS = {
    InvalidRangeError: status.HTTP_400_BAD_REQUEST,
    InvalidStatusTransitionError: status.HTTP_400_BAD_REQUEST,
    DatesUnavailableError: status.HTTP_409_CONFLICT,
    MaintenanceOverlapError: status.HTTP_409_CONFLICT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    CatalogUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _http_error(error: DomainError) -> HTTPException:
    return HTTPException(
        status_code=_ERROR_STATUS.get(type(error), status.HTTP_400_BAD_REQUEST),
        detail=str(error)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed input, including unparseable dates, is a 400"""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())}
    )


# ============================================================================
# HEALTH
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "ok", "service": "availability-engine"}


# ============================================================================
# SEARCH & AVAILABILITY ENDPOINTS
# ============================================================================

@app.get("/api/hotels/search", response_model=SearchResponse, tags=["Search"])
async def search_hotels(
    destination: Optional[str] = None,
    adult_count: Optional[int] = Query(None, ge=0),
    child_count: Optional[int] = Query(None, ge=0),
    facilities: Optional[List[str]] = Query(None),
    types: Optional[List[str]] = Query(None),
    stars: Optional[List[int]] = Query(None),
    tags: Optional[List[str]] = Query(None),
    amenities: Optional[List[str]] = Query(None),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    featured_only: bool = False,
    sort_option: Optional[SortOption] = None,
    page: int = Query(1, ge=1),
    check_in: Optional[date] = None,
    check_out: Optional[date] = None,
    service: HotelSearchService = Depends(get_search_service)
):
    """Search the catalog; a date window hides hotels that are not free"""
    request = SearchRequest(
        filters=SearchFilters(
            destination=destination,
            adult_count=adult_count,
            child_count=child_count,
            facilities=facilities or [],
            types=types or [],
            stars=stars or [],
            tags=tags or [],
            amenities=amenities or [],
            min_price=min_price,
            max_price=max_price,
            featured_only=featured_only
        ),
        page=page,
        sort_option=sort_option,
        check_in=check_in,
        check_out=check_out
    )
    try:
        result = await service.search(request)
    except DomainError as e:
        raise _http_error(e)
    return _search_to_response(result)


@app.get("/api/hotels/{hotel_id}/availability", response_model=AvailabilityResponse, tags=["Search"])
async def check_availability(
    hotel_id: str,
    check_in: date,
    check_out: date,
    service: AvailabilityService = Depends(get_availability_service)
):
    """Check one hotel against both ledgers"""
    try:
        report = await service.check(hotel_id, check_in, check_out)
    except DomainError as e:
        raise _http_error(e)
    return AvailabilityResponse(
        hotel_id=hotel_id,
        check_in=check_in,
        check_out=check_out,
        available=not report.has_conflict,
        booking_conflict=report.booking_conflict,
        maintenance_conflict=report.maintenance_conflict
    )


# ============================================================================
# BOOKING ENDPOINTS
# ============================================================================

@app.post("/api/hotels/{hotel_id}/bookings", status_code=201, tags=["Bookings"])
async def create_booking(
    hotel_id: str,
    request: CreateBookingRequest,
    service: BookingLedgerService = Depends(get_booking_service),
    current_user: User = Depends(get_current_user)
):
    """Record a booking once payment has been confirmed"""
    try:
        reservation = await service.create_booking(
            hotel_id=hotel_id,
            guest_id=current_user.user_id,
            contact=GuestContact(
                first_name=request.first_name,
                last_name=request.last_name,
                email=request.email,
                phone=request.phone
            ),
            check_in=request.check_in,
            check_out=request.check_out,
            adult_count=request.adult_count,
            child_count=request.child_count,
            total_cost=request.total_cost,
            room_count=request.room_count,
            rooms=[RoomAllocation(**room.model_dump()) for room in request.rooms],
            payment_method=request.payment_method,
            special_requests=request.special_requests
        )
    except DomainError as e:
        raise _http_error(e)
    return Response(
        status_code=status.HTTP_201_CREATED,
        headers={"Location": f"/api/bookings/{reservation.booking_id}"}
    )


@app.get("/api/hotels/{hotel_id}/bookings", response_model=List[BookingResponse], tags=["Bookings"])
async def get_hotel_bookings(
    hotel_id: str,
    service: BookingLedgerService = Depends(get_booking_service),
    current_user: User = Depends(get_current_user)
):
    """All bookings of a hotel, newest first (owner only)"""
    try:
        reservations = await service.get_hotel_bookings(hotel_id, current_user)
    except DomainError as e:
        raise _http_error(e)
    return [_booking_to_response(r) for r in reservations]


@app.get("/api/my-bookings", response_model=List[BookingResponse], tags=["Bookings"])
async def get_my_bookings(
    service: BookingLedgerService = Depends(get_booking_service),
    current_user: User = Depends(get_current_user)
):
    """Caller's bookings, newest first"""
    reservations = await service.get_guest_bookings(current_user.user_id)
    return [_booking_to_response(r) for r in reservations]


@app.get("/api/bookings/{booking_id}", response_model=BookingResponse, tags=["Bookings"])
async def get_booking(
    booking_id: UUID,
    service: BookingLedgerService = Depends(get_booking_service),
    current_user: User = Depends(get_current_user)
):
    try:
        reservation = await service.get_booking(booking_id, current_user)
    except DomainError as e:
        raise _http_error(e)
    return _booking_to_response(reservation)


@app.patch("/api/bookings/{booking_id}", response_model=BookingResponse, tags=["Bookings"])
async def modify_booking(
    booking_id: UUID,
    request: ModifyBookingRequest,
    service: BookingLedgerService = Depends(get_booking_service),
    current_user: User = Depends(get_current_user)
):
    """Change dates and/or status"""
    try:
        reservation = await service.modify_booking(
            booking_id=booking_id,
            actor=current_user,
            new_check_in=request.check_in,
            new_check_out=request.check_out,
            new_status=request.status
        )
    except DomainError as e:
        raise _http_error(e)
    return _booking_to_response(reservation)


@app.post("/api/bookings/{booking_id}/cancel", response_model=BookingResponse, tags=["Bookings"])
async def cancel_booking(
    booking_id: UUID,
    request: Optional[CancelBookingRequest] = None,
    service: BookingLedgerService = Depends(get_booking_service),
    current_user: User = Depends(get_current_user)
):
    """Cancel booking; repeating the call is harmless"""
    try:
        reservation = await service.cancel_booking(
            booking_id=booking_id,
            actor=current_user,
            reason=request.reason if request else None
        )
    except DomainError as e:
        raise _http_error(e)
    return _booking_to_response(reservation)


# ============================================================================
# MAINTENANCE ENDPOINTS
# ============================================================================

@app.post("/api/hotels/{hotel_id}/maintenance", response_model=MaintenanceResponse, status_code=201, tags=["Maintenance"])
async def create_maintenance(
    hotel_id: str,
    request: CreateMaintenanceRequest,
    service: MaintenanceService = Depends(get_maintenance_service),
    current_user: User = Depends(get_current_user)
):
    """Schedule a blackout window"""
    try:
        window = await service.create_window(
            hotel_id=hotel_id,
            actor=current_user,
            start_date=request.start_date,
            end_date=request.end_date,
            title=request.title,
            description=request.description,
            priority=request.priority
        )
    except DomainError as e:
        raise _http_error(e)
    return _maintenance_to_response(window)


@app.get("/api/hotels/{hotel_id}/maintenance", response_model=List[MaintenanceResponse], tags=["Maintenance"])
async def list_maintenance(
    hotel_id: str,
    service: MaintenanceService = Depends(get_maintenance_service),
    current_user: User = Depends(get_current_user)
):
    try:
        windows = await service.list_windows(hotel_id, current_user)
    except DomainError as e:
        raise _http_error(e)
    return [_maintenance_to_response(w) for w in windows]


@app.delete("/api/hotels/{hotel_id}/maintenance/{maintenance_id}", status_code=204, tags=["Maintenance"])
async def delete_maintenance(
    hotel_id: str,
    maintenance_id: UUID,
    service: MaintenanceService = Depends(get_maintenance_service),
    current_user: User = Depends(get_current_user)
):
    try:
        await service.delete_window(hotel_id, maintenance_id, current_user)
    except DomainError as e:
        raise _http_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# WAITLIST ENDPOINTS
# ============================================================================

@app.post("/api/hotels/{hotel_id}/waitlist", response_model=WaitlistResponse, status_code=201, tags=["Waitlist"])
async def join_waitlist(
    hotel_id: str,
    request: JoinWaitlistRequest,
    service: WaitlistService = Depends(get_waitlist_service)
):
    """Register interest in dates that are currently taken"""
    try:
        entry = await service.join(
            hotel_id=hotel_id,
            email=request.email,
            check_in=request.check_in,
            check_out=request.check_out,
            first_name=request.first_name,
            last_name=request.last_name
        )
    except DomainError as e:
        raise _http_error(e)
    return _waitlist_to_response(entry)


@app.get("/api/hotels/{hotel_id}/waitlist", response_model=List[WaitlistResponse], tags=["Waitlist"])
async def list_waitlist(
    hotel_id: str,
    service: WaitlistService = Depends(get_waitlist_service),
    current_user: User = Depends(get_current_user)
):
    try:
        entries = await service.list_entries(hotel_id, current_user)
    except DomainError as e:
        raise _http_error(e)
    return [_waitlist_to_response(e) for e in entries]


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _booking_to_response(reservation: Reservation) -> BookingResponse:
    """Convert Reservation entity to BookingResponse"""
    return BookingResponse(
        booking_id=reservation.booking_id,
        hotel_id=reservation.hotel_id,
        guest_id=reservation.guest_id,
        first_name=reservation.contact.first_name,
        last_name=reservation.contact.last_name,
        email=reservation.contact.email,
        phone=reservation.contact.phone,
        check_in=reservation.check_in,
        check_out=reservation.check_out,
        adult_count=reservation.guest_count.adult_count,
        child_count=reservation.guest_count.child_count,
        room_count=reservation.room_count,
        rooms=[RoomAllocationResponse(**room.model_dump()) for room in reservation.rooms],
        total_cost=reservation.total_cost,
        status=reservation.status,
        payment_status=reservation.payment_status,
        payment_method=reservation.payment_method,
        special_requests=reservation.special_requests,
        cancellation_reason=reservation.cancellation_reason,
        refund_amount=reservation.refund_amount,
        reminder_sent=reservation.reminder_sent,
        checkout_reminder_sent=reservation.checkout_reminder_sent,
        created_at=reservation.created_at,
        updated_at=reservation.updated_at
    )


def _maintenance_to_response(window: MaintenanceWindow) -> MaintenanceResponse:
    """Convert MaintenanceWindow entity to MaintenanceResponse"""
    return MaintenanceResponse(
        maintenance_id=window.maintenance_id,
        hotel_id=window.hotel_id,
        title=window.title,
        description=window.description,
        start_date=window.start_date,
        end_date=window.end_date,
        priority=window.priority,
        status=window.status,
        created_by=window.created_by,
        created_at=window.created_at
    )


def _waitlist_to_response(entry: WaitlistEntry) -> WaitlistResponse:
    """Convert WaitlistEntry entity to WaitlistResponse"""
    return WaitlistResponse(
        waitlist_id=entry.waitlist_id,
        hotel_id=entry.hotel_id,
        email=entry.email,
        first_name=entry.first_name,
        last_name=entry.last_name,
        check_in=entry.requested_dates.check_in,
        check_out=entry.requested_dates.check_out,
        created_at=entry.created_at
    )


def _hotel_to_response(hotel: HotelListing) -> HotelSummaryResponse:
    return HotelSummaryResponse(
        hotel_id=hotel.hotel_id,
        name=hotel.name,
        city=hotel.city,
        country=hotel.country,
        type=hotel.type,
        facilities=hotel.facilities,
        tags=hotel.tags,
        star_rating=hotel.star_rating,
        price_per_night=hotel.price_per_night,
        adult_count=hotel.adult_count,
        child_count=hotel.child_count,
        is_featured=hotel.is_featured,
        image_urls=hotel.image_urls,
        total_bookings=hotel.total_bookings,
        last_updated=hotel.last_updated
    )


def _search_to_response(result: SearchResult) -> SearchResponse:
    """Convert SearchResult to SearchResponse"""
    return SearchResponse(
        data=[_hotel_to_response(h) for h in result.data],
        pagination=PaginationResponse(**result.pagination.model_dump()),
        facets=FacetsResponse(
            star_ratings=result.facets.star_ratings,
            types=result.facets.types,
            price=PriceRangeResponse(**result.facets.price.model_dump())
        ),
        availability=AvailabilitySummaryResponse(**result.availability.model_dump()),
        served_from_cache=result.served_from_cache
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
