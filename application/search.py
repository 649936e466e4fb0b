"""Availability-filtered catalog search with facets and result caching"""
import math
from collections import Counter
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

import structlog
from pydantic import BaseModel, Field

from application.services import AvailabilityService
from domain.entities import HotelListing
from domain.enums import SortOption
from domain.exceptions import InvalidRangeError
from domain.repositories import HotelCatalogRepository
from domain.value_objects import DateRange
from infrastructure import config
from infrastructure.cache import ResultCache, canonical_key

logger = structlog.get_logger(__name__)


# ============================================================================
# QUERY MODELS
# ============================================================================

class SearchFilters(BaseModel):
    """Catalog predicate; list filters use AND semantics except types and stars"""
    destination: Optional[str] = None
    adult_count: Optional[int] = Field(None, ge=0)
    child_count: Optional[int] = Field(None, ge=0)
    facilities: List[str] = []
    types: List[str] = []
    stars: List[int] = []
    tags: List[str] = []
    amenities: List[str] = []
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    featured_only: bool = False

    def matches(self, hotel: HotelListing) -> bool:
        if self.destination and self.destination.strip():
            needle = self.destination.strip().lower()
            if not any(needle in text.lower() for text in hotel.location_texts()):
                return False
        if self.adult_count is not None and hotel.adult_count < self.adult_count:
            return False
        if self.child_count is not None and hotel.child_count < self.child_count:
            return False
        if self.facilities and not set(self.facilities).issubset(hotel.facilities):
            return False
        if self.types and not set(self.types).intersection(hotel.type):
            return False
        if self.stars and hotel.star_rating not in self.stars:
            return False
        if self.tags and not set(self.tags).issubset(hotel.tags):
            return False
        if self.amenities and not set(self.amenities).issubset(hotel.amenity_set()):
            return False
        if self.min_price is not None and hotel.price_per_night < self.min_price:
            return False
        if self.max_price is not None and hotel.price_per_night > self.max_price:
            return False
        if self.featured_only and not hotel.is_featured:
            return False
        return True


class SearchRequest(BaseModel):
    filters: SearchFilters = SearchFilters()
    page: int = Field(1, ge=1)
    sort_option: Optional[SortOption] = None
    check_in: Optional[date] = None
    check_out: Optional[date] = None

    def date_window(self) -> Optional[DateRange]:
        if self.check_in is None and self.check_out is None:
            return None
        if self.check_in is None or self.check_out is None:
            raise InvalidRangeError("Both check_in and check_out are required for a dated search")
        return DateRange.create(self.check_in, self.check_out)

    def cache_params(self) -> Dict[str, Any]:
        params = self.filters.model_dump()
        params.update(page=self.page, sort_option=self.sort_option)
        return params


# ============================================================================
# RESULT MODELS
# ============================================================================

class Pagination(BaseModel):
    total: int
    page: int
    pages: int
    page_size: int


class PriceRange(BaseModel):
    min: Optional[Decimal] = None
    max: Optional[Decimal] = None


class Facets(BaseModel):
    star_ratings: Dict[int, int] = {}
    types: Dict[str, int] = {}
    price: PriceRange = PriceRange()


class AvailabilitySummary(BaseModel):
    checked: bool = False
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    excluded_by_bookings: int = 0
    excluded_by_maintenance: int = 0
    excluded_total: int = 0


class SearchResult(BaseModel):
    data: List[HotelListing]
    pagination: Pagination
    facets: Facets
    availability: AvailabilitySummary
    served_from_cache: bool = False


# ============================================================================
# FACET AGGREGATOR
# ============================================================================

def aggregate_facets(hotels: List[HotelListing]) -> Facets:
    """Breakdowns over exactly the set being returned"""
    if not hotels:
        return Facets()
    stars = Counter(h.star_rating for h in hotels)
    # A hotel contributes once to every type bucket it carries
    types = Counter(t for h in hotels for t in set(h.type))
    prices = [h.price_per_night for h in hotels]
    return Facets(
        star_ratings=dict(sorted(stars.items(), reverse=True)),
        types=dict(sorted(types.items())),
        price=PriceRange(min=min(prices), max=max(prices))
    )


def _sort_key(option: Optional[SortOption]):
    if option == SortOption.STAR_RATING:
        return lambda h: (-h.star_rating, h.hotel_id)
    if option == SortOption.PRICE_ASC:
        return lambda h: (h.price_per_night, h.hotel_id)
    if option == SortOption.PRICE_DESC:
        return lambda h: (-h.price_per_night, h.hotel_id)
    if option == SortOption.LAST_UPDATED:
        return lambda h: (-h.last_updated.timestamp(), h.hotel_id)
    if option == SortOption.POPULARITY:
        return lambda h: (-h.total_bookings, h.hotel_id)
    return lambda h: (-h.star_rating, h.price_per_night, h.hotel_id)


# ============================================================================
# CATALOG QUERY
# ============================================================================

class HotelSearchService:
    """Filtered, faceted, paginated catalog view.

    Dated searches remove hotels blocked by either ledger before counting,
    faceting and paging, and never touch the cache.
    """

    def __init__(
        self,
        catalog_repo: HotelCatalogRepository,
        availability: AvailabilityService,
        cache: Optional[ResultCache] = None,
        page_size: int = config.SEARCH_PAGE_SIZE
    ):
        self.catalog_repo = catalog_repo
        self.availability = availability
        self.cache = cache
        self.page_size = page_size

    async def search(self, request: SearchRequest) -> SearchResult:
        window = request.date_window()

        key = None
        if window is None and self.cache is not None:
            key = canonical_key(request.cache_params())
            cached = self._cache_get(key)
            if cached is not None:
                logger.debug("Search cache hit", key=key)
                return cached.model_copy(update={"served_from_cache": True})

        result = await self._execute(request, window)

        if key is not None:
            self._cache_put(key, result)
        return result

    async def _execute(self, request: SearchRequest, window: Optional[DateRange]) -> SearchResult:
        hotels = [h for h in await self.catalog_repo.find_all() if request.filters.matches(h)]

        summary = AvailabilitySummary()
        if window is not None:
            blocked = await self.availability.blocked_hotel_ids(window.check_in, window.check_out)
            candidate_ids = {h.hotel_id for h in hotels}
            summary = AvailabilitySummary(
                checked=True,
                check_in=window.check_in,
                check_out=window.check_out,
                excluded_by_bookings=len(candidate_ids & blocked.by_bookings),
                excluded_by_maintenance=len(candidate_ids & blocked.by_maintenance),
                excluded_total=len(candidate_ids & blocked.all)
            )
            hotels = [h for h in hotels if h.hotel_id not in blocked.all]
            logger.info(
                "Search availability narrowing",
                check_in=window.check_in.isoformat(),
                check_out=window.check_out.isoformat(),
                excluded_by_bookings=summary.excluded_by_bookings,
                excluded_by_maintenance=summary.excluded_by_maintenance,
                remaining=len(hotels)
            )

        facets = aggregate_facets(hotels)
        hotels.sort(key=_sort_key(request.sort_option))

        total = len(hotels)
        start = (request.page - 1) * self.page_size
        return SearchResult(
            data=hotels[start:start + self.page_size],
            pagination=Pagination(
                total=total,
                page=request.page,
                pages=math.ceil(total / self.page_size),
                page_size=self.page_size
            ),
            facets=facets,
            availability=summary
        )

    def _cache_get(self, key: str) -> Optional[SearchResult]:
        try:
            return self.cache.get(key)
        except Exception as e:
            logger.warning("Search cache read failed", error=str(e))
            return None

    def _cache_put(self, key: str, result: SearchResult) -> None:
        try:
            self.cache.put(key, result)
        except Exception as e:
            logger.warning("Search cache write failed", error=str(e))
