"""Domain Exceptions"""


class DomainError(Exception):
    """Base class for business errors surfaced to the caller"""


class InvalidRangeError(DomainError):
    """Malformed or inverted date window"""


class DatesUnavailableError(DomainError):
    """Window conflicts with a reservation or maintenance window"""

    def __init__(self, hotel_id: str, check_in, check_out):
        self.hotel_id = hotel_id
        self.check_in = check_in
        self.check_out = check_out
        super().__init__(
            f"Hotel {hotel_id} is not available from {check_in} to {check_out}"
        )


class MaintenanceOverlapError(DomainError):
    """Maintenance window overlaps another window of the same hotel"""

    def __init__(self, hotel_id: str, conflicting_id: str):
        self.hotel_id = hotel_id
        self.conflicting_id = conflicting_id
        super().__init__(
            f"Maintenance window overlaps existing window {conflicting_id}"
        )


class NotFoundError(DomainError):
    pass


class ForbiddenError(DomainError):
    pass


class InvalidStatusTransitionError(DomainError):
    pass


class CatalogUnavailableError(DomainError):
    """Listing collaborator could not be reached"""
