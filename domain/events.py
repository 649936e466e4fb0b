"""Outbound notification events"""
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict

from pydantic import BaseModel, Field

from domain.enums import NotificationType
from domain.entities import Reservation, WaitlistEntry


class NotificationEvent(BaseModel):
    """Fire-and-forget message for the notification collaborator"""
    type: NotificationType
    to: str
    subject: str
    message: str
    metadata: Dict[str, Any] = {}
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Config:
        frozen = True


class NotificationPublisher(ABC):
    """Outbound port to the notification collaborator"""

    @abstractmethod
    async def publish(self, event: NotificationEvent) -> None:
        pass


_BOOKING_SUBJECTS = {
    NotificationType.BOOKING_CONFIRMATION: ("Booking Confirmation", "your booking is confirmed"),
    NotificationType.BOOKING_UPDATED: ("Booking Updated", "your booking has been updated"),
    NotificationType.BOOKING_CANCELLED: ("Booking Cancelled", "your booking has been cancelled"),
}


def booking_event(event_type: NotificationType, reservation: Reservation) -> NotificationEvent:
    subject, text = _BOOKING_SUBJECTS[event_type]
    return NotificationEvent(
        type=event_type,
        to=reservation.contact.email,
        subject=subject,
        message=f"Hi {reservation.contact.first_name}, {text}.",
        metadata={
            "booking_id": str(reservation.booking_id),
            "hotel_id": reservation.hotel_id,
            "check_in": reservation.check_in.isoformat(),
            "check_out": reservation.check_out.isoformat(),
            "status": reservation.status.value,
        }
    )


def waitlist_event(event_type: NotificationType, entry: WaitlistEntry) -> NotificationEvent:
    if event_type == NotificationType.WAITLIST_JOINED:
        subject, text = "Waitlist Joined", "you are on the waitlist for your requested dates"
    else:
        subject, text = "Dates Available", "the dates you were waiting for are now available"
    return NotificationEvent(
        type=event_type,
        to=entry.email,
        subject=subject,
        message=f"Hi {entry.first_name or 'there'}, {text}.",
        metadata={
            "waitlist_id": str(entry.waitlist_id),
            "hotel_id": entry.hotel_id,
            "check_in": entry.requested_dates.check_in.isoformat(),
            "check_out": entry.requested_dates.check_out.isoformat(),
        }
    )
