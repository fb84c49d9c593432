import re
from datetime import date, time
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class CustomerDetailsRequest(BaseModel):
    name: str
    email: str
    phone: str
    guest_count: int = 1
    event_purpose: Optional[str] = None
    special_requests: Optional[str] = None

    @field_validator("name", "phone")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("customer name and phone are required")
        return value

    @field_validator("email")
    @classmethod
    def valid_email(cls, value: str) -> str:
        value = value.strip()
        if not EMAIL_PATTERN.match(value):
            raise ValueError("customer email is invalid")
        return value

    @field_validator("guest_count")
    @classmethod
    def at_least_one_guest(cls, value: int) -> int:
        if value < 1:
            raise ValueError("guest count must be at least 1")
        return value

    def to_payload(self) -> dict:
        payload = {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "guestCount": self.guest_count,
        }
        if self.event_purpose:
            payload["eventPurpose"] = self.event_purpose
        if self.special_requests:
            payload["specialRequests"] = self.special_requests
        return payload


class CreateBookingRequest(BaseModel):
    space_id: str
    booking_date: date
    start_time: time
    end_time: time
    customer: CustomerDetailsRequest
    promo_code: Optional[str] = None
    special_requests: Optional[str] = None

    @model_validator(mode="after")
    def validate_slot(self):
        if not self.space_id.strip():
            raise ValueError("space is required")

        if self.end_time <= self.start_time:
            raise ValueError("end time must be after start time")

        return self

    @property
    def duration_hours(self) -> float:
        start = self.start_time.hour * 60 + self.start_time.minute
        end = self.end_time.hour * 60 + self.end_time.minute
        return (end - start) / 60

    def to_payload(self) -> dict:
        payload = {
            "spaceId": self.space_id,
            "bookingDate": self.booking_date.isoformat(),
            "startTime": self.start_time.strftime("%H:%M"),
            "endTime": self.end_time.strftime("%H:%M"),
            "customerDetails": self.customer.to_payload(),
        }
        if self.promo_code:
            payload["promoCode"] = self.promo_code
        if self.special_requests:
            payload["specialRequests"] = self.special_requests
        return payload


class BookingFilters(BaseModel):
    status: Optional[str] = None
    space_id: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    page: Optional[int] = None
    limit: Optional[int] = None

    def to_params(self) -> dict:
        names = {
            "status": "status",
            "space_id": "spaceId",
            "date_from": "dateFrom",
            "date_to": "dateTo",
            "page": "page",
            "limit": "limit",
        }
        params = {}
        for field, value in self.model_dump(exclude_none=True).items():
            params[names[field]] = value.isoformat() if isinstance(value, date) else value
        return params
