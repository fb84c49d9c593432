from typing import Optional

from pydantic import BaseModel, Field, field_validator

from spacebook.common.schemas.bookings import CustomerDetailsRequest


class CreateOrderRequest(BaseModel):
    booking_id: str
    amount: int = Field(description="minor currency units")
    currency: str = "INR"
    customer: CustomerDetailsRequest

    @field_validator("amount", mode="before")
    @classmethod
    def whole_minor_units(cls, value):
        if isinstance(value, float) or not isinstance(value, int):
            raise ValueError("amount must be an integer number of minor units")
        if value <= 0:
            raise ValueError("amount must be positive")
        return value

    def to_payload(self) -> dict:
        return {
            "bookingId": self.booking_id,
            "amount": self.amount,
            "currency": self.currency,
            "customerDetails": {
                "name": self.customer.name,
                "email": self.customer.email,
                "phone": self.customer.phone,
            },
        }


class GatewayCallback(BaseModel):
    """What the checkout widget hands back after the customer pays."""

    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


class VerifyPaymentRequest(BaseModel):
    order_id: str
    payment_id: str
    signature: str
    booking_id: str

    @classmethod
    def from_callback(cls, callback: GatewayCallback, booking_id: str) -> "VerifyPaymentRequest":
        return cls(
            order_id=callback.razorpay_order_id,
            payment_id=callback.razorpay_payment_id,
            signature=callback.razorpay_signature,
            booking_id=booking_id,
        )

    def to_payload(self) -> dict:
        return {
            "orderId": self.order_id,
            "paymentId": self.payment_id,
            "signature": self.signature,
            "bookingId": self.booking_id,
        }


class RefundRequest(BaseModel):
    reason: str
    amount: Optional[float] = None
    notes: Optional[str] = None
