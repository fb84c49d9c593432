from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from spacebook.common.utils.custom_response import ErrorResponse


class ApiError(Exception):
    """A failed API call, normalised to the server's error envelope."""

    def __init__(self, response: "ErrorResponse"):
        self.response = response
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def message(self) -> str:
        message = self.response.message
        if isinstance(message, list):
            return "; ".join(message)
        return message

    @property
    def is_network_error(self) -> bool:
        return self.response.status_code == 0

    def __str__(self):
        return f"{self.status_code} {self.response.error}: {self.message}"


class BookingValidationError(Exception):
    pass


class TransitionNotAvailable(Exception):
    def __init__(self, booking_code: str, status: str, action: str):
        self.booking_code = booking_code
        self.status = status
        self.action = action

    def __str__(self):
        return f"booking '{self.booking_code}' in status '{self.status}' cannot {self.action}"


class GatewayError(Exception):
    pass


class VerificationFailed(Exception):
    pass
