from dataclasses import dataclass
from typing import Callable, Optional

import httpx
from boto3 import resource

from spacebook.common.repository.auth_repo import AuthRepository
from spacebook.common.repository.booking_repo import BookingRepository
from spacebook.common.repository.payment_repo import PaymentRepository
from spacebook.common.repository.promo_repo import PromoCodeRepository
from spacebook.common.repository.token_store import (
    DynamoTokenStore,
    InMemoryTokenStore,
    TokenStore,
)
from spacebook.common.services.auth_service import AuthService
from spacebook.common.services.booking_service import BookingService
from spacebook.common.services.payment_service import PaymentService
from spacebook.common.services.pricing_service import PricingService
from spacebook.common.utils.constants import API_BASE_URL, TOKEN_TABLE_NAME
from spacebook.common.utils.http_client import ApiClient


@dataclass
class Session:
    client: ApiClient
    auth_service: AuthService
    booking_service: BookingService
    payment_service: PaymentService
    pricing_service: PricingService

    async def aclose(self):
        await self.client.aclose()


def create_token_store(session_id: str, table_name: Optional[str] = TOKEN_TABLE_NAME) -> TokenStore:
    if not table_name:
        return InMemoryTokenStore()
    table = resource("dynamodb").Table(table_name)
    return DynamoTokenStore(table, session_id)


def create_session(
    token_store: TokenStore,
    base_url: str = API_BASE_URL,
    on_session_expired: Optional[Callable[[], None]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Session:
    client = ApiClient(
        token_store,
        base_url=base_url,
        on_session_expired=on_session_expired,
        transport=transport,
    )
    return Session(
        client=client,
        auth_service=AuthService(AuthRepository(client), client),
        booking_service=BookingService(BookingRepository(client)),
        payment_service=PaymentService(PaymentRepository(client)),
        pricing_service=PricingService(PromoCodeRepository(client)),
    )
