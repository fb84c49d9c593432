import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

import httpx

from spacebook.common.repository.token_store import TokenStore
from spacebook.common.utils import constants
from spacebook.common.utils.custom_exceptions import ApiError
from spacebook.common.utils.custom_response import (
    auth_error,
    client_error,
    error_from_response,
    network_error,
    unwrap,
)
from spacebook.common.utils.jwt_service import expires_within

logger = logging.getLogger(__name__)

T = TypeVar("T")

REFRESH_PATH = "/auth/refresh"


class ApiClient:
    """
    Async HTTP access to the marketplace API.

    Attaches the stored bearer token, refreshes it once when the server answers
    401 (concurrent callers share that one refresh), and turns every failure
    into an ApiError carrying the server's error envelope.
    """

    def __init__(
        self,
        token_store: TokenStore,
        base_url: str = constants.API_BASE_URL,
        timeout: float = constants.REQUEST_TIMEOUT,
        retry_attempts: int = constants.RETRY_ATTEMPTS,
        retry_delay: float = constants.RETRY_DELAY,
        refresh_threshold: int = constants.TOKEN_REFRESH_THRESHOLD,
        on_session_expired: Optional[Callable[[], None]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token_store = token_store
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self.refresh_threshold = refresh_threshold
        self.on_session_expired = on_session_expired

        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            transport=transport,
        )
        self._refresh_task: Optional[asyncio.Future] = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self._http.aclose()

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[dict] = None,
        _retry: bool = False,
    ) -> Any:
        token = self.token_store.get_access_token()
        if token and not _retry and expires_within(token, self.refresh_threshold):
            logger.info("Access token close to expiry, refreshing before %s", path)
            await self._refresh_access_token(token)
            token = self.token_store.get_access_token()

        headers = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        started = time.monotonic()
        try:
            response = await self._http.request(
                method, path, json=json, params=params, headers=headers
            )
        except httpx.TransportError as err:
            logger.error(f"{method} {path} got no response: {err}")
            raise ApiError(network_error(path)) from err

        logger.debug(
            "API request to %s took %dms", path, (time.monotonic() - started) * 1000
        )

        if response.status_code == 401 and not _retry:
            await self._refresh_access_token(token)
            return await self.request(method, path, json=json, params=params, _retry=True)

        if not response.is_success:
            raise ApiError(error_from_response(response, path))

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as err:
            raise ApiError(client_error("Malformed response body", path)) from err

    async def get(self, path: str, params: Optional[dict] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def patch(self, path: str, json: Any = None) -> Any:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def _refresh_access_token(self, stale_token: Optional[str]):
        if self._refresh_task is None:
            if stale_token is not None and self.token_store.get_access_token() != stale_token:
                # token already replaced since this request went out
                return
            self._refresh_task = asyncio.ensure_future(self._perform_refresh())

        await asyncio.shield(self._refresh_task)

    async def _perform_refresh(self):
        try:
            refresh_token = self.token_store.get_refresh_token()
            if not refresh_token:
                raise ApiError(auth_error("No refresh token available", REFRESH_PATH))

            try:
                response = await self._http.post(
                    REFRESH_PATH, json={"refreshToken": refresh_token}
                )
            except httpx.TransportError as err:
                raise ApiError(network_error(REFRESH_PATH)) from err

            if not response.is_success:
                raise ApiError(error_from_response(response, REFRESH_PATH))

            try:
                payload = unwrap(response.json())
            except ValueError as err:
                raise ApiError(client_error("Malformed response body", REFRESH_PATH)) from err

            access_token = payload.get("accessToken") if isinstance(payload, dict) else None
            if not access_token:
                raise ApiError(
                    client_error("Refresh response carried no access token", REFRESH_PATH)
                )

            self.token_store.set_tokens(
                access_token, payload.get("refreshToken") or refresh_token
            )
            logger.info("Access token refreshed")

        except ApiError as err:
            logger.warning(f"Token refresh failed, ending session: {err}")
            self.token_store.clear()
            if self.on_session_expired:
                self.on_session_expired()
            raise

        finally:
            self._refresh_task = None

    async def with_retry(
        self, call: Callable[[], Awaitable[T]], attempts: Optional[int] = None
    ) -> T:
        attempts = attempts or self.retry_attempts
        last_error: Optional[ApiError] = None

        for attempt in range(attempts):
            try:
                return await call()
            except ApiError as err:
                last_error = err
                # a client error will fail the same way again
                if 400 <= err.status_code < 500 and err.status_code != 429:
                    raise

                if attempt < attempts - 1:
                    delay = self.retry_delay * (2 ** attempt)
                    logger.info(
                        "Attempt %d/%d failed with %d, retrying in %.1fs",
                        attempt + 1,
                        attempts,
                        err.status_code,
                        delay,
                    )
                    await asyncio.sleep(delay)

        raise last_error

    def set_auth_tokens(self, access_token: str, refresh_token: Optional[str]):
        self.token_store.set_tokens(access_token, refresh_token)

    def clear_auth(self):
        self.token_store.clear()

    def is_authenticated(self) -> bool:
        return bool(self.token_store.get_access_token())
