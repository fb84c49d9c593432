import logging
from dataclasses import dataclass

from spacebook.common.models.users import TokenPair, User, UserRole
from spacebook.common.schemas.users import LoginRequest, RegisterRequest
from spacebook.common.utils.custom_exceptions import ApiError
from spacebook.common.utils.custom_response import unwrap
from spacebook.common.utils.http_client import ApiClient

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    user: User
    tokens: TokenPair
    expires_in: int


class AuthRepository:
    def __init__(self, client: ApiClient):
        self.client = client

    async def login(self, req: LoginRequest) -> AuthResult:
        try:
            body = await self.client.post("/auth/login", json=req.model_dump())
        except ApiError as err:
            logger.error(f"Login failed for {req.email}: {err}")
            raise
        return self._to_auth_result(unwrap(body))

    async def register(self, req: RegisterRequest) -> AuthResult:
        try:
            body = await self.client.post("/auth/register", json=req.to_payload())
        except ApiError as err:
            logger.error(f"Registration failed for {req.email}: {err}")
            raise
        return self._to_auth_result(unwrap(body))

    async def logout(self):
        await self.client.post("/auth/logout")

    async def me(self) -> User:
        body = await self.client.get("/auth/me")
        return self._to_user(unwrap(body))

    @classmethod
    def _to_auth_result(cls, data: dict) -> AuthResult:
        return AuthResult(
            user=cls._to_user(data["user"]),
            tokens=TokenPair(
                access_token=data["accessToken"],
                refresh_token=data.get("refreshToken"),
            ),
            expires_in=int(data.get("expiresIn") or 0),
        )

    @staticmethod
    def _to_user(item: dict) -> User:
        return User(
            user_id=item.get("_id") or item["id"],
            email=item["email"],
            name=item.get("name", ""),
            role=UserRole(item.get("role") or "consumer"),
            phone=item.get("phone"),
        )
