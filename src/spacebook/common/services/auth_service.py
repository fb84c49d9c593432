import logging
from typing import Optional

import jwt

from spacebook.common.models.users import User, UserRole
from spacebook.common.repository.auth_repo import AuthRepository, AuthResult
from spacebook.common.schemas.users import LoginRequest, RegisterRequest
from spacebook.common.utils.custom_exceptions import ApiError
from spacebook.common.utils.http_client import ApiClient
from spacebook.common.utils.jwt_service import decode_unverified

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, auth_repo: AuthRepository, client: ApiClient):
        self.auth_repo = auth_repo
        self.client = client

    async def login(self, email: str, password: str) -> AuthResult:
        result = await self.auth_repo.login(LoginRequest(email=email, password=password))
        self.client.set_auth_tokens(result.tokens.access_token, result.tokens.refresh_token)
        logger.info(f"Logged in {result.user.email} as {result.user.role.value}")
        return result

    async def register(self, req: RegisterRequest) -> AuthResult:
        result = await self.auth_repo.register(req)
        self.client.set_auth_tokens(result.tokens.access_token, result.tokens.refresh_token)
        return result

    async def logout(self):
        try:
            await self.auth_repo.logout()
        except ApiError as err:
            # local tokens go regardless
            logger.warning(f"Server logout failed, clearing local tokens: {err}")
        finally:
            self.client.clear_auth()

    async def current_user(self) -> User:
        return await self.auth_repo.me()

    def is_authenticated(self) -> bool:
        return self.client.is_authenticated()

    def token_claims(self) -> dict:
        token = self.client.token_store.get_access_token()
        if not token:
            return {}
        try:
            return decode_unverified(token)
        except jwt.InvalidTokenError:
            return {}

    def current_role(self) -> Optional[UserRole]:
        role = self.token_claims().get("role")
        try:
            return UserRole(role) if role else None
        except ValueError:
            return None
