from typing import Optional

from pydantic import BaseModel

from spacebook.common.models.users import UserRole


class LoginRequest(BaseModel):
    email: str
    password: str


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str
    phone: Optional[str] = None
    role: UserRole = UserRole.CONSUMER

    def to_payload(self) -> dict:
        payload = self.model_dump(exclude_none=True)
        payload["role"] = self.role.value
        return payload
