from enum import Enum
from dataclasses import dataclass
from typing import Optional


class UserRole(Enum):
    CONSUMER = "consumer"
    BRAND_OWNER = "brand_owner"
    STAFF = "staff"
    ADMIN = "admin"


@dataclass
class User:
    user_id: str
    email: str
    name: str
    role: UserRole
    phone: Optional[str] = None


@dataclass
class TokenPair:
    access_token: str
    refresh_token: Optional[str] = None
