from datetime import datetime, timezone
from typing import Optional

import jwt


def decode_unverified(token: str) -> dict:
    """Read a token's claims. The signature is the server's business."""
    return jwt.decode(
        token,
        options={"verify_signature": False, "verify_exp": False},
        algorithms=["HS256", "RS256"],
    )


def token_expiry(token: str) -> Optional[datetime]:
    try:
        claims = decode_unverified(token)
    except jwt.InvalidTokenError:
        return None

    exp = claims.get("exp")
    if exp is None:
        return None
    return datetime.fromtimestamp(int(exp), tz=timezone.utc)


def expires_within(token: str, seconds: int) -> bool:
    expiry = token_expiry(token)
    if expiry is None:
        return False
    remaining = (expiry - datetime.now(timezone.utc)).total_seconds()
    return remaining <= seconds
