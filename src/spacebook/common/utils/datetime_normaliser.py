from datetime import datetime, timezone
from typing import Optional


def from_iso_string(value: str) -> datetime:
    if len(value) == 10:
        # bare calendar date
        value += "T00:00:00+00:00"
    # JS clients and servers emit a trailing "Z"
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        raise ValueError("API datetime must be timezone-aware")
    return dt.astimezone(timezone.utc)


def optional_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return from_iso_string(value)
