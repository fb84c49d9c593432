from datetime import datetime, timezone
from typing import Any, Generic, List, Optional, TypeVar, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    data: Optional[T] = None
    success: bool = True
    message: Optional[str] = None
    timestamp: Optional[str] = None


class Pagination(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int
    limit: int
    total: int
    total_pages: int = Field(alias="totalPages")
    has_next: bool = Field(default=False, alias="hasNext")
    has_prev: bool = Field(default=False, alias="hasPrev")


class PaginatedResponse(BaseModel, Generic[T]):
    data: List[T] = []
    pagination: Optional[Pagination] = None
    success: bool = True
    message: Optional[str] = None
    timestamp: Optional[str] = None


class ErrorResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status_code: int = Field(alias="statusCode")
    message: Union[str, List[str]]
    error: str
    timestamp: str
    path: str


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def error_from_response(response: httpx.Response, path: str) -> ErrorResponse:
    try:
        body = response.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        body = {}

    return ErrorResponse(
        status_code=response.status_code,
        message=body.get("message") or "An error occurred",
        error=body.get("error") or "Unknown Error",
        timestamp=_now_iso(),
        path=path,
    )


def network_error(path: str) -> ErrorResponse:
    return ErrorResponse(
        status_code=0,
        message="Network error - please check your connection",
        error="Network Error",
        timestamp=_now_iso(),
        path=path,
    )


def client_error(message: str, path: str) -> ErrorResponse:
    return ErrorResponse(
        status_code=500,
        message=message or "An unexpected error occurred",
        error="Client Error",
        timestamp=_now_iso(),
        path=path,
    )


def auth_error(message: str, path: str) -> ErrorResponse:
    return ErrorResponse(
        status_code=401,
        message=message,
        error="Unauthorized",
        timestamp=_now_iso(),
        path=path,
    )


def unwrap(body: Any) -> Any:
    """Return the payload of an ``{data, success}`` envelope, or the body as-is."""
    if isinstance(body, dict) and "data" in body and "success" in body:
        try:
            return ApiResponse[Any].model_validate(body).data
        except ValidationError:
            return body["data"]
    return body


def unwrap_list(body: Any) -> list:
    if isinstance(body, list):
        return body
    if isinstance(body, dict) and isinstance(body.get("data"), list):
        try:
            return PaginatedResponse[Any].model_validate(body).data
        except ValidationError:
            return body["data"]
    return []