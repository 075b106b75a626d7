"""Thin async transport for the activity enrollment REST API.

EnrollmentAPI owns one httpx.AsyncClient. The client keeps the server's
session cookie, so a login performed through it applies to every later call.
Methods never interpret success or failure; they return the status and the
decoded body and leave the decision to the caller.
"""

from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from src.enrollment.errors import MalformedResponseError, TransportError
from src.enrollment.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class ApiResponse:
    """Status code and decoded JSON body of one API call."""

    status: int
    payload: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def field(self, key: str) -> str | None:
        """Return a string field of a mapping payload, or None if absent."""
        if isinstance(self.payload, dict):
            value = self.payload.get(key)
            if isinstance(value, str) and value:
                return value
        return None


def activity_path(activity: str, action: str) -> str:
    """Build /activities/{name}/{action} with the name fully URL-escaped."""
    return f"/activities/{quote(activity, safe='')}/{action}"


class EnrollmentAPI:
    """Client for the enrollment endpoints.

    Args:
        base_url: API root, e.g. http://localhost:8000.
        transport: Optional httpx transport (tests pass an httpx.MockTransport).
    """

    def __init__(
        self, base_url: str, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> None:
        self.base_url = base_url
        self._client = httpx.AsyncClient(base_url=base_url, transport=transport)

    async def __aenter__(self) -> "EnrollmentAPI":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        decode: bool = True,
        **kwargs: Any,
    ) -> ApiResponse:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            log.warning(
                "api_transport_error",
                base_url=self.base_url,
                method=method,
                path=path,
                error=str(e),
                type=type(e).__name__,
            )
            raise TransportError(f"{method} {path} failed: {e}") from e

        log.debug("api_response", method=method, path=path, status=response.status_code)

        if not decode:
            return ApiResponse(status=response.status_code)
        try:
            payload = response.json()
        except ValueError as e:
            log.warning(
                "api_malformed_body",
                method=method,
                path=path,
                status=response.status_code,
            )
            raise MalformedResponseError(
                f"{method} {path} returned a non-JSON body"
            ) from e
        return ApiResponse(status=response.status_code, payload=payload)

    async def list_activities(self) -> ApiResponse:
        return await self._request("GET", "/activities")

    async def current_user(self) -> ApiResponse:
        return await self._request("GET", "/me")

    async def login(self, username: str, password: str) -> ApiResponse:
        return await self._request(
            "POST", "/login", data={"username": username, "password": password}
        )

    async def register(self, username: str, password: str) -> ApiResponse:
        return await self._request(
            "POST", "/register", data={"username": username, "password": password}
        )

    async def logout(self) -> ApiResponse:
        # Only the status matters for logout
        return await self._request("POST", "/logout", decode=False)

    async def signup(self, activity: str, email: str) -> ApiResponse:
        return await self._request(
            "POST", activity_path(activity, "signup"), params={"email": email}
        )

    async def unregister(self, activity: str, email: str) -> ApiResponse:
        return await self._request(
            "DELETE", activity_path(activity, "unregister"), params={"email": email}
        )
