"""
Movie Matcher — Async API client

Thin ``httpx`` wrapper around the REST API for scripts, tests and other
Python consumers.  Authentication returns an ``ApiSession`` that the caller
passes to every protected call; the client itself holds no credentials, so
one client can drive several users at once::

    async with MovieMatchClient("http://localhost:5000") as client:
        alice = await client.login("alice@example.com", "secret123")
        movies = await client.list_movies()
        result = await client.swipe(alice, movies[0]["id"], liked=True)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class ApiSession:
    """Credentials for one authenticated user."""

    token: str
    user_id: str
    email: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


class ApiError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class MovieMatchClient:
    """One coroutine per API endpoint."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "MovieMatchClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ── Auth ──────────────────────────────────────────────────────────────

    async def signup(
        self, email: str, password: str, display_name: str | None = None
    ) -> ApiSession:
        payload: dict[str, Any] = {"email": email, "password": password}
        if display_name is not None:
            payload["display_name"] = display_name
        data = await self._request("POST", "/api/auth/signup", json=payload)
        return self._session_from(data)

    async def login(self, email: str, password: str) -> ApiSession:
        data = await self._request(
            "POST", "/api/auth/login", json={"email": email, "password": password}
        )
        return self._session_from(data)

    async def me(self, session: ApiSession) -> dict:
        return await self._request("GET", "/api/auth/me", session=session)

    # ── Catalog ───────────────────────────────────────────────────────────

    async def list_movies(self) -> list[dict]:
        return await self._request("GET", "/api/movies")

    async def get_movie(self, movie_id: int) -> dict:
        return await self._request("GET", f"/api/movies/{movie_id}")

    # ── Swipes & matches ──────────────────────────────────────────────────

    async def swipe(self, session: ApiSession, media_id: int, liked: bool) -> dict:
        return await self._request(
            "POST",
            "/api/swipes",
            session=session,
            json={"media_id": media_id, "liked": liked},
        )

    async def list_swipes(self, session: ApiSession) -> list[dict]:
        return await self._request("GET", "/api/swipes", session=session)

    async def list_matches(self, session: ApiSession) -> list[dict]:
        return await self._request("GET", "/api/matches", session=session)

    async def get_match(self, session: ApiSession, match_id: str) -> dict:
        return await self._request("GET", f"/api/matches/{match_id}", session=session)

    # ── Partners ──────────────────────────────────────────────────────────

    async def set_partner(self, session: ApiSession, partner_id: str) -> dict:
        return await self._request(
            "POST", "/api/users/partner", session=session, json={"partner_id": partner_id}
        )

    async def get_partner(self, session: ApiSession) -> dict | None:
        return await self._request("GET", "/api/users/partner", session=session)

    async def remove_partner(self, session: ApiSession) -> dict:
        return await self._request("DELETE", "/api/users/partner", session=session)

    async def search_user(self, session: ApiSession, email: str) -> dict:
        return await self._request(
            "GET", "/api/users/search", session=session, params={"email": email}
        )

    async def send_partner_request(self, session: ApiSession, recipient_email: str) -> dict:
        return await self._request(
            "POST",
            "/api/users/partner-requests",
            session=session,
            json={"recipient_email": recipient_email},
        )

    async def list_partner_requests(self, session: ApiSession) -> list[dict]:
        return await self._request("GET", "/api/users/partner-requests", session=session)

    async def list_pending_partner_requests(self, session: ApiSession) -> list[dict]:
        return await self._request(
            "GET", "/api/users/partner-requests/pending", session=session
        )

    async def respond_to_partner_request(
        self, session: ApiSession, request_id: str, accept: bool
    ) -> dict:
        return await self._request(
            "POST",
            "/api/users/partner-requests/respond",
            session=session,
            json={
                "request_id": request_id,
                "status": "accepted" if accept else "rejected",
            },
        )

    # ── Internals ─────────────────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        path: str,
        *,
        session: ApiSession | None = None,
        **kwargs: Any,
    ) -> Any:
        headers = session.headers if session is not None else None
        response = await self._http.request(method, path, headers=headers, **kwargs)

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = None
            message = body.get("error", response.text) if isinstance(body, dict) else response.text
            raise ApiError(response.status_code, message)

        return response.json()

    @staticmethod
    def _session_from(data: dict) -> ApiSession:
        user = data["user"]
        return ApiSession(token=data["token"], user_id=user["id"], email=user["email"])
