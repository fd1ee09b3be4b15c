import logging
import time
from dataclasses import dataclass

import httpx

from warroom_client.settings import Settings

logger = logging.getLogger(__name__)

REFRESH_MARGIN_SECONDS = 300
ANONYMOUS_USER_DATA = {"user_type": "anonymous", "request_count": 0, "max_requests": 2}


class TokenProvider:
    """Source of bearer tokens for backend requests."""

    async def get_token(self) -> str | None:
        raise NotImplementedError

    async def sign_in_anonymously(self) -> str | None:
        return None


class StaticTokenProvider(TokenProvider):
    def __init__(self, token: str) -> None:
        self._token = token

    async def get_token(self) -> str | None:
        return self._token


@dataclass
class SupabaseSession:
    access_token: str
    refresh_token: str | None = None
    expires_at: int | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "SupabaseSession":
        expires_at = payload.get("expires_at")
        if expires_at is None and payload.get("expires_in") is not None:
            expires_at = int(time.time()) + int(payload["expires_in"])
        return cls(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
            expires_at=expires_at,
        )

    def expires_soon(self, now: float) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at - now < REFRESH_MARGIN_SECONDS


class SupabaseTokenProvider(TokenProvider):
    """Access tokens from Supabase auth, refreshed shortly before expiry.

    Failures are logged and reported as "no token" so callers can carry on
    unauthenticated or sign in anonymously.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
        session: SupabaseSession | None = None,
    ) -> None:
        if not settings.supabase_url or not settings.supabase_anon_key:
            raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY are required")
        self._auth_url = f"{settings.supabase_url}/auth/v1"
        self._anon_key = settings.supabase_anon_key
        self._timeout = settings.timeout_seconds
        self._http = http_client
        self.session = session

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self._anon_key,
            "Authorization": f"Bearer {self._anon_key}",
            "Content-Type": "application/json",
        }

    async def _post(self, path: str, payload: dict, params: dict | None = None) -> dict:
        url = f"{self._auth_url}{path}"
        if self._http is not None:
            resp = await self._http.post(url, json=payload, params=params, headers=self._headers())
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=payload, params=params, headers=self._headers())
        resp.raise_for_status()
        return resp.json()

    async def get_token(self) -> str | None:
        if self.session is None:
            logger.info("no active supabase session")
            return None
        if self.session.expires_soon(time.time()):
            return await self._refresh()
        return self.session.access_token

    async def _refresh(self) -> str | None:
        if not self.session or not self.session.refresh_token:
            return None
        logger.info("supabase token expires soon, refreshing")
        try:
            payload = await self._post(
                "/token",
                {"refresh_token": self.session.refresh_token},
                params={"grant_type": "refresh_token"},
            )
            self.session = SupabaseSession.from_payload(payload)
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            logger.warning("supabase token refresh failed: %s", exc)
            return None
        return self.session.access_token

    async def sign_in_anonymously(self) -> str | None:
        try:
            payload = await self._post("/signup", {"data": dict(ANONYMOUS_USER_DATA)})
            self.session = SupabaseSession.from_payload(payload)
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            logger.warning("anonymous sign-in failed: %s", exc)
            return None
        return self.session.access_token


def build_token_provider(
    settings: Settings,
    http_client: httpx.AsyncClient | None = None,
) -> TokenProvider | None:
    if settings.auth_token:
        return StaticTokenProvider(settings.auth_token)
    if settings.supabase_url and settings.supabase_anon_key:
        return SupabaseTokenProvider(settings, http_client=http_client)
    return None
