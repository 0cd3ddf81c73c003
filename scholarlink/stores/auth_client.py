"""
Remote auth service client.

Password sign-in, sign-up, sign-out and token introspection over the auth
service REST API. Tokens are returned to the caller; persisting them is the
user session's job.
"""
import logging
from typing import Any, Dict, Optional
from uuid import UUID

import httpx
from pydantic import BaseModel

from scholarlink.config import AUTH_URL, AUTH_API_KEY
from scholarlink.errors import AuthenticationError

logger = logging.getLogger(__name__)


class AuthSession(BaseModel):
    """Tokens for the signed-in user"""
    user_id: UUID
    access_token: str
    refresh_token: Optional[str] = None


class AuthClient:
    def __init__(self, base_url: str = AUTH_URL, api_key: str = AUTH_API_KEY, timeout: float = 10.0):
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout

    def _headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        headers = {"apikey": self._api_key, "Content-Type": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
        access_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.request(
                method,
                f"{self._base_url}{path}",
                json=json,
                params=params,
                headers=self._headers(access_token),
            )

        if response.status_code >= 400:
            logger.warning(
                f"Auth request {method} {path} rejected: status={response.status_code} body={response.text[:200]}"
            )
            raise AuthenticationError(
                "Invalid email or password" if path == "/token" else "Authentication failed",
                {"status": response.status_code},
            )

        return response.json() if response.content else {}

    @staticmethod
    def _to_session(payload: Dict[str, Any]) -> AuthSession:
        return AuthSession(
            user_id=payload["user"]["id"],
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
        )

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        payload = await self._request(
            "POST", "/token", json={"email": email, "password": password}, params={"grant_type": "password"}
        )
        return self._to_session(payload)

    async def sign_up(self, email: str, password: str) -> AuthSession:
        payload = await self._request("POST", "/signup", json={"email": email, "password": password})
        return self._to_session(payload)

    async def get_user_id(self, access_token: str) -> UUID:
        """Validate a stored access token and return its user id"""
        payload = await self._request("GET", "/user", access_token=access_token)
        return UUID(payload["id"])

    async def sign_out(self, access_token: str) -> None:
        await self._request("POST", "/logout", access_token=access_token)
