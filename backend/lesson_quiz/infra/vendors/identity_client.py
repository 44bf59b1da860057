"""Identity API client: resolves a bearer token to the learner id."""
import logging
from typing import Optional

import httpx

from lesson_quiz.domain.common.store import StoreError
from lesson_quiz.domain.common.types import clean_str
from lesson_quiz.settings import settings

logger = logging.getLogger(__name__)


class IdentityClient:
    """Client for the auth service's current-user endpoint."""

    def __init__(
        self,
        auth_url: str = None,
        api_key: str = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.auth_url = (auth_url or settings.store_auth_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.store_anon_key
        self.timeout = timeout or settings.store_timeout_seconds
        self._transport = transport

    async def resolve_user_id(self, access_token: str) -> Optional[str]:
        """
        Look up the user behind an access token.

        Returns:
            The user id, or None when the token is rejected.
        """
        url = f"{self.auth_url}/user"
        headers = {"apikey": self.api_key, "Authorization": f"Bearer {access_token}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, headers=headers)
        except httpx.ConnectError as e:
            logger.error("Identity API unreachable at %s (%s)", url, e)
            raise StoreError(f"Identity API unreachable: {e}") from e
        except httpx.HTTPError as e:
            logger.error("Identity lookup failed: %s", e)
            raise StoreError(f"Identity lookup failed: {e}") from e

        if response.status_code in (401, 403):
            return None
        if response.status_code >= 400:
            logger.error("Identity API returned %s: %s", response.status_code, response.text[:200])
            raise StoreError("Identity lookup failed", status_code=response.status_code)
        return clean_str(response.json().get("id"))
