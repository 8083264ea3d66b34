"""Credentials for authenticated requests.

GoogleAuth uses Application Default Credentials (gcloud auth
application-default login, GOOGLE_APPLICATION_CREDENTIALS, or the metadata
server) and refreshes the access token when it expires.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any, Protocol

import google.auth
import google.auth.exceptions
import google.auth.transport.requests

from list_foreach.config.constants import GOOGLE_SCOPES
from list_foreach.core.errors import ConfigurationError, TransportError
from list_foreach.observability.logger import get_logger

logger = get_logger(__name__)


class Auth(Protocol):
    """Source of authentication headers."""

    async def headers(self) -> dict[str, str]: ...


class GoogleAuth:
    """Bearer token from google-auth credentials."""

    def __init__(self, credentials: Any) -> None:
        self._credentials = credentials
        self._lock = asyncio.Lock()

    @classmethod
    def from_default(cls, scopes: Sequence[str] = GOOGLE_SCOPES) -> GoogleAuth:
        """Load Application Default Credentials.

        Raises:
            ConfigurationError: No default credentials are available
        """
        try:
            credentials, project = google.auth.default(scopes=list(scopes))
        except google.auth.exceptions.DefaultCredentialsError as e:
            raise ConfigurationError(f"Google credentials not found: {e}") from e
        logger.debug(f"Loaded default credentials (project={project})")
        return cls(credentials)

    async def headers(self) -> dict[str, str]:
        """Authorization header, refreshing the token if needed.

        Raises:
            TransportError: The token could not be refreshed
        """
        async with self._lock:
            if not self._credentials.valid:
                await self._refresh()
            return {"Authorization": f"Bearer {self._credentials.token}"}

    async def _refresh(self) -> None:
        request = google.auth.transport.requests.Request()
        try:
            # google-auth refresh is blocking
            await asyncio.to_thread(self._credentials.refresh, request)
        except google.auth.exceptions.GoogleAuthError as e:
            raise TransportError(f"Failed to refresh access token: {e}") from e
        logger.debug("Access token refreshed")
