# cinesync/services/tmdb_client.py

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from cinesync.core.config import Settings
from cinesync.core.errors import BadGateway, GatewayTimeout, Internal, UpstreamError
from cinesync.core.logging import get_logger

logger = get_logger(__name__)

PROXY_PATH = "/api/tmdb"

ENDPOINTS = {
    "trending": f"{PROXY_PATH}/trending/{{media_type}}/{{time_window}}",
    "movie": f"{PROXY_PATH}/movie/{{movie_id}}",
    "tv": f"{PROXY_PATH}/tv/{{tv_id}}",
    "search": f"{PROXY_PATH}/search/{{search_type}}",
    "popular": {
        "movies": f"{PROXY_PATH}/movie/popular",
        "tv": f"{PROXY_PATH}/tv/popular",
    },
}


class TMDBClient:
    """
    Forwards read-only requests to TMDB, injecting the server-side API key.

    The key never leaves the server; every call has a fixed timeout
    (TMDB_TIMEOUT, 10 seconds by default).
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = settings.TMDB_API_KEY
        self.base_url = settings.TMDB_BASE_URL
        self.timeout = settings.TMDB_TIMEOUT
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def status(self) -> Dict[str, Any]:
        return {
            "configured": self.configured,
            "baseUrl": self.base_url,
            "proxyPath": PROXY_PATH,
            "endpoints": ENDPOINTS,
            "status": "ready" if self.configured else "api_key_missing",
        }

    async def get(self, path: str, params: Optional[Sequence[Tuple[str, str]]] = None) -> Dict[str, Any]:
        """
        GET ``{base_url}/{path}`` and return the decoded JSON body.

        ``params`` are (name, value) pairs so repeated names are forwarded
        as sent.

        Raises:
            Internal: no API key configured
            UpstreamError: TMDB answered with an error status
            GatewayTimeout: TMDB did not answer in time
            BadGateway: transport failure or a non-JSON answer
        """
        if not self.configured:
            logger.error("TMDb API key missing. Checked: TMDB_API_KEY, NEXT_PUBLIC_TMDB_API_KEY")
            raise Internal("TMDb API key not configured")

        query: List[Tuple[str, str]] = [(k, v) for k, v in (params or ()) if k != "api_key"]
        query.append(("api_key", self.api_key))
        url = f"{self.base_url}/{path.strip('/')}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url, params=query)
        except httpx.TimeoutException:
            logger.error("TMDb request timed out: %s", path)
            raise GatewayTimeout("TMDb request timed out")
        except httpx.HTTPError as e:
            logger.error("TMDb proxy error: %s", e)
            raise BadGateway("Failed to fetch from TMDb")

        if response.status_code != 200:
            raise UpstreamError(response.status_code, self._error_message(response))

        try:
            return response.json()
        except ValueError:
            raise BadGateway("Invalid response from TMDb")

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return "TMDb API error"
        if isinstance(body, dict) and body.get("status_message"):
            return body["status_message"]
        return "TMDb API error"
