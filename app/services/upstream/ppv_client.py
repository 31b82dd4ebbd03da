"""
PPV API client.

Two endpoints are used per sync cycle:
- GET <base>/api/streams       -> {"streams": [{"id", "category", "streams": [{"id"}, ...]}]}
- GET <base>/api/streams/<id>  -> {"data": {"id", "name", "poster", "m3u8", "tag"}}

Responses are validated into typed records here so nothing downstream
handles raw JSON. Listings and details are never cached: every cycle
fetches fresh data.
"""
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from app.core.exceptions import NotFoundError, UpstreamError
from app.core.logging import get_logger
from app.core import metrics
from app.models.catalog import RawStreamDetail, SportListing, UpstreamId

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://ppv.land"


class PPVClient:
    """
    Async client for the PPV streams API.

    A single httpx.AsyncClient is shared by all requests of the process;
    call close() on shutdown.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 15.0,
        user_agent: str = "ppv-catalog/1.0",
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            base_url: Upstream base URL (without the /api suffix)
            timeout: Per-request timeout in seconds
            user_agent: User-Agent header sent upstream
            client: Pre-built httpx client (tests pass one with a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
                headers={"User-Agent": self.user_agent, "Accept": "application/json"},
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _get_json(self, url: str, endpoint: str) -> Any:
        client = await self._get_client()
        try:
            response = await client.get(url)
        except httpx.HTTPError as e:
            metrics.record_upstream_request(endpoint, success=False)
            raise UpstreamError(f"Request to {url} failed: {e}", url=url) from e

        if not response.is_success:
            metrics.record_upstream_request(endpoint, success=False)
            raise UpstreamError(
                f"Upstream returned HTTP {response.status_code} for {url}",
                url=url,
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            metrics.record_upstream_request(endpoint, success=False)
            raise UpstreamError(f"Invalid JSON from {url}", url=url, status_code=response.status_code) from e

        metrics.record_upstream_request(endpoint, success=True)
        return payload

    async def fetch_listing(self, sport_id: UpstreamId) -> SportListing:
        """
        Fetch the stream references of one sport/category.

        Args:
            sport_id: Upstream category id (37 and "37" are equivalent)

        Returns:
            SportListing for the category; an empty listing if the upstream
            response has no category with this id

        Raises:
            UpstreamError: HTTP failure or malformed listing body
        """
        url = f"{self.base_url}/api/streams"
        payload = await self._get_json(url, endpoint="listing")

        try:
            listing = find_listing(payload, sport_id, url=url)
        except NotFoundError as e:
            logger.warning(f"{e}; treating as empty listing")
            return SportListing.empty(sport_id)

        logger.info(f"Listing for category {sport_id}: {len(listing.streams)} streams")
        return listing

    async def fetch_detail(self, stream_id: UpstreamId) -> RawStreamDetail:
        """
        Fetch the detail record of one stream.

        Raises:
            UpstreamError: HTTP failure, malformed body, or a `data` object
                missing the playable URL
        """
        url = f"{self.base_url}/api/streams/{stream_id}"
        payload = await self._get_json(url, endpoint="detail")

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise UpstreamError(f"Response from {url} has no `data` object", url=url)

        try:
            return RawStreamDetail.model_validate(data)
        except ValidationError as e:
            raise UpstreamError(f"Malformed stream detail from {url}: {e.error_count()} errors", url=url) from e


def find_listing(payload: Any, sport_id: UpstreamId, url: Optional[str] = None) -> SportListing:
    """
    Locate a category inside a GET /api/streams body.

    Raises:
        UpstreamError: body is not {"streams": [...]} or the entry is malformed
        NotFoundError: no entry has the requested id
    """
    categories = payload.get("streams") if isinstance(payload, dict) else None
    if not isinstance(categories, list):
        raise UpstreamError("Listing response has no `streams` array", url=url)

    wanted = str(sport_id)
    for category in categories:
        if isinstance(category, dict) and str(category.get("id")) == wanted:
            try:
                return SportListing.model_validate(category)
            except ValidationError as e:
                raise UpstreamError(f"Malformed listing entry for category {sport_id}", url=url) from e

    raise NotFoundError(f"Category {sport_id} not present in upstream listing")
