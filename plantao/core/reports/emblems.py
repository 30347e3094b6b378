"""
Institutional emblem loading.

The two coats of arms are static assets served next to the UI. They are
fetched once per export session and handed to the renderers as an explicit
``Emblems`` value; a missing emblem is an empty byte string.
"""
from dataclasses import dataclass
from typing import Optional

import httpx

from plantao.utils import get_logger, EmblemLoadError

logger = get_logger(__name__)

STATE_EMBLEM_PATH = "/brasao-goias.png"
POLICE_EMBLEM_PATH = "/brasao-policia-civil.png"


@dataclass(frozen=True)
class Emblems:
    """Raw emblem images (PNG bytes); empty bytes when unavailable."""
    state: bytes = b""
    police: bytes = b""

    @property
    def complete(self) -> bool:
        return bool(self.state) and bool(self.police)

    @property
    def empty(self) -> bool:
        return not self.state and not self.police


class EmblemLoader:
    """
    Fetches the state and police emblems over HTTP.

    ``load()`` never raises: an asset that cannot be fetched is stored as
    empty bytes and the failure is logged. ``emblems`` returns the last
    loaded value (empty before the first load).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client
        self._emblems = Emblems()
        self._loaded = False

    @property
    def emblems(self) -> Emblems:
        return self._emblems

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def load(self) -> Emblems:
        """Fetch both emblems, replacing whatever was loaded before."""
        if self._client is not None:
            emblems = await self._fetch_both(self._client)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                emblems = await self._fetch_both(client)

        self._emblems = emblems
        self._loaded = True
        logger.info(
            f"Emblems loaded from {self.base_url or '(relative)'}: "
            f"state={len(emblems.state)}B police={len(emblems.police)}B"
        )
        return emblems

    async def _fetch_both(self, client: httpx.AsyncClient) -> Emblems:
        state = await self._fetch_or_empty(client, STATE_EMBLEM_PATH)
        police = await self._fetch_or_empty(client, POLICE_EMBLEM_PATH)
        return Emblems(state=state, police=police)

    async def _fetch_or_empty(self, client: httpx.AsyncClient, path: str) -> bytes:
        try:
            return await self._fetch(client, path)
        except EmblemLoadError as e:
            logger.warning(f"Emblem unavailable, continuing without it: {e.message}")
            return b""

    async def _fetch(self, client: httpx.AsyncClient, path: str) -> bytes:
        url = f"{self.base_url}{path}"
        try:
            response = await client.get(url, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise EmblemLoadError(f"Failed to fetch {url}: {e}", url=url) from e
        if not response.content:
            raise EmblemLoadError(f"Empty response for {url}", url=url)
        return response.content
