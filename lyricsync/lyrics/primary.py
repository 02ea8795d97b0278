"""
Primary lyrics service client

The primary service answers `GET /lyrics/{track_id}` with an authenticated
request. An empty 200 body means the service has no lyrics for the track; a
JSON body is a structured lyrics document. Anything else is a failure and
raised as ProviderError for the resolution pipeline to log and absorb.
"""

import json
from typing import Optional
from urllib.parse import quote

from .models import ProviderLyrics, lyrics_from_dict
from ..config.auth import AccessTokenProvider
from ..config.settings import get_settings
from ..exceptions import LyricsParseError, ProviderError
from ..utils.http import AsyncHttpClient
from ..utils.logger import get_logger

logger = get_logger(__name__)


class PrimaryLyricsProvider:
    """
    Fetches structured lyrics for a streamed track

    Args:
        token_provider: Source of the bearer token sent with every request
        http: Shared HTTP client
        base_url: Service root, defaults to the configured lyrics service
    """

    def __init__(
        self,
        token_provider: AccessTokenProvider,
        http: AsyncHttpClient,
        base_url: Optional[str] = None
    ):
        self.token_provider = token_provider
        self.http = http
        self.base_url = (base_url or get_settings().services.lyrics_service_url).rstrip('/')

    async def _request(self, track_id: str) -> str:
        token = await self.token_provider.get_access_token()
        return await self.http.get_text(
            f"{self.base_url}/lyrics/{quote(track_id, safe='')}",
            headers={'Authorization': f"Bearer {token}"}
        )

    async def fetch(self, track_id: str) -> Optional[ProviderLyrics]:
        """
        Fetch lyrics for a track

        Returns:
            The lyrics document, or None when the service has no lyrics

        Raises:
            ProviderError: On transport failure, non-2xx status or an unusable body
        """
        body = await self._request(track_id)
        if not body:
            logger.debug(f"Primary service has no lyrics for {track_id}")
            return None

        try:
            document = json.loads(body)
        except json.JSONDecodeError as e:
            raise ProviderError(
                f"Invalid lyrics JSON for track {track_id}: {e}",
                details={'track_id': track_id},
                status=200
            ) from e

        try:
            return lyrics_from_dict(document)
        except LyricsParseError as e:
            raise ProviderError(
                f"Unusable lyrics document for track {track_id}: {e}",
                details={'track_id': track_id, **e.details},
                status=200
            ) from e
