"""
Track information client

Fetches the internal "track information" document for a streamed track
from the metadata endpoint (`{metadata_host}/track/{internal_id}`).

- Documents are cached per track id in an ExpireStore (two weeks, schema 2)
- Identical requests running at the same time share one HTTP call through
  an InFlightRequestRegistry keyed by (metadata host, request path)
- Failures are raised as ProviderError; the engine decides what to publish
"""

from typing import Any, Dict, Optional

from .models import StreamedSong, StreamedSongDetails
from ..cache.store import Expiration, ExpireStore
from ..config.auth import AccessTokenProvider
from ..config.settings import get_settings
from ..exceptions import ProviderError
from ..utils.coalesce import InFlightRequestRegistry
from ..utils.http import AsyncHttpClient
from ..utils.logger import get_logger, log_performance

logger = get_logger(__name__)


class TrackInformationClient:
    """
    Cached, coalesced access to track information documents

    Args:
        token_provider: Source of the bearer token
        http: Shared HTTP client
        store: Cache for track information documents
        registry: In-flight request registry, shareable between clients
        metadata_host: Metadata endpoint root, defaults to the configured host
    """

    def __init__(
        self,
        token_provider: AccessTokenProvider,
        http: AsyncHttpClient,
        store: ExpireStore,
        registry: Optional[InFlightRequestRegistry] = None,
        metadata_host: Optional[str] = None
    ):
        self.token_provider = token_provider
        self.http = http
        self.store = store
        self.registry = registry or InFlightRequestRegistry()
        self.metadata_host = (metadata_host or get_settings().spotify.metadata_host).rstrip('/')

    async def _request(self, internal_id: str) -> Any:
        token = await self.token_provider.get_access_token()
        return await self.http.get_json(
            f"{self.metadata_host}/track/{internal_id}",
            headers={'Authorization': f"Bearer {token}", 'Accept': 'application/json'}
        )

    @log_performance
    async def _fetch_and_store(self, song: StreamedSong) -> Dict[str, Any]:
        information = await self._request(song.internal_id)
        if not isinstance(information, dict):
            raise ProviderError(
                f"Failed to load track ({song.id}) information",
                details={'track_id': song.id, 'internal_id': song.internal_id}
            )
        await self.store.set_item(song.id, information)
        return information

    async def get_track_information(self, song: StreamedSong, force_refresh: bool = False) -> Dict[str, Any]:
        """
        Get the track information document for a streamed song

        Raises:
            ProviderError: If the document is not cached and cannot be fetched
        """
        if not force_refresh:
            cached = await self.store.get_item(song.id)
            if cached:
                return cached

        return await self.registry.run(
            self.metadata_host,
            f"/track/{song.internal_id}",
            lambda: self._fetch_and_store(song)
        )

    async def get_song_details(self, song: StreamedSong) -> StreamedSongDetails:
        """
        Get cleaned details for a streamed song

        Raises:
            ProviderError: If the information cannot be loaded or is malformed
        """
        information = await self.get_track_information(song)
        try:
            return StreamedSongDetails.from_track_information(information)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            await self.store.remove_item(song.id)
            raise ProviderError(
                f"Malformed track information for {song.id}: {e}",
                details={'track_id': song.id}
            ) from e


def create_track_information_store(backend) -> ExpireStore:
    """ExpireStore configured for track information documents"""
    settings = get_settings()
    return ExpireStore(
        namespace="Player_TrackInformation",
        version=settings.cache.track_information_version,
        expiration=Expiration.parse(settings.cache.track_information_expiration),
        backend=backend
    )
