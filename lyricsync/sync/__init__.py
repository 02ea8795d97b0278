"""
Synchronization package: stale-result protection and the playback clock

1. Epoch Module (epoch.py):
   - TrackEpochGuard: one token per song change; async work captures it and
     re-checks before publishing

2. Clock Module (clock.py):
   - PlaybackClockSynchronizer: frame loop and resync loop keeping the
     displayed timestamp aligned with the authoritative position

3. Position Module (position.py):
   - PositionSource protocol for local and remote playback
   - ManualPositionSource for playback without a host player
"""

from .epoch import TrackEpoch, TrackEpochGuard
from .position import PositionSource, RemotePlaybackState, ManualPositionSource
from .clock import PlaybackClockSynchronizer, SyncedPosition

__all__ = [
    'TrackEpoch',
    'TrackEpochGuard',
    'PositionSource',
    'RemotePlaybackState',
    'ManualPositionSource',
    'PlaybackClockSynchronizer',
    'SyncedPosition',
]
