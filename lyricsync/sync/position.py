"""
Authoritative playback position sources

The clock synchronizer never trusts its own timestamp for long; it keeps
re-anchoring against a PositionSource. Two kinds of playback exist:

- Local playback: the host player can be asked for its position directly
- Remote playback (another device is playing): only the last state update is
  known, as "position P was reported at wall-clock time T". Refreshing that
  state is a request to the host, and the answer arrives later.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol


@dataclass(frozen=True)
class RemotePlaybackState:
    """
    Last known state of remote playback

    Attributes:
        position_ms: Playback position when the state was reported
        updated_at_ms: Wall-clock time of the report, milliseconds since the epoch
    """
    position_ms: float
    updated_at_ms: float


class PositionSource(Protocol):
    def is_local_playback(self) -> bool:
        ...

    async def get_local_position(self) -> float:
        """Current position of local playback in milliseconds"""
        ...

    async def refresh_remote_state(self) -> None:
        """Ask the host to push a fresh remote state"""
        ...

    def get_remote_state(self) -> Optional[RemotePlaybackState]:
        ...


class ManualPositionSource:
    """
    Local position source driven by explicit play, pause and seek calls

    Used when there is no host player, e.g. when previewing lyrics from the
    command line. While playing the position advances with the monotonic clock.
    """

    def __init__(self, position_ms: float = 0.0, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._position_ms = float(position_ms)
        self._started_at: Optional[float] = None

    @property
    def is_playing(self) -> bool:
        return self._started_at is not None

    def _current(self) -> float:
        if self._started_at is None:
            return self._position_ms
        return self._position_ms + (self._clock() - self._started_at) * 1000

    def play(self) -> None:
        if self._started_at is None:
            self._started_at = self._clock()

    def pause(self) -> None:
        self._position_ms = self._current()
        self._started_at = None

    def seek(self, position_ms: float) -> None:
        self._position_ms = float(position_ms)
        if self._started_at is not None:
            self._started_at = self._clock()

    def is_local_playback(self) -> bool:
        return True

    async def get_local_position(self) -> float:
        return self._current()

    async def refresh_remote_state(self) -> None:
        return None

    def get_remote_state(self) -> Optional[RemotePlaybackState]:
        return None
