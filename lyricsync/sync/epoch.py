"""
Track epoch guard

Every track change advances the epoch. Asynchronous work captures the epoch
before it starts and checks it again right before publishing anything. A
branch whose epoch is no longer current returns quietly: its result is
dropped, never applied and never retried. Work is not cancelled; it simply
loses the right to publish.
"""

import itertools
from dataclasses import dataclass


@dataclass(frozen=True)
class TrackEpoch:
    """Opaque generation token, only meaningful to the guard that issued it"""
    generation: int


class TrackEpochGuard:
    """Issues and validates TrackEpoch tokens"""

    def __init__(self):
        self._counter = itertools.count(1)
        self._current = TrackEpoch(0)

    def current(self) -> TrackEpoch:
        return self._current

    def advance(self) -> TrackEpoch:
        """Start a new generation, invalidating every previously issued epoch"""
        self._current = TrackEpoch(next(self._counter))
        return self._current

    def is_current(self, epoch: TrackEpoch) -> bool:
        return epoch == self._current
