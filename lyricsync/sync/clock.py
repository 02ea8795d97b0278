"""
Playback clock synchronization

Keeps a smoothly advancing playback timestamp that stays aligned with the
authoritative playback position.

1. Frame Loop:
   - Runs every frame_interval seconds and calls step()
   - While playing the timestamp advances by the elapsed frame time and
     time_stepped(delta, False) fires
   - When a position snapshot arrived since the previous frame and it
     disagrees by more than the tolerance, the timestamp snaps to it and
     time_stepped(0.0, True) fires

2. Resync Loop:
   - Runs only while playing and takes a position snapshot on every pass
   - Local playback is sampled every steady_resync_interval
   - Remote playback nudges a state refresh on the backoff schedule
     (resync_timings) after each track change or resume, then settles to
     steady_resync_interval
   - Pausing cancels the loop; a single settle snapshot is taken instead

Nothing fires while there is no current song.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Optional, Set

from .position import PositionSource
from ..config.settings import PlaybackConfig, get_settings
from ..state import EngineEvents, EngineState
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SyncedPosition:
    """
    An authoritative position snapshot

    Attributes:
        captured_at_monotonic: Monotonic time the snapshot was taken
        position_millis: Position at capture time
        anchored_to_wall_clock: Whether time elapsed since capture should be
            added, i.e. playback was running when captured
    """
    captured_at_monotonic: float
    position_millis: float
    anchored_to_wall_clock: bool

    def position_at(self, now: float) -> float:
        """Position in seconds at monotonic time `now`"""
        position = self.position_millis / 1000
        if self.anchored_to_wall_clock:
            position += now - self.captured_at_monotonic
        return position


class PlaybackClockSynchronizer:
    """
    Drives state.clock and the time_stepped / is_playing_changed events

    Args:
        state: Engine state; reads state.song and owns state.clock
        events: Engine events
        source: Authoritative position source
        config: Playback tuning, defaults to the configured values
        monotonic: Monotonic clock in seconds, injectable for tests
        wall_clock: Wall clock in seconds since the epoch, injectable for tests
    """

    def __init__(
        self,
        state: EngineState,
        events: EngineEvents,
        source: PositionSource,
        config: Optional[PlaybackConfig] = None,
        monotonic: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time
    ):
        self.state = state
        self.events = events
        self.source = source
        self.config = config or get_settings().playback
        self._monotonic = monotonic
        self._wall_clock = wall_clock

        self._synced_position: Optional[SyncedPosition] = None
        self._remaining_resyncs = 0

        self._frame_task: Optional[asyncio.Task] = None
        self._resync_task: Optional[asyncio.Task] = None
        self._single_syncs: Set[asyncio.Task] = set()

    @property
    def remaining_resyncs(self) -> int:
        return self._remaining_resyncs

    @property
    def pending_position(self) -> Optional[SyncedPosition]:
        return self._synced_position

    # Frame handling

    def step(self, now: float) -> None:
        """Advance the clock to monotonic time `now`"""
        clock = self.state.clock
        delta_time = 0.0 if clock.last_frame_at is None else max(0.0, now - clock.last_frame_at)
        clock.last_frame_at = now

        synced, self._synced_position = self._synced_position, None
        if self.state.song is None:
            return

        if clock.is_playing:
            if synced is None or abs(synced.position_at(now) - clock.current_timestamp) < self.config.playing_tolerance:
                clock.current_timestamp += delta_time
                self.events.time_stepped.fire(delta_time, False)
            else:
                clock.current_timestamp = synced.position_at(now)
                self.events.time_stepped.fire(0.0, True)
        elif synced is not None:
            position = synced.position_at(now)
            if abs(position - clock.current_timestamp) > self.config.paused_tolerance:
                clock.current_timestamp = position
                self.events.time_stepped.fire(0.0, True)

    async def _frame_loop(self) -> None:
        while True:
            self.step(self._monotonic())
            await asyncio.sleep(self.config.frame_interval)

    # Position snapshots

    async def request_position_sync(self) -> float:
        """
        Take one authoritative position snapshot

        Returns:
            Seconds to wait before the next snapshot
        """
        is_playing = self.state.clock.is_playing

        if self.source.is_local_playback():
            position = await self.source.get_local_position()
            self._synced_position = SyncedPosition(self._monotonic(), position, is_playing)
            return self.config.steady_resync_interval

        timings = self.config.resync_timings
        if self._remaining_resyncs > 0:
            delay = timings[len(timings) - self._remaining_resyncs]
            self._remaining_resyncs -= 1
            await self.source.refresh_remote_state()
        else:
            delay = self.config.steady_resync_interval

        remote = self.source.get_remote_state()
        if remote is None:
            return delay

        if is_playing:
            position = remote.position_ms + (self._wall_clock() * 1000 - remote.updated_at_ms)
        else:
            position = remote.position_ms
        self._synced_position = SyncedPosition(self._monotonic(), position, is_playing)
        return delay

    async def _sync_once(self) -> float:
        try:
            return await self.request_position_sync()
        except Exception as e:
            # Position sources belong to the host; a failed read only delays the next snapshot
            logger.warning(f"Position sync failed: {e}")
            return self.config.steady_resync_interval

    async def _resync_loop(self) -> None:
        while True:
            delay = await self._sync_once()
            await asyncio.sleep(delay)

    def _restart_resync_loop(self) -> None:
        self._cancel_resync_loop()
        self._resync_task = asyncio.ensure_future(self._resync_loop())

    def _cancel_resync_loop(self) -> None:
        if self._resync_task is not None:
            self._resync_task.cancel()
            self._resync_task = None

    def _schedule_single_sync(self) -> None:
        task = asyncio.ensure_future(self._sync_once())
        self._single_syncs.add(task)
        task.add_done_callback(self._single_syncs.discard)

    # Host notifications

    def on_song_changed(self) -> None:
        """Reset the clock for a new song"""
        self.state.clock.current_timestamp = 0.0
        self._synced_position = None
        self._remaining_resyncs = len(self.config.resync_timings)

        if self._frame_task is None:
            return
        if self.state.clock.is_playing:
            self._restart_resync_loop()
        else:
            self._schedule_single_sync()

    def on_play_state_changed(self, is_playing: bool) -> None:
        clock = self.state.clock
        if clock.is_playing == is_playing:
            return

        clock.is_playing = is_playing
        self._remaining_resyncs = len(self.config.resync_timings) if is_playing else 0
        self.events.is_playing_changed.fire()

        if self._frame_task is None:
            return
        if is_playing:
            self._restart_resync_loop()
        else:
            self._cancel_resync_loop()
            self._schedule_single_sync()

    def notify_seeked(self) -> None:
        """Take a snapshot right away so seeks show up even while paused"""
        if self._frame_task is not None:
            self._schedule_single_sync()

    # Lifecycle

    @property
    def is_running(self) -> bool:
        return self._frame_task is not None

    def start(self) -> None:
        if self._frame_task is not None:
            return

        self.state.clock.last_frame_at = None
        self._frame_task = asyncio.ensure_future(self._frame_loop())
        if self.state.clock.is_playing:
            self._restart_resync_loop()
        else:
            self._schedule_single_sync()

    async def stop(self) -> None:
        tasks = [task for task in (self._frame_task, self._resync_task) if task is not None]
        tasks.extend(self._single_syncs)
        self._frame_task = None
        self._resync_task = None
        self._single_syncs.clear()

        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
