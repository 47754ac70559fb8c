"""Timed playback of a training trajectory.

The controller is a small state machine::

    Idle --start--> Playing(0) --tick--> Playing(i + 1) ... --tick--> Idle
    any state --cancel--> Idle

Ticks are scheduled one at a time through an injected scheduler, so the
controller can run on an asyncio loop or on a virtual clock in tests.
"""

import asyncio
import heapq
import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Protocol, Sequence, Tuple
from regvis.config.model_config import PlaybackConfig
from regvis.models.state import ParameterSnapshot

logger = logging.getLogger(__name__)


class Handle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> Handle: ...


class AsyncioScheduler:
    """Schedules callbacks on an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


class ScheduledCall:
    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Virtual clock; callbacks only run when the clock is advanced."""

    def __init__(self):
        self.now = 0.0
        self._queue: List[Tuple[float, int, ScheduledCall]] = []
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        call = ScheduledCall(self.now + delay, callback)
        heapq.heappush(self._queue, (call.when, next(self._counter), call))
        return call

    @property
    def pending(self) -> int:
        return sum(1 for _, _, call in self._queue if not call.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running every callback that falls due."""
        target = self.now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            when, _, call = heapq.heappop(self._queue)
            self.now = max(self.now, when)
            if call.cancelled:
                continue
            call.callback()
            ran += 1
        self.now = target
        return ran

    def run_until_idle(self, max_calls: int = 100_000) -> int:
        """Run queued callbacks in time order until none are left."""
        ran = 0
        while self._queue:
            if ran >= max_calls:
                raise RuntimeError(f"Scheduler still busy after {max_calls} callbacks")
            when, _, call = heapq.heappop(self._queue)
            self.now = max(self.now, when)
            if call.cancelled:
                continue
            call.callback()
            ran += 1
        return ran


class PlaybackState(Enum):
    IDLE = "idle"
    PLAYING = "playing"


@dataclass
class _Run:
    trajectory: Sequence[ParameterSnapshot]
    interval: float
    on_step: Callable[[ParameterSnapshot], None]
    on_finish: Optional[Callable[[], None]]
    generation: int
    index: int = 0
    handle: Optional[Handle] = None


class PlaybackController:
    """Reveals trajectory snapshots one at a time at an even cadence.

    Only one playback is ever active: ``start`` cancels the previous one
    first, and ticks belonging to a cancelled run are ignored even if the
    scheduler still delivers them.
    """

    def __init__(self, scheduler: Scheduler, config: Optional[PlaybackConfig] = None):
        self.scheduler = scheduler
        self.config = config or PlaybackConfig()
        self._run: Optional[_Run] = None
        self._generation = 0

    @property
    def state(self) -> PlaybackState:
        return PlaybackState.IDLE if self._run is None else PlaybackState.PLAYING

    @property
    def is_playing(self) -> bool:
        return self._run is not None

    @property
    def index(self) -> Optional[int]:
        """Index of the next snapshot to reveal, None when idle."""
        return None if self._run is None else self._run.index

    def start(
        self,
        trajectory,
        on_step: Callable[[ParameterSnapshot], None],
        duration: Optional[float] = None,
        on_finish: Optional[Callable[[], None]] = None,
    ):
        duration = self.config.duration if duration is None else duration
        if duration < 0:
            raise ValueError(f"Playback duration must be non-negative, got {duration}")
        self.cancel()
        if len(trajectory) == 0:
            logger.debug("Empty trajectory, nothing to play")
            if on_finish is not None:
                on_finish()
            return

        self._generation += 1
        self._run = _Run(
            trajectory=trajectory,
            interval=duration / len(trajectory),
            on_step=on_step,
            on_finish=on_finish,
            generation=self._generation,
        )
        logger.debug(f"Playing {len(trajectory)} snapshots every {self._run.interval:.4g}s")
        self._schedule(self._run)

    def cancel(self):
        if self._run is None:
            return
        if self._run.handle is not None:
            self._run.handle.cancel()
        logger.debug(f"Playback cancelled at step {self._run.index}")
        self._run = None

    def _schedule(self, run: _Run):
        generation = run.generation
        run.handle = self.scheduler.call_later(run.interval, lambda: self._tick(generation))

    def _tick(self, generation: int):
        run = self._run
        if run is None or run.generation != generation:
            return
        run.handle = None
        snapshot = run.trajectory[run.index]
        run.index += 1
        finished = run.index >= len(run.trajectory)
        if finished:
            self._run = None

        try:
            run.on_step(snapshot)
        except Exception as e:
            logger.error(f"Playback step {run.index - 1} failed: {e}")
            if self._run is run:
                self._run = None
            raise

        if finished:
            if run.on_finish is not None:
                run.on_finish()
        elif self._run is run:
            self._schedule(run)
