"""BehaviorClock: the periodic caller. Thin by design; all decisions are the selector's."""

from __future__ import annotations

import logging
import random
import threading
import time
from datetime import datetime
from typing import Callable

from pet_mind.behavior import Behavior
from pet_mind.config import (
    ACTIVITY_PROBABILITY,
    BASE_TICK_INTERVAL,
    DECAY_INTERVAL,
    DEFAULT_FREQUENCY_MINUTES,
    MAX_ACTIVITY_GAP,
    MAX_TICK_INTERVAL,
    MIN_ACTIVITY_GAP,
    MIN_TICK_INTERVAL,
)
from pet_mind.creature import Creature
from pet_mind.memory import MemoryStore
from pet_mind.scheduler import CancelHandle, Scheduler, ThreadScheduler
from pet_mind.selector import BehaviorSelector, SelectionContext

logger = logging.getLogger(__name__)

Observer = Callable[[Behavior], None]


class BehaviorClock:
    """Asks the selector for a behavior on every tick and applies it.

    Also owns the daily memory decay job. stop() cancels both; a tick that
    arrives afterwards does nothing.
    """

    def __init__(self, creature: Creature, selector: BehaviorSelector,
                 memory: MemoryStore | None = None,
                 scheduler: Scheduler | None = None,
                 frequency_minutes: int = DEFAULT_FREQUENCY_MINUTES,
                 decay_interval: float = DECAY_INTERVAL,
                 clock: Callable[[], datetime] = datetime.now,
                 monotonic: Callable[[], float] = time.monotonic,
                 rng: random.Random | None = None) -> None:
        self.creature = creature
        self.selector = selector
        self.memory = memory
        self._scheduler = scheduler or ThreadScheduler()
        self._frequency_minutes = frequency_minutes
        self._decay_interval = decay_interval
        self._clock = clock
        self._monotonic = monotonic
        self._rng = rng or random.Random()
        self._lock = threading.RLock()
        self._observers: list[Observer] = []
        self._tick_handle: CancelHandle | None = None
        self._decay_handle: CancelHandle | None = None
        self._running = False
        self._last_activity = monotonic()

    # ── lifecycle ──────────────────────────────────────────────────────

    @property
    def interval(self) -> float:
        """Seconds between ticks: fewer minutes and more energy tick faster."""
        settings = max(0.3, self._frequency_minutes / 10.0)
        freq = self.creature.personality.activity_frequency_multiplier()
        return min(MAX_TICK_INTERVAL, max(MIN_TICK_INTERVAL, BASE_TICK_INTERVAL * settings / freq))

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        with self._lock:
            if self._running:
                logger.warning("clock already running")
                return
            self._running = True
            self._tick_handle = self._scheduler.schedule_repeating(self.interval, self.tick)
            if self.memory is not None:
                self._decay_handle = self._scheduler.schedule_repeating(
                    self._decay_interval, self.memory.decay_sweep)
        logger.debug("clock started, interval %.1fs", self.interval)

    def stop(self) -> None:
        with self._lock:
            self._running = False
            handles = (self._tick_handle, self._decay_handle)
            self._tick_handle = None
            self._decay_handle = None
        # Outside the lock: cancel() waits for an in-flight tick to finish.
        for handle in handles:
            if handle is not None:
                handle.cancel()

    def update_frequency(self, minutes: int) -> None:
        """New settings value; restarts the tick job at the new cadence."""
        with self._lock:
            self._frequency_minutes = minutes
            old = self._tick_handle
            self._tick_handle = None
            if self._running:
                self._tick_handle = self._scheduler.schedule_repeating(self.interval, self.tick)
        if old is not None:
            old.cancel()

    # ── observers ──────────────────────────────────────────────────────

    def subscribe(self, callback: Observer) -> Callable[[], None]:
        """Register for every applied behavior. Returns the unsubscribe function."""
        with self._lock:
            self._observers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._observers:
                    self._observers.remove(callback)

        return unsubscribe

    # ── ticks ──────────────────────────────────────────────────────────

    def tick(self) -> Behavior | None:
        """One scheduled check. Returns the applied behavior, or None if skipped."""
        with self._lock:
            if not self._running:
                return None
            elapsed = self._monotonic() - self._last_activity
            gap = MIN_ACTIVITY_GAP if self.creature.allows_interrupt else MAX_ACTIVITY_GAP
            if elapsed < gap:
                return None
            probability = ACTIVITY_PROBABILITY * self.creature.personality.activity_frequency_multiplier()
            if self._rng.random() >= probability:
                return None
            return self.trigger()

    def trigger(self) -> Behavior:
        """Select and apply a behavior now, ignoring gaps and odds."""
        with self._lock:
            now = self._clock()
            behavior = self.selector.select_next(self.context(now))
            self._apply(behavior, now)
            return behavior

    def force_activity(self, behavior: Behavior) -> Behavior:
        with self._lock:
            self.selector.force_activity(behavior)
            self._apply(behavior, self._clock())
            return behavior

    def get_current_activity(self) -> Behavior | None:
        return self.selector.get_current_activity()

    def context(self, now: datetime | None = None) -> SelectionContext:
        now = now or self._clock()
        creature = self.creature
        age = creature.update_age(now)
        return SelectionContext(
            hour=now.hour,
            minute=now.minute,
            age_fraction=age,
            health=creature.health,
            happiness=creature.happiness,
            personality=creature.personality,
            allows_interrupt=creature.allows_interrupt,
        )

    def _apply(self, behavior: Behavior, now: datetime) -> None:
        self.creature.apply_behavior(behavior, now)
        self._last_activity = self._monotonic()
        for observer in list(self._observers):
            observer(behavior)
