"""Creature: vitals and state. Applies what the selector picks."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from enum import Enum

from pet_mind.behavior import Behavior, BehaviorKind, SleepDepth, SocialReaction
from pet_mind.memory import MemoryStore
from pet_mind.models import PersonalityTraits, clamp
from pet_mind.personality import PersonalityModel

logger = logging.getLogger(__name__)


class CreatureState(str, Enum):
    IDLE = "idle"
    WALKING = "walking"
    RUNNING = "running"
    EATING = "eating"
    PLAYING = "playing"
    DRAGGING = "dragging"
    DROPPED = "dropped"
    DANCING = "dancing"
    WATCHING = "watching"
    SITTING = "sitting"
    SLEEPING = "sleeping"


# States that should not be cut short by routine ticks.
ABSORBING_STATES = frozenset({CreatureState.SLEEPING, CreatureState.DANCING, CreatureState.WATCHING})

ENJOYMENT: dict[CreatureState, float] = {
    CreatureState.PLAYING: 0.9,
    CreatureState.DANCING: 0.9,
    CreatureState.EATING: 0.8,
    CreatureState.SLEEPING: 0.7,
    CreatureState.WATCHING: 0.6,
}
DEFAULT_ENJOYMENT = 0.5

# (health, happiness) nudges applied on entering a state
STATE_EFFECTS: dict[CreatureState, tuple[float, float]] = {
    CreatureState.RUNNING: (0.0, 0.04),
    CreatureState.EATING: (0.04, 0.06),
    CreatureState.PLAYING: (0.0, 0.08),
    CreatureState.DANCING: (0.0, 0.1),
    CreatureState.WATCHING: (0.0, 0.05),
    CreatureState.SITTING: (0.02, 0.0),
    CreatureState.SLEEPING: (0.05, 0.0),
}

NAP_HEALTH = {SleepDepth.LIGHT: 0.03, SleepDepth.MEDIUM: 0.05, SleepDepth.DEEP: 0.08}


class Creature:
    """The vitals sink. Health, happiness and age all live in [0, 1].

    age is the position within the current day (0.0 at midnight).
    """

    def __init__(self, traits: PersonalityTraits | None = None,
                 memory: MemoryStore | None = None,
                 now: datetime | None = None) -> None:
        self._lock = threading.RLock()
        self.personality = PersonalityModel(traits)
        self.memory = memory
        self.state = CreatureState.IDLE
        self.health = 1.0
        self.happiness = 1.0
        self.age = 0.0
        self._day = None
        self.update_age(now)

    # ── personality ────────────────────────────────────────────────────

    @property
    def traits(self) -> PersonalityTraits:
        return self.personality.traits

    def set_personality(self, traits: PersonalityTraits) -> None:
        """Whole-value swap. Readers see the old model or the new one, never a mix."""
        self.personality = PersonalityModel(traits)

    # ── vitals ─────────────────────────────────────────────────────────

    def adjust_health(self, delta: float) -> None:
        with self._lock:
            self.health = clamp(self.health + delta)

    def adjust_happiness(self, delta: float) -> None:
        with self._lock:
            self.happiness = clamp(self.happiness + delta)

    @property
    def allows_interrupt(self) -> bool:
        return self.state not in ABSORBING_STATES

    # ── state ──────────────────────────────────────────────────────────

    def set_state(self, new_state: CreatureState | str,
                  memory_key: str | None = None,
                  now: datetime | None = None) -> bool:
        """Move to new_state if personality allows. Returns whether it changed.

        Each accepted change is remembered as a time pattern and an activity
        preference, keyed by memory_key (defaults to the state's name).
        """
        new_state = CreatureState(new_state)
        with self._lock:
            if new_state == self.state:
                return False
            if not self.personality.should_transition(self.state, new_state):
                logger.debug("transition %s -> %s resisted", self.state.value, new_state.value)
                return False

            if self.memory is not None:
                now = now or datetime.now()
                key = memory_key or new_state.value
                self.memory.record_time_pattern(now.hour, now.minute, key)
                self.memory.record_activity_preference(
                    key, ENJOYMENT.get(new_state, DEFAULT_ENJOYMENT))

            self.state = new_state
            health, happiness = STATE_EFFECTS.get(new_state, (0.0, 0.0))
            self.health = clamp(self.health + health)
            self.happiness = clamp(self.happiness + happiness)
            return True

    def apply_behavior(self, behavior: Behavior, now: datetime | None = None) -> None:
        """Side effects of executing a selected behavior."""
        kind = behavior.kind
        key = behavior.memory_key

        if kind in (BehaviorKind.EXPLORING, BehaviorKind.WANDERING):
            self.set_state(CreatureState.WALKING, key, now)
        elif kind == BehaviorKind.PLAYING:
            self.set_state(CreatureState.PLAYING, key, now)
            self.adjust_happiness(0.1)
        elif kind == BehaviorKind.RESTING:
            self.set_state(CreatureState.SITTING, key, now)
            self.adjust_health(0.05)
        elif kind == BehaviorKind.NAPPING:
            self.set_state(CreatureState.SLEEPING, key, now)
            self.adjust_health(NAP_HEALTH[behavior.detail])
        elif kind == BehaviorKind.CURIOUS:
            self.set_state(CreatureState.WATCHING, key, now)
            self.adjust_happiness(0.03)
        elif kind == BehaviorKind.SOCIAL:
            if behavior.detail in (SocialReaction.FRIENDLY, SocialReaction.EXCITED):
                self.set_state(CreatureState.PLAYING, key, now)
                self.adjust_happiness(0.12)
            elif behavior.detail == SocialReaction.SHY:
                self.set_state(CreatureState.SITTING, key, now)
            else:
                self.set_state(CreatureState.IDLE, key, now)
        elif kind == BehaviorKind.EXCITED:
            self.set_state(CreatureState.PLAYING, key, now)
            self.adjust_happiness(0.15)
        elif kind == BehaviorKind.BORED:
            self.set_state(CreatureState.IDLE, key, now)
            self.adjust_happiness(-0.02)
        else:
            # observing, startled, confused
            self.set_state(CreatureState.IDLE, key, now)

    # ── day cycle ──────────────────────────────────────────────────────

    def update_age(self, now: datetime | None = None) -> float:
        """Recompute age from wall time; rolls over into new_day() at midnight."""
        now = now or datetime.now()
        with self._lock:
            if self._day is not None and now.date() != self._day:
                self.new_day(now)
            self._day = now.date()
            seconds = now.hour * 3600 + now.minute * 60 + now.second
            self.age = clamp(seconds / 86400.0)
            return self.age

    def new_day(self, now: datetime | None = None) -> None:
        """Reset the cycle. Vitals fade a little, but never below 0.5."""
        now = now or datetime.now()
        with self._lock:
            self.age = 0.0
            self._day = now.date()
            if self.memory is not None:
                self.memory.record_health_pattern(now.hour, self.health, self.happiness)
            self.health = max(0.5, self.health * 0.95)
            self.happiness = max(0.5, self.happiness * 0.95)
            if self.state != CreatureState.SLEEPING:
                self.state = CreatureState.IDLE

    def __repr__(self) -> str:
        return (f"Creature(state={self.state.value}, health={self.health:.2f}, "
                f"happiness={self.happiness:.2f}, age={self.age:.2f})")
