"""BehaviorSelector: personality + context + memories -> what to do next.

The cascade, in order:
    1. one candidate per variant, weighted by the base type's preference
    2. personality-driven variant enhancement
    3. emotional overlay from vitals
    4. memory modifiers (time patterns, enjoyment, health patterns)
    5. time of day
    6. vitals (health wins over happiness)
    7. position in the day cycle
    8. weighted draw over the stable candidate order
    9. optional chain of follow-on behaviors
"""

from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from pet_mind.behavior import (
    BaseType,
    Behavior,
    BehaviorKind,
    CuriosityTarget,
    Direction,
    SleepDepth,
    SocialReaction,
    ToyType,
    all_candidates,
)
from pet_mind.config import DEFAULT_TUNING, SelectorTuning
from pet_mind.memory import MemoryStore
from pet_mind.models import Trace
from pet_mind.personality import PersonalityModel

logger = logging.getLogger(__name__)

Weighted = list[tuple[Behavior, float]]

_ACTIVE = (BaseType.EXPLORING, BaseType.WANDERING)


@dataclass(frozen=True)
class SelectionContext:
    """Everything the selector looks at for one decision."""

    hour: int
    minute: int
    age_fraction: float          # 0.0 at cycle start, 1.0 at cycle end
    health: float
    happiness: float
    personality: PersonalityModel
    allows_interrupt: bool = True


def weighted_pick(weights: Sequence[float], r: float) -> int:
    """Index of the first candidate whose cumulative weight reaches r.

    Walks in the given order, so ties go to the earlier candidate and
    r == total lands on the last one.
    """
    cumulative = np.cumsum(np.clip(np.asarray(weights, dtype=float), 0.0, None))
    idx = int(np.searchsorted(cumulative, r, side="left"))
    return min(idx, len(cumulative) - 1)


class BehaviorSelector:
    """Decides what the pet does next. Never raises, never returns nothing."""

    def __init__(self, memory: MemoryStore | None = None,
                 tuning: SelectorTuning = DEFAULT_TUNING,
                 rng: random.Random | None = None) -> None:
        self._memory = memory
        self._tuning = tuning
        self._rng = rng or random.Random()
        self._lock = threading.RLock()
        self._current: Behavior | None = None
        self._chain: list[Behavior] = []
        self._chain_index = 0

    # ── public API ─────────────────────────────────────────────────────

    def select_next(self, context: SelectionContext) -> Behavior:
        t0 = time.time()
        with self._lock:
            if self._chain_index < len(self._chain):
                behavior = self._chain[self._chain_index]
                self._chain_index += 1
                self._current = behavior
                self._trace(context, behavior, "chain", t0)
                return behavior

            self._chain = []
            self._chain_index = 0

            behavior = self._draw(self.candidates(context))
            self._current = behavior

            if self._should_start_chain(behavior, context.personality):
                self._chain = self._generate_chain(behavior, context)
                self._chain_index = 1  # the first link is being returned now
                logger.debug("chain started: %s", " -> ".join(map(str, self._chain)))

        self._trace(context, behavior, "fresh", t0)
        return behavior

    def force_activity(self, behavior: Behavior) -> Behavior:
        """Bypass weighting. Any pending chain is dropped."""
        with self._lock:
            self._chain = []
            self._chain_index = 0
            self._current = behavior
        return behavior

    def get_current_activity(self) -> Behavior | None:
        return self._current

    @property
    def current_activity(self) -> Behavior | None:
        return self._current

    @property
    def chain(self) -> tuple[Behavior, ...]:
        return tuple(self._chain)

    @property
    def chain_remaining(self) -> int:
        with self._lock:
            return max(0, len(self._chain) - self._chain_index)

    # ── weighting ──────────────────────────────────────────────────────

    def candidates(self, context: SelectionContext) -> Weighted:
        """Final (behavior, weight) list in stable order, before the draw."""
        engine = context.personality
        weighted = [(b, engine.preference_for_activity(b.base_type))
                    for b in all_candidates()]
        weighted = self._enhance(weighted, context)
        weighted = self._apply_memory(weighted, context)
        weighted = self._apply_time_of_day(weighted, context)
        weighted = self._apply_vitals(weighted, context)
        weighted = self._apply_age(weighted, context)
        return weighted

    def _enhance(self, weighted: Weighted, ctx: SelectionContext) -> Weighted:
        t = self._tuning
        engine = ctx.personality
        hour = ctx.hour
        night = hour >= 22 or hour < 6
        sleep = engine.sleep_probability(hour / 24.0)

        enhanced: Weighted = []
        for behavior, weight in weighted:
            plain = behavior.detail is None
            kind = behavior.kind

            if kind == BehaviorKind.EXPLORING and plain \
                    and engine.curiosity_probability() > t.directional_curiosity:
                direction = self._rng.choice(list(Direction))
                enhanced.append((Behavior.exploring(direction), weight * t.directional_boost))

            elif kind == BehaviorKind.PLAYING and plain \
                    and engine.playfulness_probability() > t.toy_playfulness:
                toy = self._rng.choice(list(ToyType))
                enhanced.append((Behavior.playing(toy), weight * t.toy_boost))

            elif kind == BehaviorKind.RESTING and (sleep > t.nap_sleep_probability or night):
                depth = SleepDepth.DEEP if sleep > t.deep_nap_sleep_probability else SleepDepth.MEDIUM
                enhanced.append((Behavior.napping(depth), weight * t.nap_boost))

            elif kind == BehaviorKind.OBSERVING \
                    and engine.curiosity_probability() > t.curious_curiosity:
                target = self._rng.choice(list(CuriosityTarget))
                enhanced.append((Behavior.curious(target), weight * t.curious_boost))

            elif kind == BehaviorKind.SOCIAL:
                enhanced.append((Behavior.social(self._social_reaction(engine)), weight))

            else:
                enhanced.append((behavior, weight))

        if ctx.happiness < t.bored_happiness:
            enhanced.append((Behavior.bored(), t.bored_weight))
        elif ctx.happiness > t.excited_happiness:
            enhanced.append((Behavior.excited(), t.excited_weight))

        if ctx.health < t.confused_health:
            enhanced.append((Behavior.confused(), t.confused_weight))

        return enhanced

    def _social_reaction(self, engine: PersonalityModel) -> SocialReaction:
        t = self._tuning
        sociability = engine.social_interaction_probability()
        if sociability > t.social_excited:
            return SocialReaction.EXCITED
        if sociability > t.social_friendly:
            return SocialReaction.FRIENDLY
        if sociability < t.social_shy:
            return SocialReaction.SHY
        return SocialReaction.CALM

    def _apply_memory(self, weighted: Weighted, ctx: SelectionContext) -> Weighted:
        if self._memory is None:
            return weighted
        t = self._tuning
        memory = self._memory

        # Routine at this time of day: the more often, the stronger the pull.
        boosted: Weighted = []
        for behavior, weight in weighted:
            pattern = memory.find_time_pattern(ctx.hour, ctx.minute, behavior.memory_key)
            if pattern is not None:
                weight += pattern.strength * (1.0 + t.pattern_occurrence_factor * pattern.occurrence_count)
            boosted.append((behavior, weight))

        # Enjoyment in [0, 1] rescaled to [-1, 1].
        preferred: Weighted = []
        for behavior, weight in boosted:
            pref = memory.find_activity_preference(behavior.memory_key)
            if pref is not None:
                modifier = (pref.enjoyment - 0.5) * 2.0 * pref.strength * t.enjoyment_factor
                weight = max(0.0, weight + modifier)
            preferred.append((behavior, weight))

        health = memory.find_health_pattern(ctx.hour)
        if health is None or not (health.health_level < t.health_pattern_threshold
                                  or health.happiness_level < t.health_pattern_threshold):
            return preferred
        bonus = health.strength * t.health_pattern_factor
        return [(b, w + bonus if b.base_type == BaseType.RESTING else w)
                for b, w in preferred]

    def _apply_time_of_day(self, weighted: Weighted, ctx: SelectionContext) -> Weighted:
        t = self._tuning
        engine = ctx.personality
        hour = ctx.hour

        if hour >= 22 or hour < 6:
            sleep = engine.sleep_probability(ctx.age_fraction)
            return [(b, w + sleep if b.base_type == BaseType.RESTING else w * t.night_damping)
                    for b, w in weighted]
        if 6 <= hour < 9:
            factor = 1.0 + engine.curiosity_probability()
            return [(b, w * factor if b.base_type in _ACTIVE else w) for b, w in weighted]
        if 12 <= hour < 14:
            return [(b, w + t.midday_rest_bonus if b.base_type == BaseType.RESTING
                     else w * t.midday_damping) for b, w in weighted]
        if 18 <= hour < 22:
            factor = 1.0 + engine.social_interaction_probability()
            return [(b, w * factor if b.base_type in (BaseType.OBSERVING, BaseType.PLAYING) else w)
                    for b, w in weighted]
        return weighted

    def _apply_vitals(self, weighted: Weighted, ctx: SelectionContext) -> Weighted:
        t = self._tuning
        # Low health masks low happiness entirely.
        if ctx.health < t.low_health:
            return [(b, w + t.low_health_rest_bonus if b.base_type == BaseType.RESTING
                     else w * t.low_health_damping) for b, w in weighted]
        if ctx.happiness < t.low_happiness:
            bonus = t.low_happiness_play_factor * ctx.personality.playfulness_probability()
            return [(b, w + bonus if b.base_type == BaseType.PLAYING else w) for b, w in weighted]
        return weighted

    def _apply_age(self, weighted: Weighted, ctx: SelectionContext) -> Weighted:
        t = self._tuning
        freq = ctx.personality.activity_frequency_multiplier()
        if ctx.age_fraction > t.late_age:
            factor = 1.0 - freq + 0.5
        elif ctx.age_fraction < t.early_age:
            factor = 1.0 + freq * 0.5
        else:
            return weighted
        return [(b, w * factor if b.base_type in _ACTIVE else w) for b, w in weighted]

    # ── draw ───────────────────────────────────────────────────────────

    def _draw(self, weighted: Weighted) -> Behavior:
        weights = [max(0.0, w) for _, w in weighted]
        total = float(np.sum(weights))
        if total <= 0.0:
            # uniform over the base set, without the overlay extras
            return self._rng.choice(all_candidates())
        r = self._rng.uniform(0.0, total)
        return weighted[weighted_pick(weights, r)][0]

    # ── chains ─────────────────────────────────────────────────────────

    def _should_start_chain(self, behavior: Behavior, engine: PersonalityModel) -> bool:
        t = self._tuning
        if engine.activity_frequency_multiplier() > t.chain_energy_multiplier:
            return self._rng.random() < t.chain_energy_chance
        if behavior.base_type == BaseType.EXPLORING \
                and engine.curiosity_probability() > t.chain_explore_curiosity:
            return self._rng.random() < t.chain_explore_chance
        if behavior.base_type == BaseType.PLAYING \
                and engine.playfulness_probability() > t.chain_play_playfulness:
            return self._rng.random() < t.chain_play_chance
        return False

    def _generate_chain(self, first: Behavior, ctx: SelectionContext) -> list[Behavior]:
        length = self._rng.randint(self._tuning.chain_min_length, self._tuning.chain_max_length)
        chain = [first]
        while len(chain) < length:
            chain.append(self._next_link(chain[-1], ctx))
        return chain

    def _next_link(self, previous: Behavior, ctx: SelectionContext) -> Behavior:
        """Follow-on behavior for a link, by the previous link's base type."""
        engine = ctx.personality
        base = previous.base_type

        if base == BaseType.EXPLORING:
            if engine.curiosity_probability() > 0.6:
                return Behavior.curious(CuriosityTarget.RANDOM)
            return Behavior.observing()

        if base == BaseType.PLAYING:
            if engine.social_interaction_probability() > 0.6:
                return Behavior.social(SocialReaction.FRIENDLY)
            if self._rng.random() < 0.5:
                return Behavior.excited()
            return Behavior.playing(ToyType.BALL)

        if base == BaseType.RESTING:
            if engine.sleep_probability(ctx.age_fraction) > 0.6:
                return Behavior.napping(SleepDepth.MEDIUM)
            return Behavior.resting()

        if base == BaseType.OBSERVING:
            if engine.curiosity_probability() > 0.7:
                return Behavior.curious(CuriosityTarget.RANDOM)
            return Behavior.exploring(Direction.RANDOM)

        # wandering
        return Behavior.exploring(Direction.RANDOM)

    # ── traces ─────────────────────────────────────────────────────────

    def _trace(self, ctx: SelectionContext, behavior: Behavior,
               source: str, t0: float) -> None:
        logger.debug("selected %s (%s)", behavior, source)
        if self._memory is None or not self._memory.traces_enabled:
            return
        self._memory.add_trace(Trace(
            operation="select",
            input_text=(f"{ctx.hour:02d}:{ctx.minute:02d} age={ctx.age_fraction:.2f} "
                        f"health={ctx.health:.2f} happiness={ctx.happiness:.2f}"),
            output_text=str(behavior),
            duration_ms=(time.time() - t0) * 1000,
            metadata={"source": source},
        ))
