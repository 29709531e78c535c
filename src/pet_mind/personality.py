"""Personality: five traits turned into probabilities and multipliers."""

from __future__ import annotations

import random
from enum import Enum

from pet_mind.models import PersonalityTraits, clamp


class PersonalityModel:
    """Pure computations over an immutable trait vector.

    Replacing the traits means building a new model; nothing here mutates.
    """

    def __init__(self, traits: PersonalityTraits | None = None,
                 rng: random.Random | None = None) -> None:
        self.traits = (traits or PersonalityTraits()).validated()
        self._rng = rng or random.Random()

    # ── probabilities ──────────────────────────────────────────────────

    def playfulness_probability(self) -> float:
        return clamp(self.traits.playfulness)

    def curiosity_probability(self) -> float:
        return clamp(self.traits.curiosity)

    def social_interaction_probability(self) -> float:
        return clamp(self.traits.sociability)

    def sleep_probability(self, time_of_day: float) -> float:
        """Sleepiness shifted up at night ([0, 0.25) and (0.75, 1]) and down by day."""
        if time_of_day < 0.25 or time_of_day > 0.75:
            modifier = 0.3
        else:
            modifier = -0.2
        return clamp(self.traits.sleepiness + modifier)

    # ── multipliers ────────────────────────────────────────────────────

    def activity_frequency_multiplier(self) -> float:
        # 0.5x at energy 0, 1.5x at energy 1
        return 0.5 + self.traits.energy

    def activity_intensity_multiplier(self) -> float:
        return 0.7 + 0.6 * self.traits.energy

    def animation_intensity_multiplier(self) -> float:
        return 0.7 + 0.6 * self.traits.energy + 0.4 * self.traits.playfulness

    # ── transitions ────────────────────────────────────────────────────

    def should_transition(self, from_state: object = None, to_state: object = None) -> bool:
        """Soft gate checked by the state owner. Low-energy pets resist 30% of the time."""
        if self.traits.energy > 0.7:
            return True
        if self.traits.energy < 0.3:
            return self._rng.random() > 0.3
        return True

    def preference_for_activity(self, activity: str | Enum) -> float:
        """Base weight for an activity, by base type or behavior kind name."""
        name = activity.value if isinstance(activity, Enum) else str(activity)
        t = self.traits
        if name == "exploring":
            return t.curiosity * t.energy
        if name == "playing":
            return t.playfulness
        if name in ("resting", "napping"):
            return t.sleepiness
        if name in ("observing", "curious"):
            return t.curiosity * (1.0 - t.energy)
        if name == "wandering":
            return t.curiosity * t.energy * 0.8
        if name == "social":
            return t.sociability
        # startled, confused, excited, bored
        return 0.2

    # ── interaction response ───────────────────────────────────────────

    def interaction_response_intensity(self) -> float:
        return clamp(self.traits.sociability)

    def should_respond_positively(self) -> bool:
        return self.traits.sociability > 0.4

    def __repr__(self) -> str:
        return f"PersonalityModel({self.traits})"
