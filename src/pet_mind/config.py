"""Defaults. Everything here can be overridden via constructor kwargs."""

from __future__ import annotations

from dataclasses import dataclass

# ── Memory ─────────────────────────────────────────────────────────────

STORAGE_KEY = "pet.memories.v1"
DEFAULT_DECAY_RATE = 0.001        # strength lost per sweep (full-rate kinds)
MIN_STRENGTH = 0.1                # records at or below this are purged
DECAY_INTERVAL = 24 * 3600.0      # one sweep per day

LOCATION_RADIUS = 50.0            # revisit box half-width, screen units
TIME_PATTERN_WINDOW = 15          # minutes, exclusive

# ── Clock ──────────────────────────────────────────────────────────────

BASE_TICK_INTERVAL = 15.0
MIN_TICK_INTERVAL = 10.0
MAX_TICK_INTERVAL = 120.0
MIN_ACTIVITY_GAP = 10.0
MAX_ACTIVITY_GAP = 120.0          # gap required to interrupt sleeping/dancing/watching
ACTIVITY_PROBABILITY = 0.6
DEFAULT_FREQUENCY_MINUTES = 2


@dataclass(frozen=True)
class SelectorTuning:
    """Magic numbers of the selection cascade.

    Values are the product-tuned defaults. They carry no derivation, so they
    are kept together and can be swapped wholesale with dataclasses.replace().
    """

    # variant enhancement
    directional_curiosity: float = 0.6
    directional_boost: float = 1.2
    toy_playfulness: float = 0.7
    toy_boost: float = 1.15
    nap_sleep_probability: float = 0.6
    deep_nap_sleep_probability: float = 0.8
    nap_boost: float = 1.3
    curious_curiosity: float = 0.7
    curious_boost: float = 1.2
    social_excited: float = 0.8
    social_friendly: float = 0.6
    social_shy: float = 0.3

    # emotional overlay
    bored_happiness: float = 0.3
    bored_weight: float = 0.3
    excited_happiness: float = 0.8
    excited_weight: float = 0.4
    confused_health: float = 0.3
    confused_weight: float = 0.2

    # memory modifiers
    pattern_occurrence_factor: float = 0.1
    enjoyment_factor: float = 0.3
    health_pattern_threshold: float = 0.5
    health_pattern_factor: float = 0.4

    # time of day
    midday_rest_bonus: float = 0.3
    midday_damping: float = 0.7
    night_damping: float = 0.5

    # vitals
    low_health: float = 0.5
    low_health_rest_bonus: float = 0.5
    low_health_damping: float = 0.5
    low_happiness: float = 0.5
    low_happiness_play_factor: float = 0.4

    # age
    late_age: float = 0.7
    early_age: float = 0.3

    # chains
    chain_energy_multiplier: float = 1.2
    chain_energy_chance: float = 0.4
    chain_explore_curiosity: float = 0.7
    chain_explore_chance: float = 0.5
    chain_play_playfulness: float = 0.7
    chain_play_chance: float = 0.4
    chain_min_length: int = 2
    chain_max_length: int = 4


DEFAULT_TUNING = SelectorTuning()
