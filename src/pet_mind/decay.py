"""Strength decay. Memories that aren't reinforced fade away."""

from __future__ import annotations

from pet_mind.config import DEFAULT_DECAY_RATE, MIN_STRENGTH
from pet_mind.models import MemoryKind, MemoryRecord

# Fraction of the base rate applied per kind. Patterns fade slower than raw
# events; preferences are the stickiest.
DECAY_FACTORS: dict[MemoryKind, float] = {
    MemoryKind.INTERACTION: 1.0,
    MemoryKind.LOCATION: 1.0,
    MemoryKind.TIME_PATTERN: 0.5,
    MemoryKind.HEALTH_PATTERN: 0.5,
    MemoryKind.APP_PREFERENCE: 0.3,
    MemoryKind.ACTIVITY_PREFERENCE: 0.3,
}


def compute_decay(record: MemoryRecord, decay_rate: float = DEFAULT_DECAY_RATE,
                  floor: float = MIN_STRENGTH) -> float:
    """New strength after one sweep: linear step down, never below the floor."""
    step = decay_rate * DECAY_FACTORS.get(record.kind, 1.0)
    return max(floor, min(1.0, record.strength - step))


def apply_decay(records: list[MemoryRecord], decay_rate: float = DEFAULT_DECAY_RATE,
                floor: float = MIN_STRENGTH) -> tuple[list[MemoryRecord], list[MemoryRecord]]:
    """Aplica decay a una lista de recuerdos.

    Returns:
        (alive, dead) - records still above the floor, and records that
        reached it and must be purged
    """
    alive = []
    dead = []

    for rec in records:
        rec.strength = compute_decay(rec, decay_rate, floor)
        if rec.strength > floor:
            alive.append(rec)
        else:
            dead.append(rec)

    return alive, dead
