"""Core data models. Traits are fixed; memories have a lifecycle."""

from __future__ import annotations

import time
import uuid
from dataclasses import asdict, dataclass, field, fields, replace
from enum import Enum
from typing import Any, ClassVar


def clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return lo if value < lo else hi if value > hi else value


@dataclass(frozen=True)
class PersonalityTraits:
    """Five independent traits in [0, 1]. Out-of-range input is clamped."""

    playfulness: float = 0.5   # playing vs resting
    curiosity: float = 0.5     # exploring and observing
    sleepiness: float = 0.5    # sleep frequency
    sociability: float = 0.5   # interaction responsiveness
    energy: float = 0.5        # activity frequency and intensity

    def __post_init__(self) -> None:
        for f in fields(self):
            object.__setattr__(self, f.name, clamp(float(getattr(self, f.name))))

    def validated(self) -> PersonalityTraits:
        return replace(self)

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


class MemoryKind(str, Enum):
    INTERACTION = "interaction"
    LOCATION = "location"
    TIME_PATTERN = "timePattern"
    APP_PREFERENCE = "appPreference"
    ACTIVITY_PREFERENCE = "activityPreference"
    HEALTH_PATTERN = "healthPattern"


@dataclass(kw_only=True)
class MemoryRecord:
    """Un recuerdo con ciclo de vida: se refuerza al repetirse y decae con el tiempo."""

    kind: ClassVar[MemoryKind]

    strength: float = 1.0       # 0.0-1.0, decays on every sweep
    timestamp: float = field(default_factory=time.time)
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

    def reinforce(self, increment: float) -> None:
        """Repetir una observación la refuerza. Nunca pasa de 1.0."""
        self.strength = min(1.0, self.strength + increment)
        self.timestamp = time.time()

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["kind"] = self.kind.value
        return d

    @staticmethod
    def from_dict(data: dict[str, Any]) -> MemoryRecord:
        """Rebuild a record from its flat dict.

        Every field is coerced to its declared type. Raises ValueError or
        TypeError on an unknown kind or a value that doesn't convert.
        """
        kind = MemoryKind(data["kind"])
        cls = RECORD_TYPES[kind]
        values = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            convert, optional = _COERCE[f.type]
            if value is None and optional:
                values[f.name] = None
            elif isinstance(value, bool):
                raise TypeError(f"{f.name}: unexpected boolean")
            else:
                values[f.name] = convert(value)
        return cls(**values)


# declared type (as a string, see __future__ annotations) -> (converter, nullable)
_COERCE: dict[str, tuple[type, bool]] = {
    "float": (float, False),
    "int": (int, False),
    "str": (str, False),
    "float | None": (float, True),
}


@dataclass
class InteractionMemory(MemoryRecord):
    kind: ClassVar[MemoryKind] = MemoryKind.INTERACTION

    interaction_type: str       # "click", "drag", "feed", "play", ...
    location_x: float | None = None
    location_y: float | None = None

    @property
    def location(self) -> tuple[float, float] | None:
        if self.location_x is None or self.location_y is None:
            return None
        return (self.location_x, self.location_y)


@dataclass
class LocationMemory(MemoryRecord):
    kind: ClassVar[MemoryKind] = MemoryKind.LOCATION

    screen_index: int
    position_x: float
    position_y: float
    visit_count: int = 1

    @property
    def position(self) -> tuple[float, float]:
        return (self.position_x, self.position_y)


@dataclass
class TimePatternMemory(MemoryRecord):
    """e.g. "the user always feeds at 9am"."""

    kind: ClassVar[MemoryKind] = MemoryKind.TIME_PATTERN

    hour: int
    minute: int
    activity: str
    occurrence_count: int = 1


@dataclass
class AppPreferenceMemory(MemoryRecord):
    kind: ClassVar[MemoryKind] = MemoryKind.APP_PREFERENCE

    app_name: str
    preference: float           # -1.0 (dislike) to 1.0 (like)
    interaction_count: int = 1


@dataclass
class ActivityPreferenceMemory(MemoryRecord):
    kind: ClassVar[MemoryKind] = MemoryKind.ACTIVITY_PREFERENCE

    activity_type: str
    enjoyment: float            # 0.0 (disliked) to 1.0 (loved)
    occurrence_count: int = 1


@dataclass
class HealthPatternMemory(MemoryRecord):
    kind: ClassVar[MemoryKind] = MemoryKind.HEALTH_PATTERN

    hour: int
    health_level: float
    happiness_level: float
    occurrence_count: int = 1


RECORD_TYPES: dict[MemoryKind, type[MemoryRecord]] = {
    MemoryKind.INTERACTION: InteractionMemory,
    MemoryKind.LOCATION: LocationMemory,
    MemoryKind.TIME_PATTERN: TimePatternMemory,
    MemoryKind.APP_PREFERENCE: AppPreferenceMemory,
    MemoryKind.ACTIVITY_PREFERENCE: ActivityPreferenceMemory,
    MemoryKind.HEALTH_PATTERN: HealthPatternMemory,
}


@dataclass
class Trace:
    """One observed operation on the store or the selector."""

    operation: str
    input_text: str = ""
    output_text: str = ""
    duration_ms: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: float = field(default_factory=time.time)
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
