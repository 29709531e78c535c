"""Behaviors. One tagged value per decision: a kind plus an optional detail."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class BaseType(str, Enum):
    """Coarse bucket used for memory lookup and cross-variant weighting."""
    EXPLORING = "exploring"
    PLAYING = "playing"
    RESTING = "resting"
    OBSERVING = "observing"
    WANDERING = "wandering"


class BehaviorKind(str, Enum):
    EXPLORING = "exploring"
    PLAYING = "playing"
    RESTING = "resting"
    NAPPING = "napping"
    OBSERVING = "observing"
    CURIOUS = "curious"
    WANDERING = "wandering"
    SOCIAL = "social"
    STARTLED = "startled"
    CONFUSED = "confused"
    EXCITED = "excited"
    BORED = "bored"


class Direction(str, Enum):
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"
    RANDOM = "random"


class ToyType(str, Enum):
    BALL = "ball"
    SPARKLE = "sparkle"
    BUBBLE = "bubble"


class SleepDepth(str, Enum):
    LIGHT = "light"
    MEDIUM = "medium"
    DEEP = "deep"


class CuriosityTarget(str, Enum):
    WINDOW = "window"
    MOUSE = "mouse"
    SCREEN_EDGE = "screenEdge"
    RANDOM = "random"


class SocialReaction(str, Enum):
    FRIENDLY = "friendly"
    SHY = "shy"
    EXCITED = "excited"
    CALM = "calm"


Detail = Union[Direction, ToyType, SleepDepth, CuriosityTarget, SocialReaction, None]

# kind -> (detail type, detail required)
_DETAILS: dict[BehaviorKind, tuple[type, bool]] = {
    BehaviorKind.EXPLORING: (Direction, False),
    BehaviorKind.PLAYING: (ToyType, False),
    BehaviorKind.NAPPING: (SleepDepth, True),
    BehaviorKind.CURIOUS: (CuriosityTarget, True),
    BehaviorKind.SOCIAL: (SocialReaction, True),
}

_BASE_TYPES: dict[BehaviorKind, BaseType] = {
    BehaviorKind.EXPLORING: BaseType.EXPLORING,
    BehaviorKind.PLAYING: BaseType.PLAYING,
    BehaviorKind.SOCIAL: BaseType.PLAYING,
    BehaviorKind.RESTING: BaseType.RESTING,
    BehaviorKind.NAPPING: BaseType.RESTING,
    BehaviorKind.OBSERVING: BaseType.OBSERVING,
    BehaviorKind.CURIOUS: BaseType.OBSERVING,
    BehaviorKind.STARTLED: BaseType.OBSERVING,
    BehaviorKind.CONFUSED: BaseType.OBSERVING,
    BehaviorKind.EXCITED: BaseType.OBSERVING,
    BehaviorKind.BORED: BaseType.OBSERVING,
    BehaviorKind.WANDERING: BaseType.WANDERING,
}

EMOTIONAL_KINDS = frozenset({
    BehaviorKind.STARTLED, BehaviorKind.CONFUSED,
    BehaviorKind.EXCITED, BehaviorKind.BORED,
})


@dataclass(frozen=True)
class Behavior:
    """What the creature is doing right now.

    Kinds with a detail: exploring (Direction, optional), playing (ToyType,
    optional), napping (SleepDepth), curious (CuriosityTarget) and social
    (SocialReaction). Everything else carries no detail.
    """

    kind: BehaviorKind
    detail: Detail = None

    def __post_init__(self) -> None:
        kind = BehaviorKind(self.kind)
        object.__setattr__(self, "kind", kind)
        entry = _DETAILS.get(kind)
        if entry is None:
            if self.detail is not None:
                raise ValueError(f"{kind.value} takes no detail")
            return
        detail_type, required = entry
        if self.detail is None:
            if required:
                raise ValueError(f"{kind.value} requires a {detail_type.__name__}")
            return
        object.__setattr__(self, "detail", detail_type(self.detail))

    # ── constructors ───────────────────────────────────────────────────

    @classmethod
    def exploring(cls, direction: Direction | None = None) -> Behavior:
        return cls(BehaviorKind.EXPLORING, direction)

    @classmethod
    def playing(cls, toy: ToyType | None = None) -> Behavior:
        return cls(BehaviorKind.PLAYING, toy)

    @classmethod
    def resting(cls) -> Behavior:
        return cls(BehaviorKind.RESTING)

    @classmethod
    def napping(cls, depth: SleepDepth = SleepDepth.MEDIUM) -> Behavior:
        return cls(BehaviorKind.NAPPING, depth)

    @classmethod
    def observing(cls) -> Behavior:
        return cls(BehaviorKind.OBSERVING)

    @classmethod
    def curious(cls, target: CuriosityTarget = CuriosityTarget.RANDOM) -> Behavior:
        return cls(BehaviorKind.CURIOUS, target)

    @classmethod
    def wandering(cls) -> Behavior:
        return cls(BehaviorKind.WANDERING)

    @classmethod
    def social(cls, reaction: SocialReaction = SocialReaction.FRIENDLY) -> Behavior:
        return cls(BehaviorKind.SOCIAL, reaction)

    @classmethod
    def startled(cls) -> Behavior:
        return cls(BehaviorKind.STARTLED)

    @classmethod
    def confused(cls) -> Behavior:
        return cls(BehaviorKind.CONFUSED)

    @classmethod
    def excited(cls) -> Behavior:
        return cls(BehaviorKind.EXCITED)

    @classmethod
    def bored(cls) -> Behavior:
        return cls(BehaviorKind.BORED)

    # ── properties ─────────────────────────────────────────────────────

    @property
    def base_type(self) -> BaseType:
        return _BASE_TYPES[self.kind]

    @property
    def memory_key(self) -> str:
        """String persisted in memory records (the base type's value)."""
        return self.base_type.value

    @property
    def is_emotional(self) -> bool:
        return self.kind in EMOTIONAL_KINDS

    def __str__(self) -> str:
        if self.detail is None:
            return self.kind.value
        return f"{self.kind.value}({self.detail.value})"


def all_candidates() -> list[Behavior]:
    """One representative per variant, in stable order.

    Kinds with an optional detail appear twice: once plain and once with a
    representative detail. Only the plain ones are eligible for enhancement.
    """
    return [
        Behavior.exploring(),
        Behavior.exploring(Direction.RANDOM),
        Behavior.playing(),
        Behavior.playing(ToyType.BALL),
        Behavior.resting(),
        Behavior.napping(SleepDepth.MEDIUM),
        Behavior.observing(),
        Behavior.curious(CuriosityTarget.RANDOM),
        Behavior.wandering(),
        Behavior.social(SocialReaction.FRIENDLY),
        Behavior.startled(),
        Behavior.confused(),
        Behavior.excited(),
        Behavior.bored(),
    ]
