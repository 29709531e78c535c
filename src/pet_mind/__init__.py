"""pet-mind: Behavior simulation engine for desktop pets. Personality + memory -> behavior."""

from pet_mind.behavior import (
    BaseType, Behavior, BehaviorKind, CuriosityTarget, Direction,
    SleepDepth, SocialReaction, ToyType,
)
from pet_mind.clock import BehaviorClock
from pet_mind.config import SelectorTuning
from pet_mind.creature import Creature, CreatureState
from pet_mind.memory import MemoryStore
from pet_mind.models import (
    ActivityPreferenceMemory, AppPreferenceMemory, HealthPatternMemory,
    InteractionMemory, LocationMemory, MemoryKind, MemoryRecord,
    PersonalityTraits, TimePatternMemory, Trace,
)
from pet_mind.personality import PersonalityModel
from pet_mind.scheduler import ManualScheduler, ThreadScheduler
from pet_mind.selector import BehaviorSelector, SelectionContext

__version__ = "0.1.0"
__all__ = [
    "Behavior", "BehaviorKind", "BaseType", "Direction", "ToyType",
    "SleepDepth", "CuriosityTarget", "SocialReaction",
    "PersonalityTraits", "PersonalityModel",
    "MemoryStore", "MemoryKind", "MemoryRecord", "InteractionMemory",
    "LocationMemory", "TimePatternMemory", "AppPreferenceMemory",
    "ActivityPreferenceMemory", "HealthPatternMemory", "Trace",
    "BehaviorSelector", "SelectionContext", "SelectorTuning",
    "BehaviorClock", "Creature", "CreatureState",
    "ManualScheduler", "ThreadScheduler",
]
