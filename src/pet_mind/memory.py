"""MemoryStore: what the pet remembers, persisted, decaying, queryable."""

from __future__ import annotations

import copy
import json
import logging
import sqlite3
import threading
import time
from pathlib import Path
from typing import Callable, Iterator, TypeVar

from pet_mind.config import (
    DEFAULT_DECAY_RATE,
    LOCATION_RADIUS,
    MIN_STRENGTH,
    STORAGE_KEY,
    TIME_PATTERN_WINDOW,
)
from pet_mind.decay import apply_decay
from pet_mind.models import (
    ActivityPreferenceMemory,
    AppPreferenceMemory,
    HealthPatternMemory,
    InteractionMemory,
    LocationMemory,
    MemoryKind,
    MemoryRecord,
    TimePatternMemory,
    Trace,
    clamp,
)
from pet_mind.storage import Storage

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=MemoryRecord)

LOCATION_REINFORCEMENT = 0.1
PATTERN_REINFORCEMENT = 0.05

_PERSIST_ERRORS = (sqlite3.Error, OSError, TypeError, ValueError)


class MemoryStore:
    """La memoria de la mascota. Un archivo SQLite = una mascota.

    API:
        store.record(obs)          — something was observed, remember it
        store.query(kind, pred)    — copies of matching records
        store.find_time_pattern()  — routine at this time of day?
        store.decay_sweep()        — fade everything, purge the faint
        store.clear_all()          — forget everything
        store.remove(id)           — forget one thing

    The store owns its records. Everything handed out is a copy, and every
    mutation rewrites the whole collection to disk. Persistence problems are
    logged and ignored: the in-memory state stays authoritative.
    """

    def __init__(self, path: str | Path = "pet.db",
                 decay_rate: float = DEFAULT_DECAY_RATE,
                 min_strength: float = MIN_STRENGTH,
                 storage_key: str = STORAGE_KEY,
                 enable_traces: bool = False,
                 _storage: Storage | None = None) -> None:
        self._storage = _storage or self._open(path)
        self._decay_rate = decay_rate
        self._min_strength = min_strength
        self._key = storage_key
        self._enable_traces = enable_traces
        self._lock = threading.RLock()
        self._records: list[MemoryRecord] = self._load()

    # ── record ─────────────────────────────────────────────────────────

    def record(self, observation: MemoryRecord) -> MemoryRecord:
        """Registra una observación. Upsert by natural key where the kind has one."""
        t0 = time.time()
        with self._lock:
            kind = observation.kind
            if kind == MemoryKind.INTERACTION:
                stored = self._insert(observation)
            elif kind == MemoryKind.LOCATION:
                stored = self._upsert_location(observation)
            elif kind == MemoryKind.TIME_PATTERN:
                stored = self._upsert_time_pattern(observation)
            elif kind == MemoryKind.APP_PREFERENCE:
                stored = self._upsert_app_preference(observation)
            elif kind == MemoryKind.ACTIVITY_PREFERENCE:
                stored = self._upsert_activity_preference(observation)
            elif kind == MemoryKind.HEALTH_PATTERN:
                stored = self._upsert_health_pattern(observation)
            else:
                raise ValueError(f"unknown memory kind: {kind!r}")
            self._persist()
            result = copy.copy(stored)

        self._trace("record", kind.value, result.id, t0)
        return result

    def record_interaction(self, interaction_type: str,
                           location: tuple[float, float] | None = None) -> MemoryRecord:
        x, y = location if location is not None else (None, None)
        return self.record(InteractionMemory(interaction_type, x, y))

    def record_location(self, screen_index: int,
                        position: tuple[float, float]) -> MemoryRecord:
        return self.record(LocationMemory(screen_index, position[0], position[1]))

    def record_time_pattern(self, hour: int, minute: int, activity: str) -> MemoryRecord:
        return self.record(TimePatternMemory(hour, minute, activity))

    def record_app_preference(self, app_name: str, preference: float) -> MemoryRecord:
        return self.record(AppPreferenceMemory(app_name, preference))

    def record_activity_preference(self, activity_type: str, enjoyment: float) -> MemoryRecord:
        return self.record(ActivityPreferenceMemory(activity_type, enjoyment))

    def record_health_pattern(self, hour: int, health_level: float,
                              happiness_level: float) -> MemoryRecord:
        return self.record(HealthPatternMemory(hour, health_level, happiness_level))

    def _insert(self, observation: MemoryRecord) -> MemoryRecord:
        rec = copy.copy(observation)
        rec.strength = max(self._min_strength, min(1.0, rec.strength))
        if rec.kind == MemoryKind.APP_PREFERENCE:
            rec.preference = clamp(rec.preference, -1.0, 1.0)
        elif rec.kind == MemoryKind.ACTIVITY_PREFERENCE:
            rec.enjoyment = clamp(rec.enjoyment)
        self._records.append(rec)
        return rec

    def _upsert_location(self, obs: LocationMemory) -> MemoryRecord:
        for rec in self._iter(LocationMemory):
            if (rec.screen_index == obs.screen_index
                    and abs(rec.position_x - obs.position_x) < LOCATION_RADIUS
                    and abs(rec.position_y - obs.position_y) < LOCATION_RADIUS):
                rec.visit_count += 1
                rec.reinforce(LOCATION_REINFORCEMENT)
                return rec
        return self._insert(obs)

    def _upsert_time_pattern(self, obs: TimePatternMemory) -> MemoryRecord:
        rec = self._find_time_pattern(obs.hour, obs.minute, obs.activity)
        if rec is None:
            return self._insert(obs)
        rec.occurrence_count += 1
        rec.reinforce(PATTERN_REINFORCEMENT)
        return rec

    def _upsert_app_preference(self, obs: AppPreferenceMemory) -> MemoryRecord:
        rec = next((r for r in self._iter(AppPreferenceMemory)
                    if r.app_name == obs.app_name), None)
        if rec is None:
            return self._insert(obs)
        n = rec.interaction_count
        rec.preference = clamp((rec.preference * n + obs.preference) / (n + 1), -1.0, 1.0)
        rec.interaction_count += 1
        rec.reinforce(PATTERN_REINFORCEMENT)
        return rec

    def _upsert_activity_preference(self, obs: ActivityPreferenceMemory) -> MemoryRecord:
        rec = self._find_activity_preference(obs.activity_type)
        if rec is None:
            return self._insert(obs)
        n = rec.occurrence_count
        rec.enjoyment = clamp((rec.enjoyment * n + obs.enjoyment) / (n + 1))
        rec.occurrence_count += 1
        rec.reinforce(PATTERN_REINFORCEMENT)
        return rec

    def _upsert_health_pattern(self, obs: HealthPatternMemory) -> MemoryRecord:
        rec = self._find_health_pattern(obs.hour)
        if rec is None:
            return self._insert(obs)
        n = rec.occurrence_count
        rec.health_level = (rec.health_level * n + obs.health_level) / (n + 1)
        rec.happiness_level = (rec.happiness_level * n + obs.happiness_level) / (n + 1)
        rec.occurrence_count += 1
        rec.reinforce(PATTERN_REINFORCEMENT)
        return rec

    # ── query ──────────────────────────────────────────────────────────

    def query(self, kind: MemoryKind | str,
              predicate: Callable[[MemoryRecord], bool] | None = None,
              by_strength: bool = False,
              limit: int | None = None) -> list[MemoryRecord]:
        """Copies of every record of a kind matching predicate.

        by_strength: sort strongest first (favorites). Insertion order otherwise.
        """
        kind = MemoryKind(kind)
        with self._lock:
            result = [copy.copy(r) for r in self._records
                      if r.kind == kind and (predicate is None or predicate(r))]
        if by_strength:
            result.sort(key=lambda r: r.strength, reverse=True)
        if limit is not None:
            result = result[:limit]
        return result

    def find_time_pattern(self, hour: int, minute: int,
                          activity: str) -> TimePatternMemory | None:
        """Pattern at the same hour within the minute window, or None."""
        with self._lock:
            rec = self._find_time_pattern(hour, minute, activity)
            return copy.copy(rec) if rec is not None else None

    def find_health_pattern(self, hour: int) -> HealthPatternMemory | None:
        with self._lock:
            rec = self._find_health_pattern(hour)
            return copy.copy(rec) if rec is not None else None

    def find_activity_preference(self, activity_type: str) -> ActivityPreferenceMemory | None:
        with self._lock:
            rec = self._find_activity_preference(activity_type)
            return copy.copy(rec) if rec is not None else None

    def interactions(self) -> list[InteractionMemory]:
        return self.query(MemoryKind.INTERACTION)

    def favorite_locations(self, limit: int = 5) -> list[LocationMemory]:
        return self.query(MemoryKind.LOCATION, by_strength=True, limit=limit)

    def time_patterns(self, activity: str) -> list[TimePatternMemory]:
        return self.query(MemoryKind.TIME_PATTERN, lambda r: r.activity == activity)

    def app_preferences(self) -> list[AppPreferenceMemory]:
        return self.query(MemoryKind.APP_PREFERENCE)

    def activity_preferences(self) -> list[ActivityPreferenceMemory]:
        return self.query(MemoryKind.ACTIVITY_PREFERENCE)

    def health_patterns(self, hour: int) -> list[HealthPatternMemory]:
        return self.query(MemoryKind.HEALTH_PATTERN, lambda r: r.hour == hour)

    def most_enjoyed_activity(self) -> ActivityPreferenceMemory | None:
        prefs = self.activity_preferences()
        return max(prefs, key=lambda r: r.enjoyment) if prefs else None

    def least_enjoyed_activity(self) -> ActivityPreferenceMemory | None:
        prefs = self.activity_preferences()
        return min(prefs, key=lambda r: r.enjoyment) if prefs else None

    def _iter(self, cls: type[R]) -> Iterator[R]:
        return (r for r in self._records if isinstance(r, cls))

    def _find_time_pattern(self, hour: int, minute: int,
                           activity: str) -> TimePatternMemory | None:
        for rec in self._iter(TimePatternMemory):
            if (rec.activity == activity and rec.hour == hour
                    and abs(rec.minute - minute) < TIME_PATTERN_WINDOW):
                return rec
        return None

    def _find_health_pattern(self, hour: int) -> HealthPatternMemory | None:
        return next((r for r in self._iter(HealthPatternMemory) if r.hour == hour), None)

    def _find_activity_preference(self, activity_type: str) -> ActivityPreferenceMemory | None:
        return next((r for r in self._iter(ActivityPreferenceMemory)
                     if r.activity_type == activity_type), None)

    # ── decay ──────────────────────────────────────────────────────────

    def decay_sweep(self) -> int:
        """Fade every record one step and purge those at the floor. Returns how many."""
        t0 = time.time()
        with self._lock:
            before = len(self._records)
            alive, dead = apply_decay(self._records, self._decay_rate, self._min_strength)
            self._records = alive
            self._persist()

        logger.debug("decay sweep: %d records, %d purged", before, len(dead))
        self._trace("decay", f"{before} memories",
                    f"{len(alive)} alive, {len(dead)} dead", t0)
        return len(dead)

    # ── administration ─────────────────────────────────────────────────

    def clear_all(self) -> None:
        t0 = time.time()
        with self._lock:
            count = len(self._records)
            self._records = []
            self._persist()
        self._trace("clear", "", f"{count} deleted", t0)

    def remove(self, memory_id: str) -> bool:
        t0 = time.time()
        with self._lock:
            before = len(self._records)
            self._records = [r for r in self._records if r.id != memory_id]
            removed = len(self._records) < before
            self._persist()
        self._trace("remove", memory_id, str(removed), t0)
        return removed

    # ── persistence ────────────────────────────────────────────────────

    @staticmethod
    def _open(path: str | Path) -> Storage:
        try:
            return Storage(path)
        except sqlite3.Error as exc:
            # Session still works; nothing is saved until the file is fixed.
            logger.warning("could not open %s, memories will not persist: %s", path, exc)
            return Storage(":memory:")

    def _load(self) -> list[MemoryRecord]:
        try:
            blob = self._storage.load_blob(self._key)
        except sqlite3.Error as exc:
            logger.warning("could not read memories, starting empty: %s", exc)
            return []
        if blob is None:
            return []

        try:
            items = json.loads(blob)
        except ValueError as exc:
            logger.warning("corrupt memory blob, starting empty: %s", exc)
            return []
        if not isinstance(items, list):
            logger.warning("memory blob is not a list, starting empty")
            return []

        records = []
        for item in items:
            try:
                rec = MemoryRecord.from_dict(item)
            except (KeyError, ValueError, TypeError) as exc:
                # unknown kinds from newer versions land here too
                logger.warning("skipping unreadable memory record: %s", exc)
                continue
            rec.strength = max(self._min_strength, min(1.0, rec.strength))
            records.append(rec)
        return records

    def _persist(self) -> None:
        try:
            blob = json.dumps([r.to_dict() for r in self._records])
            self._storage.save_blob(self._key, blob)
        except _PERSIST_ERRORS as exc:
            logger.warning("could not persist memories: %s", exc)

    # ── traces (observability) ─────────────────────────────────────────

    def _trace(self, operation: str, input_text: str,
               output_text: str, t0: float) -> None:
        """Registra un trace si enable_traces=True."""
        if not self._enable_traces:
            return
        self.add_trace(Trace(
            operation=operation,
            input_text=str(input_text)[:500],
            output_text=str(output_text)[:500],
            duration_ms=(time.time() - t0) * 1000,
        ))

    @property
    def traces_enabled(self) -> bool:
        return self._enable_traces

    def add_trace(self, trace: Trace) -> None:
        with self._lock:
            try:
                self._storage.save_trace(trace)
            except sqlite3.Error as exc:
                logger.warning("could not save trace: %s", exc)

    def traces(self, operation: str | None = None, limit: int = 100) -> list[Trace]:
        """Consulta trazas de operaciones."""
        with self._lock:
            return self._storage.load_traces(operation=operation, limit=limit)

    # ── utilidades ─────────────────────────────────────────────────────

    @property
    def count(self) -> int:
        """Cuántos recuerdos hay."""
        with self._lock:
            return len(self._records)

    def close(self) -> None:
        with self._lock:
            self._storage.close()

    def __enter__(self) -> MemoryStore:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"MemoryStore(memories={self.count})"
