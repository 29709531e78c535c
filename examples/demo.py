#!/usr/bin/env python3
"""
pet-mind demo: one simulated day in the life of a desktop pet.

No GUI needed. Just run it.
"""

import os
import random
import tempfile
from collections import Counter
from datetime import datetime, timedelta

from pet_mind import (
    BehaviorClock, BehaviorSelector, Creature, ManualScheduler,
    MemoryStore, PersonalityTraits,
)


def header(text):
    print(f"\n{'='*64}")
    print(f"  {text}")
    print(f"{'='*64}\n")


def show(store, label=""):
    prefs = sorted(store.activity_preferences(), key=lambda m: m.enjoyment, reverse=True)
    if label:
        print(f"  [{label}] {store.count} memories, {len(prefs)} activity preferences:")
    for m in prefs:
        n = int(m.enjoyment * 20)
        bar = "█" * n + "░" * (20 - n)
        print(f"    {bar} {m.enjoyment:.2f} | {m.activity_type:<10} x{m.occurrence_count}")
    print()


def main():
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    store = MemoryStore(db_path)
    creature = Creature(
        PersonalityTraits(playfulness=0.9, curiosity=0.6, sleepiness=0.3,
                          sociability=0.7, energy=0.8),
        memory=store,
        now=datetime(2024, 5, 1, 7, 0),
    )
    selector = BehaviorSelector(store, rng=random.Random(7))
    scheduler = ManualScheduler()

    start = datetime(2024, 5, 1, 7, 0)
    clock = BehaviorClock(
        creature, selector, memory=store, scheduler=scheduler,
        clock=lambda: start + timedelta(seconds=scheduler.now),
        monotonic=lambda: scheduler.now,
        rng=random.Random(7),
    )

    seen = Counter()
    clock.subscribe(lambda b: seen.update([str(b)]))

    header("MORNING: 07:00 to 12:00")
    clock.start()
    scheduler.advance(5 * 3600)
    print(f"  {creature}")
    show(store, "Late morning")

    header("AFTERNOON AND EVENING: until midnight")
    scheduler.advance(12 * 3600)
    print(f"  {creature}")
    show(store, "End of day")

    header("WHAT IT DID")
    for behavior, n in seen.most_common(10):
        print(f"    {n:4d}  {behavior}")

    clock.stop()
    store.close()
    os.unlink(db_path)


if __name__ == "__main__":
    main()
