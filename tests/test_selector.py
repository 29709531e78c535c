"""Tests for BehaviorSelector: cascade, draw and chains."""

import json
import random
from dataclasses import replace

import pytest

from pet_mind import (
    BaseType, Behavior, BehaviorKind, BehaviorSelector, MemoryStore,
    PersonalityModel, PersonalityTraits, SelectionContext, SelectorTuning,
    SleepDepth, SocialReaction, ToyType,
)
from pet_mind.behavior import CuriosityTarget, Direction, all_candidates
from pet_mind.config import STORAGE_KEY
from pet_mind.selector import weighted_pick


def ctx(traits=None, hour=15, minute=0, age=0.5, health=1.0, happiness=0.6):
    return SelectionContext(
        hour=hour, minute=minute, age_fraction=age, health=health,
        happiness=happiness, personality=PersonalityModel(traits),
    )


def weights(selector, context):
    return [w for _, w in selector.candidates(context)]


@pytest.fixture
def store():
    s = MemoryStore(":memory:")
    yield s
    s.close()


# ── Weighted pick ──────────────────────────────────────────────────────


class TestWeightedPick:
    def test_boundaries(self):
        assert weighted_pick([1, 2, 3], 0.0) == 0
        assert weighted_pick([1, 2, 3], 1.0) == 0
        assert weighted_pick([1, 2, 3], 1.0001) == 1
        assert weighted_pick([1, 2, 3], 3.0001) == 2
        assert weighted_pick([1, 2, 3], 6.0) == 2

    def test_zero_weight_at_start_wins_r_zero(self):
        assert weighted_pick([0, 1], 0.0) == 0

    def test_negative_weights_count_as_zero(self):
        assert weighted_pick([-5, 1], 0.5) == 1

    def test_r_past_total_lands_on_last(self):
        assert weighted_pick([1, 1], 2.5) == 1


# ── Cascade ────────────────────────────────────────────────────────────


class TestBaseline:
    def test_neutral_weights(self):
        got = weights(BehaviorSelector(), ctx())
        expected = [0.25, 0.25, 0.5, 0.5, 0.5, 0.5, 0.25, 0.25, 0.2, 0.5,
                    0.25, 0.25, 0.25, 0.25]
        assert got == pytest.approx(expected)

    def test_stable_order(self):
        selector = BehaviorSelector()
        kinds = [b.kind for b, _ in selector.candidates(ctx())]
        assert kinds[:3] == [BehaviorKind.EXPLORING, BehaviorKind.EXPLORING, BehaviorKind.PLAYING]
        assert kinds[-1] == BehaviorKind.BORED


class TestEnhancement:
    def test_curious_pet_picks_direction(self):
        cands = BehaviorSelector(rng=random.Random(1)).candidates(
            ctx(PersonalityTraits(curiosity=0.8, energy=0.5)))
        first, weight = cands[0]
        assert first.kind == BehaviorKind.EXPLORING
        assert isinstance(first.detail, Direction)
        assert weight == pytest.approx(0.4 * 1.2)

    def test_playful_pet_picks_toy(self):
        cands = BehaviorSelector().candidates(ctx(PersonalityTraits(playfulness=0.9)))
        behavior, weight = cands[2]
        assert isinstance(behavior.detail, ToyType)
        assert weight == pytest.approx(0.9 * 1.15)
        # the representative with a detail is left alone
        assert cands[3] == (Behavior.playing(ToyType.BALL), pytest.approx(0.9))

    def test_resting_becomes_nap_at_night(self):
        cands = BehaviorSelector().candidates(ctx(hour=23))
        assert cands[4][0] == Behavior.napping(SleepDepth.MEDIUM)

    def test_deep_nap_for_very_sleepy(self):
        cands = BehaviorSelector().candidates(ctx(PersonalityTraits(sleepiness=0.9), hour=23))
        assert cands[4][0] == Behavior.napping(SleepDepth.DEEP)

    def test_curious_observer(self):
        cands = BehaviorSelector().candidates(ctx(PersonalityTraits(curiosity=0.8)))
        assert cands[6][0].kind == BehaviorKind.CURIOUS
        assert isinstance(cands[6][0].detail, CuriosityTarget)

    @pytest.mark.parametrize("sociability, reaction", [
        (0.9, SocialReaction.EXCITED),
        (0.7, SocialReaction.FRIENDLY),
        (0.5, SocialReaction.CALM),
        (0.1, SocialReaction.SHY),
    ])
    def test_social_reaction(self, sociability, reaction):
        cands = BehaviorSelector().candidates(ctx(PersonalityTraits(sociability=sociability)))
        assert cands[9][0] == Behavior.social(reaction)


class TestEmotionalOverlay:
    def test_unhappy_adds_bored(self):
        cands = BehaviorSelector().candidates(ctx(happiness=0.2))
        assert len(cands) == 15
        assert cands[-1] == (Behavior.bored(), pytest.approx(0.3))

    def test_elated_adds_excited(self):
        cands = BehaviorSelector().candidates(ctx(happiness=0.9))
        assert cands[-1] == (Behavior.excited(), pytest.approx(0.4))

    def test_sick_adds_confused(self):
        cands = BehaviorSelector().candidates(ctx(health=0.2))
        assert cands[-1][0] == Behavior.confused()
        # low health damps it like everything not resting
        assert cands[-1][1] == pytest.approx(0.1)


class TestMemoryModifiers:
    def test_time_pattern_boosts_matching_base(self, store):
        store.record_time_pattern(15, 0, "resting")
        plain = weights(BehaviorSelector(), ctx(minute=5))
        got = weights(BehaviorSelector(store), ctx(minute=5))
        assert got[4] == pytest.approx(plain[4] + 1.1)
        assert got[5] == pytest.approx(plain[5] + 1.1)
        assert got[2] == pytest.approx(plain[2])

    def test_time_pattern_outside_window(self, store):
        store.record_time_pattern(15, 0, "resting")
        plain = weights(BehaviorSelector(), ctx(minute=20))
        assert weights(BehaviorSelector(store), ctx(minute=20)) == pytest.approx(plain)

    def test_enjoyment_raises_and_lowers(self, store):
        store.record_activity_preference("playing", 1.0)
        store.record_activity_preference("observing", 0.0)
        got = weights(BehaviorSelector(store), ctx())
        assert got[2] == pytest.approx(0.5 + 0.3)
        assert got[9] == pytest.approx(0.5 + 0.3)
        # observing and its emotional cousins floor at zero
        assert got[6] == 0.0
        assert got[10] == 0.0

    def test_bad_hour_favors_rest(self, store):
        store.record_health_pattern(15, 0.3, 0.9)
        got = weights(BehaviorSelector(store), ctx())
        assert got[4] == pytest.approx(0.5 + 0.4)
        assert got[2] == pytest.approx(0.5)

    def test_good_hour_changes_nothing(self, store):
        store.record_health_pattern(15, 0.9, 0.9)
        assert weights(BehaviorSelector(store), ctx()) == pytest.approx(
            weights(BehaviorSelector(), ctx()))


class TestTimeOfDay:
    def test_night(self):
        got = weights(BehaviorSelector(), ctx(hour=23))
        assert got[4] == pytest.approx(0.5 * 1.3 + 0.3)
        assert got[8] == pytest.approx(0.1)

    def test_morning(self):
        got = weights(BehaviorSelector(), ctx(hour=7))
        assert got[0] == pytest.approx(0.25 * 1.5)
        assert got[8] == pytest.approx(0.2 * 1.5)
        assert got[2] == pytest.approx(0.5)

    def test_midday(self):
        got = weights(BehaviorSelector(), ctx(hour=12))
        assert got[4] == pytest.approx(0.8)
        assert got[8] == pytest.approx(0.14)

    def test_evening(self):
        got = weights(BehaviorSelector(), ctx(hour=19))
        assert got[2] == pytest.approx(0.75)
        assert got[6] == pytest.approx(0.375)
        assert got[0] == pytest.approx(0.25)


class TestVitals:
    def test_low_health_rests(self):
        got = weights(BehaviorSelector(), ctx(health=0.4))
        assert got[4] == pytest.approx(1.0)
        assert got[2] == pytest.approx(0.25)

    def test_low_happiness_plays(self):
        got = weights(BehaviorSelector(), ctx(happiness=0.4))
        assert got[2] == pytest.approx(0.5 + 0.2)
        assert got[4] == pytest.approx(0.5)

    def test_health_masks_happiness(self):
        got = weights(BehaviorSelector(), ctx(health=0.4, happiness=0.4))
        assert got[2] == pytest.approx(0.25)


class TestAge:
    def test_late_in_day_slows_down(self):
        got = weights(BehaviorSelector(), ctx(age=0.8))
        assert got[0] == pytest.approx(0.125)
        assert got[2] == pytest.approx(0.5)

    def test_early_in_day_speeds_up(self):
        got = weights(BehaviorSelector(), ctx(age=0.2))
        assert got[0] == pytest.approx(0.375)


# ── Selection ──────────────────────────────────────────────────────────


class TestSelection:
    def test_playful_pet_plays_more_than_it_rests(self, store):
        traits = PersonalityTraits(playfulness=0.9, curiosity=0.5, sleepiness=0.1,
                                   sociability=0.5, energy=0.9)
        selector = BehaviorSelector(store, rng=random.Random(42))
        playing = resting = 0
        for _ in range(1000):
            behavior = selector.select_next(ctx(traits, hour=15, age=0.5,
                                                health=1.0, happiness=1.0))
            if behavior.kind in (BehaviorKind.PLAYING, BehaviorKind.SOCIAL):
                playing += 1
            elif behavior.base_type == BaseType.RESTING:
                resting += 1
        assert playing > resting

    def test_all_zero_weights_still_choose(self):
        zero = PersonalityTraits(0.0, 0.0, 0.0, 0.0, 0.0)
        behavior = BehaviorSelector(rng=random.Random(0)).select_next(ctx(zero))
        assert isinstance(behavior, Behavior)

    def test_zero_total_draws_from_base_set(self):
        class Recording(random.Random):
            seen = None

            def choice(self, seq):
                self.seen = list(seq)
                return super().choice(seq)

        rng = Recording(0)
        tuning = replace(SelectorTuning(), bored_weight=0.0, confused_weight=0.0,
                         low_health_rest_bonus=0.0)
        selector = BehaviorSelector(tuning=tuning, rng=rng)
        zero = PersonalityTraits(0.0, 0.0, 0.0, 0.0, 0.0)
        context = ctx(zero, health=0.1, happiness=0.1)
        assert len(selector.candidates(context)) == 16
        selector.select_next(context)
        assert rng.seen == all_candidates()

    def test_mistyped_stored_pattern_does_not_break_selection(self, store):
        store._storage.save_blob(STORAGE_KEY, json.dumps([
            {"kind": "timePattern", "hour": 15, "minute": "5", "activity": "playing"},
            {"kind": "activityPreference", "activity_type": "resting",
             "enjoyment": "lots"},
        ]))
        reloaded = MemoryStore(":memory:", _storage=store._storage)
        assert reloaded.count == 1
        behavior = BehaviorSelector(reloaded, rng=random.Random(1)).select_next(ctx(minute=0))
        assert isinstance(behavior, Behavior)
        assert weights(BehaviorSelector(reloaded), ctx())[2] == pytest.approx(0.5 + 1.1)

    def test_extreme_inputs_never_raise(self):
        selector = BehaviorSelector(rng=random.Random(5))
        for hour in (0, 5, 6, 11, 12, 13, 18, 21, 22, 23):
            for health, happiness in ((0.0, 0.0), (1.0, 1.0), (0.2, 0.9)):
                for age in (0.0, 0.5, 1.0):
                    b = selector.select_next(ctx(hour=hour, age=age, health=health,
                                                 happiness=happiness))
                    assert isinstance(b, Behavior)

    def test_same_seed_same_sequence(self):
        traits = PersonalityTraits(energy=0.9, curiosity=0.8)
        a = BehaviorSelector(rng=random.Random(9))
        b = BehaviorSelector(rng=random.Random(9))
        assert [a.select_next(ctx(traits)) for _ in range(50)] == \
               [b.select_next(ctx(traits)) for _ in range(50)]

    def test_current_activity_tracks_selection(self):
        selector = BehaviorSelector(rng=random.Random(3))
        assert selector.get_current_activity() is None
        chosen = selector.select_next(ctx())
        assert selector.current_activity == chosen


# ── Chains ─────────────────────────────────────────────────────────────


def chaining_selector(seed=0, **tuning):
    tuning.setdefault("chain_energy_chance", 1.0)
    return BehaviorSelector(tuning=replace(SelectorTuning(), **tuning),
                            rng=random.Random(seed))


ENERGETIC = PersonalityTraits(energy=1.0)


class TestChains:
    def test_chain_is_consumed_in_order(self):
        selector = chaining_selector()
        first = selector.select_next(ctx(ENERGETIC))
        chain = selector.chain
        assert 2 <= len(chain) <= 4
        assert chain[0] == first
        assert selector.chain_remaining == len(chain) - 1

        for expected in chain[1:]:
            assert selector.select_next(ctx(ENERGETIC)) == expected
        assert selector.chain_remaining == 0

    def test_fresh_cycle_after_exhaustion(self, monkeypatch):
        selector = chaining_selector()
        selector.select_next(ctx(ENERGETIC))
        calls = []
        original = selector.candidates

        def spy(context):
            calls.append(context)
            return original(context)

        monkeypatch.setattr(selector, "candidates", spy)
        for _ in range(len(selector.chain) - 1):
            selector.select_next(ctx(ENERGETIC))
        assert calls == []
        selector.select_next(ctx(ENERGETIC))
        assert len(calls) == 1

    def test_links_follow_previous_link(self):
        selector = chaining_selector(chain_min_length=4, chain_max_length=4)
        context = ctx(PersonalityTraits(curiosity=0.8, energy=1.0))
        chain = selector._generate_chain(Behavior.wandering(), context)
        assert chain == [
            Behavior.wandering(),
            Behavior.exploring(Direction.RANDOM),
            Behavior.curious(CuriosityTarget.RANDOM),
            Behavior.curious(CuriosityTarget.RANDOM),
        ]

    def test_incurious_observer_goes_exploring(self):
        selector = chaining_selector(chain_min_length=3, chain_max_length=3)
        chain = selector._generate_chain(Behavior.observing(), ctx(PersonalityTraits(curiosity=0.2)))
        assert chain == [
            Behavior.observing(),
            Behavior.exploring(Direction.RANDOM),
            Behavior.observing(),
        ]

    def test_play_links(self):
        selector = chaining_selector()
        social = selector._next_link(Behavior.playing(), ctx(PersonalityTraits(sociability=0.9)))
        assert social == Behavior.social(SocialReaction.FRIENDLY)
        loner = ctx(PersonalityTraits(sociability=0.2))
        seen = {selector._next_link(Behavior.playing(), loner) for _ in range(50)}
        assert seen == {Behavior.excited(), Behavior.playing(ToyType.BALL)}

    def test_rest_links(self):
        selector = chaining_selector()
        sleepy = ctx(PersonalityTraits(sleepiness=0.9), age=0.9)
        assert selector._next_link(Behavior.resting(), sleepy) == Behavior.napping(SleepDepth.MEDIUM)
        awake = ctx(PersonalityTraits(sleepiness=0.2), age=0.5)
        assert selector._next_link(Behavior.napping(), awake) == Behavior.resting()

    def test_force_activity_drops_chain(self):
        selector = chaining_selector()
        selector.select_next(ctx(ENERGETIC))
        assert selector.chain_remaining > 0
        forced = Behavior.napping(SleepDepth.DEEP)
        assert selector.force_activity(forced) == forced
        assert selector.chain_remaining == 0
        assert selector.get_current_activity() == forced

    def test_calm_pet_rarely_chains(self):
        selector = BehaviorSelector(rng=random.Random(0))
        calm = PersonalityTraits(curiosity=0.2, playfulness=0.2, energy=0.5)
        selector.select_next(ctx(calm))
        assert selector.chain == ()


# ── Traces ─────────────────────────────────────────────────────────────


class TestSelectTraces:
    def test_selection_traced_when_enabled(self):
        store = MemoryStore(":memory:", enable_traces=True)
        selector = BehaviorSelector(store, rng=random.Random(0))
        chosen = selector.select_next(ctx())
        traces = store.traces("select")
        assert len(traces) == 1
        assert traces[0].output_text == str(chosen)
        assert traces[0].metadata["source"] == "fresh"
        store.close()

    def test_not_traced_by_default(self, store):
        BehaviorSelector(store).select_next(ctx())
        assert store.traces() == []
