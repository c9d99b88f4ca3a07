"""Tests for keys, randomness, resources, settler stats and scoring."""

import pytest

from conftest import build_state, make_character
from redrock_sim.core.clock import Season, SimClock, format_date, is_valid_season
from redrock_sim.core.keys import UnknownKeyError, lookup
from redrock_sim.core.rng import RandomSource
from redrock_sim.medical.conditions import BodyPart, TreatmentTier
from redrock_sim.simulation.metrics import MetricsCollector, survival_score
from redrock_sim.simulation.state import GameState
from redrock_sim.world.resources import Resource, ResourcePool


class TestLookup:
    """Closed enumeration lookups."""

    def test_member_value_and_name(self):
        """Members, values and names all resolve."""
        assert lookup(BodyPart, BodyPart.HEAD) is BodyPart.HEAD
        assert lookup(BodyPart, "left_arm") is BodyPart.LEFT_ARM
        assert lookup(BodyPart, "LEFT_ARM") is BodyPart.LEFT_ARM

    def test_camel_case(self):
        """camelCase keys from exported data resolve."""
        assert lookup(BodyPart, "rightLeg") is BodyPart.RIGHT_LEG
        assert lookup(TreatmentTier, "basicMedicalCare") is TreatmentTier.BASIC_MEDICAL_CARE

    def test_unknown_raises(self):
        """Anything else is an error that names the enumeration."""
        with pytest.raises(UnknownKeyError) as info:
            lookup(Resource, "gold")
        assert info.value.enum_name == "Resource"
        with pytest.raises(UnknownKeyError):
            lookup(Resource, 3)


class TestRandomSource:
    """Seeded randomness helpers."""

    def test_int_inclusive(self):
        """Both ends of an int range are reachable."""
        rng = RandomSource(1)
        seen = {rng.int(1, 3) for _ in range(200)}
        assert seen == {1, 2, 3}

    def test_choices_are_distinct(self):
        """Sampling never repeats an item."""
        rng = RandomSource(2)
        picked = rng.choices(list(range(10)), 6)
        assert len(set(picked)) == 6
        assert len(rng.choices([1, 2], 5)) == 2

    def test_same_seed_same_stream(self):
        """One seed, one stream."""
        a, b = RandomSource(9), RandomSource(9)
        assert [a.random() for _ in range(5)] == [b.random() for _ in range(5)]

    def test_weighted_choice_skips_zero_weights(self):
        """Zero-weight keys are never drawn."""
        rng = RandomSource(4)
        for _ in range(50):
            assert rng.weighted_choice({"a": 0.0, "b": 1.0}) == "b"

    def test_empty_choice_raises(self):
        """Choosing from nothing is an error."""
        with pytest.raises(ValueError):
            RandomSource(0).choice([])


class TestResources:
    """Resource pools."""

    def test_floor_at_zero(self):
        """Pools never go negative."""
        pool = ResourcePool({"food": 5})
        pool.add("food", -20)
        assert pool.get("food") == 0

    def test_take_returns_amount_taken(self):
        """Taking more than exists takes what is there."""
        pool = ResourcePool({"medicine": 3})
        assert pool.take(Resource.MEDICINE, 5) == 3
        assert pool["medicine"] == 0

    def test_unknown_resource_raises(self):
        """Unknown names are rejected."""
        with pytest.raises(UnknownKeyError):
            ResourcePool().add("gold", 1)

    def test_total(self):
        """The starting stock sums to 640."""
        assert GameState().resources.total() == 640


class TestSettler:
    """Clamped settler stats."""

    def test_stats_clamped(self):
        """Health, mood and energy stay in 0-100."""
        c = make_character(0)
        c.health += 50
        c.mood -= 500
        c.energy = 150
        assert c.health == 100
        assert c.mood == 0
        assert c.energy == 100


class TestClock:
    """Calendar and seasons."""

    def test_advance_into_summer(self):
        """May 31 rolls into summer."""
        import datetime

        clock = SimClock(datetime.date(1849, 5, 31))
        assert clock.season == "spring"
        clock.advance()
        assert clock.season == "summer"
        assert clock.day == 2

    def test_format(self):
        """Long-form dates."""
        import datetime

        assert format_date(datetime.date(1849, 3, 15)) == "March 15, 1849"

    def test_valid_seasons(self):
        """Season names resolve through the enumeration."""
        assert is_valid_season("Winter")
        assert not is_valid_season("monsoon")
        assert Season("fall") is Season.FALL


class TestScore:
    """Survival score."""

    def test_empty_settlement(self):
        """Only stores and morale count without settlers."""
        # 640 / 20 capped at 25, plus 65% of 20
        assert survival_score(GameState()) == 38

    def test_founding_settlement(self):
        """Eight healthy settlers of one culture."""
        state = build_state()
        # 24 + 25 + 13 + 15 + 2
        assert survival_score(state) == 79

    def test_bounds(self):
        """The score is an int in [0, 100] at both extremes."""
        state = build_state(count=20)
        for c in state.characters:
            c.culture = f"culture-{c.id}"
        state.population.recount(state.characters)
        state.morale.adjust(100)
        high = survival_score(state)
        assert isinstance(high, int)
        assert high == 100

        empty = GameState()
        for resource in Resource:
            empty.resources.set(resource, 0)
        empty.morale.adjust(-100)
        assert survival_score(empty) == 0

    def test_dead_settlers_do_not_count(self):
        """Average health is over the living only."""
        state = build_state(count=2)
        state.characters[0].health = 0
        state.characters[0].is_alive = False
        state.population.recount(state.characters)
        # 3 + 25 + 13 + 15 + 2
        assert survival_score(state) == 58


class TestMetrics:
    """Daily snapshots."""

    def test_collect_and_export(self, tmp_path, medical):
        """Snapshots record the day and export to CSV."""
        state = medical.state
        collector = MetricsCollector()
        snap = collector.collect_daily(state, medical, None, deaths=0)
        assert snap.population == 8
        assert snap.avg_health == 100
        assert snap.activity_counts == {"trading": 8}

        path = tmp_path / "metrics.csv"
        collector.export_csv(str(path))
        lines = path.read_text().splitlines()
        assert lines[0].startswith("day,date,population")
        assert len(lines) == 2
        assert "Settlement Summary" in collector.summary_report()
