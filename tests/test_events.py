"""Tests for data loading, daily events, effect application and medical event generators."""

import json

import pytest

from conftest import ScriptedRandom, build_state
from redrock_sim.core.rng import RandomSource
from redrock_sim.medical.events import MedicalEventGenerator, MedicalRiskRoller
from redrock_sim.simulation.data import FALLBACK_LOCATIONS, FALLBACK_NAMES, DataProvider, flatten_templates
from redrock_sim.simulation.events import Event, EventEffect, EventSystem
from redrock_sim.viz.logger import SimLogger


@pytest.fixture
def events():
    return EventSystem(RandomSource(3), DataProvider())


def make_event(state, effects, participants=()):
    return Event(
        event_type="test",
        description="A test event",
        day=state.day,
        date=state.date,
        participants=list(participants),
        effects=effects,
    )


class TestDataProvider:
    """Startup tables and their fallbacks."""

    def test_no_directory_uses_fallbacks(self):
        """Without a data directory every table is built in."""
        provider = DataProvider()
        assert provider.names is FALLBACK_NAMES
        assert not any(provider.loaded_from_disk.values())

    def test_malformed_and_missing_tables(self, tmp_path):
        """Bad JSON and missing files fall back; a valid table loads."""
        (tmp_path / "names.json").write_text("{not json")
        (tmp_path / "locations.json").write_text(json.dumps(["Dry Gulch", "Copper Flats"]))
        (tmp_path / "backgrounds.json").write_text(json.dumps({"oops": True}))

        provider = DataProvider(str(tmp_path))

        assert provider.names is FALLBACK_NAMES
        assert provider.locations == ["Dry Gulch", "Copper Flats"]
        assert provider.loaded_from_disk == {
            "names": False, "backgrounds": False, "events": False, "locations": True,
        }

    def test_fallback_locations(self):
        """Location draws come from the table."""
        provider = DataProvider()
        assert provider.random_location(RandomSource(0)) in FALLBACK_LOCATIONS

    def test_flatten_nested_templates(self):
        """Templates nested in groups are collected."""
        tree = {"a": [{"template": "x"}], "b": {"c": [{"template": "y"}, {"other": 1}]}}
        assert [t["template"] for t in flatten_templates(tree)] == ["x", "y"]


class TestEventGeneration:
    """Daily candidate events."""

    def test_fallback_events_when_nothing_fires(self, state):
        """With every category roll failing, one to three general events appear."""
        system = EventSystem(ScriptedRandom(default=0.99), DataProvider())
        todays = system.generate_daily(state)
        assert 1 <= len(todays) <= 3
        assert all(e.event_type == "general" for e in todays)

    def test_participants_must_be_fit(self, state, events):
        """Settlers at 20 health or less sit events out."""
        for c in state.characters[1:]:
            c.health = 20
        chosen = events.select_participants(state, 3)
        assert [c.id for c in chosen] == ["char_0"]

    def test_render_known_and_unknown_placeholders(self, state, events):
        """Known placeholders fill; unknown ones are left alone."""
        text = events.render_template("{character1} met {stranger} in {season}", state.characters[:1], state)
        assert text == "Settler 0 met {stranger} in spring"

    def test_missing_participant(self, state, events):
        """A character slot with nobody in it reads as another settler."""
        text = events.render_template("{character1} and {character2}", state.characters[:1], state)
        assert text == "Settler 0 and another settler"

    def test_template_requirements(self, state, events):
        """Season and population requirements gate templates."""
        template = {"template": "{character1} went fishing", "requirements": {"season": ["winter"]}}
        assert events.event_from_template(template, "social", state) is None
        template["requirements"] = {"population": 3}
        event = events.event_from_template(template, "social", state)
        assert event is not None
        assert event.event_type == "social"


class TestEffects:
    """Applying queued events."""

    def test_community_means_everyone(self, state, events):
        """A community target reaches every living settler."""
        effect = EventEffect.from_dict({"type": "mood", "target": "community", "modifier": -5})
        assert effect.target == "all"
        events.apply_events([make_event(state, [effect])], state)
        assert all(c.mood == 55 for c in state.characters)
        assert len(state.event_history) == 1

    def test_unknown_resource_is_logged(self, state, events):
        """An unknown resource is skipped with a warning."""
        logger = SimLogger(verbosity=0, stdout=False)
        effect = EventEffect("resource", resource="gold", modifier=5)
        events.apply_events([make_event(state, [effect])], state, logger=logger)
        assert logger.entries_for("WARNING")
        assert len(state.event_history) == 1

    def test_resource_effect(self, state, events):
        """Resource effects add and floor at zero."""
        effects = [EventEffect("resource", resource="food", modifier=15),
                   EventEffect("resource", resource="water", modifier=-500)]
        events.apply_events([make_event(state, effects)], state)
        assert state.resources.get("food") == 115
        assert state.resources.get("water") == 0

    def test_injury_and_disease_effects(self, state, events, medical):
        """Medical effects go through the medical engine for participants."""
        effects = [
            EventEffect("injury", data={"injury_type": "fracture", "body_part": "leftLeg", "severity": 1.0}),
            EventEffect("disease", data={"disease": "influenza", "source": "traveler"}),
        ]
        events.apply_events([make_event(state, effects, ["char_2"])], state, medical)
        c = state.characters[2]
        assert c.injuries[0].cause == "test"
        assert c.diseases[0].exposure_source == "traveler"
        assert state.characters[0].injuries == []

    def test_medical_treatment_effect(self, state, events, medical):
        """A treatment effect treats each participant's worst condition."""
        c = state.characters[3]
        wound = medical.add_injury(c, "cut", "right_arm", 1.0, "knife")
        effect = EventEffect.from_dict({"type": "medical_treatment", "treatmentType": "folkRemedy"})

        events.apply_events([make_event(state, [effect], [c.id])], state, medical)

        assert wound.is_treated
        assert c.treatment_history[-1]["treatment"] == "folk_remedy"

    def test_medical_treatment_without_tier(self, state, events, medical):
        """No tier named, nothing treated."""
        c = state.characters[3]
        wound = medical.add_injury(c, "cut", "right_arm", 1.0, "knife")
        effect = EventEffect.from_dict({"type": "medical_treatment"})
        events.apply_events([make_event(state, [effect], [c.id])], state, medical)
        assert not wound.is_treated

    def test_bad_injury_data_is_skipped(self, state, events, medical):
        """An unknown injury type does not stop the queue."""
        logger = SimLogger(verbosity=0, stdout=False)
        effects = [EventEffect("injury", data={"injury_type": "splinter"}),
                   EventEffect("mood", modifier=10)]
        events.apply_events([make_event(state, effects, ["char_1"])], state, medical, logger)
        assert state.characters[1].injuries == []
        assert state.characters[1].mood == 70

    def test_facility_effect(self, state, events):
        """Facility effects add a building."""
        effect = EventEffect("facility", data={"name": "Healing Spring", "building_type": "medical",
                                               "special": "natural_healing"})
        events.apply_events([make_event(state, [effect])], state)
        assert state.infrastructure.has_special("natural_healing")

    def test_dead_participants_skipped(self, state, events):
        """Dead settlers are not affected."""
        state.characters[0].is_alive = False
        events.apply_events([make_event(state, [EventEffect("health", modifier=-30)], ["char_0"])], state)
        assert state.characters[0].health == 100


class TestMedicalRisks:
    """Per-settler daily risk rolls."""

    def test_gunfight_injury(self, state, medical):
        """A settler in a fight is hurt when the roll succeeds."""
        state.characters[0].current_activity = "fighting"
        roller = MedicalRiskRoller(ScriptedRandom(values=[0.0]), medical)

        risk_events = roller.generate(state)

        assert len(risk_events) == 1
        event = risk_events[0]
        assert event.participants == ["char_0"]
        assert event.effects[0].data["cause"] == "gunfight"

        EventSystem(RandomSource(0), DataProvider()).apply_events(risk_events, state, medical)
        assert state.characters[0].injuries[0].cause == "gunfight"

    def test_environmental_risks(self, state, medical):
        """Winter and short rations add influenza and scurvy."""
        roller = MedicalRiskRoller(RandomSource(0), medical)
        assert roller.environmental_risks(state) == []

        state.season = "winter"
        state.resources.set("food", 0)
        names = {name for name, _, _ in roller.environmental_risks(state)}
        assert names == {"influenza", "scurvy"}

    def test_poor_sanitation(self, state, medical):
        """Without the well, sanitation falls below half and water diseases appear."""
        state.infrastructure.remove(state.infrastructure.find_by_type("water")[0])
        roller = MedicalRiskRoller(RandomSource(0), medical)
        names = {name for name, _, _ in roller.environmental_risks(state)}
        assert names == {"cholera", "dysentery"}


class TestMedicalEvents:
    """Epidemics, discoveries, accidents and supply news."""

    def test_epidemic(self, state, medical):
        """Two or three settlers fall ill and everyone's mood drops."""
        event = MedicalEventGenerator(RandomSource(5)).epidemic(state)
        count = len(event.participants)
        assert 2 <= count <= 3
        assert len(set(event.participants)) == count
        assert event.severity == 8

        EventSystem(RandomSource(0), DataProvider()).apply_events([event], state, medical)
        assert sum(1 for c in state.characters if c.diseases) == count
        assert state.resources.get("medicine") == 20 - 2 * count
        assert all(c.mood == 40 for c in state.characters)

    def test_accident(self, state, medical):
        """Accidents injure one settler with a bounded severity."""
        for seed in range(10):
            event = MedicalEventGenerator(RandomSource(seed)).accident(state)
            injury = event.effects[0].data
            assert 0.5 <= injury["severity"] <= 1.5
            assert event.severity in (5, 6)
            assert event.event_type == "accident"

        EventSystem(RandomSource(0), DataProvider()).apply_events([event], state, medical)
        hurt = [c for c in state.characters if c.injuries]
        assert len(hurt) == 1

    def test_supply_events(self, state):
        """Only shortages are severe; paid deliveries cost money."""
        for seed in range(20):
            event = MedicalEventGenerator(RandomSource(seed)).supply(state)
            kind = event.data["subtype"]
            assert event.event_type == "economic"
            assert (event.severity == 6) == (kind == "supply_shortage")
            money = [e.modifier for e in event.effects if e.resource == "money"]
            if kind == "supply_shortage":
                assert money == []
            else:
                assert money and money[0] < 0

    def test_discoveries_apply(self):
        """Each discovery kind lands in the state."""
        seen = set()
        for seed in range(40):
            state = build_state()
            event = MedicalEventGenerator(RandomSource(seed)).discovery(state)
            EventSystem(RandomSource(0), DataProvider()).apply_events([event], state)
            kind = event.data["subtype"]
            seen.add(kind)
            if kind == "herbal_remedy":
                assert state.medical_knowledge == 10
            elif kind == "supply_cache":
                assert state.resources.get("medicine") == 35
            else:
                assert state.infrastructure.has_special("natural_healing")
        assert seen == {"herbal_remedy", "supply_cache", "healing_spring"}

    def test_nothing_for_empty_settlement(self):
        """No settlers, no medical events."""
        state = build_state(count=0)
        assert MedicalEventGenerator(ScriptedRandom(default=0.0)).generate(state) == []

