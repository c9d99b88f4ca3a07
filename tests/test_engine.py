"""Tests for the daily tick orchestrator and its control surface."""

import json

import pytest

from conftest import ScriptedRandom
from redrock_sim.agents.settler import Skill
from redrock_sim.simulation.engine import SimulationEngine
from redrock_sim.world.weather import Weather


@pytest.fixture
def engine():
    eng = SimulationEngine(seed=42)
    eng.initialize()
    return eng


class TestInitialization:
    """Founding the settlement."""

    def test_founding(self, engine):
        """Eight settlers, the starting buildings, a cellar and the first weather."""
        state = engine.state
        assert state.population.total == 8
        assert state.day == 1
        assert {b.name for b in state.infrastructure.buildings} >= {"Main Hall", "Storage Shed", "Well", "Storm Cellar"}
        assert state.weather is not None
        assert len(state.weather_history) == 0
        assert state.chronicle[0].entry_type == "founding"

    def test_initialize_is_idempotent(self, engine):
        """A second initialize changes nothing."""
        characters = list(engine.state.characters)
        engine.initialize()
        assert engine.state.characters == characters

    def test_market_prices_set(self, engine):
        """Prices start at the middle of their range, for pooled resources only."""
        assert engine.state.economy["food"] == pytest.approx(1.25)
        assert "luxury_goods" not in engine.state.economy

    def test_large_settlement_gets_doctors_office(self):
        """More than thirty settlers found a Doc's Office."""
        eng = SimulationEngine(seed=1, population=31)
        eng.initialize()
        assert any(b.name == "Doc's Office" for b in eng.state.infrastructure.buildings)


class TestStepping:
    """Tick control."""

    def test_full_year(self, engine):
        """A year runs to completion with a bounded score."""
        assert engine.step_days(365)
        state = engine.state

        assert state.day == 366
        assert engine.current_step == 365
        assert state.population.total <= 8
        assert state.population.total == len(state.living())
        assert isinstance(engine.final_score, int)
        assert 0 <= engine.final_score <= 100
        assert not engine.is_running
        assert len(engine.metrics.snapshots) == 365
        assert len(state.weather_history) <= 30
        for name, amount in state.resources.as_dict().items():
            assert amount >= 0, name
        for c in state.characters:
            assert 0 <= c.health <= 100
            assert 0 <= c.mood <= 100
            assert 0 <= c.energy <= 100

    def test_deterministic(self):
        """The same seed replays the same settlement."""
        first, second = SimulationEngine(seed=7), SimulationEngine(seed=7)
        first.step_days(40)
        second.step_days(40)
        assert first.get_chronicle() == second.get_chronicle()
        assert first.get_game_state() == second.get_game_state()

    def test_step_to_day(self, engine):
        """Stepping to a past or current day is refused."""
        assert not engine.step_to_day(1)
        assert engine.step_to_day(10)
        assert engine.state.day == 10
        assert not engine.step_to_day(5)

    def test_step_to_season(self, engine):
        """Stepping to a season stops on its first day."""
        assert not engine.step_to_season("monsoon")
        assert engine.step_to_season("summer")
        assert engine.state.season == "summer"
        assert engine.state.date.month == 6
        assert engine.state.date.day == 1

    def test_step_to_current_season(self, engine):
        """Already in the season: nothing to do."""
        assert engine.step_to_season("spring")
        assert engine.current_step == 0

    def test_start_until_callback_stops(self, engine):
        """The running loop ends when the step callback stops it."""
        seen = []

        def on_step(eng):
            seen.append(eng.state.day)
            if eng.current_step >= 3:
                eng.stop()

        engine.set_simulation_speed(1)
        engine.set_step_callback(on_step)
        engine.start()

        assert seen == [2, 3, 4]
        assert not engine.is_running

    def test_stepping_refused_while_running(self, engine):
        """Manual stepping is refused during a run."""
        engine.is_running = True
        assert not engine.step_days(1)
        assert not engine.step_to_day(20)
        assert not engine.step_to_season("fall")
        assert engine.current_step == 0

    def test_speed_floor(self, engine):
        """Speed is never below one millisecond."""
        engine.set_simulation_speed(0)
        assert engine.simulation_speed == 1
        engine.set_simulation_speed(250)
        assert engine.simulation_speed == 250

    def test_metrics_follow_steps(self, engine):
        """One snapshot per day."""
        engine.step_days(5)
        assert [s.day for s in engine.metrics.snapshots] == [2, 3, 4, 5, 6]


class TestQueries:
    """Reports, treatment and export."""

    def test_treat_unknown_character(self, engine):
        """Unknown settlers cannot be treated."""
        assert not engine.treat_character("nobody", "injury_1")
        assert engine.get_character_medical_details("nobody") is None

    def test_treat_character(self, engine):
        """Treatment through the engine reaches the medical engine."""
        c = engine.state.living()[0]
        injury = engine.medical.add_injury(c, "cut", "right_arm", 1.0, "knife")
        assert engine.treat_character(c.id, injury.id)
        assert injury.is_treated

    def test_forecast(self, engine):
        """Three days by default."""
        assert len(engine.get_weather_forecast()) == 3

    def test_reports(self, engine):
        """Medical and weather reports are populated."""
        assert engine.get_medical_report()["totalPopulation"] == 8
        assert "current" in engine.get_weather_report()

    def test_export_chronicle(self, engine, tmp_path):
        """The chronicle export carries every section and serializes."""
        engine.step_days(10)
        data = engine.export_chronicle()
        assert set(data) == {
            "title", "period", "population", "final_resources", "events", "characters",
            "survival_score", "weather_data", "climate_summary", "medical_data",
        }
        assert len(data["characters"]) == 8

        path = tmp_path / "out" / "chronicle.json"
        engine.export_chronicle_json(str(path))
        assert json.loads(path.read_text())["title"] == "Red Rock Territory Chronicle"

    def test_final_report(self, engine):
        """The report names the score."""
        assert "Survival score" in engine.final_report()


class TestDailyUpdates:
    """Stores, prices and settler drift within one step."""

    @staticmethod
    def _idle(state, temperature=10, **weather):
        for c in state.living():
            c.background = "Doctor"
            c.current_activity = "resting"
        for name, amount in {"food": 100, "water": 100, "wood": 50, "money": 200}.items():
            state.resources.set(name, amount)
        state.weather = Weather(date=state.date, season=state.season, temperature=temperature, **weather)

    def test_consumption(self, engine):
        """Eight settlers eat two food, drink one water and burn half a wood each."""
        state = engine.state
        self._idle(state)
        engine._process_resources()
        assert state.resources.get("food") == 84
        assert state.resources.get("water") == 92
        assert state.resources.get("wood") == 46

    def test_rain_and_cold(self, engine):
        """Heavy rain fills the barrels; hard cold spoils food."""
        state = engine.state
        self._idle(state, temperature=-10, precipitation="heavy_rain", precipitation_intensity=0.5)
        engine._process_resources()
        assert state.resources.get("water") == 102
        assert state.resources.get("food") == 82

    def test_production(self, engine):
        """Farmers farming and merchants trading produce by skill."""
        state = engine.state
        self._idle(state)
        farmer, merchant = state.living()[:2]
        farmer.background, farmer.current_activity = "Farmer", "farming"
        farmer.skills[Skill.AGRICULTURE] = 40
        merchant.background, merchant.current_activity = "Merchant", "trading"
        merchant.skills[Skill.SOCIAL] = 60

        engine._process_resources()

        assert state.resources.get("food") == 86
        assert state.resources.get("money") == 202

    def test_market_prices(self, engine):
        """Scarce goods rise, plentiful ones fall, nothing drops below the floor."""
        state = engine.state
        state.economy = {"food": 1.0, "water": 1.0, "wood": 0.1}
        state.resources.set("food", 0)
        state.resources.set("water", 1000)
        state.resources.set("wood", 1000)

        engine._update_market_prices()

        assert 1.05 <= state.economy["food"] <= 1.15
        assert 0.9 <= state.economy["water"] <= 1.0
        assert state.economy["wood"] == pytest.approx(0.1)

    def test_mood_drift(self, engine):
        """Poor health and frost lower mood; optimism lifts it."""
        engine.rng = ScriptedRandom(default=0.99)
        state = engine.state
        state.weather = Weather(date=state.date, season=state.season, temperature=-5)
        c = state.living()[0]
        c.traits = ["optimistic"]
        c.health, c.energy, c.mood = 20, 100, 60
        activity = c.current_activity

        engine._update_character(c)

        assert c.mood == 55
        assert c.energy >= 95
        assert c.health == 20
        assert c.current_activity == activity

    def test_energy_floor(self, engine):
        """Energy drift never takes a settler below ten."""
        engine.rng = ScriptedRandom(default=0.99)
        c = engine.state.living()[0]
        for _ in range(20):
            c.energy = 10
            engine._update_character(c)
            assert 10 <= c.energy <= 20
