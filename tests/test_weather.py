"""Tests for weather generation, extreme events and exposure effects."""

import pytest

from conftest import build_state
from redrock_sim.core.rng import RandomSource
from redrock_sim.medical.engine import MedicalEngine
from redrock_sim.world.climate import PATTERN_DURATIONS
from redrock_sim.world.exposure import add_storm_cellar, apply_activity_effects
from redrock_sim.world.weather import (
    PatternState,
    Weather,
    WeatherEngine,
    describe_temperature,
    describe_wind,
)


def make_engine(seed=3, state=None):
    state = state or build_state()
    rng = RandomSource(seed)
    return WeatherEngine(state, rng, MedicalEngine(state, rng))


class TestGeneration:
    """Daily weather and history."""

    def test_initial_weather_not_in_history(self):
        """Founding-day weather is current but not recorded."""
        engine = make_engine()
        weather = engine.generate_daily_weather(is_initial=True)
        assert engine.state.weather is weather
        assert len(engine.state.weather_history) == 0

        engine.process_daily()
        assert len(engine.state.weather_history) == 1

    def test_visibility_bounds(self):
        """Visibility stays within [0.05, 1] whatever happens."""
        engine = make_engine(seed=11)
        for _ in range(90):
            weather = engine.process_daily()
            assert 0.05 <= weather.visibility <= 1.0

    def test_precipitation_clears_cleanly(self):
        """Dry days carry no intensity."""
        engine = make_engine(seed=5)
        for _ in range(60):
            weather = engine.process_daily()
            if not weather.is_precipitating:
                assert weather.precipitation_intensity == 0.0

    def test_forecast_is_side_effect_free(self):
        """Forecasting does not disturb the main random stream or the state."""
        first, second = make_engine(seed=21), make_engine(seed=21)
        first.generate_daily_weather(is_initial=True)
        second.generate_daily_weather(is_initial=True)

        before = first.state.snapshot()
        forecast = first.predict_weather(5)
        assert first.state.snapshot() == before
        assert len(forecast) == 5
        assert forecast[0]["confidence"] == 0.8
        assert forecast[4]["confidence"] == 0.3

        assert first.generate_daily_weather().as_dict() == second.generate_daily_weather().as_dict()

    def test_forecast_without_weather(self):
        """No current weather, no forecast."""
        assert make_engine().predict_weather() == []


class TestPatterns:
    """Multi-day weather regimes."""

    def test_pattern_counts_down(self):
        """A running pattern just loses a day."""
        engine = make_engine()
        engine.state.weather_pattern = PatternState("hot_spell", 5)
        engine._update_pattern()
        assert engine.state.weather_pattern.current_pattern == "hot_spell"
        assert engine.state.weather_pattern.days_remaining == 4

    def test_pattern_resampled_when_expired(self):
        """An expired pattern is redrawn with a duration from its table."""
        engine = make_engine()
        engine.state.weather_pattern = PatternState("normal", 1)
        engine._update_pattern()
        pattern = engine.state.weather_pattern
        lo, hi = PATTERN_DURATIONS[pattern.current_pattern]
        assert lo <= pattern.days_remaining <= hi


class TestExtremeEvents:
    """Triggering and aging extreme events."""

    def test_trigger_once(self):
        """An active event type cannot be triggered again."""
        engine = make_engine()
        engine.generate_daily_weather(is_initial=True)
        morale = engine.state.morale.overall

        event = engine.trigger_extreme_event("dust_storm")
        assert event is not None
        assert engine.trigger_extreme_event("dust_storm") is None
        assert engine.extreme_event_count == 1
        assert engine.state.morale.overall < morale
        assert engine.state.chronicle[-1].entry_type == "environmental"
        assert engine.state.weather.visibility == 0.2
        assert "dust_storm" in engine.state.weather.hazards

    def test_event_expires(self):
        """Events drop off when their duration runs out."""
        engine = make_engine()
        engine.generate_daily_weather(is_initial=True)
        event = engine.trigger_extreme_event("hailstorm")
        for _ in range(event.initial_duration):
            engine.update_active_events()
        assert not event.is_active
        assert not engine.is_event_active("hailstorm")


class TestExposure:
    """Per-settler weather exposure."""

    def test_cold_outdoor_work(self):
        """-15 C farming costs one health a day and adapts after thirty cold days."""
        state = build_state(count=1)
        c = state.characters[0]
        c.current_activity = "farming"
        state.weather = Weather(date=state.date, season="winter", temperature=-15)

        for _ in range(10):
            apply_activity_effects(state)
        assert c.health == pytest.approx(90)

        for _ in range(20):
            apply_activity_effects(state)
        assert c.weather_resistance.cold == pytest.approx(1.0)

        apply_activity_effects(state)
        assert c.weather_resistance.cold == pytest.approx(1.01)
        assert c.weather_experience.cold_days == 31

    def test_low_visibility_sends_settlers_indoors(self):
        """Outdoor work stops when visibility is poor."""
        state = build_state(count=1)
        c = state.characters[0]
        c.current_activity = "hunting"
        state.weather = Weather(date=state.date, season="spring", temperature=15, visibility=0.2)
        apply_activity_effects(state)
        assert c.current_activity == "sheltering_indoors"
        assert c.mood == 57

    def test_indoor_warmth(self):
        """The main hall's fire warms settlers indoors on cold days."""
        state = build_state(count=1)
        c = state.characters[0]
        c.health = 50
        state.weather = Weather(date=state.date, season="winter", temperature=2)
        apply_activity_effects(state)
        assert c.health == 51
        assert c.mood == 62

    def test_storm_cellar(self):
        """Three starting buildings earn a storm cellar; two do not."""
        state = build_state()
        cellar = add_storm_cellar(state)
        assert cellar is not None and cellar.special == "tornado_safe"

        small = build_state()
        small.infrastructure.remove(small.infrastructure.buildings[0])
        assert add_storm_cellar(small) is None


class TestDescriptions:
    """Plain-language descriptions."""

    @pytest.mark.parametrize("temp,label", [
        (-10, "freezing"), (0, "cold"), (10, "cool"), (20, "mild"),
        (30, "warm"), (34, "hot"), (35, "scorching"),
    ])
    def test_temperature(self, temp, label):
        """Temperature bands."""
        assert describe_temperature(temp) == label

    def test_wind(self):
        """Wind bands."""
        assert describe_wind(3) == "calm"
        assert describe_wind(40) == "very windy"
        assert describe_wind(41) == "dangerous"


class TestWarnings:
    """Threshold warnings."""

    def test_all_thresholds(self):
        """Cold, wind, flood and visibility warnings fire together."""
        engine = make_engine()
        state = engine.state
        state.weather = Weather(
            date=state.date, season="winter", temperature=-10, wind_speed=45,
            precipitation="heavy_rain", precipitation_intensity=0.9, visibility=0.3,
        )
        warnings = engine.update_warnings()

        assert [w["type"] for w in warnings] == [
            "cold_warning", "wind_warning", "flood_warning", "visibility_warning",
        ]
        assert state.weather_warnings == warnings
        assert any("WEATHER WARNING" in r.message for r in state.weather_log)

    def test_heat_and_calm(self):
        """A hot still day only warns about heat."""
        engine = make_engine()
        state = engine.state
        state.weather = Weather(date=state.date, season="summer", temperature=33)
        assert [w["type"] for w in engine.update_warnings()] == ["heat_warning"]

        state.weather = Weather(date=state.date, season="summer", temperature=25)
        assert engine.update_warnings() == []
        assert state.weather_warnings == []


class TestForecast:
    """Forecast confidence and outlook."""

    def test_confidence_decays_to_floor(self):
        """Confidence drops a fifth per day and never below 0.3."""
        engine = make_engine()
        engine.generate_daily_weather(is_initial=True)
        forecast = engine.predict_weather(5)
        assert [f["confidence"] for f in forecast] == pytest.approx([0.8, 0.6, 0.4, 0.3, 0.3])
        assert [f["day"] for f in forecast] == [1, 2, 3, 4, 5]

    def test_dry_spell_raises_rain_chance(self):
        """No rain in recent history adds to the seasonal chance."""
        engine = make_engine()
        engine.generate_daily_weather(is_initial=True)
        # spring 0.35 plus 0.2 with an empty history
        assert engine.predict_weather(1)[0]["precipitationChance"] == pytest.approx(0.55)

    def test_pattern_outlook(self):
        """A pattern about to end says the weather may change."""
        engine = make_engine()
        engine.generate_daily_weather(is_initial=True)
        engine.state.weather_pattern = PatternState("rainy_period", 2)
        outlook = [f["expectedConditions"] for f in engine.predict_weather(2)]
        assert outlook == ["continued wet weather", "weather pattern may change"]


class TestEventDays:
    """Extreme events take effect on the day they begin."""

    def _tornado_day(self, monkeypatch, rng):
        state = build_state(count=1)
        add_storm_cellar(state)
        engine = WeatherEngine(state, rng, MedicalEngine(state, rng))
        monkeypatch.setattr(
            engine, "_check_extreme_events", lambda weather: engine.trigger_extreme_event("tornado", weather),
        )
        engine.process_daily()
        return engine

    def test_one_day_event_applies_its_table(self, monkeypatch, calm_rng):
        """A tornado scatters supplies on the day it strikes, then ends."""
        engine = self._tornado_day(monkeypatch, calm_rng)
        assert engine.is_event_active("tornado")
        # 30 tools lose floor(30 * .1 * .995)
        assert engine.state.resources.get("tools") == 28

        monkeypatch.setattr(engine, "_check_extreme_events", lambda weather: None)
        engine.process_daily()
        assert not engine.is_event_active("tornado")
        assert engine.state.resources.get("tools") == 28

    def test_storm_cellar_on_tornado_day(self, monkeypatch, calm_rng):
        """Settlers indoors shelter in the cellar while the tornado passes."""
        engine = self._tornado_day(monkeypatch, calm_rng)
        state = engine.state
        state.weather.temperature = 20
        c = state.characters[0]
        c.health = 50

        apply_activity_effects(state)

        assert c.health == 55
        assert c.mood == 63
