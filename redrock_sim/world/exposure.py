"""How the day's weather reaches individual settlers: activity overrides, shelter, adaptation, narrative."""

from __future__ import annotations

import math
from typing import Optional

from redrock_sim.core.config import (
    COLD_ADAPT_AFTER_DAYS,
    HEAT_ADAPT_AFTER_DAYS,
    STORM_ADAPT_AFTER_DAYS,
    STORM_ADAPT_STEP,
    STORM_CELLAR_MIN_BUILDINGS,
    STORM_RESISTANCE_CAP,
    TEMPERATURE_ADAPT_STEP,
    TEMPERATURE_RESISTANCE_CAP,
)
from redrock_sim.core.rng import RandomSource
from redrock_sim.simulation.events import Event, EventEffect
from redrock_sim.world.infrastructure import Building
from redrock_sim.world.weather_effects import is_indoor, is_outdoor

_SEASONAL_LINES: dict[str, list[str]] = {
    "spring": [
        "{name} noticed the first wildflowers blooming along the ravine",
        "{name} spotted migrating birds returning to the territory",
    ],
    "summer": [
        "{name} watched heat shimmer across the distant hills",
        "The relentless sun drove {name} to work in the early morning hours",
    ],
    "fall": [
        "{name} watched the aspens turn golden on the mountainsides",
        "The first frost prompted {name} to bring in the remaining crops",
    ],
    "winter": [
        "{name} chopped extra firewood as winter's grip tightened",
        "{name} checked the food stores with an eye on the long winter ahead",
    ],
}

_COLD_LINES = [
    "{name} struggled to keep warm as the cold seeped through the cabin walls",
    "{name} had to break ice to draw water from the well",
]
_HOT_LINES = [
    "{name} sought shade during the scorching midday heat",
    "{name} rationed water carefully under the blazing sun",
]
_PRECIP_LINES: dict[str, list[str]] = {
    "light_rain": ["{name} welcomed the gentle rain after the dry days"],
    "heavy_rain": ["{name} was soaked to the bone in the downpour"],
    "thunderstorm": ["{name} took shelter as the thunderstorm raged outside"],
}
_SNOW_LINES = ["Fresh snow crunched under {name}'s boots"]
_WIND_LINES = [
    "Fierce winds howled around the settlement as {name} tied down loose items",
    "{name} fought the gusts while securing the livestock",
]
_EXTREME_LINES: dict[str, str] = {
    "tornado": "{name} helped others into the storm cellar as the tornado roared overhead",
    "wildfire": "{name} dug firebreaks as the wildfire crept closer",
    "severe_drought": "{name} stared at the parched earth and the failing crops",
    "flash_flood": "{name} waded through rushing water to reach higher ground",
    "dust_storm": "{name} covered their face against the choking dust",
    "hailstorm": "{name} ran for cover as hailstones pounded the roofs",
    "earthquake": "{name} steadied the shelves as the ground heaved",
    "locust_swarm": "{name} beat at the locusts descending on the fields",
    "killing_frost": "{name} found the young plants blackened by frost",
}
_PREPARATION_LINES = [
    "{name} sensed a storm coming and began securing loose items around the settlement",
    "{name} checked the food and water supplies ahead of the harsh weather",
]
_AFTERMATH_LINES = [
    "{name} surveyed the damage left by the storm, grateful to have survived",
    "{name} helped clear debris from the main path",
]
_FOLKLORE_LINES = [
    '{name} shared an old saying: "Red sky at night, sailor\'s delight"',
    "{name} found a woolly caterpillar and predicted the severity of the coming winter",
]


# ------------------------------------------------------------------
# Initialisation
# ------------------------------------------------------------------

def add_storm_cellar(state: "GameState") -> Optional[Building]:  # noqa: F821
    """A settlement with more than a couple of buildings starts with a tornado-safe cellar."""
    if len(state.infrastructure) <= STORM_CELLAR_MIN_BUILDINGS:
        return None
    cellar = Building("Storm Cellar", "shelter", capacity=20, condition=90, special="tornado_safe")
    state.infrastructure.add(cellar)
    return cellar


# ------------------------------------------------------------------
# Daily activity effects
# ------------------------------------------------------------------

def apply_activity_effects(state: "GameState", log=None) -> None:  # noqa: F821
    """Adjust each living settler for today's weather. Runs before the generic daily update."""
    weather = state.weather
    if weather is None:
        return
    restrictions = state.movement_restrictions
    tornado_active = any(e.event_type == "tornado" for e in state.active_weather_events)

    for character in state.living():
        res = character.weather_resistance

        if (restrictions.get("travel_banned") or weather.visibility < 0.3) and is_outdoor(character.current_activity):
            character.current_activity = "sheltering_indoors"
            character.mood -= 3

        if weather.temperature < 0 and is_outdoor(character.current_activity):
            penalty = math.floor(abs(weather.temperature) / 10 / res.cold)
            character.health -= penalty
            character.energy -= penalty * 2
            if weather.temperature < -10 and res.cold < 0.8:
                character.current_activity = "warming_by_fire"

        if weather.temperature > 30 and is_outdoor(character.current_activity):
            penalty = math.floor((weather.temperature - 30) / res.heat)
            character.health -= penalty
            character.energy -= penalty * 3
            if weather.temperature > 35 and res.heat < 0.8:
                character.current_activity = "resting_in_shade"

        if weather.is_precipitating and is_outdoor(character.current_activity):
            character.mood -= math.floor(weather.precipitation_intensity * 5 / res.wet)
            if weather.precipitation == "heavy_rain" and character.current_activity == "construction":
                character.current_activity = "waiting_for_weather"
            if weather.precipitation == "thunderstorm" and character.current_activity == "mining":
                character.current_activity = "sheltering_indoors"
                if log:
                    log(f"{character.name} stopped mining due to dangerous lightning")

        if weather.wind_speed > 25 and is_outdoor(character.current_activity):
            character.energy -= math.floor(weather.wind_speed / 10 / res.wind)
            if weather.wind_speed > 40 and character.current_activity in ("construction", "roofing"):
                character.current_activity = "waiting_for_weather"
                if log:
                    log(f"{character.name} stopped work due to dangerous winds")

        if is_indoor(character.current_activity):
            apply_shelter_bonuses(character, state, tornado_active)

        update_weather_experience(character, weather)


def apply_shelter_bonuses(character, state, tornado_active: bool = False) -> None:
    weather = state.weather
    buildings = state.infrastructure.buildings
    has_fireplace = any(b.building_type == "residential" or "Hall" in b.name for b in buildings)
    has_sturdy = any(
        b.condition > 70 and (b.building_type == "stone" or b.special == "reinforced")
        for b in buildings
    )

    if weather.temperature < 5 and has_fireplace:
        character.health += 1
        character.mood += 2
    if weather.is_precipitating and has_sturdy:
        character.mood += 1
    if tornado_active and any(b.special == "tornado_safe" for b in buildings):
        character.health += 5
        character.mood += 3


def update_weather_experience(character, weather) -> None:
    """Outdoor exposure counts toward slow adaptation."""
    if not is_outdoor(character.current_activity):
        return
    exp = character.weather_experience
    res = character.weather_resistance
    exp.total_exposure += 1

    if weather.temperature < 0:
        exp.cold_days += 1
        if exp.cold_days > COLD_ADAPT_AFTER_DAYS:
            res.cold = min(TEMPERATURE_RESISTANCE_CAP, res.cold + TEMPERATURE_ADAPT_STEP)
    if weather.temperature > 30:
        exp.hot_days += 1
        if exp.hot_days > HEAT_ADAPT_AFTER_DAYS:
            res.heat = min(TEMPERATURE_RESISTANCE_CAP, res.heat + TEMPERATURE_ADAPT_STEP)
    if weather.wind_speed > 20 or weather.is_precipitating:
        exp.storm_days += 1
        if exp.storm_days > STORM_ADAPT_AFTER_DAYS:
            res.wind = min(STORM_RESISTANCE_CAP, res.wind + STORM_ADAPT_STEP)
            res.wet = min(STORM_RESISTANCE_CAP, res.wet + STORM_ADAPT_STEP)


# ------------------------------------------------------------------
# Narrative events
# ------------------------------------------------------------------

class WeatherNarrator:
    """Turns the day's weather into small narrative events for the queue."""

    def __init__(self, rng: RandomSource, weather_engine: "WeatherEngine") -> None:  # noqa: F821
        self._rng = rng
        self.weather_engine = weather_engine

    def generate(self, state: "GameState") -> list[Event]:  # noqa: F821
        weather = state.weather
        living = state.living()
        if weather is None or not living:
            return []
        rng = self._rng
        events: list[Event] = []

        if weather.temperature < -5 and rng.chance(0.1):
            events.append(self._event(state, rng.choice(_COLD_LINES), "mood", -3, severity=4))
        if weather.temperature > 30 and rng.chance(0.1):
            events.append(self._event(state, rng.choice(_HOT_LINES), "energy", -5, severity=3))
        if weather.is_precipitating and rng.chance(0.15):
            if "snow" in weather.precipitation or weather.precipitation == "blizzard":
                lines = _SNOW_LINES
            else:
                lines = _PRECIP_LINES.get(weather.precipitation, _PRECIP_LINES["light_rain"])
            modifier = 2 if weather.precipitation == "light_rain" else -1
            events.append(self._event(state, rng.choice(lines), "mood", modifier, severity=2))
        if weather.wind_speed > 25 and rng.chance(0.08):
            events.append(self._event(state, rng.choice(_WIND_LINES), "mood", -2, severity=4))
        for active in state.active_weather_events:
            if rng.chance(0.2):
                line = _EXTREME_LINES.get(active.event_type, "{name} endured the " + active.event_type.replace("_", " "))
                events.append(self._event(state, line, "mood", -8, severity=7, extreme=active.event_type))

        if rng.chance(0.05):
            lines = _SEASONAL_LINES.get(state.season, _SEASONAL_LINES["spring"])
            events.append(self._event(state, rng.choice(lines), "mood", 2, severity=2, subtype="seasonal"))
        if rng.chance(0.08) and self._severe_weather_forecast():
            events.append(self._event(
                state, rng.choice(_PREPARATION_LINES), "mood", 3,
                target="all", event_type="social", severity=3, subtype="preparation",
            ))
        if not state.active_weather_events and self._recent_severe_weather(state) and rng.chance(0.15):
            events.append(self._event(
                state, rng.choice(_AFTERMATH_LINES), "mood", 1,
                event_type="social", severity=3, subtype="recovery",
            ))
        if rng.chance(0.03):
            events.append(self._event(
                state, rng.choice(_FOLKLORE_LINES), "mood", 2,
                target="all", event_type="social", severity=1, subtype="folklore",
            ))
        return events

    def _event(
        self,
        state,
        line: str,
        effect_type: str,
        modifier: float,
        target: str = "participants",
        event_type: str = "weather",
        severity: int = 2,
        **data,
    ) -> Event:
        character = self._rng.choice(state.living())
        return Event(
            event_type=event_type,
            description=line.format(name=character.name),
            day=state.day,
            date=state.date,
            participants=[character.id],
            effects=[EventEffect(effect_type, target=target, modifier=modifier)],
            severity=severity,
            data=data,
        )

    def _severe_weather_forecast(self) -> bool:
        return any(
            p["expectedTemperature"] < -5 or p["expectedTemperature"] > 35 or p["precipitationChance"] > 0.7
            for p in self.weather_engine.predict_weather(3)
        )

    @staticmethod
    def _recent_severe_weather(state) -> bool:
        recent = list(state.weather_history)[-7:]
        return any(
            w.hazards or w.temperature < -10 or w.temperature > 35 or w.wind_speed > 40
            for w in recent
        )
