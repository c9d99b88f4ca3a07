"""Daily weather generation, multi-day patterns, extreme events, warnings and forecasts."""

from __future__ import annotations

import datetime
import math
from dataclasses import dataclass, field
from typing import Optional

from redrock_sim.core.clock import day_of_year, format_date
from redrock_sim.core.config import (
    DANGEROUS_WIND_THRESHOLD,
    EXTREME_COLD_THRESHOLD,
    EXTREME_HEAT_THRESHOLD,
    FORECAST_DAYS,
    SEVERE_PRECIP_THRESHOLD,
)
from redrock_sim.core.rng import RandomSource
from redrock_sim.world.climate import (
    DROUGHT_LOOKBACK_DAYS,
    DROUGHT_TRIGGER_CHANCE,
    EVENT_DESCRIPTIONS,
    EVENT_DURATIONS,
    EVENT_INTENSITY_RANGE,
    EXTREME_EVENTS,
    FLASH_FLOOD_TRIGGER_CHANCE,
    MIN_PRECIP_INTENSITY,
    PATTERN_DURATIONS,
    PATTERN_PRECIP_SHIFT,
    PATTERN_TEMPERATURE_SHIFT,
    PRECIP_INTENSITY_RANGE,
    RESTRICTING_EVENTS,
    STORM_SEASON_WIND_BOOST,
    STORM_SEASON_WIND_CHANCE,
    TORNADO_TRIGGER_CHANCE,
    WEATHER_EFFECTS,
    WILDFIRE_TRIGGER_CHANCE,
    WIND_BASE_RANGE,
    WIND_DIRECTIONS,
    base_humidity,
    pattern_weights,
    precipitation_chance,
    precipitation_types,
    seasonal_trend,
    temperature_range,
)
from redrock_sim.world.weather_effects import WeatherEffects


@dataclass
class Weather:
    """One day's weather."""

    date: datetime.date
    season: str
    temperature: int
    precipitation: str = "none"
    precipitation_intensity: float = 0.0
    wind_speed: int = 10
    wind_direction: str = "N"
    cloud_cover: float = 0.3
    humidity: float = 0.4
    pressure: float = 30.0
    dew_point: float = 0.0
    conditions: set[str] = field(default_factory=set)
    hazards: set[str] = field(default_factory=set)
    visibility: float = 1.0

    @property
    def is_precipitating(self) -> bool:
        return self.precipitation != "none"

    def as_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "season": self.season,
            "temperature": self.temperature,
            "precipitation": self.precipitation,
            "precipitationIntensity": round(self.precipitation_intensity, 3),
            "windSpeed": self.wind_speed,
            "windDirection": self.wind_direction,
            "cloudCover": round(self.cloud_cover, 3),
            "humidity": round(self.humidity, 3),
            "pressure": round(self.pressure, 2),
            "dewPoint": round(self.dew_point, 1),
            "conditions": sorted(self.conditions),
            "hazards": sorted(self.hazards),
            "visibility": round(self.visibility, 3),
        }


@dataclass
class WeatherEvent:
    """An active extreme weather event."""

    event_type: str
    start_date: datetime.date
    duration: int
    intensity: float
    is_active: bool = True
    initial_duration: int = 0

    def as_dict(self) -> dict:
        return {
            "type": self.event_type,
            "startDate": self.start_date.isoformat(),
            "duration": self.duration,
            "intensity": round(self.intensity, 3),
            "isActive": self.is_active,
        }


@dataclass
class PatternState:
    """Multi-day weather regime."""

    current_pattern: str = "normal"
    days_remaining: int = 0


class WeatherEngine:
    """Generates daily weather and applies its consequences to the settlement."""

    def __init__(
        self,
        state: "GameState",  # noqa: F821
        rng: RandomSource,
        medical: Optional["MedicalEngine"] = None,  # noqa: F821
        logger: Optional["SimLogger"] = None,  # noqa: F821
    ) -> None:
        self.state = state
        self._rng = rng
        self._forecast_rng = rng.spawn()
        self._logger = logger
        self.effects = WeatherEffects(state, rng, medical, self.log)
        self.extreme_event_count: int = 0

    # ------------------------------------------------------------------
    # Daily processing
    # ------------------------------------------------------------------

    def process_daily(self) -> Weather:
        """Age events, generate weather, apply effects and warnings for today."""
        self.expire_events()
        weather = self.generate_daily_weather()
        self.apply_active_events()
        self._update_movement_restrictions()
        self._apply_temperature_effects(weather)
        self._apply_precipitation_effects(weather)
        self.update_warnings()
        return weather

    def generate_daily_weather(self, is_initial: bool = False) -> Weather:
        """Produce a new Weather and install it into the game state."""
        self._update_pattern()
        weather = self._base_weather()
        self._apply_pattern_modifiers(weather)
        self._check_extreme_events(weather)
        self._derive_conditions(weather)

        self.state.weather = weather
        if not is_initial:
            self.state.weather_history.append(weather)
        return weather

    # ------------------------------------------------------------------
    # Patterns
    # ------------------------------------------------------------------

    def _update_pattern(self) -> None:
        pattern = self.state.weather_pattern
        if pattern.days_remaining > 0:
            pattern.days_remaining -= 1
        if pattern.days_remaining <= 0:
            pattern.current_pattern = self._rng.weighted_choice(pattern_weights(self.state.season))
            lo, hi = PATTERN_DURATIONS[pattern.current_pattern]
            pattern.days_remaining = self._rng.int(lo, hi)
            self.log(
                f"Weather pattern shifted to {pattern.current_pattern} "
                f"for {pattern.days_remaining} days"
            )

    def _apply_pattern_modifiers(self, weather: Weather) -> None:
        pattern = self.state.weather_pattern.current_pattern
        weather.temperature += PATTERN_TEMPERATURE_SHIFT.get(pattern, 0)

        shift = PATTERN_PRECIP_SHIFT.get(pattern, 0.0)
        if shift > 0 and weather.is_precipitating:
            weather.precipitation_intensity = min(1.0, weather.precipitation_intensity + shift)
        elif shift < 0:
            weather.precipitation_intensity = max(0.0, weather.precipitation_intensity + shift)
            if weather.precipitation_intensity < MIN_PRECIP_INTENSITY:
                weather.precipitation = "none"
                weather.precipitation_intensity = 0.0

        if pattern == "storm_season" and self._rng.chance(STORM_SEASON_WIND_CHANCE):
            weather.wind_speed += self._rng.int(*STORM_SEASON_WIND_BOOST)

    # ------------------------------------------------------------------
    # Base weather
    # ------------------------------------------------------------------

    def _base_weather(self) -> Weather:
        season = self.state.season
        date = self.state.date
        lo, hi, _ = temperature_range(season)
        trend = math.sin(day_of_year(date) / 365 * 2 * math.pi) * seasonal_trend(season)
        temperature = int(round(self._rng.int(lo, hi) + self._rng.int(-5, 5) + trend))

        precipitation = "none"
        intensity = 0.0
        if self._rng.chance(precipitation_chance(season)):
            precipitation = self._rng.weighted_choice(precipitation_types(season))
            intensity = self._rng.float(*PRECIP_INTENSITY_RANGE)

        wind_speed = self._rng.int(*WIND_BASE_RANGE)
        wind_direction = self._rng.choice(WIND_DIRECTIONS)

        precipitating = precipitation != "none"
        cloud_cover = self._rng.float(0.7, 1.0) if precipitating else self._rng.float(0.0, 0.6)

        humidity = base_humidity(season)
        if precipitating:
            humidity += 0.3
        if temperature > 25:
            humidity -= 0.1
        if temperature < 0:
            humidity -= 0.2
        humidity = max(0.1, min(1.0, humidity + self._rng.float(-0.1, 0.1)))

        pressure = 30.0 - cloud_cover * 0.5
        if wind_speed > 20:
            pressure -= 0.3
        pressure += self._rng.float(-0.2, 0.2)

        conditions = {precipitation} if precipitating else set()
        return Weather(
            date=date,
            season=season,
            temperature=temperature,
            precipitation=precipitation,
            precipitation_intensity=intensity,
            wind_speed=wind_speed,
            wind_direction=wind_direction,
            cloud_cover=cloud_cover,
            humidity=humidity,
            pressure=pressure,
            dew_point=temperature - (1 - humidity) * 25,
            conditions=conditions,
        )

    def _derive_conditions(self, weather: Weather) -> None:
        visibility = 1.0
        if weather.is_precipitating:
            visibility -= weather.precipitation_intensity * 0.4
        tags = weather.conditions | {weather.precipitation}
        if "dust_storm" in tags:
            visibility = 0.2
        if "blizzard" in tags:
            visibility = 0.1
        if "fog" in tags:
            visibility = 0.3
        # Event mutations may already have lowered visibility
        weather.visibility = max(0.05, min(1.0, min(visibility, weather.visibility)))

        if weather.temperature < EXTREME_COLD_THRESHOLD:
            weather.hazards.add("extreme_cold")
        if weather.temperature > EXTREME_HEAT_THRESHOLD:
            weather.hazards.add("extreme_heat")
        if weather.wind_speed > DANGEROUS_WIND_THRESHOLD:
            weather.hazards.add("dangerous_winds")
        if weather.precipitation_intensity > SEVERE_PRECIP_THRESHOLD:
            weather.hazards.add("severe_precipitation")

    # ------------------------------------------------------------------
    # Extreme events
    # ------------------------------------------------------------------

    def _check_extreme_events(self, weather: Weather) -> None:
        season = self.state.season
        for event_type, (chance, seasons) in EXTREME_EVENTS.items():
            if seasons is not None and season not in seasons:
                continue
            if self._rng.chance(chance):
                self.trigger_extreme_event(event_type, weather)

        if (
            weather.temperature > 30
            and not weather.is_precipitating
            and weather.wind_speed > 20
            and self._rng.chance(WILDFIRE_TRIGGER_CHANCE)
        ):
            self.trigger_extreme_event("wildfire", weather)

        if (
            weather.precipitation == "heavy_rain"
            and weather.precipitation_intensity > 0.8
            and self._rng.chance(FLASH_FLOOD_TRIGGER_CHANCE)
        ):
            self.trigger_extreme_event("flash_flood", weather)

        if (
            weather.temperature > 20
            and weather.wind_speed > 25
            and weather.precipitation == "thunderstorm"
            and self._rng.chance(TORNADO_TRIGGER_CHANCE)
        ):
            self.trigger_extreme_event("tornado", weather)

        recent = list(self.state.weather_history)[-DROUGHT_LOOKBACK_DAYS:]
        if (
            len(recent) >= DROUGHT_LOOKBACK_DAYS
            and all(not w.is_precipitating for w in recent)
            and weather.temperature > 25
            and self._rng.chance(DROUGHT_TRIGGER_CHANCE)
        ):
            self.trigger_extreme_event("severe_drought", weather)

    def is_event_active(self, event_type: str) -> bool:
        return any(e.event_type == event_type and e.is_active for e in self.state.active_weather_events)

    def trigger_extreme_event(self, event_type: str, weather: Optional[Weather] = None) -> Optional[WeatherEvent]:
        """Start an extreme event. Returns None when one of that type is already active."""
        if self.is_event_active(event_type):
            return None
        weather = weather or self.state.weather
        lo, hi = EVENT_DURATIONS.get(event_type, (1, 1))
        duration = self._rng.int(lo, hi)
        event = WeatherEvent(
            event_type=event_type,
            start_date=self.state.date,
            duration=duration,
            intensity=self._rng.float(*EVENT_INTENSITY_RANGE),
            initial_duration=duration,
        )
        self.state.active_weather_events.append(event)
        self.extreme_event_count += 1

        if weather is not None:
            weather.conditions.add(event_type)
            weather.hazards.add(event_type)
            self._apply_immediate_effects(event, weather)
        self.log(f"EXTREME WEATHER: {event_type} has begun!")

        severity = 5 + round(event.intensity * 5)
        self.state.add_chronicle(
            EVENT_DESCRIPTIONS.get(event_type, f"Extreme weather: {event_type}"),
            "environmental",
            severity=severity,
            subtype="extreme_weather",
            weatherEvent=event_type,
            intensity=round(event.intensity, 3),
        )
        self.state.morale.adjust(-round(event.intensity * 20))
        self.state.morale.add_recent(f"{event_type} disaster")
        return event

    def _apply_immediate_effects(self, event: WeatherEvent, weather: Weather) -> None:
        i = event.intensity
        kind = event.event_type
        if kind == "tornado":
            weather.wind_speed = max(weather.wind_speed, int(60 + 40 * i))
            weather.visibility = 0.1
            weather.precipitation = "heavy_rain"
        elif kind == "wildfire":
            weather.temperature += int(round(10 * i))
            weather.visibility = 0.3
            weather.conditions.update({"smoke", "ash_fall"})
        elif kind == "severe_drought":
            weather.precipitation = "none"
            weather.precipitation_intensity = 0.0
            weather.humidity = max(0.1, weather.humidity - 0.4)
            weather.temperature += int(round(5 * i))
        elif kind == "dust_storm":
            weather.wind_speed = max(weather.wind_speed, 30)
            weather.visibility = 0.2
            weather.conditions.update({"dust", "sand"})
        elif kind == "hailstorm":
            weather.precipitation = "hail"
            weather.wind_speed += 15
            weather.temperature -= 5
        elif kind == "flash_flood":
            weather.precipitation = "torrential_rain"
            weather.precipitation_intensity = 1.0
            weather.conditions.update({"flooding", "debris_flow"})

    def update_active_events(self) -> None:
        """Age every active event; apply the effects of those still running."""
        self.expire_events()
        self.apply_active_events()

    def expire_events(self) -> None:
        """Take a day off every active event and drop those that have run out."""
        still_active: list[WeatherEvent] = []
        for event in self.state.active_weather_events:
            event.duration -= 1
            if event.duration <= 0:
                event.is_active = False
                self.log(f"{event.event_type} has ended after {event.initial_duration} days")
                continue
            still_active.append(event)
        self.state.active_weather_events = still_active

    def apply_active_events(self) -> None:
        """Apply each running event's effect table, including events that began today."""
        for event in self.state.active_weather_events:
            if event.event_type in WEATHER_EFFECTS:
                self.effects.apply(event.event_type, event.intensity)

    def _update_movement_restrictions(self) -> None:
        if not any(e.event_type in RESTRICTING_EVENTS for e in self.state.active_weather_events):
            self.state.movement_restrictions = {}

    # ------------------------------------------------------------------
    # Threshold effects
    # ------------------------------------------------------------------

    def _apply_temperature_effects(self, weather: Weather) -> None:
        if weather.temperature <= EXTREME_COLD_THRESHOLD:
            self.effects.apply("extreme_cold", 1.0, categories=("health", "resources", "work"))
        elif weather.temperature >= EXTREME_HEAT_THRESHOLD:
            self.effects.apply("extreme_heat", 1.0, categories=("health", "resources", "work"))

    def _apply_precipitation_effects(self, weather: Weather) -> None:
        if weather.is_precipitating and weather.precipitation in WEATHER_EFFECTS:
            self.effects.apply(weather.precipitation, weather.precipitation_intensity)

    # ------------------------------------------------------------------
    # Warnings
    # ------------------------------------------------------------------

    def update_warnings(self) -> list[dict]:
        weather = self.state.weather
        warnings: list[dict] = []
        if weather is None:
            self.state.weather_warnings = warnings
            return warnings

        if weather.temperature < -5:
            warnings.append({
                "type": "cold_warning",
                "message": f"Freezing temperatures ({weather.temperature}°C). Keep fires burning.",
                "severity": "warning",
            })
        if weather.temperature > 32:
            warnings.append({
                "type": "heat_warning",
                "message": f"Dangerous heat ({weather.temperature}°C). Limit outdoor work.",
                "severity": "warning",
            })
        if weather.wind_speed > DANGEROUS_WIND_THRESHOLD:
            warnings.append({
                "type": "wind_warning",
                "message": f"Dangerous winds ({weather.wind_speed} mph). Seek shelter.",
                "severity": "danger",
            })
        if weather.precipitation == "heavy_rain" and weather.precipitation_intensity > 0.7:
            warnings.append({
                "type": "flood_warning",
                "message": "Heavy rain may cause flooding in low areas.",
                "severity": "warning",
            })
        if weather.visibility < 0.5:
            warnings.append({
                "type": "visibility_warning",
                "message": "Poor visibility. Travel is hazardous.",
                "severity": "caution",
            })

        for warning in warnings:
            if warning["severity"] == "danger":
                self.log(f"WEATHER WARNING: {warning['message']}")
        self.state.weather_warnings = warnings
        return warnings

    # ------------------------------------------------------------------
    # Forecast and reports
    # ------------------------------------------------------------------

    def predict_weather(self, days_ahead: int = FORECAST_DAYS) -> list[dict]:
        """Forecast the next days. Reads state only; draws from a private stream."""
        current = self.state.weather
        if current is None:
            return []
        season = self.state.season
        _, _, avg = temperature_range(season)
        recent = list(self.state.weather_history)[-3:]
        wet_days = sum(1 for w in recent if w.is_precipitating)
        pattern = self.state.weather_pattern

        forecast: list[dict] = []
        for day in range(1, days_ahead + 1):
            expected_temp = current.temperature + (avg - current.temperature) * 0.3
            expected_temp += self._forecast_rng.int(-5, 5)

            precip = precipitation_chance(season)
            if wet_days == 0:
                precip += 0.2
            elif wet_days >= 2:
                precip -= 0.15
            precip = max(0.05, min(0.9, precip))

            forecast.append({
                "day": day,
                "date": (self.state.date + datetime.timedelta(days=day)).isoformat(),
                "confidence": round(max(0.3, 1 - 0.2 * day), 2),
                "expectedTemperature": int(round(expected_temp)),
                "precipitationChance": round(precip, 2),
                "expectedConditions": self._pattern_outlook(pattern, day),
            })
        return forecast

    @staticmethod
    def _pattern_outlook(pattern: PatternState, day: int) -> str:
        if pattern.days_remaining <= day:
            return "weather pattern may change"
        return {
            "rainy_period": "continued wet weather",
            "dry_spell": "continued dry weather",
            "storm_season": "stormy conditions likely",
            "hot_spell": "continued hot weather",
            "cold_snap": "continued cold weather",
        }.get(pattern.current_pattern, "stable conditions")

    def get_weather_summary(self) -> dict:
        weather = self.state.weather
        if weather is None:
            return {}
        return {
            "current": weather.as_dict(),
            "description": {
                "temperature": describe_temperature(weather.temperature),
                "precipitation": describe_precipitation(weather),
                "wind": describe_wind(weather.wind_speed),
                "visibility": describe_visibility(weather.visibility),
            },
            "activeEvents": [e.as_dict() for e in self.state.active_weather_events],
            "warnings": list(self.state.weather_warnings),
            "pattern": {
                "current": self.state.weather_pattern.current_pattern,
                "daysRemaining": self.state.weather_pattern.days_remaining,
            },
            "forecast": self.predict_weather(),
        }

    def climate_summary(self) -> dict:
        history = list(self.state.weather_history)
        avg = sum(w.temperature for w in history) / len(history) if history else 0.0
        return {
            "averageTemperature": round(avg, 1),
            "severeWeatherDays": sum(1 for w in history if w.hazards),
            "extremeEventsCount": self.extreme_event_count,
            "weatherPatterns": self.state.weather_pattern.current_pattern,
        }

    def export_weather_data(self) -> dict:
        return {
            "current": self.state.weather.as_dict() if self.state.weather else None,
            "history": [w.as_dict() for w in self.state.weather_history],
            "activeEvents": [e.as_dict() for e in self.state.active_weather_events],
            "pattern": {
                "current": self.state.weather_pattern.current_pattern,
                "daysRemaining": self.state.weather_pattern.days_remaining,
            },
            "log": [r.as_dict() for r in self.state.weather_log],
        }

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def log(self, message: str) -> None:
        from redrock_sim.simulation.state import LogRecord

        self.state.weather_log.append(LogRecord(self.state.date, None, message))
        if self._logger:
            self._logger.log("WEATHER", f"{format_date(self.state.date)}: {message}")


# ------------------------------------------------------------------
# Description helpers
# ------------------------------------------------------------------

def describe_temperature(temp: int) -> str:
    if temp <= -10:
        return "freezing"
    if temp <= 0:
        return "cold"
    if temp <= 10:
        return "cool"
    if temp <= 20:
        return "mild"
    if temp <= 30:
        return "warm"
    if temp < 35:
        return "hot"
    return "scorching"


def describe_precipitation(weather: Weather) -> str:
    if not weather.is_precipitating:
        return "clear skies"
    i = weather.precipitation_intensity
    strength = "light" if i < 0.4 else "moderate" if i < 0.7 else "heavy"
    return f"{strength} {weather.precipitation.replace('_', ' ')}"


def describe_wind(speed: int) -> str:
    if speed < 5:
        return "calm"
    if speed < 15:
        return "breezy"
    if speed < 25:
        return "windy"
    if speed <= 40:
        return "very windy"
    return "dangerous"


def describe_visibility(visibility: float) -> str:
    if visibility >= 0.8:
        return "excellent"
    if visibility >= 0.5:
        return "fair"
    if visibility >= 0.3:
        return "poor"
    return "near zero"
