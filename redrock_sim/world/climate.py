"""Seasonal climate, weather patterns, extreme events, and their effect tables."""

from __future__ import annotations

# Temperature ranges by season in degrees C: (min, max, average)
_TEMP_RANGES: dict[str, tuple[int, int, int]] = {
    "winter": (-15, 5, -5),
    "spring": (0, 20, 10),
    "summer": (15, 40, 27),
    "fall": (-5, 15, 5),
}

# Amplitude of the day-of-year sinusoid added to the base temperature
_SEASONAL_TREND: dict[str, float] = {"winter": -3.0, "spring": 2.0, "summer": 4.0, "fall": -1.0}

# Chance of any precipitation, then type weights
_PRECIP_CHANCE: dict[str, float] = {"winter": 0.4, "spring": 0.35, "summer": 0.15, "fall": 0.25}
_PRECIP_TYPES: dict[str, dict[str, float]] = {
    "winter": {"light_snow": 0.4, "heavy_snow": 0.3, "blizzard": 0.2, "ice_storm": 0.1},
    "spring": {"light_rain": 0.4, "heavy_rain": 0.3, "thunderstorm": 0.2, "flash_flood": 0.1},
    "summer": {"thunderstorm": 0.4, "hailstorm": 0.2, "dust_storm": 0.2, "drought": 0.2},
    "fall": {"light_rain": 0.4, "heavy_rain": 0.3, "early_snow": 0.2, "fog": 0.1},
}

_BASE_HUMIDITY: dict[str, float] = {"winter": 0.3, "spring": 0.5, "summer": 0.3, "fall": 0.4}

WIND_BASE_RANGE: tuple[int, int] = (5, 25)
WIND_DIRECTIONS: list[str] = ["N", "NE", "E", "SE", "S", "SW", "W", "NW"]
PRECIP_INTENSITY_RANGE: tuple[float, float] = (0.3, 1.0)
MIN_PRECIP_INTENSITY: float = 0.1


def temperature_range(season: str) -> tuple[int, int, int]:
    return _TEMP_RANGES.get(season, _TEMP_RANGES["spring"])


def seasonal_trend(season: str) -> float:
    return _SEASONAL_TREND.get(season, 0.0)


def precipitation_chance(season: str) -> float:
    return _PRECIP_CHANCE.get(season, 0.25)


def precipitation_types(season: str) -> dict[str, float]:
    return _PRECIP_TYPES.get(season, _PRECIP_TYPES["spring"])


def base_humidity(season: str) -> float:
    return _BASE_HUMIDITY.get(season, 0.4)


# =============================================================================
# Weather patterns
# =============================================================================

# pattern -> (min days, max days)
PATTERN_DURATIONS: dict[str, tuple[int, int]] = {
    "normal": (10, 20),
    "hot_spell": (5, 15),
    "cold_snap": (3, 12),
    "rainy_period": (4, 10),
    "dry_spell": (7, 21),
    "storm_season": (5, 14),
}

PATTERN_TEMPERATURE_SHIFT: dict[str, int] = {"hot_spell": 8, "cold_snap": -12}
PATTERN_PRECIP_SHIFT: dict[str, float] = {"rainy_period": 0.4, "dry_spell": -0.6}
STORM_SEASON_WIND_CHANCE: float = 0.3
STORM_SEASON_WIND_BOOST: tuple[int, int] = (5, 15)


def pattern_weights(season: str) -> dict[str, float]:
    """Season-conditioned weights for choosing the next pattern."""
    return {
        "normal": 0.4,
        "hot_spell": {"summer": 0.2, "spring": 0.1}.get(season, 0.05),
        "cold_snap": {"winter": 0.2, "fall": 0.15}.get(season, 0.05),
        "rainy_period": {"spring": 0.2, "fall": 0.15}.get(season, 0.1),
        "dry_spell": {"summer": 0.25, "fall": 0.1}.get(season, 0.05),
        "storm_season": {"spring": 0.15, "summer": 0.1}.get(season, 0.05),
    }


# =============================================================================
# Extreme events
# =============================================================================

# event -> (daily chance, seasons or None for any season)
EXTREME_EVENTS: dict[str, tuple[float, tuple[str, ...] | None]] = {
    "tornado": (0.001, ("spring", "summer")),
    "wildfire": (0.002, ("summer", "fall")),
    "earthquake": (0.0005, None),
    "locust_swarm": (0.001, ("summer",)),
    "severe_drought": (0.005, ("summer",)),
    "killing_frost": (0.01, ("fall", "spring")),
}

# event -> (min days, max days)
EVENT_DURATIONS: dict[str, tuple[int, int]] = {
    "tornado": (1, 1),
    "wildfire": (3, 14),
    "earthquake": (1, 1),
    "locust_swarm": (5, 12),
    "severe_drought": (21, 60),
    "killing_frost": (1, 3),
    "flash_flood": (1, 3),
    "hailstorm": (1, 1),
    "dust_storm": (1, 3),
}

EVENT_INTENSITY_RANGE: tuple[float, float] = (0.5, 1.0)
DROUGHT_LOOKBACK_DAYS: int = 7

# Conditional trigger chances
WILDFIRE_TRIGGER_CHANCE: float = 0.05
FLASH_FLOOD_TRIGGER_CHANCE: float = 0.15
TORNADO_TRIGGER_CHANCE: float = 0.02
DROUGHT_TRIGGER_CHANCE: float = 0.08

# Events that keep movement restricted while active
RESTRICTING_EVENTS: set[str] = {"blizzard", "tornado", "dust_storm", "flash_flood"}

EVENT_DESCRIPTIONS: dict[str, str] = {
    "tornado": "A devastating tornado tore through the settlement",
    "wildfire": "A wildfire swept across the surrounding land",
    "earthquake": "The ground shook violently beneath the settlement",
    "locust_swarm": "A swarm of locusts descended on the fields",
    "severe_drought": "A severe drought gripped the territory",
    "killing_frost": "A killing frost blanketed the crops overnight",
    "flash_flood": "A flash flood roared through the low ground",
    "hailstorm": "A violent hailstorm battered the settlement",
    "dust_storm": "A choking dust storm rolled in from the plains",
}


# =============================================================================
# Effect tables: condition -> category -> effect -> coefficient
# =============================================================================
# Only health, resources, work, crops, livestock, buildings and movement are
# applied; the other categories are descriptive.

WEATHER_EFFECTS: dict[str, dict[str, dict]] = {
    "extreme_cold": {
        "health": {"frostbite_chance": 0.1, "hypothermia_chance": 0.05},
        "resources": {"wood_consumption": 3.0, "water_freezing": True},
        "work": {"outdoor_penalty": 0.7, "construction_impossible": True},
        "crops": {"damage_chance": 0.8, "death_chance": 0.3},
        "livestock": {"death_chance": 0.2, "milk_reduction": 0.6},
    },
    "extreme_heat": {
        "health": {"heatstroke_chance": 0.08, "dehydration_chance": 0.15},
        "resources": {"water_consumption": 2.5, "food_spoilage": 0.3},
        "work": {"outdoor_penalty": 0.5, "mining_dangerous": True},
        "crops": {"water_need": 2.0, "wilting_chance": 0.4},
        "livestock": {"stress": 1.8, "egg_production_down": 0.4},
    },
    "heavy_rain": {
        "movement": {"travel_speed": 0.3, "road_conditions": "muddy"},
        "construction": {"work_stoppage": True, "foundation_damage": 0.1},
        "health": {"disease_spread": 1.3, "respiratory_issues": 0.05},
        "resources": {"water_gain": 20, "wood_rot": 0.05},
        "crops": {"growth_boost": 1.2, "flood_damage": 0.2},
    },
    "blizzard": {
        "movement": {"travel_impossible": True, "isolation": True},
        "resources": {"food_consumption": 2.0, "wood_consumption": 4.0},
        "health": {"cold_injury_chance": 0.3, "cabin_fever": 0.1},
        "work": {"all_outdoor_stopped": True, "indoor_only": True},
        "buildings": {"roof_collapse_chance": 0.05, "heating_critical": True},
    },
    "drought": {
        "water": {"well_depletion": 0.8, "water_rationing": True},
        "crops": {"massive_failure": 0.9, "soil_degradation": True},
        "health": {"dehydration_risk": 0.2, "disease_concentration": 1.5},
        "fire": {"wildfire_risk": 0.3},
        "economy": {"food_prices": 3.0},
    },
    "flash_flood": {
        "buildings": {"foundation_damage": 0.4, "basement_flooding": 0.8},
        "resources": {"food_loss": 0.3, "equipment_damage": 0.2},
        "health": {"drowning_risk": 0.1, "waterborne_disease": 0.4},
        "infrastructure": {"bridge_damage": 0.6, "road_washout": 0.5},
        "population": {"displacement": True},
    },
    "hailstorm": {
        "crops": {"destruction_chance": 0.7, "harvest_loss": 0.8},
        "buildings": {"roof_damage": 0.3, "window_damage": 0.5},
        "health": {"injury_chance": 0.15, "head_trauma": 0.05},
        "livestock": {"injury_chance": 0.25, "panic_stampede": 0.1},
    },
    "dust_storm": {
        "health": {"respiratory_disease": 0.2, "eye_irritation": 0.8},
        "visibility": {"travel_dangerous": True, "accidents_likely": True},
        "movement": {"travel_dangerous": True},
        "equipment": {"machinery_damage": 0.1, "clogging": True},
        "crops": {"burial": 0.3, "soil_erosion": True},
    },
    "tornado": {
        "buildings": {"total_destruction": 0.6, "severe_damage": 0.9},
        "health": {"death_chance": 0.3, "severe_injury": 0.7},
        "resources": {"massive_loss": 0.8, "scattered_debris": True},
        "landscape": {"permanent_changes": True},
    },
    "wildfire": {
        "buildings": {"wooden_destruction": 0.9, "stone_damage": 0.3},
        "health": {"smoke_inhalation": 0.6, "burns": 0.4},
        "resources": {"fuel_consumed": 0.95, "metal_salvage": 0.2},
        "environment": {"forest_loss": True, "soil_sterilization": True},
        "wildlife": {"animal_displacement": True},
    },
}

APPLIED_CATEGORIES: tuple[str, ...] = (
    "health", "resources", "work", "crops", "livestock", "buildings", "movement",
)
