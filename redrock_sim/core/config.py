"""All tunable constants for the Red Rock Territory simulation.

Every magic number in the codebase must reference this file or the static
tables that live beside the weather and medical code.
"""

import datetime

# =============================================================================
# TIME
# =============================================================================
START_DATE: datetime.date = datetime.date(1849, 3, 15)
MAX_STEPS: int = 365
DEFAULT_SIMULATION_SPEED_MS: int = 1000
MIN_SIMULATION_SPEED_MS: int = 1
STEP_TO_SEASON_MAX_DAYS: int = 365

# Month -> season
SEASON_BY_MONTH: dict[int, str] = {
    3: "spring", 4: "spring", 5: "spring",
    6: "summer", 7: "summer", 8: "summer",
    9: "fall", 10: "fall", 11: "fall",
    12: "winter", 1: "winter", 2: "winter",
}
SEASONS: list[str] = ["winter", "spring", "summer", "fall"]

# =============================================================================
# SETTLEMENT
# =============================================================================
INITIAL_POPULATION: int = 8
INITIAL_MORALE: int = 65
RECENT_EVENTS_LIMIT: int = 20

INITIAL_RESOURCES: dict[str, int] = {
    "food": 100,
    "water": 100,
    "wood": 50,
    "stone": 25,
    "metal": 10,
    "medicine": 20,
    "ammunition": 15,
    "tools": 30,
    "money": 200,
    # Weather preparedness stock
    "firewood": 50,
    "winter_clothing": 10,
    "storm_supplies": 20,
    "medical_supplies": 10,
}

# (name, type, capacity, condition)
INITIAL_BUILDINGS: list[tuple[str, str, int, int]] = [
    ("Main Hall", "community", 50, 100),
    ("Storage Shed", "storage", 200, 85),
    ("Well", "water", 100, 90),
]
STORM_CELLAR_MIN_BUILDINGS: int = 2
DOCS_OFFICE_MIN_POPULATION: int = 30

# Market price ranges per unit (low, high)
MARKET_PRICE_RANGES: dict[str, tuple[float, float]] = {
    "food": (0.5, 2.0),
    "water": (0.1, 0.5),
    "wood": (0.3, 1.5),
    "stone": (0.2, 1.0),
    "metal": (2.0, 8.0),
    "tools": (5.0, 20.0),
    "medicine": (3.0, 15.0),
    "ammunition": (1.0, 5.0),
    "luxury_goods": (10.0, 50.0),
}

# =============================================================================
# SETTLERS
# =============================================================================
CHILD_MAX_AGE: int = 18        # younger than this counts as a child
ELDER_MIN_AGE: int = 60        # older than this counts as elderly
SETTLER_AGE_RANGE: tuple[int, int] = (18, 65)
STAT_MIN: int = 0
STAT_MAX: int = 100
TRAIT_COUNT_RANGE: tuple[int, int] = (2, 4)
RESISTANCE_INIT_RANGE: tuple[float, float] = (0.7, 1.3)
SHELTER_PREFERENCES: list[str] = ["seeks_shelter_quickly", "weather_hardy", "average_tolerance"]

# Daily generic drift
ENERGY_DRIFT_RANGE: tuple[int, int] = (-5, 10)
ENERGY_DRIFT_FLOOR: int = 10
ACTIVITY_RESELECT_CHANCE: float = 0.3
SKILL_GAIN_CHANCE: float = 0.1
HEALTH_REGEN_CHANCE: float = 0.1

# =============================================================================
# WEATHER
# =============================================================================
WEATHER_HISTORY_DAYS: int = 30
WEATHER_LOG_LIMIT: int = 50
EXTREME_COLD_THRESHOLD: int = -10
EXTREME_HEAT_THRESHOLD: int = 35
DANGEROUS_WIND_THRESHOLD: int = 40
SEVERE_PRECIP_THRESHOLD: float = 0.8
FORECAST_DAYS: int = 3

# Resistance drift from outdoor exposure
COLD_ADAPT_AFTER_DAYS: int = 30
HEAT_ADAPT_AFTER_DAYS: int = 30
STORM_ADAPT_AFTER_DAYS: int = 20
TEMPERATURE_ADAPT_STEP: float = 0.01
STORM_ADAPT_STEP: float = 0.005
TEMPERATURE_RESISTANCE_CAP: float = 1.5
STORM_RESISTANCE_CAP: float = 1.4

# =============================================================================
# MEDICAL
# =============================================================================
OUTBREAK_MIN_CASES: int = 3
OUTBREAK_POPULATION_DIVISOR: int = 10      # 10% of population
OUTBREAK_END_FRACTION: float = 0.3
OUTBREAK_MORALE_HIT: int = 25
QUARANTINE_MORALE_HIT: int = 10
QUARANTINE_FOOD_COST: int = 10
QUARANTINE_EFFECTIVENESS: float = 0.6
DEATH_MORALE_HIT: int = 15
DEATH_CHRONICLE_SEVERITY: int = 8
OUTBREAK_CHRONICLE_SEVERITY: int = 9

INJURY_HEALTH_FACTOR: float = 20.0
INJURY_MOOD_FACTOR: float = 15.0
IMMEDIATE_INFECTION_FACTOR: float = 0.1
DAILY_INFECTION_FACTOR: float = 0.05
TREATED_HEAL_RATE: float = 0.05
UNTREATED_HEAL_RATE: float = 0.02
PAIN_DECAY_RATE: float = 0.01
TREATED_BLEEDING_DECAY: float = 0.02
TREATED_INFECTION_DECAY: float = 0.1
SEPSIS_THRESHOLD: float = 0.5
GANGRENE_THRESHOLD: float = 0.8
GANGRENE_CHANCE: float = 0.1
TETANUS_THRESHOLD: float = 0.3
TETANUS_CHANCE: float = 0.05
TRANSMISSION_FACTOR: float = 0.1
LARGE_POPULATION: int = 50
LARGE_POPULATION_SPREAD: float = 1.5
AMPUTATION_WINDOW_DAYS: int = 5
AMPUTATION_CONSIDER_CHANCE: float = 0.2
BEDREST_THRESHOLD: float = 0.8
BEDREST_ENERGY_CAP: int = 20
HOSPITAL_MIN_CONDITION: int = 50
DOCTOR_MIN_HEALTH: int = 50
NURSE_MIN_HEALTH: int = 30
SICK_RATIO_FACILITY_ALERT: float = 0.2

# Sanitation
BASE_SANITATION: float = 0.5
SANITATION_POPULATION_PENALTY: float = 0.3
SANITATION_BUILDING_BONUS: dict[str, float] = {
    "water": 0.2,
    "sanitation": 0.15,
    "waste_management": 0.25,
}
HEAVY_RAIN_SANITATION_PENALTY: float = 0.1
SANITATION_RANGE: tuple[float, float] = (0.1, 1.0)

# =============================================================================
# EVENTS
# =============================================================================
EVENT_CATEGORIES: list[str] = ["social", "economic", "environmental", "conflict"]
EVENT_CATEGORY_CHANCE: float = 0.3
EVENT_MIN_HEALTH: int = 20
EVENT_MIN_ENERGY: int = 10
FALLBACK_EVENT_COUNT: tuple[int, int] = (1, 3)

EPIDEMIC_CHANCE: float = 0.02
DISCOVERY_CHANCE: float = 0.01
ACCIDENT_CHANCE: float = 0.05
SUPPLY_EVENT_CHANCE: float = 0.03

# =============================================================================
# ECONOMY
# =============================================================================
FOOD_PER_PERSON: int = 2
WATER_PER_PERSON: int = 1
WOOD_PER_PERSON_DIVISOR: int = 2
HEAVY_RAIN_WATER_GAIN: int = 10
COLD_SPOILAGE_THRESHOLD: int = -5
COLD_FOOD_SPOILAGE: int = 2
METAL_FIND_CHANCE: float = 0.1
PRICE_SCARCITY_BUMP: float = 0.1
PRICE_GLUT_DROP: float = 0.05
PRICE_NOISE: float = 0.05
PRICE_FLOOR: float = 0.1

# =============================================================================
# SCORING
# =============================================================================
SCORE_POPULATION_CAP: float = 30.0
SCORE_POPULATION_PER_HEAD: float = 3.0
SCORE_RESOURCE_CAP: float = 25.0
SCORE_RESOURCE_DIVISOR: float = 20.0
SCORE_MORALE_WEIGHT: float = 20.0
SCORE_HEALTH_WEIGHT: float = 15.0
SCORE_CULTURE_CAP: float = 10.0
SCORE_PER_CULTURE: float = 2.0

# =============================================================================
# DASHBOARD
# =============================================================================
DASHBOARD_UPDATE_INTERVAL: int = 5  # update every N simulated days
