"""Core settler class: stats, skills, medical and weather substate."""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from redrock_sim.core.clock import format_date
from redrock_sim.core.config import (
    CHILD_MAX_AGE,
    ELDER_MIN_AGE,
    RESISTANCE_INIT_RANGE,
    SETTLER_AGE_RANGE,
    SHELTER_PREFERENCES,
    START_DATE,
    STAT_MAX,
    STAT_MIN,
    TRAIT_COUNT_RANGE,
)
from redrock_sim.core.keys import UnknownKeyError, lookup
from redrock_sim.core.rng import RandomSource


class Skill(Enum):
    AGRICULTURE = "agriculture"
    CONSTRUCTION = "construction"
    HUNTING = "hunting"
    SOCIAL = "social"
    TRADING = "trading"
    MEDICAL = "medical"
    LEADERSHIP = "leadership"
    MINING = "mining"
    SURVIVAL = "survival"
    METALWORK = "metalwork"
    TRACKING = "tracking"
    GUNFIGHTING = "gunfighting"
    ENTERTAINMENT = "entertainment"


# Starting skill ranges
_SKILL_RANGES: dict[Skill, tuple[int, int]] = {
    Skill.AGRICULTURE: (20, 50),
    Skill.CONSTRUCTION: (20, 50),
    Skill.HUNTING: (20, 50),
    Skill.SOCIAL: (20, 50),
    Skill.TRADING: (20, 50),
    Skill.MEDICAL: (10, 30),
    Skill.LEADERSHIP: (10, 40),
    Skill.MINING: (10, 30),
    Skill.SURVIVAL: (20, 50),
    Skill.METALWORK: (10, 30),
    Skill.TRACKING: (10, 30),
    Skill.GUNFIGHTING: (10, 30),
    Skill.ENTERTAINMENT: (10, 30),
}

ALL_TRAITS: list[str] = [
    "hardworking", "optimistic", "cautious", "brave", "sociable",
    "independent", "resourceful", "stubborn", "generous", "practical",
    "religious", "ambitious", "patient", "quick-tempered", "loyal",
]

# Background -> daily activities, used when the data provider has none
BACKGROUND_ACTIVITIES: dict[str, list[str]] = {
    "Farmer": ["farming", "tending crops", "preparing soil", "harvesting"],
    "Prospector": ["mining", "prospecting", "panning gold", "exploring"],
    "Merchant": ["trading", "negotiating", "inventory management", "customer relations"],
    "Carpenter": ["woodworking", "construction", "tool maintenance", "furniture making"],
    "Hunter": ["hunting", "tracking", "preparing meat", "scouting"],
    "Doctor": ["treating patients", "preparing medicine", "health inspections"],
    "Blacksmith": ["metalworking", "tool forging", "horseshoeing", "repairs"],
    "Preacher": ["leading services", "counseling", "community organizing"],
    "Sheriff": ["patrolling", "maintaining order", "investigating", "training"],
    "Saloon Keeper": ["serving customers", "entertainment", "managing establishment"],
    "Rancher": ["herding cattle", "maintaining fences", "breaking horses"],
    "Trapper": ["setting traps", "hunting game", "processing pelts"],
    "Scout": ["scouting routes", "gathering intelligence", "guiding travelers"],
    "Teacher": ["teaching children", "preparing lessons", "community lectures"],
}
DEFAULT_ACTIVITIES: list[str] = ["general work", "community tasks"]

# Activity -> skill that grows while doing it
ACTIVITY_SKILLS: dict[str, Skill] = {
    "farming": Skill.AGRICULTURE,
    "tending crops": Skill.AGRICULTURE,
    "construction": Skill.CONSTRUCTION,
    "woodworking": Skill.CONSTRUCTION,
    "hunting": Skill.HUNTING,
    "tracking": Skill.HUNTING,
    "setting traps": Skill.HUNTING,
    "mining": Skill.MINING,
    "prospecting": Skill.MINING,
    "trading": Skill.SOCIAL,
    "negotiating": Skill.SOCIAL,
    "teaching children": Skill.SOCIAL,
    "treating patients": Skill.MEDICAL,
    "preparing medicine": Skill.MEDICAL,
    "leading services": Skill.LEADERSHIP,
    "patrolling": Skill.LEADERSHIP,
    "metalworking": Skill.METALWORK,
    "tool forging": Skill.METALWORK,
    "herding cattle": Skill.SURVIVAL,
    "scouting routes": Skill.TRACKING,
}


def _clamp_stat(value: float) -> float:
    return float(max(STAT_MIN, min(STAT_MAX, value)))


@dataclass
class MedicalStatus:
    work_efficiency: float = 1.0
    mobility_efficiency: float = 1.0
    pain_level: float = 0.0
    requires_bedrest: bool = False
    needs_medical_attention: bool = False

    def as_dict(self) -> dict:
        return {
            "workEfficiency": round(self.work_efficiency, 3),
            "mobilityEfficiency": round(self.mobility_efficiency, 3),
            "painLevel": round(self.pain_level, 3),
            "requiresBedrest": self.requires_bedrest,
            "needsMedicalAttention": self.needs_medical_attention,
        }


@dataclass
class WeatherResistance:
    cold: float = 1.0
    heat: float = 1.0
    wet: float = 1.0
    wind: float = 1.0


@dataclass
class WeatherExperience:
    cold_days: int = 0
    hot_days: int = 0
    storm_days: int = 0
    total_exposure: int = 0


class Character:
    """A single settler. Stats are clamped to 0-100 on every write."""

    def __init__(
        self,
        character_id: str,
        name: str,
        age: int,
        gender: str,
        culture: str,
        background: str,
        health: float = 100.0,
        mood: float = 60.0,
        energy: float = 80.0,
    ) -> None:
        self.id = character_id
        self.name = name
        self.age = age
        self.gender = gender
        self.culture = culture
        self.background = background

        self._health = _clamp_stat(health)
        self._mood = _clamp_stat(mood)
        self._energy = _clamp_stat(energy)
        self.skills: dict[Skill, int] = {s: 0 for s in Skill}
        self.traits: list[str] = []
        self.inventory: dict[str, int] = {}
        self.daily_activities: list[str] = []
        self.current_activity: str = ""

        # Medical substate
        self.injuries: list["Injury"] = []  # noqa: F821
        self.diseases: list["Disease"] = []  # noqa: F821
        self.immunities: set["DiseaseName"] = set()  # noqa: F821
        self.medical_status = MedicalStatus()
        self.medical_history: list[dict] = []
        self.treatment_history: list[dict] = []
        self.amputations: list[dict] = []
        self.permanent_disabilities: list[str] = []

        # Weather substate
        self.weather_resistance = WeatherResistance()
        self.weather_experience = WeatherExperience()
        self.shelter_preference: str = "average_tolerance"

        # Lifecycle
        self.is_alive: bool = True
        self.cause_of_death: Optional[str] = None
        self.date_of_death: Optional[datetime.date] = None

        self.activity_history: list[dict] = []
        self.personal_history: list[str] = []

    # ------------------------------------------------------------------
    # Clamped stats
    # ------------------------------------------------------------------

    @property
    def health(self) -> float:
        return self._health

    @health.setter
    def health(self, value: float) -> None:
        self._health = _clamp_stat(value)

    @property
    def mood(self) -> float:
        return self._mood

    @mood.setter
    def mood(self, value: float) -> None:
        self._mood = _clamp_stat(value)

    @property
    def energy(self) -> float:
        return self._energy

    @energy.setter
    def energy(self, value: float) -> None:
        self._energy = _clamp_stat(value)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def age_group(self) -> str:
        if self.age < CHILD_MAX_AGE:
            return "children"
        if self.age > ELDER_MIN_AGE:
            return "elderly"
        return "adults"

    @property
    def active_injuries(self) -> list["Injury"]:  # noqa: F821
        return [i for i in self.injuries if not i.removed]

    @property
    def active_diseases(self) -> list["Disease"]:  # noqa: F821
        return [d for d in self.diseases if not d.removed]

    def has_trait(self, trait: str) -> bool:
        return trait in self.traits

    def skill(self, skill: Skill) -> int:
        return self.skills.get(skill, 0)

    def improve_skill(self, skill: Skill, amount: int = 1) -> None:
        self.skills[skill] = max(0, min(100, self.skills.get(skill, 0) + amount))

    def improve_skill_named(self, name: str, amount: int) -> bool:
        """Raise a skill given its data-table name. False when the name is unknown."""
        try:
            self.improve_skill(lookup(Skill, name), amount)
        except UnknownKeyError:
            return False
        return True

    def compact_conditions(self) -> None:
        """Drop injuries and diseases marked as removed during an update."""
        self.injuries = [i for i in self.injuries if not i.removed]
        self.diseases = [d for d in self.diseases if not d.removed]

    def final_stats(self) -> dict:
        return {
            "health": round(self.health),
            "mood": round(self.mood),
            "energy": round(self.energy),
            "skills": {s.value: v for s, v in self.skills.items()},
        }

    def __repr__(self) -> str:
        status = "alive" if self.is_alive else f"dead ({self.cause_of_death})"
        return f"Character({self.id}, {self.name}, {self.background}, {status})"


# ------------------------------------------------------------------
# Population generation
# ------------------------------------------------------------------

def generate_population(
    count: int,
    rng: RandomSource,
    provider: "DataProvider",  # noqa: F821
    start_date: datetime.date = START_DATE,
) -> list[Character]:
    """Create the founding roster."""
    characters: list[Character] = []
    backgrounds = provider.backgrounds

    for i in range(count):
        gender = "male" if rng.chance(0.5) else "female"
        culture = provider.random_culture(rng)
        background = rng.choice(backgrounds)
        character = Character(
            character_id=f"char_{i}",
            name=provider.random_name(gender, culture, rng),
            age=rng.int(*SETTLER_AGE_RANGE),
            gender=gender,
            culture=culture,
            background=background["name"],
            health=rng.int(70, 100),
            mood=rng.int(40, 80),
            energy=rng.int(60, 100),
        )

        for skill, (lo, hi) in _SKILL_RANGES.items():
            character.skills[skill] = rng.int(lo, hi)
        for skill_name, base in background.get("base_skills", {}).items():
            try:
                skill = lookup(Skill, skill_name)
            except UnknownKeyError:
                continue
            character.skills[skill] = max(0, min(100, base + rng.int(-10, 10)))

        n_traits = rng.int(*TRAIT_COUNT_RANGE)
        character.traits = rng.choices(ALL_TRAITS, n_traits)
        character.inventory = {
            "tools": rng.int(1, 3),
            "food": rng.int(3, 8),
            "money": rng.int(10, 50),
            "clothing": rng.int(2, 5),
            "personal_items": rng.int(1, 3),
        }
        character.daily_activities = list(background.get("daily_activities") or [])
        character.current_activity = select_daily_activity(character, rng)

        r_lo, r_hi = RESISTANCE_INIT_RANGE
        character.weather_resistance = WeatherResistance(
            cold=rng.float(r_lo, r_hi),
            heat=rng.float(r_lo, r_hi),
            wet=rng.float(r_lo, r_hi),
            wind=rng.float(r_lo, r_hi),
        )
        character.shelter_preference = rng.choice(SHELTER_PREFERENCES)
        character.personal_history.append(
            f"Arrived at Red Rock Territory on {format_date(start_date)}"
        )
        characters.append(character)

    return characters


def select_daily_activity(character: Character, rng: RandomSource) -> str:
    """Pick today's activity from the character's background."""
    activities = (
        character.daily_activities
        or BACKGROUND_ACTIVITIES.get(character.background)
        or DEFAULT_ACTIVITIES
    )
    return rng.choice(activities)
