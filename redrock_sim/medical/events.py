"""Medical events: daily per-settler risk rolls and the settlement-wide medical happenings.

Generators only build Event objects. Injuries and exposures happen when the
event queue is processed, through the injury/disease effect handlers.
"""

from __future__ import annotations

import math
from typing import Optional

from redrock_sim.core.config import (
    ACCIDENT_CHANCE,
    DISCOVERY_CHANCE,
    EPIDEMIC_CHANCE,
    FOOD_PER_PERSON,
    LARGE_POPULATION,
    SUPPLY_EVENT_CHANCE,
)
from redrock_sim.core.rng import RandomSource
from redrock_sim.medical.conditions import BODY_PART_WEIGHTS
from redrock_sim.simulation.events import Event, EventEffect

# activity -> (daily chance, cause)
ACTIVITY_RISKS: dict[str, tuple[float, str]] = {
    "mining": (0.05, "mining_accident"),
    "construction": (0.03, "construction_accident"),
    "woodworking": (0.02, "construction_accident"),
    "hunting": (0.04, "animal_attack"),
    "farming": (0.01, "accident"),
    "blacksmithing": (0.03, "accident"),
    "fighting": (0.15, "gunfight"),
}
DEFAULT_ACTIVITY_RISK: tuple[float, str] = (0.005, "accident")

EPIDEMIC_DISEASES = ["cholera", "influenza", "dysentery", "typhoid"]
EPIDEMIC_SOURCES = ["contaminated water supply", "sick traveler", "poor sanitation", "crowded conditions"]

_HERBS = ["willow bark", "echinacea", "sage", "mint"]
_HERB_CONDITIONS = ["fever", "pain", "infection", "digestive issues"]

# cause, description, injury types, severity multiplier
_ACCIDENTS: list[tuple[str, str, list[str], float]] = [
    ("mining_accident", "A cave-in at the mine trapped {character}, causing severe injuries",
     ["crush", "fracture", "cut"], 1.2),
    ("construction_accident", "{character} fell from scaffolding while building {building}",
     ["fracture", "bruise", "cut"], 1.0),
    ("animal_attack", "{character} was attacked by a {animal} while {activity}",
     ["laceration", "puncture", "bruise"], 1.1),
    ("fire_accident", "A fire broke out in {location}, injuring {character}",
     ["burn", "cut", "bruise"], 1.3),
]
_ACCIDENT_FILL: dict[str, list[str]] = {
    "building": ["the church", "a new house", "the trading post"],
    "animal": ["bear", "wolf", "wild boar", "rattlesnake"],
    "activity": ["hunting", "gathering firewood", "checking traps"],
    "location": ["the blacksmith shop", "the kitchen", "the barn"],
}

_SUPPLY_CITIES = ["San Francisco", "Denver", "Santa Fe", "St. Louis"]
SNAKE_OIL_EFFECTIVENESS = 0.5
SHORTAGE_MEDICINE_LOSS = 5


class MedicalRiskRoller:
    """Rolls each settler's daily accident and exposure risk. Results are queued for the next step."""

    def __init__(self, rng: RandomSource, medical: "MedicalEngine") -> None:  # noqa: F821
        self._rng = rng
        self.medical = medical

    def generate(self, state: "GameState") -> list[Event]:  # noqa: F821
        events: list[Event] = []
        for character in state.living():
            injury = self._activity_risk(character, state)
            if injury:
                events.append(injury)
            exposure = self._environmental_risk(character, state)
            if exposure:
                events.append(exposure)
        return events

    def _activity_risk(self, character, state) -> Optional[Event]:
        chance, cause = ACTIVITY_RISKS.get(character.current_activity, DEFAULT_ACTIVITY_RISK)
        if not self._rng.chance(chance):
            return None
        return Event(
            event_type="medical",
            description=f"{character.name} was injured while {character.current_activity}",
            day=state.day,
            date=state.date,
            participants=[character.id],
            effects=[EventEffect("injury", data={"cause": cause})],
            severity=4,
            data={"subtype": "injury", "cause": cause},
        )

    def environmental_risks(self, state) -> list[tuple[str, float, str]]:
        """(disease, chance, source) for every environmental risk that applies today."""
        risks: list[tuple[str, float, str]] = []
        if self.medical.calculate_sanitation_level() < 0.5:
            risks.append(("cholera", 0.02, "contaminated water"))
            risks.append(("dysentery", 0.015, "poor sanitation"))
        if state.season == "winter":
            risks.append(("influenza", 0.03, "cold weather"))
        population = state.population.total
        if population > LARGE_POPULATION:
            risks.append(("tuberculosis", 0.01, "overcrowding"))
        if state.resources.get("food") < population * FOOD_PER_PERSON:
            risks.append(("scurvy", 0.02, "poor nutrition"))
        return risks

    def _environmental_risk(self, character, state) -> Optional[Event]:
        risks = self.environmental_risks(state)
        if not risks:
            return None
        disease, chance, source = self._rng.choice(risks)
        if not self._rng.chance(chance):
            return None
        return Event(
            event_type="medical",
            description=f"{character.name} was exposed to {disease}",
            day=state.day,
            date=state.date,
            participants=[character.id],
            effects=[EventEffect("disease", data={"disease": disease, "source": source})],
            severity=5,
            data={"subtype": "disease_exposure", "disease": disease},
        )


class MedicalEventGenerator:
    """Epidemics, discoveries, accidents and supply news, rolled with the day's candidate events."""

    def __init__(self, rng: RandomSource) -> None:
        self._rng = rng

    def generate(self, state: "GameState") -> list[Event]:  # noqa: F821
        if not state.living():
            return []
        events: list[Event] = []
        for chance, build in (
            (EPIDEMIC_CHANCE, self.epidemic),
            (DISCOVERY_CHANCE, self.discovery),
            (ACCIDENT_CHANCE, self.accident),
            (SUPPLY_EVENT_CHANCE, self.supply),
        ):
            if self._rng.chance(chance):
                events.append(build(state))
        return events

    def epidemic(self, state) -> Event:
        rng = self._rng
        disease = rng.choice(EPIDEMIC_DISEASES)
        source = rng.choice(EPIDEMIC_SOURCES)
        count = rng.int(2, max(3, math.floor(state.population.total * 0.2)))
        exposed = rng.choices(state.living(), count)
        return Event(
            event_type="medical",
            description=f"A {disease} outbreak has begun, affecting {len(exposed)} settlers due to {source}",
            day=state.day,
            date=state.date,
            participants=[c.id for c in exposed],
            effects=[
                EventEffect("disease", data={"disease": disease, "source": source}),
                EventEffect("mood", target="all", modifier=-20),
                EventEffect("resource", resource="medicine", modifier=-len(exposed) * 2),
            ],
            severity=8,
            data={"subtype": "epidemic", "disease": disease, "source": source},
        )

    def discovery(self, state) -> Event:
        rng = self._rng
        character = rng.choice(state.living())
        kind = rng.choice(["herbal_remedy", "supply_cache", "healing_spring"])
        if kind == "herbal_remedy":
            description = (
                f"{character.name} discovered that local {rng.choice(_HERBS)} "
                f"helps treat {rng.choice(_HERB_CONDITIONS)}"
            )
            effect = EventEffect("medical_knowledge", modifier=10)
        elif kind == "supply_cache":
            description = f"{character.name} found abandoned medical supplies in an old cabin"
            effect = EventEffect("resource", resource="medicine", modifier=15)
        else:
            description = f"{character.name} discovered a natural spring with apparent healing properties"
            effect = EventEffect("facility", data={
                "name": "Healing Spring",
                "building_type": "medical",
                "condition": 100,
                "special": "natural_healing",
            })
        return Event(
            event_type="discovery",
            description=description,
            day=state.day,
            date=state.date,
            participants=[character.id],
            effects=[effect],
            severity=4,
            data={"subtype": kind},
        )

    def accident(self, state) -> Event:
        rng = self._rng
        cause, template, injury_types, multiplier = rng.choice(_ACCIDENTS)
        character = rng.choice(state.living())
        fill = {key: rng.choice(options) for key, options in _ACCIDENT_FILL.items()}
        injury = {
            "injury_type": rng.choice(injury_types),
            "body_part": rng.weighted_choice(BODY_PART_WEIGHTS).value,
            "severity": min(1.5, rng.float(0.5, 1.0) * multiplier),
            "cause": cause,
        }
        return Event(
            event_type="accident",
            description=template.format(character=character.name, **fill),
            day=state.day,
            date=state.date,
            participants=[character.id],
            effects=[
                EventEffect("injury", data=injury),
                EventEffect("mood", target="all", modifier=-5),
            ],
            severity=math.floor(multiplier * 5),
            data={"subtype": cause},
        )

    def supply(self, state) -> Event:
        rng = self._rng
        kind = rng.choice(["caravan_arrival", "supply_shortage", "snake_oil_salesman"])
        effects: list[EventEffect] = []
        if kind == "caravan_arrival":
            description = f"A medicine wagon arrived with supplies from {rng.choice(_SUPPLY_CITIES)}"
            effects.append(EventEffect("resource", resource="medicine", modifier=rng.int(10, 25)))
            effects.append(EventEffect("resource", resource="money", modifier=-rng.int(20, 50)))
        elif kind == "supply_shortage":
            description = "Medical supplies are running dangerously low in the settlement"
            effects.append(EventEffect("resource", resource="medicine", modifier=-SHORTAGE_MEDICINE_LOSS))
        else:
            description = "A traveling salesman claims to have miracle cures"
            gain = math.floor(rng.int(5, 15) * SNAKE_OIL_EFFECTIVENESS)
            effects.append(EventEffect("resource", resource="medicine", modifier=gain))
            effects.append(EventEffect("resource", resource="money", modifier=-rng.int(30, 60)))
        return Event(
            event_type="economic",
            description=description,
            day=state.day,
            date=state.date,
            effects=effects,
            severity=6 if kind == "supply_shortage" else 3,
            data={"subtype": kind},
        )
