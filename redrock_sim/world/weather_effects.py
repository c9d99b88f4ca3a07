"""Applies a weather condition's effect table to the settlement, category by category."""

from __future__ import annotations

import math
from typing import Callable, Iterable, Optional

from redrock_sim.core.rng import RandomSource
from redrock_sim.medical.conditions import BODY_PART_WEIGHTS
from redrock_sim.world.climate import APPLIED_CATEGORIES, WEATHER_EFFECTS

# Activities that put a settler outside
OUTDOOR_ACTIVITIES: set[str] = {
    "farming", "tending crops", "preparing soil", "harvesting",
    "mining", "prospecting", "panning gold", "exploring",
    "construction", "building", "roofing", "woodworking",
    "hunting", "tracking", "scouting", "setting traps", "hunting game",
    "ranching", "herding cattle", "maintaining fences", "breaking horses",
    "patrolling", "scouting routes", "guiding travelers",
}

INDOOR_ACTIVITIES: set[str] = {
    "trading", "negotiating", "inventory management", "customer relations",
    "treating patients", "preparing medicine", "health inspections",
    "metalworking", "tool forging", "repairs", "tool maintenance", "furniture making",
    "leading services", "counseling", "serving customers", "entertainment",
    "managing establishment", "teaching children", "preparing lessons",
    "processing pelts", "preparing meat", "sheltering_indoors", "taking_shelter",
    "warming_by_fire", "resting_in_shade", "waiting_for_weather", "bedridden",
}

_PENALIZED_WORK: set[str] = {"farming", "construction", "mining", "hunting", "ranching"}
_HALTED_OUTDOOR: set[str] = {"farming", "construction", "mining", "hunting", "ranching", "prospecting"}

# crop effect -> share of the food store lost when the roll succeeds
_CROP_LOSSES: dict[str, float] = {
    "damage_chance": 0.2,
    "death_chance": 0.4,
    "destruction_chance": 0.8,
    "massive_failure": 0.9,
    "harvest_loss": 0.3,
    "burial": 0.2,
    "wilting_chance": 0.1,
    "flood_damage": 0.2,
}

# livestock effect -> share of the herd lost when the roll succeeds
_LIVESTOCK_LOSSES: dict[str, float] = {
    "death_chance": 0.2,
    "injury_chance": 0.1,
    "panic_stampede": 0.15,
}

_MASSIVE_LOSS_POOLS = ("food", "water", "wood", "stone", "metal", "tools", "medicine", "ammunition")


def is_outdoor(activity: str) -> bool:
    return activity in OUTDOOR_ACTIVITIES


def is_indoor(activity: str) -> bool:
    return activity in INDOOR_ACTIVITIES


class WeatherEffects:
    """Dispatches effect tables to the health/resources/work/crops/livestock/buildings/movement handlers."""

    def __init__(
        self,
        state: "GameState",  # noqa: F821
        rng: RandomSource,
        medical: Optional["MedicalEngine"],  # noqa: F821
        log: Callable[[str], None],
    ) -> None:
        self.state = state
        self._rng = rng
        self.medical = medical
        self._log = log

    def apply(self, condition: str, intensity: float, categories: Optional[Iterable[str]] = None) -> None:
        """Apply the effect table for *condition* at *intensity*. Unknown conditions are a no-op."""
        table = WEATHER_EFFECTS.get(condition)
        if not table:
            return
        wanted = tuple(categories) if categories is not None else APPLIED_CATEGORIES
        for category in wanted:
            effects = table.get(category)
            if not effects:
                continue
            handler = getattr(self, f"_apply_{category}", None)
            if handler is not None:
                handler(effects, intensity, condition)

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def _apply_health(self, effects: dict, i: float, condition: str) -> None:
        rng = self._rng
        for character in self.state.living():
            if not character.is_alive:
                continue
            for effect, value in effects.items():
                if not character.is_alive:
                    break
                if effect in ("disease_spread", "disease_concentration"):
                    self._accelerate_diseases(character)
                    continue
                if not isinstance(value, (int, float)) or isinstance(value, bool):
                    continue
                if not rng.chance(value * i):
                    continue
                self._health_effect(character, effect, i)

    def _health_effect(self, character, effect: str, i: float) -> None:
        medical = self.medical
        if effect == "frostbite_chance":
            if medical:
                medical.add_injury(character, "burn", self._random_limb(), i, "frostbite")
            self._log(f"{character.name} suffered frostbite")
        elif effect == "cold_injury_chance":
            if medical:
                medical.add_injury(character, "burn", self._random_limb(), i, "cold injury")
        elif effect == "hypothermia_chance":
            character.health -= 15 * i
            character.energy -= 20 * i
            self._log(f"{character.name} is suffering from hypothermia")
        elif effect == "heatstroke_chance":
            character.health -= 20 * i
            character.mood -= 10 * i
            self._log(f"{character.name} collapsed from heatstroke")
        elif effect in ("dehydration_chance", "dehydration_risk"):
            character.health -= 10 * i
            self.state.resources.take("water", 2)
        elif effect in ("respiratory_disease", "respiratory_issues"):
            if medical:
                medical.add_disease(character, "influenza", "weather exposure")
        elif effect == "waterborne_disease":
            if medical:
                medical.add_disease(character, "cholera", "contaminated flood water")
        elif effect == "cabin_fever":
            character.mood -= 10 * i
        elif effect == "injury_chance":
            if medical:
                medical.generate_random_injury(character, "accident")
        elif effect == "head_trauma":
            if medical:
                medical.add_injury(character, "bruise", "head", i, "hail")
        elif effect == "smoke_inhalation":
            character.health -= 10 * i
        elif effect == "burns":
            if medical:
                part = self._rng.weighted_choice(BODY_PART_WEIGHTS)
                medical.add_injury(character, "burn", part, i, "wildfire")
        elif effect == "drowning_risk":
            character.health -= 30 * i
            self._log(f"{character.name} nearly drowned in the flood")
        elif effect in ("death_chance", "severe_injury"):
            if medical:
                severity = 1.5 if effect == "death_chance" else 1.0
                part = "torso" if effect == "death_chance" else self._random_limb()
                medical.add_injury(character, "crush", part, severity * i, "tornado debris")

    def _accelerate_diseases(self, character) -> None:
        for disease in character.active_diseases:
            if disease.is_symptom_present:
                disease.duration_days_left = max(1, disease.duration_days_left - 1)

    def _random_limb(self) -> str:
        return self._rng.choice(["left_arm", "right_arm", "left_leg", "right_leg"])

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def _apply_resources(self, effects: dict, i: float, condition: str) -> None:
        pool = self.state.resources
        pop = self.state.population.total

        for effect, value in effects.items():
            if effect == "wood_consumption":
                pool.take("wood", math.floor(pop * value * i))
            elif effect == "water_consumption":
                pool.take("water", math.floor(pop * value * i))
            elif effect == "food_consumption":
                pool.take("food", math.floor(pop * value * i))
            elif effect == "water_gain":
                pool.add("water", math.floor(value * i))
            elif effect == "water_freezing":
                pool.take("water", math.floor(pool.get("water") * 0.3 * i))
            elif effect == "food_spoilage":
                lost = pool.take("food", math.floor(pool.get("food") * value * i))
                if lost:
                    self._log(f"{lost} food spoiled in the {condition.replace('_', ' ')}")
            elif effect == "food_loss":
                lost = pool.take("food", math.floor(pool.get("food") * value * i))
                if lost:
                    self._log(f"{lost} food was lost to the {condition.replace('_', ' ')}")
            elif effect == "equipment_damage":
                if self._rng.chance(value * i):
                    lost = pool.take("tools", math.floor(pool.get("tools") * 0.1 * i))
                    if lost:
                        self._log(f"{lost} tools were damaged")
            elif effect == "fuel_consumed":
                pool.take("wood", math.floor(pool.get("wood") * value * i))
            elif effect == "wood_rot":
                pool.take("wood", math.floor(pool.get("wood") * value * i))
            elif effect == "massive_loss":
                for name in _MASSIVE_LOSS_POOLS:
                    pool.take(name, math.floor(pool.get(name) * 0.1 * i))
                self._log("Supplies were scattered and lost")

    # ------------------------------------------------------------------
    # Work
    # ------------------------------------------------------------------

    def _apply_work(self, effects: dict, i: float, condition: str) -> None:
        for character in self.state.living():
            activity = character.current_activity
            if "outdoor_penalty" in effects and activity in _PENALIZED_WORK:
                penalty = effects["outdoor_penalty"]
                character.energy = max(10.0, character.energy * (1 - penalty * i))
            if effects.get("construction_impossible") and activity in ("construction", "building"):
                character.current_activity = "taking_shelter"
            if effects.get("all_outdoor_stopped") and activity in _HALTED_OUTDOOR:
                character.current_activity = "sheltering_indoors"
                character.mood -= 5
            if (
                effects.get("mining_dangerous")
                and character.current_activity == "mining"
                and self._rng.chance(0.1 * i)
                and self.medical
            ):
                self.medical.generate_random_injury(character, "heat_exhaustion_accident")

    # ------------------------------------------------------------------
    # Crops and livestock
    # ------------------------------------------------------------------

    def _apply_crops(self, effects: dict, i: float, condition: str) -> None:
        pool = self.state.resources
        food = pool.get("food")
        loss = 0
        for effect, share in _CROP_LOSSES.items():
            chance = effects.get(effect)
            if isinstance(chance, (int, float)) and self._rng.chance(chance * i):
                loss += math.floor(food * share * i)
        if loss:
            taken = pool.take("food", loss)
            self._log(f"Crops damaged by {condition.replace('_', ' ')}: {taken} food lost")

        boost = effects.get("growth_boost")
        if boost:
            farmers = sum(
                1 for c in self.state.living()
                if c.background == "Farmer" or c.current_activity == "farming"
            )
            pool.add("food", math.floor(farmers * boost * i))

    def _apply_livestock(self, effects: dict, i: float, condition: str) -> None:
        ranchers = [c for c in self.state.living() if c.background == "Rancher"]
        estimate = len(ranchers) * 10 + self.state.count_background("Farmer") * 3
        if estimate == 0:
            return

        loss = 0
        for effect, share in _LIVESTOCK_LOSSES.items():
            chance = effects.get(effect)
            if isinstance(chance, (int, float)) and self._rng.chance(chance):
                loss += math.floor(estimate * share * i)
                if effect == "panic_stampede" and ranchers and self.medical:
                    self.medical.generate_random_injury(self._rng.choice(ranchers), "animal_attack")
        if loss:
            self.state.resources.take("food", loss * 2)
            self.state.morale.adjust(-5)
            self._log(f"{loss} head of livestock lost to the {condition.replace('_', ' ')}")

        if "milk_reduction" in effects or "egg_production_down" in effects:
            self.state.resources.take("food", math.floor(estimate * 0.5 * i))

    # ------------------------------------------------------------------
    # Buildings
    # ------------------------------------------------------------------

    def _apply_buildings(self, effects: dict, i: float, condition: str) -> None:
        infra = self.state.infrastructure
        rng = self._rng
        for building in infra.buildings:
            damage = 0.0
            if rng.chance(effects.get("foundation_damage", 0)):
                damage += 30 * i
            if rng.chance(effects.get("roof_damage", 0)):
                damage += 20 * i
            if rng.chance(effects.get("roof_collapse_chance", 0)):
                damage += 60 * i
                self._injure_occupants(building)
            if rng.chance(effects.get("total_destruction", 0)):
                damage += 100
            if rng.chance(effects.get("severe_damage", 0)):
                damage += 50 * i
            if building.building_type != "stone" and rng.chance(effects.get("wooden_destruction", 0)):
                damage += 90
            if building.building_type == "stone" and rng.chance(effects.get("stone_damage", 0)):
                damage += 30 * i
            if rng.chance(effects.get("window_damage", 0)):
                damage += 5 * i
            if rng.chance(effects.get("basement_flooding", 0)):
                damage += 10 * i

            if damage and infra.damage(building, damage):
                self.state.morale.adjust(-10)
                self._log(f"The {building.name} was destroyed by the {condition.replace('_', ' ')}")

    def _injure_occupants(self, building) -> None:
        self._log(f"The roof of the {building.name} collapsed")
        if not self.medical:
            return
        for character in self.state.living():
            inside = is_indoor(character.current_activity) or self._rng.chance(0.3)
            if inside and self._rng.chance(0.4):
                self.medical.add_injury(
                    character,
                    self._rng.choice(["crush", "cut", "fracture"]),
                    self._rng.choice(["head", "torso", "left_arm", "right_arm"]),
                    1.2,
                    "building collapse",
                )

    # ------------------------------------------------------------------
    # Movement
    # ------------------------------------------------------------------

    def _apply_movement(self, effects: dict, i: float, condition: str) -> None:
        restrictions = self.state.movement_restrictions
        if effects.get("travel_impossible"):
            restrictions["travel_banned"] = True
            restrictions["isolation"] = True
        if "travel_speed" in effects:
            restrictions["speed_penalty"] = effects["travel_speed"]
        if "road_conditions" in effects:
            restrictions["road_condition"] = effects["road_conditions"]
        if effects.get("travel_dangerous"):
            restrictions["danger_level"] = "high"
            if not self.medical:
                return
            for character in self.state.living():
                activity = character.current_activity
                if ("travel" in activity or "scout" in activity) and self._rng.chance(0.15 * i):
                    self.medical.generate_random_injury(character, "travel_accident")
