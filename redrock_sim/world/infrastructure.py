"""Settlement buildings and defenses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from redrock_sim.core.config import INITIAL_BUILDINGS


@dataclass
class Building:
    """A building in the settlement."""

    name: str
    building_type: str   # "community", "storage", "water", "shelter", "medical", "hospital", ...
    capacity: int = 0
    condition: float = 100.0   # 0-100, removed at 0
    special: Optional[str] = None

    def as_dict(self) -> dict:
        data = {
            "name": self.name,
            "type": self.building_type,
            "capacity": self.capacity,
            "condition": round(self.condition, 1),
        }
        if self.special:
            data["special"] = self.special
        return data


@dataclass
class Defenses:
    walls: bool = False
    watchtowers: int = 0
    armed_guards: int = 0


class InfrastructureManager:
    """Manages all settlement buildings."""

    def __init__(self) -> None:
        self._buildings: list[Building] = []
        self.defenses = Defenses()

    @property
    def buildings(self) -> list[Building]:
        return list(self._buildings)

    def add(self, building: Building) -> None:
        self._buildings.append(building)

    def remove(self, building: Building) -> None:
        self._buildings = [b for b in self._buildings if b is not building]

    def find_by_type(self, building_type: str) -> list[Building]:
        return [b for b in self._buildings if b.building_type == building_type]

    def has_type(self, building_type: str, min_condition: float = 0.0) -> bool:
        return any(
            b.building_type == building_type and b.condition > min_condition
            for b in self._buildings
        )

    def has_special(self, special: str) -> bool:
        return any(b.special == special for b in self._buildings)

    def damage(self, building: Building, amount: float) -> bool:
        """Reduce condition. Removes the building and returns True when it is destroyed."""
        building.condition = max(0.0, building.condition - amount)
        if building.condition <= 0:
            self.remove(building)
            return True
        return False

    def create_starting_buildings(self) -> None:
        for name, building_type, capacity, condition in INITIAL_BUILDINGS:
            self.add(Building(name, building_type, capacity, condition))

    def __len__(self) -> int:
        return len(self._buildings)
