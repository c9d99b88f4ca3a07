"""Settlement resource pools."""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union

from redrock_sim.core.keys import lookup


class Resource(Enum):
    FOOD = "food"
    WATER = "water"
    WOOD = "wood"
    STONE = "stone"
    METAL = "metal"
    MEDICINE = "medicine"
    AMMUNITION = "ammunition"
    TOOLS = "tools"
    MONEY = "money"
    FIREWOOD = "firewood"
    WINTER_CLOTHING = "winter_clothing"
    STORM_SUPPLIES = "storm_supplies"
    MEDICAL_SUPPLIES = "medical_supplies"


ResourceKey = Union[Resource, str]


class ResourcePool:
    """Named integer pools that can never go negative.

    Every accessor takes either a ``Resource`` or its string name; unknown
    names raise ``UnknownKeyError``.
    """

    def __init__(self, initial: Optional[dict[str, int]] = None) -> None:
        self._amounts: dict[Resource, int] = {r: 0 for r in Resource}
        for key, amount in (initial or {}).items():
            self.set(key, amount)

    def get(self, resource: ResourceKey) -> int:
        return self._amounts[lookup(Resource, resource)]

    def set(self, resource: ResourceKey, amount: float) -> None:
        self._amounts[lookup(Resource, resource)] = max(0, int(amount))

    def add(self, resource: ResourceKey, amount: float) -> None:
        """Add (or, with a negative amount, remove) units; floors at zero."""
        key = lookup(Resource, resource)
        self._amounts[key] = max(0, self._amounts[key] + int(amount))

    def take(self, resource: ResourceKey, amount: float) -> int:
        """Remove up to *amount* units. Returns what was actually removed."""
        key = lookup(Resource, resource)
        amount = max(0, int(amount))
        taken = min(amount, self._amounts[key])
        self._amounts[key] -= taken
        return taken

    def total(self) -> int:
        return sum(self._amounts.values())

    def as_dict(self) -> dict[str, int]:
        return {r.value: amount for r, amount in self._amounts.items()}

    def __getitem__(self, resource: ResourceKey) -> int:
        return self.get(resource)
