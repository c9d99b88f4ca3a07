"""Startup data tables (names, backgrounds, event templates, locations) with built-in fallbacks."""

from __future__ import annotations

import json
import os
from typing import Optional

from redrock_sim.core.rng import RandomSource

# =============================================================================
# Built-in fallback tables
# =============================================================================

FALLBACK_NAMES: dict = {
    "male": ["John", "James", "William", "Charles", "Joseph", "Henry", "Robert", "Samuel"],
    "female": ["Mary", "Elizabeth", "Sarah", "Margaret", "Anna", "Martha", "Catherine", "Emma"],
    "surnames": ["Smith", "Johnson", "Brown", "Davis", "Miller", "Wilson", "Moore", "Taylor"],
    "cultures": {
        "anglo-american": {"weight": 0.6, "surnames": ["Smith", "Johnson", "Brown"]},
        "irish": {"weight": 0.15, "surnames": ["O'Brien", "Murphy", "Kelly"]},
        "german": {"weight": 0.1, "surnames": ["Mueller", "Schmidt", "Weber"]},
        "mexican": {"weight": 0.1, "surnames": ["Garcia", "Martinez", "Rodriguez"]},
        "chinese": {"weight": 0.03, "surnames": ["Chen", "Wang", "Li"]},
        "native-american": {"weight": 0.02, "surnames": ["Running Bear", "Sky Walker"]},
    },
}

FALLBACK_BACKGROUNDS: list[dict] = [
    {
        "name": "Farmer",
        "base_skills": {"agriculture": 20, "construction": 10},
        "starting_resources": ["tools", "food"],
        "daily_activities": ["farming", "tending crops"],
    },
    {
        "name": "Prospector",
        "base_skills": {"mining": 20, "survival": 15},
        "starting_resources": ["tools", "gold"],
        "daily_activities": ["mining", "prospecting"],
    },
    {
        "name": "Merchant",
        "base_skills": {"social": 20, "leadership": 10},
        "starting_resources": ["money", "goods"],
        "daily_activities": ["trading", "negotiating"],
    },
    {
        "name": "Carpenter",
        "base_skills": {"construction": 20},
        "starting_resources": ["tools", "wood"],
        "daily_activities": ["woodworking", "construction"],
    },
    {
        "name": "Hunter",
        "base_skills": {"hunting": 20, "tracking": 15},
        "starting_resources": ["ammunition", "food"],
        "daily_activities": ["hunting", "tracking", "scouting"],
    },
    {
        "name": "Doctor",
        "base_skills": {"medical": 30},
        "starting_resources": ["medicine"],
        "daily_activities": ["treating patients", "preparing medicine"],
    },
]

FALLBACK_EVENTS: dict = {
    "social": {
        "community": {
            "gatherings": [
                {
                    "template": "{character1} organized a community gathering at {location}",
                    "effects": [{"type": "mood", "target": "all", "modifier": 5}],
                    "requirements": {"population": 3},
                }
            ]
        }
    }
}

FALLBACK_LOCATIONS: list[str] = [
    "Red Rock Ravine", "Tobacco Town", "Bloodmarsh Bog", "Whiskey Creek",
    "the mining camp", "the settlement center", "the trading post", "the church",
    "the main hall", "near the well", "the outskirts", "the forest edge",
]

_TABLE_FILES: dict[str, str] = {
    "names": "names.json",
    "backgrounds": "backgrounds.json",
    "events": "events.json",
    "locations": "locations.json",
}

_FLATTEN_DEPTH: int = 3


def _valid_names(table: object) -> bool:
    return (
        isinstance(table, dict)
        and all(isinstance(table.get(k), list) and table.get(k) for k in ("male", "female", "surnames"))
    )


def _valid_backgrounds(table: object) -> bool:
    return (
        isinstance(table, list)
        and bool(table)
        and all(isinstance(b, dict) and isinstance(b.get("name"), str) for b in table)
    )


def _valid_events(table: object) -> bool:
    return isinstance(table, dict) and bool(table)


def _valid_locations(table: object) -> bool:
    return isinstance(table, list) and bool(table) and all(isinstance(x, str) for x in table)


_VALIDATORS = {
    "names": _valid_names,
    "backgrounds": _valid_backgrounds,
    "events": _valid_events,
    "locations": _valid_locations,
}

_FALLBACKS = {
    "names": FALLBACK_NAMES,
    "backgrounds": FALLBACK_BACKGROUNDS,
    "events": FALLBACK_EVENTS,
    "locations": FALLBACK_LOCATIONS,
}


def flatten_templates(node: object, depth: int = _FLATTEN_DEPTH) -> list[dict]:
    """Collect event templates from nested groups, up to *depth* levels."""
    if isinstance(node, list):
        return [t for t in node if isinstance(t, dict) and "template" in t]
    if isinstance(node, dict) and depth > 0:
        found: list[dict] = []
        for child in node.values():
            found.extend(flatten_templates(child, depth - 1))
        return found
    return []


class DataProvider:
    """Loads the four startup tables; any table that fails to load uses its fallback."""

    def __init__(self, data_dir: Optional[str] = None, logger: Optional["SimLogger"] = None) -> None:  # noqa: F821
        self.data_dir = data_dir
        self._logger = logger
        self.loaded_from_disk: dict[str, bool] = {}
        self.names: dict = FALLBACK_NAMES
        self.backgrounds: list[dict] = FALLBACK_BACKGROUNDS
        self.events: dict = FALLBACK_EVENTS
        self.locations: list[str] = FALLBACK_LOCATIONS
        self._load_all()

    def _load_all(self) -> None:
        for table, filename in _TABLE_FILES.items():
            data = self._load_table(table, filename)
            setattr(self, table, data)

    def _load_table(self, table: str, filename: str):
        if self.data_dir:
            path = os.path.join(self.data_dir, filename)
            try:
                with open(path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                self._debug(f"Using built-in {table} table ({e.__class__.__name__}: {path})")
            else:
                if _VALIDATORS[table](data):
                    self.loaded_from_disk[table] = True
                    return data
                self._debug(f"Using built-in {table} table (malformed {path})")
        self.loaded_from_disk[table] = False
        return _FALLBACKS[table]

    def _debug(self, message: str) -> None:
        if self._logger:
            self._logger.log("DEBUG", message)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def random_culture(self, rng: RandomSource) -> str:
        cultures = self.names.get("cultures") or {}
        weights = {
            name: float(info.get("weight", 0.0))
            for name, info in cultures.items()
            if isinstance(info, dict)
        }
        if not weights:
            return "anglo-american"
        return rng.weighted_choice(weights)

    def random_name(self, gender: str, culture: Optional[str], rng: RandomSource) -> str:
        first_names = self.names.get(gender) or self.names.get("male") or ["Unknown"]
        surnames = self.names.get("surnames") or ["Smith"]
        cultures = self.names.get("cultures") or {}
        info = cultures.get(culture) if culture else None
        if isinstance(info, dict) and info.get("surnames"):
            surnames = info["surnames"]
        return f"{rng.choice(first_names)} {rng.choice(surnames)}"

    def random_event(self, category: str, rng: RandomSource) -> Optional[dict]:
        templates = flatten_templates(self.events.get(category))
        if not templates:
            return None
        return rng.choice(templates)

    def random_location(self, rng: RandomSource) -> str:
        return rng.choice(self.locations)
