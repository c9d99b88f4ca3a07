"""Daily narrative events: generation from data templates, participants, and effect application."""

from __future__ import annotations

import datetime
import re
from dataclasses import dataclass, field
from typing import Optional

from redrock_sim.core.config import (
    EVENT_CATEGORIES,
    EVENT_CATEGORY_CHANCE,
    EVENT_MIN_ENERGY,
    EVENT_MIN_HEALTH,
    FALLBACK_EVENT_COUNT,
)
from redrock_sim.core.keys import UnknownKeyError
from redrock_sim.core.rng import RandomSource
from redrock_sim.world.infrastructure import Building

_PLACEHOLDER = re.compile(r"\{(\w+)\}")

_ORIGIN_CITIES = ["San Francisco", "Denver", "Santa Fe", "Fort Worth", "St. Louis"]

# placeholder -> backgrounds it draws a name from
_PROFESSION_PLACEHOLDERS: dict[str, tuple[str, ...]] = {
    "farmer1": ("Farmer",),
    "farmer2": ("Farmer",),
    "prospector": ("Prospector",),
    "miner": ("Prospector", "Miner"),
    "trader": ("Merchant",),
    "doctor": ("Doctor",),
    "preacher": ("Preacher",),
    "sheriff": ("Sheriff",),
    "blacksmith": ("Blacksmith",),
    "hunter": ("Hunter",),
}

_FALLBACK_DESCRIPTIONS: dict[str, str] = {
    "settler_conversation": "{character1} had a friendly chat with {character2}",
    "animal_sighting": "{character1} spotted wildlife near the settlement",
    "minor_discovery": "{character1} found useful materials while working",
    "skill_practice": "{character1} spent time improving their skills",
    "weather_change": "{character1} noticed the weather changing",
    "resource_find": "{character1} discovered some additional resources",
}


@dataclass
class EventEffect:
    """One effect of an event. ``target`` is "participants" or "all"."""

    effect_type: str
    target: str = "participants"
    modifier: float = 0
    resource: Optional[str] = None
    skill: Optional[str] = None
    data: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: dict) -> "EventEffect":
        known = {"type", "target", "modifier", "resource", "skill"}
        target = raw.get("target", "participants")
        if target == "community":
            target = "all"
        return cls(
            effect_type=str(raw.get("type", "")),
            target=target,
            modifier=raw.get("modifier", 0) or 0,
            resource=raw.get("resource"),
            skill=raw.get("skill"),
            data={k: v for k, v in raw.items() if k not in known},
        )


@dataclass
class Event:
    """A settlement event."""

    event_type: str   # "social", "economic", "environmental", "conflict", "general", "medical", "weather"
    description: str
    day: int
    date: datetime.date
    participants: list[str] = field(default_factory=list)   # character ids
    effects: list[EventEffect] = field(default_factory=list)
    severity: int = 1
    data: dict = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {
            "type": self.event_type,
            "description": self.description,
            "day": self.day,
            "date": self.date.isoformat(),
            "participants": list(self.participants),
            "severity": self.severity,
            "data": dict(self.data),
        }


class EventSystem:
    """Generates the daily candidate events and applies queued events to the state."""

    def __init__(self, rng: RandomSource, provider: "DataProvider") -> None:  # noqa: F821
        self._rng = rng
        self.provider = provider

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def generate_daily(self, state: "GameState") -> list[Event]:  # noqa: F821
        """Data-driven events per category, or 1-3 general events when none fire."""
        events: list[Event] = []
        for category in EVENT_CATEGORIES:
            if not self._rng.chance(EVENT_CATEGORY_CHANCE):
                continue
            template = self.provider.random_event(category, self._rng)
            if template:
                event = self.event_from_template(template, category, state)
                if event:
                    events.append(event)

        if not events:
            events.extend(self._fallback_events(state))
        return events

    def event_from_template(self, template: dict, category: str, state: "GameState") -> Optional[Event]:  # noqa: F821
        requirements = template.get("requirements") or {}
        min_pop = requirements.get("population")
        if min_pop and state.population.total < min_pop:
            return None
        seasons = requirements.get("season")
        if seasons and state.season not in seasons:
            return None

        participants = self.select_participants(state, int(template.get("participants", 1) or 1))
        if not participants:
            return None

        severity = template.get("severity") or self._rng.int(1, 5)
        return Event(
            event_type=category,
            description=self.render_template(str(template.get("template", "")), participants, state),
            day=state.day,
            date=state.date,
            participants=[c.id for c in participants],
            effects=[EventEffect.from_dict(e) for e in template.get("effects") or [] if isinstance(e, dict)],
            severity=int(severity),
        )

    def _fallback_events(self, state: "GameState") -> list[Event]:  # noqa: F821
        events: list[Event] = []
        for _ in range(self._rng.int(*FALLBACK_EVENT_COUNT)):
            kind = self._rng.choice(list(_FALLBACK_DESCRIPTIONS))
            participants = self.select_participants(state, 2 if "conversation" in kind else 1)
            if not participants:
                continue
            events.append(Event(
                event_type="general",
                description=self.render_template(_FALLBACK_DESCRIPTIONS[kind], participants, state),
                day=state.day,
                date=state.date,
                participants=[c.id for c in participants],
                severity=self._rng.int(1, 3),
                data={"kind": kind},
            ))
        return events

    def select_participants(self, state: "GameState", count: int) -> list["Character"]:  # noqa: F821
        """Up to *count* distinct living settlers fit enough to take part."""
        available = [
            c for c in state.living()
            if c.health > EVENT_MIN_HEALTH and c.energy > EVENT_MIN_ENERGY
        ]
        return self._rng.choices(available, count)

    def render_template(self, template: str, participants: list["Character"], state: "GameState") -> str:  # noqa: F821
        """Fill {placeholders}. Unknown placeholders are left as written."""
        rng = self._rng

        def replace(match: re.Match) -> str:
            key = match.group(1)
            if key.startswith("character"):
                suffix = key[len("character"):]
                index = int(suffix) - 1 if suffix.isdigit() else 0
                if 0 <= index < len(participants):
                    return participants[index].name
                return "another settler"
            if key == "location":
                return self.provider.random_location(rng)
            if key == "weather":
                return describe_weather(state.weather)
            if key == "season":
                return state.season
            if key in ("mother", "bride"):
                return self.provider.random_name("female", None, rng)
            if key in ("father", "groom"):
                return self.provider.random_name("male", None, rng)
            if key == "child_name":
                gender = rng.choice(["male", "female"])
                return self.provider.random_name(gender, self.provider.random_culture(rng), rng)
            if key == "gender":
                return rng.choice(["boy", "girl"])
            if key == "origin_city":
                return rng.choice(_ORIGIN_CITIES)
            if key in _PROFESSION_PLACEHOLDERS:
                return self._name_by_background(state, _PROFESSION_PLACEHOLDERS[key])
            if key in ("witness", "helper", "victim"):
                living = state.living()
                return rng.choice(living).name if living else "a passing stranger"
            return match.group(0)

        return _PLACEHOLDER.sub(replace, template)

    def _name_by_background(self, state: "GameState", backgrounds: tuple[str, ...]) -> str:  # noqa: F821
        matching = [c for c in state.living() if c.background in backgrounds]
        if matching:
            return self._rng.choice(matching).name
        living = state.living()
        return self._rng.choice(living).name if living else "a passing stranger"

    # ------------------------------------------------------------------
    # Application
    # ------------------------------------------------------------------

    def apply_events(
        self,
        events: list[Event],
        state: "GameState",  # noqa: F821
        medical: Optional["MedicalEngine"] = None,  # noqa: F821
        logger: Optional["SimLogger"] = None,  # noqa: F821
    ) -> None:
        """Apply every event's effects, then move the events to history."""
        for event in events:
            participants = [
                c for c in (state.find_character(cid) for cid in event.participants)
                if c is not None and c.is_alive
            ]
            for effect in event.effects:
                self._apply_effect(effect, event, participants, state, medical, logger)
        state.event_history.extend(events)

    def _apply_effect(
        self,
        effect: EventEffect,
        event: Event,
        participants: list["Character"],  # noqa: F821
        state: "GameState",  # noqa: F821
        medical: Optional["MedicalEngine"],  # noqa: F821
        logger: Optional["SimLogger"],  # noqa: F821
    ) -> None:
        targets = state.living() if effect.target == "all" else participants
        kind = effect.effect_type
        mod = effect.modifier

        if kind == "mood":
            for c in targets:
                c.mood += mod
        elif kind == "health":
            for c in targets:
                c.health += mod
        elif kind == "energy":
            for c in targets:
                c.energy += mod
        elif kind in ("resource", "weather_supplies", "medical_supplies"):
            resource = effect.resource or ("medicine" if kind == "medical_supplies" else None)
            try:
                state.resources.add(resource, mod)
            except UnknownKeyError:
                if logger:
                    logger.log("WARNING", f"Event '{event.description}' names unknown resource {resource!r}")
        elif kind == "skill":
            for c in targets:
                if effect.skill and not c.improve_skill_named(effect.skill, int(mod)) and logger:
                    logger.log("DEBUG", f"Unknown skill {effect.skill!r} in event effect")
        elif kind == "medical_knowledge":
            state.medical_knowledge += int(mod)
        elif kind == "facility":
            state.infrastructure.add(Building(
                name=effect.data.get("name", "New Building"),
                building_type=effect.data.get("building_type", "community"),
                capacity=int(effect.data.get("capacity", 0)),
                condition=float(effect.data.get("condition", 100)),
                special=effect.data.get("special"),
            ))
        elif kind == "weather_resistance":
            attr = effect.data.get("resistance", "cold")
            for c in targets:
                if hasattr(c.weather_resistance, attr):
                    setattr(c.weather_resistance, attr, getattr(c.weather_resistance, attr) + mod)
        elif kind == "injury" and medical:
            for c in targets:
                if not c.is_alive:
                    continue
                if not effect.data.get("injury_type"):
                    medical.generate_random_injury(c, effect.data.get("cause", "accident"))
                    continue
                try:
                    medical.add_injury(
                        c,
                        effect.data["injury_type"],
                        effect.data.get("body_part", "torso"),
                        effect.data.get("severity", 1.0),
                        effect.data.get("cause", event.event_type),
                    )
                except UnknownKeyError as e:
                    if logger:
                        logger.log("WARNING", f"Skipping injury effect: {e}")
        elif kind == "disease" and medical:
            for c in targets:
                if c.is_alive:
                    medical.add_disease(c, effect.data.get("disease", ""), effect.data.get("source", event.description))
        elif kind == "medical_treatment" and medical:
            tier = effect.data.get("treatment_tier") or effect.data.get("treatmentType")
            if not tier:
                return
            for c in targets:
                if c.is_alive and not medical.treat_most_severe(c, tier) and logger:
                    logger.log("DEBUG", f"No {tier} treatment given to {c.name}")
        elif logger:
            logger.log("DEBUG", f"Ignoring unknown event effect type {kind!r}")


def describe_weather(weather: Optional["Weather"]) -> str:  # noqa: F821
    """Short phrase for the {weather} placeholder."""
    if weather is None:
        return "fair weather"
    parts: list[str] = []
    if weather.temperature < 0:
        parts.append("freezing cold")
    elif weather.temperature < 10:
        parts.append("cold")
    elif weather.temperature > 30:
        parts.append("scorching heat")
    elif weather.temperature > 25:
        parts.append("warm")
    if weather.is_precipitating:
        parts.append(weather.precipitation.replace("_", " "))
    if weather.wind_speed > 25:
        parts.append("strong winds")
    return " and ".join(parts) if parts else "fair weather"
