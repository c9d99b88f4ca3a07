"""The single aggregate game state shared by the orchestrator and both engines."""

from __future__ import annotations

import datetime
from collections import deque
from dataclasses import asdict, dataclass, field
from typing import Optional

from redrock_sim.agents.settler import Character
from redrock_sim.core.clock import format_date, season_for
from redrock_sim.core.config import (
    INITIAL_MORALE,
    INITIAL_RESOURCES,
    RECENT_EVENTS_LIMIT,
    START_DATE,
    WEATHER_HISTORY_DAYS,
    WEATHER_LOG_LIMIT,
)
from redrock_sim.world.infrastructure import InfrastructureManager
from redrock_sim.world.resources import ResourcePool
from redrock_sim.world.weather import PatternState, Weather, WeatherEvent


@dataclass
class ChronicleEntry:
    """One line of the settlement's append-only chronicle."""

    date: datetime.date
    description: str
    entry_type: str
    participants: list[str] = field(default_factory=list)
    severity: Optional[int] = None
    data: dict = field(default_factory=dict)

    def as_dict(self) -> dict:
        entry = {
            "date": self.date.isoformat(),
            "description": self.description,
            "type": self.entry_type,
            "participants": list(self.participants),
        }
        if self.severity is not None:
            entry["severity"] = self.severity
        entry.update(self.data)
        return entry


@dataclass
class LogRecord:
    """Renderer-facing weather/medical log line."""

    date: datetime.date
    character: Optional[str]
    message: str

    def as_dict(self) -> dict:
        return {"date": self.date.isoformat(), "character": self.character, "message": self.message}


@dataclass
class Population:
    total: int = 0
    demographics: dict[str, int] = field(
        default_factory=lambda: {"children": 0, "adults": 0, "elderly": 0}
    )
    cultural_groups: dict[str, int] = field(default_factory=dict)

    def recount(self, characters: list[Character]) -> None:
        living = [c for c in characters if c.is_alive]
        self.total = len(living)
        self.demographics = {"children": 0, "adults": 0, "elderly": 0}
        self.cultural_groups = {}
        for c in living:
            self.demographics[c.age_group] += 1
            self.cultural_groups[c.culture] = self.cultural_groups.get(c.culture, 0) + 1

    def remove(self, character: Character) -> None:
        self.total = max(0, self.total - 1)
        group = character.age_group
        self.demographics[group] = max(0, self.demographics.get(group, 0) - 1)
        if self.cultural_groups.get(character.culture):
            self.cultural_groups[character.culture] -= 1

    def as_dict(self) -> dict:
        return {
            "total": self.total,
            "demographics": dict(self.demographics),
            "cultural_groups": dict(self.cultural_groups),
        }


@dataclass
class Morale:
    overall: float = float(INITIAL_MORALE)
    factors: dict[str, float] = field(default_factory=dict)
    recent_events: list[str] = field(default_factory=list)

    def adjust(self, delta: float) -> None:
        self.overall = max(0.0, min(100.0, self.overall + delta))

    def add_recent(self, event: str) -> None:
        self.recent_events.append(event)
        if len(self.recent_events) > RECENT_EVENTS_LIMIT:
            del self.recent_events[0]


class GameState:
    """Aggregate root for one session. Owned by the orchestrator, mutated in place by the engines."""

    def __init__(self, start_date: datetime.date = START_DATE) -> None:
        self.start_date = start_date
        self.date: datetime.date = start_date
        self.day: int = 1
        self.season: str = season_for(start_date)

        # Weather
        self.weather: Optional[Weather] = None
        self.weather_history: deque[Weather] = deque(maxlen=WEATHER_HISTORY_DAYS)
        self.active_weather_events: list[WeatherEvent] = []
        self.weather_pattern = PatternState()
        self.movement_restrictions: dict = {}
        self.weather_warnings: list[dict] = []

        # Settlement
        self.population = Population()
        self.characters: list[Character] = []
        self.resources = ResourcePool(INITIAL_RESOURCES)
        self.infrastructure = InfrastructureManager()
        self.economy: dict[str, float] = {}
        self.morale = Morale()
        self.medical_knowledge: int = 0

        # Narrative
        self.chronicle: list[ChronicleEntry] = []
        self.weather_log: deque[LogRecord] = deque(maxlen=WEATHER_LOG_LIMIT)
        self.medical_log: list[LogRecord] = []
        self.event_queue: list = []
        self.event_history: list = []

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def formatted_date(self) -> str:
        return format_date(self.date)

    def living(self) -> list[Character]:
        return [c for c in self.characters if c.is_alive]

    def find_character(self, character_id: str) -> Optional[Character]:
        for c in self.characters:
            if c.id == character_id:
                return c
        return None

    def count_background(self, background: str) -> int:
        return sum(1 for c in self.living() if c.background == background)

    # ------------------------------------------------------------------
    # Narrative sinks
    # ------------------------------------------------------------------

    def add_chronicle(
        self,
        description: str,
        entry_type: str,
        participants: Optional[list[str]] = None,
        severity: Optional[int] = None,
        **data,
    ) -> ChronicleEntry:
        entry = ChronicleEntry(
            date=self.date,
            description=description,
            entry_type=entry_type,
            participants=participants or [],
            severity=severity,
            data=data,
        )
        self.chronicle.append(entry)
        return entry

    def snapshot(self) -> dict:
        """Read-only summary for callers outside the engine."""
        return {
            "date": self.date.isoformat(),
            "day": self.day,
            "season": self.season,
            "weather": self.weather.as_dict() if self.weather else None,
            "population": self.population.as_dict(),
            "resources": self.resources.as_dict(),
            "buildings": [b.as_dict() for b in self.infrastructure.buildings],
            "defenses": asdict(self.infrastructure.defenses),
            "economy": {k: round(v, 2) for k, v in self.economy.items()},
            "morale": {
                "overall": round(self.morale.overall, 1),
                "recent_events": list(self.morale.recent_events),
            },
            "movement_restrictions": dict(self.movement_restrictions),
            "warnings": list(self.weather_warnings),
        }
