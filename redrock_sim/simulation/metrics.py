"""Data collection, survival scoring, and export."""

from __future__ import annotations

import csv
import os
from dataclasses import dataclass, field
from typing import Optional

from redrock_sim.core.config import (
    SCORE_CULTURE_CAP,
    SCORE_HEALTH_WEIGHT,
    SCORE_MORALE_WEIGHT,
    SCORE_PER_CULTURE,
    SCORE_POPULATION_CAP,
    SCORE_POPULATION_PER_HEAD,
    SCORE_RESOURCE_CAP,
    SCORE_RESOURCE_DIVISOR,
)


def survival_score(state: "GameState") -> int:  # noqa: F821
    """Final 0-100 score from population, stores, morale, health and cultural mix."""
    living = state.living()
    avg_health = sum(c.health for c in living) / len(living) if living else 0.0
    cultures = sum(1 for count in state.population.cultural_groups.values() if count > 0)

    score = (
        min(SCORE_POPULATION_CAP, state.population.total * SCORE_POPULATION_PER_HEAD)
        + min(SCORE_RESOURCE_CAP, state.resources.total() / SCORE_RESOURCE_DIVISOR)
        + state.morale.overall / 100 * SCORE_MORALE_WEIGHT
        + avg_health / 100 * SCORE_HEALTH_WEIGHT
        + min(SCORE_CULTURE_CAP, cultures * SCORE_PER_CULTURE)
    )
    return max(0, min(100, round(score)))


@dataclass
class DailySnapshot:
    """A snapshot of settlement state for one day."""

    day: int = 0
    date: str = ""
    population: int = 0
    deaths: int = 0
    avg_health: float = 0.0
    avg_mood: float = 0.0
    avg_energy: float = 0.0
    morale: float = 0.0
    temperature: int = 0
    precipitation: str = "none"
    food: int = 0
    water: int = 0
    medicine: int = 0
    money: int = 0
    sick_count: int = 0
    injured_count: int = 0
    active_outbreaks: int = 0
    active_weather_events: int = 0
    activity_counts: dict[str, int] = field(default_factory=dict)


class MetricsCollector:
    """Collects time-series data every day."""

    def __init__(self) -> None:
        self.snapshots: list[DailySnapshot] = []

    def collect_daily(
        self,
        state: "GameState",  # noqa: F821
        medical: "MedicalEngine",  # noqa: F821
        weather: "WeatherEngine",  # noqa: F821
        deaths: int = 0,
    ) -> DailySnapshot:
        """Collect all metrics for this day."""
        alive = state.living()
        n = len(alive)

        activity_counts: dict[str, int] = {}
        for c in alive:
            act = c.current_activity or "idle"
            activity_counts[act] = activity_counts.get(act, 0) + 1

        today = state.weather
        snapshot = DailySnapshot(
            day=state.day,
            date=state.date.isoformat(),
            population=state.population.total,
            deaths=deaths,
            avg_health=sum(c.health for c in alive) / max(1, n),
            avg_mood=sum(c.mood for c in alive) / max(1, n),
            avg_energy=sum(c.energy for c in alive) / max(1, n),
            morale=state.morale.overall,
            temperature=today.temperature if today else 0,
            precipitation=today.precipitation if today else "none",
            food=state.resources.get("food"),
            water=state.resources.get("water"),
            medicine=state.resources.get("medicine"),
            money=state.resources.get("money"),
            sick_count=sum(1 for c in alive if any(d.is_symptom_present for d in c.active_diseases)),
            injured_count=sum(1 for c in alive if c.active_injuries),
            active_outbreaks=len(medical.active_outbreaks()),
            active_weather_events=len(state.active_weather_events),
            activity_counts=activity_counts,
        )
        self.snapshots.append(snapshot)
        return snapshot

    @property
    def total_deaths(self) -> int:
        return sum(s.deaths for s in self.snapshots)

    @property
    def peak_outbreaks(self) -> int:
        return max((s.active_outbreaks for s in self.snapshots), default=0)

    def export_csv(self, filepath: str) -> None:
        """Export all snapshots to CSV."""
        os.makedirs(os.path.dirname(filepath) if os.path.dirname(filepath) else ".", exist_ok=True)
        with open(filepath, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow([
                "day", "date", "population", "deaths", "avg_health", "avg_mood",
                "avg_energy", "morale", "temperature", "precipitation", "food",
                "water", "medicine", "money", "sick", "injured", "outbreaks",
                "weather_events",
            ])
            for s in self.snapshots:
                writer.writerow([
                    s.day, s.date, s.population, s.deaths,
                    f"{s.avg_health:.1f}", f"{s.avg_mood:.1f}", f"{s.avg_energy:.1f}",
                    f"{s.morale:.1f}", s.temperature, s.precipitation,
                    s.food, s.water, s.medicine, s.money,
                    s.sick_count, s.injured_count, s.active_outbreaks,
                    s.active_weather_events,
                ])

    def summary_report(self, start_day: int = 0, end_day: Optional[int] = None) -> str:
        """Generate a human-readable summary of the simulation period."""
        relevant = [
            s for s in self.snapshots
            if s.day >= start_day and (end_day is None or s.day <= end_day)
        ]
        if not relevant:
            return "No data available for the specified period."

        first = relevant[0]
        last = relevant[-1]
        temps = [s.temperature for s in relevant]

        lines = [
            f"=== Settlement Summary: Day {first.day} to Day {last.day} ===",
            f"Period: {first.date} to {last.date} ({len(relevant)} days)",
            f"",
            f"Population: {first.population} -> {last.population}",
            f"  Total deaths: {sum(s.deaths for s in relevant)}",
            f"",
            f"Weather:",
            f"  Temperature range: {min(temps)} to {max(temps)} C",
            f"  Wet days: {sum(1 for s in relevant if s.precipitation != 'none')}",
            f"  Days under extreme weather: {sum(1 for s in relevant if s.active_weather_events)}",
            f"",
            f"Health:",
            f"  Peak sick: {max(s.sick_count for s in relevant)}",
            f"  Peak injured: {max(s.injured_count for s in relevant)}",
            f"  Days with an active outbreak: {sum(1 for s in relevant if s.active_outbreaks)}",
            f"",
            f"Final Metrics:",
            f"  Avg health: {last.avg_health:.1f}/100",
            f"  Avg mood: {last.avg_mood:.1f}/100",
            f"  Morale: {last.morale:.1f}/100",
            f"  Food: {last.food}  Water: {last.water}  Medicine: {last.medicine}  Money: {last.money}",
        ]

        if last.activity_counts:
            lines.append(f"")
            lines.append(f"Activity Distribution (final day):")
            total_acts = sum(last.activity_counts.values())
            for act, count in sorted(last.activity_counts.items(), key=lambda x: -x[1]):
                pct = count / max(1, total_acts) * 100
                lines.append(f"  {act}: {count} ({pct:.0f}%)")

        return "\n".join(lines)
