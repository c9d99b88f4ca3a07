"""Main simulation loop: the daily tick cycle and the public control surface."""

from __future__ import annotations

import datetime
import json
import math
import os
import time
from typing import Callable, Optional

from redrock_sim.agents.settler import ACTIVITY_SKILLS, Skill, generate_population, select_daily_activity
from redrock_sim.core.clock import SimClock, format_date, is_valid_season
from redrock_sim.core.config import (
    ACTIVITY_RESELECT_CHANCE,
    COLD_FOOD_SPOILAGE,
    COLD_SPOILAGE_THRESHOLD,
    DEFAULT_SIMULATION_SPEED_MS,
    DOCS_OFFICE_MIN_POPULATION,
    ENERGY_DRIFT_FLOOR,
    ENERGY_DRIFT_RANGE,
    FOOD_PER_PERSON,
    HEALTH_REGEN_CHANCE,
    HEAVY_RAIN_WATER_GAIN,
    INITIAL_POPULATION,
    MARKET_PRICE_RANGES,
    MAX_STEPS,
    METAL_FIND_CHANCE,
    MIN_SIMULATION_SPEED_MS,
    PRICE_FLOOR,
    PRICE_GLUT_DROP,
    PRICE_NOISE,
    PRICE_SCARCITY_BUMP,
    SKILL_GAIN_CHANCE,
    START_DATE,
    STEP_TO_SEASON_MAX_DAYS,
    WATER_PER_PERSON,
    WOOD_PER_PERSON_DIVISOR,
)
from redrock_sim.core.keys import UnknownKeyError, lookup
from redrock_sim.core.rng import RandomSource
from redrock_sim.medical.engine import MedicalEngine
from redrock_sim.medical.events import MedicalEventGenerator, MedicalRiskRoller
from redrock_sim.simulation.data import DataProvider
from redrock_sim.simulation.events import Event, EventSystem
from redrock_sim.simulation.metrics import MetricsCollector, survival_score
from redrock_sim.simulation.state import GameState
from redrock_sim.viz.logger import SimLogger
from redrock_sim.world.exposure import WeatherNarrator, add_storm_cellar, apply_activity_effects
from redrock_sim.world.infrastructure import Building
from redrock_sim.world.resources import Resource
from redrock_sim.world.weather import WeatherEngine


class SimulationEngine:
    """Orchestrates the settlement: owns the game state, the weather engine and the medical engine."""

    def __init__(
        self,
        seed: Optional[int] = 42,
        population: int = INITIAL_POPULATION,
        data_dir: Optional[str] = None,
        logger: Optional[SimLogger] = None,
        start_date: datetime.date = START_DATE,
        rng: Optional[RandomSource] = None,
    ) -> None:
        self.rng = rng if rng is not None else RandomSource(seed)
        self._population_size = population

        self.clock = SimClock(start_date)
        self.state = GameState(start_date)
        self.logger = logger if logger is not None else SimLogger(verbosity=0, stdout=False)
        self.provider = DataProvider(data_dir, self.logger)

        # Subsystems
        self.medical = MedicalEngine(self.state, self.rng, self.logger)
        self.weather = WeatherEngine(self.state, self.rng, self.medical, self.logger)
        self.event_system = EventSystem(self.rng, self.provider)
        self.medical_events = MedicalEventGenerator(self.rng)
        self.risk_roller = MedicalRiskRoller(self.rng, self.medical)
        self.narrator = WeatherNarrator(self.rng, self.weather)
        self.metrics = MetricsCollector()

        # Control
        self.is_running: bool = False
        self.simulation_speed: int = DEFAULT_SIMULATION_SPEED_MS
        self.current_step: int = 0
        self.max_steps: int = MAX_STEPS
        self.final_score: Optional[int] = None
        self._initialized = False

        # Step callback (set externally, e.g. the dashboard)
        self._step_callback: Optional[Callable[["SimulationEngine"], None]] = None

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Found the settlement: settlers, buildings, prices and the first day's weather."""
        if self._initialized:
            return
        state = self.state
        self.logger.current_day = state.day

        state.characters = generate_population(
            self._population_size, self.rng, self.provider, self.clock.start_date,
        )
        state.population.recount(state.characters)

        state.infrastructure.create_starting_buildings()
        add_storm_cellar(state)
        if state.population.total > DOCS_OFFICE_MIN_POPULATION:
            state.infrastructure.add(Building("Doc's Office", "medical", capacity=10, condition=75))

        state.economy = {
            name: (lo + hi) / 2
            for name, (lo, hi) in MARKET_PRICE_RANGES.items()
            if self._is_pooled(name)
        }

        self.weather.generate_daily_weather(is_initial=True)

        state.add_chronicle(
            f"Red Rock Territory was founded by {state.population.total} settlers",
            "founding",
            participants=[c.name for c in state.characters],
        )
        self.logger.log(
            "LIFECYCLE",
            f"Settlement founded on {format_date(state.date)} with {state.population.total} settlers",
        )
        self._initialized = True

    def set_step_callback(self, callback: Optional[Callable[["SimulationEngine"], None]]) -> None:
        """Called after every step, e.g. for live dashboard updates."""
        self._step_callback = callback

    @staticmethod
    def _is_pooled(name: str) -> bool:
        try:
            lookup(Resource, name)
        except UnknownKeyError:
            return False
        return True

    # ------------------------------------------------------------------
    # Run control
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Enter Running and step in this thread until stop() or the final day."""
        if self.is_running:
            return
        self.initialize()
        self.is_running = True
        self.logger.log("LIFECYCLE", "Simulation started")
        try:
            while self.is_running:
                self.simulation_step()
                if self.is_running and self.simulation_speed > 0:
                    time.sleep(self.simulation_speed / 1000)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        if not self.is_running:
            return
        self.is_running = False
        self.logger.log("LIFECYCLE", "Simulation paused")

    def set_simulation_speed(self, speed_ms: int) -> None:
        self.simulation_speed = max(MIN_SIMULATION_SPEED_MS, int(speed_ms))

    def step_days(self, days: int) -> bool:
        """Advance *days* steps. Refused while Running."""
        if self.is_running:
            return False
        for _ in range(max(0, days)):
            self.simulation_step()
        return True

    def step_to_season(self, season: str) -> bool:
        """Step until *season* begins, at most a year. Refused for unknown seasons or while Running."""
        if self.is_running or not is_valid_season(season):
            return False
        target = season.lower()
        advanced = 0
        while self.state.season != target and advanced < STEP_TO_SEASON_MAX_DAYS:
            self.simulation_step()
            advanced += 1
        return True

    def step_to_day(self, day: int) -> bool:
        if self.is_running or day <= self.state.day:
            return False
        return self.step_days(day - self.state.day)

    # ------------------------------------------------------------------
    # Daily tick
    # ------------------------------------------------------------------

    def simulation_step(self) -> None:
        """One day of simulation."""
        self.initialize()
        state = self.state

        # 1. Advance time
        self.current_step += 1
        self.clock.advance()
        state.date = self.clock.date
        state.day = self.clock.day
        state.season = self.clock.season
        self.logger.current_day = state.day
        deaths_before = self.medical.deaths

        # 2. Weather
        self.weather.process_daily()

        # 3. Candidate events
        todays_events: list[Event] = self.event_system.generate_daily(state)
        todays_events.extend(self.medical_events.generate(state))
        todays_events.extend(self.narrator.generate(state))

        # 4. Event queue (risk events held over from yesterday first)
        queued = state.event_queue + todays_events
        state.event_queue = []
        self.event_system.apply_events(queued, state, self.medical, self.logger)
        for event in queued:
            self.logger.log("EVENT", event.description, character_ids=list(event.participants))

        # 5a. Weather exposure and activity overrides
        apply_activity_effects(state, self.weather.log)

        # 5b. Generic settler update
        for character in state.living():
            self._update_character(character)

        # 6. Medical progression; risk rolls wait for tomorrow's queue
        self.medical.update_medical_conditions()
        risk_events = self.risk_roller.generate(state)
        state.event_queue.extend(risk_events)

        # 8. Resources and economy
        self._process_resources()
        self._update_market_prices()

        # 9. Chronicle, metrics, termination
        for event in todays_events + risk_events:
            state.add_chronicle(
                event.description,
                event.event_type,
                participants=self._participant_names(event),
                severity=event.severity,
                **event.data,
            )
        self.metrics.collect_daily(
            state, self.medical, self.weather, deaths=self.medical.deaths - deaths_before,
        )
        self.logger.flush_day(state.day)

        if self.current_step >= self.max_steps:
            self._finish()

        if self._step_callback:
            self._step_callback(self)

    def _update_character(self, character) -> None:
        rng = self.rng
        lo, hi = ENERGY_DRIFT_RANGE
        character.energy = max(ENERGY_DRIFT_FLOOR, character.energy + rng.int(lo, hi))

        mood = 0
        if character.health < 30:
            mood -= 5
        if character.energy < 20:
            mood -= 3
        if self.state.weather is not None and self.state.weather.temperature < 0:
            mood -= 2
        if character.has_trait("optimistic"):
            mood += 2
        if character.has_trait("resilient"):
            mood += 1
        character.mood += mood

        if rng.chance(ACTIVITY_RESELECT_CHANCE):
            character.current_activity = select_daily_activity(character, rng)
            character.activity_history.append({
                "date": self.state.date.isoformat(),
                "activity": character.current_activity,
            })
            self.logger.log(
                "ACTIVITY", f"{character.name} is {character.current_activity}", character_ids=[character.id],
            )

        skill = ACTIVITY_SKILLS.get(character.current_activity)
        if skill is not None and rng.chance(SKILL_GAIN_CHANCE):
            character.improve_skill(skill, 1)

        if character.health < 100 and rng.chance(HEALTH_REGEN_CHANCE):
            character.health += 1

    def _process_resources(self) -> None:
        state = self.state
        resources = state.resources
        for character in state.living():
            background = character.background
            activity = character.current_activity
            if background == "Farmer" and activity == "farming":
                resources.add("food", math.floor(character.skill(Skill.AGRICULTURE) / 20))
            elif background == "Carpenter" and activity == "construction":
                resources.add("wood", math.floor(character.skill(Skill.CONSTRUCTION) / 25))
            elif background == "Merchant" and activity == "trading":
                resources.add("money", math.floor(character.skill(Skill.SOCIAL) / 30))
            elif background == "Prospector" and activity == "mining":
                resources.add("money", math.floor(character.skill(Skill.MINING) / 40))
                if self.rng.chance(METAL_FIND_CHANCE):
                    resources.add("metal", 1)

        population = state.population.total
        resources.take("food", population * FOOD_PER_PERSON)
        resources.take("water", population * WATER_PER_PERSON)
        resources.take("wood", population // WOOD_PER_PERSON_DIVISOR)

        weather = state.weather
        if weather is not None:
            if weather.precipitation == "heavy_rain":
                resources.add("water", HEAVY_RAIN_WATER_GAIN)
            if weather.temperature < COLD_SPOILAGE_THRESHOLD:
                resources.take("food", COLD_FOOD_SPOILAGE)

        self.logger.log("ECONOMY", f"Stores: {resources.as_dict()}")

    def _update_market_prices(self) -> None:
        population = self.state.population.total
        for name, price in self.state.economy.items():
            stock = self.state.resources.get(name)
            multiplier = 1.0
            if stock < population:
                multiplier += PRICE_SCARCITY_BUMP
            elif stock > population * 2:
                multiplier -= PRICE_GLUT_DROP
            multiplier += self.rng.float(-PRICE_NOISE, PRICE_NOISE)
            self.state.economy[name] = max(PRICE_FLOOR, price * multiplier)

    def _participant_names(self, event: Event) -> list[str]:
        names = []
        for cid in event.participants:
            character = self.state.find_character(cid)
            if character is not None:
                names.append(character.name)
        return names

    def _finish(self) -> None:
        if self.final_score is None:
            self.final_score = self.calculate_survival_score()
            self.logger.log("LIFECYCLE", self.final_report())
        self.is_running = False

    # ------------------------------------------------------------------
    # Scoring and reports
    # ------------------------------------------------------------------

    def calculate_survival_score(self) -> int:
        return survival_score(self.state)

    def final_report(self) -> str:
        state = self.state
        score = self.final_score if self.final_score is not None else self.calculate_survival_score()
        if score > 80:
            verdict = "Red Rock Territory thrived"
        elif score > 60:
            verdict = "The settlement grew and prospered"
        elif score > 40:
            verdict = "The settlement survived the challenges"
        else:
            verdict = "It was a difficult year, but the settlement endured"
        return "\n".join([
            f"=== Red Rock Territory: {format_date(self.clock.start_date)} to {state.formatted_date} ===",
            f"Population: {state.population.total} ({self.medical.deaths} deaths)",
            f"Morale: {state.morale.overall:.0f}/100",
            f"Chronicle entries: {len(state.chronicle)}",
            f"Extreme weather events: {self.weather.extreme_event_count}",
            f"Outbreaks: {len(self.medical.outbreaks)}",
            f"Survival score: {score}/100 - {verdict}",
        ])

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_game_state(self) -> dict:
        return self.state.snapshot()

    def get_chronicle(self) -> list[dict]:
        return [entry.as_dict() for entry in self.state.chronicle]

    def get_medical_report(self) -> dict:
        return self.medical.get_medical_status_report()

    def get_weather_report(self) -> dict:
        return self.weather.get_weather_summary()

    def get_weather_forecast(self, days_ahead: int = 3) -> list[dict]:
        return self.weather.predict_weather(days_ahead)

    def get_character_medical_details(self, character_id: str) -> Optional[dict]:
        character = self.state.find_character(character_id)
        if character is None:
            return None
        return self.medical.get_character_medical_details(character)

    def treat_character(self, character_id: str, condition_id: str, tier: str = "folk_remedy") -> bool:
        character = self.state.find_character(character_id)
        if character is None or not character.is_alive:
            return False
        return self.medical.provide_medical_treatment(character, condition_id, tier)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_chronicle(self) -> dict:
        state = self.state
        return {
            "title": "Red Rock Territory Chronicle",
            "period": {
                "start": format_date(self.clock.start_date),
                "end": state.formatted_date,
            },
            "population": state.population.as_dict(),
            "final_resources": state.resources.as_dict(),
            "events": self.get_chronicle(),
            "characters": [
                {
                    "name": c.name,
                    "background": c.background,
                    "culture": c.culture,
                    "final_stats": c.final_stats(),
                    "traits": list(c.traits),
                    "personal_history": list(c.personal_history),
                    "cause_of_death": c.cause_of_death,
                }
                for c in state.characters
            ],
            "survival_score": self.calculate_survival_score(),
            "weather_data": self.weather.export_weather_data(),
            "climate_summary": self.weather.climate_summary(),
            "medical_data": self.medical.export_medical_data(),
        }

    def export_chronicle_json(self, filepath: str) -> None:
        os.makedirs(os.path.dirname(filepath) if os.path.dirname(filepath) else ".", exist_ok=True)
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(self.export_chronicle(), f, indent=2, default=str)
