"""Shared fixtures: scripted randomness, a small hand-built settlement, engines."""

import pytest

from redrock_sim.agents.settler import Character
from redrock_sim.core.rng import RandomSource
from redrock_sim.medical.engine import MedicalEngine
from redrock_sim.simulation.state import GameState


class ScriptedRandom(RandomSource):
    """RandomSource whose uniform draws come from a script, then a fixed default.

    A high default (0.99) makes every ``chance(p)`` with p < 0.99 fail; a
    default of 0.0 makes every ``chance(p)`` with p > 0 succeed.
    """

    def __init__(self, values=(), default: float = 0.99, seed: int = 0) -> None:
        super().__init__(seed)
        self.values = list(values)
        self.default = default

    def random(self) -> float:
        if self.values:
            return self.values.pop(0)
        return self.default


def make_character(
    index: int,
    background: str = "Farmer",
    activity: str = "trading",
    health: float = 100,
    culture: str = "anglo-american",
) -> Character:
    character = Character(
        character_id=f"char_{index}",
        name=f"Settler {index}",
        age=30,
        gender="male" if index % 2 else "female",
        culture=culture,
        background=background,
        health=health,
        mood=60,
        energy=80,
    )
    character.current_activity = activity
    return character


def build_state(count: int = 8, backgrounds=None) -> GameState:
    state = GameState()
    backgrounds = backgrounds or []
    state.characters = [
        make_character(i, background=backgrounds[i] if i < len(backgrounds) else "Farmer")
        for i in range(count)
    ]
    state.population.recount(state.characters)
    state.infrastructure.create_starting_buildings()
    return state


@pytest.fixture
def state():
    return build_state()


@pytest.fixture
def calm_rng():
    """Every probability roll fails."""
    return ScriptedRandom(default=0.99)


@pytest.fixture
def eager_rng():
    """Every probability roll succeeds."""
    return ScriptedRandom(default=0.0)


@pytest.fixture
def medical(state, calm_rng):
    return MedicalEngine(state, calm_rng)
