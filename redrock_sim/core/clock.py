"""Time system for the simulation: calendar date, day counter, seasons."""

from __future__ import annotations

import datetime
from enum import Enum

from redrock_sim.core.config import SEASON_BY_MONTH, START_DATE
from redrock_sim.core.keys import UnknownKeyError, lookup


class Season(Enum):
    WINTER = "winter"
    SPRING = "spring"
    SUMMER = "summer"
    FALL = "fall"


def season_for(date: datetime.date) -> str:
    """Season from calendar month (Mar-May spring, Jun-Aug summer, Sep-Nov fall)."""
    return SEASON_BY_MONTH[date.month]


def day_of_year(date: datetime.date) -> int:
    return date.timetuple().tm_yday


def format_date(date: datetime.date) -> str:
    """e.g. 'March 15, 1849'."""
    return f"{date.strftime('%B')} {date.day}, {date.year}"


def is_valid_season(season: str) -> bool:
    try:
        lookup(Season, season)
    except UnknownKeyError:
        return False
    return True


class SimClock:
    """Manages simulation time. Day 1 is the founding date."""

    def __init__(self, start_date: datetime.date = START_DATE) -> None:
        self.start_date = start_date
        self.date: datetime.date = start_date
        self.day: int = 1

    @property
    def season(self) -> str:
        return season_for(self.date)

    @property
    def day_of_year(self) -> int:
        return day_of_year(self.date)

    @property
    def formatted(self) -> str:
        return format_date(self.date)

    def advance(self) -> None:
        """Advance the clock by one day."""
        self.date = self.date + datetime.timedelta(days=1)
        self.day += 1
