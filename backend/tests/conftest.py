from __future__ import annotations

import datetime as dt
from typing import Iterable, List

import pytest

from jhc_core import (
    AthleteDetails,
    Athletes,
    Event,
    EventResults,
    HandicapModel,
    RaceTime,
    RaceTimeDescription,
    RawResult,
    ResultsTableEntry,
    Season,
    SexType,
)

EVENT_DATE = dt.date(2025, 5, 10)


def make_entry(
    key: int,
    seconds: int,
    club: str = "",
    sex: SexType = SexType.MALE,
    first_timer: bool = False,
    status: RaceTimeDescription = RaceTimeDescription.FINISHED,
    season_best: bool = False,
) -> ResultsTableEntry:
    return ResultsTableEntry(
        key=key,
        name=f"Runner {key}",
        race_number=f"A{key:04d}",
        time=RaceTime(status, seconds),
        club=club,
        sex=sex,
        first_timer=first_timer,
        season_best=season_best,
    )


def make_season(entries: Iterable[ResultsTableEntry], clubs: Iterable[str] = ()) -> Season:
    season = Season("2025")
    for entry in entries:
        season.add_new_athlete(entry.key, entry.name, entry.first_timer)
    for club in clubs:
        season.add_new_club(club)
    return season


def make_table(entries: List[ResultsTableEntry]) -> EventResults:
    # Shuffle the insertion order so every stage has to sort for itself.
    return EventResults(list(reversed(entries)))


@pytest.fixture
def event_date() -> dt.date:
    return EVENT_DATE


@pytest.fixture
def build_model():
    """Build a model from ``(key, name, club, sex, handicap, returning, time)`` rows."""

    def _build(rows, clubs=("Ashford", "Bromley"), date: dt.date = EVENT_DATE) -> HandicapModel:
        athletes = Athletes()
        raw_results: List[RawResult] = []
        for key, name, club, sex, handicap, returning, time in rows:
            athlete = AthleteDetails(
                key=key,
                name=name,
                club=club,
                sex=sex,
                handicap=handicap,
                race_numbers=[f"A{key:04d}"],
                appearances=[dt.date(2025, 4, 12)] if returning else [],
            )
            athletes.add(athlete)
            if time is not None:
                raw_results.append(RawResult(f"A{key:04d}", RaceTime.parse(time)))

        season = Season("2025")
        for club in clubs:
            season.add_new_club(club)
        event = Event("Event 3", date, raw_results)
        return HandicapModel(athletes, clubs, season, event)

    return _build
