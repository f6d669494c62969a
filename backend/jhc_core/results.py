from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional

from .athletes import Athletes
from .config import ResultsConfig
from .season import Season
from .team_trophy import TEAM_TROPHY_NO_SCORE
from .types import RaceTime, RaceTimeDescription, SexType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawResult:
    """A single line from the finish funnel: who crossed, and when."""

    race_number: str
    time: RaceTime

    def to_dict(self) -> Dict[str, Any]:
        return {"raceNumber": self.race_number, "time": self.time.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RawResult":
        race_number = str(data.get("raceNumber") or "").strip()
        if not race_number:
            raise ValueError("raw result is missing a race number")
        time = data.get("time")
        if isinstance(time, dict):
            race_time = RaceTime.from_dict(time)
        else:
            race_time = RaceTime.parse(time)
        return cls(race_number=race_number, time=race_time)


@dataclass
class EventPoints:
    finishing_points: int = 0
    position_points: Optional[int] = None
    best_points: int = 0


@dataclass
class ResultsTableEntry:
    key: int
    name: str
    race_number: str
    time: RaceTime
    club: str = ""
    sex: SexType = SexType.NOT_SPECIFIED
    handicap: int = 0
    running_time: Optional[int] = None
    running_order: Optional[int] = None
    points: EventPoints = field(default_factory=EventPoints)
    team_trophy_points: int = TEAM_TROPHY_NO_SCORE
    extra_info: Optional[str] = None
    first_timer: bool = False
    season_best: bool = False

    @property
    def finished(self) -> bool:
        return self.time.description == RaceTimeDescription.FINISHED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "raceNumber": self.race_number,
            "club": self.club,
            "sex": self.sex.value,
            "time": self.time.to_dict(),
            "handicap": self.handicap,
            "runningTime": self.running_time,
            "runningOrder": self.running_order,
            "finishingPoints": self.points.finishing_points,
            "positionPoints": self.points.position_points,
            "bestPoints": self.points.best_points,
            "teamTrophyPoints": self.team_trophy_points,
            "extraInfo": self.extra_info,
            "firstTimer": self.first_timer,
            "seasonBest": self.season_best,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResultsTableEntry":
        return cls(
            key=int(data["key"]),
            name=str(data.get("name") or ""),
            race_number=str(data.get("raceNumber") or ""),
            time=RaceTime.from_dict(data.get("time") or {}),
            club=str(data.get("club") or ""),
            sex=SexType(data.get("sex") or SexType.NOT_SPECIFIED.value),
            handicap=int(data.get("handicap") or 0),
            running_time=data.get("runningTime"),
            running_order=data.get("runningOrder"),
            points=EventPoints(
                finishing_points=int(data.get("finishingPoints") or 0),
                position_points=data.get("positionPoints"),
                best_points=int(data.get("bestPoints") or 0),
            ),
            team_trophy_points=int(data.get("teamTrophyPoints", TEAM_TROPHY_NO_SCORE)),
            extra_info=data.get("extraInfo"),
            first_timer=bool(data.get("firstTimer", False)),
            season_best=bool(data.get("seasonBest", False)),
        )


class EventResults:
    """The working results table for one event.

    The order of ``entries`` is whatever the last sort left behind; callers
    sort before relying on it.
    """

    def __init__(self, entries: Iterable[ResultsTableEntry] | None = None) -> None:
        self.entries: List[ResultsTableEntry] = list(entries or [])

    def __iter__(self) -> Iterator[ResultsTableEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def add_entry(self, entry: ResultsTableEntry) -> None:
        self.entries.append(entry)

    def apply_speed_order(self) -> None:
        """Sort by running time and number each timed runner by speed."""

        self.entries.sort(
            key=lambda e: (e.running_time is None, e.running_time or 0, e.time.sort_key())
        )
        order = 0
        for entry in self.entries:
            if entry.running_time is None:
                entry.running_order = None
                continue
            order += 1
            entry.running_order = order

    def order_by_finishing_time(self) -> None:
        self.entries.sort(key=lambda e: e.time.sort_key())

    def is_relay_event(self) -> bool:
        return any(entry.time.description == RaceTimeDescription.RELAY for entry in self.entries)

    def to_list(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self.entries]

    @classmethod
    def from_list(cls, rows: Iterable[Dict[str, Any]]) -> "EventResults":
        return cls(ResultsTableEntry.from_dict(row) for row in rows if isinstance(row, dict))


class ResultsTableGenerator:
    """Resolves raw finish records against the athlete registry.

    Besides building the table, this records each runner's appearance,
    running time and finishing/season best points against the season.
    """

    def __init__(
        self,
        athletes: Athletes,
        season: Season,
        config: ResultsConfig,
        date: dt.date,
    ) -> None:
        self.athletes = athletes
        self.season = season
        self.config = config
        self.date = date

    def generate(self, raw_results: Iterable[RawResult]) -> EventResults:
        table = EventResults()

        for raw in raw_results:
            key = self.athletes.get_athlete_key(raw.race_number)
            athlete = self.athletes.get_athlete(key) if key is not None else None
            if athlete is None:
                logger.warning("Results table - race number %s is not registered", raw.race_number)
                continue

            season_athlete = self.season.get_athlete(athlete.key)
            if season_athlete is None:
                season_athlete = self.season.add_new_athlete(
                    athlete.key,
                    athlete.name,
                    self.athletes.is_first_timer(athlete.key, self.date),
                )

            entry = ResultsTableEntry(
                key=athlete.key,
                name=athlete.name,
                race_number=raw.race_number,
                time=raw.time,
                club=athlete.club,
                sex=athlete.sex,
                handicap=athlete.handicap,
                first_timer=self.athletes.is_first_timer(athlete.key, self.date),
            )

            if raw.time.is_timed:
                entry.running_time = raw.time.seconds - athlete.handicap

                previous_best = min(
                    (time.value for time in season_athlete.times if time.date != self.date),
                    default=None,
                )
                entry.season_best = previous_best is not None and entry.running_time < previous_best

                entry.points.finishing_points = self.config.finishing_points
                season_athlete.points.add_finishing_points(self.date, entry.points.finishing_points)
                if entry.season_best and not entry.first_timer:
                    entry.points.best_points = self.config.season_best_points
                    season_athlete.points.add_best_points(self.date, entry.points.best_points)

                season_athlete.add_time(self.date, entry.running_time)

            athlete.add_appearance(self.date)
            table.add_entry(entry)

        return table
