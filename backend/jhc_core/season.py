from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .team_trophy import AthleteTeamTrophyPoints, TeamTrophyEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EventPoint:
    value: int
    date: dt.date

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "date": self.date.isoformat()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EventPoint":
        return cls(value=int(data["value"]), date=dt.date.fromisoformat(data["date"]))


@dataclass(frozen=True)
class CommonPoints:
    """A club's Mob Trophy points for one event."""

    finishing_points: int
    position_points: int
    best_points: int
    date: dt.date

    @property
    def total_points(self) -> int:
        return self.finishing_points + self.position_points + self.best_points

    def to_dict(self) -> Dict[str, Any]:
        return {
            "finishingPoints": self.finishing_points,
            "positionPoints": self.position_points,
            "bestPoints": self.best_points,
            "date": self.date.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CommonPoints":
        return cls(
            finishing_points=int(data.get("finishingPoints") or 0),
            position_points=int(data.get("positionPoints") or 0),
            best_points=int(data.get("bestPoints") or 0),
            date=dt.date.fromisoformat(data["date"]),
        )


def _set_dated(points: List[EventPoint], date: dt.date, value: int) -> None:
    # One value per event date; recalculating an event replaces it.
    for index, point in enumerate(points):
        if point.date == date:
            points[index] = EventPoint(value, date)
            return
    points.append(EventPoint(value, date))


@dataclass
class AthleteSeasonPoints:
    finishing_points: List[EventPoint] = field(default_factory=list)
    position_points: List[EventPoint] = field(default_factory=list)
    best_points: List[EventPoint] = field(default_factory=list)

    @property
    def total_finishing_points(self) -> int:
        return sum(point.value for point in self.finishing_points)

    @property
    def total_position_points(self) -> int:
        return sum(point.value for point in self.position_points)

    @property
    def total_best_points(self) -> int:
        return sum(point.value for point in self.best_points)

    @property
    def total_points(self) -> int:
        return self.total_finishing_points + self.total_position_points + self.total_best_points

    def add_finishing_points(self, date: dt.date, value: int) -> None:
        _set_dated(self.finishing_points, date, value)

    def add_position_points(self, date: dt.date, value: int) -> None:
        _set_dated(self.position_points, date, value)

    def add_best_points(self, date: dt.date, value: int) -> None:
        _set_dated(self.best_points, date, value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "finishingPoints": [point.to_dict() for point in self.finishing_points],
            "positionPoints": [point.to_dict() for point in self.position_points],
            "bestPoints": [point.to_dict() for point in self.best_points],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AthleteSeasonPoints":
        return cls(
            finishing_points=[EventPoint.from_dict(row) for row in data.get("finishingPoints") or []],
            position_points=[EventPoint.from_dict(row) for row in data.get("positionPoints") or []],
            best_points=[EventPoint.from_dict(row) for row in data.get("bestPoints") or []],
        )


@dataclass
class AthleteSeasonDetails:
    key: int
    name: str
    first_timer: bool = False
    points: AthleteSeasonPoints = field(default_factory=AthleteSeasonPoints)
    times: List[EventPoint] = field(default_factory=list)  # running time in seconds
    team_trophy_points: List[AthleteTeamTrophyPoints] = field(default_factory=list)

    @property
    def season_best(self) -> Optional[int]:
        return min((time.value for time in self.times), default=None)

    @property
    def number_of_appearances(self) -> int:
        return len(self.times)

    def add_time(self, date: dt.date, running_time: int) -> None:
        _set_dated(self.times, date, running_time)

    def add_team_trophy_points(self, points: AthleteTeamTrophyPoints) -> None:
        self.team_trophy_points.append(points)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "firstTimer": self.first_timer,
            "points": self.points.to_dict(),
            "times": [time.to_dict() for time in self.times],
            "teamTrophyPoints": [point.to_dict() for point in self.team_trophy_points],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AthleteSeasonDetails":
        return cls(
            key=int(data["key"]),
            name=str(data.get("name") or ""),
            first_timer=bool(data.get("firstTimer", False)),
            points=AthleteSeasonPoints.from_dict(data.get("points") or {}),
            times=[EventPoint.from_dict(row) for row in data.get("times") or []],
            team_trophy_points=[
                AthleteTeamTrophyPoints.from_dict(row) for row in data.get("teamTrophyPoints") or []
            ],
        )


@dataclass
class ClubSeasonDetails:
    name: str
    mob_trophy_points: List[CommonPoints] = field(default_factory=list)
    team_trophy_events: List[TeamTrophyEvent] = field(default_factory=list)

    @property
    def mob_trophy_total(self) -> int:
        return sum(points.total_points for points in self.mob_trophy_points)

    @property
    def team_trophy_total(self) -> int:
        return sum(event.score for event in self.team_trophy_events)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "mobTrophyPoints": [points.to_dict() for points in self.mob_trophy_points],
            "teamTrophyEvents": [event.to_dict() for event in self.team_trophy_events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClubSeasonDetails":
        return cls(
            name=str(data["name"]),
            mob_trophy_points=[CommonPoints.from_dict(row) for row in data.get("mobTrophyPoints") or []],
            team_trophy_events=[
                TeamTrophyEvent.from_dict(row) for row in data.get("teamTrophyEvents") or []
            ],
        )


class Season:
    """Season-long athlete and club standings."""

    def __init__(
        self,
        name: str,
        athletes: Iterable[AthleteSeasonDetails] | None = None,
        clubs: Iterable[ClubSeasonDetails] | None = None,
    ) -> None:
        self.name = name
        self.athletes: List[AthleteSeasonDetails] = list(athletes or [])
        self.clubs: List[ClubSeasonDetails] = list(clubs or [])

    def get_athlete(self, key: int) -> Optional[AthleteSeasonDetails]:
        for athlete in self.athletes:
            if athlete.key == key:
                return athlete
        return None

    def get_club(self, name: str) -> Optional[ClubSeasonDetails]:
        for club in self.clubs:
            if club.name == name:
                return club
        return None

    def add_new_athlete(self, key: int, name: str, first_timer: bool = False) -> AthleteSeasonDetails:
        existing = self.get_athlete(key)
        if existing is not None:
            return existing
        athlete = AthleteSeasonDetails(key=key, name=name, first_timer=first_timer)
        self.athletes.append(athlete)
        return athlete

    def add_new_club(self, name: str) -> ClubSeasonDetails:
        existing = self.get_club(name)
        if existing is not None:
            return existing
        club = ClubSeasonDetails(name=name)
        self.clubs.append(club)
        return club

    def update_position_points(self, key: int, date: dt.date, points: int) -> None:
        athlete = self.get_athlete(key)
        if athlete is None:
            logger.warning("Can't record position points, athlete %s is not in season %s", key, self.name)
            return
        athlete.points.add_position_points(date, points)

    def add_new_mob_trophy_points(self, club_name: str, points: CommonPoints) -> None:
        club = self.add_new_club(club_name)
        club.mob_trophy_points.append(points)

    def add_new_club_points(self, club_name: str, event: TeamTrophyEvent) -> None:
        club = self.add_new_club(club_name)
        club.team_trophy_events.append(event)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "athletes": [athlete.to_dict() for athlete in self.athletes],
            "clubs": [club.to_dict() for club in self.clubs],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Season":
        return cls(
            name=str(data.get("name") or ""),
            athletes=[AthleteSeasonDetails.from_dict(row) for row in data.get("athletes") or []],
            clubs=[ClubSeasonDetails.from_dict(row) for row in data.get("clubs") or []],
        )
