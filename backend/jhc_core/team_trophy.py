from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Dict, List

TEAM_TROPHY_NO_SCORE = -1


@dataclass(frozen=True)
class CommonTeamTrophyPoints:
    """One slot in a club's Team Trophy team for an event.

    Filler slots added when a team is completed carry ``scored=False`` and no
    athlete.
    """

    point: int
    name: str
    key: int
    scored: bool
    date: dt.date

    def to_dict(self) -> Dict[str, Any]:
        return {
            "point": self.point,
            "name": self.name,
            "key": self.key,
            "scored": self.scored,
            "date": self.date.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CommonTeamTrophyPoints":
        return cls(
            point=int(data["point"]),
            name=str(data.get("name") or ""),
            key=int(data.get("key") or 0),
            scored=bool(data.get("scored", False)),
            date=dt.date.fromisoformat(data["date"]),
        )


@dataclass(frozen=True)
class AthleteTeamTrophyPoints:
    point: int
    date: dt.date

    def to_dict(self) -> Dict[str, Any]:
        return {"point": self.point, "date": self.date.isoformat()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AthleteTeamTrophyPoints":
        return cls(point=int(data["point"]), date=dt.date.fromisoformat(data["date"]))


@dataclass
class TeamTrophyEvent:
    """A club's Team Trophy team for a single event, capped at ``number_in_team``."""

    date: dt.date
    number_in_team: int
    points: List[CommonTeamTrophyPoints] = field(default_factory=list)
    score: int = 0

    @property
    def total_athlete_points(self) -> int:
        return sum(point.point for point in self.points)

    @property
    def number_of_athletes(self) -> int:
        return sum(1 for point in self.points if point.scored)

    @property
    def is_full(self) -> bool:
        return len(self.points) >= self.number_in_team

    def add_point(self, point: CommonTeamTrophyPoints) -> bool:
        """Add a point to the team, returning ``False`` if the team is full."""

        if self.is_full:
            return False
        self.points.append(point)
        return True

    def complete(self, team_size: int, value: int) -> None:
        """Pad the team with unscored ``value`` points up to ``team_size``."""

        while len(self.points) < team_size:
            self.points.append(
                CommonTeamTrophyPoints(point=value, name="", key=0, scored=False, date=self.date)
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "numberInTeam": self.number_in_team,
            "points": [point.to_dict() for point in self.points],
            "score": self.score,
            "totalAthletePoints": self.total_athlete_points,
            "numberOfAthletes": self.number_of_athletes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TeamTrophyEvent":
        return cls(
            date=dt.date.fromisoformat(data["date"]),
            number_in_team=int(data.get("numberInTeam") or 0),
            points=[CommonTeamTrophyPoints.from_dict(row) for row in data.get("points") or []],
            score=int(data.get("score") or 0),
        )
