from __future__ import annotations

from typing import Optional


class MobTrophyPoints:
    """Running Mob Trophy totals for one club over a single event.

    Only the first ``number_in_team`` results submitted for the club count.
    Each counted result earns the team finishing points plus its position
    points; a season best by a returning athlete also earns the team season
    best points.
    """

    def __init__(
        self,
        club_name: str,
        number_in_team: int,
        team_finishing_points: int,
        team_season_best_points: int,
    ) -> None:
        self.club_name = club_name
        self.number_in_team = number_in_team
        self.team_finishing_points = team_finishing_points
        self.team_season_best_points = team_season_best_points
        self.finishing_points = 0
        self.position_points = 0
        self.best_points = 0
        self.number_counted = 0

    def add_new_result(
        self,
        position_points: Optional[int],
        first_timer: bool,
        season_best: bool,
    ) -> bool:
        if self.number_counted >= self.number_in_team:
            return False

        self.number_counted += 1
        self.finishing_points += self.team_finishing_points
        self.position_points += position_points or 0
        if season_best and not first_timer:
            self.best_points += self.team_season_best_points
        return True

    @property
    def total_points(self) -> int:
        return self.finishing_points + self.position_points + self.best_points

    def __repr__(self) -> str:
        return (
            f"MobTrophyPoints({self.club_name!r}, finishing={self.finishing_points}, "
            f"position={self.position_points}, best={self.best_points})"
        )
