"""Turns an event's raw results into a scored results table.

The stages run in a fixed order against one table that is threaded through
each of them. Apart from the speed order, every stage expects the table in
finishing order and sorts it itself before walking it.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from .config import ResultsConfig, SeriesConfig
from .messages import ErrorMessage, Messenger, ProgressMessage
from .mob_trophy import MobTrophyPoints
from .model import HandicapModel
from .results import EventResults, RawResult, ResultsTableGenerator
from .season import CommonPoints, Season
from .team_trophy import (
    TEAM_TROPHY_NO_SCORE,
    AthleteTeamTrophyPoints,
    CommonTeamTrophyPoints,
    TeamTrophyEvent,
)
from .types import SexType

logger = logging.getLogger(__name__)

RELAY_POINTS_VALUE = 1
RELAY_COMPLETION_VALUE = 2

FIRST_BOY = "First Boy"
FIRST_GIRL = "First Gal"
SECOND = "Second"
THIRD = "Third"
SECOND_BOY = "Second Boy"
SECOND_GIRL = "Second Gal"
THIRD_BOY = "Third Boy"
THIRD_GIRL = "Third Gal"


class CalculationState(Enum):
    NOT_STARTED = "NotStarted"
    CONFIG_VALIDATED = "ConfigValidated"
    RESULTS_LOADED = "ResultsLoaded"
    SCORED = "Scored"
    PLACED = "Placed"
    CLUB_AGGREGATED = "ClubAggregated"
    TEAM_TROPHY_ALLOCATED = "TeamTrophyAllocated"
    PERSISTED = "Persisted"
    TERMINATED = "Terminated"


@dataclass
class TeamTrophyAllocation:
    """The outcome of allocating Team Trophy points for one event."""

    events: Dict[str, TeamTrophyEvent] = field(default_factory=dict)
    is_relay_event: bool = False
    competition_position: int = 0
    next_score: int = 1

    def ranked(self) -> List[Tuple[str, TeamTrophyEvent]]:
        # Teams without a runner go to the bottom whatever their padded total.
        return sorted(
            self.events.items(),
            key=lambda item: (item[1].number_of_athletes == 0, item[1].total_athlete_points),
        )


# ----------------------------------------------------------------------
# Position points


def add_position_points(
    results_table: EventResults,
    config: ResultsConfig,
    season: Season,
    date: dt.date,
) -> None:
    """Award position points to eligible finishers and record them in the season."""

    results_table.order_by_finishing_time()

    if config.scores_are_descending:
        position_point = config.number_of_scoring_positions
        for result in results_table:
            if not result.finished:
                continue
            if config.position_score_to_be_counted(result.first_timer) and position_point != 0:
                result.points.position_points = position_point
                season.update_position_points(result.key, date, position_point)
                if position_point > 0:
                    position_point -= 1
        return

    position_point = 1
    for result in results_table:
        if not result.finished:
            continue
        if config.position_score_to_be_counted(result.first_timer):
            result.points.position_points = position_point
            season.update_position_points(result.key, date, position_point)
            position_point += 1


# ----------------------------------------------------------------------
# Placings


def _placing_slots(all_positions_shown: bool) -> List[Tuple[str, Tuple[SexType, ...]]]:
    either = (SexType.MALE, SexType.FEMALE)
    slots = [(FIRST_BOY, (SexType.MALE,)), (FIRST_GIRL, (SexType.FEMALE,))]
    if all_positions_shown:
        slots += [
            (SECOND_BOY, (SexType.MALE,)),
            (SECOND_GIRL, (SexType.FEMALE,)),
            (THIRD_BOY, (SexType.MALE,)),
            (THIRD_GIRL, (SexType.FEMALE,)),
        ]
    else:
        slots += [(SECOND, either), (THIRD, either)]
    return slots


def add_placings(
    results_table: EventResults,
    config: ResultsConfig,
    all_positions_shown: bool,
) -> None:
    """Label the first boy and girl home, and whoever follows them.

    With ``all_positions_shown`` the second and third places are given per
    sex, otherwise as a single "Second" and "Third". Under the descending
    scheme first timers are never labelled.
    """

    results_table.order_by_finishing_time()
    slots = _placing_slots(all_positions_shown)
    filled: Dict[str, bool] = {label: False for label, _ in slots}

    for result in results_table:
        if all(filled.values()):
            break
        if not result.finished:
            continue
        if result.first_timer and config.scores_are_descending:
            continue

        for label, sexes in slots:
            if not filled[label] and result.sex in sexes:
                result.extra_info = label
                filled[label] = True
                break


# ----------------------------------------------------------------------
# Mob Trophy


def setup_mob_trophy_points(clubs: Iterable[str], config: ResultsConfig) -> Dict[str, MobTrophyPoints]:
    return {
        club: MobTrophyPoints(
            club,
            config.number_in_team,
            config.team_finishing_points,
            config.team_season_best_points,
        )
        for club in clubs
    }


def assign_mob_trophy_points(
    results_table: EventResults,
    config: ResultsConfig,
    season: Season,
    date: dt.date,
    mob_trophy_points: Dict[str, MobTrophyPoints],
) -> None:
    if not config.use_teams:
        return

    results_table.order_by_finishing_time()

    for result in results_table:
        if not result.club:
            continue
        club = mob_trophy_points.get(result.club)
        if club is None:
            logger.debug("Mob Trophy - club %s is not known, ignoring %s", result.club, result.name)
            continue
        club.add_new_result(result.points.position_points, result.first_timer, result.season_best)

    for club in mob_trophy_points.values():
        season.add_new_mob_trophy_points(
            club.club_name,
            CommonPoints(club.finishing_points, club.position_points, club.best_points, date),
        )


# ----------------------------------------------------------------------
# Team Trophy


def calculate_team_trophy_points(
    results_table: EventResults,
    config: ResultsConfig,
    season: Season,
    date: dt.date,
) -> TeamTrophyAllocation:
    """Allocate the event's Team Trophy points and score each club.

    Eligible runners take the next competition position as their points, up
    to ``number_in_team_trophy_team`` per club. A runner turned away by a
    full team hands the position back, so the next accepted runner takes it.
    Teams short of runners are padded with the position after the last
    accepted runner. The lowest total wins and ties share a score.
    """

    points_table = config.team_trophy_points or ()
    team_size = config.number_in_team_trophy_team

    allocation = TeamTrophyAllocation(is_relay_event=results_table.is_relay_event())
    results_table.order_by_finishing_time()

    for club in season.clubs:
        allocation.events[club.name] = TeamTrophyEvent(date=date, number_in_team=team_size)

    for result in results_table:
        athlete = season.get_athlete(result.key)
        if athlete is None:
            logger.warning("Calculate results - can't find athlete %s", result.key)
            continue

        club_event = allocation.events.get(result.club) if result.club else None
        if not result.club or result.first_timer or club_event is None:
            if result.club and club_event is None:
                logger.warning(
                    "Team Trophy - club %s is not in season %s, %s not scored",
                    result.club,
                    season.name,
                    result.name,
                )
            result.team_trophy_points = TEAM_TROPHY_NO_SCORE
            athlete.add_team_trophy_points(AthleteTeamTrophyPoints(TEAM_TROPHY_NO_SCORE, date))
            continue

        allocation.competition_position += 1
        points_value = RELAY_POINTS_VALUE if allocation.is_relay_event else allocation.competition_position

        accepted = club_event.add_point(
            CommonTeamTrophyPoints(
                point=points_value,
                name=result.name,
                key=result.key,
                scored=True,
                date=date,
            )
        )

        if accepted:
            allocation.next_score = allocation.competition_position + 1
            result.team_trophy_points = allocation.competition_position
        else:
            allocation.competition_position -= 1
            result.team_trophy_points = TEAM_TROPHY_NO_SCORE

        athlete.add_team_trophy_points(AthleteTeamTrophyPoints(result.team_trophy_points, date))

    completion_value = RELAY_COMPLETION_VALUE if allocation.is_relay_event else allocation.next_score
    for event in allocation.events.values():
        event.complete(team_size, completion_value)

    # A tie takes the score of the last club scored from the points table.
    # Clubs ranked past the end of the table never become that reference.
    last_points: Optional[int] = None
    last_scoring_index = 0
    for index, (_, event) in enumerate(allocation.ranked()):
        if event.number_of_athletes == 0:
            break

        if points_table and event.total_athlete_points == last_points:
            event.score = points_table[last_scoring_index]
        elif index < len(points_table):
            event.score = points_table[index]
            last_scoring_index = index

        last_points = event.total_athlete_points

    for club_name, event in allocation.events.items():
        season.add_new_club_points(club_name, event)

    return allocation


# ----------------------------------------------------------------------
# Orchestration


class CalculateResults:
    """Calculates the results for the model's current event."""

    def __init__(
        self,
        model: HandicapModel,
        results_config: Optional[ResultsConfig],
        series_config: Optional[SeriesConfig] = None,
        messenger: Optional[Messenger] = None,
        table_generator: Optional[ResultsTableGenerator] = None,
    ) -> None:
        self.model = model
        self.results_config = results_config
        self.series_config = series_config or SeriesConfig()
        self.messenger = messenger or Messenger()
        self.table_generator = table_generator
        self.state = CalculationState.NOT_STARTED
        self.team_trophy: Optional[TeamTrophyAllocation] = None

    def calculate_results(self) -> Optional[EventResults]:
        logger.info("Calculate results")
        self.messenger.send(ProgressMessage("Calculate Results"))

        if self.results_config is None:
            return self._terminate(
                "Error reading the results config file. Results not generated",
                "Can't calculate results - invalid config",
            )

        if not self.results_config.team_trophy_points:
            return self._terminate(
                "Can't calculate results, Team Trophy points are invalid",
                "Can't calculate results - check config",
            )

        self.state = CalculationState.CONFIG_VALIDATED
        config = self.results_config
        season = self.model.current_season
        event = self.model.current_event

        raw_results = event.load_raw_results()
        mob_trophy_points = setup_mob_trophy_points(self.model.clubs, config)
        self.register_all_athletes_for_the_current_season(raw_results)

        generator = self.table_generator or ResultsTableGenerator(
            self.model.athletes,
            season,
            config,
            event.date,
        )
        results_table = generator.generate(raw_results)
        self.state = CalculationState.RESULTS_LOADED

        # Speed order only feeds the display; scoring works in finishing order.
        results_table.apply_speed_order()

        add_position_points(results_table, config, season, event.date)
        self.state = CalculationState.SCORED

        results_table.order_by_finishing_time()
        add_placings(results_table, config, self.series_config.all_positions_shown)
        self.state = CalculationState.PLACED

        assign_mob_trophy_points(results_table, config, season, event.date, mob_trophy_points)
        self.state = CalculationState.CLUB_AGGREGATED

        self.team_trophy = calculate_team_trophy_points(results_table, config, season, event.date)
        self.state = CalculationState.TEAM_TROPHY_ALLOCATED

        event.set_results_table(results_table)
        self.model.save_all()
        self.state = CalculationState.PERSISTED

        logger.info("Calculate results completed.")
        self.messenger.send(ProgressMessage("Calculate Results - Completed"))
        return results_table

    def register_all_athletes_for_the_current_season(self, raw_results: Iterable[RawResult]) -> None:
        athletes = self.model.athletes
        season = self.model.current_season
        date = self.model.current_event.date

        for raw in raw_results:
            key = athletes.get_athlete_key(raw.race_number)
            if key is None or season.get_athlete(key) is not None:
                continue
            season.add_new_athlete(key, athletes.get_athlete_name(key), athletes.is_first_timer(key, date))

    def _terminate(self, log_text: str, error_text: str) -> None:
        logger.error("%s", log_text)
        self.messenger.send(ErrorMessage(error_text))
        self.messenger.send(ProgressMessage("Calculate Results - Terminated"))
        self.state = CalculationState.TERMINATED
        return None
