from __future__ import annotations

import datetime as dt

from jhc_core import RaceTimeDescription, ResultsConfig
from jhc_core.calculate import TeamTrophyAllocation, calculate_team_trophy_points
from jhc_core.season import Season
from jhc_core.team_trophy import CommonTeamTrophyPoints, TeamTrophyEvent

from conftest import make_entry, make_season, make_table

RELAY = RaceTimeDescription.RELAY


def _config(team_size: int, points=(10, 8, 6, 5, 4, 3, 2, 1)) -> ResultsConfig:
    return ResultsConfig(number_in_team_trophy_team=team_size, team_trophy_points=points)


def _club_entries(clubs, **kwargs):
    return [make_entry(key, 600 + key, club=club, **kwargs) for key, club in enumerate(clubs, start=1)]


def test_team_event_rejects_beyond_capacity() -> None:
    date = dt.date(2025, 5, 10)
    event = TeamTrophyEvent(date=date, number_in_team=2)

    assert event.add_point(CommonTeamTrophyPoints(1, "A", 1, True, date))
    assert event.add_point(CommonTeamTrophyPoints(3, "B", 2, True, date))
    assert not event.add_point(CommonTeamTrophyPoints(4, "C", 3, True, date))
    assert event.total_athlete_points == 4
    assert event.number_of_athletes == 2


def test_team_event_complete_pads_with_unscored_points() -> None:
    date = dt.date(2025, 5, 10)
    event = TeamTrophyEvent(date=date, number_in_team=4)
    event.add_point(CommonTeamTrophyPoints(2, "A", 1, True, date))

    event.complete(4, 7)

    assert [point.point for point in event.points] == [2, 7, 7, 7]
    assert event.total_athlete_points == 23
    assert event.number_of_athletes == 1


def test_rejected_runner_returns_the_position(event_date) -> None:
    entries = _club_entries(["B", "A", "B", "A", "B", "A", "A"])
    table = make_table(entries)
    season = make_season(entries, clubs=["A", "B"])

    allocation = calculate_team_trophy_points(table, _config(3), season, event_date)

    awarded = {entry.key: entry.team_trophy_points for entry in table}
    assert [awarded[key] for key in (2, 4, 6)] == [2, 4, 6]
    assert awarded[7] == -1
    assert allocation.competition_position == 6
    assert allocation.next_score == 7
    assert allocation.events["A"].number_of_athletes == 3
    assert allocation.events["A"].score == 8
    assert allocation.events["B"].score == 10


def test_next_runner_takes_the_returned_position(event_date) -> None:
    entries = _club_entries(["A", "A", "A", "B"])
    table = make_table(entries)
    season = make_season(entries, clubs=["A", "B"])

    calculate_team_trophy_points(table, _config(2), season, event_date)

    assert [entry.team_trophy_points for entry in table] == [1, 2, -1, 3]


def test_unaffiliated_and_first_timers_never_score(event_date) -> None:
    entries = [
        make_entry(1, 601, club=""),
        make_entry(2, 602, club="A", first_timer=True),
        make_entry(3, 603, club="A"),
        make_entry(4, 604, club="B"),
    ]
    table = make_table(entries)
    season = make_season(entries, clubs=["A", "B"])

    calculate_team_trophy_points(table, _config(3), season, event_date)

    assert [entry.team_trophy_points for entry in table] == [-1, -1, 1, 2]
    for key in (1, 2):
        history = season.get_athlete(key).team_trophy_points
        assert [(point.point, point.date) for point in history] == [(-1, event_date)]


def test_every_known_athlete_gets_one_history_record(event_date) -> None:
    entries = _club_entries(["A", "A", "A", ""])
    table = make_table(entries)
    season = make_season(entries, clubs=["A"])

    calculate_team_trophy_points(table, _config(2), season, event_date)

    history = {athlete.key: [point.point for point in athlete.team_trophy_points] for athlete in season.athletes}
    assert history == {1: [1], 2: [2], 3: [-1], 4: [-1]}


def test_unknown_athlete_is_skipped(event_date) -> None:
    entries = _club_entries(["A", "A"])
    table = make_table(entries)
    season = make_season(entries[1:], clubs=["A"])

    calculate_team_trophy_points(table, _config(2), season, event_date)

    assert [entry.team_trophy_points for entry in table] == [-1, 1]


def test_club_outside_the_season_is_not_scored(event_date) -> None:
    entries = _club_entries(["Z", "A"])
    table = make_table(entries)
    season = make_season(entries, clubs=["A"])

    allocation = calculate_team_trophy_points(table, _config(2), season, event_date)

    assert [entry.team_trophy_points for entry in table] == [-1, 1]
    assert set(allocation.events) == {"A"}


def test_relay_event_scores_one_and_fills_with_two(event_date) -> None:
    entries = _club_entries(["A", "B", "A"], status=RELAY)
    table = make_table(entries)
    season = make_season(entries, clubs=["A", "B"])

    allocation = calculate_team_trophy_points(table, _config(3), season, event_date)

    assert allocation.is_relay_event
    assert [point.point for point in allocation.events["A"].points] == [1, 1, 2]
    assert [point.point for point in allocation.events["B"].points] == [1, 2, 2]
    assert [entry.team_trophy_points for entry in table] == [1, 2, 3]
    assert allocation.events["A"].score == 10
    assert allocation.events["B"].score == 8


def test_partial_teams_filled_with_next_score_and_empty_teams_unscored(event_date) -> None:
    entries = _club_entries(["A", "B", "B", "B"])
    table = make_table(entries)
    season = make_season(entries, clubs=["A", "B", "C"])

    allocation = calculate_team_trophy_points(table, _config(3), season, event_date)

    events = allocation.events
    assert [point.point for point in events["A"].points] == [1, 5, 5]
    assert events["B"].total_athlete_points == 9
    assert events["C"].total_athlete_points == 15
    assert (events["B"].score, events["A"].score, events["C"].score) == (10, 8, 0)
    assert [name for name, _ in allocation.ranked()] == ["B", "A", "C"]


def test_empty_team_ranks_last_even_with_lower_total(event_date) -> None:
    scored = TeamTrophyEvent(date=event_date, number_in_team=2)
    scored.add_point(CommonTeamTrophyPoints(9, "Runner 9", 9, True, event_date))
    empty = TeamTrophyEvent(date=event_date, number_in_team=2)

    allocation = TeamTrophyAllocation(events={"B": empty, "A": scored})

    assert empty.total_athlete_points < scored.total_athlete_points
    assert [name for name, _ in allocation.ranked()] == ["A", "B"]


def test_tied_totals_share_the_first_score(event_date) -> None:
    entries = _club_entries(["A", "B", "B", "A", "C", "C"])
    table = make_table(entries)
    season = make_season(entries, clubs=["A", "B", "C"])

    allocation = calculate_team_trophy_points(table, _config(2), season, event_date)

    scores = {name: event.score for name, event in allocation.events.items()}
    assert scores == {"A": 10, "B": 10, "C": 6}


def test_clubs_beyond_points_table_keep_zero(event_date) -> None:
    entries = _club_entries(["A", "B", "C", "D"])
    table = make_table(entries)
    season = make_season(entries, clubs=["A", "B", "C", "D"])

    allocation = calculate_team_trophy_points(table, _config(1, points=(5, 3)), season, event_date)

    scores = {name: event.score for name, event in allocation.events.items()}
    assert scores == {"A": 5, "B": 3, "C": 0, "D": 0}


def test_tie_takes_score_of_last_club_scored_from_table(event_date) -> None:
    entries = _club_entries(["A", "B", "C", "C", "B"])
    table = make_table(entries)
    season = make_season(entries, clubs=["A", "B", "C"])

    # A: 1 + fill 6 = 7, B: 2 + 5 = 7, C: 3 + 4 = 7 -> all tied on 7.
    allocation = calculate_team_trophy_points(table, _config(2, points=(5,)), season, event_date)
    assert {name: event.score for name, event in allocation.events.items()} == {"A": 5, "B": 5, "C": 5}

    entries = _club_entries(["A", "A", "B", "C", "C", "B"])
    table = make_table(entries)
    season = make_season(entries, clubs=["A", "B", "C"])

    # A: 3, B: 9, C: 9 -> B falls off the table, C ties with it and takes A's score.
    allocation = calculate_team_trophy_points(table, _config(2, points=(5,)), season, event_date)
    assert {name: event.score for name, event in allocation.events.items()} == {"A": 5, "B": 0, "C": 5}


def test_accepted_positions_are_contiguous_and_capped(event_date) -> None:
    clubs = ["A", "B", "C", "A", "A", "A", "", "B", "A", "C", "C", "C", "B", "A"]
    entries = _club_entries(clubs)
    entries[7].first_timer = True
    table = make_table(entries)
    season = make_season(entries, clubs=["A", "B", "C"])

    allocation = calculate_team_trophy_points(table, _config(3), season, event_date)

    accepted = [entry.team_trophy_points for entry in table if entry.team_trophy_points != -1]
    assert accepted == list(range(1, len(accepted) + 1))
    for event in allocation.events.values():
        assert event.number_of_athletes <= 3
        assert len(event.points) == 3


def test_team_events_are_stored_against_each_club(event_date) -> None:
    entries = _club_entries(["A"])
    season: Season = make_season(entries, clubs=["A", "B"])

    calculate_team_trophy_points(make_table(entries), _config(2), season, event_date)

    assert len(season.get_club("A").team_trophy_events) == 1
    assert len(season.get_club("B").team_trophy_events) == 1
    assert season.get_club("A").team_trophy_total == 10
