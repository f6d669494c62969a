from __future__ import annotations

import datetime as dt
import logging
from functools import lru_cache
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from jhc_core import (
    CalculateResults,
    DataStore,
    Event,
    MessageLog,
    Messenger,
    RaceTime,
    RaceTimeDescription,
    RawResult,
)

app = FastAPI(title="Junior Handicap Results API", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger = logging.getLogger(__name__)


class RaceTimeModel(BaseModel):
    description: str
    seconds: int = 0


class RawResultPayload(BaseModel):
    race_number: str = Field(alias="raceNumber", min_length=1)
    time: str = Field(description="mm:ss, hh:mm:ss, DNF, DNS or RELAY")

    model_config = ConfigDict(populate_by_name=True)


class EventUploadRequest(BaseModel):
    date: dt.date
    raw_results: List[RawResultPayload] = Field(alias="rawResults")

    model_config = ConfigDict(populate_by_name=True)


class ResultsRowModel(BaseModel):
    key: int
    name: str
    race_number: str = Field(alias="raceNumber")
    club: str
    sex: str
    time: RaceTimeModel
    handicap: int
    running_time: Optional[int] = Field(default=None, alias="runningTime")
    running_order: Optional[int] = Field(default=None, alias="runningOrder")
    finishing_points: int = Field(alias="finishingPoints")
    position_points: Optional[int] = Field(default=None, alias="positionPoints")
    best_points: int = Field(alias="bestPoints")
    team_trophy_points: int = Field(alias="teamTrophyPoints")
    extra_info: Optional[str] = Field(default=None, alias="extraInfo")
    first_timer: bool = Field(alias="firstTimer")
    season_best: bool = Field(alias="seasonBest")

    model_config = ConfigDict(populate_by_name=True)


class MobTrophyRowModel(BaseModel):
    club: str
    finishing_points: int = Field(alias="finishingPoints")
    position_points: int = Field(alias="positionPoints")
    best_points: int = Field(alias="bestPoints")

    model_config = ConfigDict(populate_by_name=True)


class TeamTrophyRowModel(BaseModel):
    club: str
    total_athlete_points: int = Field(alias="totalAthletePoints")
    number_of_athletes: int = Field(alias="numberOfAthletes")
    score: int
    athletes: List[str]

    model_config = ConfigDict(populate_by_name=True)


class CalculateResponse(BaseModel):
    season: str
    event: str
    date: str
    state: str
    relay: bool
    results: List[ResultsRowModel]
    mob_trophy: List[MobTrophyRowModel] = Field(alias="mobTrophy")
    team_trophy: List[TeamTrophyRowModel] = Field(alias="teamTrophy")
    messages: List[str]

    model_config = ConfigDict(populate_by_name=True)


class PointsTableRowModel(BaseModel):
    key: int
    name: str
    race_number: str = Field(alias="raceNumber")
    points: int
    finishing_points: int = Field(alias="finishingPoints")
    position_points: int = Field(alias="positionPoints")
    best_points: int = Field(alias="bestPoints")
    number_of_runs: int = Field(alias="numberOfRuns")
    average_points: float = Field(alias="averagePoints")
    season_best: Optional[str] = Field(default=None, alias="seasonBest")

    model_config = ConfigDict(populate_by_name=True)


class ClubStandingModel(BaseModel):
    club: str
    mob_trophy_points: int = Field(alias="mobTrophyPoints")
    team_trophy_points: int = Field(alias="teamTrophyPoints")

    model_config = ConfigDict(populate_by_name=True)


class StandingsResponse(BaseModel):
    season: str
    athletes: List[PointsTableRowModel]
    clubs: List[ClubStandingModel]


class ConfigResponse(BaseModel):
    results: Optional[dict] = None
    series: dict


@lru_cache(maxsize=1)
def store() -> DataStore:
    return DataStore()


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/config", response_model=ConfigResponse)
def config():
    try:
        results_config = store().load_results_config()
        series_config = store().load_series_config()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return ConfigResponse(
        results=results_config.to_dict() if results_config else None,
        series=series_config.to_dict(),
    )


@app.put("/seasons/{season}/events/{event}", status_code=204)
def upload_event(season: str, event: str, payload: EventUploadRequest) -> None:
    try:
        raw_results = [
            RawResult(race_number=item.race_number.strip(), time=RaceTime.parse(item.time))
            for item in payload.raw_results
        ]
        store().save_event(season, Event(event, payload.date, raw_results))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except RuntimeError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@app.get("/seasons/{season}/standings", response_model=StandingsResponse)
def standings(season: str):
    try:
        athletes = store().load_athletes()
        season_model = store().load_season(season)
        results_config = store().load_results_config()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    rows: List[PointsTableRowModel] = []
    for athlete in season_model.athletes:
        details = athletes.get_athlete(athlete.key)
        points = athlete.points
        runs = athlete.number_of_appearances
        best = athlete.season_best
        rows.append(
            PointsTableRowModel(
                key=athlete.key,
                name=athlete.name,
                raceNumber=details.primary_number if details else "",
                points=points.total_points,
                finishingPoints=points.total_finishing_points,
                positionPoints=points.total_position_points,
                bestPoints=points.total_best_points,
                numberOfRuns=runs,
                averagePoints=round(points.total_points / runs, 2) if runs else 0.0,
                seasonBest=str(RaceTime(RaceTimeDescription.FINISHED, best)) if best is not None else None,
            )
        )

    # Highest total leads under the descending scheme.
    descending = results_config.scores_are_descending if results_config else True
    rows.sort(key=lambda row: (-row.points if descending else row.points, row.name))

    clubs = [
        ClubStandingModel(
            club=club.name,
            mobTrophyPoints=club.mob_trophy_total,
            teamTrophyPoints=club.team_trophy_total,
        )
        for club in season_model.clubs
    ]
    clubs.sort(key=lambda row: (-row.team_trophy_points, -row.mob_trophy_points, row.club))

    return StandingsResponse(season=season, athletes=rows, clubs=clubs)


@app.post("/seasons/{season}/events/{event}/calculate", response_model=CalculateResponse)
def calculate(season: str, event: str):
    try:
        model = store().load_model(season, event)
        results_config = store().load_results_config()
        series_config = store().load_series_config()
    except ValueError as exc:
        if str(exc) == "Event not found":
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    messenger = Messenger()
    message_log = MessageLog()
    messenger.register(message_log)

    calculator = CalculateResults(model, results_config, series_config, messenger)
    try:
        results_table = calculator.calculate_results()
    except RuntimeError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    if results_table is None:
        raise HTTPException(status_code=409, detail=message_log.errors)

    date = model.current_event.date
    mob_trophy: List[MobTrophyRowModel] = []
    team_trophy: List[TeamTrophyRowModel] = []
    for club in model.current_season.clubs:
        # Only the record appended by this run; earlier runs of the event stay in the history.
        if not club.mob_trophy_points or club.mob_trophy_points[-1].date != date:
            continue
        points = club.mob_trophy_points[-1]
        mob_trophy.append(
            MobTrophyRowModel(
                club=club.name,
                finishingPoints=points.finishing_points,
                positionPoints=points.position_points,
                bestPoints=points.best_points,
            )
        )

    allocation = calculator.team_trophy
    if allocation is not None:
        for club_name, team in allocation.ranked():
            team_trophy.append(
                TeamTrophyRowModel(
                    club=club_name,
                    totalAthletePoints=team.total_athlete_points,
                    numberOfAthletes=team.number_of_athletes,
                    score=team.score,
                    athletes=[point.name for point in team.points if point.scored],
                )
            )

    return CalculateResponse(
        season=season,
        event=event,
        date=date.isoformat(),
        state=calculator.state.value,
        relay=bool(allocation and allocation.is_relay_event),
        results=[ResultsRowModel(**row) for row in results_table.to_list()],
        mobTrophy=mob_trophy,
        teamTrophy=team_trophy,
        messages=[message.text for message in message_log.messages],
    )
