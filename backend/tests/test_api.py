from __future__ import annotations

import json
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from app import main as main_module


@pytest.fixture
def client(tmp_path, monkeypatch: pytest.MonkeyPatch) -> Generator[TestClient, None, None]:
    for name in ("SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_SERVICE_KEY", "SUPABASE_ANON_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("JHC_DATA_DIR", str(tmp_path))
    (tmp_path / "athletes.json").write_text(
        json.dumps(
            [
                {"key": 1, "name": "Alice", "club": "Ashford", "sex": "Female", "raceNumbers": ["A0001"], "appearances": ["2025-04-12"]},
                {"key": 2, "name": "Ben", "club": "Bromley", "sex": "Male", "raceNumbers": ["A0002"], "appearances": ["2025-04-12"]},
            ]
        )
    )
    (tmp_path / "clubs.json").write_text(json.dumps(["Ashford", "Bromley"]))
    main_module.store.cache_clear()
    yield TestClient(main_module.app)
    main_module.store.cache_clear()


def _upload(client: TestClient) -> None:
    response = client.put(
        "/seasons/2025/events/Event 1",
        json={
            "date": "2025-05-10",
            "rawResults": [
                {"raceNumber": "A0001", "time": "20:00"},
                {"raceNumber": "A0002", "time": "20:05"},
            ],
        },
    )
    assert response.status_code == 204


def test_calculate_endpoint(client: TestClient) -> None:
    main_module.store().config.save_default_results_configuration()
    _upload(client)

    response = client.post("/seasons/2025/events/Event 1/calculate")

    assert response.status_code == 200
    body = response.json()
    assert body["state"] == "Persisted"
    assert body["relay"] is False
    assert [row["name"] for row in body["results"]] == ["Alice", "Ben"]
    assert [row["positionPoints"] for row in body["results"]] == [10, 9]
    assert [row["extraInfo"] for row in body["results"]] == ["First Gal", "First Boy"]
    assert [row["club"] for row in body["teamTrophy"]] == ["Ashford", "Bromley"]
    assert [row["score"] for row in body["teamTrophy"]] == [10, 8]
    assert {row["club"]: row["positionPoints"] for row in body["mobTrophy"]} == {"Ashford": 10, "Bromley": 9}
    assert body["messages"][-1] == "Calculate Results - Completed"


def test_calculate_without_config_conflicts(client: TestClient) -> None:
    _upload(client)

    response = client.post("/seasons/2025/events/Event 1/calculate")

    assert response.status_code == 409
    assert response.json()["detail"] == ["Can't calculate results - invalid config"]


def test_calculate_unknown_event(client: TestClient) -> None:
    response = client.post("/seasons/2025/events/Missing/calculate")

    assert response.status_code == 404


def test_upload_rejects_bad_time(client: TestClient) -> None:
    response = client.put(
        "/seasons/2025/events/Event 1",
        json={"date": "2025-05-10", "rawResults": [{"raceNumber": "A0001", "time": "soon"}]},
    )

    assert response.status_code == 400


def test_config_endpoint(client: TestClient) -> None:
    assert client.get("/config").json() == {"results": None, "series": {"all_positions_shown": False}}

    main_module.store().config.save_default_results_configuration()

    body = client.get("/config").json()
    assert body["results"]["team_trophy_points"] == [10, 8, 6, 5, 4, 3, 2, 1]


def test_recalculating_reports_one_mob_trophy_row_per_club(client: TestClient) -> None:
    main_module.store().config.save_default_results_configuration()
    _upload(client)

    client.post("/seasons/2025/events/Event 1/calculate")
    response = client.post("/seasons/2025/events/Event 1/calculate")

    assert response.status_code == 200
    rows = response.json()["mobTrophy"]
    assert [row["club"] for row in rows] == ["Ashford", "Bromley"]
    assert [row["positionPoints"] for row in rows] == [10, 9]


def test_standings_endpoint(client: TestClient) -> None:
    main_module.store().config.save_default_results_configuration()
    _upload(client)
    client.post("/seasons/2025/events/Event 1/calculate")

    response = client.get("/seasons/2025/standings")

    assert response.status_code == 200
    body = response.json()
    alice, ben = body["athletes"]
    assert (alice["name"], alice["raceNumber"], alice["points"]) == ("Alice", "A0001", 4 + 10)
    assert (alice["numberOfRuns"], alice["averagePoints"], alice["seasonBest"]) == (1, 14.0, "20:00")
    assert (ben["name"], ben["points"], ben["positionPoints"]) == ("Ben", 4 + 9, 9)
    assert body["clubs"] == [
        {"club": "Ashford", "mobTrophyPoints": 14, "teamTrophyPoints": 10},
        {"club": "Bromley", "mobTrophyPoints": 13, "teamTrophyPoints": 8},
    ]


def test_standings_for_new_season_are_empty(client: TestClient) -> None:
    body = client.get("/seasons/2026/standings").json()

    assert body == {"season": "2026", "athletes": [], "clubs": []}
