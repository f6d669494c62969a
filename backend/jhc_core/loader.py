from __future__ import annotations

import datetime as dt
import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from .athletes import Athletes
from .config import ConfigManager, ResultsConfig, SeriesConfig
from .model import Event, HandicapModel
from .results import EventResults, RawResult
from .season import Season

logger = logging.getLogger(__name__)


class DataStore:
    """Loads and saves series data from Supabase or the local JSON fallback.

    Every record is kept as one JSON document: the athlete registry, the club
    list, one document per season and one per event. When Supabase is
    configured it is tried first; any failure there is logged and the local
    files are used instead.
    """

    def __init__(self, data_dir: Path | None = None) -> None:
        env_dir = os.getenv("JHC_DATA_DIR", "")
        self.data_dir = data_dir or (Path(env_dir) if env_dir else Path(__file__).parent.parent / "data")
        self.config = ConfigManager(self.data_dir)

        self.supabase_url = os.getenv("SUPABASE_URL", "")
        self.supabase_key = (
            os.getenv("SUPABASE_SERVICE_ROLE_KEY")
            or os.getenv("SUPABASE_SERVICE_KEY")
            or os.getenv("SUPABASE_ANON_KEY")
            or ""
        )
        self.supabase_table = os.getenv("SUPABASE_DOCUMENTS_TABLE", "jhc_documents")
        self.supabase_schema = os.getenv("SUPABASE_SCHEMA", "public")

    @property
    def remote_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    # ------------------------------------------------------------------
    # Configuration

    def load_results_config(self) -> Optional[ResultsConfig]:
        return self.config.read_results_configuration()

    def load_series_config(self) -> SeriesConfig:
        return self.config.read_series_configuration()

    # ------------------------------------------------------------------
    # Model loading

    def load_athletes(self) -> Athletes:
        rows = self._load_document("athletes", self.data_dir / "athletes.json", [])
        if not isinstance(rows, list):
            raise ValueError("Athlete registry must be a list")
        return Athletes.from_list(rows)

    def load_clubs(self) -> List[str]:
        rows = self._load_document("clubs", self.data_dir / "clubs.json", [])
        if not isinstance(rows, list):
            raise ValueError("Club list must be a list")
        return [str(club).strip() for club in rows if str(club).strip()]

    def load_season(self, season_name: str) -> Season:
        payload = self._load_document(
            self._season_id(season_name),
            self._season_path(season_name),
            None,
        )
        if payload is None:
            logger.info("Season %s not found; starting a new one", season_name)
            return Season(season_name)
        if not isinstance(payload, dict):
            raise ValueError(f"Season {season_name} is not a JSON object")
        season = Season.from_dict(payload)
        season.name = season_name
        return season

    def load_event(self, season_name: str, event_name: str) -> Event:
        payload = self._load_document(
            self._event_id(season_name, event_name),
            self._event_path(season_name, event_name),
            None,
        )
        if not isinstance(payload, dict):
            raise ValueError("Event not found")

        date = self._coerce_date(payload.get("date"))
        if date is None:
            raise ValueError(f"Event {event_name} has no valid date")

        raw_results = [
            RawResult.from_dict(row) for row in payload.get("rawResults") or [] if isinstance(row, dict)
        ]
        table_rows = payload.get("resultsTable")
        results_table = EventResults.from_list(table_rows) if isinstance(table_rows, list) else None
        return Event(event_name, date, raw_results, results_table)

    def load_model(self, season_name: str, event_name: str) -> HandicapModel:
        athletes = self.load_athletes()
        clubs = self.load_clubs()
        season = self.load_season(season_name)
        for club in clubs:
            season.add_new_club(club)
        event = self.load_event(season_name, event_name)
        return HandicapModel(athletes, clubs, season, event, store=self)

    # ------------------------------------------------------------------
    # Model saving

    def save_model(self, model: HandicapModel) -> None:
        season_name = model.current_season.name

        self._save_document("athletes", self.data_dir / "athletes.json", model.athletes.to_list())
        self._save_document("clubs", self.data_dir / "clubs.json", list(model.clubs))
        self._save_document(
            self._season_id(season_name),
            self._season_path(season_name),
            model.current_season.to_dict(),
        )
        self.save_event(season_name, model.current_event)

    def save_event(self, season_name: str, event: Event) -> None:
        self._save_document(
            self._event_id(season_name, event.name),
            self._event_path(season_name, event.name),
            {
                "name": event.name,
                "date": event.date.isoformat(),
                "rawResults": [raw.to_dict() for raw in event.load_raw_results()],
                "resultsTable": event.results_table.to_list() if event.results_table else None,
                "updatedAt": self._utc_now_iso(),
            },
        )

    # ------------------------------------------------------------------
    # Document helpers

    def _load_document(self, document_id: str, path: Path, default: Any) -> Any:
        if self.remote_enabled:
            payload = self._fetch_remote_document(document_id)
            if payload is not None:
                return payload
        return self._read_json_file(path, default)

    def _save_document(self, document_id: str, path: Path, payload: Any) -> None:
        if self.remote_enabled and self._store_remote_document(document_id, payload):
            return
        self._write_json_file(path, payload)

    def _fetch_remote_document(self, document_id: str) -> Any:
        endpoint = self._supabase_endpoint(self.supabase_table)
        params = {"select": "id,payload", "id": f"eq.{document_id}", "limit": "1"}
        try:
            with httpx.Client(timeout=10.0) as client:
                response = client.get(endpoint, params=params, headers=self._supabase_headers())
                response.raise_for_status()
                rows = response.json()
        except httpx.HTTPError as exc:
            logger.warning("Supabase fetch of %s failed (%s); using local fallback", document_id, exc)
            return None

        if not isinstance(rows, list):
            logger.warning("Supabase fetch of %s returned unexpected payload: %s", document_id, type(rows))
            return None
        for row in rows:
            if isinstance(row, dict) and row.get("id") == document_id:
                return row.get("payload")
        return None

    def _store_remote_document(self, document_id: str, payload: Any) -> bool:
        endpoint = self._supabase_endpoint(self.supabase_table)
        record = {"id": document_id, "payload": payload, "updated_at": self._utc_now_iso()}
        headers = self._supabase_headers(prefer="resolution=merge-duplicates,return=minimal")
        try:
            with httpx.Client(timeout=10.0) as client:
                response = client.post(endpoint, params={"on_conflict": "id"}, json=record, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            detail = self._extract_supabase_detail(exc.response)
            logger.warning(
                "Supabase save of %s failed (%s); using local fallback",
                document_id,
                detail or exc,
            )
            return False
        except httpx.HTTPError as exc:
            logger.warning("Supabase save of %s unavailable (%s); using local fallback", document_id, exc)
            return False
        return True

    def _supabase_endpoint(self, table: str) -> str:
        return f"{self.supabase_url.rstrip('/')}/rest/v1/{table}"

    def _supabase_headers(self, prefer: str | None = None) -> Dict[str, str]:
        headers = {
            "apikey": self.supabase_key,
            "Authorization": f"Bearer {self.supabase_key}",
            "Accept-Profile": self.supabase_schema,
            "Content-Profile": self.supabase_schema,
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    @staticmethod
    def _extract_supabase_detail(response: httpx.Response | None) -> str | None:
        if response is None:
            return None
        try:
            payload = response.json()
        except ValueError:
            return response.text or None
        if isinstance(payload, dict):
            for key in ("message", "details", "hint"):
                value = payload.get(key)
                if isinstance(value, str) and value.strip():
                    return value.strip()
        return None

    @staticmethod
    def _slug(value: str) -> str:
        return re.sub(r"[^-\w]+", "_", value.strip())

    def _season_id(self, season_name: str) -> str:
        return f"season:{season_name}"

    def _event_id(self, season_name: str, event_name: str) -> str:
        return f"event:{season_name}:{event_name}"

    def _season_path(self, season_name: str) -> Path:
        return self.data_dir / "seasons" / f"{self._slug(season_name)}.json"

    def _event_path(self, season_name: str, event_name: str) -> Path:
        return self.data_dir / "events" / self._slug(season_name) / f"{self._slug(event_name)}.json"

    @staticmethod
    def _coerce_date(value: Any) -> dt.date | None:
        if isinstance(value, dt.date):
            return value
        if isinstance(value, str) and value.strip():
            try:
                return dt.date.fromisoformat(value.strip()[:10])
            except ValueError:
                return None
        return None

    def _read_json_file(self, path: Path, default: Any) -> Any:
        try:
            if not path.exists():
                return default
            with path.open("r", encoding="utf-8") as handle:
                return json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Falling back to default for %s due to read error: %s", path, exc)
            return default

    def _write_json_file(self, path: Path, data: Any) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2, sort_keys=True)
        except OSError as exc:
            raise RuntimeError(f"Failed to write local data store {path}") from exc

    @staticmethod
    def _utc_now_iso() -> str:
        return dt.datetime.now(dt.timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")
