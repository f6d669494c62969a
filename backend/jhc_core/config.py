from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

RESULTS_CONFIG_FILE = "results_config.json"
SERIES_CONFIG_FILE = "series_config.json"

DEFAULT_TEAM_TROPHY_POINTS: Tuple[int, ...] = (10, 8, 6, 5, 4, 3, 2, 1)


@dataclass(frozen=True)
class ResultsConfig:
    """Scoring rules for a season, resolved before any event is calculated.

    ``scores_are_descending`` selects the position scheme: descending awards
    ``number_of_scoring_positions`` points to the first scorer and counts down
    to zero (highest season total wins); ascending awards 1 for first, 2 for
    second and so on (lowest season total wins).
    """

    finishing_points: int = 4
    season_best_points: int = 2
    number_of_scoring_positions: int = 10
    team_finishing_points: int = 4
    number_in_team: int = 5
    team_season_best_points: int = 2
    use_teams: bool = True
    scores_are_descending: bool = True
    exclude_first_timers: bool = False
    number_in_team_trophy_team: int = 4
    team_trophy_points: Optional[Tuple[int, ...]] = field(default=DEFAULT_TEAM_TROPHY_POINTS)

    def position_score_to_be_counted(self, first_timer: bool) -> bool:
        return not (self.exclude_first_timers and first_timer)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if self.team_trophy_points is not None:
            data["team_trophy_points"] = list(self.team_trophy_points)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResultsConfig":
        if not isinstance(data, dict):
            raise ValueError("results configuration must be a JSON object")

        known = {item.name: item for item in fields(cls)}
        unknown = sorted(set(data) - set(known))
        if unknown:
            raise ValueError(f"unknown results configuration keys: {', '.join(unknown)}")

        values: Dict[str, Any] = {}
        for name, value in data.items():
            if name == "team_trophy_points":
                values[name] = _coerce_points_table(value)
            elif isinstance(known[name].default, bool):
                if not isinstance(value, bool):
                    raise ValueError(f"'{name}' must be true or false")
                values[name] = value
            else:
                if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                    raise ValueError(f"'{name}' must be a non-negative integer")
                values[name] = value
        return cls(**values)


@dataclass(frozen=True)
class SeriesConfig:
    all_positions_shown: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SeriesConfig":
        if not isinstance(data, dict):
            raise ValueError("series configuration must be a JSON object")
        return cls(all_positions_shown=bool(data.get("all_positions_shown", False)))


def _coerce_points_table(value: Any) -> Optional[Tuple[int, ...]]:
    if value is None:
        return None
    if not isinstance(value, list) or not all(
        isinstance(item, int) and not isinstance(item, bool) for item in value
    ):
        raise ValueError("'team_trophy_points' must be a list of integers")
    return tuple(value)


class ConfigManager:
    """Reads and writes the results and series configuration files."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = data_dir
        self.results_path = data_dir / RESULTS_CONFIG_FILE
        self.series_path = data_dir / SERIES_CONFIG_FILE

    def read_results_configuration(self) -> Optional[ResultsConfig]:
        """Return the results configuration, or ``None`` when there isn't one.

        A file that exists but can't be parsed raises ``ValueError``.
        """

        raw = self._read(self.results_path)
        if raw is None:
            logger.warning("Results configuration %s not found", self.results_path)
            return None
        return ResultsConfig.from_dict(raw)

    def read_series_configuration(self) -> SeriesConfig:
        raw = self._read(self.series_path)
        if raw is None:
            return SeriesConfig()
        return SeriesConfig.from_dict(raw)

    def save_results_configuration(self, config: ResultsConfig) -> None:
        self._write(self.results_path, config.to_dict())

    def save_default_results_configuration(self, override_existing: bool = False) -> bool:
        if self.results_path.exists() and not override_existing:
            return False
        self.save_results_configuration(ResultsConfig())
        logger.info("Couldn't find results config file. Created a new default one")
        return True

    @staticmethod
    def _read(path: Path) -> Optional[Dict[str, Any]]:
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as handle:
                return json.load(handle)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Configuration file {path} is not valid JSON: {exc}") from exc

    @staticmethod
    def _write(path: Path, data: Dict[str, Any]) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2, sort_keys=True)
        except OSError as exc:
            raise RuntimeError(f"Failed to write configuration file {path}") from exc
