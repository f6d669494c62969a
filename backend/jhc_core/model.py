from __future__ import annotations

import datetime as dt
import logging
from typing import TYPE_CHECKING, Iterable, List, Optional

from .athletes import Athletes
from .results import EventResults, RawResult
from .season import Season

if TYPE_CHECKING:  # pragma: no cover
    from .loader import DataStore

logger = logging.getLogger(__name__)


class Event:
    """A single event within a season: its raw results and, once calculated, its table."""

    def __init__(
        self,
        name: str,
        date: dt.date,
        raw_results: Iterable[RawResult] | None = None,
        results_table: EventResults | None = None,
    ) -> None:
        self.name = name
        self.date = date
        self._raw_results: List[RawResult] = list(raw_results or [])
        self.results_table = results_table

    def load_raw_results(self) -> List[RawResult]:
        return list(self._raw_results)

    def set_raw_results(self, raw_results: Iterable[RawResult]) -> None:
        self._raw_results = list(raw_results)

    def set_results_table(self, results_table: EventResults) -> None:
        self.results_table = results_table


class HandicapModel:
    """Everything a calculation reads and writes, plus the store it is saved to."""

    def __init__(
        self,
        athletes: Athletes,
        clubs: Iterable[str],
        current_season: Season,
        current_event: Event,
        store: Optional["DataStore"] = None,
    ) -> None:
        self.athletes = athletes
        self.clubs: List[str] = list(clubs)
        self.current_season = current_season
        self.current_event = current_event
        self.store = store

    def save_all(self) -> None:
        if self.store is None:
            logger.debug("No data store attached; skipping save for season %s", self.current_season.name)
            return
        self.store.save_model(self)
