from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional

from .types import SexType

logger = logging.getLogger(__name__)


@dataclass
class AthleteDetails:
    """An athlete known to the series, independent of any season."""

    key: int
    name: str
    club: str = ""
    sex: SexType = SexType.NOT_SPECIFIED
    handicap: int = 0  # Seconds added to the start gun
    race_numbers: List[str] = field(default_factory=list)
    appearances: List[dt.date] = field(default_factory=list)

    @property
    def first_timer(self) -> bool:
        return not self.appearances

    def first_timer_at(self, date: dt.date) -> bool:
        """True if the athlete has no appearance before ``date``."""

        return not any(appearance < date for appearance in self.appearances)

    @property
    def primary_number(self) -> str:
        return self.race_numbers[0] if self.race_numbers else ""

    def add_appearance(self, date: dt.date) -> None:
        if date not in self.appearances:
            self.appearances.append(date)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "club": self.club,
            "sex": self.sex.value,
            "handicap": self.handicap,
            "raceNumbers": list(self.race_numbers),
            "appearances": [date.isoformat() for date in self.appearances],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AthleteDetails":
        return cls(
            key=int(data["key"]),
            name=str(data.get("name") or "").strip(),
            club=str(data.get("club") or "").strip(),
            sex=SexType(data.get("sex") or SexType.NOT_SPECIFIED.value),
            handicap=int(data.get("handicap") or 0),
            race_numbers=[str(number) for number in data.get("raceNumbers") or []],
            appearances=[dt.date.fromisoformat(value) for value in data.get("appearances") or []],
        )


class Athletes:
    """Registry of every athlete, looked up by key or race number."""

    def __init__(self, athletes: Iterable[AthleteDetails] | None = None) -> None:
        self._athletes: Dict[int, AthleteDetails] = {}
        self._numbers: Dict[str, int] = {}
        for athlete in athletes or []:
            self.add(athlete)

    def __iter__(self) -> Iterator[AthleteDetails]:
        return iter(self._athletes.values())

    def __len__(self) -> int:
        return len(self._athletes)

    def add(self, athlete: AthleteDetails) -> None:
        if athlete.key in self._athletes:
            raise ValueError(f"athlete key {athlete.key} already registered")
        for number in athlete.race_numbers:
            owner = self._numbers.get(number.upper())
            if owner is not None:
                raise ValueError(f"race number {number} already belongs to athlete {owner}")
        self._athletes[athlete.key] = athlete
        for number in athlete.race_numbers:
            self._numbers[number.upper()] = athlete.key

    def get_athlete(self, key: int) -> Optional[AthleteDetails]:
        return self._athletes.get(key)

    def get_athlete_key(self, race_number: str) -> Optional[int]:
        return self._numbers.get(race_number.strip().upper())

    def get_athlete_name(self, key: int) -> str:
        athlete = self._athletes.get(key)
        if athlete is None:
            logger.warning("Athlete %s is not registered", key)
            return ""
        return athlete.name

    def is_first_timer(self, key: int, date: Optional[dt.date] = None) -> bool:
        # Someone the registry has never seen is treated as new.
        athlete = self._athletes.get(key)
        if athlete is None:
            return True
        return athlete.first_timer if date is None else athlete.first_timer_at(date)

    def to_list(self) -> List[Dict[str, Any]]:
        return [athlete.to_dict() for athlete in sorted(self, key=lambda a: a.key)]

    @classmethod
    def from_list(cls, rows: Iterable[Dict[str, Any]]) -> "Athletes":
        return cls(AthleteDetails.from_dict(row) for row in rows if isinstance(row, dict))
