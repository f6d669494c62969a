from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class SexType(Enum):
    MALE = "Male"
    FEMALE = "Female"
    NOT_SPECIFIED = "NotSpecified"


class RaceTimeDescription(Enum):
    FINISHED = "Finished"
    RELAY = "Relay"
    DID_NOT_FINISH = "DidNotFinish"
    DID_NOT_START = "DidNotStart"


@dataclass(frozen=True)
class RaceTime:
    """A clock time at the finish line plus how the runner got there."""

    description: RaceTimeDescription
    seconds: int = 0

    @property
    def is_timed(self) -> bool:
        return self.description in (RaceTimeDescription.FINISHED, RaceTimeDescription.RELAY)

    def sort_key(self) -> tuple[int, int]:
        # Untimed results always sit at the bottom of the table.
        return (0, self.seconds) if self.is_timed else (1, self.seconds)

    def to_dict(self) -> Dict[str, Any]:
        return {"description": self.description.value, "seconds": self.seconds}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RaceTime":
        return cls(
            description=RaceTimeDescription(data.get("description") or RaceTimeDescription.FINISHED.value),
            seconds=int(data.get("seconds") or 0),
        )

    @classmethod
    def parse(cls, value: Optional[str]) -> "RaceTime":
        """Parse ``mm:ss`` / ``hh:mm:ss`` or one of the status codes."""

        text = (value or "").strip().upper()
        codes = {
            "DNF": RaceTimeDescription.DID_NOT_FINISH,
            "DNS": RaceTimeDescription.DID_NOT_START,
            "RELAY": RaceTimeDescription.RELAY,
        }
        if not text or text in codes:
            return cls(codes.get(text, RaceTimeDescription.DID_NOT_START))

        parts = text.split(":")
        try:
            numbers = [int(part) for part in parts]
        except ValueError as exc:
            raise ValueError(f"invalid race time '{value}'") from exc
        if not 1 <= len(numbers) <= 3 or any(number < 0 for number in numbers):
            raise ValueError(f"invalid race time '{value}'")

        seconds = 0
        for number in numbers:
            seconds = seconds * 60 + number
        return cls(RaceTimeDescription.FINISHED, seconds)

    def __str__(self) -> str:
        if not self.is_timed:
            return self.description.value
        minutes, seconds = divmod(self.seconds, 60)
        return f"{minutes:02d}:{seconds:02d}"
