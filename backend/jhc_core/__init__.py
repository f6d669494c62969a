"""Results calculation for a junior handicap running series."""

from .athletes import AthleteDetails, Athletes
from .calculate import CalculateResults, CalculationState, TeamTrophyAllocation
from .config import ConfigManager, ResultsConfig, SeriesConfig
from .loader import DataStore
from .messages import ErrorMessage, MessageLog, Messenger, ProgressMessage
from .model import Event, HandicapModel
from .results import EventResults, RawResult, ResultsTableEntry, ResultsTableGenerator
from .season import Season
from .types import RaceTime, RaceTimeDescription, SexType

__all__ = [
    "AthleteDetails",
    "Athletes",
    "CalculateResults",
    "CalculationState",
    "ConfigManager",
    "DataStore",
    "ErrorMessage",
    "Event",
    "EventResults",
    "HandicapModel",
    "MessageLog",
    "Messenger",
    "ProgressMessage",
    "RaceTime",
    "RaceTimeDescription",
    "RawResult",
    "ResultsConfig",
    "ResultsTableEntry",
    "ResultsTableGenerator",
    "Season",
    "SeriesConfig",
    "SexType",
    "TeamTrophyAllocation",
]
