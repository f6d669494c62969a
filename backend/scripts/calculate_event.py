"""CLI helper for calculating one event's results against the data store."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List

from jhc_core import CalculateResults, DataStore, MessageLog, Messenger


def _format_table(results_table) -> str:
    lines = ["Pos  No      Name                Club        Time   Pts  TT   Info"]
    for position, entry in enumerate(results_table, start=1):
        points = "" if entry.points.position_points is None else str(entry.points.position_points)
        team = "" if entry.team_trophy_points < 0 else str(entry.team_trophy_points)
        lines.append(
            f"{str(position).ljust(5)}{entry.race_number.ljust(8)}{entry.name[:19].ljust(20)}"
            f"{entry.club[:11].ljust(12)}{str(entry.time).ljust(7)}{points.ljust(5)}{team.ljust(5)}"
            f"{entry.extra_info or ''}"
        )
    return "\n".join(lines)


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("season")
    parser.add_argument("event")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    store = DataStore()
    try:
        model = store.load_model(args.season, args.event)
        results_config = store.load_results_config()
        series_config = store.load_series_config()
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    messenger = Messenger()
    message_log = MessageLog()
    messenger.register(message_log)

    try:
        results_table = CalculateResults(model, results_config, series_config, messenger).calculate_results()
    except RuntimeError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    if results_table is None:
        for error in message_log.errors:
            print(f"ERROR: {error}", file=sys.stderr)
        return 1

    print(_format_table(results_table))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
