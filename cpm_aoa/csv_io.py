from __future__ import annotations

import csv
import math
from typing import Iterable, List

import pandas as pd

from .models import Activity, ComputedActivity

ACTIVITY_COLUMNS = ["id", "name", "duration", "predecessors"]
RESULT_COLUMNS = ACTIVITY_COLUMNS + [
    "es",
    "ef",
    "ls",
    "lf",
    "total_float",
    "free_float",
    "critical",
]


def _format_number(value: float) -> str:
    """Render integral values without a trailing ``.0``."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _safe_float(value: str, default: float = 0.0) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number):
        return default
    return number


def parse_csv(text: str) -> List[Activity]:
    """
    Parse activities from CSV text.

    Expected columns: id,name,duration,predecessors (predecessors separated
    by ``;``). The header line is skipped, as are blank lines and lines with
    fewer than three fields. A missing name falls back to the id and an
    unparsable duration becomes 0.
    """
    lines = text.strip().splitlines()
    if len(lines) < 2:
        return []

    activities: List[Activity] = []
    for row in csv.reader(lines[1:]):
        parts = [part.strip() for part in row]
        if len(parts) < 3 or not parts[0]:
            continue

        act_id = parts[0]
        name = parts[1] or act_id
        duration = _safe_float(parts[2])
        predecessors = []
        if len(parts) > 3 and parts[3]:
            predecessors = [p.strip() for p in parts[3].split(";") if p.strip()]

        activities.append(Activity(act_id, name, duration, predecessors))

    return activities


def activities_dataframe(activities: Iterable[Activity]) -> pd.DataFrame:
    """Get activities list as a pandas DataFrame."""
    data = [
        {
            "id": act.id,
            "name": act.name,
            "duration": _format_number(act.duration),
            "predecessors": ";".join(act.predecessors),
        }
        for act in activities
    ]
    return pd.DataFrame(data, columns=ACTIVITY_COLUMNS)


def results_dataframe(activities: Iterable[ComputedActivity]) -> pd.DataFrame:
    """Get calculation results as a pandas DataFrame."""
    data = [
        {
            "id": act.id,
            "name": act.name,
            "duration": act.duration,
            "predecessors": ";".join(act.predecessors),
            "es": act.es,
            "ef": act.ef,
            "ls": act.ls,
            "lf": act.lf,
            "total_float": act.total_float,
            "free_float": act.free_float,
            "critical": act.is_critical,
        }
        for act in activities
    ]
    return pd.DataFrame(data, columns=RESULT_COLUMNS)


def export_activities_csv(activities: Iterable[Activity]) -> str:
    return activities_dataframe(activities).to_csv(index=False, lineterminator="\n")


def export_results_csv(activities: Iterable[ComputedActivity]) -> str:
    """Export computed activities; ``critical`` is written as true/false."""
    df = results_dataframe(activities)
    for column in ("duration", "es", "ef", "ls", "lf", "total_float", "free_float"):
        df[column] = df[column].map(_format_number)
    df["critical"] = df["critical"].map(lambda flag: "true" if flag else "false")
    return df.to_csv(index=False, lineterminator="\n")


def read_csv_file(path: str) -> List[Activity]:
    with open(path, encoding="utf-8") as handle:
        return parse_csv(handle.read())

