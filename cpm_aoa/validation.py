from __future__ import annotations

from collections import Counter
from typing import Iterable, List

import networkx as nx

from .models import Activity, ValidationResult


def validate_activities(activities: Iterable[Activity]) -> ValidationResult:
    """
    Validate an activity set for calculation readiness.

    Errors (block computation):
    - Duplicate activity ids
    - Predecessor references to undefined activities
    - Negative durations

    Warnings (computation proceeds):
    - Zero-duration activities (milestones)
    - Network split into several disconnected components
    """
    activities = list(activities)
    errors: List[str] = []
    warnings: List[str] = []

    counts = Counter(act.id for act in activities)
    for act_id, count in counts.items():
        if count > 1:
            errors.append(f'Duplicate activity id "{act_id}" ({count} occurrences)')

    known_ids = set(counts)
    for act in activities:
        for pred_id in act.predecessors:
            if pred_id not in known_ids:
                errors.append(
                    f'Activity "{act.id}" references non-existent predecessor "{pred_id}"'
                )

        if act.duration < 0:
            errors.append(f'Activity "{act.id}" has negative duration')

        if act.duration == 0:
            warnings.append(f'Activity "{act.id}" has zero duration (milestone)')

    components = count_components(activities)
    if components > 1:
        warnings.append(
            f"Network has {components} disconnected components. Computing for entire project."
        )

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def count_components(activities: Iterable[Activity]) -> int:
    """Number of connected components, treating precedence links as undirected."""
    graph = nx.Graph()
    activities = list(activities)
    graph.add_nodes_from(act.id for act in activities)
    for act in activities:
        for pred_id in act.predecessors:
            if pred_id in graph:
                graph.add_edge(pred_id, act.id)
    return nx.number_connected_components(graph)
