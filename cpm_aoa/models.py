from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import networkx as nx


@dataclass
class Activity:
    """Represents a project activity as supplied by the caller."""

    id: str
    name: str
    duration: float
    predecessors: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        # Predecessors are a set; keep first-seen order for determinism.
        seen: set[str] = set()
        unique: List[str] = []
        for pred_id in self.predecessors:
            if pred_id in seen:
                continue
            seen.add(pred_id)
            unique.append(pred_id)
        self.predecessors = unique


@dataclass
class ComputedActivity(Activity):
    """Represents an activity with all scheduling attributes."""

    # Forward pass results
    es: float = 0.0  # Early Start
    ef: float = 0.0  # Early Finish

    # Backward pass results
    ls: float = 0.0  # Late Start
    lf: float = 0.0  # Late Finish

    # Float calculations
    total_float: float = 0.0  # Total Float (TF)
    free_float: float = 0.0   # Free Float (FF)

    # Critical path flag
    is_critical: bool = False


@dataclass
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class AOAEvent:
    """Event node of an arrow diagram."""

    id: int
    es: float = 0.0
    lf: float = 0.0


@dataclass
class AOAActivity:
    """Arc of an arrow diagram: a real activity or a zero-duration dummy."""

    id: str
    name: str
    duration: float
    start_event: int
    end_event: int
    is_dummy: bool = False
    es: float = 0.0
    ef: float = 0.0
    ls: float = 0.0
    lf: float = 0.0
    total_float: float = 0.0
    is_critical: bool = False

    @property
    def pair(self) -> tuple[int, int]:
        return (self.start_event, self.end_event)


@dataclass
class AOANetwork:
    events: Dict[int, AOAEvent] = field(default_factory=dict)
    activities: List[AOAActivity] = field(default_factory=list)
    start_event: int = 1
    end_event: int = 1

    @property
    def dummies(self) -> List[AOAActivity]:
        return [arc for arc in self.activities if arc.is_dummy]

    def to_networkx(self) -> nx.MultiDiGraph:
        """
        Export the arrow diagram as a networkx multigraph.

        Events become nodes carrying ``es``/``lf``; arcs become edges keyed by
        the arc id and carrying the remaining arc attributes.
        """
        graph = nx.MultiDiGraph()
        for event in self.events.values():
            graph.add_node(event.id, es=event.es, lf=event.lf)
        for arc in self.activities:
            graph.add_edge(
                arc.start_event,
                arc.end_event,
                key=arc.id,
                name=arc.name,
                duration=arc.duration,
                is_dummy=arc.is_dummy,
                is_critical=arc.is_critical,
                total_float=arc.total_float,
            )
        return graph


@dataclass
class CPMResult:
    """Outcome of one scheduling run."""

    activities: List[ComputedActivity] = field(default_factory=list)
    project_duration: float = 0.0
    critical_paths: List[List[str]] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    aoa_network: Optional[AOANetwork] = None

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def get_activity(self, activity_id: str) -> Optional[ComputedActivity]:
        for activity in self.activities:
            if activity.id == activity_id:
                return activity
        return None


@dataclass
class PERTActivity:
    """Activity described by a three-point duration estimate."""

    id: str
    name: str
    optimistic: float       # Best time
    most_likely: float      # Typical time
    pessimistic: float      # Worst time
    predecessors: List[str] = field(default_factory=list)


@dataclass
class ComputedPERTActivity(PERTActivity):
    expected_duration: float = 0.0
    es: float = 0.0
    ef: float = 0.0
    ls: float = 0.0
    lf: float = 0.0
    total_float: float = 0.0
    free_float: float = 0.0
    is_critical: bool = False


@dataclass
class PERTResult(CPMResult):
    pert_activities: List[ComputedPERTActivity] = field(default_factory=list)
