from __future__ import annotations

from collections import deque
from typing import Dict, Iterable, List, Optional

import pandas as pd

from .aoa import AOAConverter
from .csv_io import results_dataframe
from .models import Activity, ComputedActivity, CPMResult
from .validation import validate_activities


def _fmt(value: float) -> str:
    return f"{value:g}"


class CPMScheduler:
    """
    Critical Path Method (CPM) Scheduler.

    Implements finish-to-start CPM on an Activity-on-Node network assuming
    unlimited resources, and derives the equivalent Activity-on-Arrow network.

    Each ``compute()`` call owns a fresh arena: activities are indexed by a
    dense integer position, with ``_index`` mapping ids to positions and the
    adjacency lists holding positions rather than ids.
    """

    def __init__(
        self,
        critical_tolerance: float = 1e-3,
        build_aoa: bool = True,
        trace_aoa: bool = False,
    ):
        self.critical_tolerance = critical_tolerance
        self.build_aoa = build_aoa
        self.trace_aoa = trace_aoa
        self.calculation_log: List[str] = []
        self.result: Optional[CPMResult] = None
        self._reset_arena([])

    def _reset_arena(self, activities: List[Activity]) -> None:
        self._records: List[Activity] = activities
        self._index: Dict[str, int] = {}
        self._successors: List[List[int]] = []
        self._predecessors: List[List[int]] = []
        self._es: List[float] = []
        self._ef: List[float] = []
        self._ls: List[float] = []
        self._lf: List[float] = []

    def compute(self, activities: Iterable[Activity]) -> CPMResult:
        """
        Perform full CPM calculation.

        Validation errors or a dependency cycle abort the run: the returned
        result then carries only ``errors``/``warnings``.
        """
        activities = list(activities)
        self.calculation_log.clear()
        self._log("=" * 70)
        self._log("CPM CALCULATION")
        self._log("Critical Path Method (Activity-on-Node)")
        self._log("=" * 70)
        self._log("")

        validation = validate_activities(activities)
        warnings = list(validation.warnings)
        for warning in warnings:
            self._log(f"WARNING: {warning}")
        if not validation.valid:
            for error in validation.errors:
                self._log(f"ERROR: {error}")
            self.result = CPMResult(errors=list(validation.errors), warnings=warnings)
            return self.result

        self._reset_arena(activities)
        self._build_adjacency()

        cycle = self._detect_cycle()
        if cycle:
            message = f"Cycle detected in the network: {' -> '.join(cycle)}"
            self._log(f"ERROR: {message}")
            self.result = CPMResult(errors=[message], warnings=warnings)
            return self.result

        order = self._get_topological_order()
        self._forward_pass(order)
        project_duration = max(self._ef, default=0.0)
        self._log(f"\nProject Finish = max(all EF values) = {_fmt(project_duration)}")
        self._backward_pass(order, project_duration)
        computed = self._calculate_floats(order, project_duration)
        critical_paths = self._identify_critical_paths(computed)

        aoa_network = None
        if self.build_aoa:
            converter = AOAConverter(computed, trace=self.trace_aoa)
            aoa_network = converter.convert()
            warnings.extend(converter.warnings)
            if self.trace_aoa:
                self._log("\n\nAOA CONVERSION")
                self._log("-" * 50)
                self.calculation_log.extend(converter.trace_log)

        self._log("")
        self._log("=" * 70)
        self._log("CALCULATION COMPLETE")
        self._log(f"Project Duration: {_fmt(project_duration)}")
        if critical_paths:
            self._log(f"Critical Paths: {len(critical_paths)}")
            for idx, path in enumerate(critical_paths, start=1):
                self._log(f"  {idx}. {' -> '.join(path)}")
        else:
            self._log("Critical Path: (none)")
        self._log("=" * 70)

        self.result = CPMResult(
            activities=computed,
            project_duration=project_duration,
            critical_paths=critical_paths,
            warnings=warnings,
            aoa_network=aoa_network,
        )
        return self.result

    def _log(self, message: str) -> None:
        self.calculation_log.append(message)

    def _build_adjacency(self) -> None:
        """Forward and reverse adjacency; every activity gets both lists."""
        self._index = {act.id: pos for pos, act in enumerate(self._records)}
        self._successors = [[] for _ in self._records]
        self._predecessors = [[] for _ in self._records]
        for pos, act in enumerate(self._records):
            for pred_id in act.predecessors:
                pred_pos = self._index[pred_id]
                self._successors[pred_pos].append(pos)
                self._predecessors[pos].append(pred_pos)

    def _detect_cycle(self) -> Optional[List[str]]:
        """
        Detect cycles in the activity network using an explicit-stack DFS.

        Returns the cycle as ids from the first occurrence of the repeated
        activity through the current one, closed by the repeated activity.
        """
        WHITE, GRAY, BLACK = 0, 1, 2
        color = [WHITE] * len(self._records)
        path: List[int] = []

        for root in range(len(self._records)):
            if color[root] != WHITE:
                continue
            color[root] = GRAY
            path.append(root)
            stack = [(root, iter(self._successors[root]))]
            while stack:
                node, pending = stack[-1]
                for succ in pending:
                    if color[succ] == GRAY:
                        start = path.index(succ)
                        return [self._records[pos].id for pos in path[start:]] + [
                            self._records[succ].id
                        ]
                    if color[succ] == WHITE:
                        color[succ] = GRAY
                        path.append(succ)
                        stack.append((succ, iter(self._successors[succ])))
                        break
                else:
                    color[node] = BLACK
                    path.pop()
                    stack.pop()
        return None

    def _get_topological_order(self) -> List[int]:
        """Get activities in topological order (predecessors before successors)."""
        in_degree = [len(preds) for preds in self._predecessors]
        queue = deque(pos for pos, degree in enumerate(in_degree) if degree == 0)
        order: List[int] = []

        while queue:
            node = queue.popleft()
            order.append(node)
            for succ in self._successors[node]:
                in_degree[succ] -= 1
                if in_degree[succ] == 0:
                    queue.append(succ)

        return order

    def _forward_pass(self, order: List[int]) -> None:
        """
        Forward pass calculation to determine Early Start (ES) and Early Finish (EF).
        """
        self._log("FORWARD PASS (Calculating ES and EF)")
        self._log("-" * 50)

        size = len(self._records)
        self._es = [0.0] * size
        self._ef = [0.0] * size

        for pos in order:
            act = self._records[pos]
            preds = self._predecessors[pos]
            if preds:
                self._es[pos] = max(self._ef[pred] for pred in preds)
                self._log(
                    f"\n{act.id} (predecessors: {', '.join(self._records[p].id for p in preds)}):"
                )
                self._log(f"  ES = max(EF of predecessors) = {_fmt(self._es[pos])}")
            else:
                self._es[pos] = 0.0
                self._log(f"\n{act.id} (no predecessors):")
                self._log("  ES = Project Start = 0")
            self._ef[pos] = self._es[pos] + act.duration
            self._log(
                f"  EF = ES + Duration = {_fmt(self._es[pos])} + {_fmt(act.duration)} = {_fmt(self._ef[pos])}"
            )

    def _backward_pass(self, order: List[int], project_duration: float) -> None:
        """
        Backward pass calculation to determine Late Start (LS) and Late Finish (LF).
        """
        self._log("\n\nBACKWARD PASS (Calculating LS and LF)")
        self._log("-" * 50)

        size = len(self._records)
        self._ls = [0.0] * size
        self._lf = [0.0] * size

        for pos in reversed(order):
            act = self._records[pos]
            succs = self._successors[pos]
            if succs:
                self._lf[pos] = min(self._ls[succ] for succ in succs)
                self._log(
                    f"\n{act.id} (successors: {', '.join(self._records[s].id for s in succs)}):"
                )
                self._log(f"  LF = min(LS of successors) = {_fmt(self._lf[pos])}")
            else:
                self._lf[pos] = project_duration
                self._log(f"\n{act.id} (no successors):")
                self._log(f"  LF = Project Finish = {_fmt(project_duration)}")
            self._ls[pos] = self._lf[pos] - act.duration
            self._log(
                f"  LS = LF - Duration = {_fmt(self._lf[pos])} - {_fmt(act.duration)} = {_fmt(self._ls[pos])}"
            )

    def _calculate_floats(self, order: List[int], project_duration: float) -> List[ComputedActivity]:
        """
        Calculate Total Float (TF) and Free Float (FF) and freeze the schedule.

        Activities are returned in topological order.
        """
        self._log("\n\nFLOAT CALCULATIONS")
        self._log("-" * 50)

        computed: List[ComputedActivity] = []
        for pos in order:
            act = self._records[pos]
            total_float = self._ls[pos] - self._es[pos]
            succs = self._successors[pos]
            if succs:
                free_float = min(self._es[succ] for succ in succs) - self._ef[pos]
            else:
                free_float = project_duration - self._ef[pos]
            is_critical = abs(total_float) < self.critical_tolerance

            self._log(f"\n{act.id}:")
            self._log(f"  Total Float (TF) = LS - ES = {_fmt(total_float)}")
            self._log(f"  Free Float (FF) = {_fmt(free_float)}")

            computed.append(
                ComputedActivity(
                    id=act.id,
                    name=act.name,
                    duration=act.duration,
                    predecessors=list(act.predecessors),
                    es=self._es[pos],
                    ef=self._ef[pos],
                    ls=self._ls[pos],
                    lf=self._lf[pos],
                    total_float=total_float,
                    free_float=free_float,
                    is_critical=is_critical,
                )
            )
        return computed

    def _identify_critical_paths(self, computed: List[ComputedActivity]) -> List[List[str]]:
        """
        Enumerate every path through the critical subgraph.

        Paths start at critical activities without critical predecessors and
        end at critical activities without critical successors.
        """
        self._log("\n\nCRITICAL PATH IDENTIFICATION")
        self._log("-" * 50)

        critical = [False] * len(self._records)
        for act in computed:
            critical[self._index[act.id]] = act.is_critical
            verdict = "CRITICAL" if act.is_critical else "Not critical"
            self._log(f"{act.id}: TF = {_fmt(act.total_float)} -> {verdict}")

        critical_successors = [
            [succ for succ in succs if critical[succ]] for succs in self._successors
        ]
        start_nodes = [
            self._index[act.id]
            for act in computed
            if act.is_critical
            and not any(critical[pred] for pred in self._predecessors[self._index[act.id]])
        ]

        paths: List[List[str]] = []
        for start in start_nodes:
            stack = [(start, [start])]
            while stack:
                node, path = stack.pop()
                if not critical_successors[node]:
                    paths.append([self._records[pos].id for pos in path])
                    continue
                for succ in reversed(critical_successors[node]):
                    stack.append((succ, path + [succ]))

        if paths:
            self._log(f"\nCritical Paths Found: {len(paths)}")
            for idx, path in enumerate(paths, start=1):
                self._log(f"  {idx}. {' -> '.join(path)}")
        else:
            self._log("\nCritical Path: (none)")
        return paths

    def get_results_dataframe(self) -> pd.DataFrame:
        """Get calculation results as a pandas DataFrame."""
        activities = self.result.activities if self.result is not None else []
        return results_dataframe(activities)


def compute_schedule(activities: Iterable[Activity], **kwargs) -> CPMResult:
    """Schedule ``activities`` with a fresh ``CPMScheduler``."""
    return CPMScheduler(**kwargs).compute(activities)
