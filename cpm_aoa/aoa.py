from __future__ import annotations

import math
from collections import Counter, defaultdict
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Tuple

from .models import AOAActivity, AOAEvent, AOANetwork, ComputedActivity


class AOAConverter:
    """
    Converts a scheduled Activity-on-Node (AON) network into an
    Activity-on-Arrow (AOA) network with dummy activities.

    Network rules honoured by the result:
    1. Activities are arcs between event nodes.
    2. No two arcs share the same (start event, end event) pair.
    3. The network has a single start event and a single end event.

    The construction is heuristic: a naive translation first over-creates
    events and dummies, and later stages collapse them back. The dummy
    cleanup stage is bounded by ``max_cleanup_passes``; hitting the bound
    while a merge is still possible is reported in ``warnings``.
    """

    def __init__(
        self,
        activities: Iterable[ComputedActivity],
        max_cleanup_passes: int = 10,
        trace: bool = False,
    ):
        self.activities: List[ComputedActivity] = list(activities)
        self.max_cleanup_passes = max_cleanup_passes
        self.trace = trace
        self.trace_log: List[str] = []
        self.warnings: List[str] = []
        self.events: Dict[int, AOAEvent] = {}
        self.arcs: List[AOAActivity] = []
        self._event_counter = 1
        self._dummy_counter = 1

    def convert(self) -> AOANetwork:
        self.trace_log = []
        self.warnings = []
        self.events = {}
        self.arcs = []
        self._event_counter = 1
        self._dummy_counter = 1

        self._build_initial_network()
        self._calculate_event_times()

        self._remove_parallel_arcs()
        self._clean_up_dummies()
        self._remove_parallel_arcs()
        self._merge_leaves_to_single_end()

        # Merges and the new terminal event invalidate the first timing pass.
        self._calculate_event_times()

        return AOANetwork(
            events=dict(self.events),
            activities=list(self.arcs),
            start_event=1,
            end_event=max(self.events, default=1),
        )

    def _log(self, message: str) -> None:
        if self.trace:
            self.trace_log.append(message)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def _build_initial_network(self) -> None:
        """
        Lay out one arc per activity, processing activities by ascending ES.

        Activities without predecessors share the start event; an activity
        with a single predecessor starts at that predecessor's end event; an
        activity with several predecessors starts at the end event of a
        "free" predecessor and the others are linked in with dummies. Every
        activity gets a fresh end event.
        """
        activity_events: Dict[str, Tuple[int, int]] = {}
        consumers = Counter(
            pred_id for act in self.activities for pred_id in act.predecessors
        )
        ordered = sorted(self.activities, key=lambda a: a.es)
        rank = {act.id: pos for pos, act in enumerate(ordered)}
        start_event = self._create_event(0.0, 0.0)

        for act in ordered:
            if not act.predecessors:
                start_id = start_event
            elif len(act.predecessors) == 1:
                pred_events = activity_events.get(act.predecessors[0])
                start_id = pred_events[1] if pred_events else start_event
            else:
                main_pred = self._choose_main_predecessor(act, consumers, rank)
                pred_events = activity_events.get(main_pred)
                start_id = pred_events[1] if pred_events else start_event

                for pred_id in act.predecessors:
                    if pred_id == main_pred:
                        continue
                    pred_events = activity_events.get(pred_id)
                    if pred_events and pred_events[1] != start_id:
                        dummy = self._add_dummy(pred_events[1], start_id)
                        self._log(
                            f"Dummy {dummy.id} created between {pred_id} -> {main_pred} for {act.id}"
                        )
                self._log(f"For {act.id}: chosen main predecessor = {main_pred}")

            end_id = self._create_event(act.ef, act.lf)
            self.arcs.append(
                AOAActivity(
                    id=act.id,
                    name=act.name,
                    duration=act.duration,
                    start_event=start_id,
                    end_event=end_id,
                    is_dummy=False,
                    es=act.es,
                    ef=act.ef,
                    ls=act.ls,
                    lf=act.lf,
                    total_float=act.total_float,
                    is_critical=act.is_critical,
                )
            )
            activity_events[act.id] = (start_id, end_id)

    @staticmethod
    def _choose_main_predecessor(
        act: ComputedActivity, consumers: Counter, rank: Dict[str, int]
    ) -> str:
        """
        First predecessor no other activity depends on. When every predecessor
        is shared, the one processed last, so that dummies always point from
        earlier to later end events.
        """
        for pred_id in act.predecessors:
            if consumers[pred_id] <= 1:
                return pred_id
        return max(act.predecessors, key=lambda pred_id: rank.get(pred_id, -1))

    def _create_event(self, es: float, lf: float) -> int:
        event_id = self._event_counter
        self._event_counter += 1
        self.events[event_id] = AOAEvent(id=event_id, es=es, lf=lf)
        return event_id

    def _add_dummy(self, start_event: int, end_event: int) -> AOAActivity:
        dummy = AOAActivity(
            id=f"DUMMY_{self._dummy_counter}",
            name="Dummy",
            duration=0.0,
            start_event=start_event,
            end_event=end_event,
            is_dummy=True,
        )
        self._dummy_counter += 1
        self.arcs.append(dummy)
        return dummy

    # ------------------------------------------------------------------
    # Event times
    # ------------------------------------------------------------------

    def _calculate_event_times(self) -> None:
        """Forward pass for event ES, backward pass for event LF."""
        order = self._topological_events()
        incoming = self._arcs_by_end()
        outgoing = self._arcs_by_start()

        es = {event_id: 0.0 for event_id in self.events}
        for event_id in order:
            for arc in incoming.get(event_id, []):
                es[event_id] = max(es[event_id], es[arc.start_event] + arc.duration)

        project_duration = max(es.values(), default=0.0)
        lf = {
            event_id: math.inf if outgoing.get(event_id) else project_duration
            for event_id in self.events
        }
        for event_id in reversed(order):
            for arc in outgoing.get(event_id, []):
                lf[event_id] = min(lf[event_id], lf[arc.end_event] - arc.duration)

        for event_id, event in self.events.items():
            event.es = es[event_id]
            event.lf = lf[event_id]

    def _topological_events(self) -> List[int]:
        """Event ids in DFS postorder over incoming arcs (sources first)."""
        sources: Dict[int, List[int]] = defaultdict(list)
        for arc in self.arcs:
            sources[arc.end_event].append(arc.start_event)

        visited: set[int] = set()
        order: List[int] = []
        for root in self.events:
            if root in visited:
                continue
            visited.add(root)
            stack = [(root, iter(sources[root]))]
            while stack:
                node, pending = stack[-1]
                for source in pending:
                    if source not in visited:
                        visited.add(source)
                        stack.append((source, iter(sources[source])))
                        break
                else:
                    order.append(node)
                    stack.pop()
        return order

    def _arcs_by_start(self) -> Dict[int, List[AOAActivity]]:
        grouped: Dict[int, List[AOAActivity]] = defaultdict(list)
        for arc in self.arcs:
            grouped[arc.start_event].append(arc)
        return grouped

    def _arcs_by_end(self) -> Dict[int, List[AOAActivity]]:
        grouped: Dict[int, List[AOAActivity]] = defaultdict(list)
        for arc in self.arcs:
            grouped[arc.end_event].append(arc)
        return grouped

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    def _remove_parallel_arcs(self) -> None:
        """
        Restore the one-arc-per-event-pair rule.

        A dummy that parallels another arc adds no precedence and is dropped.
        A real arc that parallels another real arc is moved onto a fresh
        event, which a dummy then links to its former end event.
        """
        real_pairs = {arc.pair for arc in self.arcs if not arc.is_dummy}
        seen: set[tuple[int, int]] = set()
        kept: List[AOAActivity] = []
        rerouted: List[Tuple[int, int]] = []

        for arc in self.arcs:
            if arc.is_dummy:
                if arc.pair in seen or arc.pair in real_pairs:
                    self._log(f"Removed duplicate dummy edge: {arc.start_event}->{arc.end_event}")
                    continue
            elif arc.pair in seen:
                hop = self._create_event(0.0, 0.0)
                self._log(
                    f"Arc {arc.id} parallels {arc.start_event}->{arc.end_event}; rerouted via event {hop}"
                )
                rerouted.append((hop, arc.end_event))
                arc = replace(arc, end_event=hop)
            seen.add(arc.pair)
            kept.append(arc)

        removed = len(self.arcs) - len(kept)
        self.arcs = kept
        for hop, end_event in rerouted:
            self._add_dummy(hop, end_event)
        self._log(f"Parallel arc cleanup complete. Removed {removed}, rerouted {len(rerouted)}.")

    def _clean_up_dummies(self) -> None:
        """
        Merge events joined by a redundant dummy.

        A dummy is redundant when it is the only arc leaving its source event
        and the source and target events have different immediate real
        parents. Each pass plans one merge from the current network, applies
        it and re-evaluates.
        """
        passes = 0
        while passes < self.max_cleanup_passes:
            passes += 1
            self._log(f"--- Cleanup pass {passes} ---")
            plan = self._plan_merge()
            if plan is None:
                return
            self._apply_merge(*plan)

        if self._plan_merge() is not None:
            self.warnings.append(
                f"AOA dummy cleanup stopped after {self.max_cleanup_passes} passes; "
                "the arrow diagram may contain redundant dummy activities."
            )

    def _plan_merge(self) -> Optional[Tuple[AOAActivity, int, int]]:
        outgoing = self._arcs_by_start()
        incoming = self._arcs_by_end()

        for dummy in self.arcs:
            if not dummy.is_dummy:
                continue
            src, tgt = dummy.pair
            if len(outgoing[src]) != 1:
                continue
            parent_src = self._immediate_real_parent(src, incoming)
            parent_tgt = self._immediate_real_parent(tgt, incoming)
            if parent_src != parent_tgt:
                self._log(
                    f"Dummy {dummy.id} ({src}->{tgt}): parents {parent_src}/{parent_tgt} differ, merging"
                )
                return dummy, src, tgt
            self._log(f"Dummy {dummy.id} ({src}->{tgt}): same immediate parent {parent_src}, skipping")
        return None

    @staticmethod
    def _immediate_real_parent(event_id: int, incoming: Dict[int, List[AOAActivity]]) -> int:
        for arc in incoming.get(event_id, []):
            if not arc.is_dummy:
                return arc.start_event
        return event_id

    def _apply_merge(self, dummy: AOAActivity, src: int, tgt: int) -> None:
        """Fold event ``tgt`` into ``src`` and drop the dummy joining them."""
        merged: List[AOAActivity] = []
        for arc in self.arcs:
            if arc is dummy:
                continue
            start = src if arc.start_event == tgt else arc.start_event
            end = src if arc.end_event == tgt else arc.end_event
            if (start, end) != arc.pair:
                arc = replace(arc, start_event=start, end_event=end)
            merged.append(arc)
        self.arcs = merged
        del self.events[tgt]
        self._log(f"Removed dummy {dummy.id} and event {tgt}")

    def _merge_leaves_to_single_end(self) -> None:
        """
        Converge every leaf event (no outgoing arcs) onto one new terminal event.

        A lone leaf is kept only while it holds the highest event id; once a
        reroute event outnumbers it, the leaf is moved onto a fresh terminal.
        An arc whose redirect would duplicate an existing (start, terminal)
        pair keeps its old leaf, and the leaf is linked to the terminal with
        a dummy instead.
        """
        starts = {arc.start_event for arc in self.arcs}
        leaves = [event_id for event_id in self.events if event_id not in starts]
        if len(leaves) <= 1 and (not leaves or leaves[0] == max(self.events)):
            self._log("Only one end node exists. No merging needed.")
            return

        leaf_set = set(leaves)
        terminal = self._create_event(0.0, 0.0)
        self._log(f"Created single final event: {terminal}")

        taken: set[tuple[int, int]] = set()
        retained: List[int] = []
        converged: List[AOAActivity] = []
        for arc in self.arcs:
            if arc.end_event not in leaf_set:
                converged.append(arc)
                continue
            pair = (arc.start_event, terminal)
            if pair not in taken:
                taken.add(pair)
                converged.append(replace(arc, end_event=terminal))
            elif arc.is_dummy:
                self._log(f"Dropped dummy {arc.id}: {arc.start_event} already reaches the end")
            else:
                converged.append(arc)
                if arc.end_event not in retained:
                    retained.append(arc.end_event)

        self.arcs = converged
        for leaf in retained:
            self._add_dummy(leaf, terminal)

        referenced = {event_id for arc in self.arcs for event_id in arc.pair}
        before = len(self.events)
        self.events = {
            event_id: event for event_id, event in self.events.items() if event_id in referenced
        }
        self._log(f"Removed {before - len(self.events)} old leaf nodes.")


def convert_to_aoa(activities: Iterable[ComputedActivity], **kwargs) -> AOANetwork:
    return AOAConverter(activities, **kwargs).convert()
