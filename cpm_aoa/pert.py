from __future__ import annotations

from typing import Iterable, List

from .engine import CPMScheduler
from .models import Activity, ComputedPERTActivity, PERTActivity, PERTResult


def expected_duration(optimistic: float, most_likely: float, pessimistic: float) -> float:
    """
    PERT expected duration (beta-distribution approximation):
    (optimistic + 4 * most_likely + pessimistic) / 6
    """
    return (optimistic + 4 * most_likely + pessimistic) / 6


class PERTScheduler:
    """
    Three-point estimate front end for ``CPMScheduler``.

    Each activity is scheduled with its expected duration; the computed
    schedule fields are then attached back onto the three-point records.
    """

    def __init__(self, **scheduler_kwargs):
        self.scheduler = CPMScheduler(**scheduler_kwargs)

    @property
    def calculation_log(self) -> List[str]:
        return self.scheduler.calculation_log

    def compute(self, activities: Iterable[PERTActivity]) -> PERTResult:
        pert_activities = list(activities)
        cpm_result = self.scheduler.compute(self._convert_to_cpm(pert_activities))

        computed_by_id = {act.id: act for act in cpm_result.activities}
        merged: List[ComputedPERTActivity] = []
        for pert in pert_activities:
            computed = computed_by_id.get(pert.id)
            merged.append(
                ComputedPERTActivity(
                    id=pert.id,
                    name=pert.name,
                    optimistic=pert.optimistic,
                    most_likely=pert.most_likely,
                    pessimistic=pert.pessimistic,
                    predecessors=list(pert.predecessors),
                    expected_duration=expected_duration(
                        pert.optimistic, pert.most_likely, pert.pessimistic
                    ),
                    es=computed.es if computed else 0.0,
                    ef=computed.ef if computed else 0.0,
                    ls=computed.ls if computed else 0.0,
                    lf=computed.lf if computed else 0.0,
                    total_float=computed.total_float if computed else 0.0,
                    free_float=computed.free_float if computed else 0.0,
                    is_critical=computed.is_critical if computed else False,
                )
            )

        return PERTResult(
            activities=cpm_result.activities,
            project_duration=cpm_result.project_duration,
            critical_paths=cpm_result.critical_paths,
            errors=cpm_result.errors,
            warnings=cpm_result.warnings,
            aoa_network=cpm_result.aoa_network,
            pert_activities=merged,
        )

    @staticmethod
    def _convert_to_cpm(activities: List[PERTActivity]) -> List[Activity]:
        return [
            Activity(
                id=pert.id,
                name=pert.name,
                duration=expected_duration(pert.optimistic, pert.most_likely, pert.pessimistic),
                predecessors=list(pert.predecessors),
            )
            for pert in activities
        ]


def compute_pert(activities: Iterable[PERTActivity], **kwargs) -> PERTResult:
    return PERTScheduler(**kwargs).compute(activities)
