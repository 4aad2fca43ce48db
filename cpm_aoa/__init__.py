"""
Critical Path Method scheduling with Activity-on-Arrow network derivation.

This package provides:
- Activity network validation
- Forward/backward pass CPM calculations, floats and critical paths
- Activity-on-Node to Activity-on-Arrow conversion with dummy activities
- Three-point (PERT) expected-duration scheduling
- CSV import/export of activities and results
"""

from .models import (
    Activity,
    ComputedActivity,
    CPMResult,
    AOAEvent,
    AOAActivity,
    AOANetwork,
    PERTActivity,
    ComputedPERTActivity,
    PERTResult,
    ValidationResult,
)
from .validation import validate_activities
from .engine import CPMScheduler, compute_schedule
from .aoa import AOAConverter, convert_to_aoa
from .pert import PERTScheduler, compute_pert, expected_duration
from .csv_io import parse_csv, export_activities_csv, export_results_csv, results_dataframe

__all__ = [
    'Activity',
    'ComputedActivity',
    'CPMResult',
    'AOAEvent',
    'AOAActivity',
    'AOANetwork',
    'PERTActivity',
    'ComputedPERTActivity',
    'PERTResult',
    'ValidationResult',
    'validate_activities',
    'CPMScheduler',
    'compute_schedule',
    'AOAConverter',
    'convert_to_aoa',
    'PERTScheduler',
    'compute_pert',
    'expected_duration',
    'parse_csv',
    'export_activities_csv',
    'export_results_csv',
    'results_dataframe',
]
