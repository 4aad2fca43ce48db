"""Sample projects for demos and tests."""

from .models import Activity, PERTActivity

SAMPLE_PROJECT = [
    Activity("A", "Project Start", 0, []),
    Activity("B", "Requirements Analysis", 5, ["A"]),
    Activity("C", "Design", 8, ["B"]),
    Activity("D", "Procurement", 10, ["B"]),
    Activity("E", "Development", 12, ["C", "D"]),
    Activity("F", "Testing", 6, ["E"]),
    Activity("G", "Documentation", 4, ["E"]),
    Activity("H", "Deployment", 3, ["F", "G"]),
]

SAMPLE_SIMPLE = [
    Activity("A", "Start", 3, []),
    Activity("B", "Design", 2, ["A"]),
    Activity("C", "Procure", 4, ["A"]),
    Activity("D", "Develop", 2, ["B", "C"]),
    Activity("E", "Test", 3, ["D"]),
]

# Expected durations: A=2, B=3, C=3, D=4, E=3
SAMPLE_PERT = [
    PERTActivity("A", "Task A", 1, 2, 3, []),
    PERTActivity("B", "Task B", 2, 3, 4, []),
    PERTActivity("C", "Task C", 1, 3, 5, ["A"]),
    PERTActivity("D", "Task D", 2, 4, 6, ["A", "B"]),
    PERTActivity("E", "Task E", 2, 3, 4, ["C", "D"]),
]
