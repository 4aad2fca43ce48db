import unittest

from cpm_aoa.models import Activity
from cpm_aoa.validation import count_components, validate_activities


class TestValidateActivities(unittest.TestCase):
    def test_valid_network(self):
        result = validate_activities([Activity("A", "A", 2), Activity("B", "B", 3, ["A"])])
        self.assertTrue(result.valid)
        self.assertEqual(result.errors, [])
        self.assertEqual(result.warnings, [])

    def test_missing_predecessor(self):
        result = validate_activities([Activity("A", "A", 2), Activity("B", "B", 3, ["A", "X"])])
        self.assertFalse(result.valid)
        self.assertEqual(
            result.errors, ['Activity "B" references non-existent predecessor "X"']
        )

    def test_negative_duration(self):
        result = validate_activities([Activity("A", "A", -1)])
        self.assertFalse(result.valid)
        self.assertEqual(result.errors, ['Activity "A" has negative duration'])

    def test_zero_duration_is_a_warning(self):
        result = validate_activities([Activity("M", "Milestone", 0)])
        self.assertTrue(result.valid)
        self.assertEqual(result.warnings, ['Activity "M" has zero duration (milestone)'])

    def test_duplicate_ids(self):
        result = validate_activities([Activity("A", "A", 1), Activity("A", "Again", 2)])
        self.assertFalse(result.valid)
        self.assertEqual(result.errors, ['Duplicate activity id "A" (2 occurrences)'])

    def test_disconnected_components_warning(self):
        result = validate_activities(
            [
                Activity("A", "A", 1),
                Activity("B", "B", 1, ["A"]),
                Activity("C", "C", 1),
            ]
        )
        self.assertTrue(result.valid)
        self.assertEqual(
            result.warnings,
            ["Network has 2 disconnected components. Computing for entire project."],
        )

    def test_components_are_undirected(self):
        # B and C only meet through a shared successor.
        activities = [
            Activity("B", "B", 1),
            Activity("C", "C", 1),
            Activity("D", "D", 1, ["B", "C"]),
        ]
        self.assertEqual(count_components(activities), 1)
        self.assertEqual(count_components([]), 0)

    def test_duplicate_predecessors_collapse(self):
        act = Activity("B", "B", 1, ["A", "A", "C"])
        self.assertEqual(act.predecessors, ["A", "C"])


if __name__ == "__main__":
    unittest.main()
