import unittest

from cpm_aoa.engine import CPMScheduler, compute_schedule
from cpm_aoa.models import Activity
from cpm_aoa.samples import SAMPLE_PROJECT, SAMPLE_SIMPLE


class TestCPMScheduler(unittest.TestCase):
    def test_simple_fs_chain(self):
        scheduler = CPMScheduler()
        result = scheduler.compute(
            [
                Activity("A", "A", 3),
                Activity("B", "B", 2, ["A"]),
                Activity("C", "C", 1, ["B"]),
            ]
        )

        self.assertFalse(result.has_errors)
        self.assertEqual(result.project_duration, 6)

        self.assertEqual(result.get_activity("A").es, 0)
        self.assertEqual(result.get_activity("A").ef, 3)
        self.assertEqual(result.get_activity("B").es, 3)
        self.assertEqual(result.get_activity("B").ef, 5)
        self.assertEqual(result.get_activity("C").es, 5)
        self.assertEqual(result.get_activity("C").ef, 6)

        self.assertEqual(result.critical_paths, [["A", "B", "C"]])

    def test_sample_simple(self):
        result = compute_schedule(SAMPLE_SIMPLE)

        self.assertEqual(result.project_duration, 12)
        self.assertEqual(result.critical_paths, [["A", "C", "D", "E"]])

        b = result.get_activity("B")
        self.assertFalse(b.is_critical)
        self.assertAlmostEqual(b.total_float, 2)
        self.assertAlmostEqual(b.free_float, 2)
        self.assertEqual((b.es, b.ef, b.ls, b.lf), (3, 5, 5, 7))

    def test_sample_project(self):
        result = compute_schedule(SAMPLE_PROJECT)

        self.assertEqual(result.project_duration, 36)
        self.assertEqual(result.critical_paths, [["A", "B", "D", "E", "F", "H"]])
        g = result.get_activity("G")
        self.assertAlmostEqual(g.total_float, 2)
        self.assertIn('Activity "A" has zero duration (milestone)', result.warnings)

    def test_multiple_critical_paths(self):
        result = compute_schedule(
            [
                Activity("A", "A", 2),
                Activity("B", "B", 2),
                Activity("C", "C", 2, ["A"]),
                Activity("D", "D", 2, ["B"]),
                Activity("E", "E", 2, ["C", "D"]),
            ]
        )

        paths = {tuple(p) for p in result.critical_paths}
        self.assertEqual(len(paths), 2)
        self.assertIn(("A", "C", "E"), paths)
        self.assertIn(("B", "D", "E"), paths)

    def test_activities_in_topological_order(self):
        result = compute_schedule(
            [
                Activity("C", "C", 1, ["B"]),
                Activity("B", "B", 1, ["A"]),
                Activity("A", "A", 1),
            ]
        )
        self.assertEqual([a.id for a in result.activities], ["A", "B", "C"])

    def test_cycle_aborts_computation(self):
        result = compute_schedule([Activity("A", "A", 1, ["B"]), Activity("B", "B", 1, ["A"])])

        self.assertTrue(result.has_errors)
        self.assertEqual(result.errors, ["Cycle detected in the network: A -> B -> A"])
        self.assertEqual(result.activities, [])
        self.assertEqual(result.critical_paths, [])
        self.assertIsNone(result.aoa_network)

    def test_cycle_reported_from_first_repeated_activity(self):
        result = compute_schedule(
            [
                Activity("S", "S", 1),
                Activity("A", "A", 1, ["S", "C"]),
                Activity("B", "B", 1, ["A"]),
                Activity("C", "C", 1, ["B"]),
            ]
        )
        self.assertEqual(result.errors, ["Cycle detected in the network: A -> B -> C -> A"])

    def test_self_reference_is_a_cycle(self):
        result = compute_schedule([Activity("A", "A", 1, ["A"])])
        self.assertEqual(result.errors, ["Cycle detected in the network: A -> A"])

    def test_validation_errors_short_circuit(self):
        result = compute_schedule([Activity("A", "A", -1), Activity("B", "B", 1, ["Z"])])

        self.assertTrue(result.has_errors)
        self.assertEqual(len(result.errors), 2)
        self.assertEqual(result.activities, [])
        self.assertEqual(result.project_duration, 0)

    def test_schedule_properties(self):
        activities = [
            Activity("A", "A", 3),
            Activity("B", "B", 2),
            Activity("C", "C", 4, ["A"]),
            Activity("D", "D", 1, ["A", "B"]),
            Activity("E", "E", 2, ["B"]),
            Activity("F", "F", 3, ["C", "D"]),
            Activity("G", "G", 2, ["D", "E"]),
            Activity("H", "H", 1.5, ["C", "E"]),
            Activity("I", "I", 2, ["F", "G", "H"]),
            Activity("J", "J", 0.5, ["G"]),
        ]
        result = compute_schedule(activities)
        by_id = {a.id: a for a in result.activities}

        self.assertEqual(result.project_duration, max(a.ef for a in result.activities))
        for act in result.activities:
            self.assertLessEqual(act.es, act.ef)
            self.assertLessEqual(act.ls, act.lf)
            self.assertLessEqual(act.es, act.ls + 1e-9)
            self.assertGreaterEqual(act.total_float, -0.001)
        self.assertTrue(any(a.is_critical for a in result.activities))

        for path in result.critical_paths:
            for act_id in path:
                self.assertTrue(by_id[act_id].is_critical)
            for pred_id, succ_id in zip(path, path[1:]):
                self.assertIn(pred_id, by_id[succ_id].predecessors)

    def test_float_tolerance(self):
        result = compute_schedule(
            [
                Activity("A", "A", 0.1),
                Activity("B", "B", 0.2, ["A"]),
                Activity("C", "C", 0.3),
                Activity("D", "D", 0.0, ["B", "C"]),
            ]
        )
        self.assertTrue(result.get_activity("A").is_critical)
        self.assertTrue(result.get_activity("C").is_critical)

    def test_empty_activity_set(self):
        result = compute_schedule([])
        self.assertFalse(result.has_errors)
        self.assertEqual(result.project_duration, 0)
        self.assertEqual(result.critical_paths, [])

    def test_calculation_log_is_reset(self):
        scheduler = CPMScheduler()
        scheduler.compute(SAMPLE_SIMPLE)
        first = list(scheduler.calculation_log)
        scheduler.compute(SAMPLE_SIMPLE)
        self.assertEqual(scheduler.calculation_log, first)
        self.assertIn("FORWARD PASS (Calculating ES and EF)", first)
        self.assertIn("  1. A -> C -> D -> E", first)

    def test_results_dataframe(self):
        scheduler = CPMScheduler()
        scheduler.compute(SAMPLE_SIMPLE)
        df = scheduler.get_results_dataframe()

        self.assertEqual(len(df), 5)
        self.assertEqual(list(df["critical"]), [True, False, True, True, True])

    def test_input_not_mutated(self):
        activities = [Activity("A", "A", 1), Activity("B", "B", 1, ["A"])]
        compute_schedule(activities)
        self.assertEqual(activities[1].predecessors, ["A"])
        self.assertNotIn("es", vars(activities[0]))


if __name__ == "__main__":
    unittest.main()
