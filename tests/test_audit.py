import unittest

from gradebook.audit import check_discrepancy, compute_total, totals_match


class TestComputeTotal(unittest.TestCase):
    def test_sums_summable_components_only(self):
        scores = {"quiz": 20, "mid_sem": 30, "lab_test": 19.5, "weekly_labs": 10, "compre": 20,
                  "pre_compre": 79.5, "total": 99.5}
        self.assertAlmostEqual(compute_total(scores), 99.5)

    def test_missing_components_count_as_zero(self):
        self.assertEqual(compute_total({"quiz": 10}), 10.0)
        self.assertEqual(compute_total({}), 0.0)


class TestCheckDiscrepancy(unittest.TestCase):
    def test_within_tolerance(self):
        computed = compute_total({"quiz": 20, "mid_sem": 30, "lab_test": 19.99, "weekly_labs": 10, "compre": 20})
        self.assertIsNone(check_discrepancy(computed, 100.00))

    def test_beyond_tolerance(self):
        computed = compute_total({"quiz": 20, "mid_sem": 30, "lab_test": 19.98, "weekly_labs": 10, "compre": 20})
        self.assertEqual(check_discrepancy(computed, 100.00), "Total mismatch: expected 100.00, found 99.98")

    def test_exact_match(self):
        self.assertIsNone(check_discrepancy(215.0, 215.0))
        self.assertTrue(totals_match(0.1 + 0.2, 0.3))

    def test_computed_above_reported(self):
        self.assertEqual(check_discrepancy(101.5, 100.0), "Total mismatch: expected 100.00, found 101.50")

    def test_no_reported_total(self):
        self.assertIsNone(check_discrepancy(50.0, None))

    def test_custom_epsilon(self):
        self.assertIsNone(check_discrepancy(99.6, 100.0, epsilon=0.5))
        self.assertIsNotNone(check_discrepancy(99.4, 100.0, epsilon=0.5))


if __name__ == "__main__":
    unittest.main()
