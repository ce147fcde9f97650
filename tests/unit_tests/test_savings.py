import re
import threading
import unittest

import pytest

from low_energy_ai.llms.tier_selector.models import ModelCatalog, ModelTier, get_catalog, get_tier
from low_energy_ai.utils.savings import SavingsAccumulator, SessionAccount, estimated_query_cost


class TestEstimatedQueryCost(unittest.TestCase):

    def test_default_token_estimate(self):
        self.assertAlmostEqual(estimated_query_cost(get_tier("gpt-4.1")), 2.00 * 500 / 1_000_000)
        self.assertAlmostEqual(estimated_query_cost(get_tier("gpt-4.1-nano")), 0.00005)

    def test_explicit_tokens(self):
        self.assertAlmostEqual(estimated_query_cost(get_tier("gpt-4.1"), tokens=1_000_000), 2.00)


class TestSavingsAccumulator(unittest.TestCase):

    def setUp(self):
        self.accumulator = SavingsAccumulator(get_catalog(), tokens_per_query=500)
        self.nano = get_tier("gpt-4.1-nano")
        self.flagship = get_tier("gpt-5.2")
        self.reference = get_tier("gpt-4.1")

    def test_initial_state(self):
        account = self.accumulator.snapshot()
        self.assertEqual(account.query_count, 0)
        self.assertEqual(account.total_savings, 0.0)
        self.assertEqual(account.queries_by_tier, {})
        self.assertEqual(account.reference_tier_id, "gpt-4.1")

    def test_reference_is_most_expensive_tier(self):
        self.assertEqual(self.accumulator.max_cost_tier, self.reference)
        self.assertAlmostEqual(self.accumulator.reference_cost, 0.001)

    def test_three_cheapest_queries(self):
        for _ in range(3):
            self.accumulator.on_query_completed(self.nano)

        per_query = estimated_query_cost(self.reference) - estimated_query_cost(self.nano)
        account = self.accumulator.snapshot()
        self.assertEqual(account.query_count, 3)
        self.assertAlmostEqual(account.total_savings, 3 * per_query)
        self.assertAlmostEqual(account.total_savings, 0.00285)
        self.assertEqual(account.queries_by_tier, {"gpt-4.1-nano": 3})

    def test_returns_amount_saved(self):
        saved = self.accumulator.on_query_completed(self.flagship)
        self.assertAlmostEqual(saved, (2.00 - 1.75) * 500 / 1_000_000)

    def test_reference_tier_saves_nothing(self):
        self.accumulator.on_query_completed(self.reference)
        account = self.accumulator.snapshot()
        self.assertEqual(account.query_count, 1)
        self.assertEqual(account.total_savings, 0.0)

    def test_total_never_decreases(self):
        previous = 0.0
        for tier in list(get_catalog()) * 3:
            self.accumulator.on_query_completed(tier)
            current = self.accumulator.total_savings
            self.assertGreaterEqual(current, previous)
            previous = current
        self.assertEqual(self.accumulator.query_count, 18)

    def test_tier_pricier_than_reference_is_floored(self):
        rogue = ModelTier(id="rogue", display_name="Rogue", cost_per_million_tokens=50.0, tier_rank=7)
        self.accumulator.on_query_completed(self.nano)
        before = self.accumulator.total_savings
        self.assertEqual(self.accumulator.on_query_completed(rogue), 0.0)
        self.assertEqual(self.accumulator.total_savings, before)
        self.assertEqual(self.accumulator.query_count, 2)

    def test_reset(self):
        for tier in get_catalog():
            self.accumulator.on_query_completed(tier)
        self.accumulator.reset()

        account = self.accumulator.snapshot()
        self.assertEqual(account.query_count, 0)
        self.assertEqual(account.total_savings, 0.0)
        self.assertEqual(account.queries_by_tier, {})
        self.assertEqual(self.accumulator.max_cost_tier, self.reference)

    def test_counts_restart_after_reset(self):
        self.accumulator.on_query_completed(self.nano)
        self.accumulator.reset()
        self.accumulator.on_query_completed(self.nano)
        self.assertEqual(self.accumulator.snapshot().query_count, 1)

    def test_snapshot_is_a_copy(self):
        self.accumulator.on_query_completed(self.nano)
        account = self.accumulator.snapshot()
        self.accumulator.on_query_completed(self.nano)
        self.assertEqual(account.query_count, 1)
        self.assertEqual(account.queries_by_tier, {"gpt-4.1-nano": 1})

    def test_log_savings(self):
        self.accumulator.on_query_completed(self.nano)
        try:
            self.accumulator.log_savings()
        except Exception as e:
            self.fail(f"log_savings raised {e} unexpectedly!")

    def test_concurrent_updates(self):
        """Every update lands when queries complete on several threads."""

        def complete_many():
            for _ in range(100):
                self.accumulator.on_query_completed(self.nano)

        threads = [threading.Thread(target=complete_many) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        account = self.accumulator.snapshot()
        self.assertEqual(account.query_count, 1000)
        self.assertAlmostEqual(account.total_savings, 1000 * 0.00095)

    def test_concurrent_log_lines_are_consistent(self):
        """Each log line reports a count and total taken from the same update."""

        def complete_many():
            for _ in range(50):
                self.accumulator.on_query_completed(self.nano)

        with self.assertLogs("low_energy_ai.utils.savings", level="INFO") as captured:
            threads = [threading.Thread(target=complete_many) for _ in range(8)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

        pattern = re.compile(r"session: (\d+) queries, \$([\d.]+) saved")
        counts = []
        for line in captured.output:
            match = pattern.search(line)
            if match is None:
                continue
            count, total = int(match.group(1)), float(match.group(2))
            counts.append(count)
            self.assertLessEqual(abs(total - count * 0.00095), 0.00005 + 1e-9)

        self.assertEqual(sorted(counts), list(range(1, 401)))


class TestReferenceResolution:

    def test_reference_follows_cost_not_rank(self):
        catalog = ModelCatalog([
            ModelTier(id="a", display_name="A", cost_per_million_tokens=1.0, tier_rank=1),
            ModelTier(id="b", display_name="B", cost_per_million_tokens=4.0, tier_rank=2),
            ModelTier(id="c", display_name="C", cost_per_million_tokens=3.0, tier_rank=3),
        ])
        accumulator = SavingsAccumulator(catalog, tokens_per_query=1_000_000)
        assert accumulator.max_cost_tier.id == "b"
        assert accumulator.on_query_completed(catalog.get("c")) == pytest.approx(1.0)

    def test_session_account_rejects_negative_totals(self):
        with pytest.raises(ValueError):
            SessionAccount(query_count=0, total_savings=-1.0)
