"""
Unit tests for offer totals.
"""

import random
from decimal import Decimal

from quotedesk.services.line_pricing import compute_line
from quotedesk.services.quote_aggregator import (
    ADDITIONAL_COSTS_VAT_RATE, additional_costs_vat, aggregate,
)


class TestAggregate:
    """Test totals across lines and additional costs."""

    def test_two_lines_with_additional_costs(self):
        lines = [compute_line(2, 10, 23), compute_line(1, '99.99', 8)]
        totals = aggregate(lines, 50)

        assert totals.additional_vat == Decimal('11.50')
        assert totals.total_net == Decimal('169.99')
        assert totals.total_vat == Decimal('24.10')
        assert totals.total_gross == Decimal('194.09')

    def test_additional_costs_taxed_at_fixed_rate(self):
        """Even when every line is VAT exempt."""
        totals = aggregate([compute_line(1, 100, 0)], 10)
        assert ADDITIONAL_COSTS_VAT_RATE == Decimal('23')
        assert totals.total_vat == Decimal('2.30')

    def test_additional_vat_rounding(self):
        assert additional_costs_vat('0.03') == Decimal('0.01')  # 0.0069

    def test_order_independent(self):
        lines = [compute_line(q, p, v) for q, p, v in [
            (2, 10, 23), (1, '99.99', 8), (3, '33.33', 23), ('2.5', '19.99', 8), (7, '0.01', 5),
        ]]
        expected = aggregate(lines, '12.34')

        shuffled = list(lines)
        for seed in range(5):
            random.Random(seed).shuffle(shuffled)
            totals = aggregate(shuffled, '12.34')
            assert (totals.total_net, totals.total_vat, totals.total_gross) == \
                (expected.total_net, expected.total_vat, expected.total_gross)

    def test_gross_is_net_plus_vat(self):
        totals = aggregate([compute_line(3, '33.33', 23), compute_line(1, '0.99', 8)], 5)
        assert totals.total_gross == totals.total_net + totals.total_vat

    def test_empty_lines(self):
        totals = aggregate([])
        assert totals.total_net == Decimal('0.00')
        assert totals.total_gross == Decimal('0.00')
