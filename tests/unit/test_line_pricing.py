"""
Unit tests for line amount computation.
"""

from decimal import Decimal

from quotedesk.services.line_pricing import LineAmounts, compute_line


class TestComputeLine:
    """Test net/VAT/gross per offer line."""

    def test_simple_line(self):
        """2 x 10.00 at 23% VAT."""
        assert compute_line(2, 10, 23) == LineAmounts(
            net=Decimal('20.00'), vat=Decimal('4.60'), gross=Decimal('24.60')
        )

    def test_vat_is_rounded_half_up(self):
        amounts = compute_line(1, '99.99', 8)
        assert amounts.net == Decimal('99.99')
        assert amounts.vat == Decimal('8.00')  # 7.9992
        assert amounts.gross == Decimal('107.99')

    def test_vat_computed_from_rounded_net(self):
        """net 49.975 -> 49.98, then VAT 8% of 49.98 = 3.9984 -> 4.00."""
        amounts = compute_line('2.5', '19.99', 8)
        assert amounts.net == Decimal('49.98')
        assert amounts.vat == Decimal('4.00')
        assert amounts.gross == Decimal('53.98')

    def test_gross_is_net_plus_vat(self):
        amounts = compute_line(3, '33.33', 23)
        assert amounts.net == Decimal('99.99')
        assert amounts.vat == Decimal('23.00')
        assert amounts.gross == amounts.net + amounts.vat

    def test_zero_vat(self):
        amounts = compute_line(1, 10, 0)
        assert amounts.vat == Decimal('0.00')
        assert amounts.gross == Decimal('10.00')

    def test_float_inputs_do_not_leak_binary_noise(self):
        amounts = compute_line(3, 0.1, 0)
        assert amounts.net == Decimal('0.30')
