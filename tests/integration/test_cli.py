"""
Tests for the Flask CLI commands.
"""


class TestPriceCheck:
    """Test the price-check command."""

    def test_discounted_price(self, app):
        runner = app.test_cli_runner()

        result = runner.invoke(args=['price-check', '--cost', '100', '--margin', '25', '--discount', '10'])

        assert result.exit_code == 0
        assert 'Base price:      125.00' in result.output
        assert 'Final price:     112.50' in result.output
        assert 'Realized margin: 12.50%' in result.output
        assert 'Warning' not in result.output

    def test_discount_rejected(self, app):
        runner = app.test_cli_runner()

        result = runner.invoke(args=['price-check', '--cost', '100', '--discount', '20'])

        assert result.exit_code == 1
        assert 'Discount rejected: maximum discount is 15%' in result.output

    def test_margin_floor_warning(self, app):
        runner = app.test_cli_runner()

        result = runner.invoke(args=['price-check', '--cost', '50', '--margin', '20',
                                     '--discount', '5', '--min-margin', '15'])

        assert result.exit_code == 0
        assert 'Realized margin: 14.00%' in result.output
        assert 'Warning: margin below minimum 15%' in result.output

    def test_bad_number(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=['price-check', '--cost', 'abc'])
        assert result.exit_code != 0

    def test_bad_limits_are_usage_errors(self, app):
        """Unreadable --max-discount or --min-margin is reported, not a traceback."""
        runner = app.test_cli_runner()

        for option in ('--max-discount', '--min-margin'):
            result = runner.invoke(args=['price-check', '--cost', '100', option, 'abc'])

            assert result.exit_code == 2
            assert 'Invalid number' in result.output
            assert isinstance(result.exception, SystemExit)


class TestInitDb:
    def test_init_db(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=['init-db'])
        assert result.exit_code == 0
        assert 'Database tables created.' in result.output
