"""
Tests for the command-line entry point.
"""
import io
import os
import tempfile
import unittest
import sys
from contextlib import redirect_stdout
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from portfolio_calc.main import PortfolioCalculator, main
from portfolio_calc.market_snapshot import MarketSnapshot
from portfolio_calc.storage import export_to_file
from portfolio_calc.utils.config_loader import setup_logging
from portfolio_calc.valuation import EquityLot, OptionLot, OptionSide, Portfolio


class TestCommandLine(unittest.TestCase):
    """Test CLI commands against a temporary store."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        base = self.tmpdir.name
        self.config_path = os.path.join(base, 'config.yaml')
        with open(self.config_path, 'w') as f:
            f.write(
                "logging:\n"
                "  level: WARNING\n"
                "storage:\n"
                f"  database_path: {os.path.join(base, 'portfolio.db')}\n"
                "reporting:\n"
                f"  export_path: {os.path.join(base, 'reports')}\n"
                "market:\n"
                "  seed:\n"
                "    risk_free_rate: 0.05\n"
                "    prices:\n"
                "      AAPL:\n"
                "        price: 150.0\n"
                "        volatility: 0.25\n"
            )

        self.document = os.path.join(base, 'portfolio.json')
        market = MarketSnapshot.from_settings(
            datetime(2024, 1, 2), 0.05,
            {'AAPL': {'price': 150.0, 'volatility': 0.25}, 'MSFT': {'price': 300.0}}
        )
        portfolio = Portfolio((
            EquityLot('AAPL', 140.0, 10),
            OptionLot('AAPL', 160.0, 4.0, 1, datetime(2024, 6, 21), OptionSide.CALL),
            EquityLot('MSFT', 310.0, 2),
        ))
        export_to_file(market, portfolio, self.document)

    def tearDown(self):
        self.tmpdir.cleanup()

    def run_cli(self, *args):
        out = io.StringIO()
        with redirect_stdout(out):
            code = main(['--config', self.config_path, *args])
        return code, out.getvalue()

    def state(self):
        return PortfolioCalculator(self.config_path).load_state()

    def test_report_document(self):
        code, out = self.run_cli('report', self.document)
        self.assertEqual(code, 0)
        self.assertIn('PORTFOLIO VALUATION', out)
        self.assertIn('MSFT', out)

    def test_empty_state_uses_seed_market(self):
        market, portfolio = self.state()
        self.assertEqual(market.risk_free_rate, 0.05)
        self.assertTrue(market.has_quote('AAPL'))
        self.assertEqual(len(portfolio), 0)

    def test_import_then_edit(self):
        self.assertEqual(self.run_cli('import', self.document)[0], 0)
        market, portfolio = self.state()
        self.assertEqual(len(portfolio), 3)

        self.assertEqual(self.run_cli('set-price', 'AAPL', '155')[0], 0)
        market, _ = self.state()
        self.assertEqual(market.quote('AAPL').price, 155.0)
        self.assertEqual(market.quote('AAPL').volatility, 0.25)

        self.assertEqual(self.run_cli('set-market', '--date', '2024-02-01', '--rate', '0.04')[0], 0)
        market, _ = self.state()
        self.assertEqual(market.valuation_date, datetime(2024, 2, 1))
        self.assertEqual(market.risk_free_rate, 0.04)

        code, _ = self.run_cli('add', 'option', 'MSFT', '6.5', '2', '--strike', '320',
                               '--expiration', '2024-09-20', '--side', 'PUT')
        self.assertEqual(code, 0)
        _, portfolio = self.state()
        self.assertEqual(portfolio[-1], OptionLot('MSFT', 320.0, 6.5, 2.0,
                                                  datetime(2024, 9, 20), OptionSide.PUT))

        self.assertEqual(self.run_cli('remove', '0')[0], 0)
        _, portfolio = self.state()
        self.assertEqual(len(portfolio), 3)
        self.assertEqual(portfolio[0].kind.value, 'option')

    def test_invalid_commands_fail(self):
        self.assertEqual(self.run_cli('remove', '5')[0], 1)
        self.assertEqual(self.run_cli('add', 'option', 'MSFT', '6.5', '1')[0], 1)
        self.assertEqual(self.run_cli('report', os.path.join(self.tmpdir.name, 'none.json'))[0], 1)

    def _write_config(self, text):
        path = os.path.join(self.tmpdir.name, 'other.yaml')
        with open(path, 'w') as f:
            f.write(text)
        return path

    def test_unopenable_database_fails(self):
        # A directory where the database file should be
        db_dir = os.path.join(self.tmpdir.name, 'db_dir')
        os.makedirs(db_dir)
        config_path = self._write_config(
            "logging:\n"
            "  level: CRITICAL\n"
            "storage:\n"
            f"  database_path: {db_dir}\n"
        )
        self.assertEqual(main(['--config', config_path, 'set-market', '--rate', '0.03']), 1)

    def test_empty_config_sections(self):
        # Default report path is relative to the working directory
        self.addCleanup(os.chdir, os.getcwd())
        os.chdir(self.tmpdir.name)

        config_path = self._write_config(
            "logging:\n"
            "storage:\n"
            f"  database_path: {os.path.join(self.tmpdir.name, 'other.db')}\n"
            "reporting:\n"
            "market:\n"
        )
        out = io.StringIO()
        with redirect_stdout(out):
            code = main(['--config', config_path, 'report'])
        self.assertEqual(code, 0)
        self.assertIn('PORTFOLIO VALUATION', out.getvalue())

        calculator = PortfolioCalculator(config_path)
        self.assertEqual(calculator.report_generator.export_path, 'data/reports/')
        market, _ = calculator.load_state()
        self.assertIsNone(market.risk_free_rate)

    def test_logs_to_configured_file(self):
        log_file = os.path.join(self.tmpdir.name, 'logs', 'calc.log')
        config_path = self._write_config(
            "logging:\n"
            "  level: INFO\n"
            f"  file: {log_file}\n"
            "storage:\n"
            f"  database_path: {os.path.join(self.tmpdir.name, 'portfolio.db')}\n"
            "reporting:\n"
            f"  export_path: {os.path.join(self.tmpdir.name, 'reports')}\n"
        )
        self.addCleanup(setup_logging, 'WARNING')

        self.assertEqual(main(['--config', config_path, 'remove', '5']), 1)

        with open(log_file) as f:
            contents = f.read()
        self.assertIn('Running remove', contents)
        self.assertIn('remove failed', contents)

    def test_export(self):
        self.run_cli('import', self.document)
        target = os.path.join(self.tmpdir.name, 'out.json')
        code, out = self.run_cli('export', target)
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), target)
        self.assertTrue(os.path.exists(target))


if __name__ == '__main__':
    unittest.main()
