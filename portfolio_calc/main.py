"""
Command-line entry point for the portfolio calculator.
"""
import argparse
import logging
import sqlite3
import sys
from datetime import datetime
from typing import List, Optional, Tuple

from .exceptions import ValuationError
from .market_snapshot import MarketSnapshot
from .output import ReportGenerator
from .storage import DocumentError, SnapshotStore, export_to_file, import_from_file
from .utils.config_loader import load_config, seed_market, setup_logging
from .valuation import Portfolio, position_from_form

logger = logging.getLogger(__name__)


class PortfolioCalculator:
    """Wires configuration, storage and reporting around the valuation engine."""

    def __init__(self, config_path: str = 'config/config.yaml', config: Optional[dict] = None):
        """
        Initialize portfolio calculator.

        Args:
            config_path: Path to configuration file
            config: Already loaded configuration; read from config_path if None
        """
        self.config = load_config(config_path) if config is None else config

        db_path = (self.config.get('storage') or {}).get('database_path', 'data/portfolio.db')
        self.store = SnapshotStore(db_path)

        export_path = (self.config.get('reporting') or {}).get('export_path', 'data/reports/')
        self.report_generator = ReportGenerator(export_path)

    def load_state(self) -> Tuple[MarketSnapshot, Portfolio]:
        """Stored market and portfolio, falling back to the configured seed market."""
        market = self.store.load_market()
        if market is None:
            logger.info("No stored market, using configured seed")
            market = seed_market(self.config)

        portfolio = self.store.load_portfolio()
        if portfolio is None:
            portfolio = Portfolio()

        return market, portfolio

    def save_state(self, market: MarketSnapshot, portfolio: Portfolio):
        self.store.save_market(market)
        self.store.save_portfolio(portfolio)

    def import_document(self, path: str) -> Tuple[MarketSnapshot, Portfolio]:
        market, portfolio = import_from_file(path)
        self.save_state(market, portfolio)
        return market, portfolio

    def export_document(self, path: str) -> str:
        market, portfolio = self.load_state()
        return export_to_file(market, portfolio, path)

    def report(self, document: Optional[str] = None, save: bool = False) -> dict:
        """
        Value a document (or the stored state) and print the report.

        Args:
            document: Optional document path; the stored state is used otherwise
            save: Also write the report files to the export path

        Returns:
            Report dictionary
        """
        if document:
            market, portfolio = import_from_file(document)
        else:
            market, portfolio = self.load_state()

        report = self.report_generator.generate_full_report(portfolio, market)
        self.report_generator.print_report(report)

        if save:
            saved_files = self.report_generator.save_full_report(report)
            logger.info(f"Report saved to: {saved_files}")

        return report

    def set_price(self, ticker: str, price: float, volatility: Optional[float] = None):
        """Update one ticker's quote; volatility is kept unless a new one is given."""
        market, _ = self.load_state()
        if volatility is None and market.has_quote(ticker):
            market = market.with_price(ticker, price)
        else:
            market = market.with_quote(ticker, price, volatility)
        self.store.save_market(market)
        logger.info(f"Set {ticker} price to {price}")

    def set_market(self, valuation_date: Optional[datetime] = None,
                   risk_free_rate: Optional[float] = None):
        market, _ = self.load_state()
        if valuation_date is not None:
            market = market.with_date(valuation_date)
        if risk_free_rate is not None:
            market = market.with_risk_free_rate(risk_free_rate)
        self.store.save_market(market)

    def add_position(self, record: dict):
        _, portfolio = self.load_state()
        portfolio = portfolio.add_position(position_from_form(record))
        self.store.save_portfolio(portfolio)
        logger.info(f"Added {record['kind']} position on {record['ticker']}")

    def remove_position(self, index: int):
        _, portfolio = self.load_state()
        portfolio = portfolio.remove_position(index)
        self.store.save_portfolio(portfolio)
        logger.info(f"Removed position {index}")


def _parse_date(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid ISO date: {value}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='portfolio-calc',
        description='Value a portfolio of stocks and options against a market snapshot.'
    )
    parser.add_argument('--config', default='config/config.yaml', help='Path to config file')
    subparsers = parser.add_subparsers(dest='command', required=True)

    report = subparsers.add_parser('report', help='Print a valuation report')
    report.add_argument('document', nargs='?', help='Document to value (default: stored state)')
    report.add_argument('--save', action='store_true', help='Also write report files')

    import_ = subparsers.add_parser('import', help='Store a document as the current state')
    import_.add_argument('document')

    export = subparsers.add_parser('export', help='Write the current state as a document')
    export.add_argument('path', nargs='?', default='.', help='File or directory')

    set_price = subparsers.add_parser('set-price', help="Set a ticker's price")
    set_price.add_argument('ticker')
    set_price.add_argument('price', type=float)
    set_price.add_argument('--volatility', type=float)

    set_market = subparsers.add_parser('set-market', help='Set valuation date and/or rate')
    set_market.add_argument('--date', type=_parse_date)
    set_market.add_argument('--rate', type=float)

    add = subparsers.add_parser('add', help='Add a position')
    add.add_argument('kind', choices=['stock', 'option'])
    add.add_argument('ticker')
    add.add_argument('price', type=float, help='Unit price, or premium per share for options')
    add.add_argument('quantity', type=float, help='Shares, or contracts for options')
    add.add_argument('--strike', type=float)
    add.add_argument('--expiration', type=_parse_date)
    add.add_argument('--side', choices=['CALL', 'PUT'])

    remove = subparsers.add_parser('remove', help='Remove the position at an index')
    remove.add_argument('index', type=int)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    # Defaults until the config names its own level and file
    setup_logging()

    try:
        config = load_config(args.config)
        log_config = config.get('logging') or {}
        setup_logging(log_level=log_config.get('level', 'INFO'), log_file=log_config.get('file'))
        logger.info(f"Running {args.command} with configuration {args.config}")

        calculator = PortfolioCalculator(args.config, config=config)

        if args.command == 'report':
            calculator.report(args.document, save=args.save)
        elif args.command == 'import':
            calculator.import_document(args.document)
        elif args.command == 'export':
            path = calculator.export_document(args.path)
            print(path)
        elif args.command == 'set-price':
            calculator.set_price(args.ticker, args.price, args.volatility)
        elif args.command == 'set-market':
            calculator.set_market(args.date, args.rate)
        elif args.command == 'add':
            calculator.add_position({
                'kind': args.kind,
                'ticker': args.ticker,
                'price': args.price,
                'quantity': args.quantity,
                'strike': args.strike,
                'expiration_date': args.expiration,
                'side': args.side
            })
        elif args.command == 'remove':
            calculator.remove_position(args.index)
    except (DocumentError, ValuationError, ValueError, IndexError, OSError, sqlite3.Error) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
