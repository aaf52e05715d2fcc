"""
Report generation for portfolio valuation.

Valuation failures stop at this layer: a ticker or position that can't be
valued is reported as a zeroed row carrying the error message, and the rest
of the report is produced normally.
"""
import json
import logging
import os
from datetime import datetime
from typing import Dict, List, Optional

import pandas as pd

from ..exceptions import ValuationError
from ..market_snapshot import MarketSnapshot
from ..valuation.portfolio_aggregation import Portfolio
from ..valuation.position import Position, PositionKind

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = ['Ticker', 'Price', 'Cost Basis', 'Market Value', 'P&L', 'Error']
DETAIL_COLUMNS = ['Index', 'Type', 'Ticker', 'Side', 'Strike', 'Expiration', 'Quantity',
                  'Price', 'Cost Basis', 'Market Value', 'P&L', 'Error']
MONEY_COLUMNS = ['Price', 'Strike', 'Cost Basis', 'Market Value', 'P&L']


class ReportGenerator:
    """Generate portfolio valuation reports."""

    def __init__(self, export_path: str = 'data/reports/'):
        """
        Initialize report generator.

        Args:
            export_path: Path to export reports
        """
        self.export_path = export_path
        os.makedirs(export_path, exist_ok=True)

    def ranked_tickers(self, portfolio: Portfolio, market: MarketSnapshot) -> List[str]:
        """Tickers by descending market value, alphabetical if any ticker can't be valued."""
        try:
            return portfolio.all_tickers(market)
        except ValuationError as e:
            logger.warning(f"Can't rank tickers by value ({e}), using alphabetical order")
            return portfolio.all_tickers()

    def ticker_summary(self, portfolio: Portfolio, market: MarketSnapshot) -> pd.DataFrame:
        """
        Generate per-ticker summary.

        Args:
            portfolio: Portfolio to summarize
            market: Market snapshot to value against

        Returns:
            DataFrame with one row per ticker
        """
        rows = []

        for ticker in self.ranked_tickers(portfolio, market):
            quote = market.quotes.get(ticker)
            row = {'Ticker': ticker, 'Price': quote.price if quote else 0.0}

            try:
                row.update({
                    'Cost Basis': portfolio.cost_basis(ticker),
                    'Market Value': portfolio.mark_to_market(market, ticker),
                    'P&L': portfolio.pnl(market, ticker),
                    'Error': None
                })
            except ValuationError as e:
                logger.warning(f"Error valuing {ticker}: {e}")
                row.update({'Cost Basis': 0.0, 'Market Value': 0.0, 'P&L': 0.0,
                            'Error': str(e)})

            rows.append(row)

        return self._build_frame(rows, SUMMARY_COLUMNS)

    def _build_frame(self, rows: List[Dict], columns: List[str]) -> pd.DataFrame:
        frame = pd.DataFrame(rows, columns=columns)
        # Object dtype keeps None for "no error" on every pandas version
        frame['Error'] = pd.Series([row['Error'] for row in rows], index=frame.index, dtype=object)
        return frame

    def _describe_position(self, index: int, position: Position) -> Dict:
        if position.kind is PositionKind.OPTION:
            return {
                'Index': index,
                'Type': 'OPTION',
                'Ticker': position.ticker,
                'Side': position.side.value,
                'Strike': position.strike,
                'Expiration': position.expiration_date.date().isoformat(),
                'Quantity': position.quantity,
                'Price': position.premium_per_share
            }
        return {
            'Index': index,
            'Type': 'STOCK',
            'Ticker': position.ticker,
            'Side': None,
            'Strike': None,
            'Expiration': None,
            'Quantity': position.quantity,
            'Price': position.unit_price
        }

    def position_detail(self, portfolio: Portfolio, market: MarketSnapshot,
                        ticker: Optional[str] = None) -> pd.DataFrame:
        """
        Generate position detail report.

        Args:
            portfolio: Portfolio to detail
            market: Market snapshot to value against
            ticker: Only include positions on this ticker

        Returns:
            DataFrame with one row per position, indexed as in the portfolio
        """
        rows = []

        for index, position in enumerate(portfolio.positions):
            if ticker is not None and position.ticker != ticker:
                continue

            row = self._describe_position(index, position)
            try:
                row.update({
                    'Cost Basis': position.cost_basis(),
                    'Market Value': position.mark_to_market(market),
                    'P&L': position.pnl(market),
                    'Error': None
                })
            except ValuationError as e:
                logger.warning(f"Error valuing position {index} ({position.ticker}): {e}")
                row.update({'Cost Basis': 0.0, 'Market Value': 0.0, 'P&L': 0.0,
                            'Error': str(e)})

            rows.append(row)

        return self._build_frame(rows, DETAIL_COLUMNS)

    def portfolio_totals(self, portfolio: Portfolio, market: MarketSnapshot) -> Dict:
        """Portfolio-wide cost basis, market value and P&L (zeroed with an error on failure)."""
        try:
            return {
                'cost_basis': portfolio.cost_basis(),
                'market_value': portfolio.mark_to_market(market),
                'pnl': portfolio.pnl(market),
                'error': None
            }
        except ValuationError as e:
            logger.warning(f"Error valuing portfolio: {e}")
            return {'cost_basis': 0.0, 'market_value': 0.0, 'pnl': 0.0, 'error': str(e)}

    def generate_full_report(self, portfolio: Portfolio, market: MarketSnapshot) -> Dict:
        """
        Generate full valuation report.

        Args:
            portfolio: Portfolio to report on
            market: Market snapshot to value against

        Returns:
            Dictionary with all report components
        """
        logger.info(f"Generating report for {len(portfolio)} positions")

        return {
            'timestamp': datetime.now().isoformat(),
            'valuation_date': market.valuation_date.isoformat(),
            'risk_free_rate': market.risk_free_rate,
            'totals': self.portfolio_totals(portfolio, market),
            'ticker_summary': self.ticker_summary(portfolio, market),
            'position_detail': self.position_detail(portfolio, market)
        }

    @staticmethod
    def _format_frame(df: pd.DataFrame) -> pd.DataFrame:
        formatted = df.copy()
        for column in MONEY_COLUMNS:
            if column in formatted:
                formatted[column] = [
                    f"${value:,.2f}" if pd.notna(value) else '' for value in formatted[column]
                ]
        if 'Error' in formatted:
            formatted['Error'] = formatted['Error'].fillna('')
        return formatted

    def format_report(self, report: Dict) -> str:
        """Render a report as plain text."""
        totals = report['totals']
        rate = report['risk_free_rate']

        lines = [
            "=" * 80,
            "PORTFOLIO VALUATION",
            "=" * 80,
            f"Valuation date: {report['valuation_date']}",
            f"Risk-free rate: {rate:.2%}" if rate is not None else "Risk-free rate: not set",
            "",
            f"Cost basis:   ${totals['cost_basis']:,.2f}",
            f"Market value: ${totals['market_value']:,.2f}",
            f"P&L:          ${totals['pnl']:,.2f}",
        ]
        if totals['error']:
            lines.append(f"ERROR: {totals['error']}")

        for title, key in (('TICKERS', 'ticker_summary'), ('POSITIONS', 'position_detail')):
            df = report[key]
            lines.extend(["", title, "-" * 80])
            if df.empty:
                lines.append("(none)")
            else:
                lines.append(self._format_frame(df).to_string(index=False))

        return "\n".join(lines)

    def print_report(self, report: Dict):
        print(self.format_report(report))

    def export_to_csv(self, df: pd.DataFrame, filename: str) -> str:
        """
        Export DataFrame to CSV.

        Args:
            df: DataFrame to export
            filename: Output filename

        Returns:
            Path written
        """
        filepath = os.path.join(self.export_path, filename)
        df.to_csv(filepath, index=False)
        logger.info(f"Exported CSV to {filepath}")
        return filepath

    def export_to_json(self, data: Dict, filename: str) -> str:
        """
        Export data to JSON.

        Args:
            data: Dictionary to export
            filename: Output filename

        Returns:
            Path written
        """
        filepath = os.path.join(self.export_path, filename)
        with open(filepath, 'w') as f:
            json.dump(data, f, indent=2, default=str)
        logger.info(f"Exported JSON to {filepath}")
        return filepath

    def export_to_excel(self, dataframes: Dict[str, pd.DataFrame], filename: str) -> str:
        """
        Export multiple DataFrames to Excel with multiple sheets.

        Args:
            dataframes: Dictionary of sheet_name -> DataFrame
            filename: Output filename

        Returns:
            Path written
        """
        filepath = os.path.join(self.export_path, filename)
        with pd.ExcelWriter(filepath, engine='openpyxl') as writer:
            for sheet_name, df in dataframes.items():
                df.to_excel(writer, sheet_name=sheet_name, index=False)
        logger.info(f"Exported Excel to {filepath}")
        return filepath

    def save_full_report(self, report: Dict) -> Dict[str, str]:
        """
        Save all report components to files.

        Args:
            report: Report dictionary

        Returns:
            Dictionary of saved file paths
        """
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')

        saved_files = {
            'excel': self.export_to_excel(
                {'Tickers': report['ticker_summary'], 'Positions': report['position_detail']},
                f"portfolio_report_{timestamp}.xlsx"),
            'ticker_summary': self.export_to_csv(
                report['ticker_summary'], f"ticker_summary_{timestamp}.csv"),
            'position_detail': self.export_to_csv(
                report['position_detail'], f"position_detail_{timestamp}.csv"),
            'totals': self.export_to_json(
                {
                    'timestamp': report['timestamp'],
                    'valuation_date': report['valuation_date'],
                    'risk_free_rate': report['risk_free_rate'],
                    **report['totals']
                },
                f"totals_{timestamp}.json"
            )
        }

        return saved_files
