"""
Local storage for the current market snapshot and portfolio.
"""
import json
import logging
import os
import sqlite3
from datetime import datetime
from typing import Optional

from ..market_snapshot import MarketSnapshot
from ..valuation.portfolio_aggregation import Portfolio
from .document import (
    DocumentError,
    decode_market,
    decode_portfolio,
    encode_market,
    encode_portfolio,
)

logger = logging.getLogger(__name__)

MARKET_KEY = 'portfolio-calculator-market'
PORTFOLIO_KEY = 'portfolio-calculator-portfolio'


class SnapshotStore:
    """Key/value store (SQLite) holding the latest market and portfolio as JSON."""

    def __init__(self, db_path: str = 'data/portfolio.db'):
        """
        Initialize snapshot store.

        Args:
            db_path: Path to SQLite database
        """
        self.db_path = db_path

        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        self._init_database()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _init_database(self):
        """Initialize SQLite database schema."""
        conn = self._connect()
        try:
            with conn:
                conn.execute('''
                    CREATE TABLE IF NOT EXISTS entries (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                ''')
            logger.debug(f"Snapshot store initialized at {self.db_path}")
        finally:
            conn.close()

    def _put(self, key: str, value: dict):
        conn = self._connect()
        try:
            with conn:
                conn.execute(
                    'INSERT OR REPLACE INTO entries (key, value, updated_at) VALUES (?, ?, ?)',
                    (key, json.dumps(value), datetime.now().isoformat())
                )
        except sqlite3.Error as e:
            logger.error(f"Failed to save {key}: {e}")
            raise
        finally:
            conn.close()

    def _get(self, key: str) -> Optional[str]:
        conn = self._connect()
        try:
            row = conn.execute('SELECT value FROM entries WHERE key = ?', (key,)).fetchone()
        finally:
            conn.close()
        return row[0] if row else None

    def save_market(self, market: MarketSnapshot):
        self._put(MARKET_KEY, encode_market(market))
        logger.debug(f"Saved market with {len(market.quotes)} quotes")

    def load_market(self) -> Optional[MarketSnapshot]:
        """
        Load the stored market.

        Returns:
            MarketSnapshot, or None if nothing is stored or the entry is unreadable
        """
        raw = self._get(MARKET_KEY)
        if raw is None:
            return None

        try:
            return decode_market(json.loads(raw))
        except (json.JSONDecodeError, DocumentError) as e:
            logger.error(f"Failed to load market data: {e}")
            return None

    def save_portfolio(self, portfolio: Portfolio):
        self._put(PORTFOLIO_KEY, encode_portfolio(portfolio))
        logger.debug(f"Saved portfolio with {len(portfolio)} positions")

    def load_portfolio(self) -> Optional[Portfolio]:
        """
        Load the stored portfolio.

        Returns:
            Portfolio, or None if nothing is stored or the entry is unreadable
        """
        raw = self._get(PORTFOLIO_KEY)
        if raw is None:
            return None

        try:
            return decode_portfolio(json.loads(raw))
        except (json.JSONDecodeError, DocumentError) as e:
            logger.error(f"Failed to load portfolio data: {e}")
            return None

    def clear(self):
        """Remove the stored market and portfolio."""
        conn = self._connect()
        try:
            with conn:
                conn.execute('DELETE FROM entries WHERE key IN (?, ?)',
                             (MARKET_KEY, PORTFOLIO_KEY))
        finally:
            conn.close()
        logger.info("Cleared stored market and portfolio")
