"""
Market snapshot: valuation date, risk-free rate and per-ticker quotes.
"""
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from types import MappingProxyType
from typing import Mapping, Optional

from .exceptions import MissingQuote

DAYS_PER_YEAR = 365.25
SECONDS_PER_YEAR = DAYS_PER_YEAR * 24 * 60 * 60


def to_datetime(value) -> datetime:
    """Promote a date to midnight; datetimes pass through unchanged."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    raise TypeError(f"Expected date or datetime, got {type(value).__name__}")


def year_fraction(start: datetime, end: datetime) -> float:
    """
    Years between two instants on a 365.25-day year.

    Naive datetimes are taken as UTC when the other side is timezone-aware.
    """
    if (start.tzinfo is None) != (end.tzinfo is None):
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        else:
            end = end.replace(tzinfo=timezone.utc)
    return (end - start).total_seconds() / SECONDS_PER_YEAR


@dataclass(frozen=True)
class Quote:
    """Price and optional annualized volatility for one ticker."""
    price: float
    volatility: Optional[float] = None


@dataclass(frozen=True)
class MarketSnapshot:
    """
    Market state used for valuation.

    Snapshots are values: every "mutation" returns a new snapshot and leaves
    this one untouched, so earlier states stay valid for comparison or undo.
    """
    valuation_date: datetime
    risk_free_rate: Optional[float] = None
    quotes: Mapping[str, Quote] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'valuation_date', to_datetime(self.valuation_date))
        # Read-only private copy, independent of the caller's mapping
        object.__setattr__(self, 'quotes', MappingProxyType(dict(self.quotes)))

    def __hash__(self):
        return hash((self.valuation_date, self.risk_free_rate,
                     tuple(sorted(self.quotes.items()))))

    @classmethod
    def from_settings(cls, valuation_date, risk_free_rate: Optional[float],
                      prices: Mapping[str, Mapping]) -> 'MarketSnapshot':
        """
        Build a snapshot from settings-form values.

        Args:
            valuation_date: Date used as "now"
            risk_free_rate: Annual rate, or None when not set
            prices: Mapping of ticker -> {'price': p, 'volatility': v (optional)}

        Returns:
            New MarketSnapshot
        """
        quotes = {
            ticker: Quote(price=data['price'], volatility=data.get('volatility'))
            for ticker, data in prices.items()
        }
        return cls(valuation_date=valuation_date, risk_free_rate=risk_free_rate,
                   quotes=quotes)

    @property
    def tickers(self):
        return list(self.quotes)

    def quote(self, ticker: str) -> Quote:
        """Quote for a ticker; raises MissingQuote if the ticker is not priced."""
        try:
            return self.quotes[ticker]
        except KeyError:
            raise MissingQuote(ticker) from None

    def has_quote(self, ticker: str) -> bool:
        return ticker in self.quotes

    def copy(self) -> 'MarketSnapshot':
        """Value-independent copy."""
        return replace(self)

    def with_date(self, valuation_date) -> 'MarketSnapshot':
        return replace(self, valuation_date=valuation_date)

    def with_risk_free_rate(self, risk_free_rate: Optional[float]) -> 'MarketSnapshot':
        return replace(self, risk_free_rate=risk_free_rate)

    def with_quote(self, ticker: str, price: float,
                   volatility: Optional[float] = None) -> 'MarketSnapshot':
        """New snapshot with the ticker's quote set (or replaced)."""
        quotes = dict(self.quotes)
        quotes[ticker] = Quote(price=price, volatility=volatility)
        return replace(self, quotes=quotes)

    def with_price(self, ticker: str, price: float) -> 'MarketSnapshot':
        """New snapshot with a new price for a quoted ticker, keeping its volatility."""
        return self.with_quote(ticker, price, self.quote(ticker).volatility)

    def without_quote(self, ticker: str) -> 'MarketSnapshot':
        quotes = dict(self.quotes)
        quotes.pop(ticker, None)
        return replace(self, quotes=quotes)

    def time_to(self, moment) -> float:
        """Years from the valuation date to the given moment."""
        return year_fraction(self.valuation_date, to_datetime(moment))
