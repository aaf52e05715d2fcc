"""
Portfolio of positions and aggregate valuation.
"""
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

from ..market_snapshot import MarketSnapshot
from .position import Position


@dataclass(frozen=True)
class Portfolio:
    """
    Ordered collection of positions.

    Aggregates are sums of each position's own cost basis / mark-to-market /
    P&L. Any valuation failure propagates unchanged, so a total is never
    silently computed over a subset of positions.
    """
    positions: Tuple[Position, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, 'positions', tuple(self.positions))

    def __len__(self) -> int:
        return len(self.positions)

    def __iter__(self):
        return iter(self.positions)

    def __getitem__(self, index: int) -> Position:
        return self.positions[index]

    def add_position(self, position: Position) -> 'Portfolio':
        """New portfolio with the position appended."""
        return replace(self, positions=self.positions + (position,))

    def remove_position(self, index: int) -> 'Portfolio':
        """
        New portfolio without the position at the given index.

        Positions are addressed by index because two lots may be identical.
        """
        if not -len(self.positions) <= index < len(self.positions):
            raise IndexError(f"Position index out of range: {index}")
        index %= len(self.positions)
        return replace(self, positions=self.positions[:index] + self.positions[index + 1:])

    def _select(self, ticker: Optional[str]) -> Tuple[Position, ...]:
        if ticker is None:
            return self.positions
        return tuple(p for p in self.positions if p.ticker == ticker)

    def cost_basis(self, ticker: Optional[str] = None) -> float:
        """
        Total amount paid for the positions.

        Args:
            ticker: Only include positions on this ticker (exact match)

        Returns:
            Sum of cost bases, 0.0 when nothing matches
        """
        return sum((p.cost_basis() for p in self._select(ticker)), 0.0)

    def mark_to_market(self, market: MarketSnapshot, ticker: Optional[str] = None) -> float:
        """
        Current value of the positions.

        Args:
            market: Market snapshot to value against
            ticker: Only include positions on this ticker (exact match)

        Returns:
            Sum of position values, 0.0 when nothing matches
        """
        return sum((p.mark_to_market(market) for p in self._select(ticker)), 0.0)

    def pnl(self, market: MarketSnapshot, ticker: Optional[str] = None) -> float:
        return self.mark_to_market(market, ticker) - self.cost_basis(ticker)

    def positions_for_ticker(self, ticker: str) -> List[Position]:
        return list(self._select(ticker))

    def all_tickers(self, market: Optional[MarketSnapshot] = None) -> List[str]:
        """
        Distinct tickers held.

        Args:
            market: When given, rank by descending market value (ties by
                ticker); otherwise sort alphabetically

        Returns:
            List of tickers
        """
        tickers = sorted({p.ticker for p in self.positions})
        if market is None:
            return tickers

        values = {ticker: self.mark_to_market(market, ticker) for ticker in tickers}
        return sorted(tickers, key=lambda ticker: (-values[ticker], ticker))
