"""
Position lots (stocks and options) and their valuation against a market snapshot.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Mapping, Union

from ..exceptions import MissingRiskFreeRate, MissingVolatility
from ..market_snapshot import MarketSnapshot, to_datetime
from .black_scholes import OptionSide, calculate_option_price, intrinsic_value

# Shares per option contract
CONTRACT_MULTIPLIER = 100


class PositionKind(str, Enum):
    """Discriminant of the position variants; values match the document format."""
    EQUITY = 'stock'
    OPTION = 'option'


@dataclass(frozen=True)
class EquityLot:
    """
    A lot of shares.

    Cost basis is unit_price * quantity; market value uses the quoted price.
    """
    ticker: str
    unit_price: float
    quantity: float
    kind: PositionKind = field(default=PositionKind.EQUITY, init=False)

    def cost_basis(self) -> float:
        return self.unit_price * self.quantity

    def mark_to_market(self, market: MarketSnapshot) -> float:
        """Current value of the lot; raises MissingQuote if the ticker isn't quoted."""
        return market.quote(self.ticker).price * self.quantity

    def pnl(self, market: MarketSnapshot) -> float:
        return self.mark_to_market(market) - self.cost_basis()


@dataclass(frozen=True)
class OptionLot:
    """
    A lot of option contracts on one underlying.

    premium_per_share is the price paid per underlying share, so one contract
    costs premium_per_share * CONTRACT_MULTIPLIER.
    """
    ticker: str
    strike: float
    premium_per_share: float
    quantity: float  # Number of contracts
    expiration_date: datetime
    side: OptionSide
    kind: PositionKind = field(default=PositionKind.OPTION, init=False)

    def __post_init__(self):
        object.__setattr__(self, 'expiration_date', to_datetime(self.expiration_date))
        object.__setattr__(self, 'side', OptionSide(self.side))

    def cost_basis(self) -> float:
        return self.premium_per_share * CONTRACT_MULTIPLIER * self.quantity

    def time_to_expiry(self, market: MarketSnapshot) -> float:
        """Years from the market's valuation date to expiration (negative once expired)."""
        return market.time_to(self.expiration_date)

    def intrinsic_value(self, spot: float) -> float:
        """Exercise value of the whole lot at the given spot."""
        return intrinsic_value(spot, self.side, self.strike) * CONTRACT_MULTIPLIER * self.quantity

    def mark_to_market(self, market: MarketSnapshot) -> float:
        """
        Theoretical value of the lot.

        Args:
            market: Market snapshot with a quote (including volatility) for the
                underlying and a risk-free rate

        Returns:
            Intrinsic value once expired, Black-Scholes value otherwise

        Raises:
            MissingQuote, MissingVolatility, MissingRiskFreeRate: checked in
            that order, expired or not
        """
        quote = market.quote(self.ticker)
        if quote.volatility is None:
            raise MissingVolatility(self.ticker)
        if market.risk_free_rate is None:
            raise MissingRiskFreeRate()

        time_to_expiry = self.time_to_expiry(market)
        if time_to_expiry <= 0:
            # Expired: exercise value, independent of volatility and rate
            return self.intrinsic_value(quote.price)

        price = calculate_option_price(
            underlying_price=quote.price,
            option_type=self.side,
            strike=self.strike,
            risk_free_rate=market.risk_free_rate,
            volatility=quote.volatility,
            time_to_expiry=time_to_expiry
        )
        return price * CONTRACT_MULTIPLIER * self.quantity

    def pnl(self, market: MarketSnapshot) -> float:
        return self.mark_to_market(market) - self.cost_basis()


Position = Union[EquityLot, OptionLot]


def position_from_form(record: Mapping) -> Position:
    """
    Build a position from an add-position form record.

    Args:
        record: {'kind': 'stock'|'option', 'ticker', 'price', 'quantity',
                 'strike', 'expiration_date', 'side'}; the last three only
                 for options

    Returns:
        EquityLot or OptionLot

    Raises:
        ValueError: unknown kind or missing option fields
    """
    try:
        kind = PositionKind(record['kind'])
    except (KeyError, ValueError):
        raise ValueError(f"Unknown position kind: {record.get('kind')!r}") from None

    if kind is PositionKind.EQUITY:
        return EquityLot(
            ticker=record['ticker'],
            unit_price=record['price'],
            quantity=record['quantity']
        )
    if kind is PositionKind.OPTION:
        missing = [name for name in ('strike', 'expiration_date', 'side')
                   if record.get(name) is None]
        if missing:
            raise ValueError(f"Option position missing fields: {missing}")
        return OptionLot(
            ticker=record['ticker'],
            strike=record['strike'],
            premium_per_share=record['price'],
            quantity=record['quantity'],
            expiration_date=record['expiration_date'],
            side=OptionSide(record['side'])
        )
    raise ValueError(f"Unhandled position kind: {kind}")
