"""Portfolio valuation: option pricing, position lots and portfolio aggregation."""
from .market_snapshot import MarketSnapshot, Quote
from .valuation import (
    CONTRACT_MULTIPLIER,
    EquityLot,
    OptionLot,
    OptionSide,
    Portfolio,
    PositionKind,
    calculate_option_price,
)

__version__ = '0.1.0'

__all__ = [
    'MarketSnapshot',
    'Quote',
    'CONTRACT_MULTIPLIER',
    'EquityLot',
    'OptionLot',
    'OptionSide',
    'Portfolio',
    'PositionKind',
    'calculate_option_price'
]
