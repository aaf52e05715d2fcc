"""Valuation engine for option pricing, positions and portfolio aggregation."""
from .black_scholes import OptionSide, calculate_option_price, normal_cdf
from .position import (
    CONTRACT_MULTIPLIER,
    EquityLot,
    OptionLot,
    Position,
    PositionKind,
    position_from_form,
)
from .portfolio_aggregation import Portfolio

__all__ = [
    'OptionSide',
    'calculate_option_price',
    'normal_cdf',
    'CONTRACT_MULTIPLIER',
    'EquityLot',
    'OptionLot',
    'Position',
    'PositionKind',
    'position_from_form',
    'Portfolio'
]
