"""
Black-Scholes option pricing for European options without dividends.
"""
from enum import Enum
from typing import Union

import numpy as np

from ..exceptions import (
    InvalidOptionType,
    InvalidPriceInput,
    InvalidRateInput,
    InvalidStrikeInput,
    InvalidTimeInput,
    InvalidVolatilityInput,
)

# Abramowitz & Stegun 7.1.26, |error| <= 1.5e-7
ERF_P = 0.3275911
ERF_COEFFICIENTS = (0.254829592, -0.284496736, 1.421413741, -1.453152027, 1.061405429)


class OptionSide(str, Enum):
    """Option right."""
    CALL = 'CALL'
    PUT = 'PUT'


def erf(x):
    """
    Approximate the error function.

    Args:
        x: Scalar or numpy array

    Returns:
        erf(x), same shape as the input
    """
    x = np.asarray(x, dtype=float)
    sign = np.where(x >= 0, 1.0, -1.0)
    x = np.abs(x)

    a1, a2, a3, a4, a5 = ERF_COEFFICIENTS
    t = 1.0 / (1.0 + ERF_P * x)
    poly = ((((a5 * t + a4) * t + a3) * t + a2) * t + a1) * t
    y = 1.0 - poly * np.exp(-x * x)

    result = sign * y
    return float(result) if result.ndim == 0 else result


def normal_cdf(x):
    """Standard normal cumulative distribution function."""
    return 0.5 * (1.0 + erf(np.asarray(x, dtype=float) / np.sqrt(2.0)))


def parse_option_type(option_type: Union[OptionSide, str]) -> OptionSide:
    """Normalize an option type flag, raising InvalidOptionType when unknown."""
    try:
        return OptionSide(option_type)
    except ValueError:
        raise InvalidOptionType(option_type) from None


def calculate_option_price(underlying_price: float, option_type: Union[OptionSide, str],
                           strike: float, risk_free_rate: float, volatility: float,
                           time_to_expiry: float = 1.0) -> float:
    """
    Calculate the theoretical option price using the Black-Scholes formula.

    Args:
        underlying_price: Current underlying price
        option_type: OptionSide.CALL / OptionSide.PUT (or 'CALL' / 'PUT')
        strike: Strike price
        risk_free_rate: Annual risk-free rate (as decimal, e.g., 0.05 for 5%)
        volatility: Annualized volatility (as decimal, e.g., 0.20 for 20%)
        time_to_expiry: Time to expiration in years (default one year)

    Returns:
        Option price per share

    Raises:
        InvalidPriceInput, InvalidStrikeInput, InvalidVolatilityInput,
        InvalidTimeInput, InvalidRateInput, InvalidOptionType
    """
    # Negated comparisons so NaN fails validation too
    if not underlying_price > 0:
        raise InvalidPriceInput(underlying_price)
    if not strike > 0:
        raise InvalidStrikeInput(strike)
    if not volatility >= 0:
        raise InvalidVolatilityInput(volatility)
    if not time_to_expiry > 0:
        raise InvalidTimeInput(time_to_expiry)
    if not risk_free_rate >= 0:
        raise InvalidRateInput(risk_free_rate)
    side = parse_option_type(option_type)

    discounted_strike = strike * np.exp(-risk_free_rate * time_to_expiry)

    if volatility == 0:
        # Deterministic forward: the sigma -> 0 limit of the formula
        if side is OptionSide.CALL:
            return float(max(underlying_price - discounted_strike, 0.0))
        return float(max(discounted_strike - underlying_price, 0.0))

    sqrt_t = np.sqrt(time_to_expiry)
    d1 = (np.log(underlying_price / strike) +
          (risk_free_rate + 0.5 * volatility**2) * time_to_expiry) / (volatility * sqrt_t)
    d2 = d1 - volatility * sqrt_t

    if side is OptionSide.CALL:
        price = underlying_price * normal_cdf(d1) - discounted_strike * normal_cdf(d2)
    else:
        price = discounted_strike * normal_cdf(-d2) - underlying_price * normal_cdf(-d1)

    return float(price)


def intrinsic_value(underlying_price: float, option_type: Union[OptionSide, str],
                    strike: float) -> float:
    """Payoff per share if the option were exercised now."""
    if parse_option_type(option_type) is OptionSide.CALL:
        return max(underlying_price - strike, 0.0)
    return max(strike - underlying_price, 0.0)
