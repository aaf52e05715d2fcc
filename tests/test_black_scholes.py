"""
Unit tests for Black-Scholes pricing.
"""
import math
import unittest
import sys
from pathlib import Path

import numpy as np
from scipy.stats import norm

sys.path.insert(0, str(Path(__file__).parent.parent))

from portfolio_calc.exceptions import (
    InvalidInputError,
    InvalidOptionType,
    InvalidPriceInput,
    InvalidRateInput,
    InvalidStrikeInput,
    InvalidTimeInput,
    InvalidVolatilityInput,
)
from portfolio_calc.valuation.black_scholes import (
    OptionSide,
    calculate_option_price,
    erf,
    intrinsic_value,
    normal_cdf,
)

INVALID_INPUT_KINDS = (
    InvalidPriceInput,
    InvalidStrikeInput,
    InvalidVolatilityInput,
    InvalidTimeInput,
    InvalidRateInput,
    InvalidOptionType,
)


def price(option_type, strike, spot=100.0, rate=0.05, vol=0.2, t=1.0):
    return calculate_option_price(spot, option_type, strike, rate, vol, t)


class TestNormalDistribution(unittest.TestCase):
    """Test the error function approximation."""

    def test_matches_reference_cdf(self):
        """Test normal CDF against scipy across a wide range."""
        x = np.linspace(-6, 6, 241)
        np.testing.assert_allclose(normal_cdf(x), norm.cdf(x), rtol=0, atol=1.5e-7)

    def test_scalar_input_returns_float(self):
        self.assertIsInstance(normal_cdf(0.3), float)
        self.assertAlmostEqual(normal_cdf(0.0), 0.5, places=7)

    def test_erf_is_odd(self):
        for x in (0.1, 0.5, 1.3, 2.7):
            self.assertAlmostEqual(erf(-x), -erf(x), places=12)
        self.assertAlmostEqual(erf(1.0), math.erf(1.0), places=6)


class TestBlackScholes(unittest.TestCase):
    """Test Black-Scholes option pricing."""

    def test_reference_prices(self):
        """Test known prices at S=100, r=5%, vol=20%, T=1."""
        self.assertAlmostEqual(price('CALL', 105), 8.02, places=2)
        self.assertAlmostEqual(price('PUT', 95), 3.71, places=2)
        self.assertAlmostEqual(price('CALL', 100), 10.45, places=2)
        self.assertAlmostEqual(price('PUT', 100), 5.57, places=2)

    def test_enum_and_string_types_agree(self):
        self.assertEqual(price(OptionSide.CALL, 105), price('CALL', 105))
        self.assertEqual(price(OptionSide.PUT, 95), price('PUT', 95))

    def test_put_call_parity(self):
        """Test call - put = S - K*exp(-rT) across a set of inputs."""
        cases = [
            (100, 105, 0.05, 0.2, 1.0),
            (100, 95, 0.05, 0.2, 1.0),
            (50, 80, 0.01, 0.6, 0.1),
            (250, 240, 0.0, 0.35, 2.5),
            (10, 10, 0.08, 0.05, 0.02),
        ]
        for spot, strike, rate, vol, t in cases:
            with self.subTest(spot=spot, strike=strike, rate=rate, vol=vol, t=t):
                call = calculate_option_price(spot, 'CALL', strike, rate, vol, t)
                put = calculate_option_price(spot, 'PUT', strike, rate, vol, t)
                self.assertAlmostEqual(call - put, spot - strike * math.exp(-rate * t), delta=1e-2)

    def test_strike_monotonicity(self):
        """Test calls get cheaper and puts dearer as the strike rises."""
        strikes = [90, 95, 100, 105, 110]
        calls = [price('CALL', k) for k in strikes]
        puts = [price('PUT', k) for k in strikes]

        for lower, higher in zip(calls, calls[1:]):
            self.assertGreater(lower, higher)
        for lower, higher in zip(puts, puts[1:]):
            self.assertLess(lower, higher)

    def test_volatility_monotonicity(self):
        vols = [0.1, 0.2, 0.3, 0.4]
        for option_type in ('CALL', 'PUT'):
            prices = [price(option_type, 100, vol=v) for v in vols]
            for lower, higher in zip(prices, prices[1:]):
                self.assertLess(lower, higher)

    def test_time_monotonicity(self):
        times = [0.25, 0.5, 1.0, 2.0]
        for option_type in ('CALL', 'PUT'):
            prices = [price(option_type, 100, t=t) for t in times]
            for shorter, longer in zip(prices, prices[1:]):
                self.assertLess(shorter, longer)

    def test_short_dated_call(self):
        """Test a three-month call is cheaper than the one-year call."""
        three_months = price('CALL', 105, t=0.25)
        self.assertLess(three_months, price('CALL', 105))
        self.assertAlmostEqual(three_months, 2.48, delta=0.01)

    def test_default_time_to_expiry_is_one_year(self):
        default = calculate_option_price(100, 'CALL', 105, 0.05, 0.2)
        explicit = calculate_option_price(100, 'CALL', 105, 0.05, 0.2, 1.0)
        self.assertEqual(default, explicit)

    def test_zero_volatility_is_discounted_intrinsic(self):
        discounted_strike = 95 * math.exp(-0.05)
        self.assertAlmostEqual(price('CALL', 95, vol=0.0), 100 - discounted_strike, places=10)
        self.assertEqual(price('PUT', 95, vol=0.0), 0.0)

        call = price('CALL', 110, vol=0.0)
        put = price('PUT', 110, vol=0.0)
        self.assertAlmostEqual(call - put, 100 - 110 * math.exp(-0.05), places=10)

    def test_zero_rate_is_valid(self):
        self.assertGreater(price('CALL', 100, rate=0.0), 0)


class TestInputValidation(unittest.TestCase):
    """Test each invalid input raises its own failure kind."""

    def assertRaisesOnly(self, expected, **overrides):
        args = dict(underlying_price=100.0, option_type='CALL', strike=100.0,
                    risk_free_rate=0.05, volatility=0.2, time_to_expiry=1.0)
        args.update(overrides)

        with self.assertRaises(expected) as ctx:
            calculate_option_price(**args)

        for other in INVALID_INPUT_KINDS:
            if other is not expected:
                self.assertNotIsInstance(ctx.exception, other)
        self.assertIsInstance(ctx.exception, InvalidInputError)
        self.assertIsInstance(ctx.exception, ValueError)
        return ctx.exception

    def test_invalid_price(self):
        self.assertRaisesOnly(InvalidPriceInput, underlying_price=0)
        error = self.assertRaisesOnly(InvalidPriceInput, underlying_price=-5)
        self.assertEqual(error.value, -5)

    def test_invalid_strike(self):
        self.assertRaisesOnly(InvalidStrikeInput, strike=0)
        self.assertRaisesOnly(InvalidStrikeInput, strike=-100)

    def test_invalid_volatility(self):
        self.assertRaisesOnly(InvalidVolatilityInput, volatility=-0.1)

    def test_invalid_time(self):
        self.assertRaisesOnly(InvalidTimeInput, time_to_expiry=0)
        self.assertRaisesOnly(InvalidTimeInput, time_to_expiry=-0.5)

    def test_invalid_rate(self):
        self.assertRaisesOnly(InvalidRateInput, risk_free_rate=-0.01)

    def test_invalid_option_type(self):
        self.assertRaisesOnly(InvalidOptionType, option_type='STRADDLE')
        self.assertRaisesOnly(InvalidOptionType, option_type='call')
        self.assertRaisesOnly(InvalidOptionType, option_type=None)

    def test_nan_inputs_rejected(self):
        nan = float('nan')
        self.assertRaisesOnly(InvalidPriceInput, underlying_price=nan)
        self.assertRaisesOnly(InvalidVolatilityInput, volatility=nan)
        self.assertRaisesOnly(InvalidTimeInput, time_to_expiry=nan)


class TestIntrinsicValue(unittest.TestCase):

    def test_call_and_put(self):
        self.assertEqual(intrinsic_value(110, 'CALL', 100), 10)
        self.assertEqual(intrinsic_value(90, 'CALL', 100), 0)
        self.assertEqual(intrinsic_value(90, OptionSide.PUT, 100), 10)
        self.assertEqual(intrinsic_value(110, OptionSide.PUT, 100), 0)


if __name__ == '__main__':
    unittest.main()
