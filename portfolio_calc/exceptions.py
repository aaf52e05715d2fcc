"""
Failure kinds raised by the valuation engine.
"""


class ValuationError(Exception):
    """Base exception for all valuation failures."""
    pass


class InvalidInputError(ValuationError, ValueError):
    """Raised when the pricing model receives an input outside its domain."""

    description = 'Invalid pricing input'

    def __init__(self, value, message: str = None):
        self.value = value
        super().__init__(message or f"{self.description}: {value!r}")


class InvalidPriceInput(InvalidInputError):
    """Underlying price is not positive."""
    description = 'Underlying price must be positive'


class InvalidStrikeInput(InvalidInputError):
    """Strike is not positive."""
    description = 'Strike price must be positive'


class InvalidVolatilityInput(InvalidInputError):
    """Volatility is negative."""
    description = 'Volatility must be non-negative'


class InvalidTimeInput(InvalidInputError):
    """
    Time to expiry is not positive.

    Option lots handle expired contracts themselves, so only direct callers
    of the pricing model can see this.
    """
    description = 'Time to expiry must be positive'


class InvalidRateInput(InvalidInputError):
    """Risk-free rate is negative."""
    description = 'Risk-free rate must be non-negative'


class InvalidOptionType(InvalidInputError):
    """Option type is neither CALL nor PUT."""
    description = 'Option type must be either "CALL" or "PUT"'


class MissingMarketDataError(ValuationError, LookupError):
    """Raised when a market snapshot lacks data needed for a valuation."""
    pass


class MissingQuote(MissingMarketDataError):
    """Raised when a ticker has no quote in the market snapshot."""

    def __init__(self, ticker: str):
        self.ticker = ticker
        super().__init__(f"No price data found for ticker: {ticker}")


class MissingVolatility(MissingMarketDataError):
    """Raised when an option is valued against a quote without volatility."""

    def __init__(self, ticker: str):
        self.ticker = ticker
        super().__init__(f"No volatility data found for ticker: {ticker}")


class MissingRiskFreeRate(MissingMarketDataError):
    """Raised when an option is valued against a snapshot with no rate set."""

    def __init__(self):
        super().__init__('Risk-free rate not set in market')
