"""
JSON document format for a market snapshot and portfolio pair.
"""
import json
import logging
import os
from datetime import datetime
from typing import Dict, Tuple

from ..market_snapshot import MarketSnapshot, Quote
from ..valuation.black_scholes import OptionSide
from ..valuation.portfolio_aggregation import Portfolio
from ..valuation.position import EquityLot, OptionLot, Position, PositionKind

logger = logging.getLogger(__name__)


class DocumentError(ValueError):
    """Raised when a document can't be decoded into a market and portfolio."""
    pass


def format_timestamp(moment: datetime) -> str:
    return moment.isoformat()


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing 'Z' for UTC."""
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    return datetime.fromisoformat(value)


def encode_market(market: MarketSnapshot) -> Dict:
    prices = {}
    for ticker, quote in market.quotes.items():
        entry = {'price': quote.price}
        if quote.volatility is not None:
            entry['volatility'] = quote.volatility
        prices[ticker] = entry

    return {
        'date': format_timestamp(market.valuation_date),
        'riskFreeRate': market.risk_free_rate,
        'prices': prices
    }


def decode_market(data: Dict) -> MarketSnapshot:
    try:
        quotes = {
            ticker: Quote(price=entry['price'], volatility=entry.get('volatility'))
            for ticker, entry in data['prices'].items()
        }
        return MarketSnapshot(
            valuation_date=parse_timestamp(data['date']),
            risk_free_rate=data.get('riskFreeRate'),
            quotes=quotes
        )
    except (KeyError, TypeError, AttributeError, ValueError) as e:
        raise DocumentError(f"Invalid market data: {e!r}") from e


def encode_position(position: Position) -> Dict:
    """Encode one position, dispatching on its kind."""
    if position.kind is PositionKind.OPTION:
        return {
            'type': position.kind.value,
            'ticker': position.ticker,
            'strike': position.strike,
            'price': position.premium_per_share,
            'quantity': position.quantity,
            'expiration': format_timestamp(position.expiration_date),
            'side': position.side.value
        }
    if position.kind is PositionKind.EQUITY:
        return {
            'type': position.kind.value,
            'ticker': position.ticker,
            'price': position.unit_price,
            'quantity': position.quantity
        }
    raise DocumentError(f"Unknown position type: {position!r}")


def decode_position(data: Dict) -> Position:
    try:
        kind = PositionKind(data['type'])
    except (KeyError, TypeError, ValueError) as e:
        raise DocumentError(f"Unknown position type: {data!r}") from e

    try:
        if kind is PositionKind.OPTION:
            return OptionLot(
                ticker=data['ticker'],
                strike=data['strike'],
                premium_per_share=data['price'],
                quantity=data['quantity'],
                expiration_date=parse_timestamp(data['expiration']),
                side=OptionSide(data['side'])
            )
        return EquityLot(
            ticker=data['ticker'],
            unit_price=data['price'],
            quantity=data['quantity']
        )
    except (KeyError, TypeError, AttributeError, ValueError) as e:
        raise DocumentError(f"Invalid {kind.value} position {data!r}: {e!r}") from e


def encode_portfolio(portfolio: Portfolio) -> Dict:
    return {'positions': [encode_position(p) for p in portfolio.positions]}


def decode_portfolio(data: Dict) -> Portfolio:
    try:
        positions = data['positions']
    except (KeyError, TypeError) as e:
        raise DocumentError(f"Invalid portfolio data: {e!r}") from e
    return Portfolio(tuple(decode_position(p) for p in positions))


def encode_document(market: MarketSnapshot, portfolio: Portfolio) -> Dict:
    return {
        'market': encode_market(market),
        'portfolio': encode_portfolio(portfolio)
    }


def decode_document(data: Dict) -> Tuple[MarketSnapshot, Portfolio]:
    """
    Decode a document into a market snapshot and portfolio.

    Raises:
        DocumentError: missing sections or malformed entries
    """
    try:
        market_data = data['market']
        portfolio_data = data['portfolio']
    except (KeyError, TypeError) as e:
        raise DocumentError(f"Document missing section: {e!r}") from e
    return decode_market(market_data), decode_portfolio(portfolio_data)


def dumps(market: MarketSnapshot, portfolio: Portfolio) -> str:
    return json.dumps(encode_document(market, portfolio), indent=2)


def loads(text: str) -> Tuple[MarketSnapshot, Portfolio]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DocumentError(f"Document is not valid JSON: {e}") from e
    return decode_document(data)


def default_filename(today: datetime = None) -> str:
    today = today or datetime.now()
    return f"portfolio-data-{today.strftime('%Y-%m-%d')}.json"


def export_to_file(market: MarketSnapshot, portfolio: Portfolio, path: str) -> str:
    """
    Write the document to disk.

    Args:
        market: Market snapshot
        portfolio: Portfolio
        path: Output file, or a directory to place a dated file in

    Returns:
        Path written
    """
    if os.path.isdir(path):
        path = os.path.join(path, default_filename())

    with open(path, 'w') as f:
        f.write(dumps(market, portfolio))

    logger.info(f"Exported {len(portfolio)} positions to {path}")
    return path


def import_from_file(path: str) -> Tuple[MarketSnapshot, Portfolio]:
    """Read a document from disk; raises DocumentError for malformed content."""
    with open(path, 'r') as f:
        text = f.read()

    try:
        market, portfolio = loads(text)
    except DocumentError as e:
        logger.error(f"Import of {path} failed: {e}")
        raise

    logger.info(f"Imported {len(portfolio)} positions from {path}")
    return market, portfolio
