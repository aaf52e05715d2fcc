"""
Configuration loader utility.
"""
import logging
import os
from datetime import datetime
from typing import Dict, Optional

import yaml

from ..market_snapshot import MarketSnapshot

logger = logging.getLogger(__name__)


def load_config(config_path: str = 'config/config.yaml') -> Dict:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file

    Returns:
        Configuration dictionary (empty if the file can't be read)
    """
    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}
        logger.info(f"Loaded configuration from {config_path}")
        return config
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error loading config: {e}")
        return {}


def setup_logging(log_level: str = 'INFO', log_file: str = None):
    """
    Setup logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path
    """
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    handlers = [logging.StreamHandler()]

    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=log_format,
        handlers=handlers,
        force=True
    )

    logger.info(f"Logging configured at {log_level} level")


def seed_market(config: Dict, today: Optional[datetime] = None) -> MarketSnapshot:
    """
    Build the initial market from the 'market.seed' config section.

    Args:
        config: Configuration dictionary
        today: Valuation date used when the seed doesn't name one

    Returns:
        MarketSnapshot (empty quotes and no rate when nothing is configured)
    """
    seed = (config.get('market') or {}).get('seed') or {}
    valuation_date = seed.get('date') or today or datetime.now()

    market = MarketSnapshot.from_settings(
        valuation_date=valuation_date,
        risk_free_rate=seed.get('risk_free_rate'),
        prices=seed.get('prices', {}) or {}
    )
    logger.debug(f"Seeded market with {len(market.quotes)} quotes")
    return market
