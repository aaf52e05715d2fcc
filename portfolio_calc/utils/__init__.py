"""Configuration and logging helpers."""
from .config_loader import load_config, seed_market, setup_logging

__all__ = ['load_config', 'seed_market', 'setup_logging']
