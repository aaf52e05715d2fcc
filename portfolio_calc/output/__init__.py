"""Reporting of portfolio valuations."""
from .report_generator import ReportGenerator

__all__ = ['ReportGenerator']
