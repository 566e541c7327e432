"""
Reporting Module

Contains report generators rendering the per-component summary of a run.
"""

from .base import ReportGenerator
from .json_reporter import JSONReporter
from .text_reporter import TextReporter

__all__ = ['ReportGenerator', 'JSONReporter', 'TextReporter']
