"""
Reporting Module.

Persists the ranked feature table, round histories and a run summary,
and optionally the module plot.
"""

from .reporting_engine import ReportingEngine

__all__ = ['ReportingEngine']
