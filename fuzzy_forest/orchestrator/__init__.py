"""
Orchestrator Module
===================

Responsibility:
- Sequencing module partition -> screening -> selection -> final fit.
- Assembling the immutable FuzzyForestResult.
"""

from .result import FuzzyForestResult
from .fuzzy_forest import FuzzyForest

__all__ = ['FuzzyForest', 'FuzzyForestResult']
