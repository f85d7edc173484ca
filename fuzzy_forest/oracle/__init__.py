"""
Importance Oracle Module
========================

Responsibility:
- Fitting one tree ensemble on a feature subset.
- Returning per-feature importance and an out-of-bag error estimate.
- Creating scikit-learn forests per task through ModelFactory.
"""

from .model_factory import ModelFactory
from .importance_oracle import ImportanceOracle, ForestImportanceOracle, OracleResult

__all__ = [
    'ModelFactory',
    'ImportanceOracle',
    'ForestImportanceOracle',
    'OracleResult',
]
