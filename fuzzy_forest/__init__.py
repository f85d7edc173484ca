"""
Fuzzy Forest
============

Feature selection for high-dimensional, correlated data:

1. Partition features into modules of mutually correlated features
   (user supplied, or discovered by a ModulePartitioner).
2. Screening: module-local recursive feature elimination with random forests.
3. Selection: cross-module recursive feature elimination over the survivors.
4. Final fit: one forest on the selected features, with a ranked table.
"""

from fuzzy_forest.orchestrator import FuzzyForest, FuzzyForestResult
from fuzzy_forest.oracle import ImportanceOracle, ForestImportanceOracle, OracleResult
from fuzzy_forest.module_partition import ModulePartitioner, CorrelationClusterer
from fuzzy_forest.utils.exceptions import (
    FuzzyForestException,
    ConfigurationError,
    PartitionError,
    OracleFailure,
    DataValidationError,
    EmptyResultWarning,
)

__version__ = "0.1.0"

__all__ = [
    'FuzzyForest',
    'FuzzyForestResult',
    'ImportanceOracle',
    'ForestImportanceOracle',
    'OracleResult',
    'ModulePartitioner',
    'CorrelationClusterer',
    'FuzzyForestException',
    'ConfigurationError',
    'PartitionError',
    'OracleFailure',
    'DataValidationError',
    'EmptyResultWarning',
]
