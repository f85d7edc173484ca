"""
Module Partition Module
=======================

Responsibility:
- Validating that a feature -> module mapping partitions the feature set.
- Grouping features into ordered modules for screening.
- Discovering modules from the data (correlation-network clustering)
  when no mapping is supplied.
"""

from .partition import validate_partition, group_modules
from .clusterer import ModulePartitioner, CorrelationClusterer

__all__ = [
    'validate_partition',
    'group_modules',
    'ModulePartitioner',
    'CorrelationClusterer',
]
