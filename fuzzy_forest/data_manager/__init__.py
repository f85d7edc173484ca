"""
Data Manager Module
===================

Responsibility:
- Loading the data file (CSV, Parquet, Excel) and the optional
  module-membership file.
- Splitting the response column off the feature matrix.
- Validating finite numeric features before any forest is fitted.
"""

from .data_manager import DataManager

__all__ = ['DataManager']
