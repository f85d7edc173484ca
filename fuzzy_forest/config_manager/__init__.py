"""
Configuration Manager Module
============================

Responsibility:
- Loading JSON configuration files (or in-memory dicts) over package defaults.
- Schema validation (jsonschema) and logical bounds checks of every
  tuning parameter, before any forest is fitted.
- Deterministic seed propagation for reproducibility.
"""

from .config_manager import ConfigurationManager, merge_with_defaults, resolve_seed
from .validation import (
    validate_screening_params,
    validate_selection_params,
    validate_final_params,
    validate_task,
    validate_execution,
    validate_run_config,
)

__all__ = [
    'ConfigurationManager',
    'merge_with_defaults',
    'resolve_seed',
    'validate_screening_params',
    'validate_selection_params',
    'validate_final_params',
    'validate_task',
    'validate_execution',
    'validate_run_config',
]
