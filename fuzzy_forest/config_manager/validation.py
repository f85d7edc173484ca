"""
Logical validation of tuning parameters.

Each stage calls the validator for its own parameter block on construction,
so invalid parameters fail fast even when a stage is used on its own.
"""

import numbers
from typing import Any, Dict

from fuzzy_forest.utils.exceptions import ConfigurationError
from fuzzy_forest.utils import constants


def _require_number(params: Dict[str, Any], key: str, section: str) -> float:
    if key not in params:
        raise ConfigurationError(f"{section}.{key} must be specified.")
    value = params[key]
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ConfigurationError(f"{section}.{key} must be numeric, got {value!r}.")
    return value


def _require_int(params: Dict[str, Any], key: str, section: str) -> int:
    value = _require_number(params, key, section)
    if int(value) != value:
        raise ConfigurationError(f"{section}.{key} must be an integer, got {value!r}.")
    return int(value)


def _validate_common(params: Dict[str, Any], section: str) -> None:
    drop_fraction = _require_number(params, 'drop_fraction', section)
    if not (0.0 < drop_fraction <= 1.0):
        raise ConfigurationError(f"{section}.drop_fraction must be in (0, 1], got {drop_fraction}.")

    mtry_factor = _require_number(params, 'mtry_factor', section)
    if mtry_factor <= 0:
        raise ConfigurationError(f"{section}.mtry_factor must be > 0, got {mtry_factor}.")

    min_n_tree = _require_int(params, 'min_n_tree', section)
    if min_n_tree < 1:
        raise ConfigurationError(f"{section}.min_n_tree must be >= 1, got {min_n_tree}.")

    ntree_factor = _require_number(params, 'ntree_factor', section)
    if ntree_factor < 0:
        raise ConfigurationError(f"{section}.ntree_factor must be >= 0, got {ntree_factor}.")


def validate_screening_params(params: Dict[str, Any]) -> None:
    """Bounds of the screening block; keep_fraction in (0, 1]."""
    _validate_common(params, constants.STAGE_SCREENING)
    keep_fraction = _require_number(params, 'keep_fraction', constants.STAGE_SCREENING)
    if not (0.0 < keep_fraction <= 1.0):
        raise ConfigurationError(f"screening.keep_fraction must be in (0, 1], got {keep_fraction}.")


def validate_selection_params(params: Dict[str, Any]) -> None:
    """Bounds of the selection block; number_selected >= 1."""
    _validate_common(params, constants.STAGE_SELECTION)
    number_selected = _require_int(params, 'number_selected', constants.STAGE_SELECTION)
    if number_selected < 1:
        raise ConfigurationError(f"selection.number_selected must be >= 1, got {number_selected}.")


def validate_final_params(params: Dict[str, Any]) -> None:
    final_n_tree = _require_int(params, 'final_n_tree', 'final')
    if final_n_tree < 1:
        raise ConfigurationError(f"final.final_n_tree must be >= 1, got {final_n_tree}.")


def validate_task(task: Any) -> None:
    if task not in constants.VALID_TASKS:
        raise ConfigurationError(f"task must be one of {list(constants.VALID_TASKS)}, got {task!r}.")


def validate_execution(execution: Dict[str, Any]) -> None:
    num_workers = execution.get('num_workers', 1)
    if isinstance(num_workers, bool) or not isinstance(num_workers, int):
        raise ConfigurationError(f"execution.num_workers must be an integer, got {num_workers!r}.")
    if num_workers == 0 or num_workers < -1:
        raise ConfigurationError(
            f"execution.num_workers must be -1 (all cores) or a positive integer, got {num_workers}"
        )
    seed = execution.get('seed')
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int) or seed < 0):
        raise ConfigurationError(f"execution.seed must be a non-negative integer or null, got {seed!r}.")


def validate_run_config(config: Dict[str, Any]) -> None:
    """Validate every section the pipeline consumes."""
    validate_task(config.get('task'))
    validate_screening_params(config.get('screening', {}))
    validate_selection_params(config.get('selection', {}))
    validate_final_params(config.get('final', {}))
    validate_execution(config.get('execution', {}))

    forest = config.get('forest', {})
    if forest.get('importance_type', 'impurity') not in ('impurity', 'permutation'):
        raise ConfigurationError(
            f"forest.importance_type must be 'impurity' or 'permutation', got {forest.get('importance_type')!r}."
        )
    if forest.get('permutation_repeats', 5) < 1:
        raise ConfigurationError("forest.permutation_repeats must be >= 1.")

    clustering = config.get('clustering', {})
    if clustering.get('enabled', False):
        threshold = clustering.get('distance_threshold')
        n_modules = clustering.get('n_modules')
        if n_modules is None and threshold is None:
            raise ConfigurationError("clustering needs either distance_threshold or n_modules.")
        if n_modules is not None and n_modules < 1:
            raise ConfigurationError(f"clustering.n_modules must be >= 1, got {n_modules}.")
        if threshold is not None and not (0.0 <= threshold <= 1.0):
            raise ConfigurationError(f"clustering.distance_threshold must be in [0, 1], got {threshold}.")
        if clustering.get('power', 6) <= 0:
            raise ConfigurationError("clustering.power must be > 0.")
        if clustering.get('min_module_size', 1) < 1:
            raise ConfigurationError("clustering.min_module_size must be >= 1.")
