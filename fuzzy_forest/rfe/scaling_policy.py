"""
Scaling rules for the elimination stages.

All functions are pure functions of the current pool size `p` (p >= 1).
"""

import math

from fuzzy_forest.utils import constants


def _ceil(value: float) -> int:
    # Round first so products like 0.1 * 30 land on 3 rather than 4
    return int(math.ceil(round(value, 9)))


def mtry(p: int, mtry_factor: float, task: str) -> int:
    """
    Number of candidate features per split for a pool of size p.

    regression:     min(ceil(mtry_factor * sqrt(p)), p)
    classification: min(ceil(mtry_factor * p / 3), p)

    Always in [1, p].
    """
    if p < 1:
        raise ValueError(f"Pool size must be >= 1, got {p}")
    if task == constants.TASK_REGRESSION:
        value = _ceil(mtry_factor * math.sqrt(p))
    elif task == constants.TASK_CLASSIFICATION:
        value = _ceil(mtry_factor * p / 3.0)
    else:
        raise ValueError(f"Unknown task: {task}")
    return max(1, min(value, p))


def n_tree(p: int, min_n_tree: int, ntree_factor: float) -> int:
    """max(min_n_tree, ceil(ntree_factor * p))"""
    return max(int(min_n_tree), _ceil(ntree_factor * p))


def drop_count(p: int, drop_fraction: float) -> int:
    """
    Features removed in one elimination step: ceil(drop_fraction * p),
    clamped to [1, p - 1] so a step always shrinks the pool and never empties it.
    A pool of one feature cannot shrink, so p == 1 gives 0.
    """
    if p <= 1:
        return 0
    return max(1, min(_ceil(drop_fraction * p), p - 1))


def screening_target(module_size: int, keep_fraction: float) -> int:
    """Survivors kept from a module: ceil(keep_fraction * module_size), at least 1."""
    return max(1, _ceil(keep_fraction * module_size))
