import logging
from typing import Any, Dict, Hashable, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from fuzzy_forest.oracle import ImportanceOracle
from fuzzy_forest.rfe import scaling_policy
from fuzzy_forest.rfe.results import EliminationRound, StageResult
from fuzzy_forest.utils.exceptions import OracleFailure


class RecursiveEliminator:
    """
    Recursive feature elimination over one pool.

    Each round scores the current pool with the oracle, using mtry and
    n_tree scaled to the pool size, and drops the lowest-scoring features.
    Rounds form a strictly sequential fold: every round yields a new
    immutable pool, and a dropped feature is never re-admitted.

    Ties: features are ranked by importance (descending) with a stable sort
    over pool order, so among equal scores the later feature is dropped first.
    """

    def __init__(self, params: Dict[str, Any], task: str, oracle: ImportanceOracle,
                 logger: logging.Logger, stage: str, log_rounds: bool = True):
        self.drop_fraction = params['drop_fraction']
        self.mtry_factor = params['mtry_factor']
        self.min_n_tree = params['min_n_tree']
        self.ntree_factor = params['ntree_factor']
        self.task = task
        self.oracle = oracle
        self.logger = logger
        self.stage = stage
        # Off when running in a worker process; the caller logs the rounds instead
        self.log_rounds = log_rounds

    def eliminate(self, X: pd.DataFrame, y: pd.Series, features: Sequence[Hashable],
                  target: int, label: Hashable, base_seed: Optional[int] = None,
                  module: Hashable = None) -> StageResult:
        """
        Shrink `features` until exactly `target` remain (or return them
        unchanged when there are already `target` or fewer).

        Args:
            X: Data matrix holding at least the columns in `features`. Read only.
            y: Response vector aligned with X.
            features: Initial pool, in the order used for tie-breaking.
            target: Pool size to stop at (>= 1).
            label: Identifier of this run in logs and results.
            base_seed: Seed of round 0; round k uses base_seed + k.
            module: Module id attached to an OracleFailure, if any.
        """
        initial = tuple(features)
        pool = initial
        rounds = []

        while len(pool) > target:
            round_index = len(rounds)
            p = len(pool)
            mtry = scaling_policy.mtry(p, self.mtry_factor, self.task)
            n_tree = scaling_policy.n_tree(p, self.min_n_tree, self.ntree_factor)
            n_drop = min(scaling_policy.drop_count(p, self.drop_fraction), p - target)
            seed = None if base_seed is None else base_seed + round_index

            result = self._score(X, y, pool, n_tree, mtry, seed, label, round_index, module)
            survivors, dropped = self._drop_lowest(pool, result.importance, n_drop, label, module)

            round_ = EliminationRound(
                round_index=round_index,
                n_features=p,
                mtry=mtry,
                n_tree=n_tree,
                seed=seed,
                error_estimate=result.error_estimate,
                error_metric=result.error_metric,
                importance=result.importance.reindex(list(pool)),
                dropped=dropped,
            )
            if self.log_rounds:
                log_round(self.logger, self.stage, label, round_)
            rounds.append(round_)
            pool = survivors

        return StageResult(
            label=label,
            initial_features=initial,
            target=target,
            survivors=pool,
            rounds=tuple(rounds),
        )

    def _score(self, X, y, pool, n_tree, mtry, seed, label, round_index, module):
        try:
            return self.oracle.fit(X.loc[:, list(pool)], y, n_tree, mtry, self.task, seed)
        except Exception as e:
            raise OracleFailure(
                f"{self.stage} failed for '{label}' at round {round_index} ({len(pool)} features): {e}",
                stage=self.stage,
                module=module,
            ) from e

    def _drop_lowest(self, pool: Tuple[Hashable, ...], importance: pd.Series, n_drop: int,
                     label: Hashable, module: Hashable) -> Tuple[Tuple[Hashable, ...], Tuple[Hashable, ...]]:
        missing = [f for f in pool if f not in importance.index]
        if missing:
            raise OracleFailure(
                f"{self.stage} oracle returned no importance for {missing} in '{label}'",
                stage=self.stage,
                module=module,
            )

        scores = importance.reindex(list(pool)).to_numpy(dtype=float)
        # NaN scores rank below every real score
        scores = np.where(np.isnan(scores), -np.inf, scores)
        ranked = sorted(range(len(pool)), key=lambda i: -scores[i])
        keep = set(ranked[:len(pool) - n_drop])

        survivors = tuple(f for i, f in enumerate(pool) if i in keep)
        dropped = tuple(f for i, f in enumerate(pool) if i not in keep)
        return survivors, dropped


def log_round(logger: logging.Logger, stage: str, label: Hashable, round_: EliminationRound) -> None:
    """One INFO line per elimination round, dropped features at DEBUG."""
    logger.info(
        f"[{stage}:{label}] Round {round_.round_index} | pool={round_.n_features} | mtry={round_.mtry} | "
        f"n_tree={round_.n_tree} | {round_.error_metric}={round_.error_estimate:.4f} | "
        f"dropping {len(round_.dropped)}"
    )
    logger.debug(f"[{stage}:{label}] Dropped: {list(round_.dropped)}")
