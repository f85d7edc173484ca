import logging
from typing import Dict, Hashable, List, Mapping, Optional

import pandas as pd
from joblib import Parallel, delayed
from tqdm import tqdm

from fuzzy_forest.config_manager import validate_screening_params, validate_task, validate_execution, resolve_seed
from fuzzy_forest.oracle import ImportanceOracle
from fuzzy_forest.rfe import scaling_policy
from fuzzy_forest.rfe.eliminator import RecursiveEliminator, log_round
from fuzzy_forest.rfe.results import ScreeningResult, StageResult
from fuzzy_forest.utils import constants


def _screen_module(eliminator: RecursiveEliminator, X_module: pd.DataFrame, y: pd.Series,
                   module: Hashable, features: List[Hashable], target: int,
                   seed: Optional[int]) -> StageResult:
    """Unit of parallel work: one module's full elimination run."""
    return eliminator.eliminate(
        X_module, y, features, target,
        label=module, base_seed=seed, module=module,
    )


class ScreeningStage:
    """
    Module-local recursive feature elimination.

    Every module is screened independently down to
    ceil(keep_fraction * module_size) features. Modules are dispatched to a
    joblib worker pool; each worker owns its module's pool, and the stage
    joins on all of them before returning. The first OracleFailure aborts
    the remaining modules and fails the stage.
    """

    def __init__(self, config: dict, logger: logging.Logger, oracle: ImportanceOracle):
        self.config = config
        self.logger = logger
        self.oracle = oracle

        self.params = config.get('screening', {})
        self.task = config.get('task')
        execution = config.get('execution', {})
        validate_screening_params(self.params)
        validate_task(self.task)
        validate_execution(execution)

        self.keep_fraction = self.params['keep_fraction']
        # Resolved against the CPU count by ConfigurationManager when available
        self.num_workers = execution.get('_effective_workers', execution.get('num_workers', 1))
        self.backend = execution.get('backend', 'loky')
        self.show_progress = execution.get('show_progress', False)
        self.base_seed = resolve_seed(config, 'screening')
        self.eliminator = RecursiveEliminator(
            self.params, self.task, oracle, logger, constants.STAGE_SCREENING, log_rounds=False,
        )

    def module_seed(self, module_index: int) -> Optional[int]:
        if self.base_seed is None:
            return None
        return self.base_seed + module_index * constants.MODULE_SEED_STRIDE

    def execute(self, X: pd.DataFrame, y: pd.Series, modules: Mapping[Hashable, List[Hashable]]) -> ScreeningResult:
        """
        Screen every module.

        Args:
            X: Data matrix (read only, shared across workers).
            y: Response vector.
            modules: module id -> features of that module, in column order.

        Returns:
            ScreeningResult with one StageResult per module, in module order.
        """
        # Copy on entry; the caller's mapping is never touched
        modules = {module: list(features) for module, features in modules.items()}
        targets = {
            module: scaling_policy.screening_target(len(features), self.keep_fraction)
            for module, features in modules.items()
        }

        n_features = sum(len(f) for f in modules.values())
        self.logger.info(
            f"Screening {n_features} features in {len(modules)} modules "
            f"(keep_fraction={self.keep_fraction}, num_workers={self.num_workers})"
        )

        tasks = (
            delayed(_screen_module)(
                self.eliminator,
                X.loc[:, features],
                y,
                module,
                features,
                targets[module],
                self.module_seed(index),
            )
            for index, (module, features) in enumerate(modules.items())
        )
        # Results come back in module order as each module finishes
        parallel = Parallel(n_jobs=self.num_workers, backend=self.backend, return_as='generator')
        results = list(tqdm(parallel(tasks), total=len(modules), desc="Screening modules",
                            unit="module", disable=not self.show_progress))

        screening = ScreeningResult(modules={res.label: res for res in results})
        for module, res in screening.modules.items():
            for round_ in res.rounds:
                log_round(self.logger, constants.STAGE_SCREENING, module, round_)
            self.logger.info(
                f"  Module '{module}': {len(res.initial_features)} -> {len(res.survivors)} features "
                f"in {res.n_rounds} rounds"
            )
        self.logger.info(f"Screening complete. {screening.n_survivors} survivors across {len(modules)} modules.")
        return screening
