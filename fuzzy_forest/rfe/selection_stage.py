import logging
import warnings
from typing import Hashable, Mapping

import pandas as pd

from fuzzy_forest.config_manager import validate_selection_params, validate_task, resolve_seed
from fuzzy_forest.oracle import ImportanceOracle
from fuzzy_forest.rfe.eliminator import RecursiveEliminator
from fuzzy_forest.rfe.results import SelectionResult, StageResult
from fuzzy_forest.utils.exceptions import EmptyResultWarning
from fuzzy_forest.utils import constants


class SelectionStage:
    """
    Cross-module recursive feature elimination.

    Pools the screening survivors of every module and eliminates over the
    pooled set until `number_selected` remain. Module boundaries do not
    constrain elimination here; each feature's module is only carried along
    for reporting.
    """

    def __init__(self, config: dict, logger: logging.Logger, oracle: ImportanceOracle):
        self.config = config
        self.logger = logger
        self.params = config.get('selection', {})
        self.task = config.get('task')
        validate_selection_params(self.params)
        validate_task(self.task)

        self.number_selected = int(self.params['number_selected'])
        self.seed = resolve_seed(config, 'selection')
        self.eliminator = RecursiveEliminator(self.params, self.task, oracle, logger, constants.STAGE_SELECTION)

    def execute(self, X: pd.DataFrame, y: pd.Series, feature_modules: Mapping[Hashable, Hashable]) -> SelectionResult:
        """
        Args:
            X: Data matrix (read only).
            y: Response vector.
            feature_modules: screened survivor -> originating module.

        Returns:
            SelectionResult holding exactly min(number_selected, pool size) features.
        """
        feature_modules = dict(feature_modules)
        # Pool in data column order so tie-breaking matches the screening stage
        pool = [c for c in X.columns if c in feature_modules]

        if self.number_selected >= len(pool):
            message = (
                f"Selection stage is a no-op: number_selected ({self.number_selected}) >= "
                f"pooled survivors ({len(pool)}). All survivors are selected."
            )
            self.logger.warning(message)
            warnings.warn(message, EmptyResultWarning, stacklevel=2)
            stage = StageResult(
                label=constants.STAGE_SELECTION,
                initial_features=tuple(pool),
                target=self.number_selected,
                survivors=tuple(pool),
            )
            return SelectionResult(stage=stage, feature_modules=feature_modules, is_noop=True, warning=message)

        self.logger.info(f"Selecting {self.number_selected} of {len(pool)} pooled survivors...")
        stage = self.eliminator.eliminate(
            X, y, pool, self.number_selected,
            label=constants.STAGE_SELECTION, base_seed=self.seed,
        )
        selected = {f: feature_modules[f] for f in stage.survivors}
        self.logger.info(f"Selection complete in {stage.n_rounds} rounds: {selected}")
        return SelectionResult(stage=stage, feature_modules=feature_modules)
