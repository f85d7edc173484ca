import logging
from typing import Hashable, Optional, Sequence

import numpy as np
import pandas as pd

from fuzzy_forest.config_manager import validate_final_params, validate_task, resolve_seed
from fuzzy_forest.oracle import ImportanceOracle
from fuzzy_forest.rfe.results import FinalFitResult
from fuzzy_forest.utils.exceptions import OracleFailure, DataValidationError
from fuzzy_forest.utils import constants


class FinalFitStage:
    """
    Fits one ensemble on the selected features with `final_n_tree` trees
    and the predictor's default mtry.

    The OOB error it reports is optimistic because the same data chose the
    features; the result carries that caveat. An optional held-out set gives
    an unbiased test error next to it.
    """

    def __init__(self, config: dict, logger: logging.Logger, oracle: ImportanceOracle):
        self.config = config
        self.logger = logger
        self.oracle = oracle
        self.task = config.get('task')
        final_cfg = config.get('final', {})
        validate_final_params(final_cfg)
        validate_task(self.task)
        self.final_n_tree = int(final_cfg['final_n_tree'])
        self.seed = resolve_seed(config, 'final')

    def execute(self, X: pd.DataFrame, y: pd.Series, features: Sequence[Hashable],
                X_test: Optional[pd.DataFrame] = None, y_test: Optional[pd.Series] = None) -> FinalFitResult:
        features = list(features)
        self.logger.info(f"Fitting final ensemble on {len(features)} features with {self.final_n_tree} trees...")

        try:
            result = self.oracle.fit(X.loc[:, features], y, self.final_n_tree, None, self.task, self.seed)
        except Exception as e:
            raise OracleFailure(
                f"{constants.STAGE_FINAL_FIT} failed on {len(features)} features: {e}",
                stage=constants.STAGE_FINAL_FIT,
            ) from e

        test_error, test_metric = None, None
        if X_test is not None and y_test is not None:
            test_error, test_metric = self._test_error(result.model, X_test, y_test, features)

        self.logger.info(
            f"Final {result.error_metric}: {result.error_estimate:.4f} (optimistic; features chosen on the same data)"
        )
        if test_error is not None:
            self.logger.info(f"Held-out {test_metric}: {test_error:.4f}")

        return FinalFitResult(
            model=result.model,
            features=tuple(features),
            importance=result.importance.reindex(features),
            error_estimate=result.error_estimate,
            error_metric=result.error_metric,
            error_estimate_biased=True,
            caveat=constants.BIASED_ERROR_CAVEAT,
            test_error=test_error,
            test_metric=test_metric,
        )

    def _test_error(self, model, X_test: pd.DataFrame, y_test, features):
        if model is None:
            self.logger.warning("Oracle returned no fitted model; held-out error skipped.")
            return None, None

        missing = [f for f in features if f not in X_test.columns]
        if missing:
            raise DataValidationError(f"Test features are missing selected columns: {missing}")
        if len(X_test) != len(y_test):
            raise DataValidationError(
                f"Test rows ({len(X_test)}) and test response length ({len(y_test)}) differ."
            )

        predictions = model.predict(X_test.loc[:, features])
        y_true = np.asarray(y_test)
        if self.task == constants.TASK_REGRESSION:
            return float(np.mean((y_true - predictions) ** 2)), 'test_mse'
        return float(np.mean(predictions != y_true)), 'test_error_rate'
