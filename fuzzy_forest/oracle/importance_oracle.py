import abc
import logging
import warnings
from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np
import pandas as pd
from sklearn.inspection import permutation_importance

from fuzzy_forest.oracle.model_factory import ModelFactory
from fuzzy_forest.utils.exceptions import OracleFailure
from fuzzy_forest.utils import constants


@dataclass(frozen=True)
class OracleResult:
    """Outcome of one ensemble fit on a feature subset."""
    importance: pd.Series
    error_estimate: float
    error_metric: str
    model: Any = field(default=None, repr=False)


class ImportanceOracle(abc.ABC):
    """
    Ranking oracle consumed by the elimination stages.

    Implementations must be deterministic for a fixed seed. `mtry=None`
    asks for the predictor's own default number of split candidates.
    """

    @abc.abstractmethod
    def fit(self, X: pd.DataFrame, y: pd.Series, n_tree: int, mtry: Optional[int],
            task: str, seed: Optional[int] = None) -> OracleResult:
        raise NotImplementedError("Subclasses must implement fit.")


class ForestImportanceOracle(ImportanceOracle):
    """
    Random forest importance oracle backed by scikit-learn.

    - Fits `n_tree` bootstrapped trees with `max_features=mtry`.
    - Importance is mean decrease in impurity, or permutation importance
      when `forest.importance_type == 'permutation'`.
    - Error is the out-of-bag MSE (regression) or OOB misclassification
      rate (classification), over rows that received at least one OOB vote.
    """

    def __init__(self, config: dict, logger: logging.Logger = None):
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        forest_cfg = config.get('forest', {})
        self.model_name = forest_cfg.get('model', 'RandomForest')
        self.importance_type = forest_cfg.get('importance_type', 'impurity')
        self.permutation_repeats = forest_cfg.get('permutation_repeats', 5)
        self.extra_params = forest_cfg.get('params', {}) or {}
        self.n_jobs = forest_cfg.get('n_jobs', 1)

    def fit(self, X: pd.DataFrame, y: pd.Series, n_tree: int, mtry: Optional[int],
            task: str, seed: Optional[int] = None) -> OracleResult:
        self._check_inputs(X, y, task)

        params = dict(self.extra_params)
        params.update({
            'n_estimators': int(n_tree),
            'bootstrap': True,
            'oob_score': True,
            'random_state': seed,
            'n_jobs': self.n_jobs,
        })
        if mtry is not None:
            params['max_features'] = int(mtry)

        model = ModelFactory.create(self.model_name, task, params)

        try:
            with warnings.catch_warnings():
                # Few trees leave some rows without OOB votes; those rows are masked below
                warnings.simplefilter("ignore", category=UserWarning)
                warnings.simplefilter("ignore", category=RuntimeWarning)
                model.fit(X, y)
                importance = self._importance(model, X, y, seed)
                error_estimate, error_metric = self._oob_error(model, y, task)
        except Exception as e:
            raise OracleFailure(f"Forest fit failed on {X.shape[1]} features: {e}") from e

        self.logger.debug(
            f"Oracle fit: {X.shape[1]} features, n_tree={n_tree}, mtry={mtry}, "
            f"{error_metric}={error_estimate:.4f}"
        )
        return OracleResult(
            importance=pd.Series(importance, index=X.columns, dtype=float),
            error_estimate=error_estimate,
            error_metric=error_metric,
            model=model,
        )

    def _importance(self, model, X: pd.DataFrame, y: pd.Series, seed: Optional[int]) -> np.ndarray:
        if self.importance_type == 'permutation':
            result = permutation_importance(
                model, X, y,
                n_repeats=self.permutation_repeats,
                random_state=seed,
                n_jobs=self.n_jobs,
            )
            return result.importances_mean
        return model.feature_importances_

    @staticmethod
    def _oob_error(model, y: pd.Series, task: str):
        y_true = np.asarray(y)
        if task == constants.TASK_REGRESSION:
            oob_pred = np.asarray(model.oob_prediction_, dtype=float).reshape(len(y_true), -1)[:, 0]
            mask = np.isfinite(oob_pred)
            if not mask.any():
                return float('nan'), 'oob_mse'
            return float(np.mean((y_true[mask] - oob_pred[mask]) ** 2)), 'oob_mse'

        decision = np.asarray(model.oob_decision_function_, dtype=float)
        mask = np.isfinite(decision).all(axis=1) & (decision.sum(axis=1) > 0)
        if not mask.any():
            return float('nan'), 'oob_error_rate'
        predicted = model.classes_[np.argmax(decision[mask], axis=1)]
        return float(np.mean(predicted != y_true[mask])), 'oob_error_rate'

    @staticmethod
    def _check_inputs(X: pd.DataFrame, y: pd.Series, task: str) -> None:
        """Reject degenerate pools before handing them to scikit-learn."""
        if X.shape[1] == 0:
            raise OracleFailure("Cannot score an empty feature set.")
        if len(X) < 2:
            raise OracleFailure(f"Need at least 2 rows to fit a forest, got {len(X)}.")
        if len(X) != len(y):
            raise OracleFailure(f"Feature rows ({len(X)}) and response length ({len(y)}) differ.")
        try:
            values = X.to_numpy(dtype=float)
        except (TypeError, ValueError) as e:
            raise OracleFailure(f"Features must be numeric: {e}") from e
        if not np.isfinite(values).all():
            raise OracleFailure("Features contain NaN or infinite values.")

        y_series = pd.Series(y)
        if y_series.isna().any():
            raise OracleFailure("Response contains missing values.")
        if task == constants.TASK_REGRESSION:
            try:
                y_values = y_series.to_numpy(dtype=float)
            except (TypeError, ValueError) as e:
                raise OracleFailure(f"Regression response must be numeric: {e}") from e
            if not np.isfinite(y_values).all():
                raise OracleFailure("Regression response contains infinite values.")
        elif y_series.nunique() < 2:
            raise OracleFailure("Classification response has a single class.")
