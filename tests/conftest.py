import threading

import numpy as np
import pandas as pd
import pytest

from fuzzy_forest.oracle import ImportanceOracle, OracleResult


class StubModel:
    """
    Predicts a constant; stands in for a fitted forest. Like scikit-learn,
    it refuses columns in a different order from the fit.
    """

    def __init__(self, feature_names=(), value=0.0):
        self.feature_names = list(feature_names)
        self.value = value

    def predict(self, X):
        if list(X.columns) != self.feature_names:
            raise ValueError(
                f"Feature names must be in the same order as in fit: {self.feature_names}, got {list(X.columns)}"
            )
        return np.full(len(X), self.value)


class StubOracle(ImportanceOracle):
    """
    Deterministic oracle: every feature has a fixed score, independent of
    the pool it is scored in. Records every call.
    """

    def __init__(self, scores=None, fail_on=None, error_estimate=0.25):
        self.scores = dict(scores or {})
        self.fail_on = set(fail_on or [])
        self.error_estimate = error_estimate
        self.calls = []
        self._lock = threading.Lock()

    def fit(self, X, y, n_tree, mtry, task, seed=None):
        features = tuple(X.columns)
        with self._lock:
            self.calls.append({'features': features, 'n_tree': n_tree, 'mtry': mtry, 'task': task, 'seed': seed})
        if self.fail_on & set(features):
            raise RuntimeError(f"degenerate pool {features}")
        importance = pd.Series([float(self.scores.get(f, 0.0)) for f in features], index=list(features))
        metric = 'oob_mse' if task == 'regression' else 'oob_error_rate'
        return OracleResult(importance=importance, error_estimate=self.error_estimate,
                            error_metric=metric, model=StubModel(features))


@pytest.fixture
def stub_oracle_cls():
    return StubOracle


@pytest.fixture
def mock_logger():
    from unittest.mock import MagicMock
    return MagicMock()


@pytest.fixture
def base_config():
    """Small, fast configuration; min_n_tree and final_n_tree kept tiny."""
    return {
        'task': 'regression',
        'screening': {
            'drop_fraction': 0.25,
            'keep_fraction': 0.5,
            'min_n_tree': 10,
            'mtry_factor': 1.0,
            'ntree_factor': 1.0,
        },
        'selection': {
            'drop_fraction': 0.25,
            'number_selected': 3,
            'min_n_tree': 10,
            'mtry_factor': 1.0,
            'ntree_factor': 1.0,
        },
        'final': {'final_n_tree': 20},
        'execution': {'num_workers': 1, 'backend': 'threading', 'seed': 7},
        'outputs': {'save_artifacts': False},
    }


@pytest.fixture
def twenty_features():
    """Two modules of ten features: f1..f10 (module A), f11..f20 (module B)."""
    rng = np.random.default_rng(0)
    columns = [f"f{i}" for i in range(1, 21)]
    X = pd.DataFrame(rng.normal(size=(30, 20)), columns=columns)
    y = pd.Series(rng.normal(size=30))
    membership = pd.Series(['A'] * 10 + ['B'] * 10, index=columns)
    return X, y, membership
