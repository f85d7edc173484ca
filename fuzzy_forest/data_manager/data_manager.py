import logging
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
import pandas as pd

from fuzzy_forest.base import BaseEngine
from fuzzy_forest.utils.exceptions import DataValidationError
from fuzzy_forest.utils.file_io import read_dataframe, save_dataframe
from fuzzy_forest.utils.error_handling import handle_engine_errors
from fuzzy_forest.utils import constants


class DataManager(BaseEngine):
    """
    Loads and validates the input data for a fuzzy forest run.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        super().__init__(config, logger)
        data_cfg = config.get('data', {})
        self.file_path = data_cfg.get('file_path')
        self.target_column = data_cfg.get('target_column')
        self.drop_columns = data_cfg.get('drop_columns', []) or []
        self.membership_path = data_cfg.get('module_membership_path')
        self.task = config.get('task', constants.TASK_REGRESSION)

    def _get_engine_directory_name(self) -> str:
        return constants.DATA_INTEGRITY_DIR

    @handle_engine_errors("Data Management")
    def execute(self) -> Tuple[pd.DataFrame, pd.Series, Optional[pd.Series]]:
        """
        Load data, split X / y, and load the module membership if configured.

        Returns:
            (X, y, membership) where membership is None when no file is configured.
        """
        self.logger.info("Starting Data Manager execution...")

        df = self.load_data()
        X, y = self.split_features(df)
        self.validate_features(X)
        self.validate_response(y)

        membership = self.load_membership() if self.membership_path else None

        if self.save_artifacts:
            save_dataframe(self.column_stats(X), self.output_dir / "column_stats.parquet",
                           excel_copy=self.excel_copy, index=False)

        self.logger.info(f"Loaded {len(X)} rows, {X.shape[1]} features, target '{self.target_column}'.")
        return X, y, membership

    def load_data(self) -> pd.DataFrame:
        if not self.file_path:
            raise DataValidationError("data.file_path must be specified.")
        path = Path(self.file_path)
        if not path.exists():
            raise DataValidationError(f"Data file not found: {path}")
        try:
            return read_dataframe(path)
        except ValueError as e:
            raise DataValidationError(str(e)) from e

    def split_features(self, df: pd.DataFrame) -> Tuple[pd.DataFrame, pd.Series]:
        if not self.target_column:
            raise DataValidationError("data.target_column must be specified.")
        if self.target_column not in df.columns:
            raise DataValidationError(f"Target column '{self.target_column}' not found in data.")

        unknown = [c for c in self.drop_columns if c not in df.columns]
        if unknown:
            self.logger.warning(f"drop_columns not present in data (ignored): {unknown}")

        exclude = set(self.drop_columns) | {self.target_column}
        X = df[[c for c in df.columns if c not in exclude]]
        y = df[self.target_column]
        return X, y

    def validate_features(self, X: pd.DataFrame) -> None:
        if X.shape[1] == 0:
            raise DataValidationError("No feature columns left after dropping target and drop_columns.")
        non_numeric = [c for c in X.columns if not pd.api.types.is_numeric_dtype(X[c])]
        if non_numeric:
            raise DataValidationError(f"Non-numeric feature columns: {non_numeric}")
        bad = [c for c in X.columns if not np.isfinite(X[c].to_numpy(dtype=float)).all()]
        if bad:
            raise DataValidationError(f"Feature columns with NaN or infinite values: {bad}")

    def validate_response(self, y: pd.Series) -> None:
        if y.isna().any():
            raise DataValidationError(f"Target column '{self.target_column}' has {int(y.isna().sum())} missing values.")
        if self.task == constants.TASK_REGRESSION and not pd.api.types.is_numeric_dtype(y):
            raise DataValidationError(f"Regression target '{self.target_column}' must be numeric.")

    def load_membership(self) -> pd.Series:
        """Read a two-column file (feature, module) into a Series indexed by feature."""
        path = Path(self.membership_path)
        if not path.exists():
            raise DataValidationError(f"Module membership file not found: {path}")
        table = read_dataframe(path)
        for col in ('feature', 'module'):
            if col not in table.columns:
                raise DataValidationError(f"Module membership file needs a '{col}' column.")
        # Duplicate features are kept so partition validation can report them
        return pd.Series(table['module'].to_numpy(), index=table['feature'].astype(str).to_numpy(), name='module')

    @staticmethod
    def column_stats(X: pd.DataFrame) -> pd.DataFrame:
        return pd.DataFrame({
            'feature': X.columns,
            'mean': X.mean().to_numpy(),
            'std': X.std().to_numpy(),
            'min': X.min().to_numpy(),
            'max': X.max().to_numpy(),
            'n_unique': X.nunique().to_numpy(),
        })
