import logging
from typing import Any, Dict, Mapping, Optional, Sequence, Union

import pandas as pd

from fuzzy_forest.config_manager import ConfigurationManager
from fuzzy_forest.module_partition import (
    ModulePartitioner,
    CorrelationClusterer,
    validate_partition,
    group_modules,
)
from fuzzy_forest.oracle import ImportanceOracle, ForestImportanceOracle
from fuzzy_forest.orchestrator.result import FuzzyForestResult
from fuzzy_forest.rfe import ScreeningStage, SelectionStage, FinalFitStage
from fuzzy_forest.rfe.results import FinalFitResult, SelectionResult
from fuzzy_forest.utils.error_handling import handle_engine_errors
from fuzzy_forest.utils.exceptions import DataValidationError, PartitionError
from fuzzy_forest.utils import constants


class FuzzyForest:
    """
    Orchestrates the fuzzy forest pipeline.

    Phases:
    1. Module partition: user supplied, or discovered by the partitioner.
    2. Screening: module-local RFE (parallel over modules, joined before 3).
    3. Selection: cross-module RFE over the pooled survivors.
    4. Final fit: one ensemble on the selected features.

    The configuration is validated on construction, so invalid tuning
    parameters fail before any forest is fitted.
    """

    def __init__(self, config: Dict[str, Any], logger: logging.Logger = None,
                 oracle: ImportanceOracle = None, partitioner: ModulePartitioner = None):
        self.config = ConfigurationManager.from_dict(config).load_and_validate()
        self.logger = logger or logging.getLogger(__name__)
        self.task = self.config['task']

        self.oracle = oracle or ForestImportanceOracle(self.config, self.logger)
        if partitioner is None and self.config['clustering'].get('enabled', False):
            partitioner = CorrelationClusterer(self.config, self.logger)
        self.partitioner = partitioner

        self.screening_stage = ScreeningStage(self.config, self.logger, self.oracle)
        self.selection_stage = SelectionStage(self.config, self.logger, self.oracle)
        self.final_fit_stage = FinalFitStage(self.config, self.logger, self.oracle)

    @handle_engine_errors("Fuzzy forest run")
    def run(self, X: pd.DataFrame, y: Union[pd.Series, Sequence],
            module_membership: Union[pd.Series, Mapping, Sequence, None] = None,
            X_test: Optional[pd.DataFrame] = None,
            y_test: Union[pd.Series, Sequence, None] = None) -> FuzzyForestResult:
        """
        Execute the full pipeline.

        Args:
            X: Feature matrix, one column per feature (unique column names).
            y: Response, one value per row of X.
            module_membership: feature -> module (Series, mapping, or labels
                aligned with X.columns). When omitted, the configured
                partitioner discovers modules.
            X_test, y_test: Optional held-out data for an unbiased test error.

        Returns:
            FuzzyForestResult
        """
        self.logger.info("Initializing Fuzzy Forest Pipeline...")
        y = self._validate_inputs(X, y)
        if y_test is not None:
            y_test = pd.Series(y_test).reset_index(drop=True)

        # Phase 1: Module Partition
        membership = self._resolve_membership(X, module_membership)
        modules = group_modules(membership)
        self.logger.info(f"Starting with {X.shape[1]} features in {len(modules)} modules.")

        # Phase 2: Screening (barrier: every module must finish)
        self.logger.info("  >> Phase 2: Module Screening")
        screening = self.screening_stage.execute(X, y, modules)

        # Phase 3: Selection
        self.logger.info("  >> Phase 3: Cross-Module Selection")
        selection = self.selection_stage.execute(X, y, screening.survivor_modules())

        # Phase 4: Final Fit
        self.logger.info("  >> Phase 4: Final Ensemble Fit")
        final = self.final_fit_stage.execute(X, y, selection.selected, X_test, y_test)

        ranked = self._rank_features(final, selection)
        warnings_list = [selection.warning] if selection.warning else []

        result = FuzzyForestResult(
            ranked_features=ranked,
            final_model=final.model,
            final_error_estimate=final.error_estimate,
            error_metric=final.error_metric,
            module_membership=membership,
            screening=screening,
            selection=selection,
            error_estimate_biased=final.error_estimate_biased,
            metadata={
                'task': self.task,
                'error_caveat': final.caveat,
                'warnings': warnings_list,
                'selection_noop': selection.is_noop,
                'test_error': final.test_error,
                'test_metric': final.test_metric,
                'n_features': int(X.shape[1]),
                'n_modules': len(modules),
                'n_survivors': screening.n_survivors,
                'final_n_tree': self.final_fit_stage.final_n_tree,
                'seeds': dict(self.config.get('_internal_seeds', {})),
            },
        )
        self.logger.info(f"Fuzzy Forest Pipeline Completed. Selected: {result.selected_features}")
        return result

    def _validate_inputs(self, X: pd.DataFrame, y) -> pd.Series:
        if not isinstance(X, pd.DataFrame):
            raise DataValidationError(f"X must be a pandas DataFrame, got {type(X).__name__}.")
        if X.shape[1] == 0:
            raise DataValidationError("X has no feature columns.")
        if X.columns.has_duplicates:
            duplicated = X.columns[X.columns.duplicated()].unique().tolist()
            raise DataValidationError(f"Duplicate feature names: {duplicated}")
        if len(X) != len(y):
            raise DataValidationError(f"X has {len(X)} rows but y has {len(y)} values.")
        # Align y positionally with X so row labels never reorder the response
        return pd.Series(list(y) if not isinstance(y, pd.Series) else y.to_numpy(), index=X.index, name='response')

    def _resolve_membership(self, X: pd.DataFrame, module_membership) -> pd.Series:
        if module_membership is not None:
            return validate_partition(X.columns, module_membership)
        if self.partitioner is None:
            raise PartitionError(
                "No module membership supplied and no module partitioner configured "
                "(set clustering.enabled or pass a partitioner)."
            )
        self.logger.info("  >> Phase 1: Discovering modules with the module partitioner")
        return validate_partition(X.columns, self.partitioner.cluster(X))

    def _rank_features(self, final: FinalFitResult, selection: SelectionResult) -> pd.DataFrame:
        """Selected features by descending final importance; ties keep selection order."""
        ranked = pd.DataFrame({
            constants.COL_FEATURE: list(final.features),
            constants.COL_MODULE: [selection.feature_modules[f] for f in final.features],
            constants.COL_IMPORTANCE: final.importance.to_numpy(dtype=float),
        })
        ranked = ranked.sort_values(constants.COL_IMPORTANCE, ascending=False, kind='mergesort')
        return ranked.reset_index(drop=True)
