import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict

import numpy as np
import pandas as pd

from fuzzy_forest.base import BaseEngine
from fuzzy_forest.orchestrator import FuzzyForestResult
from fuzzy_forest.visualization import ModulePlotter
from fuzzy_forest.utils.error_handling import handle_engine_errors
from fuzzy_forest.utils.file_io import save_dataframe
from fuzzy_forest.utils import constants


class NumpyEncoder(json.JSONEncoder):
    """
    Helper to serialize NumPy types in summary JSONs.
    Prevents 'Object of type int64 is not JSON serializable' errors.
    """
    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        return json.JSONEncoder.default(self, obj)


class ReportingEngine(BaseEngine):
    """
    Writes the artifacts of a finished run.

    Output (under <base_results_dir>/03_FeatureSelection):
    - ranked_features, module_membership, module_summary
    - screening_history, selection_history
    - run_summary.json
    and, with outputs.save_plots, 04_ModulePlots/module_summary.png.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        super().__init__(config, logger)
        self.save_plots = config.get('outputs', {}).get('save_plots', False)
        self.plotter = ModulePlotter(config, logger)

    def _get_engine_directory_name(self) -> str:
        return constants.FEATURE_SELECTION_DIR

    @handle_engine_errors("Reporting")
    def execute(self, result: FuzzyForestResult, run_id: str) -> Dict[str, Path]:
        self.logger.info("Starting Report Generation Phase...")
        self.output_dir.mkdir(parents=True, exist_ok=True)

        tables = {
            'ranked_features': self._stringify(result.ranked_features, [constants.COL_FEATURE, constants.COL_MODULE]),
            'module_membership': pd.DataFrame({
                'feature': result.module_membership.index.astype(str),
                'module': result.module_membership.astype(str).to_numpy(),
            }),
            'module_summary': self._stringify(result.module_summary(), ['module']),
            'screening_history': self._stringify(result.screening.history_frame(), ['module']),
            'selection_history': result.selection.history_frame(),
        }

        written = {}
        for name, df in tables.items():
            written[name] = save_dataframe(df, self.output_dir / f"{name}.parquet",
                                           excel_copy=self.excel_copy, index=False)

        summary_path = self.output_dir / "run_summary.json"
        with open(summary_path, 'w') as f:
            json.dump(self.build_summary(result, run_id), f, indent=2, cls=NumpyEncoder)
        written['run_summary'] = summary_path

        if self.save_plots:
            written['module_plot'] = self.plotter.plot_module_summary(
                result.module_summary(),
                self.base_dir / constants.PLOTS_DIR / "module_summary.png",
            )

        self.logger.info(f"Reports written to {self.output_dir}")
        return written

    @staticmethod
    def build_summary(result: FuzzyForestResult, run_id: str) -> dict:
        return {
            'run_id': run_id,
            'timestamp': datetime.now().isoformat(),
            'selected_features': [str(f) for f in result.selected_features],
            'final_error_estimate': result.final_error_estimate,
            'error_metric': result.error_metric,
            'error_estimate_biased': result.error_estimate_biased,
            'error_caveat': result.metadata.get('error_caveat'),
            'test_error': result.metadata.get('test_error'),
            'test_metric': result.metadata.get('test_metric'),
            'warnings': result.warnings,
            'n_features': result.metadata.get('n_features'),
            'n_modules': result.metadata.get('n_modules'),
            'n_survivors': result.metadata.get('n_survivors'),
            'survivors': {str(m): [str(f) for f in fs] for m, fs in result.survivors.items()},
        }

    @staticmethod
    def _stringify(df: pd.DataFrame, columns) -> pd.DataFrame:
        # Parquet needs one type per column; feature and module ids may be mixed
        df = df.copy()
        for col in columns:
            df[col] = df[col].astype(str)
        return df
