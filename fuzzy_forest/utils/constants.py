# utils/constants.py

# --- Task Types ---
TASK_REGRESSION = "regression"
TASK_CLASSIFICATION = "classification"
VALID_TASKS = (TASK_REGRESSION, TASK_CLASSIFICATION)

# --- Stage Names (used in logs, errors and round histories) ---
STAGE_SCREENING = "screening"
STAGE_SELECTION = "selection"
STAGE_FINAL_FIT = "final_fit"

# --- Ranked Feature Table Columns ---
COL_FEATURE = "feature_name"
COL_MODULE = "module"
COL_IMPORTANCE = "importance"
RANKED_FEATURE_COLUMNS = [COL_FEATURE, COL_MODULE, COL_IMPORTANCE]

# Module label for features left out of every correlation cluster
UNASSIGNED_MODULE = "unassigned"

# --- Top-Level Result Directories ---
CONFIG_DIR = "01_RunConfiguration"              # Run config, metadata, seeds
DATA_INTEGRITY_DIR = "02_DataQualityChecks"     # Column stats of the loaded data
FEATURE_SELECTION_DIR = "03_FeatureSelection"   # Ranked table, round histories
PLOTS_DIR = "04_ModulePlots"                    # Module summary plot

# --- Seed Offsets (non-overlapping, derived from execution.seed) ---
SEED_OFFSETS = {
    'clustering': 0,
    'screening': 1000,
    'selection': 2000,
    'final': 3000,
}
# Distance between the seeds of two consecutive modules in screening
MODULE_SEED_STRIDE = 10007

# Error caveat attached to every final fit
BIASED_ERROR_CAVEAT = (
    "The final error estimate is optimistic: the selected features were chosen "
    "using the same data that scored them."
)

# --- Defaults ---
DEFAULT_SCREENING_PARAMS = {
    'drop_fraction': 0.25,
    'keep_fraction': 0.05,
    'min_n_tree': 5000,
    'mtry_factor': 1.0,
    'ntree_factor': 3.0,
}

DEFAULT_SELECTION_PARAMS = {
    'drop_fraction': 0.25,
    'number_selected': 5,
    'min_n_tree': 5000,
    'mtry_factor': 1.0,
    'ntree_factor': 3.0,
}

DEFAULT_CONFIG = {
    'task': TASK_REGRESSION,
    'screening': DEFAULT_SCREENING_PARAMS,
    'selection': DEFAULT_SELECTION_PARAMS,
    'final': {
        'final_n_tree': 5000,
    },
    'forest': {
        'model': 'RandomForest',
        'importance_type': 'impurity',
        'permutation_repeats': 5,
        'params': {},
        'n_jobs': 1,
    },
    'clustering': {
        'enabled': False,
        'method': 'correlation',
        'power': 6,
        'linkage': 'average',
        'distance_threshold': 0.9,
        'n_modules': None,
        'min_module_size': 1,
    },
    'data': {
        'file_path': None,
        'target_column': None,
        'drop_columns': [],
        'module_membership_path': None,
    },
    'execution': {
        'num_workers': 1,
        'backend': 'loky',
        'seed': 42,
        'show_progress': False,
    },
    'outputs': {
        'base_results_dir': 'results',
        'save_artifacts': False,
        'save_excel_copy': False,
        'save_plots': False,
    },
    'logging': {
        'level': 'INFO',
        'log_to_console': True,
        'log_to_file': True,
        'colorful_console': True,
        'log_dir': 'logs',
    },
}
