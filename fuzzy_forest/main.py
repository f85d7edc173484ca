#!/usr/bin/env python
"""
Fuzzy Forest - Main Entry Point
Runs module screening, cross-module selection and the final fit from a JSON config.
"""
import sys
import logging
import argparse
import traceback
from pathlib import Path

from fuzzy_forest.config_manager import ConfigurationManager
from fuzzy_forest.logging_config import LoggingConfigurator
from fuzzy_forest.data_manager import DataManager
from fuzzy_forest.orchestrator import FuzzyForest
from fuzzy_forest.reporting_engine import ReportingEngine
from fuzzy_forest.utils.exceptions import FuzzyForestException


def parse_arguments(argv=None):
    """
    Parse command-line arguments.

    Returns:
        argparse.Namespace: Parsed command-line arguments.
    """
    parser = argparse.ArgumentParser(
        description="Fuzzy Forest - module screening and recursive feature elimination",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        "--config",
        type=str,
        default="config/config.json",
        help="Path to the configuration JSON file"
    )

    parser.add_argument(
        "--run-id",
        type=str,
        default=None,
        help="Optional run identifier (defaults to timestamp if not provided)"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate configuration without running the pipeline"
    )

    return parser.parse_args(argv)


def setup_run_directory(config: dict, run_id: str, logger: logging.Logger) -> Path:
    """Create <base_results_dir>/<run_id> and point all engines at it."""
    run_dir = (Path(config['outputs']['base_results_dir']) / run_id).absolute()
    run_dir.mkdir(parents=True, exist_ok=True)
    config['outputs']['base_results_dir'] = str(run_dir)
    config['outputs']['save_artifacts'] = True
    logger.info(f"Created run directory: {run_dir}")
    return run_dir


def main(argv=None) -> int:
    """
    Main pipeline orchestration function.

    Returns:
        int: Exit code (0 for success, 1 for errors)
    """
    logger = None

    try:
        args = parse_arguments(argv)

        # 1. Load and validate configuration
        config_manager = ConfigurationManager(config_path=args.config)
        config = config_manager.load_and_validate()

        if args.verbose:
            config['logging']['level'] = 'DEBUG'

        # 2. Setup logging
        logging_configurator = LoggingConfigurator(config)
        logging_configurator.setup()
        logger = logging_configurator.get_logger('fuzzy_forest')
        logger.info(f"Configuration loaded from: {args.config}")

        if args.dry_run:
            logger.info("Dry run mode: validation complete. Exiting without running pipeline.")
            print("\n[SUCCESS] Configuration validated successfully.")
            return 0

        # 3. Run directory and config artifacts
        run_id = args.run_id or config_manager.generate_run_id()
        config_manager.run_id = run_id
        run_dir = setup_run_directory(config, run_id, logger)
        config_manager.save_artifacts(str(run_dir))

        # 4. Data
        X, y, membership = DataManager(config, logger).execute()

        # 5. Fuzzy forest
        result = FuzzyForest(config, logger).run(X, y, membership)

        # 6. Reports
        ReportingEngine(config, logger).execute(result, run_id)

        print("\nSelected features (descending importance):")
        print(result.ranked_features.to_string(index=False))
        print(f"\n{result.error_metric}: {result.final_error_estimate:.4f} (optimistic)")
        for message in result.warnings:
            print(f"[WARNING] {message}")
        print(f"\n[SUCCESS] Results saved to: {run_dir}")
        return 0

    except FuzzyForestException as e:
        msg = f"Pipeline Error: {str(e)}"
        print(f"\n[ERROR] {msg}")
        if logger:
            logger.critical(msg, exc_info=True)
        else:
            traceback.print_exc()
        return 1

    except KeyboardInterrupt:
        print("\n[INTERRUPTED] Pipeline interrupted by user.")
        if logger:
            logger.warning("Pipeline interrupted by user (Ctrl+C)")
        return 130

    except Exception as e:
        msg = f"Unexpected Error: {str(e)}"
        print(f"\n[CRITICAL] {msg}")
        if logger:
            logger.critical(msg, exc_info=True)
        else:
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
