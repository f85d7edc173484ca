import abc
import logging
from pathlib import Path
from typing import Dict, Any


class BaseEngine(abc.ABC):
    """
    Abstract base class for engines that persist artifacts.

    Provides common functionality for:
    - Configuration and logger attachment.
    - Standardized output directory management with sequential numbering.
    """

    def __init__(self, config: Dict[str, Any], logger: logging.Logger):
        self.config = config
        self.logger = logger
        outputs = self.config.get('outputs', {})
        self.base_dir = Path(outputs.get('base_results_dir', 'results'))
        self.output_dir = self.base_dir / self._get_engine_directory_name()
        self.save_artifacts = outputs.get('save_artifacts', False)
        self.excel_copy = outputs.get('save_excel_copy', False)

        self._setup_directories()

    @abc.abstractmethod
    def _get_engine_directory_name(self) -> str:
        """
        Determines the directory name for the engine's output.
        e.g., '02_DataQualityChecks', '03_FeatureSelection'
        """
        raise NotImplementedError("Subclasses must implement _get_engine_directory_name.")

    def _setup_directories(self):
        """
        Creates the main output directory for the engine.
        """
        if not self.save_artifacts:
            # In-memory runs write nothing
            return

        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.logger.info(f"Output directory for {self.__class__.__name__}: {self.output_dir}")

    @abc.abstractmethod
    def execute(self, *args, **kwargs) -> Any:
        """
        Main execution method for the engine.
        This must be implemented by all subclasses.
        """
        pass
