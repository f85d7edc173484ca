import copy
import json
import os
import hashlib
import sys
import logging
import jsonschema
import psutil
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional

from fuzzy_forest.utils.exceptions import ConfigurationError
from fuzzy_forest.utils import constants
from fuzzy_forest.config_manager.validation import validate_run_config

DEFAULT_SCHEMA_PATH = Path(__file__).with_name("schema.json")


def merge_with_defaults(config: Dict[str, Any], defaults: Dict[str, Any] = None) -> Dict[str, Any]:
    """
    Deep-merge a user configuration over the package defaults.
    Nested dicts are merged key by key; any other value replaces the default.
    """
    merged = copy.deepcopy(constants.DEFAULT_CONFIG if defaults is None else defaults)
    for key, value in config.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_with_defaults(value, merged[key])
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class ConfigurationManager:
    """
    Manages system configuration loading, validation, and access.
    Acts as the single source of truth for the fuzzy forest run.
    """

    def __init__(self, config_path: str = "config/config.json",
                 schema_path: str = None):
        """
        Initialize the ConfigurationManager.

        Args:
            config_path (str): Path to the user configuration JSON.
            schema_path (str): Path to the JSON schema definition. Defaults to
                the schema bundled with the package.
        """
        self.config_path = config_path
        self.schema_path = str(schema_path or DEFAULT_SCHEMA_PATH)
        self.config: Dict[str, Any] = {}
        self.schema: Dict[str, Any] = {}
        self.run_id: Optional[str] = None
        self.logger = logging.getLogger("config_manager")
        self._user_config: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, config: Dict[str, Any], schema_path: str = None) -> "ConfigurationManager":
        """Build a manager around an in-memory configuration dict."""
        manager = cls(config_path=None, schema_path=schema_path)
        manager._user_config = copy.deepcopy(config)
        return manager

    def load_and_validate(self) -> Dict[str, Any]:
        """
        Main entry point. Loads config, applies defaults, validates
        schema/logic/resources, and propagates seeds.

        Returns:
            Dict[str, Any]: The fully validated and hydrated configuration.

        Raises:
            ConfigurationError: If any validation step fails.
        """
        # 1. Load Files
        user_config = self._user_config if self._user_config is not None else self._load_json(self.config_path)
        self.schema = self._load_json(self.schema_path)

        # 2. Structural Validation (Schema) on what the user wrote
        self._validate_schema(user_config)

        # 3. Defaults beneath user values
        self.config = merge_with_defaults(user_config)

        # 4. Logical Validation (Bounds)
        validate_run_config(self.config)

        # 5. Resource Validation
        self._validate_resources()

        # 6. Internal Seed Propagation (Reproducibility)
        self._propagate_seeds()

        return self.config

    def generate_run_id(self) -> str:
        """
        Generate or retrieve a unique run identifier based on timestamp.
        """
        if not self.run_id:
            self.run_id = datetime.now().strftime("%Y%m%d_%H%M%S")
        return self.run_id

    def save_artifacts(self, output_dir: str) -> None:
        """
        Save configuration artifacts to the run directory for full reproducibility.

        Saves:
        1. config_used.json: The exact config object in memory.
        2. config_hash.txt: SHA256 hash for versioning.
        3. run_metadata.json: Environment details (Python version, Platform, etc.).
        """
        config_dir = Path(output_dir) / constants.CONFIG_DIR
        config_dir.mkdir(parents=True, exist_ok=True)

        with open(config_dir / "config_used.json", 'w') as f:
            json.dump(self.config, f, indent=2)

        config_hash = self.config_hash()
        with open(config_dir / "config_hash.txt", 'w') as f:
            f.write(config_hash)

        metadata = {
            'run_id': self.run_id,
            'start_time': datetime.now().isoformat(),
            'python_version': sys.version,
            'platform': sys.platform,
            'config_hash': config_hash,
            'working_directory': os.getcwd()
        }
        with open(config_dir / "run_metadata.json", 'w') as f:
            json.dump(metadata, f, indent=2)

    def config_hash(self) -> str:
        config_str = json.dumps(self.config, sort_keys=True, default=str)
        return hashlib.sha256(config_str.encode()).hexdigest()

    def _load_json(self, path: str) -> Dict[str, Any]:
        """Safely load a JSON file."""
        if path is None or not os.path.exists(path):
            raise ConfigurationError(f"File not found: {path}")
        try:
            with open(path, 'r') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {path}: {str(e)}")

    def _validate_schema(self, config: Dict[str, Any]) -> None:
        """Validate config structure against JSON schema."""
        try:
            jsonschema.validate(instance=config, schema=self.schema)
        except jsonschema.ValidationError as e:
            raise ConfigurationError(f"Schema validation failed: {e.message}")

    def _validate_resources(self) -> None:
        """
        Resolve num_workers against the machine. More workers than cores is
        allowed but logged, since every worker fits whole forests.
        """
        execution = self.config['execution']
        cpu_count = psutil.cpu_count(logical=True) or 1
        num_workers = execution.get('num_workers', 1)
        effective = cpu_count if num_workers == -1 else num_workers

        if effective > cpu_count:
            self.logger.warning(
                f"Configured num_workers ({num_workers}) exceeds available CPU cores ({cpu_count}). "
                "Module screening will be oversubscribed."
            )
        execution['_effective_workers'] = effective

    def _propagate_seeds(self) -> None:
        """
        Propagate master seed to internal components.
        Uses large, non-overlapping offsets to avoid correlation between stages.
        """
        master_seed = self.config['execution'].get('seed')
        if master_seed is None:
            self.config['_internal_seeds'] = {name: None for name in constants.SEED_OFFSETS}
        else:
            self.config['_internal_seeds'] = {
                name: master_seed + offset for name, offset in constants.SEED_OFFSETS.items()
            }
        self.logger.debug(f"Seeds propagated from master ({master_seed}): {self.config['_internal_seeds']}")


def resolve_seed(config: Dict[str, Any], name: str) -> Optional[int]:
    """
    Seed for one pipeline component. Uses the propagated seeds when the
    config went through ConfigurationManager, else derives it from execution.seed.
    """
    internal = config.get('_internal_seeds')
    if internal is not None and name in internal:
        return internal[name]
    master_seed = config.get('execution', {}).get('seed')
    if master_seed is None:
        return None
    return master_seed + constants.SEED_OFFSETS[name]
