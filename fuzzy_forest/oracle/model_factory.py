import inspect
from typing import Dict, Any, List
from sklearn.ensemble import (
    ExtraTreesClassifier,
    ExtraTreesRegressor,
    RandomForestClassifier,
    RandomForestRegressor,
)

from fuzzy_forest.utils import constants


class ModelFactory:
    """
    Factory for creating tree ensembles with a unified interface.
    Picks the regressor or classifier flavour of each ensemble from the task.
    """

    REGRESSION_MODELS = {
        'RandomForest': RandomForestRegressor,
        'ExtraTrees': ExtraTreesRegressor,
    }

    CLASSIFICATION_MODELS = {
        'RandomForest': RandomForestClassifier,
        'ExtraTrees': ExtraTreesClassifier,
    }

    @classmethod
    def create(cls, model_name: str, task: str, params: Dict[str, Any] = None) -> Any:
        """
        Create and return an instantiated ensemble for the task.
        """
        if params is None:
            params = {}

        if task == constants.TASK_REGRESSION:
            registry = cls.REGRESSION_MODELS
        elif task == constants.TASK_CLASSIFICATION:
            registry = cls.CLASSIFICATION_MODELS
        else:
            raise ValueError(f"Unknown task: {task}. Available: {list(constants.VALID_TASKS)}")

        if model_name not in registry:
            raise ValueError(f"Unknown model name: {model_name}. Available: {cls.get_available_models()}")

        model_class = registry[model_name]
        return model_class(**cls._filter_params(model_class, params))

    @classmethod
    def get_available_models(cls) -> List[str]:
        """Return list of all supported model names."""
        return list(cls.REGRESSION_MODELS.keys())

    @staticmethod
    def _filter_params(model_class, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Remove parameters from `params` that are not accepted by `model_class` constructor.
        """
        sig = inspect.signature(model_class.__init__)

        valid_keys = [
            p.name for p in sig.parameters.values()
            if p.kind in (p.POSITIONAL_OR_KEYWORD, p.KEYWORD_ONLY)
        ]

        if any(p.kind == p.VAR_KEYWORD for p in sig.parameters.values()):
            return params

        return {k: v for k, v in params.items() if k in valid_keys}
