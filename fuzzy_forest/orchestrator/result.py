from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Hashable, List, Mapping

import pandas as pd

from fuzzy_forest.rfe.results import ScreeningResult, SelectionResult
from fuzzy_forest.utils.exceptions import FuzzyForestException
from fuzzy_forest.utils import constants


@dataclass(frozen=True)
class FuzzyForestResult:
    """
    Outcome of one fuzzy forest run.

    `ranked_features` lists exactly the selected features with their module
    and final importance, most important first. `final_error_estimate` is
    the final ensemble's out-of-bag error and is optimistic
    (`error_estimate_biased` is always True); see `metadata['error_caveat']`.
    """
    ranked_features: pd.DataFrame
    final_model: Any = field(repr=False)
    final_error_estimate: float
    error_metric: str
    module_membership: pd.Series = field(repr=False)
    screening: ScreeningResult = field(repr=False)
    selection: SelectionResult = field(repr=False)
    error_estimate_biased: bool = True
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        metadata = dict(self.metadata)
        if 'warnings' in metadata:
            metadata['warnings'] = tuple(metadata['warnings'])
        object.__setattr__(self, 'metadata', MappingProxyType(metadata))

    def __getstate__(self):
        # mappingproxy cannot be pickled; store the plain dict
        state = dict(self.__dict__)
        state['metadata'] = dict(self.metadata)
        return state

    def __setstate__(self, state):
        for key, value in state.items():
            object.__setattr__(self, key, value)
        object.__setattr__(self, 'metadata', MappingProxyType(dict(state['metadata'])))

    @property
    def selected_features(self) -> List[Hashable]:
        return self.ranked_features[constants.COL_FEATURE].tolist()

    @property
    def survivors(self) -> Dict[Hashable, List[Hashable]]:
        """Screened survivors per module."""
        return self.screening.survivors()

    @property
    def warnings(self) -> List[str]:
        return list(self.metadata.get('warnings', []))

    def predict(self, X: pd.DataFrame):
        """Predict with the final ensemble using the selected columns of X."""
        if self.final_model is None:
            raise FuzzyForestException("No fitted final model is available for prediction.")
        # The final forest was fitted in selection order, not ranked order
        return self.final_model.predict(X.loc[:, self.selection.selected])

    def module_summary(self) -> pd.DataFrame:
        """Per module: size, number of selected features and the selected proportion."""
        sizes = self.module_membership.value_counts(sort=False)
        selected = self.ranked_features[constants.COL_MODULE].value_counts()
        modules = list(dict.fromkeys(self.module_membership.tolist()))
        summary = pd.DataFrame({
            'module': modules,
            'module_size': [int(sizes[m]) for m in modules],
            'n_selected': [int(selected.get(m, 0)) for m in modules],
        })
        summary['proportion_selected'] = summary['n_selected'] / summary['module_size']
        return summary
