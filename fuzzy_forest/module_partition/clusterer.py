import abc
import logging
from typing import Dict, Hashable

import numpy as np
import pandas as pd
from scipy.cluster.hierarchy import linkage, fcluster
from scipy.spatial.distance import squareform

from fuzzy_forest.utils.exceptions import DataValidationError
from fuzzy_forest.utils import constants


class ModulePartitioner(abc.ABC):
    """Strategy that discovers a feature -> module mapping from the data."""

    @abc.abstractmethod
    def cluster(self, X: pd.DataFrame) -> pd.Series:
        """Return module labels indexed by feature, covering every column of X."""
        raise NotImplementedError("Subclasses must implement cluster.")


class CorrelationClusterer(ModulePartitioner):
    """
    Correlation-network clustering of features.

    Logic:
    1. Unsigned adjacency a_ij = |corr(x_i, x_j)| ** power (soft threshold).
    2. Dissimilarity d_ij = 1 - a_ij.
    3. Hierarchical clustering of d, cut at `distance_threshold`
       (or into `n_modules` clusters when given).
    4. Clusters smaller than `min_module_size` are pooled into 'unassigned'.

    Modules are named module_1, module_2, ... in order of their first column.
    Constant columns have no defined correlation and are treated as
    uncorrelated with everything.
    """

    def __init__(self, config: dict, logger: logging.Logger = None):
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        cl_cfg = config.get('clustering', {})
        self.power = cl_cfg.get('power', 6)
        self.linkage_method = cl_cfg.get('linkage', 'average')
        self.distance_threshold = cl_cfg.get('distance_threshold', 0.9)
        self.n_modules = cl_cfg.get('n_modules')
        self.min_module_size = cl_cfg.get('min_module_size', 1)

    def cluster(self, X: pd.DataFrame) -> pd.Series:
        features = list(X.columns)
        if not features:
            raise DataValidationError("Cannot cluster a data matrix without columns.")
        if len(features) == 1:
            return pd.Series(["module_1"], index=features, name='module', dtype=object)

        dissimilarity = self.dissimilarity(X)
        condensed = squareform(dissimilarity, checks=False)
        tree = linkage(condensed, method=self.linkage_method)

        if self.n_modules is not None:
            labels = fcluster(tree, t=self.n_modules, criterion='maxclust')
        else:
            labels = fcluster(tree, t=self.distance_threshold, criterion='distance')

        membership = self._name_modules(features, labels)
        sizes = membership.value_counts()
        self.logger.info(f"Correlation clustering found {len(sizes)} modules over {len(features)} features.")
        self.logger.debug(f"Module sizes: {sizes.to_dict()}")
        return membership

    def dissimilarity(self, X: pd.DataFrame) -> np.ndarray:
        corr = X.corr().abs().fillna(0.0).to_numpy(dtype=float)
        adjacency = corr ** self.power
        dist = 1.0 - adjacency
        dist = np.clip((dist + dist.T) / 2.0, 0.0, 1.0)
        np.fill_diagonal(dist, 0.0)
        return dist

    def _name_modules(self, features, labels) -> pd.Series:
        counts = pd.Series(labels).value_counts()
        names: Dict[int, Hashable] = {}
        next_id = 1
        for label in labels:
            if label in names:
                continue
            if counts[label] < self.min_module_size:
                names[label] = constants.UNASSIGNED_MODULE
            else:
                names[label] = f"module_{next_id}"
                next_id += 1
        return pd.Series([names[label] for label in labels], index=features, name='module', dtype=object)
