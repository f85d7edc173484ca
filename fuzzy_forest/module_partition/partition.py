from typing import Dict, Hashable, Iterable, List, Mapping, Union, Sequence

import pandas as pd

from fuzzy_forest.utils.exceptions import PartitionError


def validate_partition(feature_names: Iterable[Hashable],
                       membership: Union[pd.Series, Mapping, Sequence]) -> pd.Series:
    """
    Check that `membership` assigns every feature to exactly one module.

    Args:
        feature_names: Features of the data matrix, in column order.
        membership: A pd.Series indexed by feature, a mapping
            feature -> module, or a sequence of module labels aligned with
            `feature_names`.

    Returns:
        pd.Series of module labels indexed by feature, in column order.

    Raises:
        PartitionError: Features missing from the mapping, features the data
            does not have, duplicate assignments, null labels or a length
            mismatch for aligned sequences.
    """
    features = list(feature_names)

    if isinstance(membership, pd.Series):
        duplicated = membership.index[membership.index.duplicated()].unique().tolist()
        if duplicated:
            raise PartitionError(f"Features assigned to more than one module: {duplicated}")
        mapping = membership
    elif isinstance(membership, Mapping):
        mapping = pd.Series(list(membership.values()), index=list(membership.keys()), dtype=object)
    else:
        labels = list(membership)
        if len(labels) != len(features):
            raise PartitionError(
                f"Module membership has {len(labels)} labels but the data has {len(features)} features."
            )
        mapping = pd.Series(labels, index=features, dtype=object)

    known = set(features)
    missing = [f for f in features if f not in mapping.index]
    if missing:
        raise PartitionError(f"Features without a module: {missing}")
    unknown = [f for f in mapping.index if f not in known]
    if unknown:
        raise PartitionError(f"Module membership names features not in the data: {unknown}")

    membership_series = mapping.reindex(features)
    nulls = membership_series[membership_series.isna()].index.tolist()
    if nulls:
        raise PartitionError(f"Features with a null module label: {nulls}")

    membership_series.name = 'module'
    return membership_series


def group_modules(membership: pd.Series) -> Dict[Hashable, List[Hashable]]:
    """module -> features, modules in order of first appearance, features in column order."""
    modules: Dict[Hashable, List[Hashable]] = {}
    for feature, module in membership.items():
        modules.setdefault(module, []).append(feature)
    return modules
