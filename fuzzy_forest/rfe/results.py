"""
Immutable records produced by the elimination stages.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Mapping, Optional, Tuple

import pandas as pd


@dataclass(frozen=True)
class EliminationRound:
    """One scoring-and-drop step over a pool."""
    round_index: int
    n_features: int
    mtry: int
    n_tree: int
    seed: Optional[int]
    error_estimate: float
    error_metric: str
    importance: pd.Series = field(repr=False)
    dropped: Tuple[Hashable, ...] = ()


@dataclass(frozen=True)
class StageResult:
    """Surviving pool of one elimination run plus the rounds that produced it."""
    label: Hashable
    initial_features: Tuple[Hashable, ...]
    target: int
    survivors: Tuple[Hashable, ...]
    rounds: Tuple[EliminationRound, ...] = ()

    @property
    def n_rounds(self) -> int:
        return len(self.rounds)

    @property
    def final_importance(self) -> Optional[pd.Series]:
        """Scores of the survivors from the last round, None if never scored."""
        if not self.rounds:
            return None
        return self.rounds[-1].importance.reindex(list(self.survivors))

    def history_frame(self) -> pd.DataFrame:
        records = [{
            'label': self.label,
            'round': r.round_index,
            'n_features': r.n_features,
            'mtry': r.mtry,
            'n_tree': r.n_tree,
            'seed': r.seed,
            'error_estimate': r.error_estimate,
            'error_metric': r.error_metric,
            'n_dropped': len(r.dropped),
            'dropped': ", ".join(str(f) for f in r.dropped),
        } for r in self.rounds]
        return pd.DataFrame(records, columns=[
            'label', 'round', 'n_features', 'mtry', 'n_tree', 'seed',
            'error_estimate', 'error_metric', 'n_dropped', 'dropped',
        ])


@dataclass(frozen=True)
class ScreeningResult:
    """Per-module outcome of screening, in module order."""
    modules: Mapping[Hashable, StageResult]

    def __post_init__(self):
        object.__setattr__(self, 'modules', dict(self.modules))

    def survivors(self) -> Dict[Hashable, List[Hashable]]:
        return {module: list(res.survivors) for module, res in self.modules.items()}

    def survivor_modules(self) -> Dict[Hashable, Hashable]:
        """feature -> originating module, for every screened survivor."""
        return {
            feature: module
            for module, res in self.modules.items()
            for feature in res.survivors
        }

    @property
    def n_survivors(self) -> int:
        return sum(len(res.survivors) for res in self.modules.values())

    def history_frame(self) -> pd.DataFrame:
        frames = [res.history_frame() for res in self.modules.values()]
        frames = [f for f in frames if not f.empty]
        if not frames:
            return StageResult('', (), 0, ()).history_frame().rename(columns={'label': 'module'})
        return pd.concat(frames, ignore_index=True).rename(columns={'label': 'module'})


@dataclass(frozen=True)
class SelectionResult:
    """Cross-module elimination outcome with each feature's module retained."""
    stage: StageResult
    feature_modules: Mapping[Hashable, Hashable]
    is_noop: bool = False
    warning: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'feature_modules', dict(self.feature_modules))

    @property
    def selected(self) -> List[Hashable]:
        return list(self.stage.survivors)

    def history_frame(self) -> pd.DataFrame:
        return self.stage.history_frame().drop(columns=['label'])


@dataclass(frozen=True)
class FinalFitResult:
    """Final ensemble on the selected features."""
    model: Any = field(repr=False)
    features: Tuple[Hashable, ...]
    importance: pd.Series = field(repr=False)
    error_estimate: float
    error_metric: str
    error_estimate_biased: bool = True
    caveat: str = ""
    test_error: Optional[float] = None
    test_metric: Optional[str] = None
