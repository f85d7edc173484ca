"""
Recursive Feature Elimination (RFE) Module.

This package contains the multi-stage elimination engine:
- scaling_policy: mtry / n_tree / drop-count rules for a pool size.
- RecursiveEliminator: the sequential score-and-drop fold over one pool.
- ScreeningStage: module-local elimination, one worker task per module.
- SelectionStage: cross-module elimination down to number_selected.
- FinalFitStage: the final ensemble on the selected features.
"""

from . import scaling_policy
from .results import EliminationRound, StageResult, ScreeningResult, SelectionResult, FinalFitResult
from .eliminator import RecursiveEliminator
from .screening_stage import ScreeningStage
from .selection_stage import SelectionStage
from .final_fit_stage import FinalFitStage

__all__ = [
    'scaling_policy',
    'EliminationRound',
    'StageResult',
    'ScreeningResult',
    'SelectionResult',
    'FinalFitResult',
    'RecursiveEliminator',
    'ScreeningStage',
    'SelectionStage',
    'FinalFitStage',
]
