"""
Visuals - Indicator records and their reconciliation with state maps.

Architecture:
    QState -> IndicatorReconciler -> IndicatorTree -> RenderParams -> renderer

The indicator trees are NON-AUTHORITATIVE: they mirror the owners'
states and never feed back into them.
"""

from .indicator import (
    VisualIndicator,
    SubIndicator,
    SubIndicatorKind,
    IndicatorStyle,
    RenderParams,
    PLAYER_STYLE,
    DEVICE_STYLE,
    phase_rotation,
    bar_length,
    opacity,
    compute_render_params,
)
from .reconciler import IndicatorReconciler, IndicatorTree, ReconciliationResult

__all__ = [
    "VisualIndicator",
    "SubIndicator",
    "SubIndicatorKind",
    "IndicatorStyle",
    "RenderParams",
    "PLAYER_STYLE",
    "DEVICE_STYLE",
    "phase_rotation",
    "bar_length",
    "opacity",
    "compute_render_params",
    "IndicatorReconciler",
    "IndicatorTree",
    "ReconciliationResult",
]
